from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv


PROJECT_ROOT = Path(__file__).resolve().parent.parent
ENV_FILE = PROJECT_ROOT / ".env"
load_dotenv(ENV_FILE, override=False)


def _as_bool(value: str | None, *, default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _as_int(
    value: str | None,
    *,
    default: int,
    min_value: int | None = None,
    max_value: int | None = None,
) -> int:
    if value is None or not value.strip():
        parsed = default
    else:
        try:
            parsed = int(value.strip())
        except ValueError as exc:
            raise ValueError(f"Expected integer value, got: {value!r}") from exc

    if min_value is not None and parsed < min_value:
        raise ValueError(f"Integer value {parsed} is less than allowed minimum {min_value}.")
    if max_value is not None and parsed > max_value:
        raise ValueError(f"Integer value {parsed} exceeds allowed maximum {max_value}.")
    return parsed


def _as_list(value: str | None, *, default: list[str]) -> list[str]:
    if not value:
        return default
    return [item.strip() for item in value.split(",") if item.strip()]


def _first_non_empty(*values: str | None) -> str:
    for item in values:
        if item and item.strip():
            return item.strip()
    return ""


@dataclass(frozen=True)
class Settings:
    app_name: str
    environment: str
    debug: bool
    port: int
    log_level: str

    cors_origins: list[str]
    trust_proxy: bool

    rate_limit_max: int
    rate_limit_window_seconds: int

    mail_server: str
    mail_port: int
    mail_username: str
    mail_password: str
    mail_from: str
    mail_to: str
    mail_timeout_seconds: int
    mail_verify_certs: bool
    mail_verify_on_startup: bool
    mail_timezone: str

    @property
    def mail_configured(self) -> bool:
        return bool(self.mail_server and self.mail_from and self.mail_to)


def _validate_for_production(settings: Settings) -> None:
    if settings.environment != "production":
        return

    missing: list[str] = []
    if not settings.mail_server:
        missing.append("EMAIL_HOST")
    if not settings.mail_username:
        missing.append("EMAIL_USER")
    if not settings.mail_password:
        missing.append("EMAIL_PASS")
    if not settings.mail_from:
        missing.append("EMAIL_FROM")
    if not settings.mail_to:
        missing.append("EMAIL_TO")
    if missing:
        raise RuntimeError(
            "Missing required environment variables for production: " + ", ".join(missing)
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    environment = (os.getenv("APP_ENV") or "development").strip().lower()
    mail_username = _first_non_empty(os.getenv("EMAIL_USER"), os.getenv("MAIL_USERNAME"))
    settings = Settings(
        app_name=(os.getenv("APP_NAME") or "Landing Contact API").strip(),
        environment=environment,
        debug=_as_bool(os.getenv("DEBUG"), default=environment != "production"),
        port=_as_int(os.getenv("PORT"), default=3000, min_value=1, max_value=65535),
        log_level=(os.getenv("LOG_LEVEL") or "INFO").strip().upper(),
        cors_origins=_as_list(
            _first_non_empty(os.getenv("CORS_ORIGINS"), os.getenv("CORS_ORIGIN")),
            default=["*"],
        ),
        trust_proxy=_as_bool(os.getenv("TRUST_PROXY"), default=True),
        rate_limit_max=_as_int(os.getenv("RATE_LIMIT_MAX"), default=10, min_value=1, max_value=100_000),
        rate_limit_window_seconds=_as_int(
            os.getenv("RATE_LIMIT_WINDOW_SECONDS"),
            default=60,
            min_value=1,
            max_value=60 * 60 * 24,
        ),
        mail_server=_first_non_empty(os.getenv("EMAIL_HOST"), os.getenv("MAIL_SERVER")),
        mail_port=_as_int(
            _first_non_empty(os.getenv("EMAIL_PORT"), os.getenv("MAIL_PORT")) or None,
            default=587,
            min_value=1,
            max_value=65535,
        ),
        mail_username=mail_username,
        mail_password=_first_non_empty(os.getenv("EMAIL_PASS"), os.getenv("MAIL_PASSWORD")),
        mail_from=_first_non_empty(os.getenv("EMAIL_FROM"), os.getenv("MAIL_FROM"), mail_username),
        mail_to=_first_non_empty(os.getenv("EMAIL_TO"), os.getenv("MAIL_TO")),
        mail_timeout_seconds=_as_int(os.getenv("MAIL_TIMEOUT_SECONDS"), default=10, min_value=1, max_value=300),
        mail_verify_certs=_as_bool(os.getenv("MAIL_VERIFY_CERTS"), default=True),
        mail_verify_on_startup=_as_bool(os.getenv("MAIL_VERIFY_ON_STARTUP"), default=True),
        mail_timezone=(os.getenv("MAIL_TIMEZONE") or "Asia/Seoul").strip(),
    )

    _validate_for_production(settings)
    return settings
