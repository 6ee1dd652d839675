from __future__ import annotations

import hashlib
import logging
import re
from logging.config import dictConfig


EMAIL_RE = re.compile(r"[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}")
# Korean landline and mobile numbers, with or without dashes.
PHONE_RE = re.compile(r"\b0\d{1,2}-?\d{3,4}-?\d{4}\b")

LOGGER_NAME = "landing_contact"


class _PIIRedactionFilter(logging.Filter):
    """Mask submitter emails and phone numbers before a record is emitted."""

    def filter(self, record: logging.LogRecord) -> bool:
        try:
            rendered = record.getMessage()
        except (TypeError, ValueError):
            rendered = str(record.msg)
        record.msg = redact(rendered)
        record.args = None
        return True


def redact(value: str) -> str:
    value = EMAIL_RE.sub("[redacted-email]", value)
    value = PHONE_RE.sub("[redacted-phone]", value)
    return value


def submitter_reference(email: str) -> str:
    """Stable short token for correlating submissions from one address."""
    return hashlib.sha256(email.strip().lower().encode("utf-8")).hexdigest()[:12]


def setup_logging(level: str = "INFO") -> None:
    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "filters": {
                "redact_pii": {
                    "()": _PIIRedactionFilter,
                }
            },
            "formatters": {
                "default": {
                    "format": "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
                }
            },
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "stream": "ext://sys.stderr",
                    "formatter": "default",
                    "filters": ["redact_pii"],
                }
            },
            "loggers": {
                LOGGER_NAME: {"level": level},
                "uvicorn.access": {"level": "WARNING"},
            },
            "root": {
                "handlers": ["console"],
                "level": "INFO",
            },
        }
    )


logger = logging.getLogger(LOGGER_NAME)
