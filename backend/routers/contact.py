from __future__ import annotations

import json
from typing import Any
from urllib.parse import parse_qs

from fastapi import APIRouter, Depends, Request, status
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse

from backend.config import Settings, get_settings
from backend.exceptions import DispatchError, FieldError, RateLimitError, ValidationError
from backend.schemas.contact import (
    INVALID_BODY_MESSAGE,
    ContactErrorResponse,
    ContactSuccessResponse,
    ValidationErrorResponse,
    parse_contact_request,
    validate_contact,
)
from backend.services.email_service import MailTransport, send_contact_email
from backend.utils.logging import logger
from backend.utils.rate_limit import InMemorySlidingWindowLimiter, client_address


RATE_LIMIT_MESSAGE = "너무 많은 요청이 발생했습니다. 1분 후에 다시 시도해주세요."
SUCCESS_MESSAGE = "문의사항이 성공적으로 전송되었습니다. 빠른 시일 내에 답변드리겠습니다."
DISPATCH_FAILURE_MESSAGE = "이메일 전송 중 오류가 발생했습니다. 잠시 후 다시 시도해주세요."

router = APIRouter(prefix="/api/contact", tags=["contact"])


def get_app_settings(request: Request) -> Settings:
    return getattr(request.app.state, "settings", None) or get_settings()


def get_mail_transport(request: Request) -> MailTransport:
    return request.app.state.mail_transport


def get_contact_limiter(request: Request) -> InMemorySlidingWindowLimiter:
    return request.app.state.contact_limiter


def enforce_contact_rate_limit(
    request: Request,
    settings: Settings = Depends(get_app_settings),
    limiter: InMemorySlidingWindowLimiter = Depends(get_contact_limiter),
) -> None:
    key = client_address(request, trust_proxy=settings.trust_proxy)
    allowed, retry_after = limiter.check(key)
    if not allowed:
        logger.warning("Contact rate limit exceeded for %s", key)
        raise RateLimitError(RATE_LIMIT_MESSAGE, retry_after=retry_after, limit=limiter.max_requests)


async def read_contact_payload(request: Request) -> Any:
    content_type = request.headers.get("content-type", "").split(";")[0].strip().lower()
    raw = await request.body()

    if content_type == "application/x-www-form-urlencoded":
        parsed = parse_qs(raw.decode("utf-8", errors="replace"), keep_blank_values=True)
        return {key: values[-1] for key, values in parsed.items()}

    if not raw.strip():
        return {}
    try:
        return json.loads(raw)
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise ValidationError([FieldError("body", INVALID_BODY_MESSAGE)]) from exc


@router.post(
    "",
    response_model=ContactSuccessResponse,
    dependencies=[Depends(enforce_contact_rate_limit)],
    responses={
        status.HTTP_400_BAD_REQUEST: {"model": ValidationErrorResponse},
        status.HTTP_429_TOO_MANY_REQUESTS: {"model": ContactErrorResponse},
        status.HTTP_500_INTERNAL_SERVER_ERROR: {"model": ContactErrorResponse},
    },
)
async def submit_contact(
    request: Request,
    settings: Settings = Depends(get_app_settings),
    transport: MailTransport = Depends(get_mail_transport),
):
    payload = parse_contact_request(await read_contact_payload(request))
    submission = validate_contact(payload)

    try:
        await run_in_threadpool(
            send_contact_email,
            submission,
            transport=transport,
            settings=settings,
        )
    except DispatchError as exc:
        logger.error("Email send error [%s]: %s %s", exc.error_code, exc.message, exc.details, exc_info=True)
        return _dispatch_failure()
    except Exception as exc:
        logger.exception("Email send error: %s", str(exc))
        return _dispatch_failure()

    return ContactSuccessResponse(message=SUCCESS_MESSAGE)


def _dispatch_failure() -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=ContactErrorResponse(message=DISPATCH_FAILURE_MESSAGE).model_dump(),
    )
