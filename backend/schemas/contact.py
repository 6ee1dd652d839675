from __future__ import annotations

import re
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from backend.exceptions import FieldError, ValidationError
from backend.utils.validation import NAME_PATTERN, PHONE_PATTERN, FieldRule, validate_values


EMAIL_PATTERN = re.compile(
    r"[A-Za-z0-9.!#$%&'*+/=?^_`{|}~-]+"
    r"@[A-Za-z0-9](?:[A-Za-z0-9-]{0,61}[A-Za-z0-9])?"
    r"(?:\.[A-Za-z0-9](?:[A-Za-z0-9-]{0,61}[A-Za-z0-9])?)+"
)

INVALID_VALUE_MESSAGE = "올바르지 않은 입력 형식입니다."
INVALID_BODY_MESSAGE = "요청 본문을 해석할 수 없습니다."

CONTACT_RULES: dict[str, FieldRule] = {
    "name": FieldRule(
        required=True,
        min_length=2,
        pattern=NAME_PATTERN,
        messages={
            "required": "이름을 입력해주세요.",
            "min_length": "이름은 2자 이상이어야 합니다.",
            "pattern": "이름은 한글 또는 영문만 입력 가능합니다.",
        },
    ),
    "email": FieldRule(
        required=True,
        max_length=254,
        pattern=EMAIL_PATTERN,
        messages={
            "required": "이메일을 입력해주세요.",
            "max_length": "올바른 이메일 주소를 입력해주세요.",
            "pattern": "올바른 이메일 주소를 입력해주세요.",
        },
    ),
    "phone": FieldRule(
        pattern=PHONE_PATTERN,
        messages={"pattern": "올바른 전화번호 형식을 입력해주세요."},
    ),
    "company": FieldRule(
        max_length=100,
        messages={"max_length": "회사명은 100자 이하로 입력해주세요."},
    ),
    "message": FieldRule(
        required=True,
        min_length=10,
        max_length=500,
        messages={
            "required": "메시지를 입력해주세요.",
            "min_length": "메시지는 10자 이상 500자 이하로 입력해주세요.",
            "max_length": "메시지는 10자 이상 500자 이하로 입력해주세요.",
        },
    ),
}


class ContactRequest(BaseModel):
    """Transport shape of the form; the rule set decides what is acceptable."""

    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)

    name: str | None = None
    email: str | None = None
    phone: str | None = None
    company: str | None = None
    message: str | None = None


class ContactSubmission(BaseModel):
    name: str
    email: str
    phone: str | None = None
    company: str | None = None
    message: str


class FieldErrorItem(BaseModel):
    field: str
    message: str


class ContactSuccessResponse(BaseModel):
    success: bool = True
    message: str


class ContactErrorResponse(BaseModel):
    success: bool = False
    message: str


class ValidationErrorResponse(BaseModel):
    success: bool = False
    errors: list[FieldErrorItem] = Field(default_factory=list)


class HealthResponse(BaseModel):
    status: str = "OK"
    message: str = "Server is running"


class NotFoundResponse(BaseModel):
    message: str = "Route not found"


def _clean(value: str | None) -> str | None:
    text = (value or "").strip()
    return text or None


def parse_contact_request(data: Any) -> ContactRequest:
    if not isinstance(data, dict):
        raise ValidationError([FieldError("body", INVALID_BODY_MESSAGE)])
    try:
        return ContactRequest.model_validate(data)
    except PydanticValidationError as exc:
        fields: list[str] = []
        for error in exc.errors():
            name = str(error["loc"][0]) if error.get("loc") else "body"
            if name not in fields:
                fields.append(name)
        raise ValidationError([FieldError(name, INVALID_VALUE_MESSAGE) for name in fields]) from exc


def validate_contact(payload: ContactRequest) -> ContactSubmission:
    values = payload.model_dump()
    report = validate_values(CONTACT_RULES, values)
    if not report.is_valid:
        raise ValidationError([FieldError(name, message) for name, message in report.errors()])

    return ContactSubmission(
        name=values["name"].strip(),
        email=values["email"].strip().lower(),
        phone=_clean(values["phone"]),
        company=_clean(values["company"]),
        message=values["message"].strip(),
    )
