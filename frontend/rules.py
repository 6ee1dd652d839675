from __future__ import annotations

from backend.utils.validation import NAME_PATTERN, PHONE_PATTERN, FieldRule
from frontend.utils import CLIENT_EMAIL_PATTERN


FORM_FIELDS = ("name", "email", "phone", "company", "message")
OPTIONAL_FIELDS = ("phone", "company")

CLIENT_RULES: dict[str, FieldRule] = {
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
        pattern=CLIENT_EMAIL_PATTERN,
        messages={
            "required": "이메일을 입력해주세요.",
            "pattern": "올바른 이메일 형식이 아닙니다.",
        },
    ),
    "phone": FieldRule(
        pattern=PHONE_PATTERN,
        messages={"pattern": "올바른 전화번호 형식이 아닙니다. (예: 010-1234-5678)"},
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
            "min_length": "메시지는 10자 이상 입력해주세요.",
            "max_length": "메시지는 500자 이하로 입력해주세요.",
        },
    ),
}
