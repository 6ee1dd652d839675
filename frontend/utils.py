from __future__ import annotations

import re


CLIENT_EMAIL_PATTERN = re.compile(r"[^\s@]+@[^\s@]+\.[^\s@]+")
NON_DIGIT_RE = re.compile(r"\D", re.ASCII)


def sanitize_html(text: str) -> str:
    """Encode text the way a text node serializes, so it cannot become markup."""
    return (
        text.replace("&", "&amp;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
        .replace("\u00a0", "&nbsp;")
    )


def format_phone_number(value: str) -> str:
    cleaned = NON_DIGIT_RE.sub("", value)

    if len(cleaned) >= 11:
        return f"{cleaned[:3]}-{cleaned[3:7]}-{cleaned[7:11]}{cleaned[11:]}"
    if len(cleaned) >= 7:
        return f"{cleaned[:3]}-{cleaned[3:7]}{cleaned[7:]}"
    if len(cleaned) >= 3:
        return f"{cleaned[:3]}-{cleaned[3:]}"
    return cleaned

