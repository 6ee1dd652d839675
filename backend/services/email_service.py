from __future__ import annotations

from datetime import datetime, timezone
from email.message import EmailMessage
from html import escape
import smtplib
import ssl
from typing import Protocol
from zoneinfo import ZoneInfo

from backend.config import Settings
from backend.exceptions import ConfigurationError, DispatchError
from backend.schemas.contact import ContactSubmission
from backend.utils.logging import logger, submitter_reference


NOT_PROVIDED = "미입력"

CONTACT_EMAIL_TEMPLATE = """<!doctype html>
<html lang="ko">
  <head>
    <meta charset="utf-8">
    <title>새로운 문의사항</title>
  </head>
  <body style="margin:0;padding:24px;background:#f7fafc;font-family:'Apple SD Gothic Neo','Malgun Gothic',sans-serif;color:#111827;">
    <div style="max-width:600px;margin:0 auto;background:#ffffff;border:1px solid #e5e7eb;border-radius:10px;padding:24px;">
      <h1 style="margin:0 0 16px;font-size:22px;">새로운 문의사항이 도착했습니다</h1>
      <table style="width:100%;border-collapse:collapse;font-size:15px;">
        <tr><th style="text-align:left;padding:8px 0;width:120px;">이름</th><td>{{name}}</td></tr>
        <tr><th style="text-align:left;padding:8px 0;">이메일</th><td>{{email}}</td></tr>
        <tr><th style="text-align:left;padding:8px 0;">연락처</th><td>{{phone}}</td></tr>
        <tr><th style="text-align:left;padding:8px 0;">회사명</th><td>{{company}}</td></tr>
      </table>
      <h2 style="margin:24px 0 8px;font-size:17px;">문의 내용</h2>
      <p style="margin:0;line-height:1.6;">{{message}}</p>
      <p style="margin:24px 0 0;color:#6b7280;font-size:13px;">접수 시각: {{timestamp}}</p>
    </div>
  </body>
</html>
"""


class MailTransport(Protocol):
    def send(self, message: EmailMessage) -> None:
        ...


def format_timestamp_ko(moment: datetime) -> str:
    """Format like the ko-KR locale: ``2024. 1. 5. 오후 3:04:05``."""
    meridiem = "오전" if moment.hour < 12 else "오후"
    hour = moment.hour % 12 or 12
    return (
        f"{moment.year}. {moment.month}. {moment.day}. "
        f"{meridiem} {hour}:{moment.minute:02d}:{moment.second:02d}"
    )


def _localize(sent_at: datetime | None, tz_name: str) -> datetime:
    moment = sent_at or datetime.now(timezone.utc)
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(ZoneInfo(tz_name))


def _safe_line(value: str) -> str:
    # Any whitespace str.splitlines() breaks on (\f, \v, \x85, U+2028, ...) is rejected in headers.
    return " ".join(value.split())


def render_contact_email(submission: ContactSubmission, *, timestamp: str) -> str:
    replacements = {
        "{{name}}": escape(submission.name),
        "{{email}}": escape(submission.email),
        "{{phone}}": escape(submission.phone or NOT_PROVIDED),
        "{{company}}": escape(submission.company or NOT_PROVIDED),
        "{{message}}": escape(submission.message).replace("\n", "<br>"),
        "{{timestamp}}": escape(timestamp),
    }
    rendered = CONTACT_EMAIL_TEMPLATE
    for placeholder, value in replacements.items():
        rendered = rendered.replace(placeholder, value)
    return rendered


def _contact_text_body(submission: ContactSubmission, *, timestamp: str) -> str:
    return (
        "새로운 문의사항이 도착했습니다.\n\n"
        f"이름: {submission.name}\n"
        f"이메일: {submission.email}\n"
        f"연락처: {submission.phone or NOT_PROVIDED}\n"
        f"회사명: {submission.company or NOT_PROVIDED}\n\n"
        "문의 내용:\n"
        f"{submission.message}\n\n"
        f"접수 시각: {timestamp}\n"
    )


def build_contact_message(
    submission: ContactSubmission,
    *,
    settings: Settings,
    sent_at: datetime | None = None,
) -> EmailMessage:
    if not settings.mail_from:
        raise ConfigurationError("Mail sender is not configured.", config_key="EMAIL_FROM")
    if not settings.mail_to:
        raise ConfigurationError("Mail recipient is not configured.", config_key="EMAIL_TO")

    timestamp = format_timestamp_ko(_localize(sent_at, settings.mail_timezone))

    message = EmailMessage()
    message["Subject"] = f"[문의사항] {_safe_line(submission.name)}님으로부터 새로운 문의가 도착했습니다"
    message["From"] = settings.mail_from
    message["To"] = settings.mail_to
    message["Reply-To"] = submission.email
    message.set_content(_contact_text_body(submission, timestamp=timestamp))
    message.add_alternative(render_contact_email(submission, timestamp=timestamp), subtype="html")
    return message


class SmtpMailTransport:
    def __init__(
        self,
        *,
        host: str,
        port: int = 587,
        username: str = "",
        password: str = "",
        timeout: float = 10.0,
        verify_certs: bool = True,
    ) -> None:
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.timeout = timeout
        self.verify_certs = verify_certs

    @classmethod
    def from_settings(cls, settings: Settings) -> "SmtpMailTransport":
        return cls(
            host=settings.mail_server,
            port=settings.mail_port,
            username=settings.mail_username,
            password=settings.mail_password,
            timeout=float(settings.mail_timeout_seconds),
            verify_certs=settings.mail_verify_certs,
        )

    def _tls_context(self) -> ssl.SSLContext:
        context = ssl.create_default_context()
        if not self.verify_certs:
            context.check_hostname = False
            context.verify_mode = ssl.CERT_NONE
        return context

    def _connect(self) -> smtplib.SMTP:
        if not self.host:
            raise ConfigurationError("Mail server is not configured.", config_key="EMAIL_HOST")

        context = self._tls_context()
        if self.port == 465:
            smtp: smtplib.SMTP = smtplib.SMTP_SSL(self.host, self.port, context=context, timeout=self.timeout)
        else:
            smtp = smtplib.SMTP(self.host, self.port, timeout=self.timeout)
            smtp.ehlo()
            if smtp.has_extn("starttls"):
                smtp.starttls(context=context)
                smtp.ehlo()

        if self.username and self.password:
            smtp.login(self.username, self.password)
        return smtp

    def send(self, message: EmailMessage) -> None:
        try:
            with self._connect() as smtp:
                smtp.send_message(message)
        except (smtplib.SMTPException, OSError) as exc:
            raise DispatchError("Mail transport rejected the message.", details={"cause": type(exc).__name__}) from exc

    def verify(self) -> None:
        try:
            with self._connect() as smtp:
                smtp.noop()
        except (smtplib.SMTPException, OSError) as exc:
            raise DispatchError("Mail server is unreachable.", details={"cause": type(exc).__name__}) from exc


def send_contact_email(
    submission: ContactSubmission,
    *,
    transport: MailTransport,
    settings: Settings,
    sent_at: datetime | None = None,
) -> None:
    message = build_contact_message(submission, settings=settings, sent_at=sent_at)
    transport.send(message)
    logger.info("Contact email relayed for submitter %s", submitter_reference(submission.email))
