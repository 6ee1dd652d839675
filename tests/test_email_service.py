"""
Tests for email templating, message construction and the SMTP transport.
"""

import smtplib
from dataclasses import replace
from datetime import datetime, timezone

import pytest

from backend.exceptions import ConfigurationError, DispatchError
from backend.schemas.contact import ContactSubmission
from backend.services import email_service
from backend.services.email_service import (
    NOT_PROVIDED,
    SmtpMailTransport,
    build_contact_message,
    format_timestamp_ko,
    render_contact_email,
    send_contact_email,
)


@pytest.fixture
def submission():
    return ContactSubmission(
        name="홍길동",
        email="hong@example.com",
        phone=None,
        company="Acme & Sons",
        message="첫 줄입니다.\n<b>둘째 줄</b>입니다.",
    )


def test_format_timestamp_ko():
    assert format_timestamp_ko(datetime(2024, 1, 5, 15, 4, 5)) == "2024. 1. 5. 오후 3:04:05"
    assert format_timestamp_ko(datetime(2024, 12, 25, 0, 30, 0)) == "2024. 12. 25. 오전 12:30:00"
    assert format_timestamp_ko(datetime(2024, 12, 25, 12, 0, 9)) == "2024. 12. 25. 오후 12:00:09"


def test_render_escapes_every_placeholder(submission):
    rendered = render_contact_email(submission, timestamp="2024. 1. 5. 오후 3:04:05")

    assert "{{" not in rendered
    assert "Acme &amp; Sons" in rendered
    assert "첫 줄입니다.<br>&lt;b&gt;둘째 줄&lt;/b&gt;입니다." in rendered
    assert NOT_PROVIDED in rendered
    assert "2024. 1. 5. 오후 3:04:05" in rendered


def test_build_message_sets_headers_and_local_timestamp(settings, submission):
    sent_at = datetime(2024, 1, 5, 6, 4, 5, tzinfo=timezone.utc)
    message = build_contact_message(submission, settings=settings, sent_at=sent_at)

    assert message["Reply-To"] == "hong@example.com"
    assert message["From"] == "noreply@example.com"
    assert message["To"] == "owner@example.com"
    assert message["Subject"] == "[문의사항] 홍길동님으로부터 새로운 문의가 도착했습니다"

    html_body = message.get_body(preferencelist=("html",)).get_content()
    text_body = message.get_body(preferencelist=("plain",)).get_content()
    assert "2024. 1. 5. 오후 3:04:05" in html_body
    assert "<b>둘째 줄</b>" in text_body


def test_subject_cannot_carry_header_breaks(settings, submission):
    message = build_contact_message(submission.model_copy(update={"name": "홍\n길동"}), settings=settings)

    assert "\n" not in message["Subject"]


@pytest.mark.parametrize("separator", ["\x0c", "\x0b", "\x1c", "\x85", "\u2028", "\u2029"])
def test_subject_collapses_line_breaking_whitespace(settings, submission, separator):
    message = build_contact_message(submission.model_copy(update={"name": f"홍{separator}길동"}), settings=settings)

    assert message["Subject"] == "[문의사항] 홍 길동님으로부터 새로운 문의가 도착했습니다"


def test_missing_recipient_is_a_configuration_error(settings, submission):
    with pytest.raises(ConfigurationError):
        build_contact_message(submission, settings=replace(settings, mail_to=""))


def test_send_contact_email_hands_message_to_transport(settings, submission, transport):
    send_contact_email(submission, transport=transport, settings=settings)

    assert len(transport.sent) == 1
    assert transport.sent[0]["Reply-To"] == submission.email


class FakeSMTP:
    instances: list["FakeSMTP"] = []

    def __init__(self, host, port, timeout=None, **kwargs):
        self.host = host
        self.port = port
        self.timeout = timeout
        self.kwargs = kwargs
        self.calls: list[str] = []
        self.sent = []
        FakeSMTP.instances.append(self)

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.calls.append("quit")
        return False

    def ehlo(self):
        self.calls.append("ehlo")

    def has_extn(self, name):
        return name == "starttls"

    def starttls(self, context=None):
        self.calls.append("starttls")

    def login(self, username, password):
        self.calls.append(f"login:{username}")

    def noop(self):
        self.calls.append("noop")

    def send_message(self, message):
        self.sent.append(message)


@pytest.fixture
def fake_smtp(monkeypatch):
    FakeSMTP.instances = []
    monkeypatch.setattr(email_service.smtplib, "SMTP", FakeSMTP)
    monkeypatch.setattr(email_service.smtplib, "SMTP_SSL", FakeSMTP)
    return FakeSMTP


def test_smtp_transport_uses_starttls_and_login(fake_smtp, settings, submission):
    transport = SmtpMailTransport(host="smtp.example.com", port=587, username="user", password="secret", timeout=10)
    message = build_contact_message(submission, settings=settings)

    transport.send(message)

    smtp = fake_smtp.instances[0]
    assert (smtp.host, smtp.port, smtp.timeout) == ("smtp.example.com", 587, 10)
    assert smtp.calls[:4] == ["ehlo", "starttls", "ehlo", "login:user"]
    assert smtp.sent == [message]


def test_smtp_transport_uses_implicit_tls_on_465(fake_smtp):
    transport = SmtpMailTransport(host="smtp.example.com", port=465)

    transport.verify()

    smtp = fake_smtp.instances[0]
    assert "context" in smtp.kwargs
    assert "starttls" not in smtp.calls
    assert "noop" in smtp.calls


def test_smtp_failures_become_dispatch_errors(monkeypatch, settings, submission):
    def refuse(*args, **kwargs):
        raise ConnectionRefusedError("connection refused")

    monkeypatch.setattr(email_service.smtplib, "SMTP", refuse)
    transport = SmtpMailTransport(host="smtp.example.com", port=587)

    with pytest.raises(DispatchError):
        transport.send(build_contact_message(submission, settings=settings))


def test_smtp_auth_failure_becomes_dispatch_error(monkeypatch, fake_smtp, settings, submission):
    def reject_login(self, username, password):
        raise smtplib.SMTPAuthenticationError(535, b"bad credentials")

    monkeypatch.setattr(FakeSMTP, "login", reject_login)
    transport = SmtpMailTransport(host="smtp.example.com", username="user", password="wrong")

    with pytest.raises(DispatchError):
        transport.send(build_contact_message(submission, settings=settings))


def test_transport_without_host_is_not_configured():
    with pytest.raises(ConfigurationError):
        SmtpMailTransport(host="").send(None)


def test_transport_from_settings(settings):
    transport = SmtpMailTransport.from_settings(replace(settings, mail_port=2525, mail_timeout_seconds=7))

    assert transport.host == "smtp.example.com"
    assert transport.port == 2525
    assert transport.timeout == 7.0
