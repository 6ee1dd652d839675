"""
Pytest configuration and fixtures for testing.
"""

from dataclasses import replace
from email.message import EmailMessage

import pytest
from fastapi.testclient import TestClient

from backend.config import get_settings
from backend.exceptions import DispatchError
from backend.main import create_app
from backend.routers.contact import get_mail_transport


class RecordingTransport:
    """Mail transport double that keeps every message it was given."""

    def __init__(self, error: Exception | None = None):
        self.error = error
        self.sent: list[EmailMessage] = []

    def send(self, message: EmailMessage) -> None:
        if self.error is not None:
            raise self.error
        self.sent.append(message)


@pytest.fixture
def settings():
    return replace(
        get_settings(),
        mail_server="smtp.example.com",
        mail_from="noreply@example.com",
        mail_to="owner@example.com",
        mail_verify_on_startup=False,
    )


@pytest.fixture
def transport():
    return RecordingTransport()


@pytest.fixture
def failing_transport():
    return RecordingTransport(error=DispatchError("SMTP connection refused by smtp.example.com:587"))


@pytest.fixture
def app(settings, transport):
    application = create_app(settings)
    application.dependency_overrides[get_mail_transport] = lambda: transport
    return application


@pytest.fixture
def client(app):
    """Create a test client for the FastAPI application."""
    return TestClient(app)


@pytest.fixture
def valid_payload():
    return {
        "name": "홍길동",
        "email": "Hong@Example.com",
        "phone": "010-1234-5678",
        "company": "Acme",
        "message": "제품 도입 관련하여 상담을 요청드립니다.",
    }
