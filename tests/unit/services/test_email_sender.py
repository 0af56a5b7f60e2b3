import logging

import pytest

from src.adapter.services.logging_email_sender import LoggingEmailSender
from src.app.services.email_sender import PasswordResetEmail


@pytest.fixture
def email():
    return PasswordResetEmail(
        to="user@example.com",
        code="123456",
        token="raw-token",
        reset_url="https://app.example.com/reset?token=raw-token",
        expires_in_minutes=10,
        first_name="Ada",
    )


def test_text_contains_code_link_and_expiry(email):
    body = email.text()

    assert body.startswith("Hi Ada,")
    assert "Your verification code: 123456" in body
    assert "expires in 10 minutes" in body
    assert "https://app.example.com/reset?token=raw-token" in body


def test_text_without_name_uses_generic_greeting(email):
    assert email.model_copy(update={"first_name": None}).text().startswith("Hi User,")


@pytest.mark.asyncio
async def test_logging_sender_logs_and_reports_success(email, caplog):
    sender = LoggingEmailSender("noreply@example.com")

    with caplog.at_level(logging.INFO):
        delivered = await sender.send_password_reset(email)

    assert delivered is True
    assert "user@example.com" in caplog.text
    assert "Reset your password" in caplog.text
