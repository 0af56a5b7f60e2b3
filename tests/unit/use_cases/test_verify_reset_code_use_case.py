"""
Unit tests for VerifyResetCodeUseCase
"""
from datetime import timedelta
from uuid import uuid4

import pytest

from config import PasswordResetConfig
from src.adapter.services.memory_rate_limit_store import MemoryRateLimitStore
from src.app.services.rate_limiter import RateLimiter
from src.app.use_cases.auth import VerifyResetCodeCommand, VerifyResetCodeUseCase
from src.domain.base import utcnow
from src.domain.entities import AuditEventType, PasswordResetToken


@pytest.fixture
def use_case(mock_uow, rate_limiter, codec, reset_config):
    return VerifyResetCodeUseCase(mock_uow, rate_limiter, codec, reset_config)


@pytest.fixture
def live_token(mock_uow, codec):
    now = utcnow()
    token = PasswordResetToken(
        id=uuid4(),
        user_id=uuid4(),
        hashed_token=codec.hash("raw-token"),
        code="123456",
        expires_at=now + timedelta(minutes=10),
        created_at=now,
    )
    mock_uow.password_reset_tokens.get_active_by_code.return_value = [token]
    return token


def command(code="123456", token="raw-token", ip="10.0.0.1"):
    return VerifyResetCodeCommand(code=code, token=token, ip=ip, user_agent="pytest")


@pytest.mark.asyncio
async def test_valid_pair_is_verified(use_case, mock_uow, live_token, audited):
    result = await use_case.execute(command())

    assert result.is_ok()
    assert result.value.status == "verified"
    assert result.value.message == "Reset code is valid"

    mock_uow.password_reset_tokens.consume.assert_not_awaited()
    mock_uow.commit.assert_awaited_once()
    [event] = audited(AuditEventType.password_reset_verified)
    assert event.user_id == live_token.user_id


@pytest.mark.asyncio
async def test_verification_can_be_repeated(use_case, live_token):
    assert (await use_case.execute(command())).is_ok()
    assert (await use_case.execute(command())).is_ok()


@pytest.mark.asyncio
async def test_wrong_token_fails_and_persists_attempt(use_case, mock_uow, live_token):
    result = await use_case.execute(command(token="not-the-token"))

    assert result.is_err()
    assert result.error.code == "INVALID_TOKEN_OR_CODE"
    mock_uow.password_reset_tokens.increment_attempts.assert_awaited_once_with(live_token.id)
    mock_uow.commit.assert_awaited_once()


@pytest.mark.asyncio
@pytest.mark.parametrize("code", ["12345", "1234567", "12a456", "١٢٣٤٥٦"])
async def test_malformed_code_is_rejected_before_lookup(use_case, mock_uow, code):
    result = await use_case.execute(command(code=code))

    assert result.error.code == "INVALID_TOKEN_OR_CODE"
    mock_uow.password_reset_tokens.get_active_by_code.assert_not_awaited()


@pytest.mark.asyncio
async def test_locked_token_reports_locked(use_case, live_token):
    live_token.attempts = 5

    result = await use_case.execute(command())

    assert result.error.code == "LOCKED"


@pytest.mark.asyncio
async def test_verification_rate_limit_per_ip(mock_uow, codec, live_token, audited):
    config = PasswordResetConfig(verify_rate_limit=2)
    use_case = VerifyResetCodeUseCase(
        mock_uow, RateLimiter(MemoryRateLimitStore(), config), codec, config
    )

    await use_case.execute(command())
    await use_case.execute(command())
    result = await use_case.execute(command())

    assert result.error.code == "RATE_LIMITED"
    [event] = audited(AuditEventType.password_reset_rate_limited)
    assert event.event_metadata["limit"] == "verification"

    assert (await use_case.execute(command(ip="10.0.0.2"))).is_ok()


@pytest.mark.asyncio
async def test_unreachable_rate_limit_store_returns_internal_error(
    mock_uow, unreachable_rate_limiter, codec, reset_config, live_token
):
    use_case = VerifyResetCodeUseCase(mock_uow, unreachable_rate_limiter, codec, reset_config)

    result = await use_case.execute(command())

    assert result.is_err()
    assert result.error.code == "INTERNAL"
    mock_uow.commit.assert_not_awaited()
