import pytest
from unittest.mock import AsyncMock, MagicMock

from config import PasswordResetConfig
from src.adapter.services.memory_rate_limit_store import MemoryRateLimitStore
from src.app.services.rate_limiter import RateLimiter, RateLimitStoreError
from src.app.services.token_codec import TokenCodec


async def _passthrough(entity):
    return entity


async def _set_password(user, password_hash, changed_at):
    user.password_hash = password_hash
    user.password_changed_at = changed_at
    return user


@pytest.fixture
def mock_uow():
    """Mock UnitOfWork with all required repositories"""
    uow = MagicMock()
    uow.__aenter__ = AsyncMock(return_value=uow)
    uow.__aexit__ = AsyncMock(return_value=False)  # Must return False to not suppress exceptions
    uow.commit = AsyncMock()
    uow.rollback = AsyncMock()

    uow.users = MagicMock()
    uow.users.get_by_email = AsyncMock(return_value=None)
    uow.users.get_by_id = AsyncMock(return_value=None)
    uow.users.set_password = AsyncMock(side_effect=_set_password)

    uow.password_reset_tokens = MagicMock()
    uow.password_reset_tokens.create = AsyncMock(side_effect=_passthrough)
    uow.password_reset_tokens.get_active_by_code = AsyncMock(return_value=[])
    uow.password_reset_tokens.invalidate_for_user = AsyncMock(return_value=0)
    uow.password_reset_tokens.increment_attempts = AsyncMock(return_value=1)
    uow.password_reset_tokens.consume = AsyncMock(return_value=True)

    uow.audit_events = MagicMock()
    uow.audit_events.create = AsyncMock(side_effect=_passthrough)

    return uow


@pytest.fixture
def codec():
    """Argon2id codec with minimal cost so tests stay fast"""
    return TokenCodec(memory_cost=8, time_cost=1, parallelism=1)


@pytest.fixture
def reset_config():
    return PasswordResetConfig()


@pytest.fixture
def rate_limiter(reset_config):
    return RateLimiter(MemoryRateLimitStore(), reset_config)


@pytest.fixture
def audited(mock_uow):
    """Returns the audit events of one type passed to the mocked audit repository"""

    def _events(event_type):
        return [
            call.args[0]
            for call in mock_uow.audit_events.create.call_args_list
            if call.args[0].event == event_type.value
        ]

    return _events


@pytest.fixture
def unreachable_rate_limiter(reset_config):
    """Limiter whose store fails the way an unreachable Redis does"""
    store = MagicMock()
    store.check = AsyncMock(side_effect=RateLimitStoreError("connection refused"))
    store.reset = AsyncMock(side_effect=RateLimitStoreError("connection refused"))
    return RateLimiter(store, reset_config)
