from datetime import datetime, timedelta
from uuid import uuid4

from src.domain.entities import PasswordResetToken, ResetTokenState

NOW = datetime(2025, 1, 1, 12, 0, 0)


def make_token(**overrides):
    fields = dict(
        user_id=uuid4(),
        hashed_token="$argon2id$...",
        code="123456",
        expires_at=NOW + timedelta(minutes=10),
        created_at=NOW,
    )
    fields.update(overrides)
    return PasswordResetToken(**fields)


def test_new_token_is_active():
    token = make_token()

    assert token.attempts == 0
    assert token.is_active(NOW)
    assert token.state(NOW) == ResetTokenState.active


def test_token_expires_at_expiry_instant():
    token = make_token()
    expiry = NOW + timedelta(minutes=10)

    assert token.is_active(expiry - timedelta(seconds=1))
    assert not token.is_active(expiry)
    assert token.state(expiry) == ResetTokenState.expired


def test_consumed_wins_over_everything():
    token = make_token(consumed_at=NOW)

    assert not token.is_active(NOW)
    assert token.state(NOW + timedelta(hours=1), locked=True) == ResetTokenState.consumed


def test_locked_is_substate_of_active():
    token = make_token(attempts=5)

    assert token.state(NOW, locked=True) == ResetTokenState.locked
    assert token.state(NOW + timedelta(minutes=11), locked=True) == ResetTokenState.expired
