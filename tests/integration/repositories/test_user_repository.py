from datetime import datetime

import pytest
from sqlmodel.ext.asyncio.session import AsyncSession

from src.adapter.repositories.user_repository import UserRepository


@pytest.mark.asyncio
async def test_get_by_email_ignores_case_and_whitespace(db_session: AsyncSession, user):
    repo = UserRepository(db_session)

    found = await repo.get_by_email("  User@Example.COM ")

    assert found is not None
    assert found.id == user.id


@pytest.mark.asyncio
async def test_get_by_email_unknown(db_session: AsyncSession, user):
    assert await UserRepository(db_session).get_by_email("ghost@example.com") is None


@pytest.mark.asyncio
async def test_set_password_stamps_change_time(db_session: AsyncSession, user):
    repo = UserRepository(db_session)
    changed_at = datetime(2025, 1, 1, 12, 0, 0)

    await repo.set_password(user, "$2b$12$" + "x" * 53, changed_at)
    await db_session.commit()
    db_session.expire_all()

    reloaded = await repo.get_by_id(user.id)
    assert reloaded.password_hash.startswith("$2b$12$")
    assert reloaded.password_changed_at == changed_at
