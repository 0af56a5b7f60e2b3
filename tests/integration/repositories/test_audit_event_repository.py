from datetime import datetime

import pytest
from sqlmodel.ext.asyncio.session import AsyncSession

from src.adapter.repositories.audit_event_repository import AuditEventRepository
from src.domain.entities import AuditEvent

SAME_INSTANT = datetime(2025, 1, 1, 12, 0, 0)


@pytest.mark.asyncio
async def test_events_sharing_a_timestamp_span_pages_without_loss(db_session: AsyncSession):
    repo = AuditEventRepository(db_session)
    for i in range(5):
        await repo.create(
            AuditEvent(event="PasswordResetFailed", email=f"u{i}@example.com", created_at=SAME_INSTANT)
        )
    await db_session.commit()

    seen = []
    cursor = None
    while True:
        events, cursor = await repo.list_paginated(limit=2, cursor=cursor)
        seen.extend(e.email for e in events)
        if cursor is None:
            break

    assert sorted(seen) == [f"u{i}@example.com" for i in range(5)]


@pytest.mark.asyncio
async def test_filter_by_event(db_session: AsyncSession):
    repo = AuditEventRepository(db_session)
    await repo.create(AuditEvent(event="PasswordResetFailed"))
    await repo.create(AuditEvent(event="PasswordResetLocked"))
    await db_session.commit()

    events, cursor = await repo.list_paginated(event="PasswordResetLocked")

    assert [e.event for e in events] == ["PasswordResetLocked"]
    assert cursor is None


@pytest.mark.asyncio
async def test_malformed_cursor_raises(db_session: AsyncSession):
    with pytest.raises(ValueError):
        await AuditEventRepository(db_session).list_paginated(cursor="%%%")
