import base64
import binascii
from datetime import datetime
from typing import List, Optional, Tuple
from uuid import UUID

from sqlalchemy import and_, or_
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from src.app.repositories.audit_event_repository import IAuditEventRepository
from src.domain.entities import AuditEvent


def encode_cursor(audit_event: AuditEvent) -> str:
    raw = f"{audit_event.created_at.isoformat()}|{audit_event.id}"
    return base64.urlsafe_b64encode(raw.encode()).decode()


def decode_cursor(cursor: str) -> Tuple[datetime, UUID]:
    try:
        raw = base64.urlsafe_b64decode(cursor.encode()).decode()
        timestamp, event_id = raw.split("|", 1)
        return datetime.fromisoformat(timestamp), UUID(event_id)
    except (binascii.Error, UnicodeDecodeError, ValueError) as e:
        raise ValueError(f"Malformed audit cursor: {cursor!r}") from e


class AuditEventRepository(IAuditEventRepository):
    """
    AuditEvent repository over SQLModel.

    Pages are keyset-paginated on (created_at, id) so events sharing a
    timestamp are neither skipped nor repeated across pages.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, audit_event: AuditEvent) -> AuditEvent:
        self.session.add(audit_event)
        await self.session.flush()
        return audit_event

    async def list_paginated(
        self,
        limit: int = 50,
        cursor: Optional[str] = None,
        event: Optional[str] = None,
    ) -> Tuple[List[AuditEvent], Optional[str]]:
        stmt = select(AuditEvent)
        if event:
            stmt = stmt.where(AuditEvent.event == event)

        if cursor:
            created_at, event_id = decode_cursor(cursor)
            stmt = stmt.where(
                or_(
                    AuditEvent.created_at < created_at,
                    and_(AuditEvent.created_at == created_at, AuditEvent.id < event_id),
                )
            )

        # One extra row tells whether another page exists
        stmt = stmt.order_by(AuditEvent.created_at.desc(), AuditEvent.id.desc()).limit(limit + 1)

        result = await self.session.exec(stmt)
        events = list(result.all())

        if len(events) <= limit:
            return events, None

        events = events[:limit]
        return events, encode_cursor(events[-1])
