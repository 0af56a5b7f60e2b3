"""
Get Audit Events Use Case

Retrieves password reset audit events for operators with pagination.
"""

from typing import List, Optional

from pydantic import BaseModel

from src.app.services.unit_of_work import UnitOfWork
from src.domain.entities import AuditEventType
from src.libs.result import Error, Result, Return


class AuditEventItem(BaseModel):
    """Single audit event as shown to operators"""

    event: str
    user_id: Optional[str]
    email: Optional[str]
    ip: Optional[str]
    user_agent: Optional[str]
    request_id: Optional[str]
    timestamp: str
    metadata: dict


class AuditEventsPage(BaseModel):
    events: List[AuditEventItem]
    next_cursor: Optional[str]


class GetAuditEventsUseCase:
    """
    Use case for listing audit events.

    Business Rules:
    - Caller is an operator (authorization handled at the API layer)
    - Results ordered by newest first
    - Supports cursor-based pagination and filtering by event type
    - Metadata is returned in full, including internal failure reasons
    """

    def __init__(self, uow: UnitOfWork):
        self.uow = uow

    async def execute(
        self,
        limit: int = 50,
        cursor: Optional[str] = None,
        event: Optional[str] = None,
    ) -> Result[AuditEventsPage]:
        if event is not None and event not in {e.value for e in AuditEventType}:
            return Return.err(Error("INVALID_EVENT_TYPE", f"Unknown audit event type: {event}"))

        async with self.uow:
            try:
                events, next_cursor = await self.uow.audit_events.list_paginated(
                    limit=limit, cursor=cursor, event=event
                )
            except ValueError:
                return Return.err(Error("INVALID_CURSOR", "Pagination cursor is not valid"))

            items = [
                AuditEventItem(
                    event=e.event,
                    user_id=str(e.user_id) if e.user_id else None,
                    email=e.email,
                    ip=e.ip,
                    user_agent=e.user_agent,
                    request_id=e.request_id,
                    timestamp=e.created_at.isoformat() + "Z",
                    metadata=e.event_metadata or {},
                )
                for e in events
            ]

            return Return.ok(AuditEventsPage(events=items, next_cursor=next_cursor))
