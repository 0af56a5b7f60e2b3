"""
Audit Logger

Append-only record of password reset security events.
"""

import json
import logging
from typing import Any, Dict, Optional
from uuid import UUID

from src.app.repositories.audit_event_repository import IAuditEventRepository
from src.domain.base import utcnow
from src.domain.entities import AuditEvent, AuditEventType

audit_log = logging.getLogger("audit")


class AuditLogger:
    """
    Writes one structured AUDIT_EVENT line per event and, when a repository
    is attached, appends the event to the audit table inside the caller's
    transaction.

    Never consulted for control flow: callers ignore the returned event.
    """

    def __init__(
        self,
        repository: Optional[IAuditEventRepository] = None,
        enabled: bool = True,
    ):
        self.repository = repository
        self.enabled = enabled

    async def log(
        self,
        event: AuditEventType,
        user_id: Optional[UUID] = None,
        email: Optional[str] = None,
        ip: Optional[str] = None,
        user_agent: Optional[str] = None,
        request_id: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> AuditEvent:
        audit_event = AuditEvent(
            event=event.value,
            user_id=user_id,
            email=email,
            ip=ip,
            user_agent=user_agent,
            request_id=request_id,
            event_metadata=metadata or {},
            created_at=utcnow(),
        )

        if self.enabled:
            audit_log.info("AUDIT_EVENT %s", json.dumps(audit_event.to_log_dict(), default=str))

        if self.repository is not None:
            await self.repository.create(audit_event)

        return audit_event
