"""
AuditEvent Entity

Immutable log of password reset security events.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlmodel import JSON, Column, DateTime, Field, Index, SQLModel

from src.domain.base import utcnow


class AuditEvent(SQLModel, table=True):
    """
    AuditEvent entity - immutable log of password reset events.

    Business Rules:
    - Immutable (never updated or deleted)
    - user_id nullable: rate-limited or unknown-account events have no user
    - Metadata carries the internal failure reason that callers never see
    """

    __tablename__ = "audit_events"

    id: UUID = Field(default_factory=uuid4, primary_key=True)

    event: str = Field(max_length=64)  # AuditEventType value
    user_id: Optional[UUID] = Field(default=None, index=True)
    email: Optional[str] = Field(default=None, max_length=255)
    ip: Optional[str] = Field(default=None, max_length=64)
    user_agent: Optional[str] = Field(default=None, max_length=512)
    request_id: Optional[str] = Field(default=None, max_length=64)
    event_metadata: Optional[dict] = Field(default=None, sa_column=Column(JSON))

    # Timestamps
    created_at: datetime = Field(default_factory=utcnow, sa_column=Column(DateTime))

    __table_args__ = (
        Index("idx_audit_created_at", "created_at"),
        Index("idx_audit_event", "event"),
    )

    def to_log_dict(self) -> dict:
        return {
            "event": self.event,
            "userId": str(self.user_id) if self.user_id else None,
            "email": self.email,
            "ip": self.ip,
            "userAgent": self.user_agent,
            "requestId": self.request_id,
            "metadata": self.event_metadata or {},
            "timestamp": self.created_at.isoformat() + "Z",
        }
