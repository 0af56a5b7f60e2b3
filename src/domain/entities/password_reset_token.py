"""
PasswordResetToken Entity

Secure password reset tokens.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlalchemy import text
from sqlmodel import Column, DateTime, Field, Index, SQLModel

from src.domain.base import utcnow
from .enums import ResetTokenState


class PasswordResetToken(SQLModel, table=True):
    """
    PasswordResetToken entity - one password reset attempt of a user.

    Business Rules:
    - Raw token is never stored; hashed_token is its argon2id hash
    - code is a short numeric lookup key stored in clear text; it narrows
      the candidate rows, the token authenticates
    - At most one unconsumed token per user (partial unique index)
    - attempts counts failed verifications; lockout is derived from it
    - consumed_at is set when the token is used or superseded, never cleared
    """

    __tablename__ = "password_reset_tokens"

    id: UUID = Field(default_factory=uuid4, primary_key=True)

    user_id: UUID = Field(foreign_key="users.id")
    hashed_token: str = Field(max_length=255)
    code: str = Field(max_length=12)

    attempts: int = Field(default=0)

    # Provenance
    ip: Optional[str] = Field(default=None, max_length=64)
    user_agent: Optional[str] = Field(default=None, max_length=512)

    # Timestamps
    expires_at: datetime = Field(sa_column=Column(DateTime, nullable=False))
    consumed_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime))
    created_at: datetime = Field(default_factory=utcnow, sa_column=Column(DateTime))

    __table_args__ = (
        Index("idx_password_reset_code", "code"),
        Index("idx_password_reset_expires_at", "expires_at"),
        Index("idx_password_reset_user_id", "user_id"),
        Index(
            "uq_password_reset_live_user",
            "user_id",
            unique=True,
            sqlite_where=text("consumed_at IS NULL"),
            postgresql_where=text("consumed_at IS NULL"),
        ),
    )

    def is_active(self, now: datetime) -> bool:
        return self.consumed_at is None and self.expires_at > now

    def state(self, now: datetime, locked: bool = False) -> ResetTokenState:
        if self.consumed_at is not None:
            return ResetTokenState.consumed
        if self.expires_at <= now:
            return ResetTokenState.expired
        if locked:
            return ResetTokenState.locked
        return ResetTokenState.active
