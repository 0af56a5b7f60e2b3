from datetime import datetime
from typing import List, Optional
from uuid import UUID

from sqlmodel import select, update
from sqlmodel.ext.asyncio.session import AsyncSession

from src.app.repositories.password_reset_token_repository import IPasswordResetTokenRepository
from src.domain.entities import PasswordResetToken


class PasswordResetTokenRepository(IPasswordResetTokenRepository):
    """PasswordResetToken repository implementation using SQLModel"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, token: PasswordResetToken) -> PasswordResetToken:
        """Create a new password reset token"""
        self.session.add(token)
        await self.session.flush()
        await self.session.refresh(token)
        return token

    async def get_by_id(self, token_id: UUID) -> Optional[PasswordResetToken]:
        """Get password reset token by ID"""
        stmt = select(PasswordResetToken).where(PasswordResetToken.id == token_id)
        result = await self.session.exec(stmt)
        return result.one_or_none()

    async def get_active_by_code(
        self, code: str, now: datetime
    ) -> List[PasswordResetToken]:
        """
        Get every unconsumed, unexpired token carrying this code.

        Codes are short, so several users may hold the same one at once;
        all candidates are returned and the caller verifies the token.
        Rows are refreshed so attempt counters bumped earlier in the
        session are seen.
        """
        stmt = (
            select(PasswordResetToken)
            .where(
                PasswordResetToken.code == code,
                PasswordResetToken.consumed_at.is_(None),
                PasswordResetToken.expires_at > now,
            )
            .order_by(PasswordResetToken.created_at.desc())
            .execution_options(populate_existing=True)
        )
        result = await self.session.exec(stmt)
        return list(result.all())

    async def invalidate_for_user(self, user_id: UUID, now: datetime) -> int:
        """Mark all unconsumed tokens of a user as consumed"""
        stmt = (
            update(PasswordResetToken)
            .where(
                PasswordResetToken.user_id == user_id,
                PasswordResetToken.consumed_at.is_(None),
            )
            .values(consumed_at=now)
        )
        result = await self.session.execute(stmt)
        await self.session.flush()
        return result.rowcount

    async def increment_attempts(self, token_id: UUID) -> int:
        """Atomically add one failed attempt"""
        stmt = (
            update(PasswordResetToken)
            .where(PasswordResetToken.id == token_id)
            .values(attempts=PasswordResetToken.attempts + 1)
        )
        result = await self.session.execute(stmt)
        await self.session.flush()
        return result.rowcount

    async def consume(self, token_id: UUID, now: datetime) -> bool:
        """Set consumed_at only if the token is still unconsumed"""
        stmt = (
            update(PasswordResetToken)
            .where(
                PasswordResetToken.id == token_id,
                PasswordResetToken.consumed_at.is_(None),
            )
            .values(consumed_at=now)
        )
        result = await self.session.execute(stmt)
        await self.session.flush()
        return result.rowcount > 0
