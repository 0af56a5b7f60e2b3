from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from src.domain.entities import PasswordResetToken


class IPasswordResetTokenRepository(ABC):
    """PasswordResetToken repository interface - application layer"""

    @abstractmethod
    async def create(self, token: PasswordResetToken) -> PasswordResetToken:
        """Create a new password reset token"""
        pass

    @abstractmethod
    async def get_by_id(self, token_id: UUID) -> Optional[PasswordResetToken]:
        """Get password reset token by ID"""
        pass

    @abstractmethod
    async def get_active_by_code(
        self, code: str, now: datetime
    ) -> List[PasswordResetToken]:
        """Get every unconsumed, unexpired token carrying this code"""
        pass

    @abstractmethod
    async def invalidate_for_user(self, user_id: UUID, now: datetime) -> int:
        """Mark all unconsumed tokens of a user as consumed, returns count"""
        pass

    @abstractmethod
    async def increment_attempts(self, token_id: UUID) -> int:
        """Atomically add one failed attempt, returns rows affected"""
        pass

    @abstractmethod
    async def consume(self, token_id: UUID, now: datetime) -> bool:
        """Set consumed_at if still unconsumed, returns whether it was"""
        pass
