"""
Password Reset Manager

State machine of a reset token: NONE -> ACTIVE -> CONSUMED | EXPIRED,
with LOCKED as a transient sub-state of ACTIVE once too many verifications
have failed.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Optional
from uuid import UUID

from config import PasswordResetConfig
from src.app.services.audit_logger import AuditLogger
from src.app.services.token_codec import TokenCodec
from src.app.services.unit_of_work import UnitOfWork
from src.domain.base import utcnow
from src.domain.entities import AuditEventType, PasswordResetToken, User
from src.libs.result import Error, Result, Return

logger = logging.getLogger(__name__)

INVALID_TOKEN_OR_CODE = "INVALID_TOKEN_OR_CODE"
LOCKED = "LOCKED"


@dataclass(frozen=True)
class IssuedResetToken:
    """Raw secrets for out-of-band delivery; only the hash is persisted"""

    token: str
    code: str
    reset_token: PasswordResetToken


@dataclass(frozen=True)
class RequestContext:
    """Who is asking, carried into every audit event"""

    ip: Optional[str] = None
    user_agent: Optional[str] = None
    request_id: Optional[str] = None


class PasswordResetManager:
    """
    Lifecycle of password reset tokens.

    Business Rules:
    - A new request supersedes (consumes) every unconsumed token of the user
    - Validation narrows by code, authenticates by token hash
    - Wrong token for a live code counts as a failed attempt on that row
    - attempts >= max_attempts locks the token; the lock window grows with
      every attempt past the threshold and is measured from created_at
    - Validation never consumes; consume() is a separate, irreversible step
    - Does not commit: the caller owns the unit of work transaction
    """

    def __init__(
        self,
        uow: UnitOfWork,
        codec: TokenCodec,
        config: PasswordResetConfig,
        audit: AuditLogger,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.uow = uow
        self.codec = codec
        self.config = config
        self.audit = audit
        self.clock = clock

    async def request_reset(
        self, user: User, context: Optional[RequestContext] = None
    ) -> Result[IssuedResetToken]:
        context = context or RequestContext()
        now = self.clock()

        superseded = await self.uow.password_reset_tokens.invalidate_for_user(user.id, now)

        token = self.codec.generate_token()
        code = self.codec.generate_code(self.config.code_length)

        reset_token = PasswordResetToken(
            user_id=user.id,
            hashed_token=self.codec.hash(token),
            code=code,
            attempts=0,
            ip=context.ip,
            user_agent=context.user_agent,
            expires_at=now + timedelta(minutes=self.config.token_ttl_minutes),
            created_at=now,
        )
        reset_token = await self.uow.password_reset_tokens.create(reset_token)

        await self.audit.log(
            AuditEventType.password_reset_requested,
            user_id=user.id,
            email=user.email,
            ip=context.ip,
            user_agent=context.user_agent,
            request_id=context.request_id,
            metadata={
                "token_id": str(reset_token.id),
                "superseded_tokens": superseded,
                "expires_at": reset_token.expires_at.isoformat(),
            },
        )

        return Return.ok(IssuedResetToken(token=token, code=code, reset_token=reset_token))

    async def validate(
        self, code: str, token: str, context: Optional[RequestContext] = None
    ) -> Result[PasswordResetToken]:
        """
        Find the active token matching (code, token).

        A token that matches no candidate charges one failed attempt to every
        active row sharing the code, whoever owns it. Verification carries no
        requester identity, so there is no narrower set to charge; a caller
        guessing tokens for a code can in turn push other holders of that
        code toward lockout. Lockout is temporary and the per-IP verification
        limit caps how fast a single caller can do this.

        Errors:
            - INVALID_TOKEN_OR_CODE: no active row with this code verifies the token
              (covers wrong code, wrong token, consumed and expired tokens)
            - LOCKED: the matching token has too many failed attempts
        """
        context = context or RequestContext()
        now = self.clock()

        candidates = await self.uow.password_reset_tokens.get_active_by_code(code, now)

        match = None
        for candidate in candidates:
            if self.codec.verify(candidate.hashed_token, token):
                match = candidate
                break

        if match is None:
            for candidate in candidates:
                await self.record_failed_attempt(
                    candidate.id,
                    reason="token_mismatch",
                    user_id=candidate.user_id,
                    context=context,
                )
            if not candidates:
                await self.audit.log(
                    AuditEventType.password_reset_failed,
                    ip=context.ip,
                    user_agent=context.user_agent,
                    request_id=context.request_id,
                    metadata={"reason": "no_active_token_for_code"},
                )
            return Return.err(
                Error(INVALID_TOKEN_OR_CODE, "Invalid or expired reset code or token")
            )

        if self.is_locked(match):
            await self.audit.log(
                AuditEventType.password_reset_locked,
                user_id=match.user_id,
                ip=context.ip,
                user_agent=context.user_agent,
                request_id=context.request_id,
                metadata={"token_id": str(match.id), "attempts": match.attempts},
            )
            return Return.err(Error(LOCKED, "Too many failed attempts, try again later"))

        return Return.ok(match)

    async def record_failed_attempt(
        self,
        token_id: UUID,
        reason: str,
        user_id: Optional[UUID] = None,
        context: Optional[RequestContext] = None,
    ) -> None:
        context = context or RequestContext()
        await self.uow.password_reset_tokens.increment_attempts(token_id)
        await self.audit.log(
            AuditEventType.password_reset_failed,
            user_id=user_id,
            ip=context.ip,
            user_agent=context.user_agent,
            request_id=context.request_id,
            metadata={"token_id": str(token_id), "reason": reason},
        )

    async def consume(
        self,
        token_id: UUID,
        user_id: Optional[UUID] = None,
        context: Optional[RequestContext] = None,
    ) -> bool:
        """Mark the token used; False if it was already consumed."""
        context = context or RequestContext()
        consumed = await self.uow.password_reset_tokens.consume(token_id, self.clock())
        if not consumed:
            logger.warning(f"Reset token {token_id} was already consumed")
            return False

        await self.audit.log(
            AuditEventType.password_reset_succeeded,
            user_id=user_id,
            ip=context.ip,
            user_agent=context.user_agent,
            request_id=context.request_id,
            metadata={"token_id": str(token_id)},
        )
        return True

    async def invalidate_all(self, user_id: UUID) -> int:
        return await self.uow.password_reset_tokens.invalidate_for_user(user_id, self.clock())

    def is_locked(self, reset_token: PasswordResetToken) -> bool:
        if reset_token.attempts < self.config.max_attempts:
            return False
        excess = reset_token.attempts - self.config.max_attempts + 1
        lockout_until = reset_token.created_at + timedelta(
            minutes=excess * self.config.lockout_minutes
        )
        return self.clock() < lockout_until
