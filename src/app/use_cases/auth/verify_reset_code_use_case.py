"""
Verify Reset Code Use Case

Checks a (code, token) pair so the client can show the new-password form
before anything is changed.
"""

import logging

from argon2.exceptions import HashingError
from sqlalchemy.exc import SQLAlchemyError

from config import PasswordResetConfig
from src.app.services.audit_logger import AuditLogger
from src.app.services.password_reset_manager import (
    INVALID_TOKEN_OR_CODE,
    PasswordResetManager,
    RequestContext,
)
from src.app.services.rate_limiter import RateLimiter, RateLimitStoreError
from src.app.services.token_codec import TokenCodec
from src.app.services.unit_of_work import UnitOfWork
from src.domain.entities import AuditEventType
from src.libs.result import Error, Result, Return
from .dtos import VerifyResetCodeCommand, VerifyResetCodeResponse

logger = logging.getLogger(__name__)


def is_well_formed_code(code: str, length: int) -> bool:
    return len(code) == length and code.isascii() and code.isdigit()


class VerifyResetCodeUseCase:
    """
    Use case for verifying a password reset code and token.

    Business Rules:
    - Rate limited per client IP (verification policy)
    - Never consumes the token
    - Failed attempts are persisted even though the call fails
    - Errors: RATE_LIMITED, INVALID_TOKEN_OR_CODE, LOCKED, INTERNAL
    """

    def __init__(
        self,
        uow: UnitOfWork,
        rate_limiter: RateLimiter,
        codec: TokenCodec,
        config: PasswordResetConfig,
        audit_enabled: bool = True,
    ):
        self.uow = uow
        self.rate_limiter = rate_limiter
        self.codec = codec
        self.config = config
        self.audit_enabled = audit_enabled

    async def execute(self, command: VerifyResetCodeCommand) -> Result[VerifyResetCodeResponse]:
        context = RequestContext(
            ip=command.ip, user_agent=command.user_agent, request_id=command.request_id
        )

        try:
            async with self.uow:
                audit = AuditLogger(self.uow.audit_events, enabled=self.audit_enabled)

                limit = await self.rate_limiter.by_verification(command.ip)
                if not limit.allowed:
                    await audit.log(
                        AuditEventType.password_reset_rate_limited,
                        ip=command.ip,
                        user_agent=command.user_agent,
                        request_id=command.request_id,
                        metadata={"limit": "verification", "reset_time": limit.reset_time},
                    )
                    await self.uow.commit()
                    return Return.err(
                        Error(
                            "RATE_LIMITED",
                            "Too many requests",
                            details={"reset_time": limit.reset_time},
                        )
                    )

                if not is_well_formed_code(command.code, self.config.code_length):
                    return Return.err(
                        Error(INVALID_TOKEN_OR_CODE, "Invalid or expired reset code or token")
                    )

                manager = PasswordResetManager(self.uow, self.codec, self.config, audit)
                validated = await manager.validate(command.code, command.token, context)
                if validated.is_err():
                    # Persist attempt counters and audit events
                    await self.uow.commit()
                    return Return.err(validated.error)

                reset_token = validated.value
                await audit.log(
                    AuditEventType.password_reset_verified,
                    user_id=reset_token.user_id,
                    ip=command.ip,
                    user_agent=command.user_agent,
                    request_id=command.request_id,
                    metadata={"token_id": str(reset_token.id)},
                )
                await self.uow.commit()
        except (SQLAlchemyError, RateLimitStoreError, HashingError):
            logger.exception("Password reset verification failed")
            return Return.err(Error("INTERNAL", "Could not verify reset code"))

        return Return.ok(
            VerifyResetCodeResponse(status="verified", message="Reset code is valid")
        )
