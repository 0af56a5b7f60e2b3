"""
Complete Password Reset Use Case

Sets a new password with a verified (code, token) pair and uses the token up.
"""

import logging

import bcrypt
from argon2.exceptions import HashingError
from sqlalchemy.exc import SQLAlchemyError

from config import PasswordResetConfig
from src.api.utils.jwt import generate_access_token
from src.app.services.audit_logger import AuditLogger
from src.app.services.password_policy import validate_password
from src.app.services.password_reset_manager import (
    INVALID_TOKEN_OR_CODE,
    PasswordResetManager,
    RequestContext,
)
from src.app.services.rate_limiter import RateLimiter, RateLimitStoreError
from src.app.services.token_codec import TokenCodec
from src.app.services.unit_of_work import UnitOfWork
from src.domain.base import utcnow
from src.domain.entities import AuditEventType
from src.libs.result import Error, Result, Return
from .dtos import CompletePasswordResetCommand, CompletePasswordResetResponse
from .verify_reset_code_use_case import is_well_formed_code

logger = logging.getLogger(__name__)


class CompletePasswordResetUseCase:
    """
    Use case for completing a password reset.

    Business Rules:
    - Rate limited per client IP (verification policy)
    - New password must satisfy the complexity policy
    - Token is validated exactly like the verify step, then consumed
    - Password is hashed with bcrypt (cost factor 12)
    - Every other unconsumed token of the user is invalidated
    - With auto sign-in enabled the response carries an access token
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

    async def execute(
        self, command: CompletePasswordResetCommand
    ) -> Result[CompletePasswordResetResponse]:
        """
        Execute complete password reset use case.

        Errors:
            - RATE_LIMITED: too many verification attempts from this IP
            - INVALID_PASSWORD: new password fails the policy (details.errors lists why)
            - INVALID_TOKEN_OR_CODE: no usable token for this pair
            - LOCKED: token locked after too many failed attempts
            - INTERNAL: storage, rate-limit store or hashing failure
        """
        context = RequestContext(
            ip=command.ip, user_agent=command.user_agent, request_id=command.request_id
        )
        invalid = Error(INVALID_TOKEN_OR_CODE, "Invalid or expired reset code or token")

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

                policy = validate_password(command.new_password)
                if not policy.valid:
                    return Return.err(
                        Error(
                            "INVALID_PASSWORD",
                            "Password does not meet requirements",
                            details={"errors": policy.errors},
                        )
                    )

                if not is_well_formed_code(command.code, self.config.code_length):
                    return Return.err(invalid)

                manager = PasswordResetManager(self.uow, self.codec, self.config, audit)
                validated = await manager.validate(command.code, command.token, context)
                if validated.is_err():
                    await self.uow.commit()
                    return Return.err(validated.error)

                reset_token = validated.value
                user = await self.uow.users.get_by_id(reset_token.user_id)
                if user is None:
                    logger.error(f"Reset token {reset_token.id} points at a missing user")
                    return Return.err(invalid)

                if not await manager.consume(reset_token.id, user_id=user.id, context=context):
                    return Return.err(invalid)

                password_hash = bcrypt.hashpw(command.new_password.encode(), bcrypt.gensalt(12))
                await self.uow.users.set_password(user, password_hash.decode(), utcnow())

                await manager.invalidate_all(user.id)

                await self.uow.commit()
        except (SQLAlchemyError, RateLimitStoreError, HashingError):
            logger.exception("Password reset completion failed")
            return Return.err(Error("INTERNAL", "Could not complete password reset"))

        access_token = None
        if self.config.autosignin:
            access_token = generate_access_token(user.id, user.email)

        return Return.ok(
            CompletePasswordResetResponse(
                status="success",
                message="Password has been reset successfully",
                access_token=access_token,
            )
        )
