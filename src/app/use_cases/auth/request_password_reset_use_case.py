"""
Request Password Reset Use Case

Handles generating and sending password reset codes and tokens.
"""

import logging

from argon2.exceptions import HashingError
from sqlalchemy.exc import SQLAlchemyError

from config import PasswordResetConfig
from src.app.services.audit_logger import AuditLogger
from src.app.services.email_sender import IEmailSender, PasswordResetEmail
from src.app.services.password_reset_manager import PasswordResetManager, RequestContext
from src.app.services.rate_limiter import RateLimiter, RateLimitStoreError
from src.app.services.token_codec import TokenCodec
from src.app.services.unit_of_work import UnitOfWork
from src.domain.entities import AuditEventType
from src.libs.result import Error, Result, Return
from .dtos import RequestPasswordResetCommand, RequestPasswordResetResponse

logger = logging.getLogger(__name__)

RESET_REQUESTED_MESSAGE = "If the email exists, a password reset code has been sent"


class RequestPasswordResetUseCase:
    """
    Use case for requesting password reset.

    Business Rules:
    - Rate limited per client IP and per email (checked before any lookup)
    - No email enumeration (same response for valid/invalid emails); the
      unknown-account path still pays for one token hash
    - Prior unconsumed tokens of the user are superseded in the same transaction
    - Code and raw token are emailed after commit; the raw token is never stored
    - Audit event for every outcome
    """

    def __init__(
        self,
        uow: UnitOfWork,
        rate_limiter: RateLimiter,
        codec: TokenCodec,
        config: PasswordResetConfig,
        email_sender: IEmailSender,
        reset_url: str,
        audit_enabled: bool = True,
    ):
        self.uow = uow
        self.rate_limiter = rate_limiter
        self.codec = codec
        self.config = config
        self.email_sender = email_sender
        self.reset_url = reset_url
        self.audit_enabled = audit_enabled

    async def execute(
        self, command: RequestPasswordResetCommand
    ) -> Result[RequestPasswordResetResponse]:
        """
        Execute request password reset use case.

        Returns:
            Result with reset status, or Error

        Errors:
            - RATE_LIMITED: too many requests for this IP or email
            - INTERNAL: storage, rate-limit store or hashing failure
        """
        context = RequestContext(
            ip=command.ip, user_agent=command.user_agent, request_id=command.request_id
        )

        try:
            async with self.uow:
                audit = AuditLogger(self.uow.audit_events, enabled=self.audit_enabled)

                ip_limit = await self.rate_limiter.by_ip(command.ip)
                email_limit = await self.rate_limiter.by_email(command.email)
                blocked = [limit for limit in (ip_limit, email_limit) if not limit.allowed]
                if blocked:
                    reset_time = max(limit.reset_time for limit in blocked)
                    await audit.log(
                        AuditEventType.password_reset_rate_limited,
                        email=command.email,
                        ip=command.ip,
                        user_agent=command.user_agent,
                        request_id=command.request_id,
                        metadata={
                            "limit": "ip" if not ip_limit.allowed else "email",
                            "reset_time": reset_time,
                        },
                    )
                    await self.uow.commit()
                    return Return.err(
                        Error("RATE_LIMITED", "Too many requests", details={"reset_time": reset_time})
                    )

                user = await self.uow.users.get_by_email(command.email)

                if user is None:
                    # Keep the response time close to the known-account path
                    self.codec.hash(self.codec.generate_token())
                    await audit.log(
                        AuditEventType.password_reset_requested,
                        email=command.email,
                        ip=command.ip,
                        user_agent=command.user_agent,
                        request_id=command.request_id,
                        metadata={"account_found": False},
                    )
                    await self.uow.commit()
                    return Return.ok(
                        RequestPasswordResetResponse(status="sent", message=RESET_REQUESTED_MESSAGE)
                    )

                manager = PasswordResetManager(self.uow, self.codec, self.config, audit)
                issued = await manager.request_reset(user, context)
                if issued.is_err():
                    return Return.err(issued.error)

                await self.uow.commit()
        except (SQLAlchemyError, RateLimitStoreError, HashingError):
            logger.exception("Password reset request failed")
            return Return.err(Error("INTERNAL", "Could not process password reset request"))

        email = PasswordResetEmail(
            to=user.email,
            code=issued.value.code,
            token=issued.value.token,
            reset_url=f"{self.reset_url}?token={issued.value.token}",
            expires_in_minutes=self.config.token_ttl_minutes,
            first_name=user.name,
        )
        if not await self.email_sender.send_password_reset(email):
            # The token stays valid; the user can simply ask again
            logger.error(f"Password reset email delivery failed for user {user.id}")

        return Return.ok(
            RequestPasswordResetResponse(status="sent", message=RESET_REQUESTED_MESSAGE)
        )
