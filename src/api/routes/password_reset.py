import math
import time

from fastapi import APIRouter, Depends, Request, status
from pydantic import BaseModel, EmailStr, Field

from config import ApplicationConfig, PasswordResetConfig
from src.api.error import ClientError, ServerError
from src.api.utils.client_info import get_client_info
from src.app.services.email_sender import IEmailSender
from src.app.services.rate_limiter import RateLimiter
from src.app.services.token_codec import TokenCodec
from src.app.services.unit_of_work import UnitOfWork
from src.app.use_cases.auth import (
    CompletePasswordResetCommand,
    CompletePasswordResetResponse,
    CompletePasswordResetUseCase,
    RequestPasswordResetCommand,
    RequestPasswordResetResponse,
    RequestPasswordResetUseCase,
    VerifyResetCodeCommand,
    VerifyResetCodeResponse,
    VerifyResetCodeUseCase,
)
from src.depends import (
    get_email_sender,
    get_password_reset_config,
    get_rate_limiter,
    get_token_codec,
    get_unit_of_work,
)
from src.libs.result import Error

router = APIRouter(prefix="/password-reset", tags=["Password Reset"])

# Wrong code, wrong token, used, expired and locked tokens all look the same
GENERIC_RESET_ERROR = Error("INVALID_TOKEN_OR_CODE", "Invalid or expired reset code or token")
RATE_LIMITED_ERROR = Error("RATE_LIMITED", "Too many requests, please try again later")


def retry_after_seconds(reset_time_ms: int) -> int:
    return max(1, math.ceil((reset_time_ms - time.time() * 1000) / 1000))


def raise_for_reset_error(error: Error):
    if error.code == "RATE_LIMITED":
        headers = None
        if "reset_time" in error.details:
            headers = {"Retry-After": str(retry_after_seconds(error.details["reset_time"]))}
        raise ClientError(
            RATE_LIMITED_ERROR,
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            headers=headers,
        )
    elif error.code in ("INVALID_TOKEN_OR_CODE", "LOCKED"):
        raise ClientError(GENERIC_RESET_ERROR, status_code=status.HTTP_400_BAD_REQUEST)
    elif error.code == "INVALID_PASSWORD":
        raise ClientError(error, status_code=status.HTTP_400_BAD_REQUEST)
    raise ServerError(error)


class RequestPasswordResetRequest(BaseModel):
    """
    Request password reset HTTP request payload

    Validates incoming password reset request.
    """

    email: EmailStr = Field(..., description="User email address")


@router.post("/request", status_code=status.HTTP_200_OK, response_model=RequestPasswordResetResponse)
async def request_password_reset(
    payload: RequestPasswordResetRequest,
    request: Request,
    uow: UnitOfWork = Depends(get_unit_of_work),
    rate_limiter: RateLimiter = Depends(get_rate_limiter),
    codec: TokenCodec = Depends(get_token_codec),
    config: PasswordResetConfig = Depends(get_password_reset_config),
    email_sender: IEmailSender = Depends(get_email_sender),
):
    """
    Request Password Reset

    Generates a reset code and token and emails them to the account holder.

    Security:
        - No email enumeration (same response for valid/invalid emails)
        - Rate limited per email and per IP

    Returns:
        - 200 OK: Always returns success (no enumeration)
        - 429 Too Many Requests: RATE_LIMITED
        - 500 Internal Server Error: Server error
    """
    client = get_client_info(request)
    command = RequestPasswordResetCommand(
        email=payload.email,
        ip=client.ip,
        user_agent=client.user_agent,
        request_id=client.request_id,
    )

    use_case = RequestPasswordResetUseCase(
        uow,
        rate_limiter,
        codec,
        config,
        email_sender,
        reset_url=f"{ApplicationConfig.APP_URL}/reset",
        audit_enabled=ApplicationConfig.ENABLE_AUDIT_LOGS,
    )
    result = await use_case.execute(command)

    if result.is_err():
        raise_for_reset_error(result.error)

    return result.value


class VerifyResetCodeRequest(BaseModel):
    """
    Verify reset code HTTP request payload

    Validates incoming code verification request.
    """

    code: str = Field(..., min_length=1, max_length=12, pattern=r"^\d+$", description="Numeric reset code")
    token: str = Field(..., min_length=1, max_length=512, description="Reset token from email")


@router.post("/verify", status_code=status.HTTP_200_OK, response_model=VerifyResetCodeResponse)
async def verify_reset_code(
    payload: VerifyResetCodeRequest,
    request: Request,
    uow: UnitOfWork = Depends(get_unit_of_work),
    rate_limiter: RateLimiter = Depends(get_rate_limiter),
    codec: TokenCodec = Depends(get_token_codec),
    config: PasswordResetConfig = Depends(get_password_reset_config),
):
    """
    Verify Reset Code

    Checks a code and token pair without using it up.

    Raises:
        - 400 Bad Request: INVALID_TOKEN_OR_CODE (any authentication failure)
        - 429 Too Many Requests: RATE_LIMITED
        - 500 Internal Server Error: Server error
    """
    client = get_client_info(request)
    command = VerifyResetCodeCommand(
        code=payload.code,
        token=payload.token,
        ip=client.ip,
        user_agent=client.user_agent,
        request_id=client.request_id,
    )

    use_case = VerifyResetCodeUseCase(
        uow, rate_limiter, codec, config, audit_enabled=ApplicationConfig.ENABLE_AUDIT_LOGS
    )
    result = await use_case.execute(command)

    if result.is_err():
        raise_for_reset_error(result.error)

    return result.value


class CompletePasswordResetRequest(BaseModel):
    """
    Complete password reset HTTP request payload

    Validates incoming password reset completion request.
    """

    code: str = Field(..., min_length=1, max_length=12, pattern=r"^\d+$", description="Numeric reset code")
    token: str = Field(..., min_length=1, max_length=512, description="Reset token from email")
    new_password: str = Field(..., min_length=1, max_length=256, description="New password")


@router.post(
    "/complete",
    status_code=status.HTTP_200_OK,
    response_model=CompletePasswordResetResponse,
    response_model_exclude_none=True,
)
async def complete_password_reset(
    payload: CompletePasswordResetRequest,
    request: Request,
    uow: UnitOfWork = Depends(get_unit_of_work),
    rate_limiter: RateLimiter = Depends(get_rate_limiter),
    codec: TokenCodec = Depends(get_token_codec),
    config: PasswordResetConfig = Depends(get_password_reset_config),
):
    """
    Complete Password Reset

    Validates the code and token, stores the new password and uses the token up.

    Raises:
        - 400 Bad Request: INVALID_TOKEN_OR_CODE or INVALID_PASSWORD
        - 429 Too Many Requests: RATE_LIMITED
        - 500 Internal Server Error: Server error
    """
    client = get_client_info(request)
    command = CompletePasswordResetCommand(
        code=payload.code,
        token=payload.token,
        new_password=payload.new_password,
        ip=client.ip,
        user_agent=client.user_agent,
        request_id=client.request_id,
    )

    use_case = CompletePasswordResetUseCase(
        uow, rate_limiter, codec, config, audit_enabled=ApplicationConfig.ENABLE_AUDIT_LOGS
    )
    result = await use_case.execute(command)

    if result.is_err():
        raise_for_reset_error(result.error)

    return result.value
