"""
Password Reset Use Case DTOs (Data Transfer Objects)

All Command and Response classes for the password reset flow.
Provides type safety and clear contracts between layers.
"""

from typing import Optional
from pydantic import BaseModel


# ============================================================================
# Command DTOs
# ============================================================================


class RequestPasswordResetCommand(BaseModel):
    """Intent to start a password reset for an email address"""

    email: str
    ip: str = "unknown"
    user_agent: str = "unknown"
    request_id: Optional[str] = None


class VerifyResetCodeCommand(BaseModel):
    """Intent to check a (code, token) pair without using it"""

    code: str
    token: str
    ip: str = "unknown"
    user_agent: str = "unknown"
    request_id: Optional[str] = None


class CompletePasswordResetCommand(BaseModel):
    """Intent to set a new password with a (code, token) pair"""

    code: str
    token: str
    new_password: str
    ip: str = "unknown"
    user_agent: str = "unknown"
    request_id: Optional[str] = None


# ============================================================================
# Response DTOs
# ============================================================================


class RequestPasswordResetResponse(BaseModel):
    """Response for request password reset use case"""

    status: str
    message: str


class VerifyResetCodeResponse(BaseModel):
    """Response for verify reset code use case"""

    status: str
    message: str


class CompletePasswordResetResponse(BaseModel):
    """Response for complete password reset use case"""

    status: str
    message: str
    access_token: Optional[str] = None
