"""
Password Reset Use Cases

All password-reset business logic.
"""

from .request_password_reset_use_case import RequestPasswordResetUseCase
from .verify_reset_code_use_case import VerifyResetCodeUseCase
from .complete_password_reset_use_case import CompletePasswordResetUseCase
from .dtos import (
    RequestPasswordResetCommand,
    VerifyResetCodeCommand,
    CompletePasswordResetCommand,
    RequestPasswordResetResponse,
    VerifyResetCodeResponse,
    CompletePasswordResetResponse,
)

__all__ = [
    # Use Cases
    "RequestPasswordResetUseCase",
    "VerifyResetCodeUseCase",
    "CompletePasswordResetUseCase",
    # DTOs - Commands
    "RequestPasswordResetCommand",
    "VerifyResetCodeCommand",
    "CompletePasswordResetCommand",
    # DTOs - Responses
    "RequestPasswordResetResponse",
    "VerifyResetCodeResponse",
    "CompletePasswordResetResponse",
]
