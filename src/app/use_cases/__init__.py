"""
Use Cases

Organized into domain folders:
- auth/: Password reset flow
- audit/: Audit logs

Import from subdirectories for better organization.
"""

from .auth import (
    RequestPasswordResetUseCase,
    VerifyResetCodeUseCase,
    CompletePasswordResetUseCase,
)
from .audit import (
    GetAuditEventsUseCase,
)

__all__ = [
    # Auth
    "RequestPasswordResetUseCase",
    "VerifyResetCodeUseCase",
    "CompletePasswordResetUseCase",
    # Audit
    "GetAuditEventsUseCase",
]
