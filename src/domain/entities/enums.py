"""
Password Reset Service Domain Enums

All enumeration types used across domain entities.
"""

from enum import Enum


class AuditEventType(str, Enum):
    """Security events recorded for the password reset flow"""

    password_reset_requested = "PasswordResetRequested"
    password_reset_verified = "PasswordResetVerified"
    password_reset_succeeded = "PasswordResetSucceeded"
    password_reset_failed = "PasswordResetFailed"
    password_reset_rate_limited = "PasswordResetRateLimited"
    password_reset_locked = "PasswordResetLocked"


class ResetTokenState(str, Enum):
    """Observable state of a reset token at a point in time"""

    active = "active"
    locked = "locked"
    consumed = "consumed"
    expired = "expired"
