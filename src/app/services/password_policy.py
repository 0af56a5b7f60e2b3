import re
from typing import List

from pydantic import BaseModel

MIN_PASSWORD_LENGTH = 12


class PasswordValidation(BaseModel):
    valid: bool
    errors: List[str]


def validate_password(password: str) -> PasswordValidation:
    """Check a new password against the complexity policy, collecting every failure."""
    errors: List[str] = []

    if len(password) < MIN_PASSWORD_LENGTH:
        errors.append(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")
    if not re.search(r"[A-Z]", password):
        errors.append("Password must contain at least one uppercase letter")
    if not re.search(r"[a-z]", password):
        errors.append("Password must contain at least one lowercase letter")
    if not re.search(r"\d", password):
        errors.append("Password must contain at least one number")
    if not re.search(r"[^A-Za-z0-9]", password):
        errors.append("Password must contain at least one symbol")

    return PasswordValidation(valid=not errors, errors=errors)
