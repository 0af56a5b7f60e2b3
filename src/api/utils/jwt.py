"""
Access tokens issued by auto sign-in after a successful password reset.

HS256 with ApplicationConfig.JWT_SECRET. The amr claim records that the
session was established by a password reset rather than a login.
"""

from datetime import UTC, datetime, timedelta
from typing import Optional
from uuid import UUID, uuid4

from jose import JWTError, jwt

from config import ApplicationConfig

ALGORITHM = "HS256"
ACCESS_TOKEN_TTL = timedelta(minutes=15)


def generate_access_token(user_id: UUID, email: str, ttl: timedelta = ACCESS_TOKEN_TTL) -> str:
    issued_at = datetime.now(UTC)
    claims = {
        "sub": str(user_id),
        "email": email,
        "amr": ["password_reset"],
        "jti": uuid4().hex,
        "iat": issued_at,
        "exp": issued_at + ttl,
    }
    return jwt.encode(claims, ApplicationConfig.JWT_SECRET, algorithm=ALGORITHM)


def verify_jwt(token: str) -> Optional[dict]:
    """Decoded claims, or None when the signature or expiry check fails"""
    try:
        return jwt.decode(token, ApplicationConfig.JWT_SECRET, algorithms=[ALGORITHM])
    except JWTError:
        return None
