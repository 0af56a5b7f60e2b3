"""
Operator authentication for the audit endpoints.

Operators present a shared key in the X-Admin-API-Key header; end-user
credentials are never accepted here.
"""

import hmac
from typing import Optional

from fastapi import Header, status

from config import ApplicationConfig
from src.api.error import ClientError
from src.libs.result import Error


def _unauthorized(code: str, message: str) -> ClientError:
    return ClientError(Error(code, message), status_code=status.HTTP_401_UNAUTHORIZED)


async def verify_admin_api_key(
    x_admin_api_key: Optional[str] = Header(None, alias="X-Admin-API-Key"),
) -> bool:
    if not x_admin_api_key:
        raise _unauthorized("UNAUTHORIZED", "Admin API key required")

    # Constant-time comparison
    if not hmac.compare_digest(x_admin_api_key.encode(), ApplicationConfig.ADMIN_API_KEY.encode()):
        raise _unauthorized("INVALID_API_KEY", "Invalid admin API key")

    return True
