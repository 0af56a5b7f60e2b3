from typing import Dict, Optional

from fastapi import status

from src.libs.result import Error


class ClientError(Exception):
    """Expected failure caused by the caller, rendered as {"error": {...}}"""

    def __init__(
        self,
        base_error: Error,
        status_code: int = status.HTTP_400_BAD_REQUEST,
        headers: Optional[Dict[str, str]] = None,
    ):
        self.base_error = base_error
        self.status_code = status_code
        self.headers = headers
        super().__init__(base_error.message)


class ServerError(Exception):
    """Unexpected failure; the message is never shown to the caller"""

    def __init__(self, base_error: Error):
        self.base_error = base_error
        super().__init__(base_error.message)
