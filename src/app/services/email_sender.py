from abc import ABC, abstractmethod
from typing import Optional

from pydantic import BaseModel


class PasswordResetEmail(BaseModel):
    """Out-of-band delivery of a freshly issued code and token"""

    to: str
    code: str
    token: str
    reset_url: str
    expires_in_minutes: int
    first_name: Optional[str] = None

    def subject(self) -> str:
        return "Reset your password"

    def text(self) -> str:
        display_name = self.first_name or "User"
        return (
            f"Hi {display_name},\n\n"
            "We received a request to reset your password.\n\n"
            f"Your verification code: {self.code}\n"
            f"This code expires in {self.expires_in_minutes} minutes.\n\n"
            "You can also reset your password by visiting this link:\n"
            f"{self.reset_url}\n\n"
            "If you didn't request this password reset, you can safely ignore this email. "
            "Your password won't be changed."
        )


class IEmailSender(ABC):
    """Email delivery interface - application layer"""

    @abstractmethod
    async def send_password_reset(self, email: PasswordResetEmail) -> bool:
        """Deliver a password reset email, returns False if delivery failed"""
        pass
