import logging

from src.app.services.email_sender import IEmailSender, PasswordResetEmail

logger = logging.getLogger(__name__)


class LoggingEmailSender(IEmailSender):
    """Development sender: writes the message to the log instead of sending it"""

    def __init__(self, from_address: str):
        self.from_address = from_address

    async def send_password_reset(self, email: PasswordResetEmail) -> bool:
        logger.info(
            "Email from %s to %s\nSubject: %s\n\n%s",
            self.from_address,
            email.to,
            email.subject(),
            email.text(),
        )
        return True
