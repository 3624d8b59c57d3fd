"""
Outgoing email requests.

Delivery is an external collaborator. The default mailer writes the message
to the log, the way a console email backend does in development.
"""

import logging
from abc import ABC, abstractmethod
from urllib.parse import urlencode

from jobboard.core.config import settings

logger = logging.getLogger("jobboard.mailer")


def verification_link(token: str) -> str:
    return f"{settings.API_URL}/api/auth/verify-email?{urlencode({'token': token})}"


def reset_link(token: str) -> str:
    return f"{settings.FRONTEND_URL}/reset-password?{urlencode({'token': token})}"


class Mailer(ABC):
    """Mailer interface; subclasses deliver ``send``."""

    @abstractmethod
    def send(self, to_email: str, subject: str, body: str) -> None:
        """Deliver one plain-text email."""

    def send_verification_email(self, to_email: str, token: str) -> None:
        self.send(
            to_email,
            "Verify your email address",
            "Welcome! Confirm your email address to activate your account:\n\n"
            f"{verification_link(token)}\n\n"
            f"This link expires in {settings.VERIFICATION_TOKEN_EXPIRE_HOURS} hours.",
        )

    def send_password_reset_email(self, to_email: str, token: str) -> None:
        self.send(
            to_email,
            "Password reset instructions",
            "You requested to reset your password. Use the link below:\n\n"
            f"{reset_link(token)}\n\n"
            f"This link expires in {settings.RESET_TOKEN_EXPIRE_MINUTES} minutes. "
            "If you didn't request this, please ignore this email.",
        )


class LogMailer(Mailer):
    """Writes emails to the ``jobboard.mailer`` log instead of sending them."""

    def send(self, to_email: str, subject: str, body: str) -> None:
        logger.info("Email to %s | %s\n%s", to_email, subject, body)


_default_mailer = LogMailer()


def get_mailer() -> Mailer:
    """Dependency returning the configured mailer."""
    return _default_mailer
