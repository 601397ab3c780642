"""
Delivery of password reset tokens.

Sending mail is left to the deployment: the API hands every freshly issued
token to a PasswordResetNotifier attached to app.state. Swap in an
implementation backed by the mail provider of choice.
"""

import logging
from typing import Optional
from urllib.parse import urlencode

logger = logging.getLogger(__name__)


def build_reset_link(base_url: str, reset_token: str) -> str:
    return f"{base_url}?{urlencode({'token': reset_token})}"


class PasswordResetNotifier:
    """Interface for handing a reset token to the account owner."""

    def send_password_reset_email(
        self,
        to_email: str,
        reset_token: str,
        user_name: Optional[str] = None
    ) -> bool:
        """
        Deliver the reset link.

        Returns:
            True if the message was handed off, False otherwise
        """
        raise NotImplementedError


class LoggingPasswordResetNotifier(PasswordResetNotifier):
    """
    Used when no mail provider is configured.

    Outside production the reset link is written to the log so the flow can
    be completed locally. In production nothing is delivered and the call
    reports failure.
    """

    def __init__(self, settings):
        self.settings = settings

    def send_password_reset_email(
        self,
        to_email: str,
        reset_token: str,
        user_name: Optional[str] = None
    ) -> bool:
        if self.settings.is_production:
            logger.error("No password reset delivery configured")
            return False

        link = build_reset_link(self.settings.PASSWORD_RESET_URL, reset_token)
        logger.info(f"Password reset link for {to_email}: {link}")
        return True
