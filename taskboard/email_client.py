"""
Brevo transactional email API client.
"""
import logging
from functools import lru_cache
from typing import Any, Dict, List, Optional

import requests

from taskboard.config import settings
from taskboard.errors import IntegrationError

logger = logging.getLogger(__name__)


class EmailClient:
    """
    Client for the Brevo SMTP email endpoint.
    Implements the generic send contract the notification templates build on.
    """

    def __init__(
        self,
        api_url: Optional[str] = None,
        api_key: Optional[str] = None,
        sender_email: Optional[str] = None,
        sender_name: Optional[str] = None,
        timeout: int = 30,
    ):
        """Initialize the client, defaulting to the configured Brevo account."""
        self.api_url = api_url if api_url is not None else settings.brevo_api_url
        self.api_key = api_key if api_key is not None else settings.brevo_api_key
        self.sender_email = sender_email if sender_email is not None else settings.brevo_sender_email
        self.sender_name = sender_name if sender_name is not None else settings.brevo_sender_name
        self.timeout = timeout

    @property
    def is_configured(self) -> bool:
        """Check if the client is properly configured."""
        return bool(self.api_url and self.api_key and self.sender_email)

    @property
    def headers(self) -> Dict[str, str]:
        """Get standard headers for API requests."""
        return {
            "Accept": "application/json",
            "Content-Type": "application/json",
            "api-key": self.api_key,
        }

    def send_email(
        self,
        to: List[Dict[str, str]],
        subject: str,
        html_content: str,
        sender: Optional[Dict[str, str]] = None,
        tags: Optional[List[str]] = None,
    ) -> Dict[str, Any]:
        """
        Send a transactional email.

        Args:
            to: Recipients as ``{"email": ..., "name": ...}`` dicts
            subject: Email subject
            html_content: HTML body
            sender: Optional sender override
            tags: Optional provider tags

        Returns:
            Provider response payload (contains ``messageId`` on success)

        Raises:
            IntegrationError: not configured, unreachable or rejected
        """
        if not self.api_key:
            raise IntegrationError("Brevo API key not configured.")

        final_sender = sender or {"email": self.sender_email, "name": self.sender_name}
        if not final_sender.get("email"):
            raise IntegrationError("Sender email not configured.")

        payload: Dict[str, Any] = {
            "sender": final_sender,
            "to": to,
            "subject": subject,
            "htmlContent": html_content,
        }
        if tags:
            payload["tags"] = tags

        try:
            response = requests.post(
                self.api_url,
                json=payload,
                headers=self.headers,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.error(f"Email provider unreachable: {e}")
            raise IntegrationError(f"Email provider unreachable: {e}") from e

        if not response.ok:
            logger.error(f"Email provider rejected request ({response.status_code}): {response.text}")
            raise IntegrationError(
                f"Email provider rejected the request ({response.status_code})"
            )

        try:
            data = response.json()
        except ValueError:
            data = {}

        logger.info(f"Email '{subject}' sent to {[r.get('email') for r in to]}")
        return data


@lru_cache()
def get_email_client() -> EmailClient:
    """Get cached email client instance."""
    return EmailClient()
