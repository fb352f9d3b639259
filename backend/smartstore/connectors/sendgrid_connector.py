"""
SendGrid Email Connector
"""
import logging
from typing import Dict, Any, Optional

import requests

from smartstore.connectors.base import connection_result, default_timeout, error_text, json_object
from smartstore.core.exceptions import IntegrationError

logger = logging.getLogger(__name__)


class SendGridConnector:

    BASE_URL = "https://api.sendgrid.com/v3"

    def __init__(
        self,
        api_key: str = None,
        from_email: str = None,
        from_name: str = None,
        timeout: Optional[float] = None,
        **_options,
    ):
        if not api_key or not from_email:
            raise ValueError("SendGrid credentials not configured. Set api_key and from_email")

        self.api_key = api_key
        self.from_email = from_email
        self.from_name = from_name
        self.timeout = timeout or default_timeout()

    @property
    def headers(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self.api_key}", "Content-Type": "application/json"}

    def test_connection(self) -> Dict[str, Any]:
        try:
            response = requests.get(f"{self.BASE_URL}/user/profile", headers=self.headers, timeout=self.timeout)
        except requests.RequestException as e:
            logger.warning(f"SendGrid connection test failed: {e}")
            return connection_result(False, f"Could not reach SendGrid: {e}")

        if response.status_code == 200:
            profile = json_object(response)
            if profile is None:
                return connection_result(False, "SendGrid returned an unreadable response", {"status_code": 200})
            return connection_result(
                True,
                "Connected to SendGrid",
                {"first_name": profile.get("first_name"), "company": profile.get("company")},
            )

        return connection_result(
            False,
            f"SendGrid returned {response.status_code}: {error_text(response)}",
            {"status_code": response.status_code},
        )

    def send_email(self, to: str, subject: str, content: str, html: bool = False) -> Dict[str, Any]:
        """
        Send one email through /v3/mail/send (SendGrid answers 202 Accepted)

        Raises:
            IntegrationError: SendGrid unreachable or the message was rejected
        """
        sender = {"email": self.from_email}
        if self.from_name:
            sender["name"] = self.from_name

        payload = {
            "personalizations": [{"to": [{"email": to}]}],
            "from": sender,
            "subject": subject,
            "content": [{"type": "text/html" if html else "text/plain", "value": content}],
        }

        try:
            response = requests.post(
                f"{self.BASE_URL}/mail/send",
                json=payload,
                headers=self.headers,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.error(f"SendGrid send failed: {e}")
            raise IntegrationError("sendgrid", f"Could not reach SendGrid: {e}")

        if response.status_code != 202:
            raise IntegrationError(
                "sendgrid",
                f"SendGrid rejected the message: {error_text(response)}",
                {"status_code": response.status_code},
            )

        return {"message_id": response.headers.get("X-Message-Id"), "status": "accepted"}
