"""
Twilio SMS Connector
"""
import logging
from typing import Dict, Any, Optional

import requests

from smartstore.connectors.base import connection_result, default_timeout, error_text, json_object
from smartstore.core.exceptions import IntegrationError

logger = logging.getLogger(__name__)


class TwilioConnector:
    """
    Connector for the Twilio REST API (2010-04-01)

    Handles:
    - Account verification
    - Outbound SMS
    """

    BASE_URL = "https://api.twilio.com/2010-04-01"

    def __init__(
        self,
        account_sid: str = None,
        auth_token: str = None,
        from_phone_number: str = None,
        timeout: Optional[float] = None,
        **_options,
    ):
        if not account_sid or not auth_token or not from_phone_number:
            raise ValueError("Twilio credentials not configured. Set account_sid, auth_token and from_phone_number")

        self.account_sid = account_sid
        self.auth_token = auth_token
        self.from_phone_number = from_phone_number
        self.timeout = timeout or default_timeout()

    @property
    def account_url(self) -> str:
        return f"{self.BASE_URL}/Accounts/{self.account_sid}"

    def test_connection(self) -> Dict[str, Any]:
        try:
            response = requests.get(
                f"{self.account_url}.json",
                auth=(self.account_sid, self.auth_token),
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.warning(f"Twilio connection test failed: {e}")
            return connection_result(False, f"Could not reach Twilio: {e}")

        if response.status_code == 200:
            account = json_object(response)
            if account is None:
                return connection_result(False, "Twilio returned an unreadable response", {"status_code": 200})
            return connection_result(
                True,
                f"Connected to Twilio account {account.get('friendly_name', self.account_sid)}",
                {"status": account.get("status"), "type": account.get("type")},
            )

        return connection_result(
            False,
            f"Twilio returned {response.status_code}: {error_text(response)}",
            {"status_code": response.status_code},
        )

    def send_sms(self, to: str, body: str) -> Dict[str, Any]:
        """
        Send one SMS

        Returns:
            {"sid": ..., "status": ...}

        Raises:
            IntegrationError: Twilio unreachable or the message was rejected
        """
        try:
            response = requests.post(
                f"{self.account_url}/Messages.json",
                data={"To": to, "From": self.from_phone_number, "Body": body},
                auth=(self.account_sid, self.auth_token),
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.error(f"Twilio send failed: {e}")
            raise IntegrationError("twilio", f"Could not reach Twilio: {e}")

        if response.status_code not in (200, 201):
            raise IntegrationError(
                "twilio",
                f"Twilio rejected the message: {error_text(response)}",
                {"status_code": response.status_code},
            )

        message = response.json()
        return {"sid": message.get("sid"), "status": message.get("status")}
