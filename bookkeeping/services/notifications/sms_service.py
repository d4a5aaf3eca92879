"""
SMS service for sending OTP text messages.

Supports Twilio (REST API) and console logging modes.
"""

import logging
from typing import Optional

import httpx

logger = logging.getLogger(__name__)

TWILIO_MESSAGES_URL = "https://api.twilio.com/2010-04-01/Accounts/{account_sid}/Messages.json"


class SmsService:
    """
    SMS service with multi-mode support.

    Modes:
        - console: Log messages to console (development)
        - twilio: Send via the Twilio Messages API
    """

    def __init__(
        self,
        mode: str = "console",
        account_sid: Optional[str] = None,
        auth_token: Optional[str] = None,
        from_number: Optional[str] = None,
        timeout: float = 10.0,
    ):
        self._mode = mode
        self._account_sid = account_sid
        self._auth_token = auth_token
        self._from_number = from_number
        self._timeout = timeout

        if self._mode == "twilio" and not (account_sid and auth_token and from_number):
            logger.warning("Twilio credentials not configured, falling back to console mode")
            self._mode = "console"

        logger.info(f"SMS service initialized in {self._mode} mode")

    @property
    def mode(self) -> str:
        return self._mode

    async def send_sms(self, to: str, body: str) -> dict:
        """
        Send a text message via the configured provider.

        Returns:
            dict with success status and details
        """
        if self._mode == "console":
            logger.info(f"SMS (console mode) to {to}: {body}")
            return {"success": True, "mode": "console"}
        elif self._mode == "twilio":
            return await self._send_twilio(to, body)
        else:
            logger.error(f"Unknown SMS mode: {self._mode}")
            return {"success": False, "error": f"Unknown SMS mode: {self._mode}"}

    async def _send_twilio(self, to: str, body: str) -> dict:
        url = TWILIO_MESSAGES_URL.format(account_sid=self._account_sid)

        async with httpx.AsyncClient(timeout=self._timeout) as client:
            try:
                response = await client.post(
                    url,
                    auth=(self._account_sid, self._auth_token),
                    data={"To": to, "From": self._from_number, "Body": body},
                )
            except httpx.HTTPError as e:
                logger.error(f"Failed to send SMS via Twilio: {e}")
                return {"success": False, "error": str(e)}

        if response.status_code in (200, 201):
            return {
                "success": True,
                "mode": "twilio",
                "messageId": response.json().get("sid"),
            }

        error_msg = response.json().get("message", "Unknown error")
        logger.error(f"Twilio API error: {error_msg}")
        return {"success": False, "error": error_msg}
