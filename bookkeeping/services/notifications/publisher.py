"""
Notification publishing.

Flows hand an OtpNotification to a publisher and move on. Delivery runs in
a background task; its outcome never reaches the flow.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Set

from bookkeeping.models.user import VerificationMethod
from bookkeeping.services.notifications.email_service import EmailService
from bookkeeping.services.notifications.events import OtpNotification
from bookkeeping.services.notifications.sms_service import SmsService
from bookkeeping.services.notifications.templates import render_email, render_sms

logger = logging.getLogger(__name__)


class NotificationPublisher(ABC):
    """Accepts notification events without waiting for delivery."""

    @abstractmethod
    def publish(self, event: OtpNotification) -> None:
        ...

    async def drain(self) -> None:
        """Wait for in-flight deliveries. No-op for synchronous publishers."""


class BackgroundNotificationPublisher(NotificationPublisher):
    """
    Delivers OTP notifications by email or SMS in background tasks.

    Failures are logged and dropped: there is no retry.
    """

    def __init__(
        self,
        email_service: EmailService,
        sms_service: SmsService,
        team_name: str = "The Bookkeeping Team",
    ):
        self._email_service = email_service
        self._sms_service = sms_service
        self._team_name = team_name
        self._tasks: Set[asyncio.Task] = set()

    def publish(self, event: OtpNotification) -> None:
        task = asyncio.create_task(self._deliver(event))
        # The loop only keeps weak references to tasks
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    @property
    def pending(self) -> int:
        return len(self._tasks)

    async def drain(self) -> None:
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def _deliver(self, event: OtpNotification) -> None:
        channel = VerificationMethod(event.channel)
        try:
            if channel == VerificationMethod.EMAIL:
                subject, html, text = render_email(event, self._team_name)
                result = await self._email_service.send_email(event.recipient, subject, html, text)
            else:
                result = await self._sms_service.send_sms(event.recipient, render_sms(event))
        except Exception as e:
            logger.error(f"Error delivering {event.template.value} notification via {channel.value}: {e}")
            return

        if result.get("success"):
            logger.info(f"{event.template.value} notification sent via {channel.value}")
        else:
            logger.warning(
                f"{event.template.value} notification via {channel.value} failed: {result.get('error')}"
            )
