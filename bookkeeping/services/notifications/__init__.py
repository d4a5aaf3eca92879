"""
Notifications - OTP delivery over email and SMS.
"""

from bookkeeping.services.notifications.events import (
    NotificationTemplate,
    OtpNotification,
    ResendOtpContext,
)
from bookkeeping.services.notifications.email_service import EmailService
from bookkeeping.services.notifications.sms_service import SmsService
from bookkeeping.services.notifications.publisher import (
    NotificationPublisher,
    BackgroundNotificationPublisher,
)

__all__ = [
    "NotificationTemplate",
    "OtpNotification",
    "ResendOtpContext",
    "EmailService",
    "SmsService",
    "NotificationPublisher",
    "BackgroundNotificationPublisher",
]
