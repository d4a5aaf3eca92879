"""
Notification events emitted by the auth flows.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from bookkeeping.models.user import VerificationMethod


class NotificationTemplate(str, Enum):
    SIGNUP_OTP = "SIGNUP_OTP"
    FORGOT_PASSWORD_OTP = "FORGOT_PASSWORD_OTP"
    RESEND_OTP = "RESEND_OTP"


class ResendOtpContext(str, Enum):
    """Which step a resent OTP belongs to."""
    FORGOT_PASSWORD = "FORGOT_PASSWORD"
    VERIFY_EMAIL = "VERIFY_EMAIL"
    INITIATE_SIGNUP = "INITIATE_SIGNUP"
    LOGIN = "LOGIN"


@dataclass(frozen=True)
class OtpNotification:
    """An OTP to deliver to a user over their verification channel."""
    template: NotificationTemplate
    channel: VerificationMethod
    recipient: str
    otp: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    context: Optional[ResendOtpContext] = None

    @property
    def display_name(self) -> str:
        """Greeting name: the full name once known, else the recipient."""
        if self.context == ResendOtpContext.INITIATE_SIGNUP:
            return self.recipient
        full_name = " ".join(p for p in (self.first_name, self.last_name) if p)
        return full_name or self.recipient
