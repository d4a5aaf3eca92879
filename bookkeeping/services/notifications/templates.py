"""
Email and SMS bodies for OTP notifications.
"""

from typing import Tuple

from bookkeeping.services.notifications.events import NotificationTemplate, OtpNotification

OTP_EXPIRY_NOTE = "This OTP will expire in 1 hour."

_EMAIL_COPY = {
    NotificationTemplate.SIGNUP_OTP: {
        "subject": "Verify Your Account - Bookkeeping",
        "header": "Verify Your Account",
        "intro": (
            "Thank you for creating an account with us. "
            "Please use the following OTP to verify your account:"
        ),
    },
    NotificationTemplate.FORGOT_PASSWORD_OTP: {
        "subject": "Forgot Password Request - Bookkeeping",
        "header": "Forgot Password",
        "intro": "You requested to reset your password. Please use the OTP below to reset your password.",
    },
    NotificationTemplate.RESEND_OTP: {
        "subject": "Your New OTP Code - Bookkeeping",
        "header": "Your New OTP Code",
        "intro": "You requested a new OTP code.",
    },
}

_SMS_COPY = {
    NotificationTemplate.SIGNUP_OTP: "Your OTP is {otp}",
    NotificationTemplate.FORGOT_PASSWORD_OTP: "Your password reset OTP is {otp}",
    NotificationTemplate.RESEND_OTP: "Your OTP is {otp}",
}


def render_email(event: OtpNotification, team_name: str) -> Tuple[str, str, str]:
    """
    Render an OTP email.

    Returns:
        tuple of (subject, html, text)
    """
    copy = _EMAIL_COPY[event.template]
    name = event.display_name

    html = f"""
<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
    <h1 style="color: #333; text-align: center;">{copy["header"]}</h1>
    <p>Hi {name},</p>
    <p>{copy["intro"]}</p>
    <div style="text-align: center; padding: 20px;">
        <h2 style="letter-spacing: 5px; font-size: 32px; color: #4F46E5;">{event.otp}</h2>
    </div>
    <p>{OTP_EXPIRY_NOTE}</p>
    <p>If you didn't request this, please ignore this email.</p>
    <p>Best regards,<br>{team_name}</p>
</div>
"""

    text = f"""Hi {name},

{copy["intro"]}

{event.otp}

{OTP_EXPIRY_NOTE}
If you didn't request this, please ignore this email.

Best regards,
{team_name}
"""

    return copy["subject"], html, text


def render_sms(event: OtpNotification) -> str:
    return _SMS_COPY[event.template].format(otp=event.otp)
