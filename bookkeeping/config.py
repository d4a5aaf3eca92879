"""
Bookkeeping application settings.

Extends the base settings with token lifetimes, cookie options and the
credentials of the email, SMS and aggregator providers.
"""

from typing import Optional
from common.config import BaseAppSettings


class Settings(BaseAppSettings):
    """Bookkeeping-specific settings."""

    # ==========================================================================
    # Token Lifetimes
    # ==========================================================================
    OTP_EXPIRE_HOURS: int = 1
    SIGNUP_FLOW_TOKEN_EXPIRE_DAYS: int = 7

    # bcrypt work factor
    PASSWORD_HASH_ROUNDS: int = 10

    # ==========================================================================
    # Refresh Token Cookie
    # ==========================================================================
    REFRESH_TOKEN_COOKIE_NAME: str = "refreshToken"
    COOKIE_SECURE: bool = True
    COOKIE_SAMESITE: str = "strict"  # strict, lax, none

    # ==========================================================================
    # Email Settings
    # ==========================================================================
    EMAIL_MODE: str = "console"  # console, smtp, resend
    RESEND_API_KEY: Optional[str] = None
    SMTP_HOST: Optional[str] = None
    SMTP_PORT: int = 465
    SMTP_USER: Optional[str] = None
    SMTP_PASSWORD: Optional[str] = None
    SMTP_FROM_EMAIL: str = "noreply@bookkeeping.app"
    SMTP_FROM_NAME: str = "Bookkeeping"
    EMAIL_TEAM_NAME: str = "The Bookkeeping Team"

    # ==========================================================================
    # SMS Settings
    # ==========================================================================
    SMS_MODE: str = "console"  # console, twilio
    TWILIO_ACCOUNT_SID: Optional[str] = None
    TWILIO_AUTH_TOKEN: Optional[str] = None
    TWILIO_PHONE_NUMBER: Optional[str] = None

    # ==========================================================================
    # MX Platform (banking data aggregator)
    # ==========================================================================
    MX_API_URL: str = "https://int-api.mx.com"
    MX_CLIENT_ID: Optional[str] = None
    MX_API_KEY: Optional[str] = None


# Global settings instance
settings = Settings()
