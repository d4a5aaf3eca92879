"""
FastAPI dependencies for the Auth system.

Services are built once at startup by init_auth_services and handed out
by the getters below.
"""

import logging

from fastapi import Request
from motor.motor_asyncio import AsyncIOMotorDatabase

from common.auth import JWTAuth, PasswordHasher, create_auth_dependency
from bookkeeping.auth.services.token_issuer import TokenIssuer
from bookkeeping.config import Settings
from bookkeeping.repositories.token_repository import MongoTokenRepository, TokenRepository
from bookkeeping.repositories.user_repository import MongoUserRepository, UserRepository
from bookkeeping.services.aggregator.mx_client import AggregatorClient, MxAggregatorClient
from bookkeeping.services.notifications.email_service import EmailService
from bookkeeping.services.notifications.publisher import (
    BackgroundNotificationPublisher,
    NotificationPublisher,
)
from bookkeeping.services.notifications.sms_service import SmsService

logger = logging.getLogger(__name__)

_NOT_INITIALIZED = "Auth services not initialized. Call init_auth_services first."

_jwt_auth: JWTAuth | None = None
_password_hasher: PasswordHasher | None = None
_token_issuer: TokenIssuer | None = None
_user_repository: UserRepository | None = None
_token_repository: TokenRepository | None = None
_notification_publisher: NotificationPublisher | None = None
_aggregator_client: AggregatorClient | None = None


def configure_auth_services(
    jwt_auth: JWTAuth,
    password_hasher: PasswordHasher,
    token_issuer: TokenIssuer,
    user_repository: UserRepository,
    token_repository: TokenRepository,
    notification_publisher: NotificationPublisher,
    aggregator_client: AggregatorClient,
) -> None:
    """Install already-built services."""
    global _jwt_auth, _password_hasher, _token_issuer, _user_repository
    global _token_repository, _notification_publisher, _aggregator_client

    _jwt_auth = jwt_auth
    _password_hasher = password_hasher
    _token_issuer = token_issuer
    _user_repository = user_repository
    _token_repository = token_repository
    _notification_publisher = notification_publisher
    _aggregator_client = aggregator_client


def init_auth_services(db: AsyncIOMotorDatabase, settings: Settings) -> None:
    """
    Initialize auth services with database and configuration.

    Called once at application startup.

    Args:
        db: MongoDB database connection
        settings: Application settings
    """
    jwt_auth = JWTAuth(
        secret=settings.JWT_SECRET,
        algorithm=settings.JWT_ALGORITHM,
        access_token_expire_minutes=settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES,
        refresh_token_expire_days=settings.JWT_REFRESH_TOKEN_EXPIRE_DAYS,
        refresh_secret=settings.get_refresh_secret(),
    )

    token_issuer = TokenIssuer(
        jwt_auth=jwt_auth,
        otp_expire_hours=settings.OTP_EXPIRE_HOURS,
        signup_flow_token_expire_days=settings.SIGNUP_FLOW_TOKEN_EXPIRE_DAYS,
        cookie_name=settings.REFRESH_TOKEN_COOKIE_NAME,
        cookie_secure=settings.COOKIE_SECURE,
        cookie_samesite=settings.COOKIE_SAMESITE,
    )

    email_service = EmailService(
        mode=settings.EMAIL_MODE,
        resend_api_key=settings.RESEND_API_KEY,
        from_email=settings.SMTP_FROM_EMAIL,
        from_name=settings.SMTP_FROM_NAME,
        smtp_host=settings.SMTP_HOST,
        smtp_port=settings.SMTP_PORT,
        smtp_user=settings.SMTP_USER,
        smtp_password=settings.SMTP_PASSWORD,
    )

    sms_service = SmsService(
        mode=settings.SMS_MODE,
        account_sid=settings.TWILIO_ACCOUNT_SID,
        auth_token=settings.TWILIO_AUTH_TOKEN,
        from_number=settings.TWILIO_PHONE_NUMBER,
    )

    configure_auth_services(
        jwt_auth=jwt_auth,
        password_hasher=PasswordHasher(rounds=settings.PASSWORD_HASH_ROUNDS),
        token_issuer=token_issuer,
        user_repository=MongoUserRepository(db),
        token_repository=MongoTokenRepository(db),
        notification_publisher=BackgroundNotificationPublisher(
            email_service=email_service,
            sms_service=sms_service,
            team_name=settings.EMAIL_TEAM_NAME,
        ),
        aggregator_client=MxAggregatorClient(
            base_url=settings.MX_API_URL,
            client_id=settings.MX_CLIENT_ID,
            api_key=settings.MX_API_KEY,
        ),
    )

    logger.info("Auth services initialized")


def get_jwt_auth() -> JWTAuth:
    if _jwt_auth is None:
        raise RuntimeError(_NOT_INITIALIZED)
    return _jwt_auth


def get_password_hasher() -> PasswordHasher:
    if _password_hasher is None:
        raise RuntimeError(_NOT_INITIALIZED)
    return _password_hasher


def get_token_issuer() -> TokenIssuer:
    if _token_issuer is None:
        raise RuntimeError(_NOT_INITIALIZED)
    return _token_issuer


def get_user_repository() -> UserRepository:
    if _user_repository is None:
        raise RuntimeError(_NOT_INITIALIZED)
    return _user_repository


def get_token_repository() -> TokenRepository:
    if _token_repository is None:
        raise RuntimeError(_NOT_INITIALIZED)
    return _token_repository


def get_notification_publisher() -> NotificationPublisher:
    if _notification_publisher is None:
        raise RuntimeError(_NOT_INITIALIZED)
    return _notification_publisher


def get_aggregator_client() -> AggregatorClient:
    if _aggregator_client is None:
        raise RuntimeError(_NOT_INITIALIZED)
    return _aggregator_client


# Resolves the Bearer access token to a user id
get_current_user_id = create_auth_dependency(get_jwt_auth)


def get_user_agent(request: Request) -> str:
    """Extract User-Agent from request."""
    return request.headers.get("User-Agent", "")
