"""
FastAPI router for Auth system endpoints.

Provides endpoints for OTP signup, login, token refresh, logout and
password reset. Pipelines return FlowResults; failures are raised here as
APIExceptions.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Request, Response

from common.auth import PasswordHasher
from common.utils import APIException, success_response
from bookkeeping.auth import pipelines
from bookkeeping.auth.result import FlowResult
from bookkeeping.auth.services.token_issuer import TokenIssuer
from bookkeeping.dependencies import (
    get_aggregator_client,
    get_current_user_id,
    get_notification_publisher,
    get_password_hasher,
    get_token_issuer,
    get_token_repository,
    get_user_agent,
    get_user_repository,
)
from bookkeeping.repositories.token_repository import TokenRepository
from bookkeeping.repositories.user_repository import UserRepository
from bookkeeping.schemas.auth import (
    ForgotPasswordRequest,
    InitiateSignupOtpRequest,
    LoginRequest,
    ResendOtpRequest,
    ResetPasswordRequest,
    SignupRequest,
    VerifyOtpRequest,
)
from bookkeeping.services.aggregator.mx_client import AggregatorClient
from bookkeeping.services.notifications.publisher import NotificationPublisher

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])

Users = Annotated[UserRepository, Depends(get_user_repository)]
Tokens = Annotated[TokenRepository, Depends(get_token_repository)]
Issuer = Annotated[TokenIssuer, Depends(get_token_issuer)]
Hasher = Annotated[PasswordHasher, Depends(get_password_hasher)]
Publisher = Annotated[NotificationPublisher, Depends(get_notification_publisher)]
Aggregator = Annotated[AggregatorClient, Depends(get_aggregator_client)]


def _unwrap(result: FlowResult) -> FlowResult:
    """Raise the failure as an APIException, or pass a success through."""
    if result.success:
        return result

    if result.status_code >= 500:
        logger.error(f"Auth flow failed: {result.errors}")

    raise APIException(
        status_code=result.status_code,
        message=result.error_message,
        code=result.error_kind.value,
        details={"errors": result.errors},
    )


@router.post("/initiate-signup-otp")
async def initiate_signup_otp(
    body: InitiateSignupOtpRequest,
    users: Users,
    tokens: Tokens,
    issuer: Issuer,
    publisher: Publisher,
):
    """
    Start signup.

    Creates an unverified account and sends a signup OTP to the email
    address or phone number.
    """
    result = _unwrap(await pipelines.initiate_signup_otp_pipeline(
        users=users,
        tokens=tokens,
        issuer=issuer,
        publisher=publisher,
        details=body.details,
        channel=body.type,
    ))
    return success_response(message=result.message)


@router.post("/verify-otp")
async def verify_otp(
    body: VerifyOtpRequest,
    users: Users,
    tokens: Tokens,
    issuer: Issuer,
):
    """Verify the signup OTP and return a signup flow token."""
    result = _unwrap(await pipelines.verify_otp_pipeline(
        users=users,
        tokens=tokens,
        issuer=issuer,
        otp=body.otp,
    ))
    return success_response(result.data, message=result.message)


@router.post("/signup", status_code=201)
async def signup(
    body: SignupRequest,
    users: Users,
    tokens: Tokens,
    hasher: Hasher,
    aggregator: Aggregator,
):
    """Complete signup with a password and profile."""
    result = _unwrap(await pipelines.signup_pipeline(
        users=users,
        tokens=tokens,
        hasher=hasher,
        aggregator=aggregator,
        signup_flow_token=body.signupFlowToken,
        password=body.password,
        profile=body.profile_fields(),
        email=body.email,
    ))
    return success_response(message=result.message)


@router.post("/login")
async def login(
    request: Request,
    response: Response,
    body: LoginRequest,
    users: Users,
    tokens: Tokens,
    issuer: Issuer,
    hasher: Hasher,
):
    """
    Login with email or phone number and password.

    The refresh token is set as an HTTP-only cookie, not returned in the body.
    """
    result = _unwrap(await pipelines.login_pipeline(
        users=users,
        tokens=tokens,
        issuer=issuer,
        hasher=hasher,
        details=body.details,
        contact_type=body.type,
        password=body.password,
        user_agent=get_user_agent(request),
    ))

    issuer.set_refresh_token_cookie(response, result.data["refreshToken"])

    return success_response(
        {
            "accessToken": result.data["accessToken"],
            "user": result.data["user"],
        },
        message=result.message,
    )


@router.post("/refresh-access-token")
async def refresh_access_token(
    request: Request,
    response: Response,
    users: Users,
    tokens: Tokens,
    issuer: Issuer,
):
    """Exchange the refresh token cookie for a new access token."""
    result = _unwrap(await pipelines.refresh_access_token_pipeline(
        users=users,
        tokens=tokens,
        issuer=issuer,
        refresh_token=request.cookies.get(issuer.cookie_name),
        user_agent=get_user_agent(request),
    ))

    issuer.set_refresh_token_cookie(response, result.data["refreshToken"])

    return success_response(
        {"accessToken": result.data["accessToken"]},
        message=result.message,
    )


@router.post("/logout")
async def logout(
    request: Request,
    response: Response,
    tokens: Tokens,
    issuer: Issuer,
):
    """Revoke the refresh token cookie and clear it."""
    result = _unwrap(await pipelines.logout_pipeline(
        tokens=tokens,
        refresh_token=request.cookies.get(issuer.cookie_name),
    ))

    issuer.clear_refresh_token_cookie(response)

    return success_response({}, message=result.message)


@router.get("/session")
async def get_session(
    user_id: Annotated[str, Depends(get_current_user_id)],
    users: Users,
):
    """Get the profile of the access token holder."""
    result = _unwrap(await pipelines.get_session_pipeline(users=users, user_id=user_id))
    return success_response(result.data)


@router.post("/resend-otp")
async def resend_otp(
    body: ResendOtpRequest,
    users: Users,
    tokens: Tokens,
    issuer: Issuer,
    publisher: Publisher,
):
    """Replace and resend the OTP for a signup, login or reset step."""
    details, channel = body.contact()
    result = _unwrap(await pipelines.resend_otp_pipeline(
        users=users,
        tokens=tokens,
        issuer=issuer,
        publisher=publisher,
        details=details,
        channel=channel,
        context=body.context,
    ))
    return success_response(message=result.message)


@router.post("/forgot-password")
async def forgot_password(
    body: ForgotPasswordRequest,
    users: Users,
    tokens: Tokens,
    issuer: Issuer,
    publisher: Publisher,
):
    """Send a password reset OTP."""
    details, channel = body.contact()
    result = _unwrap(await pipelines.forgot_password_pipeline(
        users=users,
        tokens=tokens,
        issuer=issuer,
        publisher=publisher,
        details=details,
        channel=channel,
    ))
    return success_response(message=result.message)


@router.post("/reset-password")
async def reset_password(
    body: ResetPasswordRequest,
    users: Users,
    tokens: Tokens,
    hasher: Hasher,
):
    """Set a new password using a password reset OTP."""
    result = _unwrap(await pipelines.reset_password_pipeline(
        users=users,
        tokens=tokens,
        hasher=hasher,
        otp=body.otp,
        new_password=body.newPassword,
    ))
    return success_response(message=result.message)
