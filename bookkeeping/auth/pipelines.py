"""
Auth system pipeline functions.

Stateless orchestration logic for the OTP signup, login, refresh token and
password reset flows. Each pipeline takes its collaborators as arguments and
returns a FlowResult; expected failures are returned, not raised.
"""

import logging
from typing import Callable, Optional

from common.auth.password_hasher import PasswordHasher
from common.utils.validators import normalize_phone_number, validate_contact_input
from bookkeeping.auth.result import FlowErrorKind, FlowResult
from bookkeeping.auth.services.token_issuer import TokenIssuer
from bookkeeping.models.token import (
    EXCLUSIVE_TOKEN_TYPES,
    TokenType,
    build_token_document,
    is_expired,
)
from bookkeeping.models.user import (
    VerificationMethod,
    build_user_document,
    format_user_profile,
    verification_flag_for,
)
from bookkeeping.repositories.token_repository import DuplicateTokenError, TokenRepository
from bookkeeping.repositories.user_repository import DuplicateUserError, UserRepository
from bookkeeping.services.aggregator.mx_client import AggregatorClient, AggregatorError
from bookkeeping.services.notifications.events import (
    NotificationTemplate,
    OtpNotification,
    ResendOtpContext,
)
from bookkeeping.services.notifications.publisher import NotificationPublisher

logger = logging.getLogger(__name__)

MINT_ATTEMPTS = 3

RESEND_TOKEN_TYPES = {
    ResendOtpContext.INITIATE_SIGNUP: TokenType.INITIATE_SIGNUP_OTP,
    ResendOtpContext.VERIFY_EMAIL: TokenType.INITIATE_SIGNUP_OTP,
    ResendOtpContext.FORGOT_PASSWORD: TokenType.FORGOT_PASSWORD_OTP,
    ResendOtpContext.LOGIN: TokenType.LOGIN_OTP,
}

# Contexts whose OTP proves ownership of a not-yet-verified account
UNVERIFIED_CONTEXTS = (ResendOtpContext.INITIATE_SIGNUP, ResendOtpContext.VERIFY_EMAIL)

CHANNEL_LABELS = {
    VerificationMethod.EMAIL: "email",
    VerificationMethod.PHONE_NUMBER: "phone number",
}


def _normalize_contact(details: str, method: VerificationMethod) -> str:
    details = details.strip()
    if VerificationMethod(method) == VerificationMethod.PHONE_NUMBER:
        return normalize_phone_number(details)
    return details.lower()


async def _mint_token(
    tokens: TokenRepository,
    user_id: str,
    token_type: TokenType,
    generate: Callable[[], str],
    expires_at,
    user_agent: Optional[str] = None,
) -> Optional[dict]:
    """
    Generate and store a token, retrying on collisions.

    Exclusive types have their previous tokens deleted before each attempt,
    so a concurrent request that slipped a token in between is replaced.

    Returns:
        The stored token document, or None if every attempt collided
    """
    for attempt in range(1, MINT_ATTEMPTS + 1):
        if token_type in EXCLUSIVE_TOKEN_TYPES:
            await tokens.delete_by_user_id(user_id, token_type)

        token_doc = build_token_document(
            user_id=user_id,
            token=generate(),
            token_type=token_type,
            expires_at=expires_at,
            user_agent=user_agent,
        )
        try:
            return await tokens.create(token_doc)
        except DuplicateTokenError:
            logger.warning(
                f"Token collision minting {token_type.value} for user {user_id} "
                f"(attempt {attempt}/{MINT_ATTEMPTS})"
            )

    logger.error(f"Could not mint {token_type.value} for user {user_id}")
    return None


def _mint_failed() -> FlowResult:
    return FlowResult.fail(
        FlowErrorKind.DEPENDENCY_FAILURE,
        "Could not issue token, please try again",
    )


# ─── Signup ──────────────────────────────────────────────────────


async def initiate_signup_otp_pipeline(
    users: UserRepository,
    tokens: TokenRepository,
    issuer: TokenIssuer,
    publisher: NotificationPublisher,
    details: str,
    channel: VerificationMethod,
) -> FlowResult:
    """
    Start signup: create an incomplete user and send it a signup OTP.

    Args:
        users: User repository
        tokens: Token repository
        issuer: Token generator
        publisher: Notification publisher for the OTP
        details: Email address or phone number
        channel: Which of the two ``details`` is

    Returns:
        FlowResult with an instructional message, or
        VALIDATION if ``details`` does not match ``channel``,
        CONFLICT if a user with that contact already exists
    """
    channel = VerificationMethod(channel)
    is_valid, error = validate_contact_input(details, channel.value)
    if not is_valid:
        return FlowResult.fail(FlowErrorKind.VALIDATION, error)

    contact = _normalize_contact(details, channel)

    if await users.find_by_email_or_phone_number(contact, channel):
        return FlowResult.fail(FlowErrorKind.CONFLICT, "User already exists")

    try:
        user = await users.create(build_user_document(contact, channel))
    except DuplicateUserError:
        return FlowResult.fail(FlowErrorKind.CONFLICT, "User already exists")

    user_id = str(user["_id"])
    otp = await _mint_token(
        tokens,
        user_id,
        TokenType.INITIATE_SIGNUP_OTP,
        issuer.generate_otp_token,
        issuer.get_otp_expiry(),
    )
    if otp is None:
        return _mint_failed()

    publisher.publish(OtpNotification(
        template=NotificationTemplate.SIGNUP_OTP,
        channel=channel,
        recipient=contact,
        otp=otp["token"],
    ))

    logger.info(f"Signup initiated for user {user_id} via {channel.value}")

    delivery = "email" if channel == VerificationMethod.EMAIL else "phone"
    return FlowResult.ok(
        message=f"An OTP has been sent. Please check your {delivery} for the OTP."
    )


async def verify_otp_pipeline(
    users: UserRepository,
    tokens: TokenRepository,
    issuer: TokenIssuer,
    otp: str,
) -> FlowResult:
    """
    Redeem a signup OTP and hand out a signup flow token.

    The OTP lookup ignores the token type. The OTP is deleted before the
    user is updated, so of two concurrent redemptions only one succeeds.

    Returns:
        FlowResult with ``{"signupFlowToken": ...}``
    """
    token = await tokens.find_by_otp(otp)
    if token is None:
        return FlowResult.fail(FlowErrorKind.VALIDATION, "Invalid or expired token")

    if is_expired(token):
        await tokens.delete(token["_id"])
        return FlowResult.fail(FlowErrorKind.EXPIRED, "Invalid or expired token")

    user_id = token["userId"]
    user = await users.find_by_id(user_id)
    if user is None:
        return FlowResult.fail(FlowErrorKind.NOT_FOUND, "User not found")

    if user.get("isVerified"):
        return FlowResult.fail(FlowErrorKind.PRECONDITION, "User already verified")

    # Only the request that deletes the OTP may redeem it
    if not await tokens.delete(token["_id"]):
        return FlowResult.fail(FlowErrorKind.VALIDATION, "Invalid or expired token")

    flag = verification_flag_for(user["verificationMethod"])
    await users.update(user_id, {"isVerified": True, flag: True})

    flow_token = await _mint_token(
        tokens,
        user_id,
        TokenType.SIGNUP_FLOW_TOKEN,
        issuer.generate_temp_signup_flow_token,
        issuer.get_signup_flow_token_expiry(),
    )
    if flow_token is None:
        return _mint_failed()

    logger.info(f"User {user_id} verified via {user['verificationMethod']}")

    return FlowResult.ok(
        data={"signupFlowToken": flow_token["token"]},
        message="OTP verified successfully",
    )


async def signup_pipeline(
    users: UserRepository,
    tokens: TokenRepository,
    hasher: PasswordHasher,
    aggregator: AggregatorClient,
    signup_flow_token: str,
    password: str,
    profile: dict,
    email: Optional[str] = None,
) -> FlowResult:
    """
    Complete signup: set the password and profile, then link the
    aggregator account.

    Args:
        users: User repository
        tokens: Token repository
        hasher: Password hasher
        aggregator: Banking data aggregator client
        signup_flow_token: Token returned by OTP verification
        password: Plaintext password to set
        profile: Name, account type and business fields
        email: Optional email to attach. Only a user without an email
            (phone-verified) may set one; repeating the stored email is
            ignored

    Returns:
        FlowResult with a success message, or
        VALIDATION / EXPIRED for a bad flow token,
        VALIDATION if ``email`` differs from the user's stored email,
        CONFLICT if ``email`` belongs to another user,
        DEPENDENCY_FAILURE if the aggregator call fails. The user keeps
        the password and profile written before the aggregator call.
    """
    token = await tokens.find_by_token(signup_flow_token, TokenType.SIGNUP_FLOW_TOKEN)
    if token is None:
        return FlowResult.fail(FlowErrorKind.VALIDATION, "Invalid or expired signup flow token")

    if is_expired(token):
        return FlowResult.fail(FlowErrorKind.EXPIRED, "Signup flow token expired")

    user_id = token["userId"]
    user = await users.find_by_id(user_id)
    if user is None:
        return FlowResult.fail(FlowErrorKind.NOT_FOUND, "User not found")

    fields = {k: v for k, v in profile.items() if v is not None}

    if email:
        email = email.strip().lower()
        current = user.get("email")
        if current and email != current:
            return FlowResult.fail(FlowErrorKind.VALIDATION, "Email cannot be changed")
        if not current:
            owner = await users.find_by_email(email)
            if owner is not None and str(owner["_id"]) != user_id:
                return FlowResult.fail(FlowErrorKind.CONFLICT, "Email already in use")
            fields["email"] = email

    fields["password"] = hasher.hash(password)

    try:
        user = await users.update(user_id, fields)
    except DuplicateUserError:
        return FlowResult.fail(FlowErrorKind.CONFLICT, "Email already in use")

    if user is None:
        return FlowResult.fail(FlowErrorKind.NOT_FOUND, "User not found")

    try:
        linked_account = await aggregator.create_linked_account(user_id, user.get("email"))
    except AggregatorError as e:
        logger.error(f"Aggregator account creation failed for user {user_id}: {e}")
        return FlowResult.fail(
            FlowErrorKind.DEPENDENCY_FAILURE,
            "Error creating external account",
        )

    await users.add_linked_account(user_id, linked_account)
    await tokens.delete_by_user_id(user_id, TokenType.SIGNUP_FLOW_TOKEN)

    logger.info(f"Signup completed for user {user_id}")

    return FlowResult.ok(message="Account created successfully")


# ─── Sessions ────────────────────────────────────────────────────


async def login_pipeline(
    users: UserRepository,
    tokens: TokenRepository,
    issuer: TokenIssuer,
    hasher: PasswordHasher,
    details: str,
    contact_type: VerificationMethod,
    password: str,
    user_agent: Optional[str] = None,
) -> FlowResult:
    """
    Orchestrates the credential login flow.

    An unknown contact and a wrong password produce the same failure.
    Every refresh token the user already holds is revoked before the new
    one is issued.

    Returns:
        FlowResult with ``{"accessToken", "refreshToken", "user"}``
    """
    contact_type = VerificationMethod(contact_type)
    is_valid, error = validate_contact_input(details, contact_type.value)
    if not is_valid:
        return FlowResult.fail(FlowErrorKind.VALIDATION, error)

    contact = _normalize_contact(details, contact_type)
    user = await users.find_by_email_or_phone_number(contact, contact_type)

    if user is None or not hasher.verify(password, user.get("password")):
        return FlowResult.fail(FlowErrorKind.INVALID_CREDENTIALS, "Invalid credentials")

    if not user.get("isVerified"):
        return FlowResult.fail(FlowErrorKind.PRECONDITION, "User is not verified")

    user_id = str(user["_id"])
    await tokens.delete_refresh_tokens(user_id)

    refresh = await _mint_token(
        tokens,
        user_id,
        TokenType.REFRESH_TOKEN,
        lambda: issuer.generate_refresh_token(user_id),
        issuer.get_refresh_token_expiry(),
        user_agent=user_agent,
    )
    if refresh is None:
        return _mint_failed()

    logger.info(f"User {user_id} logged in")

    return FlowResult.ok(
        data={
            "accessToken": issuer.generate_access_token(user_id, user.get("email")),
            "refreshToken": refresh["token"],
            "user": format_user_profile(user),
        },
        message="Login successful",
    )


async def refresh_access_token_pipeline(
    users: UserRepository,
    tokens: TokenRepository,
    issuer: TokenIssuer,
    refresh_token: Optional[str],
    user_agent: Optional[str] = None,
) -> FlowResult:
    """
    Exchange a refresh token for a new access token.

    The presented refresh token is consumed and replaced by a new one, so
    each refresh token works once.

    Returns:
        FlowResult with ``{"accessToken", "refreshToken"}``
    """
    if not refresh_token:
        return FlowResult.fail(FlowErrorKind.VALIDATION, "Refresh token is required")

    try:
        claims = issuer.decode_refresh_token(refresh_token)
    except ValueError as e:
        logger.debug(f"Refresh token rejected: {e}")
        return FlowResult.fail(FlowErrorKind.INVALID_CREDENTIALS, "Invalid or expired refresh token")

    record = await tokens.find_by_token(refresh_token, TokenType.REFRESH_TOKEN)
    if record is None or record["userId"] != claims["sub"]:
        return FlowResult.fail(FlowErrorKind.INVALID_CREDENTIALS, "Invalid or expired refresh token")

    if is_expired(record):
        await tokens.delete(record["_id"])
        return FlowResult.fail(FlowErrorKind.EXPIRED, "Invalid or expired refresh token")

    user_id = record["userId"]
    user = await users.find_by_id(user_id)
    if user is None:
        return FlowResult.fail(FlowErrorKind.NOT_FOUND, "User not found")

    if not await tokens.delete(record["_id"]):
        return FlowResult.fail(FlowErrorKind.INVALID_CREDENTIALS, "Invalid or expired refresh token")

    refresh = await _mint_token(
        tokens,
        user_id,
        TokenType.REFRESH_TOKEN,
        lambda: issuer.generate_refresh_token(user_id),
        issuer.get_refresh_token_expiry(),
        user_agent=user_agent or record.get("userAgent"),
    )
    if refresh is None:
        return _mint_failed()

    return FlowResult.ok(
        data={
            "accessToken": issuer.generate_access_token(user_id, user.get("email")),
            "refreshToken": refresh["token"],
        },
        message="Access token refreshed successfully",
    )


async def logout_pipeline(
    tokens: TokenRepository,
    refresh_token: Optional[str],
) -> FlowResult:
    """Revoke the presented refresh token, if it is stored. Always succeeds."""
    if refresh_token:
        record = await tokens.find_by_token(refresh_token, TokenType.REFRESH_TOKEN)
        if record is not None:
            await tokens.delete(record["_id"])
            logger.info(f"User {record['userId']} logged out")

    return FlowResult.ok(message="Logout successful")


async def get_session_pipeline(
    users: UserRepository,
    user_id: str,
) -> FlowResult:
    """Profile of the access token holder."""
    user = await users.find_by_id(user_id)
    if user is None:
        return FlowResult.fail(FlowErrorKind.NOT_FOUND, "User not found")

    return FlowResult.ok(data={"user": format_user_profile(user)})


# ─── Password reset ──────────────────────────────────────────────


async def forgot_password_pipeline(
    users: UserRepository,
    tokens: TokenRepository,
    issuer: TokenIssuer,
    publisher: NotificationPublisher,
    details: str,
    channel: VerificationMethod,
) -> FlowResult:
    """
    Send a password reset OTP to a verified user.

    Any earlier reset OTP for the user is replaced.

    Returns:
        FlowResult with a success message, or
        NOT_FOUND if no user has that contact,
        PRECONDITION if the user is not verified
    """
    channel = VerificationMethod(channel)
    contact = _normalize_contact(details, channel)

    user = await users.find_by_email_or_phone_number(contact, channel)
    if user is None:
        return FlowResult.fail(FlowErrorKind.NOT_FOUND, "User not found")

    if not user.get("isVerified"):
        return FlowResult.fail(FlowErrorKind.PRECONDITION, "User is not verified")

    user_id = str(user["_id"])
    otp = await _mint_token(
        tokens,
        user_id,
        TokenType.FORGOT_PASSWORD_OTP,
        issuer.generate_otp_token,
        issuer.get_otp_expiry(),
    )
    if otp is None:
        return _mint_failed()

    publisher.publish(OtpNotification(
        template=NotificationTemplate.FORGOT_PASSWORD_OTP,
        channel=channel,
        recipient=contact,
        otp=otp["token"],
        first_name=user.get("firstName"),
        last_name=user.get("lastName"),
    ))

    logger.info(f"Password reset OTP issued for user {user_id}")

    return FlowResult.ok(message="A password reset OTP has been sent successfully")


async def reset_password_pipeline(
    users: UserRepository,
    tokens: TokenRepository,
    hasher: PasswordHasher,
    otp: str,
    new_password: str,
) -> FlowResult:
    """
    Set a new password using a password reset OTP.

    Consumes every reset OTP of the user and revokes its refresh tokens.
    """
    token = await tokens.find_by_token(otp, TokenType.FORGOT_PASSWORD_OTP)
    if token is None:
        return FlowResult.fail(FlowErrorKind.VALIDATION, "Invalid or expired OTP")

    if is_expired(token):
        await tokens.delete(token["_id"])
        return FlowResult.fail(FlowErrorKind.EXPIRED, "Invalid or expired OTP")

    user_id = token["userId"]
    user = await users.find_by_id(user_id)
    if user is None:
        return FlowResult.fail(FlowErrorKind.NOT_FOUND, "User not found")

    if not user.get("isVerified"):
        return FlowResult.fail(FlowErrorKind.PRECONDITION, "User is not verified")

    if not await tokens.delete(token["_id"]):
        return FlowResult.fail(FlowErrorKind.VALIDATION, "Invalid or expired OTP")

    await users.update(user_id, {"password": hasher.hash(new_password)})
    await tokens.delete_by_user_id(user_id, TokenType.FORGOT_PASSWORD_OTP)
    revoked = await tokens.delete_refresh_tokens(user_id)

    logger.info(f"Password reset for user {user_id}, {revoked} session(s) revoked")

    return FlowResult.ok(message="Password reset successfully")


async def resend_otp_pipeline(
    users: UserRepository,
    tokens: TokenRepository,
    issuer: TokenIssuer,
    publisher: NotificationPublisher,
    details: str,
    channel: VerificationMethod,
    context: ResendOtpContext,
) -> FlowResult:
    """
    Replace the OTP for a flow step and send the new one.

    Signup contexts require an unverified user; reset and login contexts
    require a verified one. The declared channel must be the user's
    verification method.
    """
    channel = VerificationMethod(channel)
    context = ResendOtpContext(context)
    contact = _normalize_contact(details, channel)

    user = await users.find_by_email_or_phone_number(contact, channel)
    if user is None:
        return FlowResult.fail(FlowErrorKind.NOT_FOUND, "User not found")

    if context in UNVERIFIED_CONTEXTS:
        if user.get("isVerified"):
            return FlowResult.fail(FlowErrorKind.PRECONDITION, "User already verified")
    elif not user.get("isVerified"):
        return FlowResult.fail(FlowErrorKind.PRECONDITION, "User is not verified")

    if user.get("verificationMethod") != channel.value:
        return FlowResult.fail(
            FlowErrorKind.PRECONDITION,
            f"User verification method is not {CHANNEL_LABELS[channel]}",
        )

    user_id = str(user["_id"])
    otp = await _mint_token(
        tokens,
        user_id,
        RESEND_TOKEN_TYPES[context],
        issuer.generate_otp_token,
        issuer.get_otp_expiry(),
    )
    if otp is None:
        return _mint_failed()

    publisher.publish(OtpNotification(
        template=NotificationTemplate.RESEND_OTP,
        channel=channel,
        recipient=contact,
        otp=otp["token"],
        first_name=user.get("firstName"),
        last_name=user.get("lastName"),
        context=context,
    ))

    logger.info(f"OTP resent for user {user_id} ({context.value})")

    return FlowResult.ok(message="New OTP sent successfully")
