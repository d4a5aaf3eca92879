"""
Token documents.

Tokens live in the ``tokens`` collection and are never mutated: a token is
created, looked up, and deleted. The ``userId`` is a plain reference; deleting
a user does not remove its tokens.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from bson import ObjectId


class TokenType(str, Enum):
    """Purpose of a stored token."""
    REFRESH_TOKEN = "refreshToken"
    INITIATE_SIGNUP_OTP = "initiateSignupOtp"
    FORGOT_PASSWORD_OTP = "forgotPasswordOtp"
    SIGNUP_FLOW_TOKEN = "signupFlowToken"
    LOGIN_OTP = "loginOtp"


# At most one live token of each of these types per user
EXCLUSIVE_TOKEN_TYPES = (
    TokenType.INITIATE_SIGNUP_OTP,
    TokenType.FORGOT_PASSWORD_OTP,
    TokenType.LOGIN_OTP,
)


def build_token_document(
    user_id: str,
    token: str,
    token_type: TokenType,
    expires_at: datetime,
    user_agent: Optional[str] = None,
) -> dict:
    """
    Build a token document ready for insertion.

    Args:
        user_id: Owning user's id (string form of the ObjectId)
        token: The token value (OTP digits, flow token, or refresh JWT)
        token_type: Purpose of the token
        expires_at: Absolute expiry (UTC)
        user_agent: Client User-Agent, recorded for refresh tokens

    Returns:
        Token document with a fresh ``_id``
    """
    doc = {
        "_id": ObjectId(),
        "userId": user_id,
        "token": token,
        "type": TokenType(token_type).value,
        "expiresAt": expires_at,
        "createdAt": datetime.now(timezone.utc),
    }
    if user_agent:
        doc["userAgent"] = user_agent
    return doc


def is_expired(token_doc: dict, now: Optional[datetime] = None) -> bool:
    """True if the token's expiry is at or before ``now``."""
    now = now or datetime.now(timezone.utc)
    expires_at = token_doc["expiresAt"]
    # Documents read back without tz_aware carry naive UTC datetimes
    if expires_at.tzinfo is None:
        expires_at = expires_at.replace(tzinfo=timezone.utc)
    return expires_at <= now
