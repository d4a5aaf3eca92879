"""
Token generation for the auth flows.

OTPs and signup flow tokens are opaque random values stored in the token
collection. Access and refresh tokens are JWTs; refresh tokens are also
persisted so they can be revoked.
"""

import logging
import secrets
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from fastapi import Response

from common.auth.jwt_auth import JWTAuth

logger = logging.getLogger(__name__)

OTP_LENGTH = 6


class TokenIssuer:
    """Mints OTPs, flow tokens and JWTs, and manages the refresh cookie."""

    def __init__(
        self,
        jwt_auth: JWTAuth,
        otp_expire_hours: int = 1,
        signup_flow_token_expire_days: int = 7,
        cookie_name: str = "refreshToken",
        cookie_secure: bool = True,
        cookie_samesite: str = "strict",
    ):
        """
        Initialize TokenIssuer.

        Args:
            jwt_auth: JWT signer/verifier
            otp_expire_hours: OTP lifetime
            signup_flow_token_expire_days: Signup flow token lifetime
            cookie_name: Name of the refresh token cookie
            cookie_secure: Send the cookie over HTTPS only
            cookie_samesite: SameSite attribute of the cookie
        """
        self._jwt_auth = jwt_auth
        self._otp_lifetime = timedelta(hours=otp_expire_hours)
        self._signup_flow_lifetime = timedelta(days=signup_flow_token_expire_days)
        self.cookie_name = cookie_name
        self._cookie_secure = cookie_secure
        self._cookie_samesite = cookie_samesite

    # ─── Opaque tokens ───────────────────────────────────────────

    @staticmethod
    def generate_otp_token() -> str:
        """Six random decimal digits, leading zeros kept."""
        return "".join(secrets.choice("0123456789") for _ in range(OTP_LENGTH))

    @staticmethod
    def generate_temp_signup_flow_token() -> str:
        return uuid.uuid4().hex

    # ─── JWTs ────────────────────────────────────────────────────

    def generate_access_token(self, user_id: str, email: Optional[str] = None) -> str:
        return self._jwt_auth.create_token(user_id, token_type="access", email=email)

    def generate_refresh_token(self, user_id: str) -> str:
        return self._jwt_auth.create_token(user_id, token_type="refresh")

    def decode_access_token(self, token: str) -> Dict[str, Any]:
        """Raises ValueError if the token is invalid, expired or not an access token."""
        return self._jwt_auth.verify_token(token, expected_type="access")

    def decode_refresh_token(self, token: str) -> Dict[str, Any]:
        """Raises ValueError if the token is invalid, expired or not a refresh token."""
        return self._jwt_auth.verify_token(token, expected_type="refresh")

    # ─── Expiries ────────────────────────────────────────────────

    def get_otp_expiry(self) -> datetime:
        return datetime.now(timezone.utc) + self._otp_lifetime

    def get_signup_flow_token_expiry(self) -> datetime:
        return datetime.now(timezone.utc) + self._signup_flow_lifetime

    def get_refresh_token_expiry(self) -> datetime:
        return datetime.now(timezone.utc) + self._jwt_auth.lifetime_for("refresh")

    # ─── Cookie ──────────────────────────────────────────────────

    def set_refresh_token_cookie(self, response: Response, token: str) -> None:
        response.set_cookie(
            key=self.cookie_name,
            value=token,
            max_age=int(self._jwt_auth.lifetime_for("refresh").total_seconds()),
            path="/",
            httponly=True,
            secure=self._cookie_secure,
            samesite=self._cookie_samesite,
        )

    def clear_refresh_token_cookie(self, response: Response) -> None:
        response.delete_cookie(
            key=self.cookie_name,
            path="/",
            httponly=True,
            secure=self._cookie_secure,
            samesite=self._cookie_samesite,
        )
