"""
JWT signing and verification.

Stateless token helpers built on python-jose. Persistence of long-lived
tokens (refresh tokens) is the caller's concern.

Example:
    auth = JWTAuth(
        secret="your-secret-key",
        access_token_expire_minutes=15,
    )

    token = auth.create_token("64f0c0ffee", token_type="access", email="a@x.com")
    claims = auth.verify_token(token, expected_type="access")
    print(claims["sub"])  # user_id
"""

import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from jose import jwt, JWTError


class JWTAuth:
    """
    HMAC JWT issuer/verifier.

    Every token carries ``sub``, ``type``, ``jti``, ``iat`` and ``exp``.
    ``type`` keeps access and refresh tokens from being used for each other.
    """

    def __init__(
        self,
        secret: str,
        algorithm: str = "HS256",
        access_token_expire_minutes: int = 15,
        refresh_token_expire_days: int = 30,
        refresh_secret: Optional[str] = None,
    ):
        """
        Initialize JWT auth.

        Args:
            secret: Secret key for access token signing (keep this secure!)
            algorithm: JWT algorithm (default: HS256)
            access_token_expire_minutes: Access token lifetime
            refresh_token_expire_days: Refresh token lifetime
            refresh_secret: Separate key for refresh tokens (defaults to secret)
        """
        if not secret:
            raise ValueError("JWT secret must not be empty")

        self.secret = secret
        self.refresh_secret = refresh_secret or secret
        self.algorithm = algorithm
        self.access_token_expire = timedelta(minutes=access_token_expire_minutes)
        self.refresh_token_expire = timedelta(days=refresh_token_expire_days)

    def _key_for(self, token_type: str) -> str:
        return self.refresh_secret if token_type == "refresh" else self.secret

    def lifetime_for(self, token_type: str) -> timedelta:
        """Configured lifetime for a token type."""
        if token_type == "refresh":
            return self.refresh_token_expire
        return self.access_token_expire

    def create_token(
        self,
        user_id: str,
        token_type: str = "access",
        expires_delta: Optional[timedelta] = None,
        **claims: Any,
    ) -> str:
        """
        Create a signed JWT for the user.

        Args:
            user_id: The user's ID (``sub`` claim)
            token_type: "access" or "refresh"
            expires_delta: Override for the configured lifetime
            **claims: Additional claims to include in the token

        Returns:
            The encoded token string
        """
        now = datetime.now(timezone.utc)
        expire = now + (expires_delta or self.lifetime_for(token_type))
        payload = {
            **claims,
            "sub": user_id,
            "type": token_type,
            "jti": uuid.uuid4().hex,
            "iat": now,
            "exp": expire,
        }
        return jwt.encode(payload, self._key_for(token_type), algorithm=self.algorithm)

    def verify_token(self, token: str, expected_type: str = "access") -> Dict[str, Any]:
        """
        Verify and decode a JWT.

        Args:
            token: The token to verify
            expected_type: Required value of the ``type`` claim

        Returns:
            Decoded claims

        Raises:
            ValueError: If the token is malformed, expired, badly signed
                or of the wrong type
        """
        try:
            payload = jwt.decode(
                token,
                self._key_for(expected_type),
                algorithms=[self.algorithm],
            )
        except JWTError as e:
            raise ValueError(f"Invalid token: {e}")

        if payload.get("type") != expected_type:
            raise ValueError(f"Invalid token: expected a {expected_type} token")

        if not payload.get("sub"):
            raise ValueError("Invalid token: missing subject")

        return payload
