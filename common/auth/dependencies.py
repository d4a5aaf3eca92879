"""
FastAPI authentication dependencies.

Provides a factory that turns a JWTAuth getter into a route dependency
resolving the bearer access token to a user id.

Example:
    from common.auth import JWTAuth, create_auth_dependency

    auth = JWTAuth(secret="your-secret")
    get_current_user_id = create_auth_dependency(lambda: auth)

    @app.get("/profile")
    async def get_profile(user_id: str = Depends(get_current_user_id)):
        return {"user_id": user_id}
"""

from typing import Callable, Optional

from fastapi import Header

from common.auth.jwt_auth import JWTAuth
from common.utils.exceptions import UnauthorizedException


def create_auth_dependency(
    get_jwt_auth: Callable[[], JWTAuth],
    header_name: str = "Authorization",
    scheme: str = "Bearer",
):
    """
    Factory to create FastAPI auth dependencies.

    Args:
        get_jwt_auth: Callable that returns the JWTAuth instance
        header_name: Header to extract token from (default: Authorization)
        scheme: Auth scheme prefix (default: Bearer)

    Returns:
        A FastAPI dependency function that extracts and verifies the user ID
    """

    async def get_current_user_id(
        authorization: Optional[str] = Header(None, alias=header_name),
    ) -> str:
        """
        Extract and verify user ID from the authorization header.

        Raises:
            UnauthorizedException: If token is missing, invalid, or expired
        """
        if not authorization:
            raise UnauthorizedException(
                message="Missing authorization header",
                code="UNAUTHORIZED",
            )

        prefix = f"{scheme} "
        if not authorization.startswith(prefix):
            raise UnauthorizedException(
                message=f"Invalid authorization scheme. Expected: {scheme}",
                code="INVALID_AUTH_SCHEME",
            )

        token = authorization[len(prefix):]

        if not token:
            raise UnauthorizedException(message="Token is empty", code="EMPTY_TOKEN")

        try:
            payload = get_jwt_auth().verify_token(token, expected_type="access")
        except ValueError as e:
            raise UnauthorizedException(message=str(e), code="INVALID_TOKEN")

        return payload["sub"]

    return get_current_user_id
