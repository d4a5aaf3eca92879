"""
Common library for reusable infrastructure components.

- database: Async MongoDB connection using Motor
- auth: JWT tokens, bcrypt password hashing, FastAPI auth dependency
- utils: Standard responses, exceptions, password and contact validation
- config: Base settings class
"""

from common.database import MongoDB
from common.auth import JWTAuth, PasswordHasher, create_auth_dependency
from common.utils import (
    success_response,
    error_response,
    APIException,
    UnauthorizedException,
    validate_password,
    validate_contact_input,
)
from common.config import BaseAppSettings

__all__ = [
    # Database
    "MongoDB",
    # Auth
    "JWTAuth",
    "PasswordHasher",
    "create_auth_dependency",
    # Utils
    "success_response",
    "error_response",
    "APIException",
    "UnauthorizedException",
    "validate_password",
    "validate_contact_input",
    # Config
    "BaseAppSettings",
]
