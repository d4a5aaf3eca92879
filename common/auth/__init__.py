"""
Authentication module - JWT tokens, bcrypt password hashing, FastAPI dependency.
"""

from common.auth.jwt_auth import JWTAuth
from common.auth.password_hasher import PasswordHasher
from common.auth.dependencies import create_auth_dependency

__all__ = ["JWTAuth", "PasswordHasher", "create_auth_dependency"]
