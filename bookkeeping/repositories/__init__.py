"""
Repositories - token and user persistence (Mongo and in-memory).
"""

from bookkeeping.repositories.token_repository import (
    TokenRepository,
    MongoTokenRepository,
    DuplicateTokenError,
)
from bookkeeping.repositories.user_repository import (
    UserRepository,
    MongoUserRepository,
    DuplicateUserError,
)
from bookkeeping.repositories.memory import InMemoryTokenRepository, InMemoryUserRepository

__all__ = [
    "TokenRepository",
    "MongoTokenRepository",
    "DuplicateTokenError",
    "UserRepository",
    "MongoUserRepository",
    "DuplicateUserError",
    "InMemoryTokenRepository",
    "InMemoryUserRepository",
]
