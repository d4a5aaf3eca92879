"""
Token persistence.

The repository does storage only: no expiry checks, no business rules.
Uniqueness of the token string and the one-live-token-per-user rule for
exclusive types are enforced by indexes and surface as DuplicateTokenError.
"""

import logging
from abc import ABC, abstractmethod
from typing import Optional, Union

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ASCENDING
from pymongo.errors import DuplicateKeyError

from bookkeeping.models.token import TokenType, EXCLUSIVE_TOKEN_TYPES

logger = logging.getLogger(__name__)


class DuplicateTokenError(ValueError):
    """A token with the same value, or a live exclusive token, already exists."""


class TokenRepository(ABC):
    """Storage contract for token documents."""

    @abstractmethod
    async def create(self, token_doc: dict) -> dict:
        """Insert a token document. Raises DuplicateTokenError on collision."""

    @abstractmethod
    async def find_by_token(self, value: str, token_type: TokenType) -> Optional[dict]:
        """Find a token by value and type."""

    @abstractmethod
    async def find_by_otp(self, value: str) -> Optional[dict]:
        """Find a token by value regardless of type."""

    @abstractmethod
    async def delete_by_user_id(self, user_id: str, token_type: TokenType) -> int:
        """Delete every token of a type owned by a user. Returns the count."""

    async def delete_tokens_by_type(self, user_id: str, token_type: TokenType) -> int:
        return await self.delete_by_user_id(user_id, token_type)

    async def delete_refresh_tokens(self, user_id: str) -> int:
        return await self.delete_by_user_id(user_id, TokenType.REFRESH_TOKEN)

    @abstractmethod
    async def delete(self, token_id: Union[str, ObjectId]) -> bool:
        """Delete a single token by id."""

    async def ensure_indexes(self) -> None:
        """Create backing indexes. No-op for stores without indexes."""


class MongoTokenRepository(TokenRepository):
    """Token repository backed by the ``tokens`` collection."""

    def __init__(self, db: AsyncIOMotorDatabase):
        self._collection = db["tokens"]

    async def create(self, token_doc: dict) -> dict:
        try:
            await self._collection.insert_one(token_doc)
        except DuplicateKeyError as e:
            logger.debug(f"Token insert collided for user {token_doc.get('userId')}: {e}")
            raise DuplicateTokenError("Token already exists") from e
        return token_doc

    async def find_by_token(self, value: str, token_type: TokenType) -> Optional[dict]:
        return await self._collection.find_one(
            {"token": value, "type": TokenType(token_type).value}
        )

    async def find_by_otp(self, value: str) -> Optional[dict]:
        return await self._collection.find_one({"token": value})

    async def delete_by_user_id(self, user_id: str, token_type: TokenType) -> int:
        result = await self._collection.delete_many(
            {"userId": user_id, "type": TokenType(token_type).value}
        )
        return result.deleted_count

    async def delete(self, token_id: Union[str, ObjectId]) -> bool:
        if isinstance(token_id, str):
            if not ObjectId.is_valid(token_id):
                return False
            token_id = ObjectId(token_id)
        result = await self._collection.delete_one({"_id": token_id})
        return result.deleted_count > 0

    async def ensure_indexes(self) -> None:
        """
        Create the token indexes.

        - unique ``token``
        - unique ``(userId, type)`` restricted to exclusive types
        - TTL on ``expiresAt`` so expired tokens are reaped
        """
        await self._collection.create_index("token", unique=True, name="token_unique")
        await self._collection.create_index(
            [("userId", ASCENDING), ("type", ASCENDING)],
            unique=True,
            name="userId_exclusive_type_unique",
            partialFilterExpression={
                "type": {"$in": [t.value for t in EXCLUSIVE_TOKEN_TYPES]}
            },
        )
        await self._collection.create_index(
            "expiresAt", expireAfterSeconds=0, name="expiresAt_ttl"
        )
        await self._collection.create_index("userId", name="userId")
        logger.info("Token indexes ensured")
