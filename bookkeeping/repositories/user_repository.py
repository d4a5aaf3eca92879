"""
User persistence.

Lookups return the raw user document, or None when nothing matches.
"""

import logging
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Optional

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError

from bookkeeping.models.user import VerificationMethod

logger = logging.getLogger(__name__)


class DuplicateUserError(ValueError):
    """A user with the same email or phone number already exists."""


class UserRepository(ABC):
    """Storage contract for user documents."""

    @abstractmethod
    async def find_by_email(self, email: str) -> Optional[dict]:
        ...

    @abstractmethod
    async def find_by_phone_number(self, phone_number: str) -> Optional[dict]:
        ...

    async def find_by_email_or_phone_number(
        self,
        value: str,
        declared_type: VerificationMethod,
    ) -> Optional[dict]:
        """Look a user up by the contact detail of the declared type."""
        if VerificationMethod(declared_type) == VerificationMethod.EMAIL:
            return await self.find_by_email(value)
        return await self.find_by_phone_number(value)

    @abstractmethod
    async def find_by_id(self, user_id: str) -> Optional[dict]:
        ...

    @abstractmethod
    async def create(self, user_doc: dict) -> dict:
        """Insert a user document. Raises DuplicateUserError on collision."""

    @abstractmethod
    async def update(self, user_id: str, fields: dict) -> Optional[dict]:
        """Merge ``fields`` into the user. Returns the updated user or None."""

    @abstractmethod
    async def add_linked_account(self, user_id: str, account: dict) -> Optional[dict]:
        """Append a linked account. Returns the updated user or None."""

    async def ensure_indexes(self) -> None:
        """Create backing indexes. No-op for stores without indexes."""


class MongoUserRepository(UserRepository):
    """User repository backed by the ``users`` collection."""

    def __init__(self, db: AsyncIOMotorDatabase):
        self._collection = db["users"]

    async def find_by_email(self, email: str) -> Optional[dict]:
        if not email:
            return None
        return await self._collection.find_one({"email": email.strip().lower()})

    async def find_by_phone_number(self, phone_number: str) -> Optional[dict]:
        if not phone_number:
            return None
        return await self._collection.find_one({"phoneNumber": phone_number.strip()})

    async def find_by_id(self, user_id: str) -> Optional[dict]:
        if not ObjectId.is_valid(user_id):
            return None
        return await self._collection.find_one({"_id": ObjectId(user_id)})

    async def create(self, user_doc: dict) -> dict:
        try:
            await self._collection.insert_one(user_doc)
        except DuplicateKeyError as e:
            raise DuplicateUserError("User already exists") from e
        logger.info(f"User created: {user_doc['_id']}")
        return user_doc

    async def update(self, user_id: str, fields: dict) -> Optional[dict]:
        if not ObjectId.is_valid(user_id):
            return None

        fields = dict(fields)
        if fields.get("email"):
            fields["email"] = fields["email"].strip().lower()

        try:
            return await self._collection.find_one_and_update(
                {"_id": ObjectId(user_id)},
                {"$set": {**fields, "updatedAt": datetime.now(timezone.utc)}},
                return_document=ReturnDocument.AFTER,
            )
        except DuplicateKeyError as e:
            raise DuplicateUserError("User already exists") from e

    async def add_linked_account(self, user_id: str, account: dict) -> Optional[dict]:
        if not ObjectId.is_valid(user_id):
            return None
        return await self._collection.find_one_and_update(
            {"_id": ObjectId(user_id)},
            {
                "$push": {"linkedAccounts": account},
                "$set": {"updatedAt": datetime.now(timezone.utc)},
            },
            return_document=ReturnDocument.AFTER,
        )

    async def ensure_indexes(self) -> None:
        await self._collection.create_index(
            "email", unique=True, sparse=True, name="email_unique"
        )
        await self._collection.create_index(
            "phoneNumber", unique=True, sparse=True, name="phoneNumber_unique"
        )
        logger.info("User indexes ensured")
