"""
In-memory repositories.

Dict-backed stores with the same uniqueness rules as the Mongo indexes.
Used by tests and local runs without a database.
"""

import copy
from datetime import datetime, timezone
from typing import Dict, Optional, Union

from bson import ObjectId

from bookkeeping.models.token import TokenType, EXCLUSIVE_TOKEN_TYPES
from bookkeeping.repositories.token_repository import TokenRepository, DuplicateTokenError
from bookkeeping.repositories.user_repository import UserRepository, DuplicateUserError


class InMemoryTokenRepository(TokenRepository):

    def __init__(self):
        self._tokens: Dict[ObjectId, dict] = {}

    async def create(self, token_doc: dict) -> dict:
        doc = copy.deepcopy(token_doc)
        doc.setdefault("_id", ObjectId())
        exclusive = TokenType(doc["type"]) in EXCLUSIVE_TOKEN_TYPES

        for existing in self._tokens.values():
            if existing["token"] == doc["token"]:
                raise DuplicateTokenError("Token already exists")
            if (
                exclusive
                and existing["userId"] == doc["userId"]
                and existing["type"] == doc["type"]
            ):
                raise DuplicateTokenError("Token already exists")

        self._tokens[doc["_id"]] = doc
        return copy.deepcopy(doc)

    async def find_by_token(self, value: str, token_type: TokenType) -> Optional[dict]:
        type_value = TokenType(token_type).value
        for doc in self._tokens.values():
            if doc["token"] == value and doc["type"] == type_value:
                return copy.deepcopy(doc)
        return None

    async def find_by_otp(self, value: str) -> Optional[dict]:
        for doc in self._tokens.values():
            if doc["token"] == value:
                return copy.deepcopy(doc)
        return None

    async def delete_by_user_id(self, user_id: str, token_type: TokenType) -> int:
        type_value = TokenType(token_type).value
        doomed = [
            token_id
            for token_id, doc in self._tokens.items()
            if doc["userId"] == user_id and doc["type"] == type_value
        ]
        for token_id in doomed:
            del self._tokens[token_id]
        return len(doomed)

    async def delete(self, token_id: Union[str, ObjectId]) -> bool:
        if isinstance(token_id, str):
            if not ObjectId.is_valid(token_id):
                return False
            token_id = ObjectId(token_id)
        return self._tokens.pop(token_id, None) is not None

    def all(self) -> list:
        """Snapshot of every stored token."""
        return [copy.deepcopy(doc) for doc in self._tokens.values()]


class InMemoryUserRepository(UserRepository):

    def __init__(self):
        self._users: Dict[ObjectId, dict] = {}

    def _find(self, field: str, value: str) -> Optional[dict]:
        for doc in self._users.values():
            if doc.get(field) == value:
                return doc
        return None

    def _check_unique(self, doc: dict, user_id: Optional[ObjectId] = None) -> None:
        for field in ("email", "phoneNumber"):
            value = doc.get(field)
            if not value:
                continue
            owner = self._find(field, value)
            if owner is not None and owner["_id"] != user_id:
                raise DuplicateUserError("User already exists")

    async def find_by_email(self, email: str) -> Optional[dict]:
        if not email:
            return None
        return copy.deepcopy(self._find("email", email.strip().lower()))

    async def find_by_phone_number(self, phone_number: str) -> Optional[dict]:
        if not phone_number:
            return None
        return copy.deepcopy(self._find("phoneNumber", phone_number.strip()))

    async def find_by_id(self, user_id: str) -> Optional[dict]:
        if not ObjectId.is_valid(user_id):
            return None
        return copy.deepcopy(self._users.get(ObjectId(user_id)))

    async def create(self, user_doc: dict) -> dict:
        doc = copy.deepcopy(user_doc)
        doc.setdefault("_id", ObjectId())
        self._check_unique(doc)
        self._users[doc["_id"]] = doc
        return copy.deepcopy(doc)

    async def update(self, user_id: str, fields: dict) -> Optional[dict]:
        if not ObjectId.is_valid(user_id):
            return None
        existing = self._users.get(ObjectId(user_id))
        if existing is None:
            return None

        fields = copy.deepcopy(fields)
        if fields.get("email"):
            fields["email"] = fields["email"].strip().lower()
        self._check_unique(fields, existing["_id"])

        existing.update(fields)
        existing["updatedAt"] = datetime.now(timezone.utc)
        return copy.deepcopy(existing)

    async def add_linked_account(self, user_id: str, account: dict) -> Optional[dict]:
        if not ObjectId.is_valid(user_id):
            return None
        existing = self._users.get(ObjectId(user_id))
        if existing is None:
            return None
        existing.setdefault("linkedAccounts", []).append(copy.deepcopy(account))
        existing["updatedAt"] = datetime.now(timezone.utc)
        return copy.deepcopy(existing)

    async def delete(self, user_id: str) -> bool:
        """Remove a user. Tokens referencing it are left in place."""
        if not ObjectId.is_valid(user_id):
            return False
        return self._users.pop(ObjectId(user_id), None) is not None
