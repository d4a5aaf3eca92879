"""Unit tests for user persistence (Mongo and in-memory)."""

import pytest
from bson import ObjectId
from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError

from bookkeeping.models.user import (
    VerificationMethod,
    build_user_document,
    format_user_profile,
    verification_flag_for,
)
from bookkeeping.repositories.memory import InMemoryUserRepository
from bookkeeping.repositories.user_repository import DuplicateUserError, MongoUserRepository


@pytest.fixture
def repo(mock_db):
    return MongoUserRepository(mock_db)


# ─────────────────────────────────────────────────────────────────
# Documents
# ─────────────────────────────────────────────────────────────────


class TestUserDocument:
    def test_email_user_starts_incomplete(self):
        doc = build_user_document("Jane@X.com", VerificationMethod.EMAIL)

        assert doc["email"] == "jane@x.com"
        assert "phoneNumber" not in doc
        assert doc["password"] is None
        assert doc["verificationMethod"] == "EMAIL"
        assert doc["isVerified"] is False
        assert doc["linkedAccounts"] == []

    def test_phone_user_has_no_email_key(self):
        doc = build_user_document("+2348012345678", VerificationMethod.PHONE_NUMBER)

        assert doc["phoneNumber"] == "+2348012345678"
        assert "email" not in doc

    def test_verification_flags(self):
        assert verification_flag_for(VerificationMethod.EMAIL) == "isEmailVerified"
        assert verification_flag_for("PHONE_NUMBER") == "isPhoneVerified"

    def test_profile_never_contains_password(self):
        doc = build_user_document("a@x.com", VerificationMethod.EMAIL)
        doc.update({"firstName": "Ada", "lastName": "Lovelace", "password": "hash"})

        profile = format_user_profile(doc)

        assert "password" not in profile
        assert profile["id"] == str(doc["_id"])
        assert profile["avatar"] == "https://api.dicebear.com/9.x/micah/svg?seed=Ada"


# ─────────────────────────────────────────────────────────────────
# MongoUserRepository
# ─────────────────────────────────────────────────────────────────


class TestMongoUserRepository:
    @pytest.mark.asyncio
    async def test_find_by_email_lowercases(self, repo, mock_collection):
        await repo.find_by_email(" Jane@X.com ")

        mock_collection.find_one.assert_awaited_once_with({"email": "jane@x.com"})

    @pytest.mark.asyncio
    async def test_find_by_email_or_phone_number_dispatches(self, repo, mock_collection):
        await repo.find_by_email_or_phone_number("+2348012345678", VerificationMethod.PHONE_NUMBER)

        mock_collection.find_one.assert_awaited_once_with({"phoneNumber": "+2348012345678"})

    @pytest.mark.asyncio
    async def test_find_by_invalid_id_returns_none(self, repo, mock_collection):
        assert await repo.find_by_id("nope") is None
        mock_collection.find_one.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_create_translates_duplicate_key(self, repo, mock_collection):
        mock_collection.insert_one.side_effect = DuplicateKeyError("E11000 duplicate key")

        with pytest.raises(DuplicateUserError):
            await repo.create(build_user_document("a@x.com", VerificationMethod.EMAIL))

    @pytest.mark.asyncio
    async def test_update_sets_fields_and_returns_new_document(
        self, repo, mock_collection, sample_user_id,
    ):
        updated = {"_id": ObjectId(sample_user_id), "firstName": "Ada"}
        mock_collection.find_one_and_update.return_value = updated

        result = await repo.update(sample_user_id, {"firstName": "Ada"})

        assert result is updated
        args, kwargs = mock_collection.find_one_and_update.await_args
        assert args[0] == {"_id": ObjectId(sample_user_id)}
        assert args[1]["$set"]["firstName"] == "Ada"
        assert "updatedAt" in args[1]["$set"]
        assert kwargs["return_document"] == ReturnDocument.AFTER

    @pytest.mark.asyncio
    async def test_add_linked_account_pushes(self, repo, mock_collection, sample_user_id):
        account = {"externalUserId": "USR-1"}

        await repo.add_linked_account(sample_user_id, account)

        args, _ = mock_collection.find_one_and_update.await_args
        assert args[1]["$push"] == {"linkedAccounts": account}

    @pytest.mark.asyncio
    async def test_ensure_indexes_are_sparse_unique(self, repo, mock_collection):
        await repo.ensure_indexes()

        for call in mock_collection.create_index.await_args_list:
            assert call.kwargs["unique"] is True
            assert call.kwargs["sparse"] is True
        fields = [call.args[0] for call in mock_collection.create_index.await_args_list]
        assert fields == ["email", "phoneNumber"]


# ─────────────────────────────────────────────────────────────────
# InMemoryUserRepository
# ─────────────────────────────────────────────────────────────────


class TestInMemoryUserRepository:
    @pytest.mark.asyncio
    async def test_email_is_unique(self):
        repo = InMemoryUserRepository()
        await repo.create(build_user_document("a@x.com", VerificationMethod.EMAIL))

        with pytest.raises(DuplicateUserError):
            await repo.create(build_user_document("A@x.com", VerificationMethod.EMAIL))

    @pytest.mark.asyncio
    async def test_update_cannot_take_another_users_email(self):
        repo = InMemoryUserRepository()
        await repo.create(build_user_document("a@x.com", VerificationMethod.EMAIL))
        phone_user = await repo.create(
            build_user_document("+2348012345678", VerificationMethod.PHONE_NUMBER)
        )

        with pytest.raises(DuplicateUserError):
            await repo.update(str(phone_user["_id"]), {"email": "a@x.com"})

    @pytest.mark.asyncio
    async def test_update_merges_and_returns_copy(self):
        repo = InMemoryUserRepository()
        user = await repo.create(build_user_document("a@x.com", VerificationMethod.EMAIL))

        updated = await repo.update(str(user["_id"]), {"firstName": "Ada"})
        updated["firstName"] = "changed"

        stored = await repo.find_by_id(str(user["_id"]))
        assert stored["firstName"] == "Ada"
        assert stored["email"] == "a@x.com"

    @pytest.mark.asyncio
    async def test_update_missing_user(self):
        assert await InMemoryUserRepository().update(str(ObjectId()), {"firstName": "x"}) is None
