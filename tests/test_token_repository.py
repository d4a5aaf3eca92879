"""Unit tests for token persistence (Mongo and in-memory)."""

from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest
from bson import ObjectId
from pymongo.errors import DuplicateKeyError

from bookkeeping.models.token import TokenType, build_token_document, is_expired
from bookkeeping.repositories.memory import InMemoryTokenRepository
from bookkeeping.repositories.token_repository import DuplicateTokenError, MongoTokenRepository


@pytest.fixture
def repo(mock_db):
    return MongoTokenRepository(mock_db)


def _token(user_id, value="123456", token_type=TokenType.INITIATE_SIGNUP_OTP, hours=1):
    return build_token_document(
        user_id=user_id,
        token=value,
        token_type=token_type,
        expires_at=datetime.now(timezone.utc) + timedelta(hours=hours),
    )


# ─────────────────────────────────────────────────────────────────
# Documents
# ─────────────────────────────────────────────────────────────────


class TestTokenDocument:
    def test_build_stores_type_value(self, sample_user_id):
        doc = _token(sample_user_id)

        assert doc["type"] == "initiateSignupOtp"
        assert doc["userId"] == sample_user_id
        assert isinstance(doc["_id"], ObjectId)
        assert "userAgent" not in doc

    def test_user_agent_recorded_when_given(self, sample_user_id):
        doc = build_token_document(
            sample_user_id, "jwt", TokenType.REFRESH_TOKEN,
            datetime.now(timezone.utc), user_agent="pytest",
        )

        assert doc["userAgent"] == "pytest"

    def test_is_expired(self, sample_user_id):
        assert is_expired(_token(sample_user_id, hours=-1))
        assert not is_expired(_token(sample_user_id, hours=1))

    def test_is_expired_handles_naive_datetimes(self, sample_user_id):
        doc = _token(sample_user_id, hours=-1)
        doc["expiresAt"] = doc["expiresAt"].replace(tzinfo=None)

        assert is_expired(doc)


# ─────────────────────────────────────────────────────────────────
# MongoTokenRepository
# ─────────────────────────────────────────────────────────────────


class TestMongoTokenRepository:
    @pytest.mark.asyncio
    async def test_create_inserts_document(self, repo, mock_collection, sample_user_id):
        doc = _token(sample_user_id)

        result = await repo.create(doc)

        mock_collection.insert_one.assert_awaited_once_with(doc)
        assert result is doc

    @pytest.mark.asyncio
    async def test_create_translates_duplicate_key(self, repo, mock_collection, sample_user_id):
        mock_collection.insert_one.side_effect = DuplicateKeyError("E11000 duplicate key")

        with pytest.raises(DuplicateTokenError):
            await repo.create(_token(sample_user_id))

    @pytest.mark.asyncio
    async def test_find_by_token_filters_on_type(self, repo, mock_collection):
        mock_collection.find_one.return_value = None

        assert await repo.find_by_token("abc", TokenType.SIGNUP_FLOW_TOKEN) is None
        mock_collection.find_one.assert_awaited_once_with(
            {"token": "abc", "type": "signupFlowToken"}
        )

    @pytest.mark.asyncio
    async def test_find_by_otp_ignores_type(self, repo, mock_collection):
        await repo.find_by_otp("123456")

        mock_collection.find_one.assert_awaited_once_with({"token": "123456"})

    @pytest.mark.asyncio
    async def test_delete_by_user_id(self, repo, mock_collection, sample_user_id):
        mock_collection.delete_many.return_value = MagicMock(deleted_count=2)

        count = await repo.delete_by_user_id(sample_user_id, TokenType.FORGOT_PASSWORD_OTP)

        assert count == 2
        mock_collection.delete_many.assert_awaited_once_with(
            {"userId": sample_user_id, "type": "forgotPasswordOtp"}
        )

    @pytest.mark.asyncio
    async def test_delete_refresh_tokens(self, repo, mock_collection, sample_user_id):
        mock_collection.delete_many.return_value = MagicMock(deleted_count=1)

        await repo.delete_refresh_tokens(sample_user_id)

        mock_collection.delete_many.assert_awaited_once_with(
            {"userId": sample_user_id, "type": "refreshToken"}
        )

    @pytest.mark.asyncio
    async def test_delete_by_string_id(self, repo, mock_collection):
        token_id = ObjectId()
        mock_collection.delete_one.return_value = MagicMock(deleted_count=1)

        assert await repo.delete(str(token_id)) is True
        mock_collection.delete_one.assert_awaited_once_with({"_id": token_id})

    @pytest.mark.asyncio
    async def test_delete_invalid_id(self, repo, mock_collection):
        assert await repo.delete("not-an-id") is False
        mock_collection.delete_one.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_ensure_indexes(self, repo, mock_collection):
        await repo.ensure_indexes()

        calls = {c.kwargs["name"]: c for c in mock_collection.create_index.await_args_list}

        assert calls["token_unique"].kwargs["unique"] is True
        assert calls["expiresAt_ttl"].kwargs["expireAfterSeconds"] == 0

        exclusive = calls["userId_exclusive_type_unique"]
        assert exclusive.kwargs["unique"] is True
        assert set(exclusive.kwargs["partialFilterExpression"]["type"]["$in"]) == {
            "initiateSignupOtp", "forgotPasswordOtp", "loginOtp",
        }


# ─────────────────────────────────────────────────────────────────
# InMemoryTokenRepository
# ─────────────────────────────────────────────────────────────────


class TestInMemoryTokenRepository:
    @pytest.mark.asyncio
    async def test_rejects_duplicate_token_value(self, sample_user_id):
        repo = InMemoryTokenRepository()
        await repo.create(_token(sample_user_id, "111111"))

        with pytest.raises(DuplicateTokenError):
            await repo.create(_token(str(ObjectId()), "111111"))

    @pytest.mark.asyncio
    async def test_exclusive_type_is_one_per_user(self, sample_user_id):
        repo = InMemoryTokenRepository()
        await repo.create(_token(sample_user_id, "111111"))

        with pytest.raises(DuplicateTokenError):
            await repo.create(_token(sample_user_id, "222222"))

    @pytest.mark.asyncio
    async def test_refresh_tokens_are_not_exclusive(self, sample_user_id):
        repo = InMemoryTokenRepository()
        await repo.create(_token(sample_user_id, "jwt-1", TokenType.REFRESH_TOKEN))
        await repo.create(_token(sample_user_id, "jwt-2", TokenType.REFRESH_TOKEN))

        assert await repo.delete_refresh_tokens(sample_user_id) == 2

    @pytest.mark.asyncio
    async def test_find_and_delete(self, sample_user_id):
        repo = InMemoryTokenRepository()
        created = await repo.create(_token(sample_user_id, "333333"))

        assert (await repo.find_by_otp("333333"))["_id"] == created["_id"]
        assert await repo.find_by_token("333333", TokenType.FORGOT_PASSWORD_OTP) is None

        assert await repo.delete(created["_id"]) is True
        assert await repo.find_by_otp("333333") is None
        assert await repo.delete(created["_id"]) is False
