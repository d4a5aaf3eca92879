"""Shared test fixtures for Bookkeeping backend tests."""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest
from bson import ObjectId

from common.auth import JWTAuth, PasswordHasher
from bookkeeping.auth.services.token_issuer import TokenIssuer
from bookkeeping.models.user import build_linked_account
from bookkeeping.repositories.memory import InMemoryTokenRepository, InMemoryUserRepository
from bookkeeping.services.aggregator.mx_client import AggregatorClient, AggregatorError
from bookkeeping.services.notifications.publisher import NotificationPublisher


# ─────────────────────────────────────────────────────────────────
# Test doubles
# ─────────────────────────────────────────────────────────────────


class RecordingPublisher(NotificationPublisher):
    """Keeps published events instead of delivering them."""

    def __init__(self):
        self.events = []

    def publish(self, event):
        self.events.append(event)

    def last(self):
        return self.events[-1]


class FakeAggregator(AggregatorClient):
    def __init__(self):
        self.fail = False
        self.calls = []

    async def create_linked_account(self, user_id, email):
        self.calls.append((user_id, email))
        if self.fail:
            raise AggregatorError("MX returned 503")
        return build_linked_account(external_user_id=f"USR-{len(self.calls)}", email=email)


class ScriptedOtpIssuer(TokenIssuer):
    """Hands out queued OTPs first, then random ones."""

    def __init__(self, jwt_auth, otps=()):
        super().__init__(jwt_auth, cookie_secure=False)
        self.otps = list(otps)

    def generate_otp_token(self):
        if self.otps:
            return self.otps.pop(0)
        return super().generate_otp_token()


# ─────────────────────────────────────────────────────────────────
# Fixtures
# ─────────────────────────────────────────────────────────────────


@pytest.fixture
def sample_user_id():
    return str(ObjectId())


@pytest.fixture
def mock_collection():
    collection = AsyncMock()
    # Motor's find() returns a cursor synchronously (not a coroutine),
    # so use MagicMock for it. Async methods like find_one, insert_one,
    # delete_many etc. stay as AsyncMock.
    collection.find = MagicMock()
    return collection


@pytest.fixture
def mock_db(mock_collection):
    db = MagicMock()
    db.__getitem__ = MagicMock(return_value=mock_collection)
    return db


@pytest.fixture
def jwt_auth():
    return JWTAuth(secret="test-access-secret", refresh_secret="test-refresh-secret")


@pytest.fixture
def hasher():
    # Minimum bcrypt cost keeps the suite fast
    return PasswordHasher(rounds=4)


@pytest.fixture
def issuer(jwt_auth):
    return ScriptedOtpIssuer(jwt_auth)


@pytest.fixture
def users():
    return InMemoryUserRepository()


@pytest.fixture
def tokens():
    return InMemoryTokenRepository()


@pytest.fixture
def publisher():
    return RecordingPublisher()


@pytest.fixture
def aggregator():
    return FakeAggregator()


@pytest.fixture
def ctx(users, tokens, issuer, hasher, publisher, aggregator, jwt_auth):
    """All flow collaborators in one place."""
    return SimpleNamespace(
        users=users,
        tokens=tokens,
        issuer=issuer,
        hasher=hasher,
        publisher=publisher,
        aggregator=aggregator,
        jwt_auth=jwt_auth,
    )
