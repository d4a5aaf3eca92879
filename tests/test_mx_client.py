"""Unit tests for the MX aggregator client."""

import base64
import json

import httpx
import pytest

from bookkeeping.services.aggregator import AggregatorError, MxAggregatorClient


def _client(handler, client_id="client-id", api_key="api-key"):
    return MxAggregatorClient(
        base_url="https://int-api.mx.com/",
        client_id=client_id,
        api_key=api_key,
        transport=httpx.MockTransport(handler),
    )


class TestMxAggregatorClient:
    @pytest.mark.asyncio
    async def test_creates_user_and_returns_linked_account(self, sample_user_id):
        seen = {}

        def handler(request):
            seen["request"] = request
            return httpx.Response(200, json={"user": {"guid": "USR-abc", "id": sample_user_id}})

        account = await _client(handler).create_linked_account(sample_user_id, "a@x.com")

        request = seen["request"]
        assert request.method == "POST"
        assert str(request.url) == "https://int-api.mx.com/users"
        assert request.headers["Accept"] == "application/vnd.mx.api.v1+json"
        expected_auth = base64.b64encode(b"client-id:api-key").decode()
        assert request.headers["Authorization"] == f"Basic {expected_auth}"
        assert json.loads(request.content) == {"user": {"id": sample_user_id, "email": "a@x.com"}}

        assert account["externalUserId"] == "USR-abc"
        assert account["email"] == "a@x.com"
        assert account["metadata"] == {"mxUserId": sample_user_id}

    @pytest.mark.asyncio
    async def test_error_status_raises(self, sample_user_id):
        client = _client(lambda request: httpx.Response(503, json={"error": "unavailable"}))

        with pytest.raises(AggregatorError, match="503"):
            await client.create_linked_account(sample_user_id, "a@x.com")

    @pytest.mark.asyncio
    async def test_network_error_raises(self, sample_user_id):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(AggregatorError):
            await _client(handler).create_linked_account(sample_user_id, "a@x.com")

    @pytest.mark.asyncio
    async def test_missing_guid_raises(self, sample_user_id):
        client = _client(lambda request: httpx.Response(200, json={"user": {}}))

        with pytest.raises(AggregatorError):
            await client.create_linked_account(sample_user_id, "a@x.com")

    @pytest.mark.asyncio
    async def test_missing_credentials_raise_without_calling(self, sample_user_id):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(200, json={})

        with pytest.raises(AggregatorError, match="not configured"):
            await _client(handler, api_key=None).create_linked_account(sample_user_id, None)

        assert calls == []

    @pytest.mark.asyncio
    async def test_non_json_body_raises(self, sample_user_id):
        client = _client(lambda request: httpx.Response(200, text="<html>gateway</html>"))

        with pytest.raises(AggregatorError, match="not valid JSON"):
            await client.create_linked_account(sample_user_id, "a@x.com")
