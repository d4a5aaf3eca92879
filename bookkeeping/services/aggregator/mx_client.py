"""
Banking data aggregator client.

Creating an account registers the user with the MX Platform so bank
connections can later be attached to it.
"""

import logging
from abc import ABC, abstractmethod
from typing import Optional

import httpx

from bookkeeping.models.user import build_linked_account

logger = logging.getLogger(__name__)

MX_ACCEPT_HEADER = "application/vnd.mx.api.v1+json"


class AggregatorError(Exception):
    """The aggregator rejected or failed a request."""


class AggregatorClient(ABC):

    @abstractmethod
    async def create_linked_account(self, user_id: str, email: Optional[str]) -> dict:
        """
        Create the aggregator-side user for one of our users.

        Returns:
            Linked account entry to append to the user's ``linkedAccounts``

        Raises:
            AggregatorError: If the aggregator call fails
        """


class MxAggregatorClient(AggregatorClient):
    """MX Platform API client (``POST /users``)."""

    def __init__(
        self,
        base_url: str,
        client_id: Optional[str],
        api_key: Optional[str],
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._base_url = base_url.rstrip("/")
        self._client_id = client_id
        self._api_key = api_key
        self._timeout = timeout
        self._transport = transport

    async def create_linked_account(self, user_id: str, email: Optional[str]) -> dict:
        if not self._client_id or not self._api_key:
            raise AggregatorError("MX credentials not configured")

        payload = {"user": {"id": user_id, "email": email}}

        async with httpx.AsyncClient(
            base_url=self._base_url,
            auth=(self._client_id, self._api_key),
            timeout=self._timeout,
            transport=self._transport,
        ) as client:
            try:
                response = await client.post(
                    "/users",
                    json=payload,
                    headers={
                        "Accept": MX_ACCEPT_HEADER,
                        "Content-Type": "application/json",
                    },
                )
                response.raise_for_status()
            except httpx.HTTPStatusError as e:
                logger.error(f"MX create user failed with {e.response.status_code} for user {user_id}")
                raise AggregatorError(f"MX returned {e.response.status_code}") from e
            except httpx.HTTPError as e:
                logger.error(f"MX create user request failed for user {user_id}: {e}")
                raise AggregatorError(str(e)) from e

        try:
            mx_user = response.json().get("user") or {}
        except ValueError as e:
            logger.error(f"MX create user returned an unreadable body for user {user_id}")
            raise AggregatorError("MX response was not valid JSON") from e

        guid = mx_user.get("guid")
        if not guid:
            raise AggregatorError("MX response did not include a user guid")

        logger.info(f"MX user {guid} created for user {user_id}")
        return build_linked_account(
            external_user_id=guid,
            email=email,
            metadata={"mxUserId": mx_user.get("id")},
        )
