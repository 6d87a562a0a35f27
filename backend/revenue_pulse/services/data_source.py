"""Data sources for commerce platform record collections.

A data source lists one record collection at a time and returns the
platform's envelope, a mapping with the records under ``data``. Calls are
idempotent, so the analytics service retries them freely.
"""

import logging
from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence
from typing import Any

import httpx

from revenue_pulse.core.config import settings
from revenue_pulse.core.exceptions import DataSourceError

logger = logging.getLogger(__name__)

MEMBERSHIPS = "memberships"
PAYMENTS = "payments"
PRODUCTS = "products"
PLANS = "plans"

COLLECTIONS = (MEMBERSHIPS, PAYMENTS, PRODUCTS, PLANS)


class DataSource(ABC):
    """Abstract source of record collections."""

    @abstractmethod
    async def fetch(self, collection: str, params: Mapping[str, Any]) -> Mapping[str, Any]:
        """List a collection. Returns an envelope exposing a ``data`` sequence."""
        ...  # pragma: no cover

    async def close(self) -> None:
        """Release any held resources."""
        return None


class WhopDataSource(DataSource):
    """Whop REST API client.

    The underlying ``httpx.AsyncClient`` is created on first use and reused
    for later calls until :meth:`close`.
    """

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
    ):
        self.api_key = api_key or settings.WHOP_API_KEY
        self.base_url = base_url or settings.WHOP_API_BASE_URL
        self.timeout = timeout if timeout is not None else settings.WHOP_API_TIMEOUT
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                headers={
                    "Authorization": f"Bearer {self.api_key}",
                    "Accept": "application/json",
                },
                timeout=self.timeout,
            )
        return self._client

    async def close(self) -> None:
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
        self._client = None

    async def fetch(self, collection: str, params: Mapping[str, Any]) -> Mapping[str, Any]:
        client = await self._get_client()
        try:
            response = await client.get(f"/{collection}", params=dict(params))
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            raise DataSourceError(
                f"Listing {collection} failed with status {status}: {e.response.text[:200]}",
                status,
            ) from e
        except httpx.RequestError as e:
            raise DataSourceError(f"Listing {collection} failed: {e}") from e

        try:
            payload = response.json()
        except ValueError as e:
            raise DataSourceError(f"Listing {collection} returned invalid JSON") from e

        if not isinstance(payload, Mapping):
            raise DataSourceError(f"Listing {collection} returned an unexpected payload")

        logger.debug("Fetched %s with params %s", collection, params)
        return payload


class StaticDataSource(DataSource):
    """In-memory source serving fixed record lists."""

    def __init__(self, collections: Mapping[str, Sequence[Any]] | None = None):
        self.collections = {name: list(records) for name, records in (collections or {}).items()}
        self.calls: list[tuple[str, dict[str, Any]]] = []

    async def fetch(self, collection: str, params: Mapping[str, Any]) -> Mapping[str, Any]:
        self.calls.append((collection, dict(params)))
        return {"data": list(self.collections.get(collection, []))}
