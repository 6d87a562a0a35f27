"""Analytics aggregation: fetch every collection, then compute the dashboard.

The four record collections are fetched concurrently, each with its own
retry budget. Metrics are computed only once all four have arrived; if any
collection exhausts its retries the whole aggregation fails and no partial
snapshot is produced.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable, Mapping
from datetime import UTC, datetime
from typing import Any

from revenue_pulse.core.config import Settings, settings
from revenue_pulse.core.exceptions import ConfigurationError
from revenue_pulse.core.retry import retry_with_backoff
from revenue_pulse.schemas.analytics import (
    AnalyticsResponse,
    ErrorResponse,
    MetricsSummary,
    RevenueTrendPoint,
    TopProduct,
)
from revenue_pulse.schemas.records import Membership, Payment, Plan, Product
from revenue_pulse.services.data_source import (
    COLLECTIONS,
    MEMBERSHIPS,
    PAYMENTS,
    PLANS,
    PRODUCTS,
    DataSource,
)
from revenue_pulse.services.metrics_engine import MetricsSnapshot, compute_snapshot

logger = logging.getLogger(__name__)

ERROR_TITLE = "Failed to fetch analytics data"
MISSING_COMPANY_MESSAGE = "Server configuration is missing WHOP_COMPANY_ID"


def extract_records(envelope: object) -> list[Any]:
    """Return the ``data`` sequence of a collection envelope, or an empty list."""
    if not isinstance(envelope, Mapping):
        return []
    data = envelope.get("data")
    if isinstance(data, list | tuple):
        return list(data)
    return []


def build_response(snapshot: MetricsSnapshot) -> AnalyticsResponse:
    return AnalyticsResponse(
        metrics=MetricsSummary(
            mrr=snapshot.mrr,
            churn_rate=snapshot.churn_rate,
            new_subscriptions=snapshot.new_subscriptions,
            total_active_subscribers=snapshot.total_active_subscribers,
        ),
        revenue_trend=[
            RevenueTrendPoint(date=point.date, revenue=point.revenue)
            for point in snapshot.revenue_trend
        ],
        top_products=[
            TopProduct(name=product.name, revenue=product.revenue)
            for product in snapshot.top_products
        ],
    )


def build_error(exc: BaseException) -> ErrorResponse:
    """Error payload: a generic title plus the underlying error's description."""
    return ErrorResponse(error=ERROR_TITLE, message=str(exc) or "Unknown error")


class AnalyticsService:
    """Aggregates commerce records into dashboard metrics.

    A fresh service is used per request; it holds no state between calls.
    """

    def __init__(
        self,
        data_source: DataSource,
        config: Settings | None = None,
        clock: Callable[[], datetime] | None = None,
        sleep: Callable[[float], Awaitable[object]] = asyncio.sleep,
    ):
        self.data_source = data_source
        self.config = config or settings
        self.clock = clock or (lambda: datetime.now(UTC))
        self._sleep = sleep

    def collection_params(self, company_id: str) -> dict[str, dict[str, Any]]:
        """Query parameters per collection. Payments cannot be company-scoped."""
        return {
            MEMBERSHIPS: {"company_id": company_id, "first": self.config.MEMBERSHIPS_PAGE_SIZE},
            PAYMENTS: {"first": self.config.PAYMENTS_PAGE_SIZE},
            PRODUCTS: {"company_id": company_id, "first": self.config.PRODUCTS_PAGE_SIZE},
            PLANS: {"company_id": company_id, "first": self.config.PLANS_PAGE_SIZE},
        }

    async def _fetch_collection(self, collection: str, params: dict[str, Any]) -> list[Any]:
        envelope = await retry_with_backoff(
            lambda: self.data_source.fetch(collection, params),
            max_attempts=self.config.FETCH_MAX_ATTEMPTS,
            initial_delay=self.config.FETCH_INITIAL_DELAY_MS,
            sleep=self._sleep,
            description=f"Fetching {collection}",
        )
        return extract_records(envelope)

    async def fetch_collections(self) -> dict[str, list[Any]]:
        """Fetch all four collections concurrently.

        Raises:
            ConfigurationError: If no company id is configured. Nothing is
                fetched in that case.
            Exception: The failure of the first collection (in
                ``COLLECTIONS`` order) whose retries ran out.
        """
        company_id = self.config.WHOP_COMPANY_ID.strip()
        if not company_id:
            logger.error("Missing WHOP_COMPANY_ID setting")
            raise ConfigurationError(MISSING_COMPANY_MESSAGE)

        params = self.collection_params(company_id)
        results = await asyncio.gather(
            *(self._fetch_collection(name, params[name]) for name in COLLECTIONS),
            return_exceptions=True,
        )
        for result in results:
            if isinstance(result, BaseException):
                raise result
        return dict(zip(COLLECTIONS, results, strict=True))  # type: ignore[arg-type]

    async def get_snapshot(self) -> MetricsSnapshot:
        raw = await self.fetch_collections()
        memberships = [Membership.from_raw(record) for record in raw[MEMBERSHIPS]]
        payments = [Payment.from_raw(record) for record in raw[PAYMENTS]]
        products = [Product.from_raw(record) for record in raw[PRODUCTS]]
        plans = [Plan.from_raw(record) for record in raw[PLANS]]

        snapshot = compute_snapshot(memberships, payments, products, plans, self.clock())
        logger.info(
            "Computed analytics from %d memberships, %d payments, %d products, %d plans",
            len(memberships),
            len(payments),
            len(products),
            len(plans),
        )
        return snapshot

    async def get_analytics(self) -> AnalyticsResponse:
        return build_response(await self.get_snapshot())
