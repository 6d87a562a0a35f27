from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model serialized with camelCase keys for the dashboard client."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class MetricsSummary(CamelModel):
    mrr: float
    churn_rate: float
    new_subscriptions: int
    total_active_subscribers: int


class RevenueTrendPoint(CamelModel):
    date: str  # YYYY-MM-DD
    revenue: float


class TopProduct(CamelModel):
    name: str
    revenue: float


class AnalyticsResponse(CamelModel):
    metrics: MetricsSummary
    revenue_trend: list[RevenueTrendPoint]
    top_products: list[TopProduct]


class ErrorResponse(BaseModel):
    error: str
    message: str
