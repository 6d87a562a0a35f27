from revenue_pulse.schemas.analytics import (
    AnalyticsResponse,
    ErrorResponse,
    MetricsSummary,
    RevenueTrendPoint,
    TopProduct,
)
from revenue_pulse.schemas.records import (
    Membership,
    MembershipStatus,
    Payment,
    Plan,
    Product,
)

__all__ = [
    "AnalyticsResponse",
    "ErrorResponse",
    "MetricsSummary",
    "RevenueTrendPoint",
    "TopProduct",
    "Membership",
    "MembershipStatus",
    "Payment",
    "Plan",
    "Product",
]
