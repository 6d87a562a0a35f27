"""Dashboard metrics computed from normalized commerce records.

Every function here is pure: the only clock is the ``now`` argument, and
inputs are never mutated. Amounts are accumulated in minor units as
``Decimal`` and converted to major units once, at the output boundary, by
:func:`to_major_units`.

Formulas
--------
MRR         = sum over active/trialing renewal memberships of
              renewal_price * 30 / billing_period_days
Churn rate  = canceled in [now-30d, now] / live at now-30d * 100
New subs    = created in [now-30d, now]
"""

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, fields
from datetime import UTC, date, datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal, localcontext

from revenue_pulse.schemas.records import Membership, Payment, Plan, Product

NEW_SUBSCRIPTION_WINDOW_DAYS = 30
CHURN_WINDOW_DAYS = 30
TOP_PRODUCTS_WINDOW_DAYS = 30
REVENUE_TREND_DAYS = 90
TOP_PRODUCTS_LIMIT = 5

DAYS_PER_MONTH = Decimal(30)
MINOR_UNITS_PER_MAJOR = Decimal(100)


@dataclass
class DailyRevenue:
    date: str
    revenue: float


@dataclass
class ProductRevenue:
    name: str
    revenue: float


@dataclass
class MetricsSnapshot:
    """Derived dashboard metrics. Currency values are in major units."""

    mrr: float
    churn_rate: float
    new_subscriptions: int
    total_active_subscribers: int
    revenue_trend: list[DailyRevenue]
    top_products: list[ProductRevenue]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def to_major_units(minor: Decimal) -> float:
    """Round to the nearest minor unit, then convert to major units."""
    with localcontext() as ctx:
        # quantize needs every integer digit in the working precision
        ctx.prec = max(ctx.prec, minor.adjusted() + 3)
        whole = minor.quantize(Decimal(1), rounding=ROUND_HALF_UP)
        return float(whole / MINOR_UNITS_PER_MAJOR)


def _utc(now: datetime) -> datetime:
    if now.tzinfo is None:
        return now.replace(tzinfo=UTC)
    return now.astimezone(UTC)


def in_window(instant: datetime | None, start: datetime, end: datetime) -> bool:
    """Whether an instant falls in ``[start, end]``. Unknown instants never do."""
    return instant is not None and start <= instant <= end


def index_by_id(records: Iterable[Plan | Product]) -> dict[str, Plan | Product]:
    """Map id to record, keeping the first record seen for each id."""
    index: dict[str, Plan | Product] = {}
    for record in records:
        if record.id is not None:
            index.setdefault(record.id, record)
    return index


# ---------------------------------------------------------------------------
# Plans and MRR
# ---------------------------------------------------------------------------


def merge_plan(embedded: Plan | None, resolved: Plan | None) -> Plan | None:
    """Combine an embedded plan with the plan resolved from the plan collection.

    The resolved plan is authoritative; embedded fields only fill its gaps.
    """
    if embedded is None:
        return resolved
    if resolved is None:
        return embedded
    merged = {}
    for field in fields(Plan):
        value = getattr(resolved, field.name)
        merged[field.name] = value if value is not None else getattr(embedded, field.name)
    return Plan(**merged)


def resolve_plan(membership: Membership, plans_by_id: Mapping[str, Plan]) -> Plan | None:
    resolved = plans_by_id.get(membership.plan_id) if membership.plan_id else None
    return merge_plan(membership.embedded_plan, resolved)


def monthly_amount(plan: Plan | None) -> Decimal:
    """Monthly-normalized renewal price in minor units.

    Non-renewal plans and plans without a price contribute nothing. A
    missing or non-positive billing period counts as one month.
    """
    if plan is None or not plan.is_renewal:
        return Decimal(0)
    price = plan.renewal_price
    if not price:
        return Decimal(0)
    days = plan.billing_period_days
    if days is None or days <= 0:
        return price
    return price * DAYS_PER_MONTH / days


def active_memberships(memberships: Iterable[Membership]) -> list[Membership]:
    return [m for m in memberships if m.is_active]


def calculate_mrr(memberships: Iterable[Membership], plans: Iterable[Plan]) -> Decimal:
    """Unrounded MRR in minor units across active and trialing memberships."""
    plans_by_id = index_by_id(plans)
    total = Decimal(0)
    for membership in active_memberships(memberships):
        total += monthly_amount(resolve_plan(membership, plans_by_id))  # type: ignore[arg-type]
    return total


# ---------------------------------------------------------------------------
# Subscriber counts and churn
# ---------------------------------------------------------------------------


def count_active_subscribers(memberships: Iterable[Membership]) -> int:
    return len(active_memberships(memberships))


def count_new_subscriptions(memberships: Iterable[Membership], now: datetime) -> int:
    now = _utc(now)
    start = now - timedelta(days=NEW_SUBSCRIPTION_WINDOW_DAYS)
    return sum(1 for m in memberships if in_window(m.created_at, start, now))


def _live_at(membership: Membership, cutoff: datetime) -> bool:
    if membership.created_at is None or membership.created_at > cutoff:
        return False
    return membership.canceled_at is None or membership.canceled_at > cutoff


def calculate_churn_rate(memberships: Sequence[Membership], now: datetime) -> float:
    """Percentage of memberships live 30 days ago that were canceled since.

    The numerator counts every membership with a cancellation inside
    ``[now-30d, now]``, whatever its current status. Returns 0 when no
    membership was live at the start of the window.
    """
    now = _utc(now)
    cutoff = now - timedelta(days=CHURN_WINDOW_DAYS)
    live = sum(1 for m in memberships if _live_at(m, cutoff))
    if live == 0:
        return 0.0
    canceled = sum(1 for m in memberships if in_window(m.canceled_at, cutoff, now))
    rate = Decimal(canceled) * 100 / Decimal(live)
    return float(rate.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


# ---------------------------------------------------------------------------
# Revenue
# ---------------------------------------------------------------------------


def revenue_trend(
    payments: Iterable[Payment], now: datetime, days: int = REVENUE_TREND_DAYS
) -> list[DailyRevenue]:
    """Daily revenue for the ``days`` calendar days ending today, oldest first.

    Payments are bucketed by their UTC calendar date. Days without payments
    report zero.
    """
    now = _utc(now)
    today = now.date()
    window_start = now - timedelta(days=days)

    buckets: dict[date, Decimal] = {
        today - timedelta(days=offset): Decimal(0) for offset in range(days - 1, -1, -1)
    }
    for payment in payments:
        if not in_window(payment.created_at, window_start, now):
            continue
        day = payment.created_at.date()  # type: ignore[union-attr]
        if day in buckets:
            buckets[day] += payment.amount

    return [
        DailyRevenue(date=day.isoformat(), revenue=to_major_units(total))
        for day, total in buckets.items()
    ]


def product_name(product_id: str, products_by_id: Mapping[str, Product]) -> str:
    product = products_by_id.get(product_id)
    if product is not None and product.title:
        return product.title
    return f"Product {product_id}"


def top_products(
    payments: Iterable[Payment],
    products: Iterable[Product],
    now: datetime,
    limit: int = TOP_PRODUCTS_LIMIT,
) -> list[ProductRevenue]:
    """Products ranked by revenue over the trailing 30 days.

    Ties keep the order in which products were first seen.
    """
    now = _utc(now)
    window_start = now - timedelta(days=TOP_PRODUCTS_WINDOW_DAYS)

    totals: dict[str, Decimal] = {}
    for payment in payments:
        if payment.product_id is None:
            continue
        if not in_window(payment.created_at, window_start, now):
            continue
        totals[payment.product_id] = totals.get(payment.product_id, Decimal(0)) + payment.amount

    products_by_id = index_by_id(products)
    ranked = sorted(totals.items(), key=lambda item: item[1], reverse=True)
    return [
        ProductRevenue(
            name=product_name(product_id, products_by_id),  # type: ignore[arg-type]
            revenue=to_major_units(total),
        )
        for product_id, total in ranked[:limit]
    ]


# ---------------------------------------------------------------------------
# Snapshot
# ---------------------------------------------------------------------------


def compute_snapshot(
    memberships: Sequence[Membership],
    payments: Sequence[Payment],
    products: Sequence[Product],
    plans: Sequence[Plan],
    now: datetime,
) -> MetricsSnapshot:
    """Compute every dashboard metric against a single ``now``."""
    return MetricsSnapshot(
        mrr=to_major_units(calculate_mrr(memberships, plans)),
        churn_rate=calculate_churn_rate(memberships, now),
        new_subscriptions=count_new_subscriptions(memberships, now),
        total_active_subscribers=count_active_subscribers(memberships),
        revenue_trend=revenue_trend(payments, now),
        top_products=top_products(payments, products, now),
    )
