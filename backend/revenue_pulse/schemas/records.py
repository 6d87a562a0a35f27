"""Normalized commerce platform records.

Raw platform payloads are loosely shaped: fields go missing, amounts arrive
as numbers or strings, references are sometimes embedded objects and
sometimes bare ids. The ``from_raw`` constructors here never raise; anything
unreadable becomes ``None`` (or zero for payment amounts).
"""

import math
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any

from revenue_pulse.core.timestamps import parse_timestamp

# Payment amount fields, highest priority first.
PAYMENT_AMOUNT_FIELDS = ("usd_total", "total", "subtotal")

RENEWAL_PLAN_TYPE = "renewal"

# Decimal exponents of plausible prices, amounts and billing periods.
MIN_ADJUSTED_EXPONENT = -12
MAX_ADJUSTED_EXPONENT = 15


class MembershipStatus(str, Enum):
    ACTIVE = "active"
    TRIALING = "trialing"
    CANCELED = "canceled"
    PAST_DUE = "past_due"
    OTHER = "other"

    @classmethod
    def parse(cls, value: object) -> "MembershipStatus":
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                pass
        return cls.OTHER


ACTIVE_STATUSES = frozenset({MembershipStatus.ACTIVE, MembershipStatus.TRIALING})


def first_present(record: Mapping[str, Any], *fields: str) -> Any:
    """Return the value of the first field that is present and not None."""
    for name in fields:
        value = record.get(name)
        if value is not None:
            return value
    return None


def to_decimal(value: object) -> Decimal | None:
    """Read a finite number from an int, float, Decimal or numeric string.

    Non-zero values below 1e-12 or at or above 1e16 in magnitude are not
    plausible prices, amounts or periods and are treated as absent.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, float):
        if not math.isfinite(value):
            return None
        number = Decimal(str(value))
    elif isinstance(value, int | Decimal):
        number = Decimal(value)
    elif isinstance(value, str):
        try:
            number = Decimal(value.strip())
        except InvalidOperation:
            return None
    else:
        return None
    if not number.is_finite():
        return None
    if number.is_zero():
        return Decimal(0)
    if not MIN_ADJUSTED_EXPONENT <= number.adjusted() <= MAX_ADJUSTED_EXPONENT:
        return None
    return number


def to_id(value: object) -> str | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return str(value)
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def _as_mapping(raw: object) -> Mapping[str, Any]:
    return raw if isinstance(raw, Mapping) else {}


def _reference(raw: Mapping[str, Any], field: str) -> tuple[str | None, Mapping[str, Any] | None]:
    """Split a reference field into (id, embedded object).

    The field may hold an embedded object with an ``id``, or a bare id.
    Falls back to ``<field>_id`` when neither carries a usable id.
    """
    value = raw.get(field)
    embedded = value if isinstance(value, Mapping) else None
    ref_id = to_id(embedded.get("id")) if embedded is not None else to_id(value)
    if ref_id is None:
        ref_id = to_id(raw.get(f"{field}_id"))
    return ref_id, embedded


@dataclass(frozen=True)
class Plan:
    """Pricing template. Every field may be missing on an embedded plan."""

    id: str | None = None
    renewal_price: Decimal | None = None
    billing_period_days: Decimal | None = None
    plan_type: str | None = None

    @classmethod
    def from_raw(cls, raw: object) -> "Plan":
        data = _as_mapping(raw)
        plan_type = data.get("plan_type")
        return cls(
            id=to_id(data.get("id")),
            renewal_price=to_decimal(data.get("renewal_price")),
            billing_period_days=to_decimal(data.get("billing_period")),
            plan_type=plan_type if isinstance(plan_type, str) else None,
        )

    @property
    def is_renewal(self) -> bool:
        return self.plan_type == RENEWAL_PLAN_TYPE


@dataclass(frozen=True)
class Membership:
    id: str | None
    status: MembershipStatus
    created_at: datetime | None = None
    canceled_at: datetime | None = None
    # Current billing cycle, carried for callers; MRR uses the plan period only.
    renewal_period_start: datetime | None = None
    renewal_period_end: datetime | None = None
    plan_id: str | None = None
    embedded_plan: Plan | None = None

    @classmethod
    def from_raw(cls, raw: object) -> "Membership":
        data = _as_mapping(raw)
        plan_id, embedded = _reference(data, "plan")
        return cls(
            id=to_id(data.get("id")),
            status=MembershipStatus.parse(data.get("status")),
            created_at=parse_timestamp(data.get("created_at")),
            canceled_at=parse_timestamp(data.get("canceled_at")),
            renewal_period_start=parse_timestamp(data.get("renewal_period_start")),
            renewal_period_end=parse_timestamp(data.get("renewal_period_end")),
            plan_id=plan_id,
            embedded_plan=Plan.from_raw(embedded) if embedded is not None else None,
        )

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_STATUSES


@dataclass(frozen=True)
class Payment:
    """A completed charge. ``amount`` is in minor units (cents)."""

    id: str | None
    created_at: datetime | None
    amount: Decimal
    product_id: str | None = None

    @classmethod
    def from_raw(cls, raw: object) -> "Payment":
        data = _as_mapping(raw)
        product_id, _ = _reference(data, "product")
        amount = to_decimal(first_present(data, *PAYMENT_AMOUNT_FIELDS))
        return cls(
            id=to_id(data.get("id")),
            created_at=parse_timestamp(data.get("created_at")),
            amount=amount if amount is not None else Decimal(0),
            product_id=product_id,
        )


@dataclass(frozen=True)
class Product:
    id: str | None
    title: str | None = None

    @classmethod
    def from_raw(cls, raw: object) -> "Product":
        data = _as_mapping(raw)
        title = data.get("title")
        return cls(
            id=to_id(data.get("id")),
            title=title if isinstance(title, str) else None,
        )
