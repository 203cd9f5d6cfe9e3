"""Core report computation primitives.

Period bucketing, period-over-period comparison, and the qualifying-payment
queries every report is built from.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Dict, List, Literal

from sqlalchemy import func
from sqlalchemy.orm import Query, Session

from consignment.models import ITEM_SOLD, ClientPayment, Expense, Item
from consignment.utils import ZERO, add_months, as_date, to_decimal, week_start

from .filters import DateRange, ReportFilters

# ---------------------------------------------------------------------------
# Date helpers
# ---------------------------------------------------------------------------

Granularity = Literal["day", "week", "month"]
GRANULARITIES = ("day", "week", "month")


def period_start(d: date | datetime, granularity: Granularity) -> date:
    d = as_date(d)
    if granularity == "day":
        return d
    if granularity == "week":
        return week_start(d)
    if granularity == "month":
        return date(d.year, d.month, 1)
    raise ValueError(f"Unsupported granularity: {granularity}")


def add_periods(d: date, n: int, granularity: Granularity) -> date:
    if granularity == "day":
        return d + timedelta(days=n)
    if granularity == "week":
        return d + timedelta(weeks=n)
    return add_months(d, n)


def generate_period_range(start: date, end: date, granularity: Granularity) -> List[date]:
    periods: List[date] = []
    current = period_start(start, granularity)
    while current <= end:
        periods.append(current)
        current = add_periods(current, 1, granularity)
    return periods


# ---------------------------------------------------------------------------
# Comparison
# ---------------------------------------------------------------------------


def percent_change(current, previous) -> float:
    """Percentage change against a positive prior base, else 0."""
    previous = to_decimal(previous)
    if previous <= 0:
        return 0.0
    change = (to_decimal(current) - previous) / previous * 100
    return round(float(change), 2)


# ---------------------------------------------------------------------------
# Ledger queries
# ---------------------------------------------------------------------------


def qualifying_payments(db: Session, date_range: DateRange, filters: ReportFilters) -> Query:
    """Client payments inside the range whose item and client pass the filters."""
    return (
        db.query(ClientPayment)
        .join(Item, Item.id == ClientPayment.item_id)
        .filter(*filters.payment_conditions(date_range))
    )


def first_payment_by_sold_item(
    db: Session, date_range: DateRange, filters: ReportFilters
) -> Dict[int, datetime]:
    """Earliest qualifying payment instant for each sold item."""
    rows = (
        qualifying_payments(db, date_range, filters)
        .filter(Item.status == ITEM_SOLD)
        .with_entities(ClientPayment.item_id, func.min(ClientPayment.paid_at))
        .group_by(ClientPayment.item_id)
        .all()
    )
    return {item_id: first_paid for item_id, first_paid in rows}


def sold_items(db: Session, first_payments: Dict[int, datetime]) -> List[Item]:
    if not first_payments:
        return []
    return db.query(Item).filter(Item.id.in_(list(first_payments))).order_by(Item.id).all()


def expenses_query(db: Session, date_range: DateRange, filters: ReportFilters) -> Query:
    return (
        db.query(Expense)
        .outerjoin(Item, Item.id == Expense.item_id)
        .filter(*filters.expense_conditions(date_range))
    )


def expenses_for_period(db: Session, date_range: DateRange, filters: ReportFilters) -> Decimal:
    total = (
        expenses_query(db, date_range, filters)
        .with_entities(func.coalesce(func.sum(Expense.amount), 0))
        .scalar()
    )
    return to_decimal(total)


def cost_of_items(items) -> Decimal:
    return sum((to_decimal(item.min_cost) for item in items), ZERO)


def average_days_to_sell(items, first_payments: Dict[int, datetime]) -> float:
    durations = [
        (first_payments[item.id] - item.created_at).days
        for item in items
        if item.id in first_payments and item.created_at is not None
    ]
    if not durations:
        return 0.0
    return round(sum(durations) / len(durations), 2)

