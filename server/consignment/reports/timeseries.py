"""Time-bucketed report metrics.

Buckets are keyed by the ISO date of their start: the day itself, the
Sunday on or before it, or the first of the month. Rows are bucketed in
Python so the same code runs on SQLite and PostgreSQL.
"""

from __future__ import annotations

from collections import defaultdict
from datetime import date
from decimal import Decimal
from typing import Dict, List, Literal

from sqlalchemy.orm import Session

from consignment.models import ClientPayment, Expense
from consignment.utils import ZERO, to_decimal

from .engine import (
    GRANULARITIES,
    Granularity,
    expenses_query,
    first_payment_by_sold_item,
    generate_period_range,
    period_start,
    qualifying_payments,
    sold_items,
)
from .filters import NO_FILTERS, DateRange, ReportFilters

Metric = Literal["revenue", "profit", "itemsSold", "payments", "expenses"]
METRICS = ("revenue", "profit", "itemsSold", "payments", "expenses")


def _payment_buckets(db: Session, date_range: DateRange, filters: ReportFilters, granularity: Granularity):
    amounts: Dict[date, Decimal] = defaultdict(lambda: ZERO)
    counts: Dict[date, int] = defaultdict(int)
    rows = (
        qualifying_payments(db, date_range, filters)
        .with_entities(ClientPayment.paid_at, ClientPayment.amount)
        .all()
    )
    for paid_at, amount in rows:
        bucket = period_start(paid_at, granularity)
        amounts[bucket] += to_decimal(amount)
        counts[bucket] += 1
    return amounts, counts


def _sold_item_buckets(db: Session, date_range: DateRange, filters: ReportFilters, granularity: Granularity):
    costs: Dict[date, Decimal] = defaultdict(lambda: ZERO)
    counts: Dict[date, int] = defaultdict(int)
    first_payments = first_payment_by_sold_item(db, date_range, filters)
    for item in sold_items(db, first_payments):
        bucket = period_start(first_payments[item.id], granularity)
        costs[bucket] += to_decimal(item.min_cost)
        counts[bucket] += 1
    return costs, counts


def _expense_buckets(db: Session, date_range: DateRange, filters: ReportFilters, granularity: Granularity):
    amounts: Dict[date, Decimal] = defaultdict(lambda: ZERO)
    counts: Dict[date, int] = defaultdict(int)
    rows = expenses_query(db, date_range, filters).with_entities(Expense.incurred_at, Expense.amount).all()
    for incurred_at, amount in rows:
        bucket = period_start(incurred_at, granularity)
        amounts[bucket] += to_decimal(amount)
        counts[bucket] += 1
    return amounts, counts


def build_time_series(
    db: Session,
    date_range: DateRange,
    filters: ReportFilters = NO_FILTERS,
    metric: Metric = "revenue",
    granularity: Granularity = "day",
    dense: bool = False,
) -> List[Dict]:
    """Return ``[{period, value, count}]`` sorted by period.

    With ``dense`` every bucket in the range is emitted, zero-filled;
    otherwise only buckets that received at least one row appear.
    """
    if metric not in METRICS:
        raise ValueError(f"Unsupported metric: {metric}")
    if granularity not in GRANULARITIES:
        raise ValueError(f"Unsupported granularity: {granularity}")

    values: Dict[date, float] = {}
    counts: Dict[date, int] = {}

    if metric in ("revenue", "payments"):
        amounts, counts = _payment_buckets(db, date_range, filters, granularity)
        for bucket, amount in amounts.items():
            values[bucket] = float(amount) if metric == "revenue" else float(counts[bucket])
    elif metric == "profit":
        amounts, counts = _payment_buckets(db, date_range, filters, granularity)
        costs, _ = _sold_item_buckets(db, date_range, filters, granularity)
        for bucket in set(amounts) | set(costs):
            values[bucket] = float(amounts.get(bucket, ZERO) - costs.get(bucket, ZERO))
    elif metric == "itemsSold":
        _, counts = _sold_item_buckets(db, date_range, filters, granularity)
        values = {bucket: float(count) for bucket, count in counts.items()}
    else:
        amounts, counts = _expense_buckets(db, date_range, filters, granularity)
        values = {bucket: float(amount) for bucket, amount in amounts.items()}

    if dense:
        buckets = generate_period_range(date_range.start, date_range.end, granularity)
    else:
        buckets = sorted(values)

    return [
        {
            "period": bucket.isoformat(),
            "value": round(values.get(bucket, 0.0), 2),
            "count": counts.get(bucket, 0),
        }
        for bucket in buckets
    ]
