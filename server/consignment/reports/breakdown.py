"""Report metrics grouped by a dimension (brand, vendor, client, category).

One implementation serves every dimension; a ``Dimension`` names the
model holding the display name and the column that links a qualifying
payment row to it.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional, Sequence

from sqlalchemy import func
from sqlalchemy.orm import Session

from consignment.models import ITEM_SOLD, Brand, Category, Client, ClientPayment, Item, Vendor
from consignment.utils import ZERO, quantize_money, safe_div, to_decimal

from .engine import percent_change, qualifying_payments
from .filters import NO_FILTERS, DateRange, ReportFilters

logger = logging.getLogger(__name__)

UNASSIGNED = "Unassigned"
UNKNOWN = "Unknown"
BREAKDOWN_METRICS = ("revenue", "profit", "itemsSold", "avgOrderValue")


@dataclass(frozen=True)
class Dimension:
    key: str
    model: Any
    key_column: Any


DIMENSIONS: Dict[str, Dimension] = {
    "brand": Dimension("brand", Brand, Item.brand_id),
    "vendor": Dimension("vendor", Vendor, Item.vendor_id),
    "category": Dimension("category", Category, Item.category_id),
    "client": Dimension("client", Client, ClientPayment.client_id),
}


def get_dimension(key: str) -> Dimension:
    try:
        return DIMENSIONS[key]
    except KeyError:
        raise ValueError(f"Unsupported dimension: {key}") from None


class _GroupAccumulator:
    def __init__(self):
        self.revenue = ZERO
        self.payment_count = 0
        self.item_ids = set()
        self.sold_costs: Dict[int, Decimal] = {}

    def add(self, item_id: int, amount, min_cost=None):
        self.revenue += to_decimal(amount)
        self.payment_count += 1
        self.item_ids.add(item_id)
        if min_cost is not None:
            self.sold_costs[item_id] = to_decimal(min_cost)

    @property
    def cost(self) -> Decimal:
        return sum(self.sold_costs.values(), ZERO)


def _revenue_by_key(db: Session, dimension: Dimension, date_range: DateRange, filters: ReportFilters):
    rows = (
        qualifying_payments(db, date_range, filters)
        .with_entities(dimension.key_column, func.sum(ClientPayment.amount))
        .group_by(dimension.key_column)
        .all()
    )
    return {key: to_decimal(total) for key, total in rows}


def _names_for(db: Session, dimension: Dimension, keys: Iterable[Optional[int]]) -> Dict[int, str]:
    ids = [key for key in keys if key is not None]
    if not ids:
        return {}
    model = dimension.model
    return {row.id: row.name for row in db.query(model.id, model.name).filter(model.id.in_(ids)).all()}


def grouped_metrics(
    db: Session,
    dimension_key: str,
    date_range: DateRange,
    filters: ReportFilters = NO_FILTERS,
    metrics: Optional[Sequence[str]] = None,
) -> List[Dict[str, Any]]:
    dimension = get_dimension(dimension_key)
    requested = set(metrics or BREAKDOWN_METRICS)
    unknown = requested - set(BREAKDOWN_METRICS)
    if unknown:
        raise ValueError(f"Unsupported metrics: {', '.join(sorted(unknown))}")

    groups: Dict[Optional[int], _GroupAccumulator] = defaultdict(_GroupAccumulator)
    rows = (
        qualifying_payments(db, date_range, filters)
        .with_entities(
            dimension.key_column,
            ClientPayment.item_id,
            ClientPayment.amount,
            Item.status,
            Item.min_cost,
        )
        .order_by(ClientPayment.paid_at, ClientPayment.id)
        .all()
    )
    # A sold item is costed once, in the group of its first qualifying payment.
    costed_items = set()
    for key, item_id, amount, status, min_cost in rows:
        if status == ITEM_SOLD and item_id not in costed_items:
            costed_items.add(item_id)
            groups[key].add(item_id, amount, to_decimal(min_cost))
        else:
            groups[key].add(item_id, amount)

    previous = _revenue_by_key(db, dimension, date_range.previous(), filters)
    names = _names_for(db, dimension, groups)

    results = []
    for key, group in groups.items():
        revenue = group.revenue
        profit = revenue - group.cost
        row: Dict[str, Any] = {
            "id": key,
            "name": UNASSIGNED if key is None else (names.get(key) or UNKNOWN),
            "revenue": quantize_money(revenue),
            "item_count": len(group.item_ids),
            "payment_count": group.payment_count,
            "profit_margin": round(float(safe_div(profit, revenue) * 100), 2),
            "change": percent_change(revenue, previous.get(key, ZERO)),
        }
        if "profit" in requested:
            row["cost"] = quantize_money(group.cost)
            row["profit"] = quantize_money(profit)
        if "itemsSold" in requested:
            row["items_sold"] = len(group.sold_costs)
        if "avgOrderValue" in requested:
            row["avg_order_value"] = quantize_money(safe_div(revenue, group.payment_count))
        results.append(row)

    results.sort(key=lambda row: (-row["revenue"], row["name"]))
    logger.debug("Grouped %s rows by %s", len(results), dimension.key)
    return results


def payment_method_breakdown(
    db: Session, date_range: DateRange, filters: ReportFilters = NO_FILTERS
) -> List[Dict[str, Any]]:
    rows = (
        qualifying_payments(db, date_range, filters)
        .with_entities(
            ClientPayment.payment_method,
            func.coalesce(func.sum(ClientPayment.amount), 0),
            func.count(ClientPayment.id),
        )
        .group_by(ClientPayment.payment_method)
        .all()
    )
    grand_total = sum((to_decimal(total) for _, total, _ in rows), ZERO)
    results = []
    for method, total, count in rows:
        total = to_decimal(total)
        results.append(
            {
                "payment_method": method,
                "total_amount": quantize_money(total),
                "count": int(count),
                "percentage": round(float(safe_div(total, grand_total) * 100), 2),
                "average_amount": quantize_money(safe_div(total, int(count))),
            }
        )
    results.sort(key=lambda row: (-row["total_amount"], row["payment_method"]))
    return results
