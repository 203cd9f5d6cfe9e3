"""Inventory health snapshot relative to a supplied clock."""

from __future__ import annotations

from collections import defaultdict
from datetime import datetime
from typing import Any, Dict, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from consignment.models import (
    ACTIVE_ITEM_STATUSES,
    ITEM_IN_STORE,
    ITEM_RESERVED,
    ITEM_RETURNED,
    ITEM_SOLD,
    Category,
    ClientPayment,
    Item,
)
from consignment.utils import ZERO, quantize_money, to_decimal, utcnow

from .breakdown import UNASSIGNED
from .filters import NO_FILTERS, ReportFilters

SLOW_MOVING_DAYS = 90
FAST_MOVING_DAYS = 30


def aging_bucket(age_days: int) -> str:
    if age_days < 30:
        return "under_30_days"
    if age_days <= 90:
        return "days_30_to_90"
    if age_days <= 180:
        return "days_91_to_180"
    return "over_180_days"


def inventory_health(
    db: Session, filters: ReportFilters = NO_FILTERS, now: Optional[datetime] = None
) -> Dict[str, Any]:
    now = now or utcnow()
    items = db.query(Item).filter(*filters.item_conditions()).all()

    first_payments = dict(
        db.query(ClientPayment.item_id, func.min(ClientPayment.paid_at))
        .join(Item, Item.id == ClientPayment.item_id)
        .filter(Item.status == ITEM_SOLD, *filters.item_conditions())
        .group_by(ClientPayment.item_id)
        .all()
    )
    category_names = dict(db.query(Category.id, Category.name).all())

    status_counts = {status: 0 for status in (ITEM_IN_STORE, ITEM_RESERVED, ITEM_SOLD, ITEM_RETURNED)}
    aging = {"under_30_days": 0, "days_30_to_90": 0, "days_91_to_180": 0, "over_180_days": 0}
    categories: Dict[Optional[int], Dict[str, Any]] = defaultdict(
        lambda: {"item_count": 0, "total_value": ZERO, "total_age": 0}
    )
    total_value = ZERO
    total_age = 0
    slow_moving = 0
    fast_moving = 0

    for item in items:
        age = max((now - item.created_at).days, 0)
        cost = to_decimal(item.min_cost)
        status_counts[item.status] = status_counts.get(item.status, 0) + 1
        total_value += cost
        total_age += age

        if item.status in ACTIVE_ITEM_STATUSES:
            aging[aging_bucket(age)] += 1
            if age > SLOW_MOVING_DAYS:
                slow_moving += 1
        elif item.status == ITEM_SOLD:
            first_paid_at = first_payments.get(item.id)
            if first_paid_at and (first_paid_at - item.created_at).days < FAST_MOVING_DAYS:
                fast_moving += 1

        bucket = categories[item.category_id]
        bucket["item_count"] += 1
        bucket["total_value"] += cost
        bucket["total_age"] += age

    breakdown = [
        {
            "category_id": category_id,
            "category_name": category_names.get(category_id, UNASSIGNED) if category_id else UNASSIGNED,
            "item_count": bucket["item_count"],
            "total_value": quantize_money(bucket["total_value"]),
            "average_age": round(bucket["total_age"] / bucket["item_count"], 1),
        }
        for category_id, bucket in categories.items()
    ]
    breakdown.sort(key=lambda row: (-row["item_count"], row["category_name"]))

    return {
        "as_of": now,
        "total_items": len(items),
        "in_store_items": status_counts[ITEM_IN_STORE],
        "reserved_items": status_counts[ITEM_RESERVED],
        "sold_items": status_counts[ITEM_SOLD],
        "returned_items": status_counts[ITEM_RETURNED],
        "total_value": quantize_money(total_value),
        "average_age": round(total_age / len(items), 1) if items else 0.0,
        "slow_moving_items": slow_moving,
        "fast_moving_items": fast_moving,
        "categories_breakdown": breakdown,
        "aging_analysis": aging,
    }
