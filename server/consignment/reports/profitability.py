from __future__ import annotations

from typing import Any, Dict

from sqlalchemy import func
from sqlalchemy.orm import Session

from consignment.models import ITEM_SOLD, Brand, ClientPayment, Item, Vendor
from consignment.utils import quantize_money, safe_div, to_decimal

from .engine import qualifying_payments
from .filters import NO_FILTERS, DateRange, ReportFilters

DEFAULT_LIMIT = 50
MAX_LIMIT = 500


def item_profitability(
    db: Session,
    date_range: DateRange,
    filters: ReportFilters = NO_FILTERS,
    limit: int = DEFAULT_LIMIT,
    offset: int = 0,
) -> Dict[str, Any]:
    """Rank sold items by profit over their qualifying payments.

    ``total_count`` counts every qualifying sold item regardless of paging.
    """
    if limit < 1 or limit > MAX_LIMIT:
        raise ValueError(f"Limit must be between 1 and {MAX_LIMIT}.")
    if offset < 0:
        raise ValueError("Offset cannot be negative.")

    sold = qualifying_payments(db, date_range, filters).filter(Item.status == ITEM_SOLD)

    total_count = sold.with_entities(func.count(func.distinct(ClientPayment.item_id))).scalar() or 0

    revenue = func.sum(ClientPayment.amount)
    unit_cost = func.coalesce(Item.min_cost, Item.max_cost, 0)
    rows = (
        sold.outerjoin(Brand, Brand.id == Item.brand_id)
        .outerjoin(Vendor, Vendor.id == Item.vendor_id)
        .with_entities(
            Item,
            Brand.name.label("brand_name"),
            Vendor.name.label("vendor_name"),
            revenue.label("revenue"),
            func.min(ClientPayment.paid_at).label("first_paid_at"),
        )
        .group_by(Item.id, Brand.name, Vendor.name)
        .order_by((revenue - unit_cost).desc(), Item.id)
        .limit(limit)
        .offset(offset)
        .all()
    )

    items = []
    for item, brand_name, vendor_name, item_revenue, first_paid_at in rows:
        item_revenue = to_decimal(item_revenue)
        cost = item.unit_cost
        profit = item_revenue - cost
        items.append(
            {
                "item_id": item.id,
                "title": item.title,
                "model": item.model,
                "brand": brand_name,
                "vendor": vendor_name,
                "status": item.status,
                "acquisition_date": item.created_at.date() if item.created_at else None,
                "revenue": quantize_money(item_revenue),
                "cost": quantize_money(cost),
                "profit": quantize_money(profit),
                "margin": round(float(safe_div(profit, item_revenue) * 100), 2),
                "sold_date": first_paid_at.date() if first_paid_at else None,
                "days_to_sell": (first_paid_at - item.created_at).days
                if first_paid_at and item.created_at
                else None,
            }
        )
    return {"items": items, "total_count": int(total_count)}
