"""Single-period KPI summary with prior-period comparison.

Every figure is derived from qualifying payments: payments whose paid_at
falls inside the full-day range and whose item (and client, when a client
filter is set) passes the report filters.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Any, Dict, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from consignment.models import PLAN_ACTIVE, Brand, ClientPayment, InstallmentPlan, Item, Vendor
from consignment.utils import quantize_money, safe_div, to_decimal, utcnow

from .engine import (
    average_days_to_sell,
    cost_of_items,
    expenses_for_period,
    first_payment_by_sold_item,
    percent_change,
    qualifying_payments,
    sold_items,
)
from .filters import NO_FILTERS, DateRange, ReportFilters

logger = logging.getLogger(__name__)

HUNDRED = Decimal("100")
NOT_AVAILABLE = "N/A"


@dataclass(frozen=True)
class PeriodTotals:
    revenue: Decimal
    cogs: Decimal
    total_expenses: Decimal
    items_sold: int
    payment_count: int
    unique_clients: int
    average_days_to_sell: float

    @property
    def gross_profit(self) -> Decimal:
        return self.revenue - self.cogs

    @property
    def net_profit(self) -> Decimal:
        return self.gross_profit - self.total_expenses


def period_totals(db: Session, date_range: DateRange, filters: ReportFilters = NO_FILTERS) -> PeriodTotals:
    revenue, payment_count, unique_clients = (
        qualifying_payments(db, date_range, filters)
        .with_entities(
            func.coalesce(func.sum(ClientPayment.amount), 0),
            func.count(ClientPayment.id),
            func.count(func.distinct(ClientPayment.client_id)),
        )
        .one()
    )
    first_payments = first_payment_by_sold_item(db, date_range, filters)
    items = sold_items(db, first_payments)
    return PeriodTotals(
        revenue=to_decimal(revenue),
        cogs=cost_of_items(items),
        total_expenses=expenses_for_period(db, date_range, filters),
        items_sold=len(items),
        payment_count=int(payment_count or 0),
        unique_clients=int(unique_clients or 0),
        average_days_to_sell=average_days_to_sell(items, first_payments),
    )


def _top_performer(db: Session, date_range: DateRange, filters: ReportFilters, model, key_column) -> str:
    row = (
        qualifying_payments(db, date_range, filters)
        .join(model, model.id == key_column)
        .with_entities(model.name, func.sum(ClientPayment.amount).label("revenue"))
        .group_by(model.id, model.name)
        .order_by(func.sum(ClientPayment.amount).desc(), model.name)
        .first()
    )
    if not row or not row[0]:
        return NOT_AVAILABLE
    return row[0]


def _installment_status_counts(db: Session, as_of: date) -> Dict[str, int]:
    plans = db.query(InstallmentPlan.next_due_date).filter(InstallmentPlan.status == PLAN_ACTIVE).all()
    overdue = sum(1 for (due,) in plans if due <= as_of)
    return {"pending": len(plans) - overdue, "overdue": overdue}


def _filtered_item_stats(db: Session, filters: ReportFilters):
    total_items, average_cost = (
        db.query(func.count(Item.id), func.avg(Item.min_cost))
        .filter(*filters.item_conditions())
        .one()
    )
    return int(total_items or 0), to_decimal(average_cost)


def _margin(part: Decimal, revenue: Decimal) -> float:
    return round(float(safe_div(part, revenue) * HUNDRED), 2)


def calc_report_kpis(
    db: Session,
    date_range: DateRange,
    filters: ReportFilters = NO_FILTERS,
    as_of: Optional[date] = None,
) -> Dict[str, Any]:
    as_of = as_of or utcnow().date()
    current = period_totals(db, date_range, filters)
    previous_range = date_range.previous()
    previous = period_totals(db, previous_range, filters)

    total_items, average_cost = _filtered_item_stats(db, filters)
    installments = _installment_status_counts(db, as_of)
    revenue = current.revenue

    logger.debug(
        "KPIs %s..%s revenue=%s payments=%s", date_range.start, date_range.end, revenue, current.payment_count
    )

    return {
        "start_date": date_range.start,
        "end_date": date_range.end,
        "previous_start_date": previous_range.start,
        "previous_end_date": previous_range.end,
        "revenue": quantize_money(revenue),
        "cogs": quantize_money(current.cogs),
        "gross_profit": quantize_money(current.gross_profit),
        "gross_margin": _margin(current.gross_profit, revenue),
        "total_expenses": quantize_money(current.total_expenses),
        "net_profit": quantize_money(current.net_profit),
        "net_margin": _margin(current.net_profit, revenue),
        "items_sold": current.items_sold,
        "payment_count": current.payment_count,
        "unique_clients": current.unique_clients,
        "average_order_value": quantize_money(safe_div(revenue, current.payment_count)),
        "average_days_to_sell": current.average_days_to_sell,
        "inventory_turnover": round(float(safe_div(current.cogs, average_cost)), 2),
        "total_items": total_items,
        "average_profit": quantize_money(safe_div(current.net_profit, current.items_sold)),
        "pending_payments": installments["pending"],
        "overdue_payments": installments["overdue"],
        "top_performing_brand": _top_performer(db, date_range, filters, Brand, Item.brand_id),
        "top_performing_vendor": _top_performer(db, date_range, filters, Vendor, Item.vendor_id),
        "previous_revenue": quantize_money(previous.revenue),
        "previous_net_profit": quantize_money(previous.net_profit),
        "revenue_change": percent_change(revenue, previous.revenue),
        "profit_change": percent_change(current.net_profit, previous.net_profit),
    }