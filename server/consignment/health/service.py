"""Composite financial health score.

Five ledger ratios feed a weighted score out of 100. ``score_financial_health``
is a pure function of those ratios; ``collect_health_ratios`` reads them from
the ledger relative to a supplied ``now``.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from consignment.models import (
    ACTIVE_ITEM_STATUSES,
    ITEM_SOLD,
    PLAN_ACTIVE,
    ClientPayment,
    InstallmentPlan,
    Item,
    VendorPayout,
)
from consignment.reports.filters import trailing_range
from consignment.utils import safe_div, to_decimal, utcnow

logger = logging.getLogger(__name__)

CASH_FLOW_WINDOW_DAYS = 30
CASH_FLOW_RATIO_WITHOUT_OUTFLOW = 2.0

OVERDUE_RECOMMENDATION = "High number of overdue payments. Consider implementing automated payment reminders."
CASH_FLOW_RECOMMENDATION = "Negative cash flow detected. Review payment terms and collection processes."
TURNOVER_RECOMMENDATION = "Low inventory turnover. Consider promotions or adjusting pricing strategy."
MARGIN_RECOMMENDATION = "Low profit margins. Review pricing strategy and cost management."
RETENTION_RECOMMENDATION = "Low client retention rate. Consider loyalty programs or improved customer service."
EXCELLENT_MESSAGE = "Excellent financial health! Continue current practices."
IMMEDIATE_ATTENTION_MESSAGE = "Immediate attention required to improve financial health."

GRADE_THRESHOLDS = ((90, "A+"), (80, "A"), (70, "B"), (60, "C"), (50, "D"))


@dataclass(frozen=True)
class HealthRatios:
    overdue_rate: float
    cash_flow_ratio: float
    turnover_rate: float
    profit_margin_rate: float
    retention_rate: float


def _round_half_up(value: float) -> int:
    return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def grade_for(score: int) -> str:
    for threshold, grade in GRADE_THRESHOLDS:
        if score >= threshold:
            return grade
    return "F"


def score_financial_health(ratios: HealthRatios) -> Dict[str, Any]:
    payment_timeliness = max(0.0, 25 * (1 - ratios.overdue_rate))
    cash_flow = min(25.0, max(0.0, ratios.cash_flow_ratio * 12.5))
    inventory_turnover = min(20.0, ratios.turnover_rate * 20)
    profit_margin = min(20.0, max(0.0, ratios.profit_margin_rate * 40))
    client_retention = min(10.0, ratios.retention_rate * 20)

    recommendations: List[str] = []
    if ratios.overdue_rate > 0.2:
        recommendations.append(OVERDUE_RECOMMENDATION)
    # A ratio under 1 means more went out to vendors than came in.
    if ratios.cash_flow_ratio < 1:
        recommendations.append(CASH_FLOW_RECOMMENDATION)
    if ratios.turnover_rate < 0.3:
        recommendations.append(TURNOVER_RECOMMENDATION)
    if ratios.profit_margin_rate < 0.2:
        recommendations.append(MARGIN_RECOMMENDATION)
    if ratios.retention_rate < 0.3:
        recommendations.append(RETENTION_RECOMMENDATION)

    score = _round_half_up(payment_timeliness + cash_flow + inventory_turnover + profit_margin + client_retention)
    grade = grade_for(score)
    if grade == "A+" and not recommendations:
        recommendations.append(EXCELLENT_MESSAGE)
    if grade == "F":
        recommendations.append(IMMEDIATE_ATTENTION_MESSAGE)

    return {
        "score": score,
        "grade": grade,
        "factors": {
            "payment_timeliness": _round_half_up(payment_timeliness),
            "cash_flow": _round_half_up(cash_flow),
            "inventory_turnover": _round_half_up(inventory_turnover),
            "profit_margin": _round_half_up(profit_margin),
            "client_retention": _round_half_up(client_retention),
        },
        "recommendations": recommendations,
    }


def collect_health_ratios(db: Session, now: Optional[datetime] = None) -> HealthRatios:
    now = now or utcnow()
    today = now.date()

    due_dates = [
        due for (due,) in db.query(InstallmentPlan.next_due_date).filter(InstallmentPlan.status == PLAN_ACTIVE).all()
    ]
    overdue = sum(1 for due in due_dates if due <= today)
    overdue_rate = float(safe_div(overdue, len(due_dates)))

    window = trailing_range(now, CASH_FLOW_WINDOW_DAYS)
    inflow = to_decimal(
        db.query(func.coalesce(func.sum(ClientPayment.amount), 0))
        .filter(*window.column_conditions(ClientPayment.paid_at))
        .scalar()
    )
    outflow = to_decimal(
        db.query(func.coalesce(func.sum(VendorPayout.amount), 0))
        .filter(*window.column_conditions(VendorPayout.paid_at))
        .scalar()
    )
    cash_flow_ratio = float(inflow / outflow) if outflow > 0 else CASH_FLOW_RATIO_WITHOUT_OUTFLOW

    sold_count = db.query(func.count(Item.id)).filter(Item.status == ITEM_SOLD).scalar() or 0
    active_count = db.query(func.count(Item.id)).filter(Item.status.in_(ACTIVE_ITEM_STATUSES)).scalar() or 0
    turnover_rate = float(safe_div(sold_count, sold_count + active_count))

    revenue = to_decimal(db.query(func.coalesce(func.sum(ClientPayment.amount), 0)).scalar())
    sold_cost = to_decimal(
        db.query(func.coalesce(func.sum(Item.min_cost), 0)).filter(Item.status == ITEM_SOLD).scalar()
    )
    profit_margin_rate = float(safe_div(revenue - sold_cost, revenue))

    items_per_client = (
        db.query(ClientPayment.client_id, func.count(func.distinct(ClientPayment.item_id)))
        .group_by(ClientPayment.client_id)
        .all()
    )
    repeat_clients = sum(1 for _, item_count in items_per_client if item_count > 1)
    retention_rate = float(safe_div(repeat_clients, len(items_per_client)))

    return HealthRatios(
        overdue_rate=overdue_rate,
        cash_flow_ratio=cash_flow_ratio,
        turnover_rate=turnover_rate,
        profit_margin_rate=profit_margin_rate,
        retention_rate=retention_rate,
    )


def financial_health(db: Session, now: Optional[datetime] = None) -> Dict[str, Any]:
    ratios = collect_health_ratios(db, now)
    result = score_financial_health(ratios)
    result["ratios"] = asdict(ratios)
    logger.debug("Financial health score=%s grade=%s", result["score"], result["grade"])
    return result
