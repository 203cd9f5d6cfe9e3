from decimal import Decimal
from typing import Dict

from sqlalchemy import func
from sqlalchemy.orm import Session

from consignment.models import ACTIVE_ITEM_STATUSES, ITEM_SOLD, PLAN_ACTIVE, ClientPayment, Expense, InstallmentPlan, Item
from consignment.payouts.service import upcoming_payouts
from consignment.utils import ZERO, quantize_money, to_decimal


def _money_range(low: Decimal, high: Decimal) -> Dict[str, Decimal]:
    return {"min": quantize_money(low), "max": quantize_money(high)}


def get_dashboard_metrics(db: Session) -> dict:
    """Whole-ledger headline figures for the owner dashboard."""
    total_revenue = to_decimal(db.query(func.coalesce(func.sum(ClientPayment.amount), 0)).scalar())
    total_expenses = to_decimal(db.query(func.coalesce(func.sum(Expense.amount), 0)).scalar())

    active_items, inventory_min, inventory_max = (
        db.query(
            func.count(Item.id),
            func.coalesce(func.sum(Item.min_cost), 0),
            func.coalesce(func.sum(Item.max_cost), 0),
        )
        .filter(Item.status.in_(ACTIVE_ITEM_STATUSES))
        .one()
    )
    sold_min_cost, sold_max_cost = (
        db.query(func.coalesce(func.sum(Item.min_cost), 0), func.coalesce(func.sum(Item.max_cost), 0))
        .filter(Item.status == ITEM_SOLD)
        .one()
    )
    lowest_cost, highest_cost = db.query(func.min(Item.min_cost), func.max(Item.max_cost)).one()

    incoming = to_decimal(
        db.query(func.coalesce(func.sum(InstallmentPlan.remaining_amount), 0))
        .filter(InstallmentPlan.status == PLAN_ACTIVE)
        .scalar()
    )

    settlements = upcoming_payouts(db)
    pending = [row for row in settlements if not row["is_fully_paid"]]
    owed_min = ZERO
    owed_max = ZERO
    for row in settlements:
        owed_min += max(ZERO, to_decimal(row["min_cost"]) - row["total_paid"])
        owed_max += max(ZERO, to_decimal(row["max_cost"]) - row["total_paid"])

    return {
        "total_revenue": quantize_money(total_revenue),
        "total_expenses": quantize_money(total_expenses),
        "active_items": int(active_items or 0),
        "pending_payouts": _money_range(owed_min, owed_max),
        "pending_settlement_balance": quantize_money(sum((row["remaining_balance"] for row in pending), ZERO)),
        "net_profit": _money_range(
            total_revenue - to_decimal(sold_max_cost) - total_expenses,
            total_revenue - to_decimal(sold_min_cost) - total_expenses,
        ),
        "incoming_payments": quantize_money(incoming),
        "upcoming_payouts": len(pending),
        "cost_range": _money_range(to_decimal(lowest_cost), to_decimal(highest_cost)),
        "inventory_value_range": _money_range(to_decimal(inventory_min), to_decimal(inventory_max)),
    }
