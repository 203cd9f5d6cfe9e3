from decimal import Decimal

from pydantic import BaseModel


class MoneyRange(BaseModel):
    min: Decimal
    max: Decimal


class DashboardMetricsResponse(BaseModel):
    total_revenue: Decimal
    total_expenses: Decimal
    active_items: int
    pending_payouts: MoneyRange
    pending_settlement_balance: Decimal
    net_profit: MoneyRange
    incoming_payments: Decimal
    upcoming_payouts: int
    cost_range: MoneyRange
    inventory_value_range: MoneyRange
