"""Pydantic schemas for report API responses."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel


# ---------------------------------------------------------------------------
# KPIs
# ---------------------------------------------------------------------------


class KpiReportResponse(BaseModel):
    start_date: date
    end_date: date
    previous_start_date: date
    previous_end_date: date
    revenue: Decimal
    cogs: Decimal
    gross_profit: Decimal
    gross_margin: float
    total_expenses: Decimal
    net_profit: Decimal
    net_margin: float
    items_sold: int
    payment_count: int
    unique_clients: int
    average_order_value: Decimal
    average_days_to_sell: float
    inventory_turnover: float
    total_items: int
    average_profit: Decimal
    pending_payments: int
    overdue_payments: int
    top_performing_brand: str
    top_performing_vendor: str
    previous_revenue: Decimal
    previous_net_profit: Decimal
    revenue_change: float
    profit_change: float


# ---------------------------------------------------------------------------
# Time series and grouped metrics
# ---------------------------------------------------------------------------


class TimeSeriesPoint(BaseModel):
    period: str
    value: float
    count: int = 0


class GroupedMetricRow(BaseModel):
    id: Optional[int] = None
    name: str
    revenue: Decimal
    item_count: int
    payment_count: int
    profit_margin: float
    change: float
    cost: Optional[Decimal] = None
    profit: Optional[Decimal] = None
    items_sold: Optional[int] = None
    avg_order_value: Optional[Decimal] = None


class PaymentMethodRow(BaseModel):
    payment_method: str
    total_amount: Decimal
    count: int
    percentage: float
    average_amount: Decimal


# ---------------------------------------------------------------------------
# Item profitability
# ---------------------------------------------------------------------------


class ItemProfitabilityRow(BaseModel):
    item_id: int
    title: Optional[str] = None
    model: Optional[str] = None
    brand: Optional[str] = None
    vendor: Optional[str] = None
    status: str
    acquisition_date: Optional[date] = None
    revenue: Decimal
    cost: Decimal
    profit: Decimal
    margin: float
    sold_date: Optional[date] = None
    days_to_sell: Optional[int] = None


class ItemProfitabilityResponse(BaseModel):
    items: List[ItemProfitabilityRow]
    total_count: int


# ---------------------------------------------------------------------------
# Inventory health
# ---------------------------------------------------------------------------


class CategoryHealthRow(BaseModel):
    category_id: Optional[int] = None
    category_name: str
    item_count: int
    total_value: Decimal
    average_age: float


class AgingAnalysis(BaseModel):
    under_30_days: int = 0
    days_30_to_90: int = 0
    days_91_to_180: int = 0
    over_180_days: int = 0


class InventoryHealthResponse(BaseModel):
    as_of: datetime
    total_items: int
    in_store_items: int
    reserved_items: int
    sold_items: int
    returned_items: int
    total_value: Decimal
    average_age: float
    slow_moving_items: int
    fast_moving_items: int
    categories_breakdown: List[CategoryHealthRow] = []
    aging_analysis: AgingAnalysis
