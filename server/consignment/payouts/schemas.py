from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class PayoutCreate(BaseModel):
    item_id: int
    vendor_id: int
    amount: Decimal = Field(gt=0)
    paid_at: Optional[datetime] = None
    bank_account: Optional[str] = None
    transfer_id: Optional[str] = None
    notes: Optional[str] = None


class PayoutItemSummary(BaseModel):
    id: int
    title: Optional[str] = None
    model: Optional[str] = None
    status: str

    model_config = ConfigDict(from_attributes=True)


class PayoutVendorSummary(BaseModel):
    id: int
    name: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class PayoutResponse(BaseModel):
    id: int
    item_id: int
    vendor_id: int
    amount: Decimal
    paid_at: datetime
    bank_account: Optional[str] = None
    transfer_id: Optional[str] = None
    notes: Optional[str] = None
    created_at: datetime
    item: Optional[PayoutItemSummary] = None
    vendor: Optional[PayoutVendorSummary] = None

    model_config = ConfigDict(from_attributes=True)


class SettlementResponse(BaseModel):
    item_id: int
    title: Optional[str] = None
    model: Optional[str] = None
    brand: Optional[str] = None
    vendor_id: int
    vendor_name: Optional[str] = None
    status: str
    min_sales_price: Optional[Decimal] = None
    max_sales_price: Optional[Decimal] = None
    sale_price: Decimal
    min_cost: Optional[Decimal] = None
    max_cost: Optional[Decimal] = None
    price_difference: Decimal
    adjustment_factor: float
    vendor_target: Decimal
    total_paid: Decimal
    remaining_balance: Decimal
    payment_progress: float
    is_fully_paid: bool
    first_payout_date: Optional[datetime] = None
    last_payout_date: Optional[datetime] = None


class PayoutRecordedResponse(BaseModel):
    payout: PayoutResponse
    settlement: SettlementResponse


class PayoutMetricsResponse(BaseModel):
    total_payouts_paid: int
    total_payouts_amount: Decimal
    average_payout_amount: Decimal
    pending_payouts: int
    pending_balance: Decimal
    fully_paid_items: int
    monthly_payout_trend: float
