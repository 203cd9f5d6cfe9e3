from datetime import date, datetime
from decimal import Decimal
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

Frequency = Literal["weekly", "biweekly", "monthly", "quarterly"]


class InstallmentPlanCreate(BaseModel):
    item_id: int
    client_id: int
    total_amount: Decimal = Field(gt=0)
    installment_amount: Decimal = Field(gt=0)
    frequency: Frequency = "monthly"
    start_date: Optional[date] = None
    next_due_date: Optional[date] = None


class InstallmentPaymentCreate(BaseModel):
    amount: Optional[Decimal] = Field(default=None, gt=0)
    payment_method: Optional[str] = None
    paid_at: Optional[datetime] = None


class PlanVendorSummary(BaseModel):
    id: int
    name: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class PlanItemSummary(BaseModel):
    id: int
    title: Optional[str] = None
    status: str
    vendor: Optional[PlanVendorSummary] = None

    model_config = ConfigDict(from_attributes=True)


class PlanClientSummary(BaseModel):
    id: int
    name: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class InstallmentPlanResponse(BaseModel):
    id: int
    item_id: int
    client_id: int
    total_amount: Decimal
    installment_amount: Decimal
    frequency: str
    start_date: date
    next_due_date: date
    remaining_amount: Decimal
    status: str
    reminder_sent: bool
    last_reminder_at: Optional[datetime] = None
    created_at: datetime
    item: Optional[PlanItemSummary] = None
    client: Optional[PlanClientSummary] = None

    model_config = ConfigDict(from_attributes=True)
