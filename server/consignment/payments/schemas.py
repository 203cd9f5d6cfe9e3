from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class PaymentCreate(BaseModel):
    item_id: int
    client_id: int
    payment_method: str = Field(min_length=1)
    amount: Decimal = Field(gt=0)
    paid_at: Optional[datetime] = None


class PaymentItemSummary(BaseModel):
    id: int
    title: Optional[str] = None
    status: str

    model_config = ConfigDict(from_attributes=True)


class PaymentClientSummary(BaseModel):
    id: int
    name: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class PaymentResponse(BaseModel):
    id: int
    item_id: int
    client_id: int
    installment_plan_id: Optional[int] = None
    payment_method: str
    amount: Decimal
    paid_at: datetime
    created_at: datetime
    item: Optional[PaymentItemSummary] = None
    client: Optional[PaymentClientSummary] = None

    model_config = ConfigDict(from_attributes=True)


class PaymentMetricsResponse(BaseModel):
    total_payments_received: int
    total_payments_amount: Decimal
    average_payment_amount: Decimal
    overdue_payments: int
    upcoming_payments: int
    monthly_payment_trend: float
