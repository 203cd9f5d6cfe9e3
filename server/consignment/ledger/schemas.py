from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class ExpenseCreate(BaseModel):
    item_id: Optional[int] = None
    expense_type: str = Field(min_length=1)
    amount: Decimal = Field(gt=0)
    incurred_at: Optional[datetime] = None
    notes: Optional[str] = None


class ExpenseResponse(BaseModel):
    id: int
    item_id: Optional[int] = None
    expense_type: str
    amount: Decimal
    incurred_at: datetime
    notes: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
