from typing import List

from pydantic import BaseModel


class HealthFactors(BaseModel):
    payment_timeliness: int
    cash_flow: int
    inventory_turnover: int
    profit_margin: int
    client_retention: int


class HealthRatiosResponse(BaseModel):
    overdue_rate: float
    cash_flow_ratio: float
    turnover_rate: float
    profit_margin_rate: float
    retention_rate: float


class FinancialHealthResponse(BaseModel):
    score: int
    grade: str
    factors: HealthFactors
    recommendations: List[str] = []
    ratios: HealthRatiosResponse
