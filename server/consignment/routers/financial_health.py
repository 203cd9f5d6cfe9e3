from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from consignment.db import get_db
from consignment.health.schemas import FinancialHealthResponse
from consignment.health.service import financial_health

router = APIRouter(prefix="/api", tags=["financial-health"])


@router.get("/financial-health", response_model=FinancialHealthResponse)
def get_financial_health(db: Session = Depends(get_db)):
    return financial_health(db)
