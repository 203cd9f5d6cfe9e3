from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from consignment.db import get_db
from consignment.payouts import schemas
from consignment.payouts.service import (
    get_item_settlement,
    list_payouts,
    payout_metrics,
    pending_payouts,
    recent_payouts,
    record_payout,
    upcoming_payouts,
)

from .common import http_error

router = APIRouter(prefix="/api/payouts", tags=["payouts"])


@router.get("", response_model=List[schemas.PayoutResponse])
def get_payouts(vendor_id: Optional[int] = None, db: Session = Depends(get_db)):
    return list_payouts(db, vendor_id=vendor_id)


@router.post("", response_model=schemas.PayoutRecordedResponse, status_code=status.HTTP_201_CREATED)
def create_payout(payload: schemas.PayoutCreate, db: Session = Depends(get_db)):
    try:
        return record_payout(db, payload.model_dump())
    except ValueError as exc:
        raise http_error(exc)


@router.get("/recent", response_model=List[schemas.PayoutResponse])
def get_recent_payouts(limit: int = Query(10, ge=1, le=100), db: Session = Depends(get_db)):
    return recent_payouts(db, limit=limit)


@router.get("/upcoming", response_model=List[schemas.SettlementResponse])
def get_upcoming_payouts(db: Session = Depends(get_db)):
    return upcoming_payouts(db)


@router.get("/pending", response_model=List[schemas.SettlementResponse])
def get_pending_payouts(db: Session = Depends(get_db)):
    return pending_payouts(db)


@router.get("/metrics", response_model=schemas.PayoutMetricsResponse)
def get_payout_metrics(db: Session = Depends(get_db)):
    return payout_metrics(db)


@router.get("/items/{item_id}", response_model=schemas.SettlementResponse)
def get_settlement(item_id: int, db: Session = Depends(get_db)):
    try:
        return get_item_settlement(db, item_id)
    except ValueError as exc:
        raise http_error(exc)
