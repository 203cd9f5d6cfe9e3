from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from consignment.db import get_db
from consignment.payments import schemas
from consignment.payments.service import list_payments, payment_metrics, record_client_payment

from .common import http_error

router = APIRouter(prefix="/api/payments", tags=["payments"])


@router.get("", response_model=List[schemas.PaymentResponse])
def get_payments(
    item_id: Optional[int] = None,
    client_id: Optional[int] = None,
    limit: Optional[int] = Query(None, ge=1, le=500),
    db: Session = Depends(get_db),
):
    return list_payments(db, item_id=item_id, client_id=client_id, limit=limit)


@router.post("", response_model=schemas.PaymentResponse, status_code=status.HTTP_201_CREATED)
def create_payment(payload: schemas.PaymentCreate, db: Session = Depends(get_db)):
    try:
        return record_client_payment(db, payload.model_dump())
    except ValueError as exc:
        raise http_error(exc)


@router.get("/metrics", response_model=schemas.PaymentMetricsResponse)
def get_payment_metrics(db: Session = Depends(get_db)):
    return payment_metrics(db)
