from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from consignment.db import get_db
from consignment.installments import schemas
from consignment.installments.service import (
    apply_installment_payment,
    create_plan,
    delete_plan,
    get_plan,
    list_plans,
    overdue_plans,
    send_reminder,
    upcoming_plans,
)

from .common import http_error

router = APIRouter(prefix="/api/installment-plans", tags=["installments"])


@router.get("", response_model=List[schemas.InstallmentPlanResponse])
def get_installment_plans(
    status_filter: Optional[str] = Query(None, alias="status", pattern="^(active|completed)$"),
    item_id: Optional[int] = None,
    client_id: Optional[int] = None,
    db: Session = Depends(get_db),
):
    return list_plans(db, status=status_filter, item_id=item_id, client_id=client_id)


@router.post("", response_model=schemas.InstallmentPlanResponse, status_code=status.HTTP_201_CREATED)
def create_installment_plan(payload: schemas.InstallmentPlanCreate, db: Session = Depends(get_db)):
    try:
        return create_plan(db, payload.model_dump())
    except ValueError as exc:
        raise http_error(exc)


@router.get("/upcoming", response_model=List[schemas.InstallmentPlanResponse])
def get_upcoming_installments(db: Session = Depends(get_db)):
    return upcoming_plans(db)


@router.get("/overdue", response_model=List[schemas.InstallmentPlanResponse])
def get_overdue_installments(db: Session = Depends(get_db)):
    return overdue_plans(db)


@router.get("/{plan_id}", response_model=schemas.InstallmentPlanResponse)
def get_installment_plan(plan_id: int, db: Session = Depends(get_db)):
    try:
        return get_plan(db, plan_id)
    except ValueError as exc:
        raise http_error(exc)


@router.delete("/{plan_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_installment_plan(plan_id: int, db: Session = Depends(get_db)):
    try:
        delete_plan(db, plan_id)
    except ValueError as exc:
        raise http_error(exc)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{plan_id}/payments", response_model=schemas.InstallmentPlanResponse)
def pay_installment(
    plan_id: int,
    payload: Optional[schemas.InstallmentPaymentCreate] = None,
    db: Session = Depends(get_db),
):
    try:
        return apply_installment_payment(db, plan_id, payload.model_dump() if payload else None)
    except ValueError as exc:
        raise http_error(exc)


@router.post("/{plan_id}/send-reminder", response_model=schemas.InstallmentPlanResponse)
def send_installment_reminder(plan_id: int, db: Session = Depends(get_db)):
    try:
        return send_reminder(db, plan_id)
    except ValueError as exc:
        raise http_error(exc)
