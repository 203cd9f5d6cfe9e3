from __future__ import annotations

import logging
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from consignment.errors import ConflictError, NotFoundError, ValidationError
from consignment.models import PLAN_ACTIVE, Client, ClientPayment, InstallmentPlan, Item
from consignment.payments.service import add_client_payment, validate_payment_target
from consignment.utils import utcnow

from .schedule import advance_schedule, validate_frequency

logger = logging.getLogger(__name__)

UPCOMING_WINDOW_DAYS = 7
INSTALLMENT_PAYMENT_METHOD = "installment"


def _plan_query(db: Session):
    return db.query(InstallmentPlan).options(
        joinedload(InstallmentPlan.item).joinedload(Item.vendor),
        joinedload(InstallmentPlan.client),
    )


def get_plan(db: Session, plan_id: int) -> InstallmentPlan:
    plan = _plan_query(db).filter(InstallmentPlan.id == plan_id).first()
    if not plan:
        raise NotFoundError("Installment plan", plan_id)
    return plan


def list_plans(
    db: Session,
    status: Optional[str] = None,
    item_id: Optional[int] = None,
    client_id: Optional[int] = None,
) -> List[InstallmentPlan]:
    query = _plan_query(db)
    if status:
        query = query.filter(InstallmentPlan.status == status)
    if item_id is not None:
        query = query.filter(InstallmentPlan.item_id == item_id)
    if client_id is not None:
        query = query.filter(InstallmentPlan.client_id == client_id)
    return query.order_by(InstallmentPlan.next_due_date, InstallmentPlan.id).all()


def create_plan(db: Session, plan_data: dict) -> InstallmentPlan:
    total_amount = Decimal(str(plan_data["total_amount"]))
    installment_amount = Decimal(str(plan_data["installment_amount"]))
    frequency = plan_data.get("frequency") or "monthly"
    if total_amount <= 0 or installment_amount <= 0:
        raise ValidationError("Installment amounts must be greater than zero.")
    if installment_amount > total_amount:
        raise ValidationError("Installment amount cannot exceed the total amount.")
    validate_frequency(frequency)

    item = db.query(Item).filter(Item.id == plan_data["item_id"]).first()
    if not item:
        raise NotFoundError("Item", plan_data["item_id"])
    client = db.query(Client).filter(Client.id == plan_data["client_id"]).first()
    if not client:
        raise NotFoundError("Client", plan_data["client_id"])

    start_date = plan_data.get("start_date") or utcnow().date()
    plan = InstallmentPlan(
        item_id=item.id,
        client_id=client.id,
        total_amount=total_amount,
        installment_amount=installment_amount,
        frequency=frequency,
        start_date=start_date,
        next_due_date=plan_data.get("next_due_date") or start_date,
        remaining_amount=total_amount,
        status=PLAN_ACTIVE,
        reminder_sent=False,
    )
    db.add(plan)
    db.commit()
    db.refresh(plan)
    logger.info("Created installment plan %s for item %s client %s", plan.id, item.id, client.id)
    return plan


def delete_plan(db: Session, plan_id: int) -> None:
    plan = get_plan(db, plan_id)
    linked_payments = (
        db.query(func.count(ClientPayment.id)).filter(ClientPayment.installment_plan_id == plan.id).scalar() or 0
    )
    if linked_payments:
        raise ConflictError("Installment plan has recorded payments.", blocking_count=linked_payments)
    db.delete(plan)
    db.commit()
    logger.info("Deleted installment plan %s", plan_id)


def apply_installment_payment(db: Session, plan_id: int, payment_data: Optional[dict] = None) -> InstallmentPlan:
    """Record a client payment against a plan and roll the schedule forward."""
    payment_data = payment_data or {}
    try:
        plan = db.query(InstallmentPlan).filter(InstallmentPlan.id == plan_id).first()
        if not plan:
            raise NotFoundError("Installment plan", plan_id)
        if plan.status != PLAN_ACTIVE:
            raise ValidationError("Installment plan is already completed.")
        item = db.query(Item).filter(Item.id == plan.item_id).first()
        client = db.query(Client).filter(Client.id == plan.client_id).first()
        validate_payment_target(item, client, plan.item_id, plan.client_id)

        amount = payment_data.get("amount")
        applied = Decimal(str(amount)) if amount is not None else Decimal(plan.installment_amount)
        advance = advance_schedule(plan.remaining_amount, applied, plan.next_due_date, plan.frequency)

        add_client_payment(
            db,
            item,
            client.id,
            applied,
            payment_data.get("payment_method") or INSTALLMENT_PAYMENT_METHOD,
            payment_data.get("paid_at"),
            installment_plan_id=plan.id,
        )
        plan.remaining_amount = advance.remaining_amount
        plan.status = advance.status
        plan.next_due_date = advance.next_due_date
        plan.reminder_sent = False
        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info(
        "Applied %s to installment plan %s: remaining=%s status=%s next_due=%s",
        applied,
        plan_id,
        advance.remaining_amount,
        advance.status,
        advance.next_due_date,
    )
    if advance.completed:
        logger.info("Installment plan %s completed", plan_id)
    return get_plan(db, plan_id)


def send_reminder(db: Session, plan_id: int, now: Optional[datetime] = None) -> InstallmentPlan:
    plan = get_plan(db, plan_id)
    if plan.status != PLAN_ACTIVE:
        raise ValidationError("Reminders can only be sent for active installment plans.")
    plan.reminder_sent = True
    plan.last_reminder_at = now or utcnow()
    db.commit()
    db.refresh(plan)
    logger.info("Reminder sent for installment plan %s", plan.id)
    return plan


def upcoming_plans(db: Session, today: Optional[date] = None, days: int = UPCOMING_WINDOW_DAYS) -> List[InstallmentPlan]:
    """Active plans falling due after today and within the next ``days`` days."""
    today = today or utcnow().date()
    return (
        _plan_query(db)
        .filter(
            InstallmentPlan.status == PLAN_ACTIVE,
            InstallmentPlan.next_due_date > today,
            InstallmentPlan.next_due_date <= today + timedelta(days=days),
        )
        .order_by(InstallmentPlan.next_due_date, InstallmentPlan.id)
        .all()
    )


def overdue_plans(db: Session, today: Optional[date] = None) -> List[InstallmentPlan]:
    today = today or utcnow().date()
    return (
        _plan_query(db)
        .filter(InstallmentPlan.status == PLAN_ACTIVE, InstallmentPlan.next_due_date <= today)
        .order_by(InstallmentPlan.next_due_date, InstallmentPlan.id)
        .all()
    )
