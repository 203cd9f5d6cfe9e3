from __future__ import annotations

import logging
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from consignment.errors import NotFoundError, ValidationError
from consignment.models import (
    ITEM_IN_STORE,
    ITEM_RESERVED,
    ITEM_RETURNED,
    ITEM_SOLD,
    PLAN_ACTIVE,
    Client,
    ClientPayment,
    InstallmentPlan,
    Item,
)
from consignment.reports.engine import percent_change
from consignment.reports.filters import DateRange, trailing_range
from consignment.utils import quantize_money, safe_div, to_decimal, utcnow

logger = logging.getLogger(__name__)

TREND_WINDOW_DAYS = 30
UPCOMING_WINDOW_DAYS = 7


def item_total_paid(db: Session, item_id: int) -> Decimal:
    total = (
        db.query(func.coalesce(func.sum(ClientPayment.amount), 0))
        .filter(ClientPayment.item_id == item_id)
        .scalar()
    )
    return to_decimal(total)


def promote_item_status(db: Session, item: Item) -> str:
    """Move an item along in-store -> reserved -> sold from its payment total.

    Must run after the new payment is flushed so the total includes it.
    """
    total_paid = item_total_paid(db, item.id)
    if item.status != ITEM_SOLD and total_paid >= item.sale_price:
        item.status = ITEM_SOLD
    elif item.status == ITEM_IN_STORE and total_paid > 0:
        item.status = ITEM_RESERVED
    return item.status


def validate_payment_target(item: Optional[Item], client: Optional[Client], item_id: int, client_id: int) -> None:
    if not item:
        raise NotFoundError("Item", item_id)
    if not client:
        raise NotFoundError("Client", client_id)
    if item.status == ITEM_RETURNED:
        raise ValidationError("Payments cannot be recorded against returned items.")


def add_client_payment(
    db: Session,
    item: Item,
    client_id: int,
    amount: Decimal,
    payment_method: str,
    paid_at: Optional[datetime] = None,
    installment_plan_id: Optional[int] = None,
) -> ClientPayment:
    """Stage a payment and promote the item. The caller owns the commit."""
    if amount <= 0:
        raise ValidationError("Payment amount must be greater than zero.")
    if not payment_method:
        raise ValidationError("Payment method is required.")
    payment = ClientPayment(
        item_id=item.id,
        client_id=client_id,
        installment_plan_id=installment_plan_id,
        payment_method=payment_method,
        amount=amount,
        paid_at=paid_at or utcnow(),
    )
    db.add(payment)
    db.flush()
    promote_item_status(db, item)
    return payment


def record_client_payment(db: Session, payment_data: dict) -> ClientPayment:
    item_id = payment_data["item_id"]
    client_id = payment_data["client_id"]
    amount = Decimal(str(payment_data["amount"]))
    try:
        item = db.query(Item).filter(Item.id == item_id).first()
        client = db.query(Client).filter(Client.id == client_id).first()
        validate_payment_target(item, client, item_id, client_id)
        payment = add_client_payment(
            db,
            item,
            client.id,
            amount,
            payment_data.get("payment_method"),
            payment_data.get("paid_at"),
        )
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(payment)
    logger.info("Recorded payment %s of %s for item %s (status %s)", payment.id, amount, item_id, item.status)
    return payment


def list_payments(
    db: Session,
    item_id: Optional[int] = None,
    client_id: Optional[int] = None,
    limit: Optional[int] = None,
) -> List[ClientPayment]:
    query = (
        db.query(ClientPayment)
        .options(joinedload(ClientPayment.item), joinedload(ClientPayment.client))
        .order_by(ClientPayment.paid_at.desc(), ClientPayment.id.desc())
    )
    if item_id is not None:
        query = query.filter(ClientPayment.item_id == item_id)
    if client_id is not None:
        query = query.filter(ClientPayment.client_id == client_id)
    if limit is not None:
        query = query.limit(limit)
    return query.all()


def _payment_sum(db: Session, date_range: DateRange) -> Decimal:
    total = (
        db.query(func.coalesce(func.sum(ClientPayment.amount), 0))
        .filter(*date_range.column_conditions(ClientPayment.paid_at))
        .scalar()
    )
    return to_decimal(total)


def payment_metrics(db: Session, now: Optional[datetime] = None) -> dict:
    now = now or utcnow()
    today: date = now.date()
    count, total = db.query(func.count(ClientPayment.id), func.coalesce(func.sum(ClientPayment.amount), 0)).one()
    total = to_decimal(total)

    due_dates = [
        due for (due,) in db.query(InstallmentPlan.next_due_date).filter(InstallmentPlan.status == PLAN_ACTIVE).all()
    ]
    upcoming_limit = today + timedelta(days=UPCOMING_WINDOW_DAYS)

    window = trailing_range(now, TREND_WINDOW_DAYS)
    current = _payment_sum(db, window)
    previous = _payment_sum(db, window.previous())

    return {
        "total_payments_received": int(count or 0),
        "total_payments_amount": quantize_money(total),
        "average_payment_amount": quantize_money(safe_div(total, count)),
        "overdue_payments": sum(1 for due in due_dates if due <= today),
        "upcoming_payments": sum(1 for due in due_dates if today < due <= upcoming_limit),
        "monthly_payment_trend": percent_change(current, previous),
    }
