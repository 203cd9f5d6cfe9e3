from __future__ import annotations

import logging
from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from consignment.errors import NotFoundError, ValidationError
from consignment.models import ITEM_SOLD, ClientPayment, Item, Vendor, VendorPayout
from consignment.reports.engine import percent_change
from consignment.reports.filters import DateRange, trailing_range
from consignment.utils import ZERO, quantize_money, safe_div, to_decimal, utcnow

from .calculations import Settlement, SettlementInput, calculate_settlement, validate_payout_amount

logger = logging.getLogger(__name__)

TREND_WINDOW_DAYS = 30


def _client_totals(db: Session, item_ids: Optional[List[int]] = None) -> Dict[int, Decimal]:
    query = db.query(ClientPayment.item_id, func.sum(ClientPayment.amount)).group_by(ClientPayment.item_id)
    if item_ids is not None:
        query = query.filter(ClientPayment.item_id.in_(item_ids))
    return {item_id: to_decimal(total) for item_id, total in query.all()}


def _payout_totals(db: Session, item_ids: Optional[List[int]] = None):
    query = db.query(
        VendorPayout.item_id,
        func.sum(VendorPayout.amount),
        func.min(VendorPayout.paid_at),
        func.max(VendorPayout.paid_at),
    ).group_by(VendorPayout.item_id)
    if item_ids is not None:
        query = query.filter(VendorPayout.item_id.in_(item_ids))
    return {
        item_id: (to_decimal(total), first_paid, last_paid)
        for item_id, total, first_paid, last_paid in query.all()
    }


def settle_item(item: Item, actual_sale_price: Decimal, total_paid: Decimal) -> Settlement:
    return calculate_settlement(
        SettlementInput(
            max_sales_price=to_decimal(item.max_sales_price),
            actual_sale_price=actual_sale_price,
            max_cost=to_decimal(item.max_cost),
            total_paid=total_paid,
        )
    )


def _settlement_row(item: Item, settlement: Settlement, actual_sale_price: Decimal, first_paid, last_paid) -> dict:
    return {
        "item_id": item.id,
        "title": item.title,
        "model": item.model,
        "brand": item.brand.name if item.brand else None,
        "vendor_id": item.vendor_id,
        "vendor_name": item.vendor.name if item.vendor else None,
        "status": item.status,
        "min_sales_price": quantize_money(item.min_sales_price),
        "max_sales_price": quantize_money(item.max_sales_price),
        "sale_price": quantize_money(actual_sale_price),
        "min_cost": quantize_money(item.min_cost),
        "max_cost": quantize_money(item.max_cost),
        "price_difference": quantize_money(settlement.price_difference),
        "adjustment_factor": float(settlement.adjustment_factor),
        "vendor_target": quantize_money(settlement.vendor_target),
        "total_paid": quantize_money(settlement.total_paid),
        "remaining_balance": quantize_money(settlement.remaining_balance),
        "payment_progress": round(float(settlement.payment_progress), 2),
        "is_fully_paid": settlement.is_fully_paid,
        "first_payout_date": first_paid,
        "last_payout_date": last_paid,
    }


def settlement_rows(db: Session, items: List[Item]) -> List[dict]:
    item_ids = [item.id for item in items]
    if not item_ids:
        return []
    client_totals = _client_totals(db, item_ids)
    payout_totals = _payout_totals(db, item_ids)
    rows = []
    for item in items:
        actual_sale_price = client_totals.get(item.id, ZERO)
        total_paid, first_paid, last_paid = payout_totals.get(item.id, (ZERO, None, None))
        settlement = settle_item(item, actual_sale_price, total_paid)
        rows.append(_settlement_row(item, settlement, actual_sale_price, first_paid, last_paid))
    return rows


def _sold_items(db: Session) -> List[Item]:
    return (
        db.query(Item)
        .options(joinedload(Item.vendor), joinedload(Item.brand))
        .filter(Item.status == ITEM_SOLD)
        .order_by(Item.id)
        .all()
    )


def get_item_settlement(db: Session, item_id: int) -> dict:
    item = (
        db.query(Item)
        .options(joinedload(Item.vendor), joinedload(Item.brand))
        .filter(Item.id == item_id)
        .first()
    )
    if not item:
        raise NotFoundError("Item", item_id)
    return settlement_rows(db, [item])[0]


def upcoming_payouts(db: Session) -> List[dict]:
    """Settlement position of every sold item."""
    return settlement_rows(db, _sold_items(db))


def pending_payouts(db: Session) -> List[dict]:
    """Sold items whose vendor has not yet been paid the full settlement target."""
    return [row for row in upcoming_payouts(db) if not row["is_fully_paid"]]


def list_payouts(db: Session, vendor_id: Optional[int] = None, limit: Optional[int] = None) -> List[VendorPayout]:
    query = (
        db.query(VendorPayout)
        .options(joinedload(VendorPayout.item), joinedload(VendorPayout.vendor))
        .order_by(VendorPayout.paid_at.desc(), VendorPayout.id.desc())
    )
    if vendor_id is not None:
        query = query.filter(VendorPayout.vendor_id == vendor_id)
    if limit is not None:
        query = query.limit(limit)
    return query.all()


def recent_payouts(db: Session, limit: int = 10) -> List[VendorPayout]:
    return list_payouts(db, limit=limit)


def _payout_sum(db: Session, date_range: DateRange) -> Decimal:
    total = (
        db.query(func.coalesce(func.sum(VendorPayout.amount), 0))
        .filter(*date_range.column_conditions(VendorPayout.paid_at))
        .scalar()
    )
    return to_decimal(total)


def payout_metrics(db: Session, now: Optional[datetime] = None) -> dict:
    now = now or utcnow()
    count, total = db.query(func.count(VendorPayout.id), func.coalesce(func.sum(VendorPayout.amount), 0)).one()
    total = to_decimal(total)

    settlements = upcoming_payouts(db)
    pending = [row for row in settlements if not row["is_fully_paid"]]

    window = trailing_range(now, TREND_WINDOW_DAYS)
    current = _payout_sum(db, window)
    previous = _payout_sum(db, window.previous())

    return {
        "total_payouts_paid": int(count or 0),
        "total_payouts_amount": quantize_money(total),
        "average_payout_amount": quantize_money(safe_div(total, count)),
        "pending_payouts": len(pending),
        "pending_balance": quantize_money(sum((row["remaining_balance"] for row in pending), ZERO)),
        "fully_paid_items": len(settlements) - len(pending),
        "monthly_payout_trend": percent_change(current, previous),
    }


def record_payout(db: Session, payout_data: dict) -> dict:
    """Insert a vendor payout and return it with the item's recomputed settlement."""
    amount = Decimal(str(payout_data["amount"]))
    validate_payout_amount(amount)
    item_id = payout_data["item_id"]
    vendor_id = payout_data["vendor_id"]

    try:
        item = db.query(Item).filter(Item.id == item_id).first()
        if not item:
            raise NotFoundError("Item", item_id)
        vendor = db.query(Vendor).filter(Vendor.id == vendor_id).first()
        if not vendor:
            raise NotFoundError("Vendor", vendor_id)
        if item.vendor_id != vendor.id:
            raise ValidationError("Item is not consigned by this vendor.")

        payout = VendorPayout(
            item_id=item.id,
            vendor_id=vendor.id,
            amount=amount,
            paid_at=payout_data.get("paid_at") or utcnow(),
            bank_account=payout_data.get("bank_account"),
            transfer_id=payout_data.get("transfer_id"),
            notes=payout_data.get("notes"),
        )
        db.add(payout)
        db.flush()
        settlement = settlement_rows(db, [item])[0]
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(payout)
    logger.info("Recorded payout %s of %s to vendor %s for item %s", payout.id, amount, vendor.id, item.id)
    return {"payout": payout, "settlement": settlement}
