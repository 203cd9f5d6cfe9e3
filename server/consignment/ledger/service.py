from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Session

from consignment.errors import ConflictError, NotFoundError, ValidationError
from consignment.models import (
    Brand,
    Category,
    Client,
    ClientPayment,
    Expense,
    InstallmentPlan,
    Item,
    Vendor,
    VendorPayout,
)
from consignment.utils import utcnow

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DimensionTable:
    label: str
    model: Any
    references: Tuple[Tuple[str, Any], ...]


DIMENSION_TABLES: Dict[str, DimensionTable] = {
    "brands": DimensionTable("Brand", Brand, (("items", Item.brand_id),)),
    "categories": DimensionTable("Category", Category, (("items", Item.category_id),)),
    "vendors": DimensionTable(
        "Vendor", Vendor, (("items", Item.vendor_id), ("payouts", VendorPayout.vendor_id))
    ),
    "clients": DimensionTable(
        "Client",
        Client,
        (("payments", ClientPayment.client_id), ("installment plans", InstallmentPlan.client_id)),
    ),
}


def record_expense(db: Session, expense_data: dict) -> Expense:
    amount = Decimal(str(expense_data["amount"]))
    if amount <= 0:
        raise ValidationError("Expense amount must be greater than zero.")
    if not expense_data.get("expense_type"):
        raise ValidationError("Expense type is required.")
    item_id = expense_data.get("item_id")
    try:
        if item_id is not None and not db.query(Item.id).filter(Item.id == item_id).first():
            raise NotFoundError("Item", item_id)
        expense = Expense(
            item_id=item_id,
            expense_type=expense_data["expense_type"],
            amount=amount,
            incurred_at=expense_data.get("incurred_at") or utcnow(),
            notes=expense_data.get("notes"),
        )
        db.add(expense)
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(expense)
    logger.info("Recorded %s expense %s of %s (item %s)", expense.expense_type, expense.id, amount, item_id)
    return expense


def list_expenses(db: Session, item_id: Optional[int] = None, general_only: bool = False) -> List[Expense]:
    query = db.query(Expense)
    if item_id is not None:
        query = query.filter(Expense.item_id == item_id)
    elif general_only:
        query = query.filter(Expense.item_id.is_(None))
    return query.order_by(Expense.incurred_at.desc(), Expense.id.desc()).all()


def get_dimension_table(kind: str) -> DimensionTable:
    try:
        return DIMENSION_TABLES[kind]
    except KeyError:
        raise ValueError(f"Unsupported dimension: {kind}") from None


def delete_dimension(db: Session, kind: str, entity_id: int) -> None:
    """Delete a brand, category, vendor or client that nothing references."""
    table = get_dimension_table(kind)
    entity = db.query(table.model).filter(table.model.id == entity_id).first()
    if not entity:
        raise NotFoundError(table.label, entity_id)

    blocking = []
    total = 0
    for name, column in table.references:
        count = db.query(func.count(column)).filter(column == entity_id).scalar() or 0
        if count:
            blocking.append(f"{count} {name}")
            total += count
    if total:
        raise ConflictError(
            f"Cannot delete {table.label.lower()}: referenced by {', '.join(blocking)}",
            blocking_count=total,
        )

    db.delete(entity)
    db.commit()
    logger.info("Deleted %s %s", table.label.lower(), entity_id)
