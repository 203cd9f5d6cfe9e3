from datetime import datetime
from decimal import Decimal

import pytest

from consignment.errors import ConflictError, NotFoundError, ValidationError
from consignment.ledger.service import delete_dimension, list_expenses, record_expense
from consignment.models import Brand, Vendor

from .factories import add_payout, create_brand, create_client, create_item, create_vendor


def test_record_general_and_item_expenses(db):
    vendor = create_vendor(db)
    item = create_item(db, vendor)
    db.commit()

    general = record_expense(db, {"expense_type": "rent", "amount": "1200.00", "incurred_at": datetime(2024, 3, 1)})
    repair = record_expense(
        db, {"item_id": item.id, "expense_type": "repair", "amount": "80.00", "incurred_at": datetime(2024, 3, 2)}
    )

    assert general.item_id is None
    assert repair.amount == Decimal("80.00")
    assert [expense.id for expense in list_expenses(db)] == [repair.id, general.id]
    assert [expense.id for expense in list_expenses(db, general_only=True)] == [general.id]
    assert [expense.id for expense in list_expenses(db, item_id=item.id)] == [repair.id]


def test_expense_validation(db):
    with pytest.raises(ValidationError):
        record_expense(db, {"expense_type": "rent", "amount": "0"})
    with pytest.raises(NotFoundError):
        record_expense(db, {"item_id": 42, "expense_type": "repair", "amount": "10.00"})


def test_delete_referenced_brand_conflicts(db):
    vendor = create_vendor(db)
    brand = create_brand(db, "Hermes")
    create_item(db, vendor, brand=brand)
    create_item(db, vendor, brand=brand, title="Kelly 28")
    db.commit()

    with pytest.raises(ConflictError) as excinfo:
        delete_dimension(db, "brands", brand.id)

    assert excinfo.value.blocking_count == 2
    assert "referenced by 2 items" in str(excinfo.value)
    assert db.query(Brand).count() == 1


def test_delete_vendor_counts_items_and_payouts(db):
    vendor = create_vendor(db)
    item = create_item(db, vendor, status="sold")
    add_payout(db, item, "100.00", datetime(2024, 3, 1))
    db.commit()

    with pytest.raises(ConflictError) as excinfo:
        delete_dimension(db, "vendors", vendor.id)

    assert excinfo.value.blocking_count == 2
    assert str(excinfo.value) == "Cannot delete vendor: referenced by 1 items, 1 payouts"


def test_delete_unreferenced_dimensions(db):
    brand = create_brand(db, "Goyard")
    vendor = create_vendor(db)
    client = create_client(db)
    db.commit()

    delete_dimension(db, "brands", brand.id)
    delete_dimension(db, "vendors", vendor.id)
    delete_dimension(db, "clients", client.id)

    assert db.query(Brand).count() == 0
    assert db.query(Vendor).count() == 0


def test_delete_missing_or_unknown_dimension(db):
    with pytest.raises(NotFoundError):
        delete_dimension(db, "categories", 7)
    with pytest.raises(ValueError):
        delete_dimension(db, "colors", 1)
