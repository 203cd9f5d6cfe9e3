from datetime import date, datetime
from decimal import Decimal

import pytest

from consignment.errors import NotFoundError, ValidationError
from consignment.models import ClientPayment
from consignment.payments.service import list_payments, payment_metrics, record_client_payment

from .factories import add_payment, add_plan, create_client, create_item, create_vendor


def _seed(db, status="in-store", min_sales_price="900.00"):
    vendor = create_vendor(db)
    client = create_client(db)
    item = create_item(db, vendor, status=status, min_sales_price=min_sales_price, max_sales_price="1000.00")
    db.commit()
    return item, client


def _pay(db, item, client, amount, method="card"):
    return record_client_payment(
        db,
        {
            "item_id": item.id,
            "client_id": client.id,
            "amount": amount,
            "payment_method": method,
            "paid_at": datetime(2024, 3, 1, 10, 0),
        },
    )


def test_partial_payment_reserves_item(db):
    item, client = _seed(db)

    payment = _pay(db, item, client, "300.00")

    assert payment.id is not None
    db.refresh(item)
    assert item.status == "reserved"


def test_reaching_sale_price_sells_item(db):
    item, client = _seed(db)

    _pay(db, item, client, "300.00")
    _pay(db, item, client, "600.00")

    db.refresh(item)
    assert item.status == "sold"


def test_sale_price_falls_back_to_max_price(db):
    item, client = _seed(db, min_sales_price=None)

    _pay(db, item, client, "900.00")
    db.refresh(item)
    assert item.status == "reserved"

    _pay(db, item, client, "100.00")
    db.refresh(item)
    assert item.status == "sold"


def test_returned_item_rejects_payment(db):
    item, client = _seed(db, status="returned")

    with pytest.raises(ValidationError):
        _pay(db, item, client, "100.00")

    assert db.query(ClientPayment).count() == 0


def test_unknown_client_is_not_found(db):
    item, _ = _seed(db)

    with pytest.raises(NotFoundError):
        record_client_payment(db, {"item_id": item.id, "client_id": 999, "amount": "10", "payment_method": "card"})


def test_list_payments_newest_first(db):
    item, client = _seed(db)
    older = add_payment(db, item, client, "100.00", datetime(2024, 3, 1))
    newer = add_payment(db, item, client, "200.00", datetime(2024, 3, 2))

    assert [payment.id for payment in list_payments(db, item_id=item.id)] == [newer.id, older.id]


def test_payment_metrics(db):
    item, client = _seed(db)
    add_payment(db, item, client, "300.00", datetime(2024, 3, 20))
    add_payment(db, item, client, "100.00", datetime(2024, 2, 10))
    add_plan(db, item, client, date(2024, 3, 30))
    add_plan(db, item, client, date(2024, 4, 3))
    add_plan(db, item, client, date(2024, 4, 20))

    metrics = payment_metrics(db, now=datetime(2024, 3, 31, 12, 0))

    assert metrics["total_payments_received"] == 2
    assert metrics["total_payments_amount"] == Decimal("400.00")
    assert metrics["average_payment_amount"] == Decimal("200.00")
    assert metrics["overdue_payments"] == 1
    assert metrics["upcoming_payments"] == 1
    assert metrics["monthly_payment_trend"] == 200.0


def test_payment_trend_ignores_time_of_day(db):
    item, client = _seed(db)
    add_payment(db, item, client, "300.00", datetime(2024, 3, 1, 8, 0))
    add_payment(db, item, client, "150.00", datetime(2024, 3, 20, 10, 0))

    morning = payment_metrics(db, now=datetime(2024, 3, 31, 7, 0))
    evening = payment_metrics(db, now=datetime(2024, 3, 31, 22, 0))

    assert morning["monthly_payment_trend"] == -50.0
    assert evening["monthly_payment_trend"] == -50.0
