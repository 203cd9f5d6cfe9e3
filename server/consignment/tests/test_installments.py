from datetime import date, datetime
from decimal import Decimal

import pytest

from consignment.errors import ConflictError, NotFoundError, ValidationError
from consignment.installments.schedule import advance_schedule, next_due_date
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
from consignment.models import ClientPayment, InstallmentPlan

from .factories import add_plan, create_client, create_item, create_vendor


@pytest.mark.parametrize(
    "current, frequency, expected",
    [
        (date(2024, 1, 1), "weekly", date(2024, 1, 8)),
        (date(2024, 1, 1), "biweekly", date(2024, 1, 15)),
        (date(2024, 1, 31), "monthly", date(2024, 2, 29)),
        (date(2024, 11, 30), "quarterly", date(2025, 2, 28)),
    ],
)
def test_next_due_date(current, frequency, expected):
    assert next_due_date(current, frequency) == expected


def test_unknown_frequency_is_rejected():
    with pytest.raises(ValueError):
        next_due_date(date(2024, 1, 1), "daily")


def test_advance_schedule_rolls_due_date_forward():
    advance = advance_schedule(Decimal("900.00"), Decimal("300.00"), date(2024, 1, 1), "weekly")

    assert advance.remaining_amount == Decimal("600.00")
    assert advance.status == "active"
    assert advance.next_due_date == date(2024, 1, 8)
    assert not advance.completed


def test_advance_schedule_completes_when_nothing_remains():
    advance = advance_schedule(Decimal("300.00"), Decimal("350.00"), date(2024, 1, 15), "weekly")

    assert advance.completed
    assert advance.remaining_amount == Decimal("0.00")
    assert advance.next_due_date == date(2024, 1, 15)


def test_advance_schedule_rejects_non_positive_payment():
    with pytest.raises(ValueError):
        advance_schedule(Decimal("300.00"), Decimal("0"), date(2024, 1, 15), "weekly")


def _seed_plan(db, frequency="weekly"):
    vendor = create_vendor(db)
    client = create_client(db)
    item = create_item(db, vendor, min_sales_price="900.00")
    db.commit()
    plan = create_plan(
        db,
        {
            "item_id": item.id,
            "client_id": client.id,
            "total_amount": "900.00",
            "installment_amount": "300.00",
            "frequency": frequency,
            "start_date": date(2024, 1, 1),
        },
    )
    return item, client, plan


def test_create_plan_starts_with_full_balance(db):
    _, _, plan = _seed_plan(db)

    assert plan.status == "active"
    assert plan.next_due_date == date(2024, 1, 1)
    assert plan.remaining_amount == Decimal("900.00")
    assert plan.reminder_sent is False


def test_create_plan_validates_amounts_and_targets(db):
    vendor = create_vendor(db)
    client = create_client(db)
    item = create_item(db, vendor)
    db.commit()

    with pytest.raises(ValidationError):
        create_plan(db, {"item_id": item.id, "client_id": client.id, "total_amount": "100", "installment_amount": "200"})
    with pytest.raises(NotFoundError):
        create_plan(db, {"item_id": item.id, "client_id": 999, "total_amount": "900", "installment_amount": "300"})


def test_installment_payment_advances_plan_and_reserves_item(db):
    item, _, plan = _seed_plan(db)

    updated = apply_installment_payment(db, plan.id)

    assert updated.next_due_date == date(2024, 1, 8)
    assert updated.remaining_amount == Decimal("600.00")
    assert updated.status == "active"
    payment = db.query(ClientPayment).one()
    assert payment.installment_plan_id == plan.id
    assert payment.amount == Decimal("300.00")
    assert payment.payment_method == "installment"
    db.refresh(item)
    assert item.status == "reserved"


def test_final_installment_completes_plan_and_sells_item(db):
    item, _, plan = _seed_plan(db)

    for _ in range(3):
        updated = apply_installment_payment(db, plan.id)

    assert updated.status == "completed"
    assert updated.remaining_amount == Decimal("0.00")
    assert updated.next_due_date == date(2024, 1, 15)
    db.refresh(item)
    assert item.status == "sold"

    with pytest.raises(ValidationError):
        apply_installment_payment(db, plan.id)
    assert db.query(ClientPayment).count() == 3


def test_completing_plan_is_logged(db, caplog):
    _, _, plan = _seed_plan(db)

    with caplog.at_level("INFO", logger="consignment.installments.service"):
        apply_installment_payment(db, plan.id)
        assert f"Installment plan {plan.id} completed" not in caplog.text
        apply_installment_payment(db, plan.id)
        apply_installment_payment(db, plan.id)

    assert f"Installment plan {plan.id} completed" in caplog.text


def test_custom_installment_amount(db):
    _, _, plan = _seed_plan(db, frequency="monthly")

    updated = apply_installment_payment(
        db, plan.id, {"amount": Decimal("450.00"), "payment_method": "card", "paid_at": datetime(2024, 1, 2)}
    )

    assert updated.remaining_amount == Decimal("450.00")
    assert updated.next_due_date == date(2024, 2, 1)
    assert db.query(ClientPayment).one().payment_method == "card"


def test_reminder_flag_resets_after_payment(db):
    _, _, plan = _seed_plan(db)

    reminded = send_reminder(db, plan.id, now=datetime(2024, 1, 1, 9, 0))
    assert reminded.reminder_sent is True
    assert reminded.last_reminder_at == datetime(2024, 1, 1, 9, 0)

    updated = apply_installment_payment(db, plan.id)
    assert updated.reminder_sent is False


def test_upcoming_and_overdue_windows(db):
    vendor = create_vendor(db)
    client = create_client(db)
    item = create_item(db, vendor)
    due_today = add_plan(db, item, client, date(2024, 1, 5))
    tomorrow = add_plan(db, item, client, date(2024, 1, 6))
    week_out = add_plan(db, item, client, date(2024, 1, 12))
    add_plan(db, item, client, date(2024, 1, 13))
    add_plan(db, item, client, date(2024, 1, 6), status="completed", remaining="0.00")

    today = date(2024, 1, 5)

    assert [plan.id for plan in upcoming_plans(db, today)] == [tomorrow.id, week_out.id]
    assert [plan.id for plan in overdue_plans(db, today)] == [due_today.id]
    assert len(list_plans(db, status="completed")) == 1


def test_delete_plan_with_payments_conflicts(db):
    _, _, plan = _seed_plan(db)
    apply_installment_payment(db, plan.id)

    with pytest.raises(ConflictError) as excinfo:
        delete_plan(db, plan.id)

    assert excinfo.value.blocking_count == 1
    assert get_plan(db, plan.id).id == plan.id


def test_delete_unpaid_plan(db):
    _, _, plan = _seed_plan(db)

    delete_plan(db, plan.id)

    assert db.query(InstallmentPlan).count() == 0
    with pytest.raises(NotFoundError):
        get_plan(db, plan.id)
