from datetime import date, datetime
from decimal import Decimal

import pytest

from consignment.reports.filters import DateRange
from consignment.reports.profitability import item_profitability

from .factories import add_payment, create_client, create_item, create_vendor, seed_march_ledger

MARCH = DateRange(date(2024, 3, 1), date(2024, 3, 31))


def test_items_are_ranked_by_profit(db):
    seed_march_ledger(db)

    result = item_profitability(db, MARCH)

    assert result["total_count"] == 2
    birkin, flap = result["items"]
    assert birkin["title"] == "Birkin 30"
    assert birkin["brand"] == "Hermes"
    assert birkin["vendor"] == "Maison"
    assert birkin["revenue"] == Decimal("900.00")
    assert birkin["cost"] == Decimal("400.00")
    assert birkin["profit"] == Decimal("500.00")
    assert birkin["margin"] == 55.56
    assert birkin["acquisition_date"] == date(2024, 1, 1)
    assert birkin["sold_date"] == date(2024, 3, 5)
    assert birkin["days_to_sell"] == 64
    assert flap["profit"] == Decimal("100.00")
    assert flap["margin"] == 33.33
    assert flap["days_to_sell"] == 50


def test_paging_keeps_total_count(db):
    seed_march_ledger(db)

    result = item_profitability(db, MARCH, limit=1, offset=1)

    assert result["total_count"] == 2
    assert [row["title"] for row in result["items"]] == ["Classic Flap"]


def test_cost_falls_back_to_max_cost(db):
    vendor = create_vendor(db)
    client = create_client(db)
    item = create_item(db, vendor, status="sold", min_cost=None, max_cost="250.00")
    add_payment(db, item, client, "300.00", datetime(2024, 3, 4, 10, 0))

    row = item_profitability(db, MARCH)["items"][0]

    assert row["cost"] == Decimal("250.00")
    assert row["profit"] == Decimal("50.00")


def test_invalid_paging_is_rejected(db):
    with pytest.raises(ValueError):
        item_profitability(db, MARCH, limit=0)
    with pytest.raises(ValueError):
        item_profitability(db, MARCH, offset=-1)
