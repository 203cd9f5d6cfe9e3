from datetime import date

import pytest

from consignment.reports.filters import DateRange
from consignment.reports.timeseries import build_time_series

from .factories import seed_march_ledger

MARCH = DateRange(date(2024, 3, 1), date(2024, 3, 31))


def _points(series):
    return [(point["period"], point["value"], point["count"]) for point in series]


def test_daily_revenue_is_sparse_and_sorted(db):
    seed_march_ledger(db)

    series = build_time_series(db, MARCH, metric="revenue", granularity="day")

    assert _points(series) == [
        ("2024-03-05", 500.0, 1),
        ("2024-03-10", 50.0, 1),
        ("2024-03-20", 400.0, 1),
        ("2024-03-31", 300.0, 1),
    ]


def test_weekly_buckets_start_on_sunday(db):
    seed_march_ledger(db)

    series = build_time_series(db, MARCH, metric="revenue", granularity="week")

    assert [point["period"] for point in series] == ["2024-03-03", "2024-03-10", "2024-03-17", "2024-03-31"]


def test_monthly_revenue_matches_kpi_total(db):
    seed_march_ledger(db)

    series = build_time_series(db, MARCH, metric="revenue", granularity="month")

    assert _points(series) == [("2024-03-01", 1250.0, 4)]


def test_profit_subtracts_cost_in_first_payment_bucket(db):
    seed_march_ledger(db)

    series = build_time_series(db, MARCH, metric="profit", granularity="day")

    assert {point["period"]: point["value"] for point in series} == {
        "2024-03-05": 100.0,
        "2024-03-10": 50.0,
        "2024-03-20": 400.0,
        "2024-03-31": 100.0,
    }
    monthly = build_time_series(db, MARCH, metric="profit", granularity="month")
    assert monthly[0]["value"] == 650.0


def test_items_sold_payments_and_expenses(db):
    seed_march_ledger(db)

    sold = build_time_series(db, MARCH, metric="itemsSold", granularity="day")
    payments = build_time_series(db, MARCH, metric="payments", granularity="month")
    expenses = build_time_series(db, MARCH, metric="expenses", granularity="day")

    assert _points(sold) == [("2024-03-05", 1.0, 1), ("2024-03-31", 1.0, 1)]
    assert _points(payments) == [("2024-03-01", 4.0, 4)]
    assert _points(expenses) == [("2024-03-02", 60.0, 1), ("2024-03-15", 40.0, 1)]


def test_dense_series_zero_fills_every_day(db):
    seed_march_ledger(db)

    series = build_time_series(db, MARCH, metric="revenue", granularity="day", dense=True)

    assert len(series) == 31
    assert series[0] == {"period": "2024-03-01", "value": 0.0, "count": 0}
    assert sum(point["value"] for point in series) == 1250.0


def test_series_is_idempotent(db):
    seed_march_ledger(db)

    first = build_time_series(db, MARCH, metric="profit", granularity="week")
    second = build_time_series(db, MARCH, metric="profit", granularity="week")

    assert first == second


def test_unknown_metric_or_granularity_is_rejected(db):
    with pytest.raises(ValueError):
        build_time_series(db, MARCH, metric="margin")
    with pytest.raises(ValueError):
        build_time_series(db, MARCH, granularity="year")
