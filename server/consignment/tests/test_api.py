from decimal import Decimal

from consignment.models import Item

from .factories import seed_march_ledger

MARCH = {"start_date": "2024-03-01", "end_date": "2024-03-31"}


def _seed(session_factory):
    session = session_factory()
    try:
        ledger = seed_march_ledger(session)
        session.commit()
        return {
            "vendor_ids": [vendor.id for vendor in ledger["vendors"]],
            "brand_ids": [brand.id for brand in ledger["brands"]],
            "client_ids": [client.id for client in ledger["clients"]],
            "item_ids": [item.id for item in ledger["items"]],
        }
    finally:
        session.close()


def test_health_endpoint(api):
    client, _ = api

    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_kpi_report(api):
    client, session_factory = api
    _seed(session_factory)

    response = client.get("/api/reports/kpis", params=MARCH)

    assert response.status_code == 200
    body = response.json()
    assert Decimal(body["revenue"]) == Decimal("1250.00")
    assert Decimal(body["net_profit"]) == Decimal("550.00")
    assert body["items_sold"] == 2
    assert body["previous_start_date"] == "2024-01-30"


def test_kpi_report_with_vendor_filter(api):
    client, session_factory = api
    ids = _seed(session_factory)

    response = client.get("/api/reports/kpis", params={**MARCH, "vendor_ids": [ids["vendor_ids"][0]]})

    assert response.status_code == 200
    assert Decimal(response.json()["revenue"]) == Decimal("950.00")


def test_inverted_date_range_is_bad_request(api):
    client, _ = api

    response = client.get("/api/reports/kpis", params={"start_date": "2024-04-01", "end_date": "2024-03-01"})

    assert response.status_code == 400


def test_timeseries_and_grouped_reports(api):
    client, session_factory = api
    _seed(session_factory)

    series = client.get("/api/reports/timeseries", params={**MARCH, "metric": "revenue", "granularity": "week"})
    grouped = client.get("/api/reports/grouped", params={**MARCH, "group_by": "brand", "metrics": "revenue,profit"})

    assert series.status_code == 200
    assert [point["period"] for point in series.json()] == ["2024-03-03", "2024-03-10", "2024-03-17", "2024-03-31"]
    assert grouped.status_code == 200
    rows = grouped.json()
    assert [row["name"] for row in rows] == ["Hermes", "Chanel", "Unassigned"]
    assert sum(Decimal(row["revenue"]) for row in rows) == Decimal("1250.00")
    assert "profit" in rows[0]
    assert "items_sold" not in rows[0]


def test_report_parameters_are_validated(api):
    client, _ = api

    assert client.get("/api/reports/timeseries", params={"metric": "margin"}).status_code == 422
    assert client.get("/api/reports/grouped", params={"group_by": "color"}).status_code == 422
    assert client.get("/api/reports/grouped", params={"group_by": "brand", "metrics": "velocity"}).status_code == 400


def test_item_profitability_paging(api):
    client, session_factory = api
    _seed(session_factory)

    response = client.get("/api/reports/items", params={**MARCH, "limit": 1})

    assert response.status_code == 200
    body = response.json()
    assert body["total_count"] == 2
    assert [row["title"] for row in body["items"]] == ["Birkin 30"]


def test_snapshot_endpoints(api):
    client, session_factory = api
    _seed(session_factory)

    for path in ("/api/reports/inventory", "/api/financial-health", "/api/dashboard/metrics", "/api/payouts/metrics"):
        assert client.get(path).status_code == 200, path

    health = client.get("/api/financial-health").json()
    assert health["grade"] in {"A+", "A", "B", "C", "D", "F"}
    assert set(health["factors"]) == {
        "payment_timeliness",
        "cash_flow",
        "inventory_turnover",
        "profit_margin",
        "client_retention",
    }


def test_missing_plan_is_not_found(api):
    client, _ = api

    response = client.get("/api/installment-plans/999")

    assert response.status_code == 404
    assert response.json()["detail"] == "Installment plan with id 999 not found."


def test_deleting_referenced_brand_conflicts(api):
    client, session_factory = api
    ids = _seed(session_factory)

    response = client.delete(f"/api/brands/{ids['brand_ids'][0]}")

    assert response.status_code == 409
    assert response.json()["detail"]["blocking_count"] == 1


def test_payout_for_foreign_vendor_is_rejected(api):
    client, session_factory = api
    ids = _seed(session_factory)
    item_b = ids["item_ids"][1]
    maison = ids["vendor_ids"][0]

    response = client.post("/api/payouts", json={"item_id": item_b, "vendor_id": maison, "amount": "10.00"})

    assert response.status_code == 400
    assert response.json()["detail"] == "Item is not consigned by this vendor."


def test_record_payout_returns_settlement(api):
    client, session_factory = api
    ids = _seed(session_factory)

    response = client.post(
        "/api/payouts",
        json={"item_id": ids["item_ids"][0], "vendor_id": ids["vendor_ids"][0], "amount": "540.00"},
    )

    assert response.status_code == 201
    settlement = response.json()["settlement"]
    assert Decimal(settlement["vendor_target"]) == Decimal("540.00")
    assert settlement["is_fully_paid"] is True


def test_installment_plan_lifecycle(api):
    client, session_factory = api
    ids = _seed(session_factory)
    item_d = ids["item_ids"][3]

    created = client.post(
        "/api/installment-plans",
        json={
            "item_id": item_d,
            "client_id": ids["client_ids"][0],
            "total_amount": "900.00",
            "installment_amount": "300.00",
            "frequency": "weekly",
            "start_date": "2024-05-06",
        },
    )
    assert created.status_code == 201
    plan_id = created.json()["id"]

    paid = client.post(f"/api/installment-plans/{plan_id}/payments")
    assert paid.status_code == 200
    assert paid.json()["next_due_date"] == "2024-05-13"
    assert Decimal(paid.json()["remaining_amount"]) == Decimal("600.00")
    assert paid.json()["item"]["status"] == "reserved"

    assert client.delete(f"/api/installment-plans/{plan_id}").status_code == 409


def test_payment_on_returned_item_is_rejected(api):
    client, session_factory = api
    ids = _seed(session_factory)
    session = session_factory()
    try:
        item = session.get(Item, ids["item_ids"][3])
        item.status = "returned"
        session.commit()
    finally:
        session.close()

    response = client.post(
        "/api/payments",
        json={"item_id": ids["item_ids"][3], "client_id": ids["client_ids"][0], "amount": "50.00", "payment_method": "card"},
    )

    assert response.status_code == 400
