"""
Tests for the /api/v1/mrp endpoints.
"""
from decimal import Decimal
from datetime import datetime, timedelta

from app.models import MRPRun

from tests.factories import (
    create_test_bom,
    create_test_item,
    create_test_mrp_run,
    create_test_production_order,
)


def parse_decimal(value) -> Decimal:
    """Parse a JSON value (string or number) as Decimal for comparison."""
    return Decimal(str(value))


def setup_table_demand(db_session, quantity="4"):
    """Table -> 4 legs + 1 top; one released order"""
    table = create_test_item(db_session, item_code="TABLE", item_name="Table", item_type="finished_good")
    leg = create_test_item(db_session, item_code="LEG", item_name="Table Leg")
    top = create_test_item(db_session, item_code="TOP", item_name="Table Top")
    create_test_bom(db_session, table, [(leg, "4"), (top, "1", "10")])
    order = create_test_production_order(db_session, table, quantity=quantity)
    return table, leg, top, order


class TestRunMRP:

    def test_run_returns_completed_run(self, client, db_session):
        setup_table_demand(db_session)

        response = client.post(
            "/api/v1/mrp/runs", json={"planning_horizon_days": 14}, headers={"X-User-Id": "5"}
        )

        assert response.status_code == 201
        data = response.json()
        assert data["status"] == "completed"
        assert data["planning_horizon_days"] == 14
        assert data["total_requirements"] == 2
        assert data["total_shortages"] == 2
        assert data["created_by"] == 5
        assert data["run_number"].startswith("MRP-")

    def test_default_horizon(self, client):
        response = client.post("/api/v1/mrp/runs", json={})

        assert response.status_code == 201
        assert response.json()["planning_horizon_days"] == 30
        assert response.json()["notes"] == "No released production orders found in planning horizon"

    def test_invalid_horizon_rejected_without_run(self, client, db_session):
        response = client.post("/api/v1/mrp/runs", json={"planning_horizon_days": 0})

        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "VALIDATION_ERROR"
        assert body["details"]["field"] == "planning_horizon_days"
        assert "timestamp" in body
        assert db_session.query(MRPRun).count() == 0

    def test_horizon_above_configured_maximum_rejected(self, client, db_session):
        response = client.post("/api/v1/mrp/runs", json={"planning_horizon_days": 366})

        assert response.status_code == 400
        assert response.json()["details"]["field"] == "planning_horizon_days"
        assert "365" in response.json()["message"]
        assert db_session.query(MRPRun).count() == 0

    def test_conflict_while_running(self, client, db_session):
        create_test_mrp_run(db_session, status="running")

        response = client.post("/api/v1/mrp/runs", json={"planning_horizon_days": 30})

        assert response.status_code == 409
        assert response.json()["error"] == "CONFLICT"

    def test_cyclic_bom_returns_422_and_failed_run(self, client, db_session):
        a = create_test_item(db_session, item_code="A", item_type="component")
        b = create_test_item(db_session, item_code="B", item_type="component")
        create_test_bom(db_session, a, [(b, "1")])
        create_test_bom(db_session, b, [(a, "1")])
        create_test_production_order(db_session, a, quantity="1")

        response = client.post("/api/v1/mrp/runs", json={"planning_horizon_days": 30})

        assert response.status_code == 422
        assert response.json()["error"] == "CYCLIC_BOM"
        db_session.expire_all()
        assert db_session.query(MRPRun).one().status == "failed"


class TestReadRuns:

    def test_get_run_not_found(self, client):
        response = client.get("/api/v1/mrp/runs/999")

        assert response.status_code == 404
        assert response.json()["error"] == "NOT_FOUND"

    def test_list_runs_paginated(self, client, db_session):
        for days in range(3):
            create_test_mrp_run(db_session, run_date=datetime.utcnow() - timedelta(days=days))

        response = client.get("/api/v1/mrp/runs", params={"page": 1, "page_size": 2})

        assert response.status_code == 200
        data = response.json()
        assert len(data["items"]) == 2
        assert data["pagination"] == {"total": 3, "page": 1, "page_size": 2, "returned": 2}
        dates = [item["run_date"] for item in data["items"]]
        assert dates == sorted(dates, reverse=True)

    def test_list_runs_unknown_status(self, client):
        response = client.get("/api/v1/mrp/runs", params={"status": "paused"})

        assert response.status_code == 400

    def test_requirements_and_shortages(self, client, db_session):
        _, leg, top, order = setup_table_demand(db_session)
        run_id = client.post("/api/v1/mrp/runs", json={"planning_horizon_days": 30}).json()["id"]

        response = client.get(f"/api/v1/mrp/runs/{run_id}/requirements")

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 2
        rows = {row["item_code"]: row for row in data["items"]}
        assert parse_decimal(rows["LEG"]["required_quantity"]) == Decimal("16")
        assert parse_decimal(rows["TOP"]["required_quantity"]) == Decimal("4.4")
        assert rows["TOP"]["item_name"] == "Table Top"
        assert rows["LEG"]["production_order_id"] == order.id
        assert parse_decimal(rows["LEG"]["available_quantity"]) == Decimal("0")

        shortages = client.get(f"/api/v1/mrp/runs/{run_id}/shortages").json()
        assert {row["item_id"] for row in shortages["items"]} == {leg.id, top.id}

    def test_requirements_for_missing_run(self, client):
        assert client.get("/api/v1/mrp/runs/123/requirements").status_code == 404


class TestRunMaintenance:

    def test_delete_run(self, client, db_session):
        setup_table_demand(db_session)
        run_id = client.post("/api/v1/mrp/runs", json={"planning_horizon_days": 30}).json()["id"]

        response = client.delete(f"/api/v1/mrp/runs/{run_id}")

        assert response.status_code == 200
        assert response.json()["requirements_deleted"] == 2
        assert client.get(f"/api/v1/mrp/runs/{run_id}").status_code == 404

    def test_delete_running_run_rejected(self, client, db_session):
        run = create_test_mrp_run(db_session, status="running")

        response = client.delete(f"/api/v1/mrp/runs/{run.id}")

        assert response.status_code == 400
        assert response.json()["error"] == "INVALID_STATE"

    def test_reconcile(self, client, db_session):
        stale = create_test_mrp_run(
            db_session, status="running", run_date=datetime.utcnow() - timedelta(hours=2)
        )

        response = client.post("/api/v1/mrp/runs/reconcile")

        assert response.status_code == 200
        assert response.json() == {"reconciled_run_ids": [stale.id], "count": 1}
        assert client.get(f"/api/v1/mrp/runs/{stale.id}").json()["status"] == "failed"


class TestExplodePreview:

    def test_explode_item(self, client, db_session):
        table, _, _, _ = setup_table_demand(db_session)

        response = client.get(f"/api/v1/mrp/explode/{table.id}", params={"quantity": "2"})

        assert response.status_code == 200
        data = response.json()
        components = {c["item_code"]: parse_decimal(c["quantity"]) for c in data["components"]}
        assert components == {"LEG": Decimal("8"), "TOP": Decimal("2.2")}

    def test_explode_unknown_item(self, client):
        assert client.get("/api/v1/mrp/explode/4040").status_code == 404
