from __future__ import annotations

from collections.abc import Callable, Generator
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from healthfin.core.auth import AuthUser, get_current_user
from healthfin.core.database import get_db
from healthfin.main import app


@pytest.fixture()
def acting_user() -> dict[str, AuthUser]:
    return {"user": AuthUser(sub="planner-1", roles=["user"], facility_id=7)}


@pytest.fixture()
def client(db_session: Session, world, acting_user: dict[str, AuthUser]) -> Generator[TestClient, None, None]:  # type: ignore[no-untyped-def]
    def override_get_db() -> Generator[Session, None, None]:
        yield db_session

    def override_get_current_user() -> AuthUser:
        return acting_user["user"]

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_current_user] = override_get_current_user

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


def _planning_payload(world, activity_id: int, **overrides: object) -> dict[str, object]:  # type: ignore[no-untyped-def]
    payload: dict[str, object] = {
        "facility_id": world.facility,
        "reporting_period_id": world.period,
        "activity_id": activity_id,
        "frequency": "2",
        "unit_cost": "1500",
        "count_q1": "1",
        "count_q2": "2",
    }
    payload.update(overrides)
    return payload


def test_planning_crud_keeps_ledger_in_step(
    client: TestClient,
    world,
    acting_user: dict[str, AuthUser],
    planning_activity: Callable[[str], int],
) -> None:
    activity_id = planning_activity("GOODS_SERVICES")

    created = client.post("/planning-data", json=_planning_payload(world, activity_id))
    assert created.status_code == 201
    body = created.json()
    assert Decimal(body["amount_q1"]) == Decimal("3000")
    assert Decimal(body["amount_q2"]) == Decimal("6000")
    assert Decimal(body["total_budget"]) == Decimal("9000")

    acting_user["user"] = AuthUser(sub="root", roles=["admin"])
    events = client.get("/ledger/financial-events", params={"source_table": "planning_data", "source_id": body["id"]})
    assert events.status_code == 200
    assert [(item["quarter"], Decimal(item["amount"])) for item in events.json()] == [
        (1, Decimal("3000")),
        (2, Decimal("6000")),
    ]

    patched = client.patch(f"/planning-data/{body['id']}", json={"count_q2": "0", "count_q4": "1"})
    assert patched.status_code == 200
    assert Decimal(patched.json()["total_budget"]) == Decimal("6000")

    events = client.get("/ledger/financial-events", params={"source_table": "planning_data", "source_id": body["id"]})
    assert [item["quarter"] for item in events.json()] == [1, 4]

    listed = client.get("/planning-data", params={"facility_id": world.facility, "reporting_period_id": world.period})
    assert [item["id"] for item in listed.json()] == [body["id"]]

    deleted = client.delete(f"/planning-data/{body['id']}")
    assert deleted.status_code == 204
    assert client.get(f"/planning-data/{body['id']}").status_code == 404
    events = client.get("/ledger/financial-events", params={"source_table": "planning_data", "source_id": body["id"]})
    assert events.json() == []


def test_planning_rejects_duplicates_and_bad_scope(
    client: TestClient,
    world,
    planning_activity: Callable[[str], int],
) -> None:
    activity_id = planning_activity("GOODS_SERVICES")
    assert client.post("/planning-data", json=_planning_payload(world, activity_id)).status_code == 201

    duplicate = client.post("/planning-data", json=_planning_payload(world, activity_id))
    assert duplicate.status_code == 409

    assert client.post("/planning-data", json=_planning_payload(world, activity_id, facility_id=999)).status_code == 404
    assert client.post("/planning-data", json=_planning_payload(world, activity_id, reporting_period_id=999)).status_code == 422
    assert client.post("/planning-data", json=_planning_payload(world, 999)).status_code == 422
    assert client.post("/planning-data", json=_planning_payload(world, activity_id, count_q3="-1")).status_code == 422


def test_execution_crud_round_trip(
    client: TestClient,
    world,
    acting_user: dict[str, AuthUser],
    execution_activity: Callable[[str], int],
) -> None:
    activity_id = execution_activity("COMPENSATION_EMPLOYEES")
    created = client.post(
        "/execution-data",
        json={
            "facility_id": world.facility,
            "reporting_period_id": world.period,
            "activity_id": activity_id,
            "project_id": world.hiv,
            "q1_amount": "1200",
            "q3_amount": "300",
        },
    )
    assert created.status_code == 201
    body = created.json()
    assert Decimal(body["cumulative_balance"]) == Decimal("1500")

    duplicate = client.post(
        "/execution-data",
        json={
            "facility_id": world.facility,
            "reporting_period_id": world.period,
            "activity_id": activity_id,
            "project_id": world.hiv,
        },
    )
    assert duplicate.status_code == 409

    patched = client.patch(f"/execution-data/{body['id']}", json={"q2_amount": "500"})
    assert patched.status_code == 200
    assert Decimal(patched.json()["cumulative_balance"]) == Decimal("2000")

    listed = client.get("/execution-data", params={"project_id": world.hiv})
    assert [item["id"] for item in listed.json()] == [body["id"]]

    acting_user["user"] = AuthUser(sub="root", roles=["admin"])
    events = client.get("/ledger/financial-events", params={"source_table": "execution_data"})
    assert [item["quarter"] for item in events.json()] == [1, 2, 3]
    assert all(item["project_id"] == world.hiv for item in events.json())

    assert client.delete(f"/execution-data/{body['id']}").status_code == 204
    assert client.get(f"/execution-data/{body['id']}").status_code == 404


def test_ledger_endpoints_require_admin(client: TestClient, world) -> None:
    assert client.get("/ledger/financial-events").status_code == 403
    assert client.post("/ledger/sync/planning_data/1").status_code == 403
    assert client.post("/ledger/seeds/event-catalog").status_code == 403


def test_ledger_resync_and_catalog_seed(
    client: TestClient,
    world,
    acting_user: dict[str, AuthUser],
    execution_activity: Callable[[str], int],
) -> None:
    created = client.post(
        "/execution-data",
        json={
            "facility_id": world.facility,
            "reporting_period_id": world.period,
            "activity_id": execution_activity("GOODS_SERVICES"),
            "q4_amount": "80",
        },
    )
    assert created.status_code == 201

    acting_user["user"] = AuthUser(sub="root", roles=["system.admin"])
    resynced = client.post(f"/ledger/sync/execution_data/{created.json()['id']}")
    assert resynced.status_code == 200
    assert resynced.json() == {
        "source_table": "execution_data",
        "source_id": created.json()["id"],
        "outcome": "synced",
        "rows_written": 1,
        "rows_pruned": 0,
    }

    assert client.post("/ledger/sync/execution_data/999").status_code == 404
    assert client.post("/ledger/sync/budget_lines/1").status_code == 422

    seeded = client.post("/ledger/seeds/event-catalog")
    assert seeded.status_code == 200
    assert seeded.json() == {"created": 0}
