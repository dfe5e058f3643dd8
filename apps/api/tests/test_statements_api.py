from __future__ import annotations

from collections.abc import Callable, Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from healthfin.core.auth import AuthUser, get_current_user
from healthfin.core.config import get_settings
from healthfin.core.database import get_db
from healthfin.main import app


SURPLUS_LINE = "SURPLUS / (DEFICIT) FOR THE PERIOD"


@pytest.fixture()
def acting_user() -> dict[str, AuthUser]:
    return {"user": AuthUser(sub="accountant-7", roles=["user"], facility_id=7)}


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


@pytest.fixture()
def actuals(world, post_ledger: Callable[..., None]):  # type: ignore[no-untyped-def]
    post_ledger(world.facility, world.period, "TRANSFERS_PUBLIC_ENTITIES", 500000)
    post_ledger(world.facility, world.period, "COMPENSATION_EMPLOYEES", 300000)
    post_ledger(world.facility, world.period, "GOODS_SERVICES", 120000)
    post_ledger(world.remote, world.period, "GRANTS", 2500)
    post_ledger(world.facility, world.previous_period, "GRANTS", 10)
    return world


def _line(rows: list[dict], description: str) -> dict:
    return next(row for row in rows if row["description"] == description)


def test_facility_statement_serializes_floats_and_flags(client: TestClient, actuals) -> None:
    response = client.get(f"/statements/revenue-expenditure/{actuals.facility}/{actuals.period}")
    assert response.status_code == 200

    rows = response.json()
    surplus = _line(rows, SURPLUS_LINE)
    assert surplus["current"] == 80000.0
    assert surplus["previous"] is None
    total = _line(rows, "TOTAL REVENUE")
    assert total["isTotal"] is True
    assert total["isSubtotal"] is False
    assert total["current"] == 500000.0
    assert set(total) == {"description", "note", "current", "previous", "isTotal", "isSubtotal"}


def test_explicit_previous_period_fills_comparison(client: TestClient, actuals) -> None:
    response = client.get(
        f"/statements/revenue-expenditure/{actuals.facility}/{actuals.period}",
        params={"previous_period_id": actuals.previous_period},
    )
    assert response.status_code == 200
    assert _line(response.json(), SURPLUS_LINE)["previous"] == 10.0


def test_previous_period_lookup_can_be_enabled(
    client: TestClient,
    actuals,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setenv("STATEMENT_DEFAULT_PREVIOUS_PERIOD", "true")
    get_settings.cache_clear()

    response = client.get(f"/statements/revenue-expenditure/{actuals.facility}/{actuals.period}")
    assert response.status_code == 200
    assert _line(response.json(), SURPLUS_LINE)["previous"] == 10.0


def test_same_district_facility_is_readable(client: TestClient, actuals) -> None:
    response = client.get(f"/statements/cash-flow/{actuals.sibling}/{actuals.period}")
    assert response.status_code == 200


def test_other_district_is_forbidden(client: TestClient, actuals) -> None:
    response = client.get(f"/statements/revenue-expenditure/{actuals.remote}/{actuals.period}")
    assert response.status_code == 403


def test_unknown_facility_is_not_found(client: TestClient, actuals) -> None:
    response = client.get(f"/statements/revenue-expenditure/999/{actuals.period}")
    assert response.status_code == 404


def test_user_without_facility_is_unauthorized(
    client: TestClient,
    actuals,
    acting_user: dict[str, AuthUser],
) -> None:
    acting_user["user"] = AuthUser(sub="anonymous", roles=["guest"])
    response = client.get(f"/statements/revenue-expenditure/{actuals.facility}/{actuals.period}")
    assert response.status_code == 401

    acting_user["user"] = AuthUser(sub="orphan", roles=["user"], facility_id=404)
    response = client.get(f"/statements/revenue-expenditure/{actuals.facility}/{actuals.period}")
    assert response.status_code == 401


def test_admin_reads_any_district(client: TestClient, actuals, acting_user: dict[str, AuthUser]) -> None:
    acting_user["user"] = AuthUser(sub="root", roles=["admin"])
    response = client.get(f"/statements/revenue-expenditure/{actuals.remote}/{actuals.period}")
    assert response.status_code == 200
    assert _line(response.json(), SURPLUS_LINE)["current"] == 2500.0


def test_aggregate_and_per_facility_routes(client: TestClient, actuals) -> None:
    aggregate = client.get(f"/statements/revenue-expenditure/aggregate/{actuals.period}")
    assert aggregate.status_code == 200
    assert _line(aggregate.json(), SURPLUS_LINE)["current"] == 82500.0

    per_facility = client.get(f"/statements/revenue-expenditure/all/{actuals.period}")
    assert per_facility.status_code == 200
    body = per_facility.json()
    assert [item["facilityId"] for item in body] == [actuals.facility, actuals.remote]
    assert _line(body[1]["rows"], SURPLUS_LINE)["current"] == 2500.0


def test_aggregate_by_unknown_project_is_empty(client: TestClient, actuals) -> None:
    response = client.get(
        f"/statements/revenue-expenditure/aggregate/{actuals.period}",
        params={"project_code": "MALARIA"},
    )
    assert response.status_code == 200
    assert response.json() == []


def test_budget_variance_route(client: TestClient, actuals) -> None:
    response = client.get(f"/statements/budget-vs-actual/{actuals.facility}/{actuals.period}/variance")
    assert response.status_code == 200
    transfers = _line(response.json(), "Transfers from public entities")
    assert transfers["actual"] == 500000.0
    assert transfers["budget"] == 0.0
    assert transfers["variance"] == -500000.0
    assert transfers["executionRate"] is None


def test_unknown_statement_slug_is_rejected(client: TestClient, actuals) -> None:
    response = client.get(f"/statements/trial-balance/{actuals.facility}/{actuals.period}")
    assert response.status_code == 422


def test_template_seed_requires_admin(client: TestClient, actuals, acting_user: dict[str, AuthUser]) -> None:
    assert client.post("/statements/seeds/templates").status_code == 403

    acting_user["user"] = AuthUser(sub="root", roles=["admin"])
    seeded = client.post("/statements/seeds/templates")
    assert seeded.status_code == 200
    assert seeded.json()["created"] == 0
    assert seeded.json()["missing_event_codes"] == []
