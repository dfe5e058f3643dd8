from __future__ import annotations

from collections.abc import Callable
from decimal import Decimal

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm import Session

from healthfin.business.execution.models import ExecutionData
from healthfin.business.execution.schemas import ExecutionDataCreate, ExecutionDataUpdate
from healthfin.business.execution.service import ExecutionDataService, execution_data_service
from healthfin.business.masterdata.models import Activity
from healthfin.business.planning.schemas import PlanningDataCreate, PlanningDataUpdate
from healthfin.business.planning.service import planning_data_service
from healthfin.core.database import commit_with_retry
from healthfin.platform.ledger.models import FinancialEvent
from healthfin.platform.ledger.schemas import EXECUTION_DATA, PLANNING_DATA
from healthfin.platform.ledger.service import LedgerMirrorService, ledger_mirror_service


class FailingLedgerMirror(LedgerMirrorService):
    def _upsert(self, session, entries):  # type: ignore[no-untyped-def]
        raise OperationalError("INSERT INTO financial_events", {}, Exception("disk I/O error"))


def _rows(session: Session, source_table: str, source_id: int) -> list[FinancialEvent]:
    return list(
        session.scalars(
            select(FinancialEvent)
            .where(FinancialEvent.source_table == source_table, FinancialEvent.source_id == source_id)
            .order_by(FinancialEvent.quarter)
        ).all()
    )


def _execution(world, activity_id: int, **amounts: str) -> ExecutionDataCreate:  # type: ignore[no-untyped-def]
    return ExecutionDataCreate(
        facility_id=world.facility,
        reporting_period_id=world.period,
        activity_id=activity_id,
        **{key: Decimal(value) for key, value in amounts.items()},
    )


def test_execution_create_mirrors_non_zero_quarters(
    db_session: Session,
    world,
    event_ids: dict[str, int],
    execution_activity: Callable[[str], int],
) -> None:
    activity_id = execution_activity("GOODS_SERVICES")

    created = execution_data_service.create(
        db_session,
        _execution(world, activity_id, q1_amount="100", q2_amount="0", q3_amount="250.50", q4_amount="0"),
    )
    assert created.cumulative_balance == Decimal("350.50")

    rows = _rows(db_session, EXECUTION_DATA, created.id)
    assert [row.quarter for row in rows] == [1, 3]
    assert [row.amount for row in rows] == [Decimal("100"), Decimal("250.50")]
    assert all(row.event_id == event_ids["GOODS_SERVICES"] for row in rows)
    assert all(row.direction == "DEBIT" for row in rows)
    assert all(row.facility_id == world.facility and row.reporting_period_id == world.period for row in rows)


def test_revenue_events_are_mirrored_as_credits(
    db_session: Session,
    world,
    execution_activity: Callable[[str], int],
) -> None:
    activity_id = execution_activity("TRANSFERS_PUBLIC_ENTITIES")
    created = execution_data_service.create(db_session, _execution(world, activity_id, q1_amount="500000"))

    rows = _rows(db_session, EXECUTION_DATA, created.id)
    assert len(rows) == 1
    assert rows[0].direction == "CREDIT"


def test_sync_is_idempotent(
    db_session: Session,
    world,
    execution_activity: Callable[[str], int],
) -> None:
    activity_id = execution_activity("COMPENSATION_EMPLOYEES")
    created = execution_data_service.create(
        db_session,
        _execution(world, activity_id, q1_amount="10", q2_amount="20", q3_amount="30", q4_amount="40"),
    )
    before = [(row.id, row.quarter, row.amount) for row in _rows(db_session, EXECUTION_DATA, created.id)]

    first = commit_with_retry(db_session, lambda: ledger_mirror_service.sync(db_session, created.id, EXECUTION_DATA))
    second = commit_with_retry(db_session, lambda: ledger_mirror_service.sync(db_session, created.id, EXECUTION_DATA))

    assert first.outcome == "synced" and second.outcome == "synced"
    assert second.rows_written == 4
    assert second.rows_pruned == 0
    after = [(row.id, row.quarter, row.amount) for row in _rows(db_session, EXECUTION_DATA, created.id)]
    assert after == before


def test_zeroed_quarter_is_pruned_on_update(
    db_session: Session,
    world,
    execution_activity: Callable[[str], int],
) -> None:
    activity_id = execution_activity("GOODS_SERVICES")
    created = execution_data_service.create(
        db_session,
        _execution(world, activity_id, q1_amount="100", q2_amount="200"),
    )
    assert [row.quarter for row in _rows(db_session, EXECUTION_DATA, created.id)] == [1, 2]

    updated = execution_data_service.update(
        db_session,
        created.id,
        ExecutionDataUpdate(q1_amount=Decimal("150"), q2_amount=Decimal("0")),
    )
    assert updated.cumulative_balance == Decimal("150")

    rows = _rows(db_session, EXECUTION_DATA, created.id)
    assert [(row.quarter, row.amount) for row in rows] == [(1, Decimal("150"))]


def test_update_repairs_project_on_existing_rows(
    db_session: Session,
    world,
    execution_activity: Callable[[str], int],
) -> None:
    activity_id = execution_activity("GOODS_SERVICES")
    created = execution_data_service.create(
        db_session,
        _execution(world, activity_id, q1_amount="100", q4_amount="5"),
    )
    original_ids = [row.id for row in _rows(db_session, EXECUTION_DATA, created.id)]
    assert all(row.project_id is None for row in _rows(db_session, EXECUTION_DATA, created.id))

    execution_data_service.update(db_session, created.id, ExecutionDataUpdate(project_id=world.hiv))

    rows = _rows(db_session, EXECUTION_DATA, created.id)
    assert [row.id for row in rows] == original_ids
    assert all(row.project_id == world.hiv for row in rows)


def test_unmapped_activity_is_a_no_op(db_session: Session, world) -> None:
    activity = Activity(name="Unmapped", category_code="X")
    db_session.add(activity)
    db_session.commit()

    created = execution_data_service.create(db_session, _execution(world, activity.id, q1_amount="75"))
    result = ledger_mirror_service.sync(db_session, created.id, EXECUTION_DATA)

    assert result.outcome == "no_mapping"
    assert result.rows_written == 0
    assert _rows(db_session, EXECUTION_DATA, created.id) == []


def test_missing_source_row_reports_not_found(db_session: Session, world) -> None:
    result = ledger_mirror_service.sync(db_session, 4242, PLANNING_DATA)
    assert result.outcome == "not_found"


def test_unknown_source_table_is_rejected(db_session: Session) -> None:
    with pytest.raises(ValueError):
        ledger_mirror_service.sync(db_session, 1, "budget_lines")


def test_planning_budget_is_mirrored_from_counts(
    db_session: Session,
    world,
    event_ids: dict[str, int],
    planning_activity: Callable[[str], int],
) -> None:
    activity_id = planning_activity("GOODS_SERVICES")

    created = planning_data_service.create(
        db_session,
        PlanningDataCreate(
            facility_id=world.facility,
            reporting_period_id=world.period,
            activity_id=activity_id,
            frequency=Decimal("2"),
            unit_cost=Decimal("1000"),
            count_q1=Decimal("1"),
            count_q3=Decimal("3"),
        ),
    )

    assert created.amount_q1 == Decimal("2000")
    assert created.amount_q2 == Decimal("0")
    assert created.amount_q3 == Decimal("6000")
    assert created.total_budget == Decimal("8000")

    rows = _rows(db_session, PLANNING_DATA, created.id)
    assert [(row.quarter, row.amount) for row in rows] == [(1, Decimal("2000")), (3, Decimal("6000"))]
    assert all(row.event_id == event_ids["GOODS_SERVICES"] for row in rows)

    planning_data_service.update(db_session, created.id, PlanningDataUpdate(count_q3=Decimal("0")))
    assert [row.quarter for row in _rows(db_session, PLANNING_DATA, created.id)] == [1]


def test_planning_quarters_are_rounded_to_cents_before_mirroring(
    db_session: Session,
    world,
    planning_activity: Callable[[str], int],
) -> None:
    created = planning_data_service.create(
        db_session,
        PlanningDataCreate(
            facility_id=world.facility,
            reporting_period_id=world.period,
            activity_id=planning_activity("GOODS_SERVICES"),
            frequency=Decimal("1.5"),
            unit_cost=Decimal("10.33"),
            count_q1=Decimal("2"),
            count_q2=Decimal("0.0001"),
        ),
    )

    assert created.amount_q1 == Decimal("30.99")
    assert created.amount_q2 == Decimal("0")
    assert created.total_budget == created.amount_q1 + created.amount_q2 + created.amount_q3 + created.amount_q4

    rows = _rows(db_session, PLANNING_DATA, created.id)
    assert [(row.quarter, row.amount) for row in rows] == [(1, Decimal("30.99"))]


def test_execution_amounts_below_a_cent_produce_no_ledger_row(
    db_session: Session,
    world,
    execution_activity: Callable[[str], int],
) -> None:
    activity_id = execution_activity("GOODS_SERVICES")

    created = execution_data_service.create(
        db_session,
        _execution(world, activity_id, q1_amount="12.345678", q2_amount="0.004"),
    )

    assert created.q1_amount == Decimal("12.35")
    assert created.q2_amount == Decimal("0")
    assert created.cumulative_balance == Decimal("12.35")
    assert [(row.quarter, row.amount) for row in _rows(db_session, EXECUTION_DATA, created.id)] == [
        (1, Decimal("12.35")),
    ]


def test_planning_and_execution_rows_with_same_id_do_not_collide(
    db_session: Session,
    world,
    execution_activity: Callable[[str], int],
    planning_activity: Callable[[str], int],
) -> None:
    executed = execution_data_service.create(
        db_session,
        _execution(world, execution_activity("GOODS_SERVICES"), q1_amount="40"),
    )
    planned = planning_data_service.create(
        db_session,
        PlanningDataCreate(
            facility_id=world.facility,
            reporting_period_id=world.period,
            activity_id=planning_activity("GOODS_SERVICES"),
            unit_cost=Decimal("60"),
            count_q1=Decimal("1"),
        ),
    )
    assert executed.id == planned.id

    assert [row.amount for row in _rows(db_session, EXECUTION_DATA, executed.id)] == [Decimal("40")]
    assert [row.amount for row in _rows(db_session, PLANNING_DATA, planned.id)] == [Decimal("60")]


def test_delete_purges_mirrored_rows(
    db_session: Session,
    world,
    execution_activity: Callable[[str], int],
) -> None:
    created = execution_data_service.create(
        db_session,
        _execution(world, execution_activity("GOODS_SERVICES"), q1_amount="1", q2_amount="2"),
    )
    assert len(_rows(db_session, EXECUTION_DATA, created.id)) == 2

    execution_data_service.delete(db_session, created.id)

    assert db_session.get(ExecutionData, created.id) is None
    assert _rows(db_session, EXECUTION_DATA, created.id) == []


def test_failed_mirror_rolls_back_source_write(
    db_session: Session,
    world,
    execution_activity: Callable[[str], int],
) -> None:
    service = ExecutionDataService(ledger_mirror=FailingLedgerMirror())
    activity_id = execution_activity("GOODS_SERVICES")

    with pytest.raises(OperationalError):
        service.create(db_session, _execution(world, activity_id, q1_amount="99"))

    assert db_session.scalar(select(func.count(ExecutionData.id))) == 0
    assert db_session.scalar(select(func.count(FinancialEvent.id))) == 0


def test_commit_with_retry_replays_after_integrity_error(db_session: Session) -> None:
    calls = {"count": 0}

    def work() -> str:
        calls["count"] += 1
        if calls["count"] == 1:
            raise IntegrityError("INSERT INTO financial_events", {}, Exception("UNIQUE constraint failed"))
        return "done"

    assert commit_with_retry(db_session, work, attempts=2) == "done"
    assert calls["count"] == 2


def test_commit_with_retry_gives_up_after_last_attempt(db_session: Session) -> None:
    def work() -> None:
        raise IntegrityError("INSERT INTO financial_events", {}, Exception("UNIQUE constraint failed"))

    with pytest.raises(IntegrityError):
        commit_with_retry(db_session, work, attempts=2)
