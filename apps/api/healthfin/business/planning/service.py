from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, TypeVar

from fastapi import HTTPException, status
from sqlalchemy import Select, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from healthfin.business.masterdata.models import PlanningActivity
from healthfin.business.masterdata.repository import masterdata_repository
from healthfin.business.planning.models import PlanningData
from healthfin.business.planning.schemas import PlanningDataCreate, PlanningDataRead, PlanningDataUpdate
from healthfin.core.database import commit_with_retry
from healthfin.platform.ledger.schemas import PLANNING_DATA
from healthfin.platform.ledger.service import LedgerMirrorService, to_cents


T = TypeVar("T")

QUARTERS = (1, 2, 3, 4)


def apply_budget(row: PlanningData) -> None:
    """Derive quarterly amounts and the total budget from frequency, unit cost and counts.

    Each quarter is rounded to cents before it is summed, so ``total_budget`` always
    equals the stored quarters and a quarter that rounds to zero mirrors nothing.
    """
    frequency = Decimal(row.frequency or 0)
    unit_cost = Decimal(row.unit_cost or 0)
    total = Decimal("0.00")
    for quarter in QUARTERS:
        amount = to_cents(frequency * unit_cost * Decimal(getattr(row, f"count_q{quarter}") or 0))
        setattr(row, f"amount_q{quarter}", amount)
        total += amount
    row.total_budget = total


@dataclass(slots=True)
class PlanningDataService:
    ledger_mirror: LedgerMirrorService = field(default_factory=LedgerMirrorService)

    def create(self, session: Session, dto: PlanningDataCreate) -> PlanningDataRead:
        payload = dto.model_dump(mode="python")
        masterdata_repository.require_scope(session, dto.facility_id, dto.reporting_period_id)
        if session.get(PlanningActivity, dto.activity_id) is None:
            raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail="unknown planning activity")

        duplicate = session.scalar(
            select(PlanningData.id).where(
                PlanningData.facility_id == dto.facility_id,
                PlanningData.reporting_period_id == dto.reporting_period_id,
                PlanningData.activity_id == dto.activity_id,
            )
        )
        if duplicate is not None:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="planning data already exists")

        def work() -> PlanningData:
            row = PlanningData(**payload)
            apply_budget(row)
            session.add(row)
            session.flush()
            self.ledger_mirror.sync(session, row.id, PLANNING_DATA)
            return row

        row = self._commit(session, work)
        session.refresh(row)
        return PlanningDataRead.model_validate(row)

    def update(self, session: Session, planning_id: int, dto: PlanningDataUpdate) -> PlanningDataRead:
        self._get_or_404(session, planning_id)
        changes: dict[str, Any] = dto.model_dump(mode="python", exclude_unset=True)

        def work() -> PlanningData:
            row = self._get_or_404(session, planning_id)
            for key, value in changes.items():
                if value is None and key not in {"project_id", "comment"}:
                    continue
                setattr(row, key, value)
            apply_budget(row)
            session.flush()
            self.ledger_mirror.sync(session, row.id, PLANNING_DATA)
            return row

        row = self._commit(session, work)
        session.refresh(row)
        return PlanningDataRead.model_validate(row)

    def get(self, session: Session, planning_id: int) -> PlanningDataRead:
        return PlanningDataRead.model_validate(self._get_or_404(session, planning_id))

    def list_records(
        self,
        session: Session,
        *,
        facility_id: int | None = None,
        reporting_period_id: int | None = None,
    ) -> list[PlanningDataRead]:
        stmt: Select[tuple[PlanningData]] = select(PlanningData)
        if facility_id is not None:
            stmt = stmt.where(PlanningData.facility_id == facility_id)
        if reporting_period_id is not None:
            stmt = stmt.where(PlanningData.reporting_period_id == reporting_period_id)
        rows = session.scalars(stmt.order_by(PlanningData.id.asc())).all()
        return [PlanningDataRead.model_validate(item) for item in rows]

    def delete(self, session: Session, planning_id: int) -> None:
        self._get_or_404(session, planning_id)

        def work() -> None:
            row = self._get_or_404(session, planning_id)
            self.ledger_mirror.purge(session, PLANNING_DATA, row.id)
            session.delete(row)
            session.flush()

        self._commit(session, work)

    @staticmethod
    def _get_or_404(session: Session, planning_id: int) -> PlanningData:
        row = session.get(PlanningData, planning_id)
        if row is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="planning data not found")
        return row

    @staticmethod
    def _commit(session: Session, work: Callable[[], T]) -> T:
        try:
            return commit_with_retry(session, work)
        except IntegrityError:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="failed to persist planning data")


planning_data_service = PlanningDataService()
