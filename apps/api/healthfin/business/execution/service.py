from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, TypeVar

from fastapi import HTTPException, status
from sqlalchemy import Select, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from healthfin.business.execution.models import ExecutionData
from healthfin.business.execution.schemas import ExecutionDataCreate, ExecutionDataRead, ExecutionDataUpdate
from healthfin.business.masterdata.models import Activity
from healthfin.business.masterdata.repository import masterdata_repository
from healthfin.core.database import commit_with_retry
from healthfin.platform.ledger.schemas import EXECUTION_DATA
from healthfin.platform.ledger.service import LedgerMirrorService, to_cents


T = TypeVar("T")

_AMOUNT_FIELDS = ("q1_amount", "q2_amount", "q3_amount", "q4_amount")


def apply_balance(row: ExecutionData) -> None:
    total = Decimal("0.00")
    for name in _AMOUNT_FIELDS:
        amount = to_cents(getattr(row, name))
        setattr(row, name, amount)
        total += amount
    row.cumulative_balance = total


@dataclass(slots=True)
class ExecutionDataService:
    ledger_mirror: LedgerMirrorService = field(default_factory=LedgerMirrorService)

    def create(self, session: Session, dto: ExecutionDataCreate) -> ExecutionDataRead:
        payload = dto.model_dump(mode="python")
        masterdata_repository.require_scope(session, dto.facility_id, dto.reporting_period_id)
        if session.get(Activity, dto.activity_id) is None:
            raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail="unknown activity")

        project_clause = (
            ExecutionData.project_id.is_(None) if dto.project_id is None else ExecutionData.project_id == dto.project_id
        )
        duplicate = session.scalar(
            select(ExecutionData.id).where(
                ExecutionData.facility_id == dto.facility_id,
                ExecutionData.reporting_period_id == dto.reporting_period_id,
                ExecutionData.activity_id == dto.activity_id,
                project_clause,
            )
        )
        if duplicate is not None:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="execution data already exists")

        def work() -> ExecutionData:
            row = ExecutionData(**payload)
            apply_balance(row)
            session.add(row)
            session.flush()
            self.ledger_mirror.sync(session, row.id, EXECUTION_DATA)
            return row

        row = self._commit(session, work)
        session.refresh(row)
        return ExecutionDataRead.model_validate(row)

    def update(self, session: Session, execution_id: int, dto: ExecutionDataUpdate) -> ExecutionDataRead:
        self._get_or_404(session, execution_id)
        changes: dict[str, Any] = dto.model_dump(mode="python", exclude_unset=True)

        def work() -> ExecutionData:
            row = self._get_or_404(session, execution_id)
            for key, value in changes.items():
                if value is None and key in _AMOUNT_FIELDS:
                    continue
                setattr(row, key, value)
            apply_balance(row)
            session.flush()
            self.ledger_mirror.sync(session, row.id, EXECUTION_DATA)
            return row

        row = self._commit(session, work)
        session.refresh(row)
        return ExecutionDataRead.model_validate(row)

    def get(self, session: Session, execution_id: int) -> ExecutionDataRead:
        return ExecutionDataRead.model_validate(self._get_or_404(session, execution_id))

    def list_records(
        self,
        session: Session,
        *,
        facility_id: int | None = None,
        reporting_period_id: int | None = None,
        project_id: int | None = None,
    ) -> list[ExecutionDataRead]:
        stmt: Select[tuple[ExecutionData]] = select(ExecutionData)
        if facility_id is not None:
            stmt = stmt.where(ExecutionData.facility_id == facility_id)
        if reporting_period_id is not None:
            stmt = stmt.where(ExecutionData.reporting_period_id == reporting_period_id)
        if project_id is not None:
            stmt = stmt.where(ExecutionData.project_id == project_id)
        rows = session.scalars(stmt.order_by(ExecutionData.id.asc())).all()
        return [ExecutionDataRead.model_validate(item) for item in rows]

    def delete(self, session: Session, execution_id: int) -> None:
        self._get_or_404(session, execution_id)

        def work() -> None:
            row = self._get_or_404(session, execution_id)
            self.ledger_mirror.purge(session, EXECUTION_DATA, row.id)
            session.delete(row)
            session.flush()

        self._commit(session, work)

    @staticmethod
    def _get_or_404(session: Session, execution_id: int) -> ExecutionData:
        row = session.get(ExecutionData, execution_id)
        if row is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="execution data not found")
        return row

    @staticmethod
    def _commit(session: Session, work: Callable[[], T]) -> T:
        try:
            return commit_with_retry(session, work)
        except IntegrityError:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="failed to persist execution data")


execution_data_service = ExecutionDataService()
