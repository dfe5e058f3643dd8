from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any

from sqlalchemy import Select, delete, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from healthfin.business.execution.models import ExecutionData
from healthfin.business.planning.models import PlanningData
from healthfin.metrics import observe_ledger_sync
from healthfin.otel import get_tracer
from healthfin.platform.ledger.models import (
    NATURAL_KEY_COLUMNS,
    ActivityEventMapping,
    Event,
    FinancialEvent,
    PlanningActivityEventMapping,
    utcnow,
)
from healthfin.platform.ledger.schemas import EXECUTION_DATA, PLANNING_DATA, FinancialEventRead, LedgerSyncRead


logger = logging.getLogger("healthfin.ledger")
tracer = get_tracer("healthfin.ledger")

_SOURCES: dict[str, tuple[Any, Any, Any]] = {
    EXECUTION_DATA: (ExecutionData, ActivityEventMapping, ActivityEventMapping.activity_id),
    PLANNING_DATA: (PlanningData, PlanningActivityEventMapping, PlanningActivityEventMapping.planning_activity_id),
}


@dataclass(frozen=True, slots=True)
class LedgerEntry:
    event_id: int
    amount: Decimal
    direction: str
    reporting_period_id: int
    facility_id: int
    project_id: int | None
    quarter: int
    source_table: str
    source_id: int

    def key(self) -> tuple[int, int, int, int]:
        return (self.event_id, self.reporting_period_id, self.facility_id, self.quarter)


CENTS = Decimal("0.01")


def to_cents(value: Decimal | int | str | None) -> Decimal:
    """Round an amount to the two decimal places the money columns store."""
    return Decimal(value or 0).quantize(CENTS)


def direction_for(event_type: str | None) -> str:
    return "CREDIT" if event_type == "REVENUE" else "DEBIT"


def build_entries(source: Any, source_table: str, event_id: int, event_type: str | None) -> list[LedgerEntry]:
    """One entry per non-zero quarter amount of ``source``."""
    direction = direction_for(event_type)
    entries: list[LedgerEntry] = []
    for quarter, raw in source.quarter_amounts().items():
        amount = to_cents(raw)
        if amount == 0:
            continue
        entries.append(
            LedgerEntry(
                event_id=event_id,
                amount=amount,
                direction=direction,
                reporting_period_id=source.reporting_period_id,
                facility_id=source.facility_id,
                project_id=source.project_id,
                quarter=quarter,
                source_table=source_table,
                source_id=source.id,
            )
        )
    return entries


@dataclass(slots=True)
class LedgerMirrorService:
    """Mirrors planning and execution rows into ``financial_events``.

    The mirror never commits. Callers run ``sync`` inside the transaction that
    wrote the source row so both land or roll back together.
    """

    def sync(self, session: Session, source_id: int, source_table: str) -> LedgerSyncRead:
        if source_table not in _SOURCES:
            raise ValueError(f"unsupported source table: {source_table}")

        with tracer.start_as_current_span("ledger.sync") as span:
            span.set_attribute("ledger.source_table", source_table)
            span.set_attribute("ledger.source_id", source_id)

            model, mapping, mapping_key = _SOURCES[source_table]
            row = session.execute(
                select(model, Event.id, Event.event_type)
                .outerjoin(mapping, mapping_key == model.activity_id)
                .outerjoin(Event, Event.id == mapping.event_id)
                .where(model.id == source_id)
            ).first()

            if row is None:
                logger.debug("ledger.source_not_found", extra={"source_table": source_table, "source_id": source_id})
                observe_ledger_sync(source_table, "not_found")
                span.set_attribute("ledger.outcome", "not_found")
                return LedgerSyncRead(source_table=source_table, source_id=source_id, outcome="not_found")

            source, event_id, event_type = row
            if event_id is None:
                logger.debug("ledger.no_mapping", extra={"source_table": source_table, "source_id": source_id})
                observe_ledger_sync(source_table, "no_mapping")
                span.set_attribute("ledger.outcome", "no_mapping")
                return LedgerSyncRead(source_table=source_table, source_id=source_id, outcome="no_mapping")

            entries = build_entries(source, source_table, event_id, event_type)
            try:
                pruned = self._prune(session, source_table, source_id, {entry.key() for entry in entries})
                self._upsert(session, entries)
            except SQLAlchemyError as exc:
                logger.error(
                    "ledger.sync_failed",
                    exc_info=True,
                    extra={"source_table": source_table, "source_id": source_id, "error": str(exc)},
                )
                observe_ledger_sync(source_table, "error")
                raise

            self._expire_cached_rows(session)
            observe_ledger_sync(source_table, "synced", written=len(entries), pruned=pruned)
            span.set_attribute("ledger.outcome", "synced")
            span.set_attribute("ledger.rows_written", len(entries))
            logger.info(
                "ledger.synced",
                extra={
                    "source_table": source_table,
                    "source_id": source_id,
                    "rows_written": len(entries),
                    "rows_pruned": pruned,
                },
            )
            return LedgerSyncRead(
                source_table=source_table,
                source_id=source_id,
                outcome="synced",
                rows_written=len(entries),
                rows_pruned=pruned,
            )

    def purge(self, session: Session, source_table: str, source_id: int) -> int:
        result = session.execute(
            delete(FinancialEvent)
            .where(FinancialEvent.source_table == source_table, FinancialEvent.source_id == source_id)
            .execution_options(synchronize_session="fetch")
        )
        return int(result.rowcount or 0)

    def list_events(
        self,
        session: Session,
        *,
        source_table: str | None = None,
        source_id: int | None = None,
        facility_id: int | None = None,
        reporting_period_id: int | None = None,
    ) -> list[FinancialEventRead]:
        stmt: Select[tuple[FinancialEvent]] = select(FinancialEvent)
        if source_table is not None:
            stmt = stmt.where(FinancialEvent.source_table == source_table)
        if source_id is not None:
            stmt = stmt.where(FinancialEvent.source_id == source_id)
        if facility_id is not None:
            stmt = stmt.where(FinancialEvent.facility_id == facility_id)
        if reporting_period_id is not None:
            stmt = stmt.where(FinancialEvent.reporting_period_id == reporting_period_id)
        rows = session.scalars(
            stmt.order_by(FinancialEvent.source_table, FinancialEvent.source_id, FinancialEvent.quarter)
        ).all()
        return [FinancialEventRead.model_validate(item) for item in rows]

    def _prune(self, session: Session, source_table: str, source_id: int, keep: set[tuple[int, int, int, int]]) -> int:
        existing = session.execute(
            select(
                FinancialEvent.id,
                FinancialEvent.event_id,
                FinancialEvent.reporting_period_id,
                FinancialEvent.facility_id,
                FinancialEvent.quarter,
            ).where(FinancialEvent.source_table == source_table, FinancialEvent.source_id == source_id)
        ).all()
        stale_ids = [row.id for row in existing if (row.event_id, row.reporting_period_id, row.facility_id, row.quarter) not in keep]
        if not stale_ids:
            return 0
        session.execute(
            delete(FinancialEvent)
            .where(FinancialEvent.id.in_(stale_ids))
            .execution_options(synchronize_session="fetch")
        )
        return len(stale_ids)

    def _upsert(self, session: Session, entries: list[LedgerEntry]) -> None:
        if not entries:
            return
        now = utcnow()
        values = [self._values(entry, now) for entry in entries]

        dialect = session.get_bind().dialect.name
        if dialect in {"postgresql", "sqlite"}:
            insert = pg_insert if dialect == "postgresql" else sqlite_insert
            stmt = insert(FinancialEvent.__table__).values(values)
            stmt = stmt.on_conflict_do_update(
                index_elements=list(NATURAL_KEY_COLUMNS),
                set_={
                    "amount": stmt.excluded.amount,
                    "direction": stmt.excluded.direction,
                    "project_id": stmt.excluded.project_id,
                    "updated_at": stmt.excluded.updated_at,
                },
            )
            session.execute(stmt)
            return

        for item in values:
            current = session.scalar(
                select(FinancialEvent).where(*(getattr(FinancialEvent, column) == item[column] for column in NATURAL_KEY_COLUMNS))
            )
            if current is None:
                session.add(FinancialEvent(**item))
                continue
            current.amount = item["amount"]
            current.direction = item["direction"]
            current.project_id = item["project_id"]
            current.updated_at = item["updated_at"]
        session.flush()

    @staticmethod
    def _values(entry: LedgerEntry, now: datetime) -> dict[str, Any]:
        return {
            "event_id": entry.event_id,
            "amount": entry.amount,
            "direction": entry.direction,
            "reporting_period_id": entry.reporting_period_id,
            "facility_id": entry.facility_id,
            "project_id": entry.project_id,
            "quarter": entry.quarter,
            "source_table": entry.source_table,
            "source_id": entry.source_id,
            "created_at": now,
            "updated_at": now,
        }

    @staticmethod
    def _expire_cached_rows(session: Session) -> None:
        for obj in list(session.identity_map.values()):
            if isinstance(obj, FinancialEvent):
                session.expire(obj)


ledger_mirror_service = LedgerMirrorService()
