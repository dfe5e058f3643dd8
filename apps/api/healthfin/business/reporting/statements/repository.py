from __future__ import annotations

from collections.abc import Iterable, Sequence
from decimal import Decimal

from sqlalchemy import func, literal, select, union_all
from sqlalchemy.orm import Session

from healthfin.business.execution.models import ExecutionData
from healthfin.business.masterdata.models import Project
from healthfin.business.planning.models import PlanningData
from healthfin.business.reporting.statements.compiler import TemplateLine
from healthfin.business.reporting.statements.models import StatementTemplate
from healthfin.platform.ledger.models import Event, FinancialEvent


class StatementRepository:
    """Read-only persistence boundary for the statement compiler."""

    def load_template(self, session: Session, statement_code: str) -> list[TemplateLine]:
        rows = session.scalars(
            select(StatementTemplate)
            .where(StatementTemplate.statement_code == statement_code)
            .order_by(StatementTemplate.display_order.asc(), StatementTemplate.id.asc())
        ).all()
        return [
            TemplateLine(
                description=row.line_item,
                event_ids=tuple(int(item) for item in (row.event_ids or [])),
                display_order=row.display_order,
                is_total=bool(row.is_total_line),
                is_subtotal=bool(row.is_subtotal_line),
            )
            for row in rows
        ]

    def sum_ledger(
        self,
        session: Session,
        *,
        period_id: int,
        event_ids: Iterable[int],
        source_table: str,
        facility_ids: Sequence[int] | None = None,
    ) -> dict[int, Decimal]:
        ids = sorted(set(event_ids))
        if not ids:
            return {}
        stmt = (
            select(FinancialEvent.event_id, func.sum(FinancialEvent.amount))
            .where(
                FinancialEvent.reporting_period_id == period_id,
                FinancialEvent.source_table == source_table,
                FinancialEvent.event_id.in_(ids),
            )
            .group_by(FinancialEvent.event_id)
        )
        if facility_ids is not None:
            stmt = stmt.where(FinancialEvent.facility_id.in_(list(facility_ids)))
        return {event_id: _decimal(total) for event_id, total in session.execute(stmt).all()}

    def event_ids_for_codes(self, session: Session, codes: Iterable[str]) -> dict[str, int]:
        rows = session.execute(select(Event.code, Event.id).where(Event.code.in_(list(codes)))).all()
        return {code: event_id for code, event_id in rows}

    def total_planned_budget(self, session: Session, facility_ids: Sequence[int] | None = None) -> Decimal | None:
        """Sum of planning ``total_budget`` across every period, or ``None`` when nothing is planned."""
        stmt = select(func.count(PlanningData.id), func.sum(PlanningData.total_budget))
        if facility_ids is not None:
            stmt = stmt.where(PlanningData.facility_id.in_(list(facility_ids)))
        count, total = session.execute(stmt).one()
        if not count:
            return None
        return _decimal(total)

    def facilities_with_ledger(self, session: Session, period_id: int) -> list[int]:
        return list(
            session.scalars(
                select(FinancialEvent.facility_id)
                .where(FinancialEvent.reporting_period_id == period_id)
                .distinct()
                .order_by(FinancialEvent.facility_id.asc())
            ).all()
        )

    def facilities_for_project(self, session: Session, project_code: str) -> list[int]:
        """Facilities whose most recently touched planning or execution record carries ``project_code``."""
        touched = union_all(
            select(
                PlanningData.facility_id,
                PlanningData.project_id,
                PlanningData.updated_at,
                PlanningData.id.label("record_id"),
                literal(0).label("source_rank"),
            ),
            select(
                ExecutionData.facility_id,
                ExecutionData.project_id,
                ExecutionData.updated_at,
                ExecutionData.id.label("record_id"),
                literal(1).label("source_rank"),
            ),
        ).subquery("touched")
        ranked = select(
            touched.c.facility_id,
            touched.c.project_id,
            func.row_number()
            .over(
                partition_by=touched.c.facility_id,
                order_by=(touched.c.updated_at.desc(), touched.c.source_rank.asc(), touched.c.record_id.asc()),
            )
            .label("recency"),
        ).subquery("ranked")
        stmt = (
            select(ranked.c.facility_id)
            .join(Project, Project.id == ranked.c.project_id)
            .where(ranked.c.recency == 1, Project.code == project_code)
            .order_by(ranked.c.facility_id.asc())
        )
        return list(session.scalars(stmt).all())


def _decimal(value: object) -> Decimal:
    if value is None:
        return Decimal("0")
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


statement_repository = StatementRepository()
