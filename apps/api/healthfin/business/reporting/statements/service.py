from __future__ import annotations

import logging
import time
from collections.abc import Sequence
from dataclasses import dataclass, field
from decimal import Decimal

from sqlalchemy.orm import Session

from healthfin.business.reporting.statements.anchors import (
    ASSETS_LIAB,
    BUDGET_VS_ACTUAL,
    CASH_FLOW,
    NET_ASSETS_CHANGES,
    PAYABLE_EVENT_CODES,
    RECEIVABLE_EVENT_CODES,
    REV_EXP,
    TRANSFERS_PUBLIC_ENTITIES,
    AnchorRole,
    anchor_for,
    find_row,
)
from healthfin.business.reporting.statements.compiler import (
    ZERO,
    StatementInputs,
    StatementRow,
    WorkingCapital,
    compile_rows,
    sum_rows,
)
from healthfin.business.reporting.statements.repository import StatementRepository
from healthfin.metrics import observe_statement_compile
from healthfin.otel import get_tracer
from healthfin.platform.ledger.schemas import EXECUTION_DATA, PLANNING_DATA


logger = logging.getLogger("healthfin.statements")
tracer = get_tracer("healthfin.statements")


@dataclass(slots=True)
class FacilityStatement:
    facility_id: int
    rows: list[StatementRow]


@dataclass(slots=True)
class VarianceLine:
    description: str
    budget: Decimal | None
    actual: Decimal | None
    variance: Decimal | None
    execution_rate: Decimal | None
    is_total: bool = False
    is_subtotal: bool = False


@dataclass(slots=True)
class StatementService:
    repository: StatementRepository = field(default_factory=StatementRepository)

    def compile(
        self,
        session: Session,
        statement_code: str,
        facility_id: int | None,
        period_id: int,
        previous_period_id: int | None = None,
    ) -> list[StatementRow]:
        """Statement for one facility, or across every facility when ``facility_id`` is None."""
        return self._observed(
            session,
            statement_code,
            "facility" if facility_id is not None else "aggregate",
            facility_ids=[facility_id] if facility_id is not None else None,
            period_id=period_id,
            previous_period_id=previous_period_id,
        )

    def compile_aggregate(
        self,
        session: Session,
        statement_code: str,
        period_id: int,
        previous_period_id: int | None = None,
    ) -> list[StatementRow]:
        """All-facility statement; the previous period only feeds working-capital deltas."""
        return self._observed(
            session,
            statement_code,
            "aggregate",
            facility_ids=None,
            period_id=period_id,
            previous_period_id=None,
            working_capital_period_id=previous_period_id,
        )

    def compile_aggregate_by_project(
        self,
        session: Session,
        statement_code: str,
        period_id: int,
        project_code: str,
    ) -> list[StatementRow]:
        facility_ids = self.repository.facilities_for_project(session, project_code)
        if not facility_ids:
            return []
        started = time.perf_counter()
        with tracer.start_as_current_span("statements.compile") as span:
            span.set_attribute("statements.code", statement_code)
            span.set_attribute("statements.scope", "project")
            span.set_attribute("statements.facility_count", len(facility_ids))
            per_facility = [
                self._compile(session, statement_code, facility_ids=[facility_id], period_id=period_id)
                for facility_id in facility_ids
            ]
            rows = sum_rows(per_facility)
        observe_statement_compile(statement_code, "project", time.perf_counter() - started)
        return rows

    def compile_per_facility(self, session: Session, statement_code: str, period_id: int) -> list[FacilityStatement]:
        return [
            FacilityStatement(facility_id=facility_id, rows=self.compile(session, statement_code, facility_id, period_id))
            for facility_id in self.repository.facilities_with_ledger(session, period_id)
        ]

    def budget_variance(self, session: Session, facility_id: int | None, period_id: int) -> list[VarianceLine]:
        rows = self.compile(session, BUDGET_VS_ACTUAL, facility_id, period_id)
        return [variance_line(row) for row in rows]

    def _observed(
        self,
        session: Session,
        statement_code: str,
        scope: str,
        *,
        facility_ids: Sequence[int] | None,
        period_id: int,
        previous_period_id: int | None,
        working_capital_period_id: int | None = None,
    ) -> list[StatementRow]:
        started = time.perf_counter()
        with tracer.start_as_current_span("statements.compile") as span:
            span.set_attribute("statements.code", statement_code)
            span.set_attribute("statements.scope", scope)
            span.set_attribute("statements.period_id", period_id)
            rows = self._compile(
                session,
                statement_code,
                facility_ids=facility_ids,
                period_id=period_id,
                previous_period_id=previous_period_id,
                working_capital_period_id=working_capital_period_id,
            )
            span.set_attribute("statements.row_count", len(rows))
        observe_statement_compile(statement_code, scope, time.perf_counter() - started)
        logger.info(
            "statements.compiled",
            extra={
                "statement_code": statement_code,
                "facility_id": facility_ids[0] if facility_ids is not None and len(facility_ids) == 1 else None,
                "period_id": period_id,
                "row_count": len(rows),
            },
        )
        return rows

    def _compile(
        self,
        session: Session,
        statement_code: str,
        *,
        facility_ids: Sequence[int] | None,
        period_id: int,
        previous_period_id: int | None = None,
        working_capital_period_id: int | None = None,
    ) -> list[StatementRow]:
        lines = self.repository.load_template(session, statement_code)
        if not lines:
            logger.info("statements.template_not_found", extra={"statement_code": statement_code})
            return []

        event_ids = {event_id for line in lines for event_id in line.event_ids}
        current = self._actuals(session, period_id, event_ids, facility_ids)
        inputs = StatementInputs(current=current)

        if statement_code == BUDGET_VS_ACTUAL:
            inputs.previous = self._budget(session, period_id, event_ids, facility_ids)
        elif previous_period_id is not None:
            inputs.previous = self._actuals(session, previous_period_id, event_ids, facility_ids)

        if statement_code == CASH_FLOW:
            comparison_period_id = previous_period_id if previous_period_id is not None else working_capital_period_id
            if comparison_period_id is not None:
                inputs.working_capital = self._working_capital(session, period_id, comparison_period_id, facility_ids)

        if statement_code in (ASSETS_LIAB, NET_ASSETS_CHANGES):
            inputs.period_surplus = (
                self._surplus(session, period_id, facility_ids),
                self._surplus(session, previous_period_id, facility_ids) if previous_period_id is not None else None,
            )

        return compile_rows(statement_code, lines, inputs)

    def _actuals(
        self,
        session: Session,
        period_id: int,
        event_ids: set[int],
        facility_ids: Sequence[int] | None,
    ) -> dict[int, Decimal]:
        return self.repository.sum_ledger(
            session,
            period_id=period_id,
            event_ids=event_ids,
            source_table=EXECUTION_DATA,
            facility_ids=facility_ids,
        )

    def _budget(
        self,
        session: Session,
        period_id: int,
        event_ids: set[int],
        facility_ids: Sequence[int] | None,
    ) -> dict[int, Decimal]:
        budget = self.repository.sum_ledger(
            session,
            period_id=period_id,
            event_ids=event_ids,
            source_table=PLANNING_DATA,
            facility_ids=facility_ids,
        )
        transfers_id = self.repository.event_ids_for_codes(session, [TRANSFERS_PUBLIC_ENTITIES]).get(
            TRANSFERS_PUBLIC_ENTITIES
        )
        if transfers_id is not None and transfers_id in event_ids:
            planned = self.repository.total_planned_budget(session, facility_ids)
            if planned is not None:
                budget[transfers_id] = planned
        return budget

    def _working_capital(
        self,
        session: Session,
        period_id: int,
        previous_period_id: int,
        facility_ids: Sequence[int] | None,
    ) -> WorkingCapital:
        codes = self.repository.event_ids_for_codes(session, [*RECEIVABLE_EVENT_CODES, *PAYABLE_EVENT_CODES])
        receivable_ids = {codes[code] for code in RECEIVABLE_EVENT_CODES if code in codes}
        payable_ids = {codes[code] for code in PAYABLE_EVENT_CODES if code in codes}

        def balance(target_period: int, ids: set[int]) -> Decimal:
            amounts = self._actuals(session, target_period, ids, facility_ids)
            return sum(amounts.values(), ZERO)

        return WorkingCapital(
            receivables_current=balance(period_id, receivable_ids),
            receivables_previous=balance(previous_period_id, receivable_ids),
            payables_current=balance(period_id, payable_ids),
            payables_previous=balance(previous_period_id, payable_ids),
        )

    def _surplus(self, session: Session, period_id: int, facility_ids: Sequence[int] | None) -> Decimal | None:
        rows = self._compile(session, REV_EXP, facility_ids=facility_ids, period_id=period_id)
        row = find_row(rows, anchor_for(REV_EXP, AnchorRole.SURPLUS))
        return row.current if row is not None else None


def variance_line(row: StatementRow) -> VarianceLine:
    budget, actual = row.previous, row.current
    variance: Decimal | None = None
    if budget is not None or actual is not None:
        variance = (budget or ZERO) - (actual or ZERO)
    execution_rate: Decimal | None = None
    if budget is not None and budget != 0 and actual is not None:
        execution_rate = actual / budget
    return VarianceLine(
        description=row.description,
        budget=budget,
        actual=actual,
        variance=variance,
        execution_rate=execution_rate,
        is_total=row.is_total,
        is_subtotal=row.is_subtotal,
    )


statement_service = StatementService()
