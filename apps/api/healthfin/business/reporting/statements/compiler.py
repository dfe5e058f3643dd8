"""Template walk and derived-row rules for financial statements.

Everything here is a pure function of ordered template lines and per-event
amount maps. Database access lives in the repository; orchestration lives in
the service.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from decimal import Decimal

from healthfin.business.reporting.statements.anchors import (
    ASSETS_LIAB,
    CASH_FLOW,
    FINANCING_MARKER,
    INVESTING_MARKER,
    NET_ASSETS_CHANGES,
    REV_EXP,
    AnchorRole,
    anchor_for,
    classify_operating_line,
    find_row,
)
from healthfin.metrics import observe_anchor_missing


logger = logging.getLogger("healthfin.statements")

ZERO = Decimal("0")

Amounts = Mapping[int, Decimal]


@dataclass(frozen=True, slots=True)
class TemplateLine:
    description: str
    event_ids: tuple[int, ...] = ()
    display_order: int = 0
    is_total: bool = False
    is_subtotal: bool = False


@dataclass(slots=True)
class StatementRow:
    description: str
    note: int | None
    current: Decimal | None
    previous: Decimal | None
    is_total: bool = False
    is_subtotal: bool = False


@dataclass(slots=True)
class Registers:
    """Running subtotal and grand total for one period column."""

    subtotal: Decimal = ZERO
    grand_total: Decimal = ZERO

    def add(self, value: Decimal) -> None:
        self.subtotal += value
        self.grand_total += value

    def take_subtotal(self) -> Decimal:
        value = self.subtotal
        self.subtotal = ZERO
        return value

    def take_total(self) -> Decimal:
        value = self.grand_total
        self.subtotal = ZERO
        self.grand_total = ZERO
        return value


@dataclass(slots=True)
class WalkResult:
    rows: list[StatementRow]
    current: Registers
    previous: Registers | None


@dataclass(frozen=True, slots=True)
class WorkingCapital:
    receivables_current: Decimal
    receivables_previous: Decimal
    payables_current: Decimal
    payables_previous: Decimal

    @property
    def receivables_change(self) -> Decimal:
        # A rise in receivables ties up cash.
        return -(self.receivables_current - self.receivables_previous)

    @property
    def payables_change(self) -> Decimal:
        return self.payables_current - self.payables_previous


@dataclass(slots=True)
class StatementInputs:
    current: Amounts
    previous: Amounts | None = None
    working_capital: WorkingCapital | None = None
    period_surplus: tuple[Decimal | None, Decimal | None] = (None, None)


def line_value(line: TemplateLine, amounts: Amounts) -> Decimal:
    return sum((amounts.get(event_id, ZERO) for event_id in line.event_ids), ZERO)


def _row(line: TemplateLine, current: Decimal | None, previous: Decimal | None) -> StatementRow:
    return StatementRow(
        description=line.description,
        note=line.event_ids[0] if line.event_ids else None,
        current=current,
        previous=previous,
        is_total=line.is_total,
        is_subtotal=line.is_subtotal,
    )


def walk_template(
    lines: Sequence[TemplateLine],
    current: Amounts,
    previous: Amounts | None = None,
    *,
    resets: bool = True,
) -> WalkResult:
    """Walk ``lines`` in order, accumulating detail values into subtotal and grand-total registers.

    A subtotal line emits and clears the subtotal register. A total line emits
    the grand total and clears both. With ``resets=False`` flagged lines are
    treated like any other line and registers are never emitted.
    """
    cur_regs = Registers()
    prev_regs = Registers() if previous is not None else None
    rows: list[StatementRow] = []

    for line in lines:
        cur_val: Decimal | None = None
        prev_val: Decimal | None = None

        if line.event_ids:
            cur_val = line_value(line, current)
            cur_regs.add(cur_val)
            if previous is not None and prev_regs is not None:
                prev_val = line_value(line, previous)
                prev_regs.add(prev_val)

        if resets and line.is_subtotal:
            cur_val = cur_regs.take_subtotal()
            if prev_regs is not None:
                prev_val = prev_regs.take_subtotal()

        if resets and line.is_total:
            cur_val = cur_regs.take_total()
            if prev_regs is not None:
                prev_val = prev_regs.take_total()

        rows.append(_row(line, cur_val, prev_val))

    return WalkResult(rows=rows, current=cur_regs, previous=prev_regs)


def walk_cash_flow(lines: Sequence[TemplateLine], current: Amounts, previous: Amounts | None = None) -> WalkResult:
    """Cash-flow walk.

    Operating detail lines feed separate revenue and expense sums and the
    operating total is their difference; operating subtotals stay empty.
    Investing and financing lines use the running subtotal, which restarts
    at each section header.
    """
    operating_total = anchor_for(CASH_FLOW, AnchorRole.OPERATING_TOTAL)
    has_previous = previous is not None
    section = "OPERATING"
    revenue = [ZERO, ZERO]
    expense = [ZERO, ZERO]
    regs = Registers()
    prev_regs = Registers() if has_previous else None
    rows: list[StatementRow] = []

    for line in lines:
        cur_val: Decimal | None = None
        prev_val: Decimal | None = None

        if INVESTING_MARKER in line.description or FINANCING_MARKER in line.description:
            section = INVESTING_MARKER if INVESTING_MARKER in line.description else FINANCING_MARKER
            regs = Registers()
            prev_regs = Registers() if has_previous else None

        if line.event_ids:
            cur_val = line_value(line, current)
            prev_val = line_value(line, previous) if previous is not None else None
            if section == "OPERATING":
                kind = classify_operating_line(line.description)
                if kind is not None:
                    bucket = expense if kind == "expense" else revenue
                    bucket[0] += cur_val
                    bucket[1] += prev_val or ZERO
            else:
                regs.add(cur_val)
                if prev_regs is not None and prev_val is not None:
                    prev_regs.add(prev_val)

        if line.is_subtotal:
            if section == "OPERATING":
                cur_val, prev_val = None, None
            else:
                cur_val = regs.take_subtotal()
                prev_val = prev_regs.take_subtotal() if prev_regs is not None else None

        if line.is_total:
            if operating_total.matches(line.description):
                cur_val = revenue[0] - expense[0]
                prev_val = revenue[1] - expense[1] if has_previous else None
                revenue = [ZERO, ZERO]
                expense = [ZERO, ZERO]
            else:
                cur_val = regs.take_subtotal()
                prev_val = prev_regs.take_subtotal() if prev_regs is not None else None

        rows.append(_row(line, cur_val, prev_val))

    return WalkResult(rows=rows, current=regs, previous=prev_regs)


def _missing(statement_code: str, role: AnchorRole) -> None:
    logger.warning("statements.anchor_missing", extra={"statement_code": statement_code, "anchor": role.value})
    observe_anchor_missing(statement_code, role.value)


def _lookup(rows: Sequence[StatementRow], statement_code: str, *roles: AnchorRole) -> list[StatementRow] | None:
    """Rows for ``roles`` in order, or ``None`` after reporting every missing one."""
    found: list[StatementRow] = []
    missing = False
    for role in roles:
        row = find_row(rows, anchor_for(statement_code, role))
        if row is None:
            _missing(statement_code, role)
            missing = True
            continue
        found.append(row)
    return None if missing else found


def _num(value: Decimal | None) -> Decimal:
    return value if value is not None else ZERO


def derive_rev_exp(rows: list[StatementRow], *, has_previous: bool) -> None:
    anchors = _lookup(rows, REV_EXP, AnchorRole.SURPLUS, AnchorRole.TOTAL_REVENUE, AnchorRole.TOTAL_EXPENSES)
    if anchors is None:
        return
    surplus, total_revenue, total_expenses = anchors
    surplus.current = _num(total_revenue.current) - _num(total_expenses.current)
    if has_previous:
        surplus.previous = _num(total_revenue.previous) - _num(total_expenses.previous)


def derive_assets_liabilities(
    rows: list[StatementRow],
    *,
    has_previous: bool,
    period_surplus: tuple[Decimal | None, Decimal | None] = (None, None),
) -> None:
    def combine(target: StatementRow, left: StatementRow, right: StatementRow, sign: int) -> None:
        target.current = _num(left.current) + sign * _num(right.current)
        if has_previous:
            target.previous = _num(left.previous) + sign * _num(right.previous)

    assets = _lookup(
        rows,
        ASSETS_LIAB,
        AnchorRole.TOTAL_ASSETS,
        AnchorRole.TOTAL_CURRENT_ASSETS,
        AnchorRole.TOTAL_NON_CURRENT_ASSETS,
    )
    if assets is not None:
        combine(assets[0], assets[1], assets[2], 1)

    liabilities = _lookup(
        rows,
        ASSETS_LIAB,
        AnchorRole.TOTAL_LIABILITIES,
        AnchorRole.TOTAL_CURRENT_LIABILITIES,
        AnchorRole.TOTAL_NON_CURRENT_LIABILITIES,
    )
    if liabilities is not None:
        combine(liabilities[0], liabilities[1], liabilities[2], 1)

    net = _lookup(rows, ASSETS_LIAB, AnchorRole.NET_ASSETS, AnchorRole.TOTAL_ASSETS, AnchorRole.TOTAL_LIABILITIES)
    if net is not None:
        combine(net[0], net[1], net[2], -1)
        total_net = _lookup(rows, ASSETS_LIAB, AnchorRole.TOTAL_NET_ASSETS)
        if total_net is not None:
            total_net[0].current = net[0].current
            total_net[0].previous = net[0].previous

    surplus = _lookup(rows, ASSETS_LIAB, AnchorRole.PERIOD_SURPLUS)
    if surplus is not None:
        surplus[0].current = period_surplus[0]
        if has_previous:
            surplus[0].previous = period_surplus[1]


def derive_cash_flow(
    rows: list[StatementRow],
    *,
    has_previous: bool,
    working_capital: WorkingCapital | None = None,
) -> None:
    if working_capital is not None:
        changes = _lookup(rows, CASH_FLOW, AnchorRole.CHANGES_IN_RECEIVABLES, AnchorRole.CHANGES_IN_PAYABLES)
        if changes is not None:
            receivables, payables = changes
            receivables.current, receivables.previous = working_capital.receivables_change, None
            payables.current, payables.previous = working_capital.payables_change, None

    totals = _lookup(
        rows,
        CASH_FLOW,
        AnchorRole.NET_CHANGE_IN_CASH,
        AnchorRole.OPERATING_TOTAL,
        AnchorRole.INVESTING_TOTAL,
        AnchorRole.FINANCING_TOTAL,
    )
    if totals is None:
        return
    net_change, operating, investing, financing = totals
    net_change.current = _num(operating.current) + _num(investing.current) + _num(financing.current)
    if has_previous:
        net_change.previous = _num(operating.previous) + _num(investing.previous) + _num(financing.previous)

    cash = _lookup(rows, CASH_FLOW, AnchorRole.ENDING_CASH, AnchorRole.BEGINNING_CASH)
    if cash is None:
        return
    ending, beginning = cash
    # Optional line; a template without it adds nothing.
    adjustment = find_row(rows, anchor_for(CASH_FLOW, AnchorRole.PRIOR_YEAR_ADJUSTMENTS))
    adj_current = adjustment.current if adjustment is not None else None
    adj_previous = adjustment.previous if adjustment is not None else None
    ending.current = _num(beginning.current) + _num(net_change.current) + _num(adj_current)
    if has_previous:
        ending.previous = _num(beginning.previous) + _num(net_change.previous) + _num(adj_previous)


def derive_net_assets_changes(
    rows: list[StatementRow],
    *,
    has_previous: bool,
    period_surplus: tuple[Decimal | None, Decimal | None] = (None, None),
) -> None:
    anchor = anchor_for(NET_ASSETS_CHANGES, AnchorRole.PERIOD_SURPLUS)
    target = next((row for row in rows if anchor.matches(row.description) and row.note is None), None)
    if target is None:
        _missing(NET_ASSETS_CHANGES, AnchorRole.PERIOD_SURPLUS)
        return
    if target.current is None:
        target.current = period_surplus[0]
    if has_previous and target.previous is None:
        target.previous = period_surplus[1]


def compile_rows(statement_code: str, lines: Sequence[TemplateLine], inputs: StatementInputs) -> list[StatementRow]:
    """Compile ``lines`` for ``statement_code``; an empty template yields no rows."""
    if not lines:
        return []

    has_previous = inputs.previous is not None
    if statement_code == CASH_FLOW:
        rows = walk_cash_flow(lines, inputs.current, inputs.previous).rows
        derive_cash_flow(rows, has_previous=has_previous, working_capital=inputs.working_capital)
        return rows

    if statement_code == NET_ASSETS_CHANGES:
        rows = walk_template(lines, inputs.current, inputs.previous, resets=False).rows
        derive_net_assets_changes(rows, has_previous=has_previous, period_surplus=inputs.period_surplus)
        return rows

    rows = walk_template(lines, inputs.current, inputs.previous).rows
    if statement_code == REV_EXP:
        derive_rev_exp(rows, has_previous=has_previous)
    elif statement_code == ASSETS_LIAB:
        derive_assets_liabilities(rows, has_previous=has_previous, period_surplus=inputs.period_surplus)
    return rows


def sum_rows(row_sets: Sequence[Sequence[StatementRow]]) -> list[StatementRow]:
    """Add compiled row lists position by position.

    A cell stays ``None`` only when it is ``None`` in every input.
    """
    if not row_sets:
        return []

    def add(values: list[Decimal | None]) -> Decimal | None:
        present = [value for value in values if value is not None]
        return sum(present, ZERO) if present else None

    merged: list[StatementRow] = []
    for position, template_row in enumerate(row_sets[0]):
        column = [rows[position] for rows in row_sets if position < len(rows)]
        merged.append(
            StatementRow(
                description=template_row.description,
                note=template_row.note,
                current=add([row.current for row in column]),
                previous=add([row.previous for row in column]),
                is_total=template_row.is_total,
                is_subtotal=template_row.is_subtotal,
            )
        )
    return merged
