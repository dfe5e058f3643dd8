"""Named anchors for derived statement rows.

Derived values (surplus, net assets, cash movements) are written onto template
lines located by description. Every description the compiler relies on lives
in this module so a renamed template line fails a test instead of silently
leaving a derived row empty.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum
from typing import Protocol, TypeVar


REV_EXP = "REV_EXP"
ASSETS_LIAB = "ASSETS_LIAB"
CASH_FLOW = "CASH_FLOW"
BUDGET_VS_ACTUAL = "BUDGET_VS_ACTUAL"
NET_ASSETS_CHANGES = "NET_ASSETS_CHANGES"

STATEMENT_CODES = (REV_EXP, ASSETS_LIAB, CASH_FLOW, BUDGET_VS_ACTUAL, NET_ASSETS_CHANGES)


class AnchorRole(str, Enum):
    TOTAL_REVENUE = "total_revenue"
    TOTAL_EXPENSES = "total_expenses"
    SURPLUS = "surplus"
    TOTAL_CURRENT_ASSETS = "total_current_assets"
    TOTAL_NON_CURRENT_ASSETS = "total_non_current_assets"
    TOTAL_ASSETS = "total_assets"
    TOTAL_CURRENT_LIABILITIES = "total_current_liabilities"
    TOTAL_NON_CURRENT_LIABILITIES = "total_non_current_liabilities"
    TOTAL_LIABILITIES = "total_liabilities"
    NET_ASSETS = "net_assets"
    TOTAL_NET_ASSETS = "total_net_assets"
    PERIOD_SURPLUS = "period_surplus"
    OPERATING_TOTAL = "operating_total"
    INVESTING_TOTAL = "investing_total"
    FINANCING_TOTAL = "financing_total"
    CHANGES_IN_RECEIVABLES = "changes_in_receivables"
    CHANGES_IN_PAYABLES = "changes_in_payables"
    NET_CHANGE_IN_CASH = "net_change_in_cash"
    BEGINNING_CASH = "beginning_cash"
    ENDING_CASH = "ending_cash"
    PRIOR_YEAR_ADJUSTMENTS = "prior_year_adjustments"


class MatchMode(str, Enum):
    EXACT = "exact"
    PREFIX = "prefix"
    CONTAINS = "contains"
    CONTAINS_CI = "contains_ci"


@dataclass(frozen=True, slots=True)
class Anchor:
    role: AnchorRole
    patterns: tuple[str, ...]
    mode: MatchMode = MatchMode.EXACT

    def matches(self, description: str) -> bool:
        for pattern in self.patterns:
            if self.mode is MatchMode.EXACT and description == pattern:
                return True
            if self.mode is MatchMode.PREFIX and description.startswith(pattern):
                return True
            if self.mode is MatchMode.CONTAINS and pattern in description:
                return True
            if self.mode is MatchMode.CONTAINS_CI and pattern.lower() in description.lower():
                return True
        return False


ANCHORS: dict[str, tuple[Anchor, ...]] = {
    REV_EXP: (
        Anchor(AnchorRole.TOTAL_REVENUE, ("TOTAL REVENUE",)),
        Anchor(AnchorRole.TOTAL_EXPENSES, ("TOTAL EXPENSES",)),
        Anchor(AnchorRole.SURPLUS, ("SURPLUS", "DEFICIT"), MatchMode.CONTAINS),
    ),
    ASSETS_LIAB: (
        Anchor(AnchorRole.TOTAL_CURRENT_ASSETS, ("Total current assets",)),
        Anchor(AnchorRole.TOTAL_NON_CURRENT_ASSETS, ("Total non-current assets",)),
        Anchor(AnchorRole.TOTAL_ASSETS, ("Total assets (A)",)),
        Anchor(AnchorRole.TOTAL_CURRENT_LIABILITIES, ("Total current liabilities",)),
        Anchor(AnchorRole.TOTAL_NON_CURRENT_LIABILITIES, ("Total non-current liabilities",)),
        Anchor(AnchorRole.TOTAL_LIABILITIES, ("Total liabilities (B)",)),
        Anchor(AnchorRole.NET_ASSETS, ("Net assets",), MatchMode.PREFIX),
        Anchor(AnchorRole.TOTAL_NET_ASSETS, ("Total Net Assets",)),
        Anchor(AnchorRole.PERIOD_SURPLUS, ("Surplus/deficits of the period",), MatchMode.CONTAINS),
    ),
    CASH_FLOW: (
        Anchor(AnchorRole.OPERATING_TOTAL, ("Net cash flows from operating activities",)),
        Anchor(AnchorRole.INVESTING_TOTAL, ("Net cash flows from investing activities",)),
        Anchor(AnchorRole.FINANCING_TOTAL, ("Net cash flows from financing activities",)),
        Anchor(AnchorRole.CHANGES_IN_RECEIVABLES, ("Changes in receivables",)),
        Anchor(AnchorRole.CHANGES_IN_PAYABLES, ("Changes in payables",)),
        Anchor(AnchorRole.NET_CHANGE_IN_CASH, ("Net increase/decrease",), MatchMode.PREFIX),
        Anchor(AnchorRole.BEGINNING_CASH, ("Cash and cash equivalents at beginning of period",)),
        Anchor(AnchorRole.ENDING_CASH, ("Cash and cash equivalents at end of period",)),
        Anchor(AnchorRole.PRIOR_YEAR_ADJUSTMENTS, ("Prior year adjustments",)),
    ),
    BUDGET_VS_ACTUAL: (),
    NET_ASSETS_CHANGES: (
        Anchor(AnchorRole.PERIOD_SURPLUS, ("surplus",), MatchMode.CONTAINS_CI),
    ),
}

CASH_FLOW_EXPENSE_KEYWORDS = (
    "EXPENSES",
    "Compensation",
    "Goods and services",
    "Grants and transfers",
    "Subsidies",
    "Social assistance",
    "Finance costs",
    "Other expenses",
)
CASH_FLOW_REVENUE_KEYWORDS = (
    "REVENUE",
    "Tax revenue",
    "Grants",
    "Transfers",
    "Property income",
    "Sales",
    "Other revenue",
    "Fines",
)
INVESTING_MARKER = "INVESTING"
FINANCING_MARKER = "FINANCING"

RECEIVABLE_EVENT_CODES = ("RECEIVABLES_EXCHANGE", "RECEIVABLES_NON_EXCHANGE")
PAYABLE_EVENT_CODES = ("PAYABLES",)
TRANSFERS_PUBLIC_ENTITIES = "TRANSFERS_PUBLIC_ENTITIES"


class Described(Protocol):
    description: str


RowT = TypeVar("RowT", bound=Described)


def anchor_for(statement_code: str, role: AnchorRole) -> Anchor:
    for anchor in ANCHORS.get(statement_code, ()):
        if anchor.role is role:
            return anchor
    raise KeyError(f"{statement_code} has no {role.value} anchor")


def find_row(rows: Iterable[RowT], anchor: Anchor) -> RowT | None:
    for row in rows:
        if anchor.matches(row.description):
            return row
    return None


def classify_operating_line(description: str) -> str | None:
    """``"expense"``, ``"revenue"`` or ``None`` for an operating cash-flow line."""
    if any(keyword in description for keyword in CASH_FLOW_EXPENSE_KEYWORDS):
        return "expense"
    if any(keyword in description for keyword in CASH_FLOW_REVENUE_KEYWORDS):
        return "revenue"
    return None
