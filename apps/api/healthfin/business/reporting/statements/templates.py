from __future__ import annotations

from dataclasses import dataclass

from healthfin.business.reporting.statements.anchors import (
    ASSETS_LIAB,
    BUDGET_VS_ACTUAL,
    CASH_FLOW,
    NET_ASSETS_CHANGES,
    REV_EXP,
)


@dataclass(frozen=True, slots=True)
class TemplateLineSpec:
    line_item: str
    event_codes: tuple[str, ...] = ()
    is_total_line: bool = False
    is_subtotal_line: bool = False


def _header(text: str) -> TemplateLineSpec:
    return TemplateLineSpec(text)


def _line(text: str, *codes: str) -> TemplateLineSpec:
    return TemplateLineSpec(text, codes)


def _subtotal(text: str) -> TemplateLineSpec:
    return TemplateLineSpec(text, is_subtotal_line=True)


def _total(text: str) -> TemplateLineSpec:
    return TemplateLineSpec(text, is_total_line=True)


STANDARD_TEMPLATES: dict[str, tuple[TemplateLineSpec, ...]] = {
    REV_EXP: (
        _header("REVENUE"),
        _line("Tax revenue", "TAX_REVENUE"),
        _line("Grants", "GRANTS"),
        _line("Transfers from central treasury", "TRANSFERS_CENTRAL_TREASURY"),
        _line("Transfers from public entities", "TRANSFERS_PUBLIC_ENTITIES"),
        _line("Fines, penalties and licenses", "FINES_PENALTIES_LICENSES"),
        _line("Property income", "PROPERTY_INCOME"),
        _line("Sales of goods and services", "SALES_GOODS_SERVICES"),
        _line("Proceeds from sale of capital items", "PROCEEDS_SALE_CAPITAL"),
        _line("Other revenue", "OTHER_REVENUE"),
        _line("Domestic borrowings", "DOMESTIC_BORROWINGS"),
        _line("External borrowings", "EXTERNAL_BORROWINGS"),
        _total("TOTAL REVENUE"),
        _header("EXPENSES"),
        _line("Compensation of employees", "COMPENSATION_EMPLOYEES"),
        _line("Goods and services", "GOODS_SERVICES"),
        _line("Grants and transfers", "GRANTS_TRANSFERS"),
        _line("Subsidies", "SUBSIDIES"),
        _line("Social assistance", "SOCIAL_ASSISTANCE"),
        _line("Finance costs", "FINANCE_COSTS"),
        _line("Acquisition of fixed assets", "ACQUISITION_FIXED_ASSETS"),
        _line("Repayment of borrowings", "REPAYMENT_BORROWINGS"),
        _line("Other expenses", "OTHER_EXPENSES"),
        _total("TOTAL EXPENSES"),
        _header("SURPLUS / (DEFICIT) FOR THE PERIOD"),
    ),
    ASSETS_LIAB: (
        _header("ASSETS"),
        _header("Current assets"),
        _line("Cash and cash equivalents", "CASH_EQUIVALENTS_END"),
        _line("Receivables from exchange transactions", "RECEIVABLES_EXCHANGE"),
        _line("Receivables from non-exchange transactions", "RECEIVABLES_NON_EXCHANGE"),
        _line("Advance payments", "ADVANCE_PAYMENTS"),
        _line("Inventories", "INVENTORIES"),
        _subtotal("Total current assets"),
        _header("Non-current assets"),
        _line("Direct investments", "DIRECT_INVESTMENTS"),
        _subtotal("Total non-current assets"),
        _total("Total assets (A)"),
        _header("LIABILITIES"),
        _header("Current liabilities"),
        _line("Payables", "PAYABLES"),
        _line("Payments received in advance", "PAYMENTS_RECEIVED_IN_ADVANCE"),
        _line("Retained performance securities", "RETAINED_PERFORMANCE_SECURITIES"),
        _subtotal("Total current liabilities"),
        _header("Non-current liabilities"),
        _line("Direct borrowings", "DIRECT_BORROWINGS"),
        _subtotal("Total non-current liabilities"),
        _total("Total liabilities (B)"),
        _header("Net assets (C) = A - B"),
        _header("NET ASSETS"),
        _line("Accumulated surplus/(deficits)", "ACCUMULATED_SURPLUS_DEFICITS"),
        _line("Prior year adjustments", "PRIOR_YEAR_ADJUSTMENTS"),
        _header("Surplus/deficits of the period"),
        _total("Total Net Assets"),
    ),
    CASH_FLOW: (
        _header("CASH FLOWS FROM OPERATING ACTIVITIES"),
        _header("Receipts from operating activities"),
        _line("Tax revenue", "TAX_REVENUE"),
        _line("Grants", "GRANTS"),
        _line("Transfers from central treasury", "TRANSFERS_CENTRAL_TREASURY"),
        _line("Transfers from public entities", "TRANSFERS_PUBLIC_ENTITIES"),
        _line("Fines, penalties and licenses", "FINES_PENALTIES_LICENSES"),
        _line("Property income", "PROPERTY_INCOME"),
        _line("Sales of goods and services", "SALES_GOODS_SERVICES"),
        _line("Other revenue", "OTHER_REVENUE"),
        _subtotal("Total receipts"),
        _header("Payments for operating activities"),
        _line("Compensation of employees", "COMPENSATION_EMPLOYEES"),
        _line("Goods and services", "GOODS_SERVICES"),
        _line("Grants and transfers", "GRANTS_TRANSFERS"),
        _line("Subsidies", "SUBSIDIES"),
        _line("Social assistance", "SOCIAL_ASSISTANCE"),
        _line("Finance costs", "FINANCE_COSTS"),
        _line("Other expenses", "OTHER_EXPENSES"),
        _subtotal("Total payments"),
        _header("Changes in receivables"),
        _header("Changes in payables"),
        _total("Net cash flows from operating activities"),
        _header("CASH FLOWS FROM INVESTING ACTIVITIES"),
        _line("Acquisition of fixed assets", "ACQUISITION_FIXED_ASSETS"),
        _line("Proceeds from sale of capital items", "PROCEEDS_SALE_CAPITAL"),
        _total("Net cash flows from investing activities"),
        _header("CASH FLOWS FROM FINANCING ACTIVITIES"),
        _line("Proceeds from borrowings", "DOMESTIC_BORROWINGS", "EXTERNAL_BORROWINGS"),
        _line("Repayment of borrowings", "REPAYMENT_BORROWINGS"),
        _total("Net cash flows from financing activities"),
        _header("Net increase/decrease in cash and cash equivalents"),
        _line("Cash and cash equivalents at beginning of period", "CASH_EQUIVALENTS_BEGIN"),
        _line("Prior year adjustments", "PRIOR_YEAR_ADJUSTMENTS"),
        _header("Cash and cash equivalents at end of period"),
    ),
    BUDGET_VS_ACTUAL: (
        _header("RECEIPTS"),
        _line("Transfers from public entities", "TRANSFERS_PUBLIC_ENTITIES"),
        _line("Other revenue", "OTHER_REVENUE"),
        _subtotal("Total receipts"),
        _header("EXPENDITURES"),
        _line("Compensation of employees", "COMPENSATION_EMPLOYEES"),
        _line("Goods and services", "GOODS_SERVICES"),
        _line("Acquisition of fixed assets", "ACQUISITION_FIXED_ASSETS"),
        _line("Other expenses", "OTHER_EXPENSES"),
        _subtotal("Total expenditures"),
    ),
    NET_ASSETS_CHANGES: (
        _line("Balance at beginning of the period", "ACCUMULATED_SURPLUS_DEFICITS"),
        _line("Prior year adjustments", "PRIOR_YEAR_ADJUSTMENTS"),
        _header("Net surplus/(deficit) for the period"),
        _line("Changes in receivables", "RECEIVABLES_EXCHANGE", "RECEIVABLES_NON_EXCHANGE"),
        _line("Changes in payables", "PAYABLES"),
        _total("Balance at end of the period"),
    ),
}
