from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from healthfin.platform.ledger.models import Event


logger = logging.getLogger("healthfin.ledger")

STANDARD_EVENTS: tuple[tuple[str, str, str], ...] = (
    ("TAX_REVENUE", "Tax revenue", "REVENUE"),
    ("GRANTS", "Grants", "REVENUE"),
    ("TRANSFERS_CENTRAL_TREASURY", "Transfers from central treasury", "REVENUE"),
    ("TRANSFERS_PUBLIC_ENTITIES", "Transfers from public entities", "REVENUE"),
    ("FINES_PENALTIES_LICENSES", "Fines, penalties and licenses", "REVENUE"),
    ("PROPERTY_INCOME", "Property income", "REVENUE"),
    ("SALES_GOODS_SERVICES", "Sales of goods and services", "REVENUE"),
    ("PROCEEDS_SALE_CAPITAL", "Proceeds from sale of capital items", "REVENUE"),
    ("OTHER_REVENUE", "Other revenue", "REVENUE"),
    ("DOMESTIC_BORROWINGS", "Domestic borrowings", "REVENUE"),
    ("EXTERNAL_BORROWINGS", "External borrowings", "REVENUE"),
    ("COMPENSATION_EMPLOYEES", "Compensation of employees", "EXPENSE"),
    ("GOODS_SERVICES", "Goods and services", "EXPENSE"),
    ("GRANTS_TRANSFERS", "Grants and other transfers", "EXPENSE"),
    ("SUBSIDIES", "Subsidies", "EXPENSE"),
    ("SOCIAL_ASSISTANCE", "Social assistance", "EXPENSE"),
    ("FINANCE_COSTS", "Finance costs", "EXPENSE"),
    ("ACQUISITION_FIXED_ASSETS", "Acquisition of fixed assets", "EXPENSE"),
    ("REPAYMENT_BORROWINGS", "Repayment of borrowings", "EXPENSE"),
    ("OTHER_EXPENSES", "Other expenses", "EXPENSE"),
    ("CASH_EQUIVALENTS_BEGIN", "Cash and cash equivalents at beginning of period", "ASSET"),
    ("CASH_EQUIVALENTS_END", "Cash and cash equivalents at end of period", "ASSET"),
    ("RECEIVABLES_EXCHANGE", "Receivables from exchange transactions", "ASSET"),
    ("RECEIVABLES_NON_EXCHANGE", "Receivables from non-exchange transactions", "ASSET"),
    ("ADVANCE_PAYMENTS", "Advance payments", "ASSET"),
    ("INVENTORIES", "Inventories", "ASSET"),
    ("DIRECT_INVESTMENTS", "Direct investments", "ASSET"),
    ("PAYABLES", "Payables", "LIABILITY"),
    ("PAYMENTS_RECEIVED_IN_ADVANCE", "Payments received in advance", "LIABILITY"),
    ("RETAINED_PERFORMANCE_SECURITIES", "Retained performance securities", "LIABILITY"),
    ("DIRECT_BORROWINGS", "Direct borrowings", "LIABILITY"),
    ("ACCUMULATED_SURPLUS_DEFICITS", "Accumulated surplus/(deficits)", "EQUITY"),
    ("PRIOR_YEAR_ADJUSTMENTS", "Prior year adjustments", "EQUITY"),
)


def seed_event_catalog(session: Session) -> int:
    """Insert the standard chart of events; existing codes are left untouched."""
    existing = set(session.scalars(select(Event.code)).all())
    created = 0
    for code, description, event_type in STANDARD_EVENTS:
        if code in existing:
            continue
        session.add(Event(code=code, description=description, event_type=event_type))
        created += 1
    session.commit()
    logger.info("ledger.event_catalog_seeded", extra={"row_count": created})
    return created
