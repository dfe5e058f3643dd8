from __future__ import annotations

import logging
from datetime import date

from sqlalchemy import select
from sqlalchemy.orm import Session

from healthfin.business.masterdata.models import ReportingPeriod


logger = logging.getLogger("healthfin.masterdata.seed")

# Fiscal years run July to June.
DEFAULT_REPORTING_PERIODS = [
    (2025, date(2024, 7, 1), date(2025, 6, 30), "CLOSED"),
    (2026, date(2025, 7, 1), date(2026, 6, 30), "ACTIVE"),
    (2027, date(2026, 7, 1), date(2027, 6, 30), "INACTIVE"),
]


def seed_reporting_periods(session: Session) -> list[ReportingPeriod]:
    existing = session.scalars(select(ReportingPeriod)).all()
    if existing:
        logger.info("masterdata.seed.skipped", extra={"row_count": len(existing)})
        return list(existing)

    periods = [
        ReportingPeriod(year=year, period_type="ANNUAL", start_date=start, end_date=end, status=status)
        for year, start, end, status in DEFAULT_REPORTING_PERIODS
    ]
    session.add_all(periods)
    session.commit()
    logger.info("masterdata.seed.completed", extra={"row_count": len(periods)})
    return periods
