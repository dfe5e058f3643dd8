from __future__ import annotations

import pytest
from fastapi import HTTPException
from sqlalchemy.orm import Session

from healthfin.business.masterdata.repository import masterdata_repository
from healthfin.business.masterdata.seed import seed_reporting_periods


def test_seed_reporting_periods_is_idempotent(db_session: Session) -> None:
    first = seed_reporting_periods(db_session)
    second = seed_reporting_periods(db_session)

    assert [(period.year, period.status) for period in first] == [
        (2025, "CLOSED"),
        (2026, "ACTIVE"),
        (2027, "INACTIVE"),
    ]
    assert sorted(period.id for period in second) == sorted(period.id for period in first)


def test_previous_period_follows_fiscal_calendar(db_session: Session) -> None:
    periods = {period.year: period.id for period in seed_reporting_periods(db_session)}

    assert masterdata_repository.previous_period_id(db_session, periods[2026]) == periods[2025]
    assert masterdata_repository.previous_period_id(db_session, periods[2027]) == periods[2026]
    assert masterdata_repository.previous_period_id(db_session, periods[2025]) is None
    assert masterdata_repository.previous_period_id(db_session, 999) is None


def test_require_scope_rejects_unknown_facility_and_period(db_session: Session, world) -> None:
    masterdata_repository.require_scope(db_session, world.facility, world.period)

    with pytest.raises(HTTPException) as missing_facility:
        masterdata_repository.require_scope(db_session, 999, world.period)
    assert missing_facility.value.status_code == 404

    with pytest.raises(HTTPException) as missing_period:
        masterdata_repository.require_scope(db_session, world.facility, 999)
    assert missing_period.value.status_code == 422
