from __future__ import annotations

from fastapi import HTTPException, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from healthfin.business.masterdata.models import Facility, ReportingPeriod


class MasterDataRepository:
    def get_facility(self, session: Session, facility_id: int) -> Facility | None:
        return session.get(Facility, facility_id)

    def require_scope(self, session: Session, facility_id: int, reporting_period_id: int) -> None:
        if session.get(Facility, facility_id) is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="facility not found")
        if session.get(ReportingPeriod, reporting_period_id) is None:
            raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail="unknown reporting period")

    def previous_period_id(self, session: Session, period_id: int) -> int | None:
        """Id of the latest period of the same type that ends before ``period_id`` starts."""
        current = session.get(ReportingPeriod, period_id)
        if current is None:
            return None
        return session.scalar(
            select(ReportingPeriod.id)
            .where(
                ReportingPeriod.period_type == current.period_type,
                ReportingPeriod.end_date < current.start_date,
            )
            .order_by(ReportingPeriod.end_date.desc())
            .limit(1)
        )


masterdata_repository = MasterDataRepository()
