from __future__ import annotations

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from healthfin.business.planning.schemas import PlanningDataCreate, PlanningDataRead, PlanningDataUpdate
from healthfin.business.planning.service import planning_data_service
from healthfin.core.database import get_db


router = APIRouter(prefix="/planning-data", tags=["planning"])


@router.post("", response_model=PlanningDataRead, status_code=status.HTTP_201_CREATED)
def create_planning_data(payload: PlanningDataCreate, db: Session = Depends(get_db)) -> PlanningDataRead:
    return planning_data_service.create(db, payload)


@router.get("", response_model=list[PlanningDataRead])
def list_planning_data(
    facility_id: int | None = Query(default=None),
    reporting_period_id: int | None = Query(default=None),
    db: Session = Depends(get_db),
) -> list[PlanningDataRead]:
    return planning_data_service.list_records(db, facility_id=facility_id, reporting_period_id=reporting_period_id)


@router.get("/{planning_id}", response_model=PlanningDataRead)
def get_planning_data(planning_id: int, db: Session = Depends(get_db)) -> PlanningDataRead:
    return planning_data_service.get(db, planning_id)


@router.patch("/{planning_id}", response_model=PlanningDataRead)
def update_planning_data(
    planning_id: int,
    payload: PlanningDataUpdate,
    db: Session = Depends(get_db),
) -> PlanningDataRead:
    return planning_data_service.update(db, planning_id, payload)


@router.delete("/{planning_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_planning_data(planning_id: int, db: Session = Depends(get_db)) -> Response:
    planning_data_service.delete(db, planning_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
