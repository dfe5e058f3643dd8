from __future__ import annotations

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from healthfin.business.execution.schemas import ExecutionDataCreate, ExecutionDataRead, ExecutionDataUpdate
from healthfin.business.execution.service import execution_data_service
from healthfin.core.database import get_db


router = APIRouter(prefix="/execution-data", tags=["execution"])


@router.post("", response_model=ExecutionDataRead, status_code=status.HTTP_201_CREATED)
def create_execution_data(payload: ExecutionDataCreate, db: Session = Depends(get_db)) -> ExecutionDataRead:
    return execution_data_service.create(db, payload)


@router.get("", response_model=list[ExecutionDataRead])
def list_execution_data(
    facility_id: int | None = Query(default=None),
    reporting_period_id: int | None = Query(default=None),
    project_id: int | None = Query(default=None),
    db: Session = Depends(get_db),
) -> list[ExecutionDataRead]:
    return execution_data_service.list_records(
        db,
        facility_id=facility_id,
        reporting_period_id=reporting_period_id,
        project_id=project_id,
    )


@router.get("/{execution_id}", response_model=ExecutionDataRead)
def get_execution_data(execution_id: int, db: Session = Depends(get_db)) -> ExecutionDataRead:
    return execution_data_service.get(db, execution_id)


@router.patch("/{execution_id}", response_model=ExecutionDataRead)
def update_execution_data(
    execution_id: int,
    payload: ExecutionDataUpdate,
    db: Session = Depends(get_db),
) -> ExecutionDataRead:
    return execution_data_service.update(db, execution_id, payload)


@router.delete("/{execution_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_execution_data(execution_id: int, db: Session = Depends(get_db)) -> Response:
    execution_data_service.delete(db, execution_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
