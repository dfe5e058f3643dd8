from __future__ import annotations

from typing import Literal

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from healthfin.business.masterdata.repository import masterdata_repository
from healthfin.business.reporting.statements.anchors import (
    ASSETS_LIAB,
    BUDGET_VS_ACTUAL,
    CASH_FLOW,
    NET_ASSETS_CHANGES,
    REV_EXP,
)
from healthfin.business.reporting.statements.schemas import (
    FacilityStatementRead,
    StatementRowRead,
    TemplateSeedRead,
    VarianceLineRead,
)
from healthfin.business.reporting.statements.seed import seed_statement_templates
from healthfin.business.reporting.statements.service import statement_service
from healthfin.core.auth import AuthUser, get_current_user, require_admin
from healthfin.core.config import get_settings
from healthfin.core.database import get_db


router = APIRouter(prefix="/statements", tags=["statements"])

STATEMENT_SLUGS: dict[str, str] = {
    "revenue-expenditure": REV_EXP,
    "assets-liabilities": ASSETS_LIAB,
    "cash-flow": CASH_FLOW,
    "budget-vs-actual": BUDGET_VS_ACTUAL,
    "net-assets-changes": NET_ASSETS_CHANGES,
}

StatementSlug = Literal[
    "revenue-expenditure",
    "assets-liabilities",
    "cash-flow",
    "budget-vs-actual",
    "net-assets-changes",
]


def authorize_facility(
    facility_id: int,
    db: Session = Depends(get_db),
    user: AuthUser = Depends(get_current_user),
) -> AuthUser:
    """Callers may only read statements of facilities in their own district."""
    if not user.is_admin and user.facility_id is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="user facility not found")

    requested = masterdata_repository.get_facility(db, facility_id)
    if requested is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="requested facility not found")
    if user.is_admin:
        return user

    own = masterdata_repository.get_facility(db, user.facility_id) if user.facility_id is not None else None
    if own is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="user facility not found")
    if own.district_id != requested.district_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="you can only access data for facilities in your district",
        )
    return user


@router.post("/seeds/templates", response_model=TemplateSeedRead)
def seed_templates(
    db: Session = Depends(get_db),
    _: AuthUser = Depends(require_admin),
) -> TemplateSeedRead:
    result = seed_statement_templates(db)
    return TemplateSeedRead(
        created=result.created,
        updated=result.updated,
        missing_event_codes=result.missing_event_codes,
    )


@router.get("/budget-vs-actual/{facility_id}/{period_id}/variance", response_model=list[VarianceLineRead])
def get_budget_variance(
    facility_id: int,
    period_id: int,
    db: Session = Depends(get_db),
    _: AuthUser = Depends(authorize_facility),
) -> list[VarianceLineRead]:
    lines = statement_service.budget_variance(db, facility_id, period_id)
    return [VarianceLineRead.from_line(line) for line in lines]


@router.get("/{slug}/aggregate/{period_id}", response_model=list[StatementRowRead])
def get_aggregate_statement(
    slug: StatementSlug,
    period_id: int,
    previous_period_id: int | None = Query(default=None),
    project_code: str | None = Query(default=None, min_length=1),
    db: Session = Depends(get_db),
) -> list[StatementRowRead]:
    statement_code = STATEMENT_SLUGS[slug]
    if project_code is not None:
        rows = statement_service.compile_aggregate_by_project(db, statement_code, period_id, project_code)
    else:
        rows = statement_service.compile_aggregate(db, statement_code, period_id, previous_period_id)
    return [StatementRowRead.from_row(row) for row in rows]


@router.get("/{slug}/all/{period_id}", response_model=list[FacilityStatementRead])
def get_statements_per_facility(
    slug: StatementSlug,
    period_id: int,
    db: Session = Depends(get_db),
) -> list[FacilityStatementRead]:
    statements = statement_service.compile_per_facility(db, STATEMENT_SLUGS[slug], period_id)
    return [FacilityStatementRead.from_statement(item) for item in statements]


@router.get("/{slug}/{facility_id}/{period_id}", response_model=list[StatementRowRead])
def get_facility_statement(
    slug: StatementSlug,
    facility_id: int,
    period_id: int,
    previous_period_id: int | None = Query(default=None),
    db: Session = Depends(get_db),
    _: AuthUser = Depends(authorize_facility),
) -> list[StatementRowRead]:
    statement_code = STATEMENT_SLUGS[slug]
    if (
        previous_period_id is None
        and statement_code != BUDGET_VS_ACTUAL
        and get_settings().statement_default_previous_period
    ):
        previous_period_id = masterdata_repository.previous_period_id(db, period_id)
    rows = statement_service.compile(db, statement_code, facility_id, period_id, previous_period_id)
    return [StatementRowRead.from_row(row) for row in rows]
