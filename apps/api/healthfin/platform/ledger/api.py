from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from healthfin.core.auth import AuthUser, require_admin
from healthfin.core.database import commit_with_retry, get_db
from healthfin.platform.ledger.schemas import EventCatalogSeedRead, FinancialEventRead, LedgerSyncRead, SourceTable
from healthfin.platform.ledger.seed import seed_event_catalog
from healthfin.platform.ledger.service import ledger_mirror_service


router = APIRouter(prefix="/ledger", tags=["ledger"])


@router.post("/sync/{source_table}/{source_id}", response_model=LedgerSyncRead)
def resync_source(
    source_table: SourceTable,
    source_id: int,
    db: Session = Depends(get_db),
    _: AuthUser = Depends(require_admin),
) -> LedgerSyncRead:
    result = commit_with_retry(db, lambda: ledger_mirror_service.sync(db, source_id, source_table))
    if result.outcome == "not_found":
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"{source_table} row not found")
    return result


@router.get("/financial-events", response_model=list[FinancialEventRead])
def list_financial_events(
    source_table: SourceTable | None = Query(default=None),
    source_id: int | None = Query(default=None),
    facility_id: int | None = Query(default=None),
    reporting_period_id: int | None = Query(default=None),
    db: Session = Depends(get_db),
    _: AuthUser = Depends(require_admin),
) -> list[FinancialEventRead]:
    return ledger_mirror_service.list_events(
        db,
        source_table=source_table,
        source_id=source_id,
        facility_id=facility_id,
        reporting_period_id=reporting_period_id,
    )


@router.post("/seeds/event-catalog", response_model=EventCatalogSeedRead)
def seed_events(
    db: Session = Depends(get_db),
    _: AuthUser = Depends(require_admin),
) -> EventCatalogSeedRead:
    return EventCatalogSeedRead(created=seed_event_catalog(db))
