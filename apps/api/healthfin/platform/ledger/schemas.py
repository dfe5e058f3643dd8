from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, ConfigDict


SourceTable = Literal["execution_data", "planning_data"]
Direction = Literal["CREDIT", "DEBIT"]
EventType = Literal["REVENUE", "EXPENSE", "ASSET", "LIABILITY", "EQUITY"]

EXECUTION_DATA: SourceTable = "execution_data"
PLANNING_DATA: SourceTable = "planning_data"


class EventRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    code: str
    description: str
    event_type: str


class FinancialEventRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    event_id: int
    amount: Decimal
    direction: Direction
    reporting_period_id: int
    facility_id: int
    project_id: int | None
    quarter: int
    source_table: SourceTable
    source_id: int
    updated_at: datetime


class LedgerSyncRead(BaseModel):
    source_table: SourceTable
    source_id: int
    outcome: Literal["synced", "no_mapping", "not_found"]
    rows_written: int = 0
    rows_pruned: int = 0


class EventCatalogSeedRead(BaseModel):
    created: int
