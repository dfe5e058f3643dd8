from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict


class ExecutionDataCreate(BaseModel):
    facility_id: int
    reporting_period_id: int
    activity_id: int
    project_id: int | None = None
    q1_amount: Decimal = Decimal("0")
    q2_amount: Decimal = Decimal("0")
    q3_amount: Decimal = Decimal("0")
    q4_amount: Decimal = Decimal("0")
    comment: str | None = None


class ExecutionDataUpdate(BaseModel):
    project_id: int | None = None
    q1_amount: Decimal | None = None
    q2_amount: Decimal | None = None
    q3_amount: Decimal | None = None
    q4_amount: Decimal | None = None
    comment: str | None = None


class ExecutionDataRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    facility_id: int
    reporting_period_id: int
    activity_id: int
    project_id: int | None
    q1_amount: Decimal
    q2_amount: Decimal
    q3_amount: Decimal
    q4_amount: Decimal
    cumulative_balance: Decimal
    comment: str | None
    created_at: datetime
    updated_at: datetime
