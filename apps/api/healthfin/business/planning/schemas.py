from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field


class PlanningDataCreate(BaseModel):
    facility_id: int
    reporting_period_id: int
    activity_id: int
    project_id: int | None = None
    frequency: Decimal = Field(default=Decimal("1"), ge=Decimal("0"))
    unit_cost: Decimal = Field(default=Decimal("0"), ge=Decimal("0"))
    count_q1: Decimal = Field(default=Decimal("0"), ge=Decimal("0"))
    count_q2: Decimal = Field(default=Decimal("0"), ge=Decimal("0"))
    count_q3: Decimal = Field(default=Decimal("0"), ge=Decimal("0"))
    count_q4: Decimal = Field(default=Decimal("0"), ge=Decimal("0"))
    comment: str | None = None


class PlanningDataUpdate(BaseModel):
    project_id: int | None = None
    frequency: Decimal | None = Field(default=None, ge=Decimal("0"))
    unit_cost: Decimal | None = Field(default=None, ge=Decimal("0"))
    count_q1: Decimal | None = Field(default=None, ge=Decimal("0"))
    count_q2: Decimal | None = Field(default=None, ge=Decimal("0"))
    count_q3: Decimal | None = Field(default=None, ge=Decimal("0"))
    count_q4: Decimal | None = Field(default=None, ge=Decimal("0"))
    comment: str | None = None


class PlanningDataRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    facility_id: int
    reporting_period_id: int
    activity_id: int
    project_id: int | None
    frequency: Decimal
    unit_cost: Decimal
    count_q1: Decimal
    count_q2: Decimal
    count_q3: Decimal
    count_q4: Decimal
    amount_q1: Decimal
    amount_q2: Decimal
    amount_q3: Decimal
    amount_q4: Decimal
    total_budget: Decimal
    comment: str | None
    created_at: datetime
    updated_at: datetime
