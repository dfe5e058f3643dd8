from __future__ import annotations

from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from healthfin.business.reporting.statements.compiler import StatementRow
from healthfin.business.reporting.statements.service import FacilityStatement, VarianceLine


def _number(value: Decimal | None) -> float | None:
    return float(value) if value is not None else None


class StatementRowRead(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    description: str
    note: int | None
    current: float | None
    previous: float | None
    is_total: bool = Field(alias="isTotal")
    is_subtotal: bool = Field(alias="isSubtotal")

    @classmethod
    def from_row(cls, row: StatementRow) -> StatementRowRead:
        return cls(
            description=row.description,
            note=row.note,
            current=_number(row.current),
            previous=_number(row.previous),
            is_total=row.is_total,
            is_subtotal=row.is_subtotal,
        )


class FacilityStatementRead(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    facility_id: int = Field(alias="facilityId")
    rows: list[StatementRowRead]

    @classmethod
    def from_statement(cls, statement: FacilityStatement) -> FacilityStatementRead:
        return cls(facility_id=statement.facility_id, rows=[StatementRowRead.from_row(row) for row in statement.rows])


class VarianceLineRead(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    description: str
    budget: float | None
    actual: float | None
    variance: float | None
    execution_rate: float | None = Field(alias="executionRate")
    is_total: bool = Field(alias="isTotal")
    is_subtotal: bool = Field(alias="isSubtotal")

    @classmethod
    def from_line(cls, line: VarianceLine) -> VarianceLineRead:
        return cls(
            description=line.description,
            budget=_number(line.budget),
            actual=_number(line.actual),
            variance=_number(line.variance),
            execution_rate=_number(line.execution_rate),
            is_total=line.is_total,
            is_subtotal=line.is_subtotal,
        )


class TemplateSeedRead(BaseModel):
    created: int
    updated: int
    missing_event_codes: list[str] = Field(default_factory=list)
