from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Index, Integer, Numeric, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from healthfin.core.database import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Event(Base):
    """Chart-of-events entry. Reference data, never written by the ledger mirror."""

    __tablename__ = "events"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    code: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    event_type: Mapped[str] = mapped_column(String(32), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)


class ActivityEventMapping(Base):
    __tablename__ = "activity_event_mappings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    activity_id: Mapped[int] = mapped_column(ForeignKey("activities.id", ondelete="CASCADE"), nullable=False, unique=True)
    event_id: Mapped[int] = mapped_column(ForeignKey("events.id", ondelete="RESTRICT"), nullable=False)

    event: Mapped[Event] = relationship("Event")


class PlanningActivityEventMapping(Base):
    __tablename__ = "planning_activity_event_mappings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    planning_activity_id: Mapped[int] = mapped_column(
        ForeignKey("planning_activities.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    event_id: Mapped[int] = mapped_column(ForeignKey("events.id", ondelete="RESTRICT"), nullable=False)

    event: Mapped[Event] = relationship("Event")


class FinancialEvent(Base):
    __tablename__ = "financial_events"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    event_id: Mapped[int] = mapped_column(ForeignKey("events.id", ondelete="RESTRICT"), nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False)
    direction: Mapped[str] = mapped_column(String(8), nullable=False)
    reporting_period_id: Mapped[int] = mapped_column(ForeignKey("reporting_periods.id", ondelete="RESTRICT"), nullable=False)
    facility_id: Mapped[int] = mapped_column(ForeignKey("facilities.id", ondelete="RESTRICT"), nullable=False)
    project_id: Mapped[int | None] = mapped_column(ForeignKey("projects.id", ondelete="SET NULL"), nullable=True)
    quarter: Mapped[int] = mapped_column(Integer, nullable=False)
    source_table: Mapped[str] = mapped_column(String(32), nullable=False)
    source_id: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)

    __table_args__ = (
        UniqueConstraint(
            "event_id",
            "reporting_period_id",
            "facility_id",
            "quarter",
            "source_id",
            "source_table",
            name="uq_financial_event_natural_key",
        ),
        CheckConstraint("quarter BETWEEN 1 AND 4", name="ck_financial_event_quarter"),
        CheckConstraint("direction IN ('CREDIT', 'DEBIT')", name="ck_financial_event_direction"),
        CheckConstraint(
            "source_table IN ('execution_data', 'planning_data')",
            name="ck_financial_event_source_table",
        ),
        Index("ix_financial_event_source", "source_table", "source_id"),
        Index("ix_financial_event_period_scope", "reporting_period_id", "source_table", "facility_id"),
    )


NATURAL_KEY_COLUMNS = (
    "event_id",
    "reporting_period_id",
    "facility_id",
    "quarter",
    "source_id",
    "source_table",
)
