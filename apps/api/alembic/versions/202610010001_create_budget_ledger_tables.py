"""create budget, ledger and statement tables

Revision ID: 202610010001
Revises:
Create Date: 2026-10-01 09:00:00
"""

from collections.abc import Sequence

from alembic import op
import sqlalchemy as sa


revision: str = "202610010001"
down_revision: str | None = None
branch_labels: Sequence[str] | None = None
depends_on: Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "districts",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("name"),
    )

    op.create_table(
        "facilities",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("facility_type", sa.String(length=32), nullable=False),
        sa.Column("district_id", sa.Integer(), nullable=True),
        sa.ForeignKeyConstraint(["district_id"], ["districts.id"], ondelete="RESTRICT"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("name", "district_id", name="uq_facility_name_district"),
    )

    op.create_table(
        "projects",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("code", sa.String(length=32), nullable=False),
        sa.Column("status", sa.String(length=16), nullable=False, server_default="ACTIVE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("code"),
    )

    op.create_table(
        "reporting_periods",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("year", sa.Integer(), nullable=False),
        sa.Column("period_type", sa.String(length=16), nullable=False, server_default="ANNUAL"),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=False),
        sa.Column("status", sa.String(length=16), nullable=False, server_default="ACTIVE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("year", "period_type", name="uq_reporting_period_year_type"),
    )

    op.create_table(
        "activities",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("category_code", sa.String(length=32), nullable=False),
        sa.Column("display_order", sa.Integer(), nullable=False),
        sa.Column("is_total_row", sa.Boolean(), nullable=False, server_default="false"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "planning_activities",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("category_code", sa.String(length=32), nullable=False),
        sa.Column("project_id", sa.Integer(), nullable=True),
        sa.Column("display_order", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["project_id"], ["projects.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "events",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("code", sa.String(length=64), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("event_type", sa.String(length=32), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("code"),
    )

    op.create_table(
        "activity_event_mappings",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("activity_id", sa.Integer(), nullable=False),
        sa.Column("event_id", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(["activity_id"], ["activities.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["event_id"], ["events.id"], ondelete="RESTRICT"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("activity_id"),
    )

    op.create_table(
        "planning_activity_event_mappings",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("planning_activity_id", sa.Integer(), nullable=False),
        sa.Column("event_id", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(["planning_activity_id"], ["planning_activities.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["event_id"], ["events.id"], ondelete="RESTRICT"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("planning_activity_id"),
    )

    op.create_table(
        "planning_data",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("facility_id", sa.Integer(), nullable=False),
        sa.Column("reporting_period_id", sa.Integer(), nullable=False),
        sa.Column("project_id", sa.Integer(), nullable=True),
        sa.Column("activity_id", sa.Integer(), nullable=False),
        sa.Column("frequency", sa.Numeric(12, 2), nullable=False),
        sa.Column("unit_cost", sa.Numeric(18, 2), nullable=False),
        sa.Column("count_q1", sa.Numeric(12, 2), nullable=False),
        sa.Column("count_q2", sa.Numeric(12, 2), nullable=False),
        sa.Column("count_q3", sa.Numeric(12, 2), nullable=False),
        sa.Column("count_q4", sa.Numeric(12, 2), nullable=False),
        sa.Column("amount_q1", sa.Numeric(18, 2), nullable=False),
        sa.Column("amount_q2", sa.Numeric(18, 2), nullable=False),
        sa.Column("amount_q3", sa.Numeric(18, 2), nullable=False),
        sa.Column("amount_q4", sa.Numeric(18, 2), nullable=False),
        sa.Column("total_budget", sa.Numeric(18, 2), nullable=False),
        sa.Column("comment", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["facility_id"], ["facilities.id"], ondelete="RESTRICT"),
        sa.ForeignKeyConstraint(["reporting_period_id"], ["reporting_periods.id"], ondelete="RESTRICT"),
        sa.ForeignKeyConstraint(["project_id"], ["projects.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["activity_id"], ["planning_activities.id"], ondelete="RESTRICT"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("facility_id", "reporting_period_id", "activity_id", name="uq_planning_data_scope"),
    )
    op.create_index("ix_planning_data_facility_id", "planning_data", ["facility_id"])
    op.create_index("ix_planning_data_reporting_period_id", "planning_data", ["reporting_period_id"])

    op.create_table(
        "execution_data",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("facility_id", sa.Integer(), nullable=False),
        sa.Column("reporting_period_id", sa.Integer(), nullable=False),
        sa.Column("project_id", sa.Integer(), nullable=True),
        sa.Column("activity_id", sa.Integer(), nullable=False),
        sa.Column("q1_amount", sa.Numeric(18, 2), nullable=False),
        sa.Column("q2_amount", sa.Numeric(18, 2), nullable=False),
        sa.Column("q3_amount", sa.Numeric(18, 2), nullable=False),
        sa.Column("q4_amount", sa.Numeric(18, 2), nullable=False),
        sa.Column("cumulative_balance", sa.Numeric(18, 2), nullable=False),
        sa.Column("comment", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["facility_id"], ["facilities.id"], ondelete="RESTRICT"),
        sa.ForeignKeyConstraint(["reporting_period_id"], ["reporting_periods.id"], ondelete="RESTRICT"),
        sa.ForeignKeyConstraint(["project_id"], ["projects.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["activity_id"], ["activities.id"], ondelete="RESTRICT"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "facility_id",
            "reporting_period_id",
            "activity_id",
            "project_id",
            name="uq_execution_data_scope",
        ),
    )
    op.create_index("ix_execution_data_facility_id", "execution_data", ["facility_id"])
    op.create_index("ix_execution_data_reporting_period_id", "execution_data", ["reporting_period_id"])

    op.create_table(
        "financial_events",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("event_id", sa.Integer(), nullable=False),
        sa.Column("amount", sa.Numeric(18, 2), nullable=False),
        sa.Column("direction", sa.String(length=8), nullable=False),
        sa.Column("reporting_period_id", sa.Integer(), nullable=False),
        sa.Column("facility_id", sa.Integer(), nullable=False),
        sa.Column("project_id", sa.Integer(), nullable=True),
        sa.Column("quarter", sa.Integer(), nullable=False),
        sa.Column("source_table", sa.String(length=32), nullable=False),
        sa.Column("source_id", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("quarter BETWEEN 1 AND 4", name="ck_financial_event_quarter"),
        sa.CheckConstraint("direction IN ('CREDIT', 'DEBIT')", name="ck_financial_event_direction"),
        sa.CheckConstraint(
            "source_table IN ('execution_data', 'planning_data')",
            name="ck_financial_event_source_table",
        ),
        sa.ForeignKeyConstraint(["event_id"], ["events.id"], ondelete="RESTRICT"),
        sa.ForeignKeyConstraint(["reporting_period_id"], ["reporting_periods.id"], ondelete="RESTRICT"),
        sa.ForeignKeyConstraint(["facility_id"], ["facilities.id"], ondelete="RESTRICT"),
        sa.ForeignKeyConstraint(["project_id"], ["projects.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "event_id",
            "reporting_period_id",
            "facility_id",
            "quarter",
            "source_id",
            "source_table",
            name="uq_financial_event_natural_key",
        ),
    )
    op.create_index("ix_financial_event_source", "financial_events", ["source_table", "source_id"])
    op.create_index(
        "ix_financial_event_period_scope",
        "financial_events",
        ["reporting_period_id", "source_table", "facility_id"],
    )

    op.create_table(
        "statement_templates",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("statement_code", sa.String(length=32), nullable=False),
        sa.Column("line_item", sa.String(length=255), nullable=False),
        sa.Column("event_ids", sa.JSON(), nullable=False),
        sa.Column("display_order", sa.Integer(), nullable=False),
        sa.Column("is_total_line", sa.Boolean(), nullable=False, server_default="false"),
        sa.Column("is_subtotal_line", sa.Boolean(), nullable=False, server_default="false"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("statement_code", "line_item", name="uq_statement_template_line"),
    )
    op.create_index("ix_statement_templates_statement_code", "statement_templates", ["statement_code"])


def downgrade() -> None:
    op.drop_index("ix_statement_templates_statement_code", table_name="statement_templates")
    op.drop_table("statement_templates")
    op.drop_index("ix_financial_event_period_scope", table_name="financial_events")
    op.drop_index("ix_financial_event_source", table_name="financial_events")
    op.drop_table("financial_events")
    op.drop_index("ix_execution_data_reporting_period_id", table_name="execution_data")
    op.drop_index("ix_execution_data_facility_id", table_name="execution_data")
    op.drop_table("execution_data")
    op.drop_index("ix_planning_data_reporting_period_id", table_name="planning_data")
    op.drop_index("ix_planning_data_facility_id", table_name="planning_data")
    op.drop_table("planning_data")
    op.drop_table("planning_activity_event_mappings")
    op.drop_table("activity_event_mappings")
    op.drop_table("events")
    op.drop_table("planning_activities")
    op.drop_table("activities")
    op.drop_table("reporting_periods")
    op.drop_table("projects")
    op.drop_table("facilities")
    op.drop_table("districts")
