from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, Boolean, DateTime, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from healthfin.business.masterdata.models import utcnow
from healthfin.core.database import Base


class StatementTemplate(Base):
    __tablename__ = "statement_templates"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    statement_code: Mapped[str] = mapped_column(String(32), nullable=False, index=True)
    line_item: Mapped[str] = mapped_column(String(255), nullable=False)
    event_ids: Mapped[list[Any]] = mapped_column(JSON, nullable=False, default=list)
    display_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_total_line: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default="false")
    is_subtotal_line: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default="false")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    __table_args__ = (UniqueConstraint("statement_code", "line_item", name="uq_statement_template_line"),)
