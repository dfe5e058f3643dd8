from __future__ import annotations

import logging
from dataclasses import dataclass, field

from sqlalchemy import select
from sqlalchemy.orm import Session

from healthfin.business.reporting.statements.models import StatementTemplate
from healthfin.business.reporting.statements.templates import STANDARD_TEMPLATES, TemplateLineSpec
from healthfin.platform.ledger.models import Event


logger = logging.getLogger("healthfin.statements")


@dataclass(slots=True)
class TemplateSeedResult:
    created: int = 0
    updated: int = 0
    missing_event_codes: list[str] = field(default_factory=list)


def seed_statement_templates(
    session: Session,
    templates: dict[str, tuple[TemplateLineSpec, ...]] | None = None,
) -> TemplateSeedResult:
    """Upsert template lines keyed on ``(statement_code, line_item)``.

    Event codes resolve against the event catalog; unknown codes are dropped
    from the line and reported back.
    """
    templates = templates if templates is not None else STANDARD_TEMPLATES
    event_ids = {code: event_id for code, event_id in session.execute(select(Event.code, Event.id)).all()}
    existing = {
        (row.statement_code, row.line_item): row
        for row in session.scalars(
            select(StatementTemplate).where(StatementTemplate.statement_code.in_(list(templates)))
        ).all()
    }

    result = TemplateSeedResult()
    missing: set[str] = set()
    for statement_code, lines in templates.items():
        for order, entry in enumerate(lines, start=1):
            resolved: list[int] = []
            for code in entry.event_codes:
                if code in event_ids:
                    resolved.append(event_ids[code])
                else:
                    missing.add(code)

            row = existing.get((statement_code, entry.line_item))
            if row is None:
                session.add(
                    StatementTemplate(
                        statement_code=statement_code,
                        line_item=entry.line_item,
                        event_ids=resolved,
                        display_order=order,
                        is_total_line=entry.is_total_line,
                        is_subtotal_line=entry.is_subtotal_line,
                    )
                )
                result.created += 1
                continue

            row.event_ids = resolved
            row.display_order = order
            row.is_total_line = entry.is_total_line
            row.is_subtotal_line = entry.is_subtotal_line
            result.updated += 1

    session.commit()
    result.missing_event_codes = sorted(missing)
    if missing:
        logger.warning("statements.template_events_missing", extra={"error": ", ".join(result.missing_event_codes)})
    logger.info("statements.templates_seeded", extra={"row_count": result.created + result.updated})
    return result
