from __future__ import annotations

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from healthfin.business.reporting.statements.anchors import ANCHORS, STATEMENT_CODES, find_row
from healthfin.business.reporting.statements.models import StatementTemplate
from healthfin.business.reporting.statements.repository import statement_repository
from healthfin.business.reporting.statements.seed import seed_statement_templates
from healthfin.business.reporting.statements.templates import STANDARD_TEMPLATES, TemplateLineSpec


def test_every_anchor_resolves_in_the_seeded_templates(db_session: Session, world) -> None:
    for statement_code in STATEMENT_CODES:
        lines = statement_repository.load_template(db_session, statement_code)
        assert lines, statement_code
        for anchor in ANCHORS[statement_code]:
            assert find_row(lines, anchor) is not None, (statement_code, anchor.role)


def test_templates_load_in_display_order(db_session: Session, world) -> None:
    lines = statement_repository.load_template(db_session, "REV_EXP")

    assert [line.display_order for line in lines] == sorted(line.display_order for line in lines)
    assert lines[0].description == "REVENUE"
    assert lines[-1].description == "SURPLUS / (DEFICIT) FOR THE PERIOD"


def test_reseeding_updates_in_place(db_session: Session, world) -> None:
    before = db_session.scalar(select(func.count(StatementTemplate.id)))
    expected = sum(len(lines) for lines in STANDARD_TEMPLATES.values())
    assert before == expected

    result = seed_statement_templates(db_session)

    assert result.created == 0
    assert result.updated == expected
    assert result.missing_event_codes == []
    assert db_session.scalar(select(func.count(StatementTemplate.id))) == before


def test_unknown_event_codes_are_dropped_and_reported(db_session: Session, world) -> None:
    result = seed_statement_templates(
        db_session,
        {"CUSTOM": (TemplateLineSpec("Mixed line", ("GRANTS", "NOT_A_CODE")),)},
    )

    assert result.created == 1
    assert result.missing_event_codes == ["NOT_A_CODE"]
    lines = statement_repository.load_template(db_session, "CUSTOM")
    assert len(lines) == 1
    assert len(lines[0].event_ids) == 1
