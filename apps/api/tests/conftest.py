from __future__ import annotations

from collections.abc import Callable, Generator
from dataclasses import dataclass
from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy import create_engine, select
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

import healthfin.models  # noqa: F401
from healthfin.business.masterdata.models import (
    Activity,
    District,
    Facility,
    PlanningActivity,
    Project,
    ReportingPeriod,
)
from healthfin.business.reporting.statements.seed import seed_statement_templates
from healthfin.core.config import get_settings
from healthfin.core.database import Base
from healthfin.platform.ledger.models import (
    ActivityEventMapping,
    Event,
    FinancialEvent,
    PlanningActivityEventMapping,
)
from healthfin.platform.ledger.schemas import EXECUTION_DATA
from healthfin.platform.ledger.seed import seed_event_catalog


@pytest.fixture()
def db_session() -> Generator[Session, None, None]:
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(autouse=True)
def reset_settings() -> Generator[None, None, None]:
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@dataclass
class World:
    """Ids of the master data every ledger and statement test starts from."""

    north: int = 1
    south: int = 2
    facility: int = 7
    sibling: int = 8
    remote: int = 9
    previous_period: int = 11
    period: int = 12
    hiv: int = 1
    tb: int = 2


@pytest.fixture()
def world(db_session: Session) -> World:
    ids = World()
    db_session.add_all(
        [
            District(id=ids.north, name="North"),
            District(id=ids.south, name="South"),
        ]
    )
    db_session.flush()
    db_session.add_all(
        [
            Facility(id=ids.facility, name="Kabeza Health Center", district_id=ids.north),
            Facility(id=ids.sibling, name="Muhima Health Center", district_id=ids.north),
            Facility(id=ids.remote, name="Nyamata Hospital", facility_type="hospital", district_id=ids.south),
            ReportingPeriod(
                id=ids.previous_period,
                year=2024,
                start_date=date(2024, 7, 1),
                end_date=date(2025, 6, 30),
            ),
            ReportingPeriod(
                id=ids.period,
                year=2025,
                start_date=date(2025, 7, 1),
                end_date=date(2026, 6, 30),
            ),
            Project(id=ids.hiv, name="HIV programme", code="HIV"),
            Project(id=ids.tb, name="TB programme", code="TB"),
        ]
    )
    db_session.commit()
    seed_event_catalog(db_session)
    seed_statement_templates(db_session)
    return ids


@pytest.fixture()
def event_ids(db_session: Session, world: World) -> dict[str, int]:
    return {code: event_id for code, event_id in db_session.execute(select(Event.code, Event.id)).all()}


@pytest.fixture()
def execution_activity(db_session: Session, event_ids: dict[str, int]) -> Callable[[str], int]:
    def create(event_code: str) -> int:
        activity = Activity(name=f"Activity {event_code}", category_code="A")
        db_session.add(activity)
        db_session.flush()
        db_session.add(ActivityEventMapping(activity_id=activity.id, event_id=event_ids[event_code]))
        db_session.commit()
        return activity.id

    return create


@pytest.fixture()
def planning_activity(db_session: Session, event_ids: dict[str, int]) -> Callable[[str], int]:
    def create(event_code: str) -> int:
        activity = PlanningActivity(name=f"Planned {event_code}", category_code="P")
        db_session.add(activity)
        db_session.flush()
        db_session.add(PlanningActivityEventMapping(planning_activity_id=activity.id, event_id=event_ids[event_code]))
        db_session.commit()
        return activity.id

    return create


@pytest.fixture()
def post_ledger(db_session: Session, event_ids: dict[str, int]) -> Callable[..., None]:
    """Write one ledger row directly, bypassing the mirror."""
    counter = {"next": 1000}

    def post(
        facility_id: int,
        period_id: int,
        event_code: str,
        amount: str | int,
        *,
        source_table: str = EXECUTION_DATA,
        quarter: int = 1,
        project_id: int | None = None,
    ) -> None:
        counter["next"] += 1
        db_session.add(
            FinancialEvent(
                event_id=event_ids[event_code],
                amount=Decimal(str(amount)),
                direction="DEBIT",
                reporting_period_id=period_id,
                facility_id=facility_id,
                project_id=project_id,
                quarter=quarter,
                source_table=source_table,
                source_id=counter["next"],
            )
        )
        db_session.commit()

    return post
