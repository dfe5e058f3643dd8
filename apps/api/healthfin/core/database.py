from __future__ import annotations

import logging
from collections.abc import Callable, Generator
from typing import TypeVar

from sqlalchemy import Engine, create_engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from healthfin.core.config import get_settings


logger = logging.getLogger("healthfin.database")

T = TypeVar("T")


class Base(DeclarativeBase):
    pass


_engine: Engine | None = None


def get_engine() -> Engine:
    global _engine
    if _engine is None:
        _engine = create_engine(get_settings().database_url, pool_pre_ping=True)
    return _engine


def SessionLocal() -> Session:
    return sessionmaker(bind=get_engine(), autocommit=False, autoflush=False)()


def get_db() -> Generator[Session, None, None]:
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


def commit_with_retry(session: Session, work: Callable[[], T], *, attempts: int | None = None) -> T:
    """Run ``work`` and commit it as one transaction.

    An ``IntegrityError`` rolls the transaction back and replays ``work`` until
    ``attempts`` is exhausted, after which the error propagates. Any other
    database error rolls back and propagates immediately.
    """
    max_attempts = attempts if attempts is not None else get_settings().ledger_sync_max_attempts
    max_attempts = max(1, max_attempts)

    attempt = 1
    while True:
        try:
            result = work()
            session.commit()
            return result
        except IntegrityError as exc:
            session.rollback()
            if attempt >= max_attempts:
                raise
            logger.warning("transaction.retry", extra={"attempt": attempt, "error": str(exc)[:500]})
            attempt += 1
        except SQLAlchemyError:
            session.rollback()
            raise
