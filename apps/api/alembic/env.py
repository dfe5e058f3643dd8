import os
from logging.config import fileConfig

from alembic import context
from sqlalchemy import engine_from_config, pool

from healthfin.core.database import Base
from healthfin.business.execution import models as execution_models  # noqa: F401
from healthfin.business.masterdata import models as masterdata_models  # noqa: F401
from healthfin.business.planning import models as planning_models  # noqa: F401
from healthfin.business.reporting.statements import models as statement_models  # noqa: F401
from healthfin.platform.ledger import models as ledger_models  # noqa: F401

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def _database_url() -> str:
    return os.getenv("DATABASE_URL", config.get_main_option("sqlalchemy.url") or "")


def run_migrations_offline() -> None:
    context.configure(
        url=_database_url(),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    section = config.get_section(config.config_ini_section, {})
    section["sqlalchemy.url"] = _database_url()
    connectable = engine_from_config(
        section,
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )

    with connectable.connect() as connection:
        context.configure(connection=connection, target_metadata=target_metadata)

        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
