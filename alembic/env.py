"""Alembic environment for DomainHub.

Targets the ORM metadata and runs SQLite migrations in batch mode so
ALTER TABLE operations work.
"""

from __future__ import annotations

from logging.config import fileConfig

from alembic import context

from domainhub.db.orm import Base

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name, disable_existing_loggers=False)

target_metadata = Base.metadata

_DEFAULT_URL = "sqlite:///data/domainhub.db"


def run_migrations_offline() -> None:
    """Emit SQL to stdout without a database connection."""
    context.configure(
        url=config.get_main_option("sqlalchemy.url", _DEFAULT_URL),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        render_as_batch=True,
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """Migrate a live database through the same engine factory the app uses."""
    from domainhub.db.engine import create_db_engine, path_from_url

    url = config.get_main_option("sqlalchemy.url", _DEFAULT_URL)
    connectable = create_db_engine(path_from_url(url))

    with connectable.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            render_as_batch=True,
        )
        with context.begin_transaction():
            context.run_migrations()

    connectable.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
