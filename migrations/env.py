import asyncio
import logging
from logging.config import fileConfig

from alembic import context
from sqlalchemy import pool
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import create_async_engine

from pgdash.core import models  # noqa: F401 - registers tables on Base.metadata
from pgdash.core.admin.migrations import migration_targets
from pgdash.core.database import Base

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name, disable_existing_loggers=False)

logger = logging.getLogger("alembic.env")

target_metadata = Base.metadata

# `-x env=dev` limits the run to one environment; default is all of them
targets = migration_targets(context.get_x_argument(as_dictionary=True).get("env"))


def run_migrations_offline() -> None:
    for env, url in targets.items():
        logger.info(f"Generating migration SQL for {env}")
        context.configure(
            url=url,
            target_metadata=target_metadata,
            literal_binds=True,
            dialect_opts={"paramstyle": "named"},
        )

        with context.begin_transaction():
            context.run_migrations()


def do_run_migrations(connection: Connection) -> None:
    context.configure(connection=connection, target_metadata=target_metadata)

    with context.begin_transaction():
        context.run_migrations()


async def run_async_migrations() -> None:
    for env, url in targets.items():
        logger.info(f"Migrating {env} database")
        connectable = create_async_engine(url, poolclass=pool.NullPool)

        async with connectable.connect() as connection:
            await connection.run_sync(do_run_migrations)

        await connectable.dispose()


def run_migrations_online() -> None:
    asyncio.run(run_async_migrations())


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
