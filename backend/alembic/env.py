"""Alembic environment for the rounds schema.

The URL comes from Settings.database_url (DATABASE_URL, with postgresql://
already rewritten to postgresql+asyncpg://), so migrations and the app
always target the same database.
"""

import asyncio
from logging.config import fileConfig

from sqlalchemy import pool
from sqlalchemy.ext.asyncio import create_async_engine

from alembic import context

from aux_rounds.config import get_settings
from aux_rounds.db.base import Base
import aux_rounds.models  # noqa: F401

config = context.config
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

DATABASE_URL = get_settings().database_url


def _configure_and_run(**kwargs) -> None:
    context.configure(
        target_metadata=Base.metadata, compare_type=True, **kwargs,
    )
    with context.begin_transaction():
        context.run_migrations()


async def _run_online() -> None:
    engine = create_async_engine(DATABASE_URL, poolclass=pool.NullPool)
    async with engine.connect() as connection:
        await connection.run_sync(
            lambda sync_conn: _configure_and_run(connection=sync_conn),
        )
    await engine.dispose()


if context.is_offline_mode():
    _configure_and_run(
        url=DATABASE_URL, literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )
else:
    asyncio.run(_run_online())
