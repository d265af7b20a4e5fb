"""
Alembic environment configuration.

Connects to the database with the async driver and runs migrations.
"""

import asyncio
from logging.config import fileConfig

from sqlalchemy import pool
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import create_async_engine

from alembic import context

# Import our models so Alembic can detect them
from db.engine import Base, normalize_database_url
from db.models import RevokedCredentialRecord, SessionRecord, User  # noqa: F401

# Import config for DATABASE_URL
from sessionauth.config import AuthConfig

# This is the Alembic Config object
config = context.config

# Note: We don't use config.set_main_option for the URL because ConfigParser
# interprets % as interpolation syntax. The URL is passed to the engine directly.
DATABASE_URL = normalize_database_url(AuthConfig().DATABASE_URL)

# Interpret the config file for Python logging
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

# Target metadata for autogenerate
target_metadata = Base.metadata


def run_migrations_offline() -> None:
    """
    Run migrations in 'offline' mode.

    Emits SQL to the script output without a database connection.
    """
    context.configure(
        url=DATABASE_URL,
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


async def run_migrations_online() -> None:
    """
    Run migrations in 'online' mode.

    The async engine hands a sync connection to Alembic via run_sync.
    """
    connectable = create_async_engine(DATABASE_URL, poolclass=pool.NullPool)

    async with connectable.connect() as connection:
        await connection.run_sync(do_run_migrations)

    await connectable.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    asyncio.run(run_migrations_online())
