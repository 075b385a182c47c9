import asyncio
import logging
from logging.config import fileConfig

from sqlalchemy import engine_from_config
from sqlalchemy import pool

from alembic import context

from ceart_api.core.config import config
from ceart_api.db.database import Base

version_table = "alembic_version_ceart"

logger = logging.getLogger("alembic.env")

# this is the Alembic Config object, which provides
# access to the values within the .ini file in use.
alembic_config = context.config

if alembic_config.config_file_name is not None:
    fileConfig(alembic_config.config_file_name)

target_metadata = Base.metadata


def include_object(object, name, type_, reflected, compare_to):
    """Only manage tables defined by this service's models."""
    if type_ == "table":
        return name in target_metadata.tables
    return True


def get_database_url():
    """Get database URL from service configuration."""
    try:
        return asyncio.run(config.get_database_url())
    except Exception as e:
        logger.error(f"Failed to get database URL from config: {e}")
        raise EnvironmentError(f"Failed to get database URL from config: {e}")


def run_migrations_offline() -> None:
    """Run migrations in 'offline' mode, emitting SQL to the script output."""
    url = get_database_url()

    context.configure(
        url=url,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        include_object=include_object,
        version_table=version_table,
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """Run migrations in 'online' mode against a live connection."""
    connectable = engine_from_config(
        {"sqlalchemy.url": get_database_url()},
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )

    with connectable.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            include_object=include_object,
            version_table=version_table,
            render_as_batch=connection.dialect.name == "sqlite",
        )

        with context.begin_transaction():
            logger.info("Running migrations...")
            context.run_migrations()
            logger.info("Migrations completed successfully")


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
