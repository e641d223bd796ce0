"""
Alembic environment for the retail ledger schema.

The database URL comes from the application settings, never
from alembic.ini, so migrations always target the same store
the API uses. Importing retail_ledger.models registers every
table (entries, receipts, sales, products) on Base.metadata.

SQLite cannot ALTER most column definitions in place, so on
that backend migrations run in batch mode (copy-and-move).
"""

from logging.config import fileConfig

from alembic import context
from sqlalchemy import create_engine, pool

from retail_ledger.config import get_settings
from retail_ledger.models import Base
from retail_ledger.models.base import build_engine, is_sqlite_url

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata

settings = get_settings()
database_url = settings.DATABASE_URL
config.set_main_option("sqlalchemy.url", database_url)


def _configure_options() -> dict:
    return {
        "target_metadata": target_metadata,
        # Numeric(14, 2) precision and enum changes must show up
        # in autogenerate, not only new columns.
        "compare_type": True,
        "render_as_batch": is_sqlite_url(database_url),
    }


def run_migrations_offline() -> None:
    """Emit the migration as a SQL script without connecting."""
    context.configure(
        url=database_url,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        **_configure_options(),
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """
    Apply migrations against the live database.

    The engine is built the same way the application builds it,
    so SQLite gets the same transaction handling and foreign key
    enforcement during a migration as at runtime.
    """
    if is_sqlite_url(database_url):
        connectable = build_engine(database_url)
    else:
        connectable = create_engine(database_url, poolclass=pool.NullPool)

    with connectable.connect() as connection:
        context.configure(connection=connection, **_configure_options())

        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
