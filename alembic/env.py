"""
Migration environment for the passes, scans and event_attendance tables.

The database URL always comes from Settings (DATABASE_URL / .env), never
from alembic.ini.
"""
import os
import sys
from logging.config import fileConfig

from alembic import context
from sqlalchemy import create_engine, pool

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from config.database import Base
from config.settings import settings
import api.passes.passes_model  # noqa: F401
import api.scans.scans_model  # noqa: F401
import api.attendance.attendance_records_model  # noqa: F401

config = context.config
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def _migration_options(url: str) -> dict:
    # SQLite cannot ALTER most constraints in place
    return {
        "target_metadata": target_metadata,
        "compare_type": True,
        "render_as_batch": url.startswith("sqlite"),
    }


def run_migrations_offline(url: str) -> None:
    context.configure(
        url=url,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        **_migration_options(url),
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online(url: str) -> None:
    connectable = create_engine(url, poolclass=pool.NullPool)
    try:
        with connectable.connect() as connection:
            context.configure(connection=connection, **_migration_options(url))
            with context.begin_transaction():
                context.run_migrations()
    finally:
        connectable.dispose()


def main() -> None:
    url = settings.DATABASE_URL
    if not url:
        raise ValueError("DATABASE_URL is not set")
    # ConfigParser treats % as interpolation
    config.set_main_option("sqlalchemy.url", url.replace("%", "%%"))

    if context.is_offline_mode():
        run_migrations_offline(url)
    else:
        run_migrations_online(url)


main()
