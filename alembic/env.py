"""
Alembic environment for the course marketplace schema.

The URL is taken from app.config.settings (i.e. from .env), so alembic.ini
carries no credentials. Importing app.models registers every table on
Base.metadata; new models only need to be exported there.

    alembic revision --autogenerate -m "add_something"
    alembic upgrade head
    alembic downgrade -1
"""
import os
import sys
from logging.config import fileConfig

from sqlalchemy import engine_from_config, pool
from alembic import context

# Make the project root importable when alembic runs from elsewhere
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from app.config import settings
from app.database import Base
import app.models  # noqa: F401 — registers all ORM models

config = context.config
config.set_main_option("sqlalchemy.url", settings.database_url)
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

# Autogenerate also diffs column types and server defaults
COMPARE_OPTIONS = {"compare_type": True, "compare_server_default": True}


def _migrate(**configure_kwargs) -> None:
    context.configure(target_metadata=Base.metadata, **COMPARE_OPTIONS, **configure_kwargs)
    with context.begin_transaction():
        context.run_migrations()


if context.is_offline_mode():
    # alembic upgrade head --sql
    _migrate(
        url=config.get_main_option("sqlalchemy.url"),
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )
else:
    engine = engine_from_config(
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,    # one connection per migration run
    )
    with engine.connect() as connection:
        _migrate(connection=connection)
