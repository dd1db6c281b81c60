from logging.config import fileConfig
from sqlalchemy import engine_from_config, pool
from alembic import context
from iacgen.core.config import load_settings
from iacgen.db.session import Base
from iacgen.db import models  # noqa

config = context.config
# Attempt to configure logging from alembic.ini, but don't fail if it's not configured
if config.config_file_name:
    try:
        fileConfig(config.config_file_name, disable_existing_loggers=False)
    except (KeyError, ValueError):
        # Logging config not present in alembic.ini, that's ok - app logging is configured separately
        pass
target_metadata = Base.metadata


def _database_url() -> str:
    # An explicit URL set by the caller (startup migrations) wins over the environment
    return config.get_main_option("sqlalchemy.url") or load_settings().database_url


def run_migrations_offline():
    context.configure(url=_database_url(), target_metadata=target_metadata, literal_binds=True)
    with context.begin_transaction():
        context.run_migrations()

def run_migrations_online():
    configuration = {"sqlalchemy.url": _database_url()}
    connectable = engine_from_config(configuration, prefix="sqlalchemy.", poolclass=pool.NullPool)
    with connectable.connect() as connection:
        context.configure(connection=connection, target_metadata=target_metadata)
        with context.begin_transaction():
            context.run_migrations()

if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
