from logging.config import fileConfig

from sqlalchemy import engine_from_config, pool

from alembic import context
from newsreel.database.tables.base_class import Base
from newsreel.database.tables.cleanup_log_table import CleanupLog  # noqa: F401
from newsreel.database.tables.feeds_table import Articles  # noqa: F401
from newsreel.database.tables.user_settings_table import UserSettings  # noqa: F401
from newsreel.main.config import get_settings

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

# An explicit sqlalchemy.url in the alembic Config takes precedence
if not config.get_main_option("sqlalchemy.url"):
    config.set_main_option("sqlalchemy.url", get_settings().sync_database_url)

target_metadata = Base.metadata


def run_migrations_offline() -> None:
    context.configure(
        url=config.get_main_option("sqlalchemy.url"),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    connectable = engine_from_config(
        config.get_section(config.config_ini_section, {}),
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
