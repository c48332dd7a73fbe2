"""
Alembic Environment Configuration

This file controls how Alembic runs migrations.

Key responsibilities:
1. Load database URL from application settings (not alembic.ini)
2. Import all SQLAlchemy models for autogenerate
3. Configure migration context
4. Handle online vs offline migrations

MIGRATION WORKFLOW:
===================
1. Make changes to SQLAlchemy models
2. Run: alembic revision --autogenerate -m "description"
3. Review the generated migration in alembic/versions/
4. Run: alembic upgrade head
"""

from logging.config import fileConfig

from alembic import context

from catalog.config import get_settings

# Importing the models package registers every table on Base.metadata
from catalog.database import Base, create_storage
from catalog.models import Book, NewsletterSubscriber, User, Vote  # noqa: F401

settings = get_settings()

config = context.config

# Use the same DATABASE_URL as the application
config.set_main_option("sqlalchemy.url", settings.database_url)

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def run_migrations_offline() -> None:
    """
    Run migrations in 'offline' mode (emit SQL without a connection).

    Usage:
        alembic upgrade head --sql > migration.sql
    """
    url = config.get_main_option("sqlalchemy.url")
    context.configure(
        url=url,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        compare_type=True,
        render_as_batch=settings.is_sqlite,
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """
    Run migrations in 'online' mode.

    Connects through create_storage() so migrations get the same engine
    setup as the app (SQLite busy timeout and foreign key enforcement).

    Usage:
        alembic upgrade head
    """
    storage = create_storage(settings)

    try:
        with storage.engine.connect() as connection:
            context.configure(
                connection=connection,
                target_metadata=target_metadata,
                compare_type=True,
                # SQLite cannot ALTER most constraints in place
                render_as_batch=storage.is_sqlite,
            )

            with context.begin_transaction():
                context.run_migrations()
    finally:
        storage.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
