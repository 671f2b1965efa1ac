# app/db/init_db.py
"""Database initialization utilities."""
from sqlalchemy import inspect

from app.core.logging import get_logger
from app.db.base import Base, import_models
from app.db.session import engine

logger = get_logger(__name__)


def init_db() -> None:
    """
    Initialize the database by creating all tables.

    Note: This is suitable for development/testing only.
    For production, use Alembic migrations instead.
    """
    import_models()

    existing_tables = inspect(engine).get_table_names()
    Base.metadata.create_all(bind=engine)

    if existing_tables:
        logger.info(f"Database already initialized with {len(existing_tables)} tables")
    else:
        logger.info("Database tables created successfully")


def drop_db() -> None:
    """
    Drop all database tables.

    WARNING: This will delete all data! Use with caution.
    """
    Base.metadata.drop_all(bind=engine)
    logger.warning("All database tables dropped")
