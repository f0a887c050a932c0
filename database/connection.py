"""
Database connection and session management.
"""
import logging
from contextlib import contextmanager
from sqlalchemy import create_engine, text
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import QueuePool
import config.settings as settings

logger = logging.getLogger(__name__)


def _engine_options(database_url: str) -> dict:
    """Pool options for the configured backend."""
    if database_url.startswith('sqlite'):
        # SQLite connections must be usable from Flask worker threads
        return {'connect_args': {'check_same_thread': False}}
    return {
        'poolclass': QueuePool,
        'pool_size': 10,
        'max_overflow': 20,
        'pool_pre_ping': True,
    }


# Create database engine
engine = create_engine(
    settings.DATABASE_URL,
    echo=False,  # Set to True for SQL logging in development
    **_engine_options(settings.DATABASE_URL)
)

# Create session factory
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine, expire_on_commit=False)


@contextmanager
def get_db_session():
    """
    Context manager for database sessions.

    Commits when the block exits normally and rolls back when it raises,
    so a failed transition never leaves a partial write behind.

    Usage:
        with get_db_session() as session:
            # Use session here
            pass
    """
    session = SessionLocal()
    try:
        yield session
        session.commit()
    except Exception as e:
        session.rollback()
        logger.debug(f"Database session rolled back: {e}")
        raise
    finally:
        session.close()


def init_database():
    """
    Initialize database tables.

    This should be called during application startup.
    Models are already imported in database/__init__.py
    """
    try:
        from database import Base

        # Check if we can connect to the database first
        with engine.connect():
            logger.info("Database connection established")

        # Create tables if they don't exist
        Base.metadata.create_all(bind=engine, checkfirst=True)
        logger.info("Database tables initialized successfully")

    except Exception as e:
        logger.warning(f"Database initialization encountered an issue: {e}")
        # Tables might already exist; the application continues with the existing schema
        logger.info("Continuing with existing database schema")


def health_check() -> bool:
    """
    Check database connectivity.

    Returns:
        True if database is accessible, False otherwise
    """
    try:
        with get_db_session() as session:
            session.execute(text('SELECT 1'))
        return True
    except Exception as e:
        logger.error(f"Database health check failed: {e}")
        return False
