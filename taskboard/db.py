"""
Database engine and session management.
"""
from contextlib import contextmanager
from typing import Generator, Optional

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

from taskboard.config import settings
from taskboard.errors import UnexpectedError
from taskboard.logger import get_logger

logger = get_logger(__name__)


def create_db_engine(database_url: str, echo: bool = False) -> Engine:
    """
    Create an engine safely for SQLite and PostgreSQL.
    In-memory SQLite shares a single connection so every session sees the same data.
    """
    if database_url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}, "echo": echo}
        if database_url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
        db_engine = create_engine(database_url, **kwargs)

        @event.listens_for(db_engine, "connect")
        def _enable_sqlite_foreign_keys(dbapi_conn, connection_record):
            cursor = dbapi_conn.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()
    else:
        db_engine = create_engine(
            database_url,
            pool_size=5,
            max_overflow=10,
            pool_pre_ping=True,  # Enable connection health checks
            echo=echo,
        )

    @event.listens_for(db_engine, "connect")
    def on_connect(dbapi_conn, connection_record):
        """Log new database connections."""
        logger.debug("New database connection established")

    return db_engine


engine = create_db_engine(settings.database_url, echo=settings.debug)

# Session factory
SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)


def get_db() -> Generator[Session, None, None]:
    """
    Dependency for FastAPI to get database session.
    Yields a session and ensures it's closed after use.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def get_db_session() -> Generator[Session, None, None]:
    """
    Context manager for database sessions.
    Use this for non-FastAPI contexts (e.g., seeding scripts).
    """
    db = SessionLocal()
    try:
        yield db
        db.commit()
    except Exception as e:
        db.rollback()
        logger.error(f"Database session error: {e}")
        raise
    finally:
        db.close()


@contextmanager
def write_transaction(db: Session) -> Generator[Session, None, None]:
    """
    Commit the writes made inside the block.
    Storage failures are rolled back and surfaced as UnexpectedError.
    """
    try:
        yield db
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Database write failed: {e}")
        raise UnexpectedError("A storage error occurred, please try again.") from e
    except Exception:
        db.rollback()
        raise


def init_db(bind: Optional[Engine] = None) -> None:
    """
    Initialize database tables.
    Call this on application startup.
    """
    from taskboard.models import Base

    logger.info("Creating database tables...")
    Base.metadata.create_all(bind=bind or engine)
    logger.info("Database tables created successfully.")


def check_db_connection(bind: Optional[Engine] = None) -> bool:
    """
    Check if database connection is healthy.
    """
    try:
        with (bind or engine).connect() as conn:
            conn.execute(text("SELECT 1"))
        return True
    except Exception as e:
        logger.error(f"Database connection check failed: {e}")
        return False
