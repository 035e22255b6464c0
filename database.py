"""
Database connection and session management for DoseTrack
"""

import logging
from sqlalchemy import create_engine, event, text
from sqlalchemy.orm import declarative_base, sessionmaker, Session
from sqlalchemy.pool import StaticPool
from contextlib import contextmanager
from typing import Generator

from config import settings


logger = logging.getLogger(__name__)


def enable_sqlite_foreign_keys(engine) -> None:
    """Turn on foreign key enforcement for every new SQLite connection"""
    @event.listens_for(engine, "connect")
    def set_sqlite_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


# Create SQLAlchemy engine
if settings.DATABASE_URL.startswith("sqlite"):
    # SQLite specific configuration
    engine = create_engine(
        settings.DATABASE_URL,
        connect_args={
            "check_same_thread": False,
            "timeout": settings.STORE_TIMEOUT_SECONDS
        },
        poolclass=StaticPool,
        echo=settings.DATABASE_ECHO
    )
    enable_sqlite_foreign_keys(engine)
else:
    # PostgreSQL; statement_timeout bounds every store call
    timeout_ms = int(settings.STORE_TIMEOUT_SECONDS * 1000)
    engine = create_engine(
        settings.DATABASE_URL,
        echo=settings.DATABASE_ECHO,
        pool_size=10,
        max_overflow=20,
        pool_pre_ping=True,
        pool_timeout=settings.STORE_TIMEOUT_SECONDS,
        connect_args={"options": f"-c statement_timeout={timeout_ms}"}
    )

# Create session factory
SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    expire_on_commit=False,
    bind=engine
)

# Base class for ORM models
Base = declarative_base()


def get_db() -> Generator[Session, None, None]:
    """
    Request-scoped session for FastAPI routes.

    Services commit their own writes; the session is closed once the
    response is sent.

    Usage:
        @router.get("/")
        async def list_medications(db: Session = Depends(get_db)):
            ...
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def get_db_context() -> Generator[Session, None, None]:
    """
    Session for service calls made outside a request (scripts, workers).
    Commits on success and rolls back if the block raises.

    Usage:
        with get_db_context() as db:
            DoseStore(db).fetch_medications(user_id)
    """
    db = SessionLocal()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def init_db() -> None:
    """Create the users, categories, medications and dose_logs tables"""
    # Registers the ORM classes on Base.metadata
    import models  # noqa: F401

    Base.metadata.create_all(bind=engine)
    logger.info(f"Database initialized at: {settings.DATABASE_URL}")


class DatabaseHealthCheck:
    """Database health check utilities"""

    @staticmethod
    def is_connected() -> bool:
        """Check if database is connected"""
        try:
            with engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            return True
        except Exception:
            logger.exception("Database health check failed")
            return False


# Export commonly used items
__all__ = [
    "engine",
    "SessionLocal",
    "Base",
    "get_db",
    "get_db_context",
    "init_db",
    "enable_sqlite_foreign_keys",
    "DatabaseHealthCheck"
]
