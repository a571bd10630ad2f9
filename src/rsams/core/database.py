"""Database connection and session management.

This module handles the database connection using SQLAlchemy. SQLite is the
default backend; any SQLAlchemy URL can be supplied through DATABASE_URL.
"""

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from rsams.config import DATA_DIR, DATABASE_URL
from rsams.models.base import Base
# Import models to ensure they are registered with Base.metadata
import rsams.models  # noqa: F401


def create_db_engine(url: str) -> Engine:
    """Create an engine for the given database URL.

    Args:
        url: SQLAlchemy database URL.

    Returns:
        Configured Engine.
    """
    if not url.startswith("sqlite"):
        return create_engine(url, pool_pre_ping=True)

    if url in ("sqlite://", "sqlite:///:memory:"):
        # A single shared connection, otherwise every session sees an empty database
        return create_engine(
            url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )

    # Ensure data directory exists
    DATA_DIR.mkdir(parents=True, exist_ok=True)
    return create_engine(url, connect_args={"check_same_thread": False})


engine = create_db_engine(DATABASE_URL)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db() -> None:
    """Create tables if they do not exist."""
    Base.metadata.create_all(bind=engine)


def get_db():
    """Dependency for getting a database session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
