"""Database utilities and setup."""
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, sessionmaker

from learnhub.config import DATABASE_URL


def make_engine(url: str) -> Engine:
    """Create an engine; SQLite connections are shared with worker threads."""
    return create_engine(
        url,
        connect_args={"check_same_thread": False} if url.startswith("sqlite") else {},
    )


# Create engine
engine = make_engine(DATABASE_URL)

# Create session factory
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


# Base class for models
class Base(DeclarativeBase):
    """Base class for all database models."""
    pass


def init_db(bind: Engine | None = None):
    """Initialize database (create all tables)."""
    # Register the mapped classes on Base.metadata before create_all.
    import learnhub.models.db  # noqa: F401

    Base.metadata.create_all(bind=bind or engine)
