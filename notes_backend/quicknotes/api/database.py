import os

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from quicknotes.api.log import get_logger
from quicknotes.api.models import Base

logger = get_logger(__name__)

# Notes live in a SQLite file by default; any SQLAlchemy URL works via DATABASE_URL
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./notes.db")


def make_engine(url: str) -> Engine:
    """
    Build an engine for the given URL.

    SQLite needs check_same_thread=False since FastAPI serves sync routes from a
    threadpool. In-memory SQLite additionally pins a single connection, otherwise
    every pooled connection would see its own empty database.
    """
    if not url.startswith("sqlite"):
        return create_engine(url, future=True)
    kwargs = {"connect_args": {"check_same_thread": False}}
    if url in ("sqlite://", "sqlite:///:memory:"):
        kwargs["poolclass"] = StaticPool
    return create_engine(url, future=True, **kwargs)


engine = make_engine(DATABASE_URL)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db(bind: Engine = engine) -> None:
    """Create every table declared on the models' metadata."""
    Base.metadata.create_all(bind=bind)
    logger.debug("database initialized", url=str(bind.url))


def get_db():
    """
    Dependency that provides a database session and ensures proper cleanup.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
