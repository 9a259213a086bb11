"""
Engine, session factory and declarative base for the library tables.

Sessions are handed to request handlers through ``get_db``. The session
does not commit on its own: ``BookInventoryService`` and ``LendingService``
each commit once per operation, so a borrow row and the copy change it
causes land in the same transaction. Whatever a failed request left
uncommitted is discarded when its session is closed.
"""

from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from library_api.config import settings


def _connect_args(url):
    # SQLite connections are shared with FastAPI's threadpool.
    return {"check_same_thread": False} if url.startswith("sqlite") else {}


engine = create_engine(settings.database_url, connect_args=_connect_args(settings.database_url))

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


def get_db():
    """Yield one session per request and close it when the request is done."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db(bind=None):
    """Create the books and borrows tables on ``bind`` (default: the configured engine)."""
    from library_api import models  # noqa: F401  registers the tables on Base

    Base.metadata.create_all(bind=bind or engine)
