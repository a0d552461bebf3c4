"""
Database connection setup

The engine is created on first use and shared by every request through its
connection pool. It is disposed when the application shuts down.
"""

from typing import Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker

from pushrelay.config import Settings, settings as default_settings

_engine: Optional[Engine] = None

SessionLocal = sessionmaker(autocommit=False, autoflush=False)

Base = declarative_base()


def get_engine(database_url: Optional[str] = None) -> Engine:
    """Returns the shared engine, creating it on the first call"""
    global _engine
    
    if _engine is None:
        url = database_url or default_settings.DATABASE_URL
        connect_args = {}
        if url.startswith("sqlite"):
            connect_args["check_same_thread"] = False  # Needed for SQLite across threads
        _engine = create_engine(url, connect_args=connect_args)
    
    return _engine


def dispose_engine():
    """Closes pooled connections and forgets the shared engine"""
    global _engine
    
    if _engine is not None:
        _engine.dispose()
        _engine = None


def get_db():
    """
    Dependency providing a database session
    Used by FastAPI endpoints
    """
    db = SessionLocal(bind=get_engine())
    try:
        yield db
    finally:
        db.close()


def init_db(settings: Optional[Settings] = None):
    """
    Creates the shared engine for settings.DATABASE_URL and all tables
    """
    from pushrelay import models  # noqa: F401 - registers the tables on Base

    settings = settings or default_settings
    Base.metadata.create_all(bind=get_engine(settings.DATABASE_URL))
