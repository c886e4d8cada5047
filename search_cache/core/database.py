from typing import Generator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, declarative_base, Session

from search_cache.core.config import settings


def _unicode_lower(value):
    return value.lower() if value is not None else None


def enable_unicode_lower(engine: Engine) -> None:
    """Make SQL lower() fold non-ASCII text on SQLite connections.

    SQLite's built-in lower() only handles ASCII, which breaks
    case-insensitive filtering of accented titles and snippets.
    """
    if engine.dialect.name != "sqlite":
        return

    @event.listens_for(engine, "connect")
    def _register_lower(dbapi_conn, connection_record):
        dbapi_conn.create_function("lower", 1, _unicode_lower, deterministic=True)


connect_args = {"check_same_thread": False} if settings.DATABASE_URL.startswith("sqlite") else {}

engine = create_engine(
    settings.DATABASE_URL,
    connect_args=connect_args,
    echo=False,
)
enable_unicode_lower(engine)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db() -> Generator[Session, None, None]:
    """FastAPI dependency that provides a database session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db() -> None:
    """Create all tables registered on Base."""
    # Importing the models registers them on Base.metadata
    import search_cache.models  # noqa: F401

    Base.metadata.create_all(bind=engine)
