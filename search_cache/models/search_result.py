from datetime import datetime, timezone

from sqlalchemy import Column, String, Integer, DateTime, Text
from sqlalchemy.types import TypeDecorator
from search_cache.core.database import Base


class UTCDateTime(TypeDecorator):
    """Stored as naive UTC, always loaded as timezone-aware UTC.

    SQLite drops tzinfo even for DateTime(timezone=True).
    """

    impl = DateTime
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is not None and value.tzinfo is not None:
            value = value.astimezone(timezone.utc).replace(tzinfo=None)
        return value

    def process_result_value(self, value, dialect):
        if value is not None and value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value


class SearchResult(Base):
    __tablename__ = "search_results"
    # Ids are never handed out twice, even after the rows are deleted
    __table_args__ = {"sqlite_autoincrement": True}

    id = Column(Integer, primary_key=True, autoincrement=True)
    query = Column(String(256), nullable=False, index=True)
    url = Column(String(2048), nullable=False, index=True)
    title = Column(String(512), nullable=True)
    snippet = Column(Text, nullable=True)
    display_link = Column(String(256), nullable=True)
    position = Column(Integer, nullable=False)
    fetched_at_utc = Column(
        UTCDateTime,
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
