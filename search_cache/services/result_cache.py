"""Per-query store of fetched search results.

Every row for a query belongs to the same fetch batch: ``replace`` deletes the
previous batch and inserts the new one inside a single transaction.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Iterable, Optional

from sqlalchemy import delete, func, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from search_cache.core.errors import InvalidInputError, StoreError
from search_cache.models.search_result import SearchResult
from search_cache.schemas.search import ResultItem
from search_cache.services.similarity import score_match

logger = logging.getLogger(__name__)


@dataclass
class CacheHit:
    query: str
    results: list[SearchResult]
    fetched_at_utc: Optional[datetime] = None


@dataclass
class CachedQuery:
    query: str
    result_count: int
    fetched_at_utc: datetime


def _normalize(query: Optional[str]) -> str:
    return (query or "").strip()


class ResultCache:
    def __init__(self, db: Session):
        self.db = db

    def replace(self, query: str, items: Iterable[ResultItem]) -> int:
        """Swap the stored batch for query with items. Returns rows inserted.

        The delete and the inserts commit together or not at all.
        """
        query = _normalize(query)
        if not query:
            raise InvalidInputError("Query must not be empty.")

        now = datetime.now(timezone.utc)
        rows = [
            SearchResult(
                query=query,
                url=item.url,
                title=item.title,
                snippet=item.snippet,
                display_link=item.display_link,
                position=item.position,
                fetched_at_utc=now,
            )
            for item in items
        ]

        try:
            deleted = self.db.execute(
                delete(SearchResult).where(SearchResult.query == query)
            ).rowcount
            self.db.add_all(rows)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to replace results for \"{query}\": {e}")
            raise StoreError(f"Could not store results for '{query}': {e}") from e
        except BaseException:
            # Cancellation or interrupt before commit: keep the old batch
            self.db.rollback()
            raise

        logger.info(f"Replaced results for \"{query}\": {deleted} removed, {len(rows)} stored")
        return len(rows)

    def get_for_query(self, query: str) -> list[SearchResult]:
        """All live rows for query, ordered by position."""
        query = _normalize(query)
        if not query:
            return []

        stmt = (
            select(SearchResult)
            .where(SearchResult.query == query)
            .order_by(SearchResult.position.asc(), SearchResult.id.asc())
        )
        return self._all(stmt)

    def filter(self, query: Optional[str], like_term: str) -> list[SearchResult]:
        """Rows whose query, title, url or snippet contain like_term.

        Matching is case-insensitive. With a query the rows come back in
        position order; across all queries the newest rows come first.
        """
        like_term = _normalize(like_term)
        if not like_term:
            return []

        stmt = select(SearchResult).where(
            or_(
                SearchResult.query.icontains(like_term, autoescape=True),
                SearchResult.title.icontains(like_term, autoescape=True),
                SearchResult.url.icontains(like_term, autoescape=True),
                SearchResult.snippet.icontains(like_term, autoescape=True),
            )
        )

        query = _normalize(query)
        if query:
            stmt = stmt.where(SearchResult.query == query).order_by(
                SearchResult.position.asc(), SearchResult.id.asc()
            )
        else:
            stmt = stmt.order_by(SearchResult.id.desc())

        return self._all(stmt)

    def try_get_cached(self, query: str) -> Optional[CacheHit]:
        """Return the stored batch for an exact query match, or None."""
        query = _normalize(query)
        if not query:
            return None

        exists_stmt = select(SearchResult.id).where(SearchResult.query == query).limit(1)
        try:
            hit = self.db.execute(exists_stmt).first()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StoreError(f"Could not read cached results: {e}") from e
        if hit is None:
            return None

        results = self.get_for_query(query)
        if not results:
            # Replaced with an empty batch between the two reads
            return None
        return CacheHit(query=query, results=results, fetched_at_utc=results[0].fetched_at_utc)

    def list_queries(self) -> list[CachedQuery]:
        """One entry per cached query, most recently fetched first."""
        latest = func.max(SearchResult.fetched_at_utc)
        stmt = (
            select(SearchResult.query, func.count(SearchResult.id), latest)
            .group_by(SearchResult.query)
            .order_by(latest.desc(), SearchResult.query.asc())
        )
        try:
            rows = self.db.execute(stmt).all()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StoreError(f"Could not list cached queries: {e}") from e
        return [
            CachedQuery(query=q, result_count=count, fetched_at_utc=fetched_at)
            for q, count, fetched_at in rows
        ]

    def suggest_queries(self, term: str, limit: int = 5) -> list[str]:
        """Cached queries related to term, closest first.

        Unrelated queries are left out. This never affects try_get_cached,
        which only matches exactly.
        """
        term = _normalize(term)
        if not term or limit < 1:
            return []

        scored = []
        for cached in self.list_queries():
            score = score_match(term, cached.query)
            if score < 3:
                scored.append((score, cached.query.lower(), cached.query))
        scored.sort()
        return [q for _, _, q in scored[:limit]]

    def _all(self, stmt) -> list[SearchResult]:
        try:
            return list(self.db.scalars(stmt).all())
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StoreError(f"Could not read search results: {e}") from e
