import logging
from dataclasses import dataclass, field
from typing import Optional

from fastapi.concurrency import run_in_threadpool

from search_cache.core.errors import InvalidInputError
from search_cache.models.search_result import SearchResult
from search_cache.services.result_cache import ResultCache
from search_cache.services.search_fetcher import SearchFetcher

logger = logging.getLogger(__name__)


@dataclass
class SearchOutcome:
    query: str
    from_cache: bool
    provider: Optional[str] = None
    results: list[SearchResult] = field(default_factory=list)


async def search(
    query: str,
    cache: ResultCache,
    fetcher: SearchFetcher,
    max_results: int = 100,
    refresh: bool = False,
) -> SearchOutcome:
    """Serve query from the cache, or fetch it and store the new batch.

    Store calls run in the threadpool so the sync session never blocks the
    event loop. Errors from either side propagate unchanged.
    """
    query = (query or "").strip()
    if not query:
        raise InvalidInputError("Query must not be empty.")

    if not refresh:
        hit = await run_in_threadpool(cache.try_get_cached, query)
        if hit is not None:
            logger.info(f"Cache hit for \"{query}\" ({len(hit.results)} result(s))")
            return SearchOutcome(query=hit.query, from_cache=True, results=hit.results)

    items = await fetcher.fetch(query, max_results)
    await run_in_threadpool(cache.replace, query, items)
    results = await run_in_threadpool(cache.get_for_query, query)

    return SearchOutcome(
        query=query,
        from_cache=False,
        provider=fetcher.provider.name,
        results=results,
    )
