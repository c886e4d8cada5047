import logging
from typing import Callable, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from search_cache.core.config import Settings, get_settings
from search_cache.core.database import get_db
from search_cache.core.errors import (
    ConfigurationMissingError,
    InvalidInputError,
    QuotaOrAuthError,
    SearchCacheError,
    StoreError,
    UpstreamError,
)
from search_cache.schemas.search import (
    CachedQueryResponse,
    SearchRequest,
    SearchResponse,
    StoredResultResponse,
)
from search_cache.schemas.settings import ApiKeyStatus, ProvidersResponse
from search_cache.services import search_service
from search_cache.services.result_cache import ResultCache
from search_cache.services.search_fetcher import SearchFetcher
from search_cache.services.search_providers import build_provider

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/search", tags=["search"])

FetcherBuilder = Callable[[Optional[str]], SearchFetcher]


# ── Dependencies ──────────────────────────────────────────────────────────

def get_cache(db: Session = Depends(get_db)) -> ResultCache:
    return ResultCache(db)


def get_fetcher_builder(settings: Settings = Depends(get_settings)) -> FetcherBuilder:
    """Return a callable that builds a fetcher for the requested provider."""

    def build(provider_name: Optional[str] = None) -> SearchFetcher:
        provider = build_provider(settings, provider_name)
        return SearchFetcher(provider, timeout=settings.SEARCH_TIMEOUT_SECONDS)

    return build


# ── Helpers ───────────────────────────────────────────────────────────────

def _to_http_error(exc: SearchCacheError) -> HTTPException:
    """Translate a core error into the response the UI expects."""
    if isinstance(exc, InvalidInputError):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    if isinstance(exc, ConfigurationMissingError):
        return HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail={"error": "configuration_missing", "message": str(exc)},
        )
    if isinstance(exc, QuotaOrAuthError):
        return HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail={
                "error": "quota_or_auth",
                "message": (
                    "The search provider rejected the request. Check the API key, "
                    "billing and daily quota."
                ),
                "upstream_status": exc.status_code,
            },
        )
    if isinstance(exc, UpstreamError):
        return HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail={
                "error": "upstream_failed",
                "message": str(exc),
                "upstream_status": exc.status_code,
            },
        )
    if isinstance(exc, StoreError):
        return HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "store_failed", "message": "Could not access stored results."},
        )
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))


def _results(rows) -> List[StoredResultResponse]:
    return [StoredResultResponse.model_validate(r) for r in rows]


# ── Routes ────────────────────────────────────────────────────────────────

@router.post("", response_model=SearchResponse)
async def run_search(
    payload: SearchRequest,
    cache: ResultCache = Depends(get_cache),
    build_fetcher: FetcherBuilder = Depends(get_fetcher_builder),
    settings: Settings = Depends(get_settings),
):
    """Return cached results for the query, fetching them first if needed."""
    try:
        fetcher = build_fetcher(payload.provider)
        outcome = await search_service.search(
            payload.query,
            cache=cache,
            fetcher=fetcher,
            max_results=payload.max_results or settings.DEFAULT_MAX_RESULTS,
            refresh=payload.refresh,
        )
    except SearchCacheError as e:
        logger.warning(f"Search for \"{payload.query.strip()}\" failed: {e}")
        raise _to_http_error(e)

    return SearchResponse(
        query=outcome.query,
        from_cache=outcome.from_cache,
        provider=outcome.provider,
        result_count=len(outcome.results),
        results=_results(outcome.results),
    )


@router.get("/results", response_model=List[StoredResultResponse])
def get_results(
    query: str = Query(..., description="Exact search term"),
    cache: ResultCache = Depends(get_cache),
):
    """Stored results for a query, in rank order."""
    try:
        rows = cache.get_for_query(query)
    except SearchCacheError as e:
        raise _to_http_error(e)
    return _results(rows)


@router.get("/filter", response_model=List[StoredResultResponse])
def filter_results(
    term: str = Query("", description="Case-insensitive substring"),
    query: Optional[str] = Query(None, description="Restrict to one search term"),
    cache: ResultCache = Depends(get_cache),
):
    """Stored results whose query, title, url or snippet contain the term."""
    try:
        rows = cache.filter(query, term)
    except SearchCacheError as e:
        raise _to_http_error(e)
    return _results(rows)


@router.get("/queries", response_model=List[CachedQueryResponse])
def list_queries(cache: ResultCache = Depends(get_cache)):
    """Every cached search term, most recently fetched first."""
    try:
        entries = cache.list_queries()
    except SearchCacheError as e:
        raise _to_http_error(e)
    return [CachedQueryResponse.model_validate(entry) for entry in entries]


@router.get("/suggest", response_model=List[str])
def suggest_queries(
    term: str = Query(""),
    limit: int = Query(5, ge=1, le=50),
    cache: ResultCache = Depends(get_cache),
):
    """Previously cached search terms that resemble the given term."""
    try:
        return cache.suggest_queries(term, limit=limit)
    except SearchCacheError as e:
        raise _to_http_error(e)


@router.get("/providers", response_model=ProvidersResponse)
def get_providers(settings: Settings = Depends(get_settings)):
    """Which providers have credentials configured, with masked keys."""
    masked = settings.get_all_api_keys_masked()
    return ProvidersResponse(
        default_provider=settings.SEARCH_PROVIDER,
        google=ApiKeyStatus(**masked["google"]),
        serpapi=ApiKeyStatus(**masked["serpapi"]),
    )
