import logging
from typing import Optional

import httpx

from search_cache.core.errors import (
    InvalidInputError,
    QuotaOrAuthError,
    ResponseParseError,
    UpstreamRequestFailedError,
)
from search_cache.schemas.search import ResultItem
from search_cache.services.search_providers import SearchProvider

logger = logging.getLogger(__name__)

# Both providers return at most 10 items per call
WINDOW_SIZE = 10
# Highest start offset the providers accept (10 pages of 10)
MAX_OFFSET = 91


class SearchFetcher:
    """Pages through a search provider into one deduplicated, ranked list."""

    def __init__(
        self,
        provider: SearchProvider,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.provider = provider
        self.timeout = timeout
        self._transport = transport

    async def fetch(self, query: str, max_results: int) -> list[ResultItem]:
        """Return up to max_results items with positions 1..N.

        Raises InvalidInputError, ConfigurationMissingError, QuotaOrAuthError,
        UpstreamRequestFailedError or ResponseParseError. Nothing is retried and
        no partial list is returned on failure.
        """
        if not query or not query.strip():
            raise InvalidInputError("Query must not be empty.")
        query = query.strip()

        self.provider.ensure_configured()

        results: list[ResultItem] = []
        seen_urls: set[str] = set()
        position = 1
        pages = 0

        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            offset = self.provider.first_offset
            while len(results) < max_results and offset <= MAX_OFFSET:
                window = min(WINDOW_SIZE, max_results - len(results))
                items = await self._fetch_page(client, query, offset, window)
                pages += 1

                logger.debug(
                    f"{self.provider.name} page offset={offset} window={window} returned {len(items)} item(s)"
                )
                if not items:
                    break

                for item in items:
                    url = (item.get("link") or "").strip()
                    if not url:
                        continue
                    key = url.lower()
                    if key in seen_urls:
                        continue
                    if len(results) >= max_results:
                        break
                    seen_urls.add(key)
                    results.append(
                        ResultItem(
                            position=position,
                            url=url,
                            title=item.get("title"),
                            snippet=item.get("snippet"),
                            display_link=item.get("display_link"),
                        )
                    )
                    position += 1

                # A short page means the provider has run out of results
                if len(items) < window:
                    break
                offset += WINDOW_SIZE

        logger.info(
            f"{self.provider.name} search: {len(results)} result(s) for \"{query}\" across {pages} page(s)"
        )
        return results

    async def _fetch_page(
        self, client: httpx.AsyncClient, query: str, offset: int, window: int
    ) -> list[dict]:
        url, params = self.provider.build_request(query, offset, window)
        name = self.provider.name

        try:
            response = await client.get(url, params=params)
        except httpx.TimeoutException as e:
            logger.warning(f"{name} request timed out after {self.timeout}s")
            raise UpstreamRequestFailedError(f"{name} request timed out: {e}") from e
        except httpx.RequestError as e:
            logger.warning(f"{name} request failed: {e}")
            raise UpstreamRequestFailedError(f"{name} request failed: {e}") from e

        if response.status_code == 403:
            logger.warning(f"{name} returned 403 Forbidden")
            raise QuotaOrAuthError(
                f"{name} API returned 403 Forbidden. This is usually quota, billing, "
                f"or API key restriction. Response: {response.text[:500]}",
                status_code=response.status_code,
                body=response.text,
            )

        if not response.is_success:
            logger.warning(f"{name} request failed: HTTP {response.status_code}")
            raise UpstreamRequestFailedError(
                f"{name} API request failed: {response.status_code} {response.reason_phrase}. "
                f"Response: {response.text[:500]}",
                status_code=response.status_code,
                body=response.text,
            )

        try:
            data = response.json()
        except ValueError as e:
            raise ResponseParseError(
                f"{name} returned a body that is not valid JSON: {e}",
                status_code=response.status_code,
                body=response.text,
            ) from e

        return self.provider.parse_items(data)
