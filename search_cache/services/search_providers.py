"""Search API providers.

Each provider knows how to build one page request and how to pull the
result items out of a response body. Pagination lives in the fetcher.
"""

from abc import ABC, abstractmethod
from typing import Optional

from search_cache.core.config import KEY_MAP, Settings
from search_cache.core.errors import ConfigurationMissingError, ResponseParseError

GOOGLE_URL = "https://www.googleapis.com/customsearch/v1"
SERPAPI_URL = "https://serpapi.com/search.json"


def _text(item: dict, key: str) -> Optional[str]:
    value = item.get(key)
    if value is None:
        return None
    return str(value)


class SearchProvider(ABC):
    """Base class for a paginated search API."""

    name = ""
    # Offset of the first result, in the provider's own convention
    first_offset = 1
    items_key = ""

    def __init__(self, settings: Settings):
        self.settings = settings

    def ensure_configured(self) -> None:
        """Raise ConfigurationMissingError unless every credential is set."""
        if not self.settings.is_configured(self.name):
            required = " and ".join(KEY_MAP.get(self.name, ()))
            raise ConfigurationMissingError(
                f"{self.name} API configuration missing. Set {required}."
            )

    @abstractmethod
    def build_request(self, query: str, offset: int, window: int) -> tuple[str, dict]:
        """Return (url, query params) for one page."""

    @abstractmethod
    def parse_item(self, item: dict) -> dict:
        """Map one raw result to {link, title, snippet, display_link}."""

    def parse_items(self, payload) -> list[dict]:
        """Extract {link, title, snippet, display_link} dicts from a response body.

        A missing items key means the provider has nothing more to return.
        """
        if not isinstance(payload, dict):
            raise ResponseParseError(
                f"{self.name} returned a non-object JSON body ({type(payload).__name__})"
            )
        raw_items = payload.get(self.items_key)
        if raw_items is None:
            return []
        if not isinstance(raw_items, list):
            raise ResponseParseError(f"{self.name} field '{self.items_key}' is not a list")

        items = []
        for raw in raw_items:
            if not isinstance(raw, dict):
                raise ResponseParseError(f"{self.name} returned a malformed result item")
            items.append(self.parse_item(raw))
        return items


class GoogleSearchProvider(SearchProvider):
    """Google Custom Search JSON API."""

    name = "google"
    first_offset = 1
    items_key = "items"

    def build_request(self, query: str, offset: int, window: int) -> tuple[str, dict]:
        params = {
            "key": self.settings.GOOGLE_API_KEY.strip(),
            "cx": self.settings.GOOGLE_CX.strip(),
            "q": query,
            "start": offset,
            "num": window,
        }
        return GOOGLE_URL, params

    def parse_item(self, item: dict) -> dict:
        return {
            "link": _text(item, "link"),
            "title": _text(item, "title"),
            "snippet": _text(item, "snippet"),
            "display_link": _text(item, "displayLink"),
        }


class SerpApiSearchProvider(SearchProvider):
    """SerpApi with the Google engine."""

    name = "serpapi"
    first_offset = 0
    items_key = "organic_results"

    def build_request(self, query: str, offset: int, window: int) -> tuple[str, dict]:
        params = {
            "engine": "google",
            "q": query,
            "num": window,
            "start": offset,
            "api_key": self.settings.SERPAPI_API_KEY.strip(),
        }
        return SERPAPI_URL, params

    def parse_item(self, item: dict) -> dict:
        return {
            "link": _text(item, "link"),
            "title": _text(item, "title"),
            "snippet": _text(item, "snippet"),
            "display_link": _text(item, "displayed_link"),
        }


PROVIDERS = {
    GoogleSearchProvider.name: GoogleSearchProvider,
    SerpApiSearchProvider.name: SerpApiSearchProvider,
}


def build_provider(settings: Settings, name: Optional[str] = None) -> SearchProvider:
    """Instantiate the named provider, defaulting to SEARCH_PROVIDER."""
    provider_name = (name or settings.SEARCH_PROVIDER or "").strip().lower()
    provider_cls = PROVIDERS.get(provider_name)
    if provider_cls is None:
        raise ConfigurationMissingError(
            f"Unknown search provider '{provider_name}'. Must be one of: {', '.join(PROVIDERS)}"
        )
    return provider_cls(settings)
