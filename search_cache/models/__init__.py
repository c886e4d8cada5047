from search_cache.models.search_result import SearchResult

__all__ = ["SearchResult"]
