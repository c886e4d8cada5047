"""Error taxonomy for the search and cache layer.

Nothing here is retried internally. Callers decide how each failure is
presented to the user.
"""

from typing import Optional


class SearchCacheError(Exception):
    """Base class for every error raised by this package."""


class InvalidInputError(SearchCacheError):
    """The caller passed an empty query or term."""


class ConfigurationMissingError(SearchCacheError):
    """Provider credentials or provider selection are not configured."""


class UpstreamError(SearchCacheError):
    """The search provider could not produce a usable response."""

    def __init__(self, message: str, status_code: Optional[int] = None, body: str = ""):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class QuotaOrAuthError(UpstreamError):
    """The provider answered 403: quota, billing or key restriction."""


class UpstreamRequestFailedError(UpstreamError):
    """Any other non-success response, timeout or transport failure."""


class ResponseParseError(UpstreamError):
    """The provider answered 2xx but the body was not the expected JSON."""


class StoreError(SearchCacheError):
    """The database rejected or failed an operation; the transaction was rolled back."""
