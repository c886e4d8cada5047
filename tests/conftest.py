"""Shared fixtures: in-memory database, test settings and a fake search API."""

import httpx
import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from search_cache.core.config import Settings
from search_cache.core.database import Base, enable_unicode_lower
from search_cache.models.search_result import SearchResult  # noqa: F401
from search_cache.services.result_cache import ResultCache


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    enable_unicode_lower(engine)
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db_session(engine):
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def cache(db_session):
    return ResultCache(db_session)


@pytest.fixture
def test_settings():
    return Settings(
        _env_file=None,
        DATABASE_URL="sqlite://",
        SEARCH_PROVIDER="google",
        GOOGLE_API_KEY="google-test-key",
        GOOGLE_CX="test-cx",
        SERPAPI_API_KEY="serpapi-test-key",
    )


def make_items(urls, key="link", display_key="displayLink"):
    """Build raw provider items for the given urls."""
    items = []
    for url in urls:
        item = {key: url, "title": f"Title for {url}", "snippet": f"Snippet for {url}"}
        if url:
            item[display_key] = url.split("/")[2] if "://" in url else url
        items.append(item)
    return items


class FakeSearchApi:
    """Scripted upstream: maps a start offset to a JSON body or a Response."""

    def __init__(self, pages=None, items_key="items", offset_param="start"):
        self.pages = pages or {}
        self.items_key = items_key
        self.offset_param = offset_param
        self.requests: list[httpx.Request] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        offset = int(request.url.params[self.offset_param])
        page = self.pages.get(offset, [])
        if isinstance(page, httpx.Response):
            return page
        if isinstance(page, BaseException):
            raise page
        num = int(request.url.params["num"])
        return httpx.Response(200, json={self.items_key: page[:num]})

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def offsets(self) -> list[int]:
        return [int(r.url.params[self.offset_param]) for r in self.requests]

    def nums(self) -> list[int]:
        return [int(r.url.params["num"]) for r in self.requests]


@pytest.fixture
def fake_google():
    return FakeSearchApi(items_key="items")


@pytest.fixture
def fake_serpapi():
    return FakeSearchApi(items_key="organic_results")
