"""Shared fixtures for the research server tests."""

import pytest

from core.cache import CachePools
from core.config import Settings
from core.dispatcher import Dispatcher
from core.google_search import GoogleSearchAdapter
from core.pages import PageFetcher
from core.resources import ResourceReader
from core.wikipedia import WikipediaAdapter
from fakes import FakeClock, FakePages, FakeSearch, FakeWikipedia, Router, make_client


@pytest.fixture
def settings() -> Settings:
    return Settings(
        google_api_key="key",
        google_cse_id="cse",
        search_cache_max=10,
        search_cache_ttl_s=1800,
        wikipedia_cache_max=5,
        wikipedia_cache_ttl_s=300,
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def pools(settings, clock) -> CachePools:
    return CachePools.from_settings(settings, clock=clock)


@pytest.fixture
def fakes():
    return FakeSearch(), FakeWikipedia(), FakePages()


@pytest.fixture
def dispatcher(settings, pools, fakes) -> Dispatcher:
    search, wiki, pages = fakes
    return Dispatcher(settings, pools, search=search, wikipedia=wiki, pages=pages)


@pytest.fixture
def reader(settings, pools) -> ResourceReader:
    return ResourceReader(settings, pools)


@pytest.fixture
def http_adapters(settings):
    """Factory: handler -> (router, search, wikipedia, pages) over one mock client."""

    def build(handler, for_settings=None):
        used = for_settings or settings
        router = Router(handler)
        client = make_client(used, router)
        return (
            router,
            GoogleSearchAdapter(used, client),
            WikipediaAdapter(used, client),
            PageFetcher(used, client),
        )

    return build
