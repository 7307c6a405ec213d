"""Resource Reader: read-only projection of the cache pools."""

import pytest

from core.errors import ErrorKind
from core.models import Failure, Success
from core.resources import parse_address


def test_miss_reports_not_cached_and_names_the_tool(reader):
    outcome = reader.read("google://search/test")
    assert isinstance(outcome, Failure)
    assert outcome.kind is ErrorKind.NOT_CACHED
    assert "google_search" in outcome.message


@pytest.mark.asyncio
async def test_search_resource_after_tool_call(dispatcher, reader):
    produced = await dispatcher.dispatch("google_search", {"q": "test", "num": 5})
    outcome = reader.read("google://search/test")
    assert isinstance(outcome, Success)
    assert outcome.cached
    assert outcome.payload is produced.payload


@pytest.mark.asyncio
async def test_resource_only_matches_default_arguments(dispatcher, reader):
    await dispatcher.dispatch("google_search", {"q": "test", "num": 3})
    assert reader.read("google://search/test").kind is ErrorKind.NOT_CACHED


@pytest.mark.asyncio
async def test_wikipedia_page_default_and_explicit_language(dispatcher, reader):
    await dispatcher.dispatch("wikipedia_get_page", {"title": "Python"})
    assert reader.read("wikipedia://page/Python").ok
    assert reader.read("wikipedia://article/Python/en").ok
    assert reader.read("wikipedia://article/Python/de").kind is ErrorKind.NOT_CACHED


@pytest.mark.asyncio
async def test_wikipedia_search_resources(dispatcher, reader):
    await dispatcher.dispatch("wikipedia_search", {"query": "Quantum computing", "lang": "fr"})
    assert reader.read("wikipedia://search-results/quantum%20computing/fr").ok
    assert reader.read("wikipedia://search/quantum%20computing").kind is ErrorKind.NOT_CACHED


@pytest.mark.asyncio
async def test_encoded_slash_stays_in_segment(dispatcher, reader):
    await dispatcher.dispatch("wikipedia_get_page", {"title": "AC/DC"})
    assert reader.read("wikipedia://page/AC%2FDC").ok
    assert reader.read("wikipedia://page/AC/DC").kind is ErrorKind.UNKNOWN_RESOURCE


@pytest.mark.asyncio
async def test_title_normalization_applies_to_resources(dispatcher, reader):
    await dispatcher.dispatch("wikipedia_get_page", {"title": "New York City"})
    assert reader.read("wikipedia://page/New_York_City").ok


@pytest.mark.asyncio
async def test_expired_entry_is_not_served(dispatcher, reader, clock, settings):
    await dispatcher.dispatch("google_search", {"q": "test"})
    clock.advance(settings.search_cache_ttl_s)
    assert reader.read("google://search/test").kind is ErrorKind.NOT_CACHED


@pytest.mark.asyncio
async def test_reading_never_mutates_the_pools(dispatcher, reader, pools):
    for title in ("A", "B", "C", "D", "E"):
        await dispatcher.dispatch("wikipedia_get_page", {"title": title})
    before = pools.encyclopedia.keys()

    reader.read("wikipedia://page/A")
    reader.read("wikipedia://page/Missing")
    reader.read("google://search/anything")

    assert pools.encyclopedia.keys() == before
    assert len(pools.search) == 0


@pytest.mark.asyncio
async def test_read_does_not_protect_entry_from_eviction(dispatcher, reader, pools):
    for title in ("A", "B", "C", "D", "E"):
        await dispatcher.dispatch("wikipedia_get_page", {"title": title})
    reader.read("wikipedia://page/A")
    await dispatcher.dispatch("wikipedia_get_page", {"title": "F"})
    assert reader.read("wikipedia://page/A").kind is ErrorKind.NOT_CACHED


@pytest.mark.parametrize("address", [
    "weather://forecast/paris",
    "wikipedia://unknown/thing",
    "wikipedia://page/",
    "wikipedia://article/OnlyTitle",
    "google://search/a/b",
    "not an address",
])
def test_unknown_addresses(reader, address):
    outcome = reader.read(address)
    assert outcome.kind is ErrorKind.UNKNOWN_RESOURCE


def test_parse_address():
    assert parse_address("wikipedia://article/AC%2FDC/en") == ("wikipedia", "article", ["AC/DC", "en"])
    assert parse_address("no-scheme") is None


@pytest.mark.parametrize("address", [
    "wikipedia://article/Python/evil.example%2F%3F",
    "wikipedia://search-results/x/e%20n",
    "wikipedia://article/Python/..",
])
def test_invalid_language_segment(reader, address):
    assert reader.read(address).kind is ErrorKind.INVALID_ARGUMENT


@pytest.mark.asyncio
async def test_language_segment_is_case_insensitive(dispatcher, reader):
    await dispatcher.dispatch("wikipedia_get_page", {"title": "Python", "lang": "de"})
    assert reader.read("wikipedia://article/Python/DE").ok
