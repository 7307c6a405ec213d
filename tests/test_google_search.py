"""Google Custom Search adapter over a mocked transport."""

import httpx
import pytest

from core.config import Settings
from core.errors import (
    MalformedPayloadError,
    NotConfiguredError,
    TransientError,
    UpstreamLogicalError,
)
from core.google_search import clamp_num, decode_search
from fakes import json_response

GOOD_BODY = {
    "items": [
        {"title": "Test One", "link": "https://one.example", "snippet": "first", "displayLink": "one.example"},
        {"title": "Test Two", "link": "https://two.example", "snippet": "second"},
    ],
    "searchInformation": {"totalResults": "1200", "searchTime": 0.25},
}


@pytest.mark.asyncio
async def test_search_sends_credentials_and_decodes(http_adapters):
    router, search, _, _ = http_adapters(lambda request: json_response(GOOD_BODY))

    results = await search.search("test", num=2)

    assert [item.link for item in results.items] == ["https://one.example", "https://two.example"]
    assert results.items[0].display_link == "one.example"
    assert results.total_results == 1200
    assert results.search_time == 0.25

    params = router.requests[0].url.params
    assert params["key"] == "key"
    assert params["cx"] == "cse"
    assert params["q"] == "test"
    assert params["num"] == "2"


@pytest.mark.asyncio
async def test_filters_are_mapped_to_api_names(http_adapters):
    router, search, _, _ = http_adapters(lambda request: json_response(GOOD_BODY))
    await search.search("test", date_restrict="d7", file_type="pdf", hl=None)
    params = router.requests[0].url.params
    assert params["dateRestrict"] == "d7"
    assert params["fileType"] == "pdf"
    assert "hl" not in params


@pytest.mark.asyncio
async def test_unknown_filter_rejected(http_adapters):
    router, search, _, _ = http_adapters(lambda request: json_response(GOOD_BODY))
    with pytest.raises(TypeError):
        await search.search("test", colour="blue")
    assert router.requests == []


@pytest.mark.asyncio
async def test_disabled_search_makes_no_request(http_adapters):
    router, search, _, _ = http_adapters(
        lambda request: json_response(GOOD_BODY), for_settings=Settings()
    )
    assert not search.enabled
    with pytest.raises(NotConfiguredError, match="GOOGLE_API_KEY"):
        await search.search("test")
    assert router.requests == []


@pytest.mark.asyncio
async def test_missing_items_is_an_empty_result(http_adapters):
    _, search, _, _ = http_adapters(
        lambda request: json_response({"searchInformation": {"totalResults": "0"}})
    )
    results = await search.search("zzzxqy")
    assert results.items == ()
    assert results.total_results == 0


@pytest.mark.asyncio
async def test_error_body_is_a_logical_failure(http_adapters):
    _, search, _, _ = http_adapters(
        lambda request: json_response({"error": {"code": 400, "message": "Invalid Value"}})
    )
    with pytest.raises(UpstreamLogicalError, match="Invalid Value"):
        await search.search("test")


@pytest.mark.asyncio
async def test_server_errors_are_retried(http_adapters):
    answers = iter([json_response({}, status=503), json_response(GOOD_BODY)])
    router, search, _, _ = http_adapters(lambda request: next(answers))

    results = await search.search("test")

    assert len(results.items) == 2
    assert len(router.requests) == 2


@pytest.mark.asyncio
async def test_rate_limit_exhausts_retries(http_adapters, settings):
    router, search, _, _ = http_adapters(lambda request: json_response({}, status=429))
    with pytest.raises(TransientError, match="429"):
        await search.search("test")
    assert len(router.requests) == settings.retry_attempts


@pytest.mark.asyncio
async def test_client_error_is_not_retried(http_adapters):
    router, search, _, _ = http_adapters(lambda request: json_response({}, status=403))
    with pytest.raises(UpstreamLogicalError, match="403"):
        await search.search("test")
    assert len(router.requests) == 1


@pytest.mark.asyncio
async def test_connection_error_is_transient(http_adapters):
    def refuse(request):
        raise httpx.ConnectError("connection refused", request=request)

    router, search, _, _ = http_adapters(refuse)
    with pytest.raises(TransientError):
        await search.search("test")
    assert len(router.requests) == 3


@pytest.mark.asyncio
async def test_non_json_body_is_malformed(http_adapters):
    _, search, _, _ = http_adapters(lambda request: httpx.Response(200, content=b"<html>"))
    with pytest.raises(MalformedPayloadError):
        await search.search("test")


@pytest.mark.parametrize("body", [
    [],
    {"items": {"not": "a list"}},
    {"items": [{"title": "no link"}]},
    {"items": [], "searchInformation": {"totalResults": "many"}},
    {"items": [], "searchInformation": ["not", "an", "object"]},
])
def test_malformed_bodies(body):
    with pytest.raises(MalformedPayloadError):
        decode_search("test", body)


def test_clamp_num():
    assert [clamp_num(n) for n in (-3, 0, 1, 5, 10, 11, 100)] == [1, 1, 1, 5, 10, 10, 10]
