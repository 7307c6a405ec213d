"""MCP surface: tool/resource registration and end-to-end cache flow."""

import json

import pytest
from fastmcp import Client

from core.cache import CachePools
from core.config import Settings
from core.dispatcher import Dispatcher
from core.errors import ErrorKind
from core.models import Failure, Success
from core.resources import ResourceReader, parse_address
from fakes import json_response, search_results
from tools.mcp_server import build_server, create_app, outcome_to_dict, resource_segment

TOOLS = {
    "google_search",
    "site_search",
    "news_monitor",
    "academic_search",
    "wikipedia_search",
    "wikipedia_get_page",
    "wikipedia_get_page_by_id",
    "wikipedia_get_summary",
    "wikipedia_random",
    "wikipedia_page_languages",
    "wikipedia_batch_search",
    "wikipedia_batch_get_pages",
    "wikipedia_search_nearby",
    "wikipedia_get_pages_in_category",
    "extract_content",
    "url_metadata",
}

SEARCH_BODY = {
    "items": [{"title": "Test", "link": "https://test.example", "snippet": "a test"}],
    "searchInformation": {"totalResults": "1", "searchTime": 0.1},
}


def tool_json(result) -> dict:
    """Decode a call_tool result (list of contents or CallToolResult)."""
    contents = getattr(result, "content", result)
    return json.loads(contents[0].text)


def upstream(request):
    if request.url.host == "www.googleapis.com":
        return json_response(SEARCH_BODY)
    return json_response({"query": {"pages": [{"pageid": 1, "title": "Python", "extract": "Text"}]}})


@pytest.fixture
def server(settings, clock, http_adapters):
    pools = CachePools.from_settings(settings, clock=clock)
    router, search, wiki, pages = http_adapters(upstream)
    dispatcher = Dispatcher(settings, pools, search, wiki, pages)
    reader = ResourceReader(settings, pools)
    return router, build_server(settings, dispatcher, reader)


def test_outcome_to_dict():
    success = outcome_to_dict(Success(search_results("x", n=1), cached=True))
    assert success["cached"] is True
    assert success["query"] == "x"
    assert success["items"][0]["link"] == "https://example.com/0"

    failure = outcome_to_dict(Failure("Google Search not configured", ErrorKind.NOT_CONFIGURED))
    assert failure == {"error": "Google Search not configured", "kind": "not_configured"}


@pytest.mark.asyncio
async def test_all_tools_registered(server):
    _, mcp = server
    async with Client(mcp) as client:
        tools = await client.list_tools()
    assert {tool.name for tool in tools} == TOOLS


@pytest.mark.asyncio
async def test_search_then_read_resource(server):
    router, mcp = server
    async with Client(mcp) as client:
        first = tool_json(await client.call_tool("google_search", {"q": "test", "num": 5}))
        second = tool_json(await client.call_tool("google_search", {"q": "test"}))
        contents = await client.read_resource("google://search/test")

    assert first["cached"] is False
    assert second["cached"] is True
    assert len(router.requests) == 1

    resource = json.loads(contents[0].text)
    assert resource["cached"] is True
    assert resource["items"] == first["items"]


@pytest.mark.asyncio
async def test_resource_before_tool_call_is_not_cached(server):
    router, mcp = server
    async with Client(mcp) as client:
        contents = await client.read_resource("wikipedia://page/Python")
    assert json.loads(contents[0].text)["kind"] == "not_cached"
    assert router.requests == []


@pytest.mark.asyncio
async def test_wikipedia_page_resource(server):
    _, mcp = server
    async with Client(mcp) as client:
        page = tool_json(await client.call_tool("wikipedia_get_page", {"title": "Python"}))
        contents = await client.read_resource("wikipedia://article/Python/en")
    assert page["title"] == "Python"
    assert json.loads(contents[0].text)["page_id"] == 1


@pytest.mark.asyncio
async def test_unconfigured_search_is_an_error_dict():
    mcp = create_app(Settings())
    async with Client(mcp) as client:
        result = tool_json(await client.call_tool("google_search", {"q": "test"}))
    assert result["kind"] == "not_configured"
    assert "GOOGLE_API_KEY" in result["error"]


def test_create_app_reads_environment():
    mcp = create_app(environ={"SERVER_NAME": "test-server"})
    assert mcp.name == "test-server"


def test_resource_segment_encodes_decoded_parameters_once():
    assert resource_segment("AC/DC") == "AC%2FDC"
    # A literal "%2F" typed by the caller survives the round trip.
    address = f"google://search/{resource_segment('a%2Fb')}"
    assert parse_address(address) == ("google", "search", ["a%2Fb"])
