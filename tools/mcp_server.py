# =============================================================================
# tools/mcp_server.py  -  FastMCP Tool & Resource Server
# =============================================================================
#
# WHAT THIS FILE DOES:
#   Declares every MCP tool and resource.  Each tool is a thin wrapper: it
#   logs the call, forwards it to the Dispatcher, and turns the Outcome into
#   a plain dict.  Each resource forwards to the Resource Reader and returns
#   the same dict shape as JSON text.
#
# HOW IT WORKS (the flow):
#   1. The MCP client calls a tool by name (e.g., "wikipedia_search")
#   2. FastMCP validates the arguments against the function signature
#   3. The wrapper below awaits dispatcher.dispatch(name, arguments)
#   4. The Dispatcher serves from cache or calls the provider
#   5. outcome_to_dict() shapes the result for the client
#
# OUTPUT SHAPE:
#   success -> the payload dataclass as a dict, plus "cached": true/false
#   failure -> {"error": "<message>", "kind": "<error kind>"}
#   Tools never raise; a provider outage is an ordinary "error" dict.
#
# RUNNING THIS SERVER:
#   python main.py          (stdio transport; see main.py)
# =============================================================================

import json
import logging
from contextlib import asynccontextmanager
from dataclasses import asdict
from typing import Mapping, Optional
from urllib.parse import quote

from fastmcp import FastMCP

from core.cache import CachePools
from core.config import Settings, load_settings
from core.dispatcher import Dispatcher
from core.google_search import GoogleSearchAdapter
from core.http import ProviderClient
from core.models import Outcome
from core.pages import PageFetcher
from core.resources import ResourceReader
from core.wikipedia import WikipediaAdapter

logger = logging.getLogger("research_mcp")

# =============================================================================
# Logging helpers
# =============================================================================
# Everything goes to STDERR (configured in main.py): STDOUT carries the MCP
# JSON-RPC stream and any stray byte there corrupts the protocol.
#
#   CYAN   incoming tool calls
#   GREEN  responses
#   YELLOW intermediate status (cache hit/miss, failures)
# =============================================================================
_CYAN = "\033[36m"
_GREEN = "\033[32m"
_YELLOW = "\033[33m"
_RESET = "\033[0m"

_MAX_LOGGED_RESPONSE = 500


def _log_request(tool_name: str, **params) -> None:
    """Log an incoming tool call with its parameters in CYAN."""
    param_str = ", ".join(f"{k}={v!r}" for k, v in params.items())
    logger.info(f"{_CYAN}{tool_name} called with: {param_str}{_RESET}")


def _log_status(message: str) -> None:
    logger.info(f"{_YELLOW}  → {message}{_RESET}")


def _log_response(tool_name: str, result: dict) -> dict:
    """Log the response as compact JSON in GREEN (truncated), then return it."""
    text = json.dumps(result, separators=(",", ":"), default=str)
    if len(text) > _MAX_LOGGED_RESPONSE:
        text = text[:_MAX_LOGGED_RESPONSE] + "..."
    logger.info(f"{_GREEN}  ← {tool_name} response: {text}{_RESET}")
    return result


def outcome_to_dict(outcome: Outcome) -> dict:
    if outcome.ok:
        return {"cached": outcome.cached, **asdict(outcome.payload)}
    return {"error": outcome.message, "kind": outcome.kind.value}


def resource_segment(value: str) -> str:
    """Re-encode a template parameter FastMCP has already percent-decoded."""
    return quote(value, safe="")


# =============================================================================
# Server construction
# =============================================================================
def build_server(
    settings: Settings,
    dispatcher: Dispatcher,
    reader: ResourceReader,
    client: Optional[ProviderClient] = None,
) -> FastMCP:
    """Declare all tools and resources on a new FastMCP instance.

    `client` is closed when the server shuts down.
    """

    @asynccontextmanager
    async def lifespan(server):
        try:
            yield
        finally:
            if client is not None:
                await client.aclose()

    mcp = FastMCP(settings.server_name, lifespan=lifespan)

    async def run(tool_name: str, **arguments) -> dict:
        _log_request(tool_name, **arguments)
        outcome = await dispatcher.dispatch(tool_name, arguments)
        if outcome.ok:
            _log_status("served from cache" if outcome.cached else "fetched upstream")
        else:
            _log_status(f"failed [{outcome.kind.value}]: {outcome.message}")
        return _log_response(tool_name, outcome_to_dict(outcome))

    # =========================================================================
    # Web search (Google Custom Search)
    # =========================================================================
    @mcp.tool()
    async def google_search(q: str, num: int = 5) -> dict:
        """Search the web with Google Custom Search.

        Requires GOOGLE_API_KEY and GOOGLE_CSE_ID; without them this returns
        an error of kind "not_configured".  Results are cached for 30 minutes
        and are also readable as the resource google://search/{q}.

        Args:
            q: The search query.
            num: Number of results (1-10, default 5).

        Returns:
            query, items (title, link, snippet, display_link), total_results,
            search_time, cached.
        """
        return await run("google_search", q=q, num=num)

    @mcp.tool()
    async def site_search(q: str, sites: list[str], num: int = 5) -> dict:
        """Search the web restricted to a list of sites (e.g., ["arxiv.org"]).

        Args:
            q: The search query.
            sites: Domains to restrict the search to.
            num: Number of results (1-10, default 5).
        """
        return await run("site_search", q=q, sites=sites, num=num)

    @mcp.tool()
    async def news_monitor(
        topic: str,
        sources: Optional[list[str]] = None,
        language: str = "en",
        country: str = "us",
        num: int = 5,
        date_restrict: str = "d7",
    ) -> dict:
        """Search recent news about a topic on a set of news sites.

        Args:
            topic: What to look for.
            sources: News domains (default: bbc.com, cnn.com, reuters.com,
                     apnews.com, nytimes.com).
            language: Interface language code passed to Google (hl).
            country: Country code used to boost local results (gl).
            num: Number of results (1-10, default 5).
            date_restrict: d1, d7, m1, m6 or y1 (default d7).
        """
        return await run(
            "news_monitor", topic=topic, sources=sources, language=language,
            country=country, num=num, date_restrict=date_restrict,
        )

    @mcp.tool()
    async def academic_search(
        query: str,
        sites: Optional[list[str]] = None,
        file_type: str = "pdf",
        date_range: str = "y1",
        num: int = 5,
    ) -> dict:
        """Search academic papers and research documents.

        Args:
            query: Research query.
            sites: Academic domains (default: arxiv.org, scholar.google.com,
                   researchgate.net).
            file_type: Document type to restrict to (default pdf).
            date_range: d1, d7, m1, m6, y1 or y2 (default y1).
            num: Number of results (1-10, default 5).
        """
        return await run(
            "academic_search", query=query, sites=sites, file_type=file_type,
            date_range=date_range, num=num,
        )

    # =========================================================================
    # Wikipedia
    # =========================================================================
    @mcp.tool()
    async def wikipedia_search(query: str, limit: int = 5, lang: Optional[str] = None) -> dict:
        """Search Wikipedia articles.

        Args:
            query: Search terms.
            limit: Maximum number of hits (default 5).
            lang: Wikipedia language code (default: the server's language).

        Returns:
            query, language, hits (title, page_id, snippet, timestamp), total_hits.
        """
        return await run("wikipedia_search", query=query, limit=limit, lang=lang)

    @mcp.tool()
    async def wikipedia_get_page(title: str, lang: Optional[str] = None) -> dict:
        """Get the full plain-text content of a Wikipedia article by title.

        Also readable afterwards as wikipedia://page/{title}.
        """
        return await run("wikipedia_get_page", title=title, lang=lang)

    @mcp.tool()
    async def wikipedia_get_page_by_id(page_id: int, lang: Optional[str] = None) -> dict:
        """Get a Wikipedia article by its numeric page ID."""
        return await run("wikipedia_get_page_by_id", page_id=page_id, lang=lang)

    @mcp.tool()
    async def wikipedia_get_summary(title: str, lang: Optional[str] = None) -> dict:
        """Get the first three sentences of a Wikipedia article."""
        return await run("wikipedia_get_summary", title=title, lang=lang)

    @mcp.tool()
    async def wikipedia_random(lang: Optional[str] = None) -> dict:
        """Get a random Wikipedia article (title and page ID).  Never cached."""
        return await run("wikipedia_random", lang=lang)

    @mcp.tool()
    async def wikipedia_page_languages(title: str, lang: Optional[str] = None) -> dict:
        """List the other language editions of a Wikipedia article."""
        return await run("wikipedia_page_languages", title=title, lang=lang)

    @mcp.tool()
    async def wikipedia_batch_search(
        queries: list[str], limit: int = 5, lang: Optional[str] = None
    ) -> dict:
        """Run up to 10 Wikipedia searches; each query succeeds or fails on its own."""
        return await run("wikipedia_batch_search", queries=queries, limit=limit, lang=lang)

    @mcp.tool()
    async def wikipedia_batch_get_pages(titles: list[str], lang: Optional[str] = None) -> dict:
        """Fetch up to 10 Wikipedia articles; each title succeeds or fails on its own."""
        return await run("wikipedia_batch_get_pages", titles=titles, lang=lang)

    @mcp.tool()
    async def wikipedia_search_nearby(
        lat: float,
        lon: float,
        radius: int = 1000,
        limit: int = 10,
        lang: Optional[str] = None,
    ) -> dict:
        """Find Wikipedia articles about places near a coordinate.

        Args:
            lat: Latitude.
            lon: Longitude.
            radius: Search radius in meters (10-10000, default 1000).
            limit: Maximum number of places (default 10).
        """
        return await run(
            "wikipedia_search_nearby", lat=lat, lon=lon, radius=radius, limit=limit, lang=lang
        )

    @mcp.tool()
    async def wikipedia_get_pages_in_category(
        category: str,
        limit: int = 20,
        member_type: str = "page",
        lang: Optional[str] = None,
    ) -> dict:
        """List members of a Wikipedia category.

        Args:
            category: Category name, with or without the "Category:" prefix.
            limit: Maximum number of members (default 20).
            member_type: "page", "subcat" or "file".
        """
        return await run(
            "wikipedia_get_pages_in_category",
            category=category, limit=limit, member_type=member_type, lang=lang,
        )

    # =========================================================================
    # Page fetch
    # =========================================================================
    @mcp.tool()
    async def extract_content(url: str) -> dict:
        """Fetch a web page and extract its readable text, links and images."""
        return await run("extract_content", url=url)

    @mcp.tool()
    async def url_metadata(url: str) -> dict:
        """Get a URL's content type, status, title, description and keywords."""
        return await run("url_metadata", url=url)

    # =========================================================================
    # Resources (cache-backed, read-only)
    # =========================================================================
    def read(address: str) -> str:
        outcome = reader.read(address)
        return json.dumps(outcome_to_dict(outcome), default=str)

    @mcp.resource("google://search/{query}", mime_type="application/json")
    def google_search_resource(query: str) -> str:
        """Cached Google search results (populated by google_search with num=5)."""
        return read(f"google://search/{resource_segment(query)}")

    @mcp.resource("wikipedia://search/{query}", mime_type="application/json")
    def wikipedia_search_resource(query: str) -> str:
        """Cached Wikipedia search results in the default language."""
        return read(f"wikipedia://search/{resource_segment(query)}")

    @mcp.resource("wikipedia://search-results/{query}/{lang}", mime_type="application/json")
    def wikipedia_search_results_resource(query: str, lang: str) -> str:
        """Cached Wikipedia search results in a specific language."""
        return read(
            f"wikipedia://search-results/{resource_segment(query)}/{resource_segment(lang)}"
        )

    @mcp.resource("wikipedia://page/{title}", mime_type="application/json")
    def wikipedia_page_resource(title: str) -> str:
        """Cached Wikipedia article in the default language."""
        return read(f"wikipedia://page/{resource_segment(title)}")

    @mcp.resource("wikipedia://article/{title}/{lang}", mime_type="application/json")
    def wikipedia_article_resource(title: str, lang: str) -> str:
        """Cached Wikipedia article in a specific language."""
        return read(
            f"wikipedia://article/{resource_segment(title)}/{resource_segment(lang)}"
        )

    return mcp


def create_app(
    settings: Optional[Settings] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> FastMCP:
    """Wire Settings -> pools -> adapters -> dispatcher/reader -> server."""
    if settings is None:
        settings = load_settings(environ)
    pools = CachePools.from_settings(settings)
    client = ProviderClient(settings)
    dispatcher = Dispatcher(
        settings,
        pools,
        search=GoogleSearchAdapter(settings, client),
        wikipedia=WikipediaAdapter(settings, client),
        pages=PageFetcher(settings, client),
    )
    reader = ResourceReader(settings, pools)

    logger.info(
        "Google Search: %s", "enabled" if settings.google_enabled else "disabled (no credentials)"
    )
    logger.info("Wikipedia: enabled (lang: %s)", settings.default_language)
    return build_server(settings, dispatcher, reader, client)
