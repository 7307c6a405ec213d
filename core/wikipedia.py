# =============================================================================
# core/wikipedia.py  -  Wikipedia (MediaWiki Action API) adapter
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   One method per upstream query.  Each builds the MediaWiki parameters,
#   issues exactly one GET through the shared ProviderClient, and decodes the
#   JSON into a dedicated dataclass from core/models.py.
#
# LANGUAGE-SCOPED HOSTS:
#   Every call targets https://{lang}.wikipedia.org/w/api.php.  The caller
#   resolves the language (the Dispatcher fills in the configured default).
#
# RESPONSE FORMAT:
#   We always request formatversion=2, so "pages" is a list and flags such as
#   "missing" are real booleans.
#
# FAILURES:
#   missing / invalid page, API "error" object  ->  UpstreamLogicalError
#   no "query" object where one is required     ->  MalformedPayloadError
#   entries or fields of the wrong type         ->  MalformedPayloadError
# =============================================================================

import re
from contextlib import contextmanager
from typing import Any

from core.config import Settings
from core.errors import MalformedPayloadError, UpstreamLogicalError
from core.http import ProviderClient
from core.models import (
    WikiCategoryMember,
    WikiCategoryMembers,
    WikiLanguageLink,
    WikiLanguages,
    WikiNearby,
    WikiNearbyPlace,
    WikiPage,
    WikiRandomPage,
    WikiSearchHit,
    WikiSearchResults,
    WikiSummary,
)

PROVIDER = "wikipedia"

_CITATION_RE = re.compile(r"\[\d+\]")
_TAG_RE = re.compile(r"<[^>]+>")
_SPACE_RE = re.compile(r"\s+")


def api_url(lang: str) -> str:
    return f"https://{lang}.wikipedia.org/w/api.php"


def clean_text(text: str) -> str:
    """Drop numeric citation markers like [12] and collapse whitespace."""
    return _SPACE_RE.sub(" ", _CITATION_RE.sub("", text)).strip()


def strip_markup(snippet: str) -> str:
    """Search snippets wrap matches in <span class="searchmatch">."""
    return _SPACE_RE.sub(" ", _TAG_RE.sub("", snippet)).strip()


def category_title(category: str) -> str:
    category = category.strip()
    return category if category.startswith("Category:") else f"Category:{category}"


@contextmanager
def decoding(what: str):
    """Re-raise shape errors met while decoding `what` as MalformedPayloadError."""
    try:
        yield
    except (AttributeError, KeyError, TypeError, ValueError) as exc:
        raise MalformedPayloadError(f"unreadable {what} response: {exc}", PROVIDER) from exc


class WikipediaAdapter:
    def __init__(self, settings: Settings, client: ProviderClient):
        self._settings = settings
        self._client = client

    async def _query(self, lang: str, **params: Any) -> dict:
        params = {"action": "query", "format": "json", "formatversion": "2", **params}
        data = await self._client.get_json(PROVIDER, api_url(lang), params)
        if not isinstance(data, dict):
            raise MalformedPayloadError("response is not an object", PROVIDER)
        if "error" in data:
            error = data["error"]
            info = error.get("info") if isinstance(error, dict) else str(error)
            raise UpstreamLogicalError(f"Wikipedia API error: {info}", PROVIDER)
        query = data.get("query")
        if not isinstance(query, dict):
            raise MalformedPayloadError("response has no 'query' object", PROVIDER)
        return query

    async def _single_page(self, lang: str, label: str, **params: Any) -> dict:
        query = await self._query(lang, **params)
        pages = query.get("pages")
        if not isinstance(pages, list):
            raise MalformedPayloadError("response has no 'pages' list", PROVIDER)
        if pages and not isinstance(pages[0], dict):
            raise MalformedPayloadError("page entry is not an object", PROVIDER)
        if not pages or pages[0].get("missing") or pages[0].get("invalid"):
            raise UpstreamLogicalError(f"Wikipedia page {label} not found", PROVIDER)
        return pages[0]

    # -------------------------------------------------------------------------
    # Search
    # -------------------------------------------------------------------------
    async def search(self, query: str, limit: int = 5, lang: str = "en") -> WikiSearchResults:
        result = await self._query(
            lang,
            list="search",
            srsearch=query,
            srlimit=limit,
            srprop="snippet|timestamp",
        )
        raw_hits = result.get("search")
        if not isinstance(raw_hits, list):
            raise MalformedPayloadError("search response has no 'search' list", PROVIDER)
        with decoding("search"):
            hits = tuple(
                WikiSearchHit(
                    title=hit.get("title", ""),
                    page_id=int(hit.get("pageid", 0)),
                    snippet=strip_markup(hit.get("snippet", "")),
                    timestamp=hit.get("timestamp", ""),
                )
                for hit in raw_hits
            )
            total = int((result.get("searchinfo") or {}).get("totalhits", len(hits)))
        return WikiSearchResults(query=query, language=lang, hits=hits, total_hits=total)

    # -------------------------------------------------------------------------
    # Pages
    # -------------------------------------------------------------------------
    def _page_from(self, page: dict, lang: str) -> WikiPage:
        with decoding("page"):
            return WikiPage(
                title=page.get("title", ""),
                page_id=int(page.get("pageid", 0)),
                language=lang,
                text=clean_text(page.get("extract", "")),
                url=page.get("fullurl", ""),
            )

    async def get_page(self, title: str, lang: str = "en") -> WikiPage:
        page = await self._single_page(
            lang,
            f'"{title}"',
            titles=title,
            prop="extracts|info",
            inprop="url",
            explaintext="1",
            exsectionformat="plain",
            redirects="1",
        )
        return self._page_from(page, lang)

    async def get_page_by_id(self, page_id: int, lang: str = "en") -> WikiPage:
        page = await self._single_page(
            lang,
            f"with ID {page_id}",
            pageids=page_id,
            prop="extracts|info",
            inprop="url",
            explaintext="1",
            exsectionformat="plain",
        )
        return self._page_from(page, lang)

    async def get_summary(self, title: str, lang: str = "en") -> WikiSummary:
        page = await self._single_page(
            lang,
            f'"{title}"',
            titles=title,
            prop="extracts",
            exsentences="3",
            explaintext="1",
            exsectionformat="plain",
            redirects="1",
        )
        with decoding("summary"):
            return WikiSummary(
                title=page.get("title", title),
                page_id=int(page.get("pageid", 0)),
                language=lang,
                summary=clean_text(page.get("extract", "")),
            )

    async def random_page(self, lang: str = "en") -> WikiRandomPage:
        result = await self._query(lang, list="random", rnnamespace="0", rnlimit="1")
        pages = result.get("random")
        if not isinstance(pages, list):
            raise MalformedPayloadError("random response has no 'random' list", PROVIDER)
        if not pages:
            raise UpstreamLogicalError("No random Wikipedia page found", PROVIDER)
        with decoding("random"):
            return WikiRandomPage(
                title=pages[0].get("title", ""),
                page_id=int(pages[0].get("id", 0)),
                language=lang,
            )

    async def page_languages(self, title: str, lang: str = "en") -> WikiLanguages:
        page = await self._single_page(
            lang, f'"{title}"', titles=title, prop="langlinks", lllimit="max", redirects="1"
        )
        with decoding("langlinks"):
            links = tuple(
                WikiLanguageLink(language=link.get("lang", ""), title=link.get("title", ""))
                for link in page.get("langlinks", [])
            )
        return WikiLanguages(title=page.get("title", title), language=lang, links=links)

    # -------------------------------------------------------------------------
    # Lists
    # -------------------------------------------------------------------------
    async def search_nearby(
        self,
        lat: float,
        lon: float,
        radius: int = 1000,
        limit: int = 10,
        lang: str = "en",
    ) -> WikiNearby:
        result = await self._query(
            lang,
            list="geosearch",
            gscoord=f"{lat}|{lon}",
            gsradius=radius,
            gslimit=limit,
        )
        raw = result.get("geosearch")
        if not isinstance(raw, list):
            raise MalformedPayloadError("geosearch response has no 'geosearch' list", PROVIDER)
        with decoding("geosearch"):
            places = tuple(
                WikiNearbyPlace(
                    title=place.get("title", ""),
                    page_id=int(place.get("pageid", 0)),
                    lat=float(place.get("lat", 0.0)),
                    lon=float(place.get("lon", 0.0)),
                    distance_m=float(place.get("dist", 0.0)),
                )
                for place in raw
            )
        return WikiNearby(lat=lat, lon=lon, radius_m=radius, language=lang, places=places)

    async def pages_in_category(
        self,
        category: str,
        limit: int = 20,
        member_type: str = "page",
        lang: str = "en",
    ) -> WikiCategoryMembers:
        title = category_title(category)
        result = await self._query(
            lang,
            list="categorymembers",
            cmtitle=title,
            cmtype=member_type,
            cmlimit=limit,
            cmprop="ids|title|type",
        )
        raw = result.get("categorymembers")
        if not isinstance(raw, list):
            raise MalformedPayloadError(
                "category response has no 'categorymembers' list", PROVIDER
            )
        with decoding("categorymembers"):
            members = tuple(
                WikiCategoryMember(
                    title=member.get("title", ""),
                    page_id=int(member.get("pageid", 0)),
                    member_type=member.get("type", member_type),
                )
                for member in raw
            )
        return WikiCategoryMembers(category=title, language=lang, members=members)
