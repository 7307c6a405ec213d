# =============================================================================
# core/google_search.py  -  Google Custom Search adapter
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   Wraps exactly one upstream call, the Custom Search JSON API, and decodes
#   its response into SearchResults.
#
# DISABLED PROVIDER:
#   Without both GOOGLE_API_KEY and GOOGLE_CSE_ID every call raises
#   NotConfiguredError BEFORE any network I/O.  The rest of the server keeps
#   working.
#
# EMPTY IS NOT AN ERROR:
#   A response without "items" means zero hits.  That is a valid (cacheable)
#   result.  An "error" object in the body is a provider-reported failure.
# =============================================================================

from typing import Any, Optional

from core.config import Settings
from core.errors import MalformedPayloadError, NotConfiguredError, UpstreamLogicalError
from core.http import ProviderClient
from core.models import SearchItem, SearchResults

PROVIDER = "google"
SEARCH_URL = "https://www.googleapis.com/customsearch/v1"

# Optional filters passed through to the API as-is (snake_case -> API name).
# news_monitor uses date_restrict/hl/gl, academic_search file_type/date_restrict.
_FILTERS = {
    "date_restrict": "dateRestrict",
    "file_type": "fileType",
    "gl": "gl",
    "hl": "hl",
}


def clamp_num(num: int) -> int:
    """The API accepts 1..10 results per request."""
    return max(1, min(int(num), 10))


class GoogleSearchAdapter:
    def __init__(self, settings: Settings, client: ProviderClient):
        self._settings = settings
        self._client = client

    @property
    def enabled(self) -> bool:
        return self._settings.google_enabled

    async def search(self, query: str, num: int = 5, **filters: Optional[Any]) -> SearchResults:
        """Run one Custom Search query.

        Raises:
            NotConfiguredError: credentials missing.
            TransientError: network failure after retries.
            UpstreamLogicalError: the API reported an error.
            MalformedPayloadError: the response body has an unexpected shape.
        """
        if not self.enabled:
            raise NotConfiguredError(
                "Google Search not configured. Set GOOGLE_API_KEY and GOOGLE_CSE_ID.",
                PROVIDER,
            )

        params: dict[str, Any] = {
            "key": self._settings.google_api_key,
            "cx": self._settings.google_cse_id,
            "q": query,
            "num": clamp_num(num),
        }
        for name, value in filters.items():
            if name not in _FILTERS:
                raise TypeError(f"unknown search filter: {name}")
            if value is not None:
                params[_FILTERS[name]] = value

        data = await self._client.get_json(PROVIDER, SEARCH_URL, params)
        return decode_search(query, data)


def decode_search(query: str, data: Any) -> SearchResults:
    if not isinstance(data, dict):
        raise MalformedPayloadError("search response is not an object", PROVIDER)
    if "error" in data:
        error = data["error"]
        message = error.get("message") if isinstance(error, dict) else str(error)
        raise UpstreamLogicalError(f"Google search failed: {message}", PROVIDER)

    raw_items = data.get("items", [])
    if not isinstance(raw_items, list):
        raise MalformedPayloadError("search 'items' is not a list", PROVIDER)

    items = []
    for raw in raw_items:
        if not isinstance(raw, dict) or "link" not in raw:
            raise MalformedPayloadError("search item without a link", PROVIDER)
        items.append(SearchItem(
            title=raw.get("title", ""),
            link=raw["link"],
            snippet=raw.get("snippet", ""),
            display_link=raw.get("displayLink", ""),
        ))

    info = data.get("searchInformation") or {}
    if not isinstance(info, dict):
        raise MalformedPayloadError("searchInformation is not an object", PROVIDER)
    try:
        total = int(info.get("totalResults", len(items)))
        search_time = float(info.get("searchTime", 0.0))
    except (TypeError, ValueError) as exc:
        raise MalformedPayloadError("unreadable searchInformation", PROVIDER) from exc

    return SearchResults(
        query=query,
        items=tuple(items),
        total_results=total,
        search_time=search_time,
    )
