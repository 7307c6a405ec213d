# =============================================================================
# core/dispatcher.py  -  Operation Dispatcher
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   Turns one inbound operation (name + arguments) into exactly one Outcome.
#
# THE STATE MACHINE (per invocation):
#
#   Received -> KeyComputed -> CacheChecked -+-> CacheHit ------+-> Resolved
#                                            +-> UpstreamCalled +
#
#   1. Received:       look the operation up, apply defaults, check required
#                      arguments are present and any lang is a language code
#   2. KeyComputed:    core.keys.cache_key() over the normalized arguments
#   3. CacheChecked:   get() on the pool owned by the operation's provider
#   4. CacheHit:       Success(payload, cached=True); no network, no write
#   5. UpstreamCalled: await the adapter; on success write the pool, then
#                      Success(payload).  On ANY failure return Failure and
#                      write nothing
#
# GUARANTEES:
#   - dispatch() never raises.  Adapter errors become Failure(kind=...);
#     anything unexpected is logged with a traceback and becomes
#     Failure(kind=INTERNAL).
#   - Failures are never cached, so an outage heals on the next good call.
#   - Each operation touches only its own adapter and pool.  A disabled or
#     failing search provider cannot affect Wikipedia operations.
#   - Steps 2-3 run without an await in between; concurrent misses on the
#     same key are NOT de-duplicated (both call upstream, last write wins).
# =============================================================================

import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Mapping, Optional

from core.cache import CachePool, CachePools
from core.config import Settings, is_language_code
from core.errors import ErrorKind, ProviderError
from core.google_search import GoogleSearchAdapter
from core.keys import cache_key, normalize_arguments
from core.models import BatchItem, BatchResult, Failure, InvocationRequest, Outcome, Success
from core.pages import PageFetcher
from core.wikipedia import WikipediaAdapter

logger = logging.getLogger(__name__)

MAX_BATCH_ITEMS = 10

NEWS_SITES = ("bbc.com", "cnn.com", "reuters.com", "apnews.com", "nytimes.com")
ACADEMIC_SITES = ("arxiv.org", "scholar.google.com", "researchgate.net")


@dataclass(frozen=True)
class Operation:
    """One entry of the dispatch table."""

    name: str
    call: Callable[[dict], Awaitable[Any]]
    pool: Optional[CachePool] = None   # None = never cached (random, page fetch, batch)
    required: tuple[str, ...] = ()
    defaults: Mapping[str, Any] = field(default_factory=dict)


class Dispatcher:
    """Routes operations to adapters through the provider-family pools."""

    def __init__(
        self,
        settings: Settings,
        pools: CachePools,
        search: GoogleSearchAdapter,
        wikipedia: WikipediaAdapter,
        pages: PageFetcher,
    ):
        self._settings = settings
        self._pools = pools
        self._search = search
        self._wikipedia = wikipedia
        self._pages = pages
        self._operations = {op.name: op for op in self._build_operations()}

    # -------------------------------------------------------------------------
    # Dispatch table
    # -------------------------------------------------------------------------
    def _build_operations(self) -> list[Operation]:
        search, wiki, pages = self._search, self._wikipedia, self._pages
        search_pool, wiki_pool = self._pools.search, self._pools.encyclopedia
        lang = {"lang": self._settings.default_language}

        return [
            # --- Search family ---
            Operation(
                "google_search",
                lambda a: search.search(a["q"], num=a["num"]),
                search_pool, ("q",), {"num": 5},
            ),
            Operation(
                "site_search",
                lambda a: search.search(site_query(a["q"], a["sites"]), num=a["num"]),
                search_pool, ("q", "sites"), {"num": 5},
            ),
            Operation(
                "news_monitor",
                lambda a: search.search(
                    site_query(a["topic"], a["sources"] or NEWS_SITES),
                    num=a["num"],
                    date_restrict=a["date_restrict"],
                    hl=a["language"],
                    gl=a["country"],
                ),
                search_pool, ("topic",),
                {
                    "sources": list(NEWS_SITES),
                    "language": "en",
                    "country": "us",
                    "num": 5,
                    "date_restrict": "d7",
                },
            ),
            Operation(
                "academic_search",
                lambda a: search.search(
                    site_query(a["query"], a["sites"] or ACADEMIC_SITES),
                    num=a["num"],
                    file_type=a["file_type"],
                    date_restrict=a["date_range"],
                ),
                search_pool, ("query",),
                {
                    "sites": list(ACADEMIC_SITES),
                    "file_type": "pdf",
                    "date_range": "y1",
                    "num": 5,
                },
            ),
            # --- Encyclopedia family ---
            Operation(
                "wikipedia_search",
                lambda a: wiki.search(a["query"], limit=a["limit"], lang=a["lang"]),
                wiki_pool, ("query",), {"limit": 5, **lang},
            ),
            Operation(
                "wikipedia_get_page",
                lambda a: wiki.get_page(a["title"], lang=a["lang"]),
                wiki_pool, ("title",), lang,
            ),
            Operation(
                "wikipedia_get_page_by_id",
                lambda a: wiki.get_page_by_id(a["page_id"], lang=a["lang"]),
                wiki_pool, ("page_id",), lang,
            ),
            Operation(
                "wikipedia_get_summary",
                lambda a: wiki.get_summary(a["title"], lang=a["lang"]),
                wiki_pool, ("title",), lang,
            ),
            Operation(
                "wikipedia_page_languages",
                lambda a: wiki.page_languages(a["title"], lang=a["lang"]),
                wiki_pool, ("title",), lang,
            ),
            Operation(
                "wikipedia_search_nearby",
                lambda a: wiki.search_nearby(
                    a["lat"], a["lon"], radius=a["radius"], limit=a["limit"], lang=a["lang"]
                ),
                wiki_pool, ("lat", "lon"), {"radius": 1000, "limit": 10, **lang},
            ),
            Operation(
                "wikipedia_get_pages_in_category",
                lambda a: wiki.pages_in_category(
                    a["category"], limit=a["limit"], member_type=a["member_type"], lang=a["lang"]
                ),
                wiki_pool, ("category",), {"limit": 20, "member_type": "page", **lang},
            ),
            Operation(
                "wikipedia_random",
                lambda a: wiki.random_page(lang=a["lang"]),
                None, (), lang,
            ),
            Operation(
                "wikipedia_batch_search",
                lambda a: self._batch(
                    "wikipedia_search", "query", a["queries"],
                    {"limit": a["limit"], "lang": a["lang"]},
                ),
                None, ("queries",), {"limit": 5, **lang},
            ),
            Operation(
                "wikipedia_batch_get_pages",
                lambda a: self._batch(
                    "wikipedia_get_page", "title", a["titles"], {"lang": a["lang"]}
                ),
                None, ("titles",), lang,
            ),
            # --- Page fetch ---
            Operation("extract_content", lambda a: pages.extract_content(a["url"]), None, ("url",)),
            Operation("url_metadata", lambda a: pages.url_metadata(a["url"]), None, ("url",)),
        ]

    @property
    def operations(self) -> list[str]:
        return sorted(self._operations)

    def resolve_arguments(self, operation: str, arguments: Mapping[str, Any]) -> dict[str, Any]:
        """Defaults applied, then normalized: the exact argument set that is keyed."""
        op = self._operations[operation]
        merged = dict(op.defaults)
        merged.update({k: v for k, v in arguments.items() if v is not None})
        return normalize_arguments(merged)

    # -------------------------------------------------------------------------
    # Dispatch
    # -------------------------------------------------------------------------
    async def dispatch(self, operation: str, arguments: Optional[Mapping[str, Any]] = None) -> Outcome:
        """Run one operation and return its Outcome.  Never raises."""
        request = InvocationRequest(operation, dict(arguments or {}))
        try:
            return await self._dispatch(request)
        except ProviderError as exc:
            logger.warning("%s failed [%s]: %s", request.operation, exc.kind.value, exc.message)
            return Failure(exc.message, exc.kind)
        except Exception as exc:
            logger.exception("%s failed unexpectedly", request.operation)
            return Failure(f"{request.operation} failed: {exc}", ErrorKind.INTERNAL)

    async def _dispatch(self, request: InvocationRequest) -> Outcome:
        # Received
        op = self._operations.get(request.operation)
        if op is None:
            return Failure(f"Unknown tool: {request.operation}", ErrorKind.UNKNOWN_OPERATION)
        args = self.resolve_arguments(op.name, request.arguments)
        missing = [name for name in op.required if name not in args or args[name] in ("", [])]
        if missing:
            return Failure(
                f"{op.name} is missing required argument(s): {', '.join(missing)}",
                ErrorKind.INVALID_ARGUMENT,
            )
        # lang becomes part of the upstream host name.
        if "lang" in args and not is_language_code(args["lang"]):
            return Failure(
                f"{op.name}: invalid language code {args['lang']!r}",
                ErrorKind.INVALID_ARGUMENT,
            )

        if op.pool is None:
            payload = await op.call(args)
            logger.info("%s resolved upstream (uncached)", op.name)
            return Success(payload)

        # KeyComputed -> CacheChecked
        key = cache_key(op.name, args)
        cached = op.pool.get(key)
        if cached is not None:
            logger.info("%s cache hit (%s pool)", op.name, op.pool.name)
            return Success(cached, cached=True)

        # UpstreamCalled
        logger.info("%s cache miss (%s pool); calling upstream", op.name, op.pool.name)
        payload = await op.call(args)
        op.pool.set(key, payload)
        return Success(payload)

    async def _batch(
        self,
        operation: str,
        item_argument: str,
        items: list,
        shared: Mapping[str, Any],
    ) -> BatchResult:
        """Fan a list out over a single-item operation, one Outcome per item."""
        entries = []
        for item in list(items)[:MAX_BATCH_ITEMS]:
            outcome = await self.dispatch(operation, {item_argument: item, **shared})
            if outcome.ok:
                entries.append(BatchItem(item=item, ok=True, payload=outcome.payload))
            else:
                entries.append(BatchItem(item=item, ok=False, error=outcome.message))
        return BatchResult(operation=operation, items=tuple(entries))


def site_query(query: str, sites: list[str]) -> str:
    """Restrict a free-text query to a set of sites: q (site:a OR site:b)."""
    restriction = " OR ".join(f"site:{site}" for site in sites)
    return f"{query} ({restriction})" if restriction else query
