# =============================================================================
# core/resources.py  -  Resource Reader
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   Maps a resource address onto the cache key the producing tool would have
#   written, and peeks at the pool.  That's all.
#
#   google://search/{query}                     google_search(q, num=5)
#   wikipedia://search/{query}                  wikipedia_search(query, limit=5, lang=default)
#   wikipedia://search-results/{query}/{lang}   wikipedia_search(query, limit=5, lang)
#   wikipedia://page/{title}                    wikipedia_get_page(title, lang=default)
#   wikipedia://article/{title}/{lang}          wikipedia_get_page(title, lang)
#
# READ-ONLY:
#   No network I/O, no cache writes, no LRU touch (peek, not get).  A miss is
#   reported as Failure(kind=NOT_CACHED) naming the tool to call first; a
#   payload is never fabricated.
#   A {lang} segment that is not a language code is INVALID_ARGUMENT.
# =============================================================================

import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional
from urllib.parse import unquote, urlsplit

from core.cache import CachePool, CachePools
from core.config import Settings, is_language_code
from core.errors import ErrorKind
from core.keys import cache_key
from core.models import Failure, Outcome, Success

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResourceRoute:
    scheme: str
    category: str
    segments: int                      # Number of path segments after the category
    operation: str                     # The tool that populates this resource
    pool: Callable[[CachePools], CachePool]
    arguments: Callable[[list[str], Settings], dict[str, Any]]


ROUTES = (
    ResourceRoute(
        "google", "search", 1, "google_search",
        lambda pools: pools.search,
        lambda seg, s: {"q": seg[0], "num": 5},
    ),
    ResourceRoute(
        "wikipedia", "search", 1, "wikipedia_search",
        lambda pools: pools.encyclopedia,
        lambda seg, s: {"query": seg[0], "limit": 5, "lang": s.default_language},
    ),
    ResourceRoute(
        "wikipedia", "search-results", 2, "wikipedia_search",
        lambda pools: pools.encyclopedia,
        lambda seg, s: {"query": seg[0], "limit": 5, "lang": seg[1]},
    ),
    ResourceRoute(
        "wikipedia", "page", 1, "wikipedia_get_page",
        lambda pools: pools.encyclopedia,
        lambda seg, s: {"title": seg[0], "lang": s.default_language},
    ),
    ResourceRoute(
        "wikipedia", "article", 2, "wikipedia_get_page",
        lambda pools: pools.encyclopedia,
        lambda seg, s: {"title": seg[0], "lang": seg[1]},
    ),
)


def parse_address(address: str) -> Optional[tuple[str, str, list[str]]]:
    """Split scheme://category/seg1/seg2 into (scheme, category, decoded segments).

    Segments are split BEFORE percent-decoding so an encoded "/" (AC%2FDC)
    stays inside its segment.
    """
    parts = urlsplit(address)
    if not parts.scheme or not parts.netloc:
        return None
    raw = parts.path.lstrip("/")
    segments = [unquote(s) for s in raw.split("/")] if raw else []
    return parts.scheme.lower(), parts.netloc.lower(), segments


class ResourceReader:
    """Side-effect-free projection over cache state."""

    def __init__(self, settings: Settings, pools: CachePools):
        self._settings = settings
        self._pools = pools

    def read(self, address: str) -> Outcome:
        parsed = parse_address(address)
        if parsed is None:
            return Failure(f"Malformed resource address: {address}", ErrorKind.UNKNOWN_RESOURCE)
        scheme, category, segments = parsed

        for route in ROUTES:
            if (route.scheme, route.category) != (scheme, category):
                continue
            if len(segments) != route.segments or not all(s.strip() for s in segments):
                continue
            arguments = route.arguments(segments, self._settings)
            lang = arguments.get("lang")
            if lang is not None and not is_language_code(lang.strip().lower()):
                return Failure(
                    f"Invalid language code in resource: {address}", ErrorKind.INVALID_ARGUMENT
                )
            key = cache_key(route.operation, arguments)
            payload = route.pool(self._pools).peek(key)
            if payload is None:
                logger.info("resource %s not cached", address)
                return Failure(
                    f"Not cached yet. Call the {route.operation} tool first.",
                    ErrorKind.NOT_CACHED,
                )
            return Success(payload, cached=True)

        return Failure(f"Resource not found: {address}", ErrorKind.UNKNOWN_RESOURCE)
