# =============================================================================
# core/keys.py  -  Cache key derivation
# =============================================================================
#
# A cache key is   "<operation>:" + JSON(normalized arguments, sorted keys)
#
# Normalization is by ARGUMENT NAME, so every operation that takes a "title"
# folds it the same way.  Semantically identical requests must land on one
# key regardless of incidental formatting in the caller's input:
#
#   q / query / topic
#               whitespace collapsed, case-folded (both providers match
#               case-insensitively)
#   title       MediaWiki canonical form: underscores -> spaces, whitespace
#               collapsed, first letter upper-cased, rest untouched
#   category    canonical title with a "Category:" prefix
#   lang        lower-cased (so are the search "language" and "country")
#   sites       lower-cased, de-duplicated, sorted (also news "sources")
#   num         clamped to the range the search API accepts
#
# Batch lists (queries, titles) are left as given; each item is normalized
# when it is dispatched on its own.  Arguments whose value is None are dropped.  The Dispatcher and the
# Resource Reader both call cache_key(), so their key spaces match.
# =============================================================================

import json
from typing import Any, Callable, Mapping

from core.google_search import clamp_num


def _collapse(value: str) -> str:
    return " ".join(str(value).split())


def normalize_query(value: str) -> str:
    return _collapse(value).casefold()


def normalize_title(value: str) -> str:
    title = _collapse(str(value).replace("_", " "))
    return title[:1].upper() + title[1:]


def normalize_category(value: str) -> str:
    title = normalize_title(value)
    if title.lower().startswith("category:"):
        title = title[len("category:"):].strip()
    return "Category:" + normalize_title(title)


def normalize_language(value: str) -> str:
    return str(value).strip().lower()


def normalize_sites(value) -> list[str]:
    return sorted({_collapse(site).lower() for site in value if _collapse(site)})


_NORMALIZERS: dict[str, Callable[[Any], Any]] = {
    "q": normalize_query,
    "query": normalize_query,
    "title": normalize_title,
    "category": normalize_category,
    "lang": normalize_language,
    "sites": normalize_sites,
    "sources": normalize_sites,
    "topic": normalize_query,
    "language": normalize_language,
    "country": normalize_language,
    "num": clamp_num,
    "url": lambda value: str(value).strip(),
}


def normalize_arguments(arguments: Mapping[str, Any]) -> dict[str, Any]:
    normalized = {}
    for name, value in arguments.items():
        if value is None:
            continue
        normalizer = _NORMALIZERS.get(name)
        if normalizer is not None:
            value = normalizer(value)
        elif isinstance(value, str):
            value = _collapse(value)
        normalized[name] = value
    return normalized


def cache_key(operation: str, arguments: Mapping[str, Any]) -> str:
    """Deterministic key for `operation` over already-defaulted arguments."""
    payload = json.dumps(
        normalize_arguments(arguments),
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
    )
    return f"{operation}:{payload}"
