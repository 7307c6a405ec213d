# =============================================================================
# core/models.py  -  Data Models (the "nouns" of the system)
# =============================================================================
#
# Every upstream payload is decoded at the adapter boundary into one of the
# dataclasses below.  Nothing downstream of an adapter ever touches raw
# provider JSON.
#
# IMMUTABILITY:
#   All payload classes are frozen and use tuples for sequences.  A value
#   stored in a cache pool is a snapshot: two callers served from the same
#   entry can never observe each other's modifications.
#
# OUTCOME:
#   The Dispatcher and Resource Reader return exactly one of Success or
#   Failure.  They never raise.
# =============================================================================

from dataclasses import dataclass, field
from typing import Any, Mapping, Optional, Union

from core.errors import ErrorKind


# -----------------------------------------------------------------------------
# Outcome - the terminal value of every dispatch and resource read
# -----------------------------------------------------------------------------
@dataclass(frozen=True)
class Success:
    """A payload was produced (from cache or upstream)."""

    payload: Any
    cached: bool = False               # True when served without an upstream call

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Failure:
    """Nothing was produced; `message` is safe to show to the caller."""

    message: str
    kind: ErrorKind = ErrorKind.INTERNAL

    @property
    def ok(self) -> bool:
        return False


Outcome = Union[Success, Failure]


@dataclass(frozen=True)
class InvocationRequest:
    """One inbound tool call.  Transient: lives for a single dispatch."""

    operation: str
    arguments: Mapping[str, Any] = field(default_factory=dict)


# -----------------------------------------------------------------------------
# Google Custom Search
# -----------------------------------------------------------------------------
@dataclass(frozen=True)
class SearchItem:
    title: str
    link: str
    snippet: str = ""
    display_link: str = ""


@dataclass(frozen=True)
class SearchResults:
    """Decoded Custom Search response."""

    query: str
    items: tuple[SearchItem, ...] = ()
    total_results: int = 0             # Google's estimate, not len(items)
    search_time: float = 0.0


# -----------------------------------------------------------------------------
# Wikipedia
# -----------------------------------------------------------------------------
@dataclass(frozen=True)
class WikiSearchHit:
    title: str
    page_id: int
    snippet: str = ""                  # Plain text; search-match markup removed
    timestamp: str = ""


@dataclass(frozen=True)
class WikiSearchResults:
    query: str
    language: str
    hits: tuple[WikiSearchHit, ...] = ()
    total_hits: int = 0


@dataclass(frozen=True)
class WikiPage:
    """A full article as plain text."""

    title: str
    page_id: int
    language: str
    text: str
    url: str


@dataclass(frozen=True)
class WikiSummary:
    """The first few sentences of an article."""

    title: str
    page_id: int
    language: str
    summary: str


@dataclass(frozen=True)
class WikiLanguageLink:
    language: str
    title: str


@dataclass(frozen=True)
class WikiLanguages:
    title: str
    language: str
    links: tuple[WikiLanguageLink, ...] = ()


@dataclass(frozen=True)
class WikiRandomPage:
    title: str
    page_id: int
    language: str


@dataclass(frozen=True)
class WikiNearbyPlace:
    title: str
    page_id: int
    lat: float
    lon: float
    distance_m: float


@dataclass(frozen=True)
class WikiNearby:
    lat: float
    lon: float
    radius_m: int
    language: str
    places: tuple[WikiNearbyPlace, ...] = ()


@dataclass(frozen=True)
class WikiCategoryMember:
    title: str
    page_id: int
    member_type: str                   # "page", "subcat" or "file"


@dataclass(frozen=True)
class WikiCategoryMembers:
    category: str                      # Always carries the "Category:" prefix
    language: str
    members: tuple[WikiCategoryMember, ...] = ()


# -----------------------------------------------------------------------------
# Generic page fetch
# -----------------------------------------------------------------------------
@dataclass(frozen=True)
class PageContent:
    """Readable text extracted from an arbitrary HTML page."""

    url: str
    title: str
    text: str
    word_count: int
    links: tuple[str, ...] = ()        # Up to 20 unique absolute links
    images: tuple[str, ...] = ()       # Up to 10 unique image sources


@dataclass(frozen=True)
class PageMetadata:
    url: str
    content_type: str
    status_code: int
    title: Optional[str] = None
    description: Optional[str] = None
    keywords: Optional[str] = None


# -----------------------------------------------------------------------------
# Batch operations - one outcome per item, never all-or-nothing
# -----------------------------------------------------------------------------
@dataclass(frozen=True)
class BatchItem:
    item: str                          # The query or title this entry is for
    ok: bool
    payload: Any = None
    error: Optional[str] = None


@dataclass(frozen=True)
class BatchResult:
    operation: str                     # The single-item operation that was fanned out
    items: tuple[BatchItem, ...] = ()

    @property
    def succeeded(self) -> int:
        return sum(1 for entry in self.items if entry.ok)
