# =============================================================================
# core/pages.py  -  Generic page fetch & extraction adapter
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   Fetches an arbitrary http(s) URL and turns the HTML into PageContent
#   (readable text, links, images) or PageMetadata (title, description,
#   keywords, content type).
#
# EXTRACTION RULES:
#   - script, style, nav, header, footer, aside, noscript, template, svg
#     subtrees are dropped
#   - text inside <main> wins, then <article>, then the whole <body>
#   - whitespace is collapsed and the text truncated to MAX_TEXT_CHARS
#   - title: <title>, else the first <h1>, else "No title found"
#
# This provider has no credential and no cache pool: every call goes
# upstream.
# =============================================================================

from html.parser import HTMLParser
from typing import Optional
from urllib.parse import urljoin, urlparse

from core.config import Settings
from core.errors import UpstreamLogicalError
from core.http import ProviderClient
from core.models import PageContent, PageMetadata

PROVIDER = "web"

MAX_TEXT_CHARS = 10_000
MAX_LINKS = 20
MAX_IMAGES = 10

_SKIP_TAGS = {"script", "style", "nav", "header", "footer", "aside", "noscript", "template", "svg"}
_VOID_TAGS = {
    "area", "base", "br", "col", "embed", "hr", "img", "input",
    "link", "meta", "source", "track", "wbr",
}
_REGIONS = ("main", "article", "body")


class _PageParser(HTMLParser):
    """Single-pass collector for text regions, links, images and meta tags."""

    def __init__(self, base_url: str):
        super().__init__(convert_charrefs=True)
        self.base_url = base_url
        self.title_parts: list[str] = []
        self.h1_parts: list[str] = []
        self.regions: dict[str, list[str]] = {name: [] for name in _REGIONS}
        self.links: list[str] = []
        self.images: list[str] = []
        self.meta: dict[str, str] = {}

        self._skip_depth = 0
        self._open: dict[str, int] = {name: 0 for name in _REGIONS}
        self._in_title = False
        self._h1_depth = 0
        self._h1_done = False

    def handle_starttag(self, tag, attrs):
        attributes = {name: value or "" for name, value in attrs}
        if tag in _SKIP_TAGS:
            self._skip_depth += 1
            return
        if tag in self._open:
            self._open[tag] += 1
        elif tag == "title":
            self._in_title = True
        elif tag == "h1" and not self._h1_done:
            self._h1_depth += 1
        elif tag == "a" and attributes.get("href"):
            href = urljoin(self.base_url, attributes["href"])
            if urlparse(href).scheme in ("http", "https"):
                self.links.append(href)
        elif tag == "img" and attributes.get("src"):
            self.images.append(urljoin(self.base_url, attributes["src"]))
        elif tag == "meta":
            name = (attributes.get("name") or attributes.get("property") or "").lower()
            if name and "content" in attributes:
                self.meta.setdefault(name, attributes["content"].strip())

    def handle_startendtag(self, tag, attrs):
        # Self-closed non-void tags (<svg/>, <main/>) open and close at once.
        self.handle_starttag(tag, attrs)
        if tag not in _VOID_TAGS:
            self.handle_endtag(tag)

    def handle_endtag(self, tag):
        if tag in _SKIP_TAGS:
            self._skip_depth = max(self._skip_depth - 1, 0)
        elif tag in self._open:
            self._open[tag] = max(self._open[tag] - 1, 0)
        elif tag == "title":
            self._in_title = False
        elif tag == "h1" and self._h1_depth:
            self._h1_depth -= 1
            if not self._h1_depth:
                self._h1_done = True

    def handle_data(self, data):
        if self._in_title:
            self.title_parts.append(data)
            return
        if self._skip_depth:
            return
        if self._h1_depth:
            self.h1_parts.append(data)
        for name, depth in self._open.items():
            if depth:
                self.regions[name].append(data)


def _collapse(parts: list[str]) -> str:
    return " ".join(" ".join(parts).split())


def _unique(values: list[str], limit: int) -> tuple[str, ...]:
    return tuple(dict.fromkeys(values))[:limit]


def _truncate(text: str, limit: int = MAX_TEXT_CHARS) -> str:
    return text if len(text) <= limit else text[:limit] + "..."


def parse_html(html: str, url: str) -> _PageParser:
    parser = _PageParser(url)
    parser.feed(html)
    parser.close()
    return parser


def extract_page(html: str, url: str) -> PageContent:
    """Pure HTML -> PageContent step, separated from the fetch for testing."""
    parser = parse_html(html, url)
    text = ""
    for name in _REGIONS:
        text = _collapse(parser.regions[name])
        if text:
            break
    title = _collapse(parser.title_parts) or _collapse(parser.h1_parts) or "No title found"
    return PageContent(
        url=url,
        title=title,
        text=_truncate(text),
        word_count=len(text.split()),
        links=_unique(parser.links, MAX_LINKS),
        images=_unique(parser.images, MAX_IMAGES),
    )


def check_url(url: str) -> str:
    parsed = urlparse(url.strip())
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise UpstreamLogicalError(f"Not an http(s) URL: {url!r}", PROVIDER)
    return url.strip()


class PageFetcher:
    def __init__(self, settings: Settings, client: ProviderClient):
        self._settings = settings
        self._client = client

    async def extract_content(self, url: str) -> PageContent:
        url = check_url(url)
        response = await self._client.get_text(PROVIDER, url)
        content_type = response.headers.get("content-type", "")
        if content_type and "html" not in content_type and "text" not in content_type:
            raise UpstreamLogicalError(
                f"Cannot extract text from {content_type!r} content", PROVIDER
            )
        return extract_page(response.text, str(response.url))

    async def url_metadata(self, url: str) -> PageMetadata:
        url = check_url(url)
        head = await self._client.head(PROVIDER, url)
        content_type = head.headers.get("content-type", "unknown")
        title: Optional[str] = None
        description: Optional[str] = None
        keywords: Optional[str] = None

        if "text/html" in content_type:
            page = await self._client.get_text(PROVIDER, url)
            parser = parse_html(page.text, str(page.url))
            title = _collapse(parser.title_parts) or None
            description = parser.meta.get("description") or parser.meta.get("og:description")
            keywords = parser.meta.get("keywords")

        return PageMetadata(
            url=url,
            content_type=content_type,
            status_code=head.status_code,
            title=title,
            description=description,
            keywords=keywords,
        )
