"""HTML cleaning utilities to reduce page content for LLM processing.

Parsing is done with BeautifulSoup on a copy of the page markup; the live
page is never touched.
"""

import re
from urllib.parse import urldefrag, urljoin, urlparse

from bs4 import BeautifulSoup, Comment, Tag

from ..models.snapshot import ElementDescriptor

# Non-semantic nodes removed before anything else
STRIPPED_SELECTOR = "script, style, noscript, meta, link[rel~=stylesheet]"

# Tags whose attributes are reduced to KEEP_ATTRIBUTES
ATTRIBUTE_FILTERED_TAGS = ("input", "select", "textarea", "button", "form", "a", "label")

KEEP_ATTRIBUTES = frozenset({
    "id", "class", "type", "name", "value", "placeholder",
    "role", "aria-label", "href", "for", "action", "method",
    "data-qa", "data-testid", "title", "onclick",
})

# Enumeration order of interactive elements
INTERACTIVE_SELECTORS = (
    "input",
    "select",
    "textarea",
    "button",
    "a[href]",
    "[onclick]",
    '[role="button"]',
    '[role="link"]',
    ".btn",
    ".button",
    ".link",
    "[data-testid]",
)

TRUNCATION_MARKER = "\n... [TRUNCATED]"

_WHITESPACE = re.compile(r"\s+")


def _normalize(text: str) -> str:
    return _WHITESPACE.sub(" ", text).strip()


def _attr(tag: Tag, name: str) -> str | None:
    value = tag.get(name)
    if isinstance(value, list):
        value = " ".join(value)
    return value or None


def parse_markup(html: str) -> BeautifulSoup:
    """Parse markup and drop non-semantic nodes and comments."""
    soup = BeautifulSoup(html or "", "html.parser")
    for node in soup.select(STRIPPED_SELECTOR):
        node.decompose()
    for comment in soup.find_all(string=lambda s: isinstance(s, Comment)):
        comment.extract()
    return soup


def clean_html_for_llm(html: str, max_chars: int | None = None) -> str:
    """Clean HTML content to reduce size before sending to LLM.

    Removes scripts, styles, meta tags, stylesheet links and comments.
    Attributes of form controls, links and labels are reduced to
    KEEP_ATTRIBUTES; everywhere else inline styles and event handlers are
    removed.

    Args:
        html: Raw HTML string
        max_chars: Truncate the result to this many characters

    Returns:
        Cleaned HTML string
    """
    if not html:
        return ""

    soup = parse_markup(html)
    filtered = set(ATTRIBUTE_FILTERED_TAGS)
    for tag in soup.find_all(True):
        if tag.name in filtered:
            drop = [a for a in tag.attrs if a not in KEEP_ATTRIBUTES]
        else:
            drop = [a for a in tag.attrs if a == "style" or a.startswith("on")]
        for attr in drop:
            del tag[attr]

    cleaned = re.sub(r"\n\s*\n", "\n", str(soup)).strip()
    if max_chars is not None and len(cleaned) > max_chars:
        cleaned = cleaned[:max_chars] + TRUNCATION_MARKER
    return cleaned


def element_text(tag: Tag, max_chars: int) -> str:
    """Visible text of an element with attribute fallbacks, truncated."""
    text = _normalize(tag.get_text(" "))
    if not text:
        for attr in ("value", "placeholder", "aria-label", "title"):
            text = _normalize(_attr(tag, attr) or "")
            if text:
                break
    return text[:max_chars]


def extract_interactive_elements(
    html: str, max_text: int = 200
) -> tuple[list[ElementDescriptor], int]:
    """Enumerate interactive elements in selector-declaration order.

    Elements matched by several selectors are reported once, at their first
    selector. Elements sharing (text, href, id) with an earlier element are
    dropped, not merged.

    Returns:
        Tuple of (descriptors, number of dropped duplicates)
    """
    soup = parse_markup(html)
    seen_nodes: set[int] = set()
    seen_keys: set[tuple[str, str | None, str | None]] = set()
    elements: list[ElementDescriptor] = []
    dropped = 0

    for selector in INTERACTIVE_SELECTORS:
        for tag in soup.select(selector):
            if id(tag) in seen_nodes:
                continue
            seen_nodes.add(id(tag))

            descriptor = ElementDescriptor(
                index=len(elements),
                tag=tag.name,
                text=element_text(tag, max_text),
                id=_attr(tag, "id"),
                class_name=_attr(tag, "class"),
                type=_attr(tag, "type"),
                name=_attr(tag, "name"),
                href=_attr(tag, "href"),
                placeholder=_attr(tag, "placeholder"),
                value=_attr(tag, "value"),
                role=_attr(tag, "role"),
            )
            if descriptor.identity in seen_keys:
                dropped += 1
                continue
            seen_keys.add(descriptor.identity)
            elements.append(descriptor)

    return elements, dropped


def canonicalize_url(url: str) -> str:
    """Normalise a URL for visited/pending bookkeeping.

    Lower-cases scheme and host, drops default ports and the fragment, and
    trims a trailing slash from the path.
    """
    url, _ = urldefrag(url.strip())
    parsed = urlparse(url)
    scheme = parsed.scheme.lower()
    host = (parsed.hostname or "").lower()
    port = parsed.port
    if port and not ((scheme == "http" and port == 80) or (scheme == "https" and port == 443)):
        host = f"{host}:{port}"
    path = parsed.path.rstrip("/")
    canonical = f"{scheme}://{host}{path}" if scheme else f"{host}{path}"
    if parsed.query:
        canonical += f"?{parsed.query}"
    return canonical


def extract_same_domain_links(html: str, base_url: str) -> list[str]:
    """Collect unique http(s) links on the same host as base_url, in page order."""
    base_host = (urlparse(base_url).hostname or "").lower()
    soup = BeautifulSoup(html or "", "html.parser")
    links: list[str] = []
    seen: set[str] = set()

    for anchor in soup.find_all("a", href=True):
        absolute = urljoin(base_url, anchor["href"].strip())
        parsed = urlparse(absolute)
        if parsed.scheme not in ("http", "https"):
            continue
        if (parsed.hostname or "").lower() != base_host:
            continue
        canonical = canonicalize_url(absolute)
        if canonical in seen:
            continue
        seen.add(canonical)
        links.append(absolute)
    return links
