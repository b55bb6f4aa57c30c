"""Page snapshot models.

A snapshot is the bounded, structured capture of one page that the oracle
reasons over and the resolvers match decisions against. Snapshots are
recreated every iteration and never mutated.
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any


@dataclass(frozen=True)
class ElementDescriptor:
    """One interactive element found on the page.

    Attributes:
        index: Position in selector-enumeration order after deduplication
        tag: Lower-cased tag name
        text: Visible text, falling back to value/placeholder/aria-label/title
        class_name: The element's class attribute (serialised as "class")
    """
    index: int
    tag: str
    text: str = ""
    id: str | None = None
    class_name: str | None = None
    type: str | None = None
    name: str | None = None
    href: str | None = None
    placeholder: str | None = None
    value: str | None = None
    role: str | None = None

    @property
    def identity(self) -> tuple[str, str | None, str | None]:
        """Key used for deduplication within a snapshot."""
        return (self.text, self.href, self.id)

    def to_dict(self) -> dict[str, Any]:
        return {
            "index": self.index,
            "tag": self.tag,
            "text": self.text,
            "id": self.id,
            "class": self.class_name,
            "type": self.type,
            "name": self.name,
            "href": self.href,
            "placeholder": self.placeholder,
            "value": self.value,
            "role": self.role,
        }


@dataclass(frozen=True)
class PageSnapshot:
    """Structured capture of one page.

    Attributes:
        url: URL the page reported at capture time
        title: Document title
        cleaned_markup: Sanitised, truncated markup
        interactive_elements: Descriptors in selector-declaration order
        timestamp: Capture time (UTC)
        settled: False when the settle wait timed out
        dropped_duplicates: Elements dropped by the (text, href, id) rule
    """
    url: str
    title: str
    cleaned_markup: str
    interactive_elements: tuple[ElementDescriptor, ...] = ()
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))
    settled: bool = True
    dropped_duplicates: int = 0

    def to_dict(self, include_markup: bool = False) -> dict[str, Any]:
        data: dict[str, Any] = {
            "url": self.url,
            "title": self.title,
            "timestamp": self.timestamp.isoformat(),
            "settled": self.settled,
            "dropped_duplicates": self.dropped_duplicates,
            "interactive_elements": [e.to_dict() for e in self.interactive_elements],
        }
        if include_markup:
            data["cleaned_markup"] = self.cleaned_markup
        return data
