"""Data models for book search results and session state."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

DEFAULT_PAGE_SIZE = 20


class SearchMode(str, Enum):
    """Which field the query text is matched against.

    The value is the query parameter name sent to the provider.
    """

    GENERAL = "q"
    TITLE = "title"
    AUTHOR = "author"

    @classmethod
    def parse(cls, value: "SearchMode | str | None") -> "SearchMode":
        """Accept a mode, its parameter name, or its name; default to GENERAL."""
        if isinstance(value, SearchMode):
            return value
        if not value:
            return cls.GENERAL
        text = str(value).strip().lower()
        for mode in cls:
            if text in (mode.value, mode.name.lower()):
                return mode
        return cls.GENERAL


class CoverSize(str, Enum):
    SMALL = "S"
    MEDIUM = "M"
    LARGE = "L"


@dataclass(frozen=True)
class SearchRequest:
    """One page fetch. A new request is built for every page."""

    query: str
    mode: SearchMode = SearchMode.GENERAL
    page: int = 1
    page_size: int = DEFAULT_PAGE_SIZE

    def __post_init__(self):
        if self.page < 1:
            raise ValueError(f"page must be >= 1, got {self.page}")
        if self.page_size < 1:
            raise ValueError(f"page_size must be > 0, got {self.page_size}")

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size


@dataclass
class BookResult:
    """A single record returned by a search."""

    key: str
    title: Optional[str] = None
    author_names: list[str] = field(default_factory=list)
    first_publish_year: Optional[int] = None
    cover_id: Optional[str] = None
    isbns: list[str] = field(default_factory=list)
    publishers: list[str] = field(default_factory=list)
    pages_median: Optional[int] = None

    @classmethod
    def from_doc(cls, doc: dict) -> "BookResult":
        cover = doc.get("cover_i")
        return cls(
            key=doc.get("key", ""),
            title=doc.get("title"),
            author_names=list(doc.get("author_name") or []),
            first_publish_year=doc.get("first_publish_year"),
            cover_id=str(cover) if cover is not None else None,
            isbns=list(doc.get("isbn") or []),
            publishers=list(doc.get("publisher") or []),
            pages_median=doc.get("number_of_pages_median"),
        )

    @classmethod
    def from_record(cls, key: str, record: dict) -> "BookResult":
        """Build a result from a work or edition record fetched by key.

        Records carry author references rather than names, so
        ``author_names`` stays empty.
        """
        covers = [c for c in record.get("covers") or [] if isinstance(c, int) and c > 0]
        isbns = list(record.get("isbn_13") or []) + list(record.get("isbn_10") or [])
        pages = record.get("number_of_pages")
        return cls(
            key=record.get("key") or key,
            title=record.get("title"),
            cover_id=str(covers[0]) if covers else None,
            isbns=[i for i in isbns if isinstance(i, str)],
            publishers=[p for p in record.get("publishers") or [] if isinstance(p, str)],
            pages_median=pages if isinstance(pages, int) else None,
        )

    @property
    def display_title(self) -> str:
        return self.title or "Untitled"

    @property
    def authors_display(self) -> str:
        return ", ".join(self.author_names) if self.author_names else "Unknown Author"

    @property
    def publishers_display(self) -> str:
        return ", ".join(self.publishers) if self.publishers else "Unknown Publisher"


@dataclass
class SearchPage:
    """One bounded batch of records plus pagination metadata."""

    items: list[BookResult] = field(default_factory=list)
    total: int = 0
    has_more: bool = False


@dataclass
class BookDetail:
    """Extended record for a single selected item.

    ``raw`` keeps the provider payload as returned, so fields this model
    does not name are still reachable.
    """

    description: Optional[str] = None
    raw: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_payload(cls, payload: dict) -> "BookDetail":
        return cls(description=normalize_description(payload.get("description")), raw=payload)

    @property
    def subjects(self) -> list[str]:
        return [s for s in self.raw.get("subjects") or [] if isinstance(s, str)]


def normalize_description(value: Any) -> Optional[str]:
    """Flatten a description that may be a string or a ``{"value": ...}`` object."""
    if value is None:
        return None
    if isinstance(value, dict):
        value = value.get("value")
        if value is None:
            return None
    text = str(value)
    return text or None


class ListStatus(str, Enum):
    IDLE = "idle"
    LOADING_FIRST_PAGE = "loading_first_page"
    LOADING_NEXT_PAGE = "loading_next_page"
    READY = "ready"
    FAILED = "failed"


class DetailStatus(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    READY = "ready"
    FAILED = "failed"


@dataclass
class SessionState:
    """Everything the result list view needs to render."""

    items: list[BookResult] = field(default_factory=list)
    page: int = 1
    query: str = ""
    mode: SearchMode = SearchMode.GENERAL
    total: int = 0
    has_more: bool = False
    status: ListStatus = ListStatus.IDLE
    error: Optional[str] = None

    @property
    def is_loading(self) -> bool:
        return self.status in (ListStatus.LOADING_FIRST_PAGE, ListStatus.LOADING_NEXT_PAGE)

    @property
    def is_empty(self) -> bool:
        return not self.items


@dataclass
class DetailState:
    """State of the detail view, independent of the result list."""

    item: Optional[BookResult] = None
    status: DetailStatus = DetailStatus.IDLE
    detail: Optional[BookDetail] = None
    error: Optional[str] = None
