"""Data models for book search."""
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple


class SortOrder(str, Enum):
    """Result ordering; values are the Open Library `sort` tokens."""
    RELEVANCE = "relevance"
    TITLE = "title"
    NEWEST = "new"
    OLDEST = "old"

    @classmethod
    def from_name(cls, name: str) -> "SortOrder":
        """Accept either the member name ("newest") or the wire value ("new")."""
        key = name.strip().lower()
        for member in cls:
            if key in (member.name.lower(), member.value):
                return member
        raise ValueError(f"Unknown sort order: {name}")


@dataclass(frozen=True)
class SearchCriteria:
    """User-entered search terms plus the requested ordering."""
    title: Optional[str] = None
    author: Optional[str] = None
    genre: Optional[str] = None
    sort_order: SortOrder = SortOrder.RELEVANCE

    @property
    def has_terms(self) -> bool:
        """At least one of title/author/genre must be filled in."""
        return any(value and value.strip() for value in (self.title, self.author, self.genre))


@dataclass(frozen=True)
class BookRecord:
    """One document from the Open Library search API."""
    id: str
    title: str
    authors: Tuple[str, ...] = ()
    first_publish_year: Optional[int] = None
    isbn_list: Tuple[str, ...] = ()
    cover_id: Optional[int] = None
    subjects: Tuple[str, ...] = ()
    edition_keys: Tuple[str, ...] = ()

    @property
    def authors_str(self) -> str:
        """Format authors as comma-separated string."""
        return ", ".join(self.authors) if self.authors else "Unknown Author"

    @property
    def genre_str(self) -> str:
        """First few subjects; Open Library lists can run to hundreds."""
        return ", ".join(self.subjects[:3]) if self.subjects else "N/A"


@dataclass(frozen=True)
class SearchPage:
    """A single bounded response at a given offset."""
    items: Tuple[BookRecord, ...] = field(default_factory=tuple)
    total_matching: int = 0
    offset_consumed: int = 0
    # raw docs returned, including any that could not be parsed
    docs_consumed: int = 0

    def __len__(self) -> int:
        return len(self.items)
