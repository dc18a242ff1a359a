"""
Shared data models for Matter MCP.

Contains the credential pair, the canonical article representation and the
small value types passed between the client, the OAuth bridge and the tools.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import IntEnum
from typing import Any, Dict, List, Optional, Tuple, Union


@dataclass(frozen=True)
class Credentials:
    """A Matter access/refresh token pair.

    Refreshing produces a new instance; an existing pair is never modified.
    """

    access_token: str
    refresh_token: str

    def __repr__(self) -> str:
        return "Credentials(access_token=***, refresh_token=***)"


class LibraryState(IntEnum):
    """Library state values used by the Matter API."""

    QUEUE = 1
    LATER = 2
    ARCHIVE = 3
    FEED = 4

    @classmethod
    def from_value(cls, value: Any) -> Optional["LibraryState"]:
        try:
            return cls(int(value))
        except (TypeError, ValueError):
            return None


def label_for(state: Optional[LibraryState]) -> str:
    return state.name if state is not None else "UNKNOWN"


@dataclass(frozen=True)
class Highlight:
    text: str
    note: Optional[str] = None


@dataclass
class Item:
    """A saved entry from the Matter library."""

    id: Union[int, str]
    entry_id: str
    url: str = ""
    title: str = ""
    author: Optional[str] = None
    publisher: Optional[str] = None
    publication_date: Optional[str] = None
    status: Optional[LibraryState] = None
    progress: Optional[float] = None
    word_count: Optional[int] = None
    reading_time_minutes: Optional[int] = None
    excerpt: Optional[str] = None
    note: Optional[str] = None
    tags: Tuple[str, ...] = ()
    highlights: Tuple[Highlight, ...] = ()
    markdown: Optional[str] = None

    @property
    def progress_percent(self) -> int:
        return round((self.progress or 0.0) * 100)

    def to_summary(self) -> Dict[str, Any]:
        """Compact form used in article listings."""
        return {
            "id": self.id,
            "title": self.title,
            "author": self.author,
            "url": self.url,
            "status": label_for(self.status),
            "progress": self.progress_percent,
        }

    def to_dict(self) -> Dict[str, Any]:
        """Full form including highlights, notes and article text."""
        data = self.to_summary()
        data.update(
            {
                "entry_id": self.entry_id,
                "publisher": self.publisher,
                "publication_date": self.publication_date,
                "word_count": self.word_count,
                "reading_time_minutes": self.reading_time_minutes,
                "tags": list(self.tags),
                "excerpt": self.excerpt,
                "note": self.note,
                "highlights": [{"text": h.text, "note": h.note} for h in self.highlights],
            }
        )
        if self.markdown:
            data["markdown"] = self.markdown
        return data


@dataclass
class FeedPage:
    """One page of the updates feed. ``next_cursor`` is None on the last page."""

    items: List[Item]
    next_cursor: Optional[str] = None
    queue_count: Optional[int] = None
    archive_count: Optional[int] = None


@dataclass
class FeedResult:
    """Items accumulated across pages by ``MatterClient.collect_feed``."""

    items: List[Item]
    next_cursor: Optional[str] = None
    queue_count: Optional[int] = None
    archive_count: Optional[int] = None


@dataclass(frozen=True)
class SaveResult:
    id: Union[int, str]
    secondary_id: Optional[Union[int, str]] = None


@dataclass(frozen=True)
class QRSession:
    """A pending QR login issued by Matter."""

    session_token: str
    qr_code_url: str
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
