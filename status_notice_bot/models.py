"""Data models for Status Notice Bot."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


@dataclass
class FeedEntry:
    """Represents a single item of the status page feed."""

    title: str
    description: str
    link: str
    published: int  # epoch milliseconds
    author: str | None = None
    categories: list[str] = field(default_factory=list)
    enclosures: list[dict] = field(default_factory=list)
    media: dict[str, Any] = field(default_factory=dict)


class EntryCategory(Enum):
    """Classification shown in the note header."""

    NOTICE = "お知らせ"
    INCIDENT = "障害情報"
    MAINTENANCE = "メンテナンス情報"

    @property
    def label(self) -> str:
        return self.value


@dataclass
class EntryDetail:
    """Details scraped from an entry's own page."""

    category: EntryCategory
    description: str


@dataclass
class DeliveryResult:
    """Outcome of composing and posting one note."""

    link: str
    message: str
    success: bool
    response: Any = None
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "link": self.link,
            "message": self.message,
            "success": self.success,
            "response": self.response,
            "error": self.error,
        }
