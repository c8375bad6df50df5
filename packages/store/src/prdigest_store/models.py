"""Digest data models.

Decoupled from prdigest_core so the store layer can be used independently
and prdigest_core has no knowledge of how entries are persisted.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone


def to_iso(instant: datetime) -> str:
    """Format *instant* as a UTC ISO-8601 string with millisecond precision and a Z suffix."""
    if instant.tzinfo is None:
        instant = instant.replace(tzinfo=timezone.utc)
    return instant.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass
class DigestEntry:
    """One merged pull request plus its summary, ready to be rendered.

    Created by the CLI layer from a core MergeRecord and its summary text.
    """

    number: int
    title: str
    url: str
    merged_at: datetime | None
    author: str | None
    author_url: str | None
    summary: str


@dataclass
class IndexEntry:
    """One partition file as listed in the manifest."""

    filename: str
    year: str
    bucket: int
    title: str
    url: str

    def to_dict(self) -> dict:
        return {
            "filename": self.filename,
            "year": self.year,
            "bucket": self.bucket,
            "title": self.title,
            "url": self.url,
        }


@dataclass
class DigestItem:
    """A digest entry parsed back out of a partition file."""

    number: int
    title: str
    url: str
    merged_at: str  # ISO-8601 UTC timestamp
    author: str
    author_url: str
    summary: str

    def to_dict(self) -> dict:
        return {
            "number": self.number,
            "title": self.title,
            "url": self.url,
            "mergedAt": self.merged_at,
            "author": self.author,
            "authorUrl": self.author_url,
            "summary": self.summary,
        }

    @staticmethod
    def from_dict(d: dict) -> DigestItem:
        return DigestItem(
            number=d.get("number", 0),
            title=d.get("title", ""),
            url=d.get("url", ""),
            merged_at=d.get("mergedAt", ""),
            author=d.get("author", ""),
            author_url=d.get("authorUrl", ""),
            summary=d.get("summary", ""),
        )


@dataclass
class DataStore:
    """The flattened JSON store, regenerated in full on every run."""

    last_updated: str
    total_count: int
    items: list[DigestItem] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "lastUpdated": self.last_updated,
            "totalCount": self.total_count,
            "items": [item.to_dict() for item in self.items],
        }

    @staticmethod
    def from_dict(d: dict) -> DataStore:
        items = [DigestItem.from_dict(item) for item in d.get("items") or []]
        return DataStore(
            last_updated=d.get("lastUpdated", ""),
            total_count=d.get("totalCount", len(items)),
            items=items,
        )
