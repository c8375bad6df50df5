"""Re-derive the flattened JSON data store from the partition files.

The markdown documents are the source of truth. This module reads them back
through the Entry Block grammar, so anything a person edits by hand in a
partition file shows up in the data store (and the feed) on the next run.
"""

from __future__ import annotations

import json
import logging
import re
from datetime import datetime, timezone
from pathlib import Path

from prdigest_store.buckets import MONTH
from prdigest_store.entry import EntryLabels, parse_entries
from prdigest_store.files import list_partitions, write_json
from prdigest_store.models import DataStore, DigestItem, to_iso

logger = logging.getLogger(__name__)

DEFAULT_RETENTION = 50

_DATE_SPLIT_RE = re.compile(r"[/\-.\s:]+")


def parse_display_date(text: str, now: datetime | None = None) -> str:
    """Convert a rendered date such as ``2025/01/15`` or ``2025/1/15 10:30`` to ISO-8601.

    Parsing is positional: year, month, day, then optional hour and minute.
    Text that does not parse falls back to *now* rather than failing the run.
    """
    parts = [p for p in _DATE_SPLIT_RE.split(text.strip()) if p]
    try:
        year, month, day = (int(p) for p in parts[:3])
        hour = int(parts[3]) if len(parts) > 3 else 0
        minute = int(parts[4]) if len(parts) > 4 else 0
        return to_iso(datetime(year, month, day, hour, minute, tzinfo=timezone.utc))
    except (ValueError, OverflowError):
        logger.warning("Could not convert date %r, using the current time", text)
        return to_iso(now or datetime.now(timezone.utc))


def extract_file(path: Path, labels: EntryLabels | None = None, now: datetime | None = None) -> list[DigestItem]:
    """Parse every well-formed Entry Block in one partition file."""
    content = path.read_text(encoding="utf-8", errors="replace")
    return [
        DigestItem(
            number=block.number,
            title=block.title,
            url=block.url,
            merged_at=parse_display_date(block.date_text, now),
            author=block.author,
            author_url=block.author_url,
            summary=block.summary,
        )
        for block in parse_entries(content, labels, source=path.name)
    ]


def extract_all(
    partition_dir: str | Path,
    labels: EntryLabels | None = None,
    scheme: str = MONTH,
    retention: int = DEFAULT_RETENTION,
    now: datetime | None = None,
) -> DataStore:
    """Collect entries from every partition file, newest first, capped at *retention*."""
    now = now or datetime.now(timezone.utc)
    items: list[DigestItem] = []
    for path, _bucket in list_partitions(partition_dir, scheme):
        items.extend(extract_file(path, labels, now))

    # All timestamps share one fixed-width ISO format, so string order is time
    # order. The sort is stable: ties keep file order (newest file, top first).
    items.sort(key=lambda item: item.merged_at, reverse=True)
    items = items[:retention]

    return DataStore(last_updated=to_iso(now), total_count=len(items), items=items)


def save_data_store(store: DataStore, path: str | Path) -> None:
    write_json(path, store.to_dict())
    logger.info("Extracted and saved %d PRs to %s", store.total_count, path)


def load_data_store(path: str | Path) -> DataStore:
    """Read a data store written by save_data_store.

    Raises FileNotFoundError when the file is absent and ValueError when it
    is not a valid data store document.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"PR data file not found: {path}")
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ValueError(f"Failed to parse PR data file {path}: {e}") from e
    if not isinstance(data, dict):
        raise ValueError(f"Failed to parse PR data file {path}: expected an object, got {type(data).__name__}")
    return DataStore.from_dict(data)
