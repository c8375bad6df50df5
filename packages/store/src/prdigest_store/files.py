"""Filesystem helpers shared by the store, index and extractor."""

from __future__ import annotations

import json
import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from prdigest_store.buckets import MONTH, Bucket, parse_bucket_filename

logger = logging.getLogger(__name__)


class FileUpdate:
    """The text of one file across a read-transform-write cycle.

    Undecodable bytes are replaced on read so one damaged file cannot stop a
    merge.

    ``original`` is None when the file did not exist. Callers assign the new
    text to ``content``; leaving it None (or unchanged) writes nothing.
    """

    def __init__(self, path: Path):
        self.path = path
        self.original: str | None = path.read_text(encoding="utf-8", errors="replace") if path.exists() else None
        self.content: str | None = self.original

    @property
    def exists(self) -> bool:
        return self.original is not None


@contextmanager
def updating(path: str | Path) -> Iterator[FileUpdate]:
    """Read *path*, let the caller transform it, then write it back if it changed.

    Not atomic. Runs are assumed never to overlap; a per-file lock would be
    acquired and released around this block if that changes.
    """
    update = FileUpdate(Path(path))
    yield update
    if update.content is not None and update.content != update.original:
        update.path.parent.mkdir(parents=True, exist_ok=True)
        update.path.write_text(update.content, encoding="utf-8")
        logger.debug("Wrote %s", update.path)


def write_json(path: str | Path, payload: object) -> None:
    """Write *payload* to *path* as formatted JSON, creating directories as needed."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(payload, indent=2, ensure_ascii=False) + "\n", encoding="utf-8")


def list_partitions(partition_dir: str | Path, scheme: str = MONTH) -> list[tuple[Path, Bucket]]:
    """Partition files in *partition_dir*, newest bucket first.

    Anything not named like a partition (an ``index.md`` landing page, notes,
    drafts) is ignored. A missing directory yields an empty list.
    """
    directory = Path(partition_dir)
    if not directory.is_dir():
        return []
    found = []
    for path in directory.iterdir():
        if not path.is_file():
            continue
        bucket = parse_bucket_filename(path.name, scheme)
        if bucket is not None:
            found.append((path, bucket))
    found.sort(key=lambda item: item[0].name, reverse=True)
    return found
