"""MarkdownStore: one markdown document per time bucket.

Document layout, top to bottom::

    ---                      <- preamble (front matter), lastUpdated refreshed on every merge
    title: January 2025
    description: ...
    lastUpdated: 2025-01-15
    ---

    # Site - January 2025   <- static header: title line + blurb

    > blurb

    <newest batch of blocks>
    <older batches ...>

Merging only ever prepends a batch below the header. Existing blocks are
never reordered or removed.
"""

from __future__ import annotations

import logging
import re
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING

from prdigest_store.base import BaseStore
from prdigest_store.buckets import MONTH
from prdigest_store.entry import scan_ids
from prdigest_store.files import updating

if TYPE_CHECKING:
    from prdigest_store.buckets import Bucket

logger = logging.getLogger(__name__)

PREAMBLE_RE = re.compile(r"^---\n(.*?)\n---\n", re.DOTALL)
HEADER_RE = re.compile(r"\s*(# .*?\n\n> .*?\n\n)")
LAST_UPDATED_RE = re.compile(r"^lastUpdated: .*$", re.MULTILINE)


def split_document(content: str, today: str) -> tuple[str, str, str]:
    """Split an existing document into ``(preamble, header, body)``.

    The preamble comes back with ``lastUpdated`` set to *today* and every
    other key untouched. A document without a preamble is all body, and no
    header is looked for: new blocks land above the old text as-is.
    """
    preamble_match = PREAMBLE_RE.match(content)
    if not preamble_match:
        return "", "", content

    fields = LAST_UPDATED_RE.sub(f"lastUpdated: {today}", preamble_match.group(1), count=1)
    preamble = f"---\n{fields}\n---\n\n"
    rest = content[preamble_match.end() :]

    header_match = HEADER_RE.match(rest)
    if not header_match:
        return preamble, "", rest
    return preamble, header_match.group(1), rest[header_match.end() :]


class MarkdownStore(BaseStore):
    """Stores Entry Blocks in ``{partition_dir}/{YYYY-NN}.md`` files."""

    def __init__(
        self,
        partition_dir: str | Path,
        site_title: str = "PR Digest",
        blurb: str = "Merged pull requests, summarized automatically.",
        scheme: str = MONTH,
    ):
        self.partition_dir = Path(partition_dir)
        self.site_title = site_title
        # The header pattern expects the blurb on a single line.
        self.blurb = " ".join(blurb.split())
        self.scheme = scheme

    def path_for(self, bucket: Bucket) -> Path:
        return self.partition_dir / bucket.filename

    def existing_ids(self, bucket: Bucket) -> set[int]:
        path = self.path_for(bucket)
        if not path.exists():
            return set()
        return scan_ids(path.read_text(encoding="utf-8", errors="replace"))

    def merge(self, bucket: Bucket, blocks: list[str], now: datetime | None = None) -> None:
        if not blocks:
            return

        now = now or datetime.now(timezone.utc)
        today = now.astimezone(timezone.utc).date().isoformat()
        path = self.path_for(bucket)

        with updating(path) as doc:
            if doc.exists:
                logger.info("Updating existing file: %s", path.name)
                preamble, header, body = split_document(doc.original, today)
            else:
                logger.info("Creating new file: %s", path.name)
                preamble, header, body = self._new_preamble(bucket, today), self._new_header(bucket), ""
            doc.content = preamble + header + "\n".join(blocks) + "\n" + body

        logger.info("Merged %d block(s) into %s", len(blocks), path)

    def _new_preamble(self, bucket: Bucket, today: str) -> str:
        return (
            "---\n"
            f"title: {bucket.title}\n"
            f"description: {self.site_title} - pull requests merged in {bucket.title}\n"
            f"lastUpdated: {today}\n"
            "---\n\n"
        )

    def _new_header(self, bucket: Bucket) -> str:
        return f"# {self.site_title} - {bucket.title}\n\n> {self.blurb}\n\n"
