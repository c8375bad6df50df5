"""Entry Block grammar.

Every partition file body is a sequence of blocks shaped like::

    ## [#123](https://github.com/owner/repo/pull/123) Title

    **Merged**: 2025/01/15 | **Author**: [@login](https://github.com/login)

    summary text, inserted verbatim

    ---

The heading line is the dedup key and the anchor the extractor slices on, so
its shape is defined here once and shared by the writer and both readers.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import NamedTuple

from prdigest_store.models import DigestEntry

logger = logging.getLogger(__name__)

# Anchored to the start of a line: a "## [#n]" fragment inside a summary
# paragraph is not a heading.
HEADING_RE = re.compile(r"^## \[#(\d+)\]\(([^)\s]+)\) (.+?)[ \t]*$", re.MULTILINE)
SEPARATOR = "---"
SEPARATOR_RE = re.compile(r"^---$", re.MULTILINE)

UNKNOWN_AUTHOR = "unknown"
UNKNOWN_DATE = "unknown"
UNTITLED = "(untitled)"


@dataclass(frozen=True)
class EntryLabels:
    """Site-language labels used in the metadata line."""

    merged: str = "Merged"
    author: str = "Author"
    date_format: str = "%Y/%m/%d"

    @property
    def metadata_re(self) -> re.Pattern:
        return re.compile(
            rf"\*\*{re.escape(self.merged)}\*\*: (.+?) \| "
            rf"\*\*{re.escape(self.author)}\*\*: \[@(.+?)\]\((.+?)\)"
        )


class EntryBlock(NamedTuple):
    number: int
    title: str
    url: str
    date_text: str
    author: str
    author_url: str
    summary: str


def render_entry(entry: DigestEntry, labels: EntryLabels | None = None) -> str:
    """Render one entry as a self-contained markdown block.

    The summary is inserted as-is; a missing author renders as ``unknown`` and
    a blank title as ``(untitled)`` so the heading stays scannable.
    """
    labels = labels or EntryLabels()
    date = entry.merged_at.strftime(labels.date_format) if entry.merged_at else UNKNOWN_DATE
    title = " ".join(entry.title.splitlines()).strip() or UNTITLED
    author = entry.author or UNKNOWN_AUTHOR
    author_url = entry.author_url or "#"
    return (
        f"\n## [#{entry.number}]({entry.url}) {title}\n"
        f"\n**{labels.merged}**: {date} | **{labels.author}**: [@{author}]({author_url})\n"
        f"\n{entry.summary}\n"
        f"\n{SEPARATOR}\n"
    )


def scan_ids(content: str) -> set[int]:
    """Return every entry number whose heading appears in *content*."""
    return {int(match.group(1)) for match in HEADING_RE.finditer(content)}


def parse_entries(content: str, labels: EntryLabels | None = None, source: str = "") -> list[EntryBlock]:
    """Split *content* into Entry Blocks, top to bottom.

    Each block runs from its heading to the next heading (or end of file).
    Blocks without a metadata line or a closing separator are skipped with
    a warning; the rest of the document is still returned.
    """
    labels = labels or EntryLabels()
    metadata_re = labels.metadata_re
    headings = list(HEADING_RE.finditer(content))
    blocks: list[EntryBlock] = []

    for i, heading in enumerate(headings):
        number = int(heading.group(1))
        end = headings[i + 1].start() if i + 1 < len(headings) else len(content)
        chunk = content[heading.start() : end]

        meta = metadata_re.search(chunk)
        if not meta:
            logger.warning("Could not extract metadata for PR #%d in %s", number, source or "<content>")
            continue

        summary_start = chunk.find("\n\n", meta.end())
        separator = SEPARATOR_RE.search(chunk, summary_start) if summary_start != -1 else None
        if separator is None:
            logger.warning("Could not extract summary for PR #%d in %s", number, source or "<content>")
            continue

        blocks.append(
            EntryBlock(
                number=number,
                title=heading.group(3).strip(),
                url=heading.group(2),
                date_text=meta.group(1).strip(),
                author=meta.group(2).strip(),
                author_url=meta.group(3).strip(),
                summary=chunk[summary_start : separator.start()].strip(),
            )
        )

    return blocks
