"""Partition manifest and the landing page's "latest" link."""

from __future__ import annotations

import logging
import re
from pathlib import Path

from prdigest_store.buckets import MONTH, SECTIONS
from prdigest_store.files import list_partitions, updating, write_json
from prdigest_store.models import IndexEntry

logger = logging.getLogger(__name__)


def build_index(partition_dir: str | Path, scheme: str = MONTH) -> list[IndexEntry]:
    """Describe every partition file on disk, newest bucket first."""
    section = SECTIONS[scheme]
    return [
        IndexEntry(
            filename=path.name,
            year=path.name[:4],
            bucket=bucket.number,
            title=bucket.title,
            url=f"{section}/{path.name}",
        )
        for path, bucket in list_partitions(partition_dir, scheme)
    ]


def rebuild_index(partition_dir: str | Path, index_file: str | Path, scheme: str = MONTH) -> list[IndexEntry]:
    """Regenerate the manifest from scratch and write it to *index_file*."""
    manifest = build_index(partition_dir, scheme)
    write_json(index_file, [entry.to_dict() for entry in manifest])
    logger.info("Generated index with %d entries: %s", len(manifest), index_file)
    return manifest


def latest_bucket_url(manifest: list[IndexEntry]) -> str | None:
    """Site-relative URL of the newest partition, e.g. ``/monthly/2025-01.md``."""
    if not manifest:
        return None
    return f"/{manifest[0].url}"


def latest_link_re(label: str, section: str) -> re.Pattern:
    # e.g. "text: Latest PRs\n        link: /monthly/2025-01.md" inside the hero actions
    return re.compile(rf"(text: {re.escape(label)}[\s\S]*?link: )/{re.escape(section)}/[\w-]+\.md")


def update_latest_pointer(
    manifest: list[IndexEntry],
    landing_page: str | Path,
    label: str = "Latest PRs",
    scheme: str = MONTH,
) -> bool:
    """Point the landing page's labelled link at the newest bucket.

    Returns True when the page was rewritten. A missing page or a page
    without the labelled link is left alone.
    """
    latest = latest_bucket_url(manifest)
    if latest is None:
        return False

    landing_page = Path(landing_page)
    if not landing_page.exists():
        logger.info("Landing page %s not found, skipping latest-link update", landing_page)
        return False

    pattern = latest_link_re(label, SECTIONS[scheme])
    with updating(landing_page) as doc:
        doc.content = pattern.sub(lambda m: m.group(1) + latest, doc.original, count=1)
        changed = doc.content != doc.original

    if changed:
        logger.info("Updated landing page link to: %s", latest)
    return changed
