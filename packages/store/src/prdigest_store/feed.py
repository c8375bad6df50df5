"""RSS 2.0 feed rendered from the flattened data store."""

from __future__ import annotations

import html
import logging
import re
from datetime import datetime, timezone
from email.utils import format_datetime
from pathlib import Path
from xml.etree import ElementTree as ET

from prdigest_store.extractor import load_data_store
from prdigest_store.models import DataStore, DigestItem

logger = logging.getLogger(__name__)

ATOM_NS = "http://www.w3.org/2005/Atom"
CONTENT_NS = "http://purl.org/rss/1.0/modules/content/"
DC_NS = "http://purl.org/dc/elements/1.1/"

ET.register_namespace("atom", ATOM_NS)
ET.register_namespace("content", CONTENT_NS)
ET.register_namespace("dc", DC_NS)

# Applied in order; later rules see the output of earlier ones.
_MARKUP_RULES = [
    (re.compile(r"^### (.*?)$", re.MULTILINE), r"<h3>\1</h3>"),
    (re.compile(r"^## (.*?)$", re.MULTILINE), r"<h2>\1</h2>"),
    (re.compile(r"^# (.*?)$", re.MULTILINE), r"<h1>\1</h1>"),
    (re.compile(r"```(\w+)?\n(.*?)```", re.DOTALL), r"<pre><code>\2</code></pre>"),
    (re.compile(r"`([^`]+)`"), r"<code>\1</code>"),
    (re.compile(r"\*\*([^*]+)\*\*"), r"<strong>\1</strong>"),
    (re.compile(r"^- (.*?)$", re.MULTILINE), r"<li>\1</li>"),
    (re.compile(r"\n\n"), "</p><p>"),
    (re.compile(r"\n"), "<br>"),
]
_LIST_RUN_RE = re.compile(r"(?:<li>.*?</li>)+", re.DOTALL)


def summary_to_html(summary: str) -> str:
    """Convert a summary's lightweight markdown into HTML for feed readers."""
    text = html.escape(summary.strip(), quote=False)
    for pattern, replacement in _MARKUP_RULES:
        text = pattern.sub(replacement, text)
    # Adjacent list lines were joined by <br>; drop it so they form one run.
    text = text.replace("</li><br><li>", "</li><li>")
    text = f"<p>{text}</p>"
    return _LIST_RUN_RE.sub(lambda m: f"<ul>{m.group(0)}</ul>", text)


def _parse_iso(value: str) -> datetime:
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def _rfc822(value: str) -> str:
    return format_datetime(_parse_iso(value), usegmt=True)


class FeedRenderer:
    """Writes ``feed.xml`` from the JSON data store.

    A missing or corrupt data store is an error for this step; an empty one
    is a valid state and produces no feed.

    Item links are keyed by merge month (``{section}/{yyyy-mm}#pr-{n}``) for
    every partition scheme, weekly included.
    """

    def __init__(
        self,
        data_file: str | Path,
        output_file: str | Path,
        base_url: str,
        section: str | None = "monthly",
        title: str = "PR Digest",
        description: str = "Summaries of recently merged pull requests",
        language: str = "en",
        copyright: str | None = None,
    ):
        self.data_file = Path(data_file)
        self.output_file = Path(output_file)
        self.base_url = base_url.rstrip("/")
        self.section = section
        self.title = title
        self.description = description
        self.language = language
        self.copyright = copyright

    def generate(self) -> int:
        """Render and write the feed. Returns the number of items written (0 when skipped)."""
        store = load_data_store(self.data_file)
        if not store.items:
            logger.info("No PR data available, skipping feed generation")
            return 0

        self.output_file.parent.mkdir(parents=True, exist_ok=True)
        self.output_file.write_text(self.render(store), encoding="utf-8")
        logger.info("Feed with %d items written to %s", len(store.items), self.output_file)
        return len(store.items)

    def item_link(self, item: DigestItem) -> str:
        prefix = f"{self.base_url}/{self.section}" if self.section else self.base_url
        return f"{prefix}/{item.merged_at[:7]}#pr-{item.number}"

    def render(self, store: DataStore) -> str:
        rss = ET.Element("rss", {"version": "2.0"})
        channel = ET.SubElement(rss, "channel")
        ET.SubElement(channel, "title").text = self.title
        ET.SubElement(channel, "link").text = self.base_url
        ET.SubElement(channel, "description").text = self.description
        ET.SubElement(channel, "language").text = self.language
        if self.copyright:
            ET.SubElement(channel, "copyright").text = self.copyright
        if store.last_updated:
            ET.SubElement(channel, "lastBuildDate").text = _rfc822(store.last_updated)
        ET.SubElement(channel, "generator").text = "prdigest"
        ET.SubElement(
            channel,
            f"{{{ATOM_NS}}}link",
            {"href": f"{self.base_url}/feed.xml", "rel": "self", "type": "application/rss+xml"},
        )

        for item in store.items:
            self._add_item(channel, item)

        ET.indent(rss)
        return '<?xml version="1.0" encoding="utf-8"?>\n' + ET.tostring(rss, encoding="unicode") + "\n"

    def _add_item(self, channel: ET.Element, item: DigestItem) -> None:
        entry = ET.SubElement(channel, "item")
        ET.SubElement(entry, "title").text = f"[#{item.number}] {item.title}"
        ET.SubElement(entry, "link").text = self.item_link(item)
        # The source URL never changes between regenerations, so readers
        # can dedupe on it.
        ET.SubElement(entry, "guid", {"isPermaLink": "true"}).text = item.url
        ET.SubElement(entry, "pubDate").text = _rfc822(item.merged_at)
        ET.SubElement(entry, "description").text = item.summary
        ET.SubElement(entry, f"{{{CONTENT_NS}}}encoded").text = summary_to_html(item.summary)
        ET.SubElement(entry, f"{{{DC_NS}}}creator").text = f"@{item.author}"
