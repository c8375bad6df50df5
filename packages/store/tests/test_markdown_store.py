"""Tests for MarkdownStore: duplicate guard and prepend-merge."""

from __future__ import annotations

from datetime import datetime, timezone
from unittest.mock import patch

from prdigest_store.buckets import Bucket
from prdigest_store.entry import render_entry
from prdigest_store.markdown import MarkdownStore, split_document
from prdigest_store.models import DigestEntry

BUCKET = Bucket(2025, 1)
DAY_ONE = datetime(2025, 1, 10, 12, tzinfo=timezone.utc)
DAY_TWO = datetime(2025, 1, 11, 12, tzinfo=timezone.utc)


def _block(number: int, summary: str = "Summary.") -> str:
    return render_entry(
        DigestEntry(
            number=number,
            title=f"PR {number}",
            url=f"https://github.com/owner/repo/pull/{number}",
            merged_at=datetime(2025, 1, 9, tzinfo=timezone.utc),
            author="octocat",
            author_url="https://github.com/octocat",
            summary=summary,
        )
    )


def _store(tmp_path) -> MarkdownStore:
    return MarkdownStore(tmp_path / "monthly", site_title="Owner PR Digest", blurb="Auto summaries.")


# ---------------------------------------------------------------------------
# existing_ids
# ---------------------------------------------------------------------------


class TestExistingIds:
    def test_missing_file_returns_empty_set(self, tmp_path):
        assert _store(tmp_path).existing_ids(BUCKET) == set()

    def test_returns_ids_in_file(self, tmp_path):
        store = _store(tmp_path)
        store.merge(BUCKET, [_block(100)], now=DAY_ONE)
        assert store.existing_ids(BUCKET) == {100}

    def test_malformed_file_does_not_raise(self, tmp_path):
        store = _store(tmp_path)
        store.partition_dir.mkdir(parents=True)
        store.path_for(BUCKET).write_bytes(b"\xff\xfe garbage ## [#x]\n")
        assert store.existing_ids(BUCKET) == set()

    def test_store_does_not_suppress_duplicates(self, tmp_path):
        store = _store(tmp_path)
        store.merge(BUCKET, [_block(100)], now=DAY_ONE)
        store.merge(BUCKET, [_block(100)], now=DAY_TWO)
        content = store.path_for(BUCKET).read_text()
        assert content.count("## [#100]") == 2
        assert store.existing_ids(BUCKET) == {100}


# ---------------------------------------------------------------------------
# merge
# ---------------------------------------------------------------------------


class TestMergeNewFile:
    def test_creates_directory_and_file(self, tmp_path):
        store = _store(tmp_path)
        store.merge(BUCKET, [_block(1)], now=DAY_ONE)
        assert store.path_for(BUCKET).exists()

    def test_synthesizes_preamble_and_header(self, tmp_path):
        store = _store(tmp_path)
        store.merge(BUCKET, [_block(1)], now=DAY_ONE)
        content = store.path_for(BUCKET).read_text()
        assert content.startswith(
            "---\n"
            "title: January 2025\n"
            "description: Owner PR Digest - pull requests merged in January 2025\n"
            "lastUpdated: 2025-01-10\n"
            "---\n\n"
            "# Owner PR Digest - January 2025\n\n"
            "> Auto summaries.\n\n"
        )

    def test_empty_batch_writes_nothing(self, tmp_path):
        store = _store(tmp_path)
        with patch("prdigest_store.markdown.updating") as mock_updating:
            store.merge(BUCKET, [])
        mock_updating.assert_not_called()
        assert not store.partition_dir.exists()


class TestMergeExistingFile:
    def test_new_blocks_above_existing_in_input_order(self, tmp_path):
        store = _store(tmp_path)
        store.merge(BUCKET, [_block(100)], now=DAY_ONE)
        store.merge(BUCKET, [_block(200), _block(300)], now=DAY_TWO)
        content = store.path_for(BUCKET).read_text()
        assert content.index("[#200]") < content.index("[#300]") < content.index("[#100]")

    def test_header_kept_once(self, tmp_path):
        store = _store(tmp_path)
        store.merge(BUCKET, [_block(1)], now=DAY_ONE)
        store.merge(BUCKET, [_block(2)], now=DAY_TWO)
        content = store.path_for(BUCKET).read_text()
        assert content.count("# Owner PR Digest - January 2025") == 1
        assert content.index("> Auto summaries.") < content.index("[#2]")

    def test_last_updated_refreshed_other_keys_untouched(self, tmp_path):
        store = _store(tmp_path)
        store.merge(BUCKET, [_block(1)], now=DAY_ONE)
        store.merge(BUCKET, [_block(2)], now=DAY_TWO)
        content = store.path_for(BUCKET).read_text()
        assert "lastUpdated: 2025-01-11" in content
        assert "lastUpdated: 2025-01-10" not in content
        assert "title: January 2025\n" in content
        assert "description: Owner PR Digest - pull requests merged in January 2025\n" in content

    def test_custom_preamble_keys_preserved(self, tmp_path):
        store = _store(tmp_path)
        path = store.path_for(BUCKET)
        path.parent.mkdir(parents=True)
        path.write_text(
            "---\ntitle: Custom\noutline: deep\nlastUpdated: 2024-12-01\n---\n\n"
            "# Custom header\n\n> Custom blurb.\n\n" + _block(1)
        )
        store.merge(BUCKET, [_block(2)], now=DAY_TWO)
        content = path.read_text()
        assert content.startswith("---\ntitle: Custom\noutline: deep\nlastUpdated: 2025-01-11\n---\n\n")
        assert content.index("> Custom blurb.") < content.index("[#2]") < content.index("[#1]")

    def test_existing_entries_preserved_verbatim(self, tmp_path):
        store = _store(tmp_path)
        store.merge(BUCKET, [_block(1, "Old **summary**.")], now=DAY_ONE)
        before = store.path_for(BUCKET).read_text()
        old_body = before[before.index("\n## [#1]") :]
        store.merge(BUCKET, [_block(2)], now=DAY_TWO)
        assert store.path_for(BUCKET).read_text().endswith(old_body)

    def test_file_without_preamble_kept_below_new_blocks(self, tmp_path):
        store = _store(tmp_path)
        path = store.path_for(BUCKET)
        path.parent.mkdir(parents=True)
        legacy = "Some legacy notes.\n\n# Not a recognised header\n"
        path.write_text(legacy)
        store.merge(BUCKET, [_block(5)], now=DAY_TWO)
        content = path.read_text()
        assert content.startswith("\n## [#5]")
        assert content.endswith("\n" + legacy)
        assert "lastUpdated" not in content

    def test_preamble_without_header(self, tmp_path):
        store = _store(tmp_path)
        path = store.path_for(BUCKET)
        path.parent.mkdir(parents=True)
        path.write_text("---\ntitle: T\nlastUpdated: 2024-01-01\n---\n\nfree text\n")
        store.merge(BUCKET, [_block(9)], now=DAY_TWO)
        content = path.read_text()
        assert content.startswith("---\ntitle: T\nlastUpdated: 2025-01-11\n---\n\n\n## [#9]")
        assert content.endswith("---\n\n\nfree text\n")

    def test_undecodable_bytes_do_not_stop_merge(self, tmp_path):
        store = _store(tmp_path)
        path = store.path_for(BUCKET)
        path.parent.mkdir(parents=True)
        path.write_bytes(b"legacy \xff bytes\n" + _block(1).encode("utf-8"))
        store.merge(BUCKET, [_block(2)], now=DAY_TWO)
        content = path.read_text(encoding="utf-8")
        assert content.startswith("\n## [#2]")
        assert "legacy \ufffd bytes" in content
        assert store.existing_ids(BUCKET) == {1, 2}


class TestSplitDocument:
    def test_no_preamble_is_all_body(self):
        assert split_document("body only", "2025-01-01") == ("", "", "body only")

    def test_header_separated_from_body(self):
        content = "---\ntitle: T\nlastUpdated: x\n---\n\n# H\n\n> blurb\n\nBODY"
        preamble, header, body = split_document(content, "2025-02-02")
        assert preamble == "---\ntitle: T\nlastUpdated: 2025-02-02\n---\n\n"
        assert header == "# H\n\n> blurb\n\n"
        assert body == "BODY"
