"""Tests for bucket keys and partition filenames."""

from datetime import datetime, timedelta, timezone

import pytest

from prdigest_store.buckets import (
    Bucket,
    bucket_filename,
    bucket_for,
    bucket_key,
    parse_bucket_filename,
    window_buckets,
)


def _utc(*args):
    return datetime(*args, tzinfo=timezone.utc)


class TestMonthBuckets:
    def test_key_is_zero_padded(self):
        assert bucket_key(_utc(2025, 1, 15)) == "2025-01"

    def test_filename(self):
        assert bucket_filename(_utc(2025, 12, 31, 23, 59)) == "2025-12.md"

    def test_naive_datetime_treated_as_utc(self):
        assert bucket_key(datetime(2025, 3, 1)) == "2025-03"

    def test_aware_datetime_converted_to_utc(self):
        # 00:30 on Feb 1 at UTC+9 is still January in UTC.
        tokyo = timezone(timedelta(hours=9))
        assert bucket_key(datetime(2025, 2, 1, 0, 30, tzinfo=tokyo)) == "2025-01"

    def test_title(self):
        assert bucket_for(_utc(2025, 1, 15)).title == "January 2025"

    def test_later_instants_never_sort_earlier(self):
        start = _utc(2023, 1, 1)
        filenames = [bucket_filename(start + timedelta(days=d)) for d in range(0, 3 * 365, 5)]
        assert filenames == sorted(filenames)


class TestWeekBuckets:
    def test_iso_week_number(self):
        assert bucket_key(_utc(2025, 2, 12), "week") == "2025-07"

    def test_year_boundary_uses_iso_year(self):
        # 2025-12-29 is a Monday in ISO week 1 of 2026.
        assert bucket_key(_utc(2025, 12, 29), "week") == "2026-01"

    def test_later_instants_never_sort_earlier(self):
        start = _utc(2023, 1, 1)
        filenames = [bucket_filename(start + timedelta(days=d), "week") for d in range(0, 3 * 365)]
        assert filenames == sorted(filenames)

    def test_title(self):
        assert bucket_for(_utc(2025, 2, 12), "week").title == "2025 Week 7"


def test_unknown_scheme_raises():
    with pytest.raises(ValueError):
        bucket_for(_utc(2025, 1, 1), "day")


class TestParseBucketFilename:
    def test_parses_partition_file(self):
        assert parse_bucket_filename("2025-03.md") == Bucket(2025, 3)

    def test_rejects_landing_page(self):
        assert parse_bucket_filename("index.md") is None

    def test_rejects_out_of_range_month(self):
        assert parse_bucket_filename("2025-13.md") is None

    def test_week_scheme_accepts_week_53(self):
        assert parse_bucket_filename("2026-53.md", "week") == Bucket(2026, 53, "week")

    def test_rejects_other_extensions(self):
        assert parse_bucket_filename("2025-03.md.bak") is None


class TestWindowBuckets:
    def test_single_bucket_mid_month(self):
        assert window_buckets(_utc(2025, 1, 15), 1) == [Bucket(2025, 1)]

    def test_window_crossing_month_boundary(self):
        assert window_buckets(_utc(2025, 2, 1, 3), 1) == [Bucket(2025, 2), Bucket(2025, 1)]
