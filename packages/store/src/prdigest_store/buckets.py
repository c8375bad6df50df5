"""Time buckets that partition digest entries into files.

A bucket is either a calendar month or an ISO week. Both schemes share one
filename shape, ``{year:4}-{number:02}.md``, so a reverse lexicographic sort
of partition filenames is also a newest-first sort.
"""

from __future__ import annotations

import calendar
import re
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

MONTH = "month"
WEEK = "week"
SCHEMES = (MONTH, WEEK)

# Sub-directory of the docs root that holds the partition files.
SECTIONS = {MONTH: "monthly", WEEK: "weekly"}

FILENAME_RE = re.compile(r"^(\d{4})-(\d{2})\.md$")


@dataclass(frozen=True, order=True)
class Bucket:
    year: int
    number: int
    scheme: str = MONTH

    @property
    def key(self) -> str:
        return f"{self.year:04d}-{self.number:02d}"

    @property
    def filename(self) -> str:
        return f"{self.key}.md"

    @property
    def title(self) -> str:
        if self.scheme == WEEK:
            return f"{self.year} Week {self.number}"
        return f"{calendar.month_name[self.number]} {self.year}"


def _check_scheme(scheme: str) -> None:
    if scheme not in SCHEMES:
        raise ValueError(f"Unknown partition scheme: {scheme!r}. Choose 'month' or 'week'.")


def bucket_for(instant: datetime, scheme: str = MONTH) -> Bucket:
    """Return the bucket containing *instant* (naive datetimes are taken as UTC)."""
    _check_scheme(scheme)
    if instant.tzinfo is None:
        instant = instant.replace(tzinfo=timezone.utc)
    instant = instant.astimezone(timezone.utc)
    if scheme == WEEK:
        # ISO week-numbering year, so the last days of December can belong
        # to week 1 of the following year.
        iso_year, iso_week, _ = instant.isocalendar()
        return Bucket(iso_year, iso_week, WEEK)
    return Bucket(instant.year, instant.month, MONTH)


def bucket_key(instant: datetime, scheme: str = MONTH) -> str:
    return bucket_for(instant, scheme).key


def bucket_filename(instant: datetime, scheme: str = MONTH) -> str:
    return bucket_for(instant, scheme).filename


def parse_bucket_filename(filename: str, scheme: str = MONTH) -> Bucket | None:
    """Return the bucket encoded in a partition filename, or None for any other file."""
    match = FILENAME_RE.match(filename)
    if not match:
        return None
    year, number = int(match.group(1)), int(match.group(2))
    upper = 53 if scheme == WEEK else 12
    if not 1 <= number <= upper:
        return None
    return Bucket(year, number, scheme)


def window_buckets(now: datetime, days: int, scheme: str = MONTH) -> list[Bucket]:
    """Every bucket touched by the trailing window ``[now - days, now]``, newest first."""
    seen: set[Bucket] = set()
    for offset in range(max(days, 0) + 1):
        seen.add(bucket_for(now - timedelta(days=offset), scheme))
    return sorted(seen, reverse=True)
