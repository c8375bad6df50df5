"""Abstract store interface.

The CLI depends on BaseStore, not on a concrete backend, so the partition
layout can change without touching the collection command.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from prdigest_store.buckets import Bucket


class BaseStore(ABC):
    """Persistence for rendered Entry Blocks, one document per bucket."""

    @abstractmethod
    def existing_ids(self, bucket: Bucket) -> set[int]:
        """Return the entry numbers already stored for a bucket.

        Returns an empty set when nothing is stored yet and never raises for
        missing or malformed documents.
        """

    @abstractmethod
    def merge(self, bucket: Bucket, blocks: list[str], now: datetime | None = None) -> None:
        """Prepend rendered blocks, in the given order, above everything already stored."""

    def close(self) -> None:
        """Release any resources held by the store.

        The default is a no-op.
        """
