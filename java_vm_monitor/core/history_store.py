#!/usr/bin/env python3
"""
Java VM Monitor - Snapshot History
Bounded in-memory retention of snapshot batches keyed by capture time.
"""

import threading
from typing import Dict, List, Optional, Tuple

import structlog

from .models import SnapshotBatch

DEFAULT_RETENTION_COUNT = 100


class HistoryStore:
    """
    Keeps the most recent snapshot batches, keyed by capture time in ms.

    Written by the poll loop only; reads may come from any thread and always
    receive copies.
    """

    def __init__(self, retention_count: int = DEFAULT_RETENTION_COUNT):
        if retention_count < 1:
            raise ValueError("retention_count must be >= 1")

        self.retention_count = retention_count
        self._batches: Dict[int, SnapshotBatch] = {}
        self._lock = threading.Lock()
        self.logger = structlog.get_logger().bind(component="history_store")

    def insert(self, batch: SnapshotBatch) -> int:
        """
        Store a batch under its capture time; a batch captured in the same
        millisecond as an existing one replaces it.

        Returns:
            The key the batch was stored under
        """
        key = batch.key_ms
        with self._lock:
            self._batches[key] = batch
        return key

    def evict_excess(self, keep_count: Optional[int] = None) -> int:
        """
        Delete the oldest batches until at most ``keep_count`` remain.

        Args:
            keep_count: Batches to keep (defaults to the store's retention count)

        Returns:
            Number of batches evicted
        """
        if keep_count is None:
            keep_count = self.retention_count

        with self._lock:
            excess = len(self._batches) - keep_count
            if excess <= 0:
                return 0

            for key in sorted(self._batches)[:excess]:
                del self._batches[key]

        self.logger.debug("history_evicted", evicted=excess, kept=keep_count)
        return excess

    def all(self) -> List[Tuple[int, SnapshotBatch]]:
        """All stored (key, batch) pairs, oldest first."""
        with self._lock:
            return sorted(self._batches.items())

    def latest(self) -> Optional[SnapshotBatch]:
        with self._lock:
            if not self._batches:
                return None
            return self._batches[max(self._batches)]

    def __len__(self) -> int:
        with self._lock:
            return len(self._batches)
