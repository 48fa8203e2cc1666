#!/usr/bin/env python3
"""
Java VM Monitor - Poll Loop
Drives snapshot collection on a fixed interval, or once.

States: IDLE -> POLLING -> (SLEEPING -> POLLING)* -> STOPPED

Continuous mode has no stop condition of its own; it ends only when its task
is cancelled (SIGINT/SIGTERM in the CLI).
"""

import asyncio
import sys
import time
from enum import Enum
from pathlib import Path
from typing import Callable, Optional, Union

import structlog

from .exporter import export_batch_as_json, render_batch_as_text
from .history_store import HistoryStore
from .models import SnapshotBatch
from .snapshot_builder import SnapshotBuilder


class PollState(Enum):
    """Poll loop lifecycle states."""
    IDLE = "idle"           # Created, no pass started yet
    POLLING = "polling"     # Collecting, printing and storing a batch
    SLEEPING = "sleeping"   # Waiting for the next pass
    STOPPED = "stopped"     # Finished (run once) or cancelled


def _print_to_console(text: str) -> None:
    sys.stdout.write(text + "\n")
    sys.stdout.flush()


class PollLoop:
    """
    Owns the history store and runs collection passes.

    Each pass collects a batch, prints it, exports it when an export path is
    configured, stores it and trims the history.
    """

    def __init__(self, builder: SnapshotBuilder,
                 history: Optional[HistoryStore] = None,
                 interval_ms: int = 5000,
                 export_path: Optional[Union[str, Path]] = None,
                 output: Callable[[str], None] = _print_to_console):
        """
        Args:
            builder: Collects batches from the JDK tools
            history: Store for collected batches (a default-sized one if omitted)
            interval_ms: Sleep between passes in milliseconds
            export_path: JSON file rewritten with every batch, if set
            output: Sink for the console rendering of each batch
        """
        self.builder = builder
        self.history = history if history is not None else HistoryStore()
        self.interval_ms = interval_ms
        self.export_path = export_path
        self.output = output

        self.state = PollState.IDLE
        self.pass_count = 0
        self.error_count = 0
        self.last_export_ok: Optional[bool] = None
        self.logger = structlog.get_logger().bind(component="poll_loop")

    async def poll(self) -> SnapshotBatch:
        """Run one collection pass and return its batch."""
        self.state = PollState.POLLING
        self.pass_count += 1
        start_time = time.time()

        batch = await self.builder.collect_all_snapshots()
        self.output(render_batch_as_text(batch))

        if self.export_path:
            self.last_export_ok = export_batch_as_json(batch, self.export_path)

        self.history.insert(batch)
        self.history.evict_excess()

        self.logger.info("poll_pass_complete",
                         pass_count=self.pass_count,
                         processes=len(batch),
                         history_size=len(self.history),
                         execution_time=time.time() - start_time)
        return batch

    async def run_once(self) -> SnapshotBatch:
        """Run exactly one pass, then stop."""
        try:
            return await self.poll()
        finally:
            self.state = PollState.STOPPED

    async def run_forever(self) -> None:
        """
        Poll every ``interval_ms`` until the task is cancelled.

        A pass that raises is logged and the loop carries on after the usual
        sleep. A slow pass delays the next one; there is no catch-up.
        """
        self.logger.info("starting_continuous_polling", interval_ms=self.interval_ms)

        try:
            while True:
                try:
                    await self.poll()
                except Exception as e:
                    self.error_count += 1
                    self.logger.error("poll_pass_error", error=str(e), exc_info=True)

                self.state = PollState.SLEEPING
                await asyncio.sleep(self.interval_ms / 1000)
        finally:
            self.state = PollState.STOPPED
            self.logger.info("polling_stopped", pass_count=self.pass_count)
