#!/usr/bin/env python3
"""
Java VM Monitor
Periodic identity and garbage collection snapshots of the JVMs on a host,
collected with the JDK diagnostic tools.
"""

__version__ = "0.1.0"
__author__ = "Java VM Monitor Team"

from .core.models import (
    AppInfo,
    CommandResult,
    GcParseError,
    GcStats,
    JvmSnapshot,
    RawProcessEntry,
    SnapshotBatch
)

from .core.history_store import HistoryStore
from .core.poll_loop import PollLoop, PollState
from .core.snapshot_builder import SnapshotBuilder, build_snapshot

__all__ = [
    # Data structures
    'AppInfo',
    'CommandResult',
    'GcParseError',
    'GcStats',
    'JvmSnapshot',
    'RawProcessEntry',
    'SnapshotBatch',

    # Pipeline
    'HistoryStore',
    'PollLoop',
    'PollState',
    'SnapshotBuilder',
    'build_snapshot',

    # Version info
    '__version__',
    '__author__'
]
