#!/usr/bin/env python3
"""
Java VM Monitor - Core Module
"""

from .models import (
    AppInfo,
    CommandResult,
    GcParseError,
    GcStats,
    JvmSnapshot,
    RawProcessEntry,
    SnapshotBatch,
    NOT_AVAILABLE,
    UNKNOWN
)

from .parser import (
    extract_app_info,
    parse_gc_table,
    parse_process_line,
    parse_property_dump
)

from .collectors import ToolCollector
from .snapshot_builder import SnapshotBuilder, build_snapshot
from .history_store import HistoryStore
from .exporter import export_batch_as_json, render_batch_as_text
from .poll_loop import PollLoop, PollState

__all__ = [
    # Data structures
    'AppInfo',
    'CommandResult',
    'GcParseError',
    'GcStats',
    'JvmSnapshot',
    'RawProcessEntry',
    'SnapshotBatch',
    'NOT_AVAILABLE',
    'UNKNOWN',

    # Parsing
    'extract_app_info',
    'parse_gc_table',
    'parse_process_line',
    'parse_property_dump',

    # Pipeline
    'ToolCollector',
    'SnapshotBuilder',
    'build_snapshot',
    'HistoryStore',
    'export_batch_as_json',
    'render_batch_as_text',
    'PollLoop',
    'PollState'
]
