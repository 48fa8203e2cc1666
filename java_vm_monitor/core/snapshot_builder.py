#!/usr/bin/env python3
"""
Java VM Monitor - Snapshot Builder
Combines parsed tool output with host metadata into one immutable snapshot per
JVM, and drives the collectors for a whole poll cycle.

Every failure degrades to default field values; nothing here aborts a batch.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

import structlog

from .collectors import ToolCollector
from .models import (
    AppInfo, CommandResult, GcParseError, GcStats, JvmSnapshot, PropertyMap,
    RawProcessEntry, SnapshotBatch, UNKNOWN
)
from .parser import (
    DEFAULT_APP_NAME_PREFIX, DEFAULT_MAIN_CLASS_PROPERTY, DEFAULT_VARIANT_PREFIX,
    extract_app_info, parse_gc_table, parse_process_line, parse_property_dump
)

logger = structlog.get_logger()

# Process names reported by jps for its own short-lived JVM
DEFAULT_EXCLUDED_PROCESS_NAMES = (
    "jdk.jcmd/sun.tools.jps.Jps",
    "sun.tools.jps.Jps",
)


def build_snapshot(process_id: str,
                   process_name: str,
                   hostname: str,
                   captured_at: datetime,
                   raw_property_text: Optional[str],
                   raw_gc_text: Optional[str],
                   app_info_config: Optional[Dict[str, Any]] = None) -> JvmSnapshot:
    """
    Build the snapshot of one JVM.

    ``None`` for a text block means its tool failed. The property dump and the
    GC table are parsed and defaulted independently of each other.

    Args:
        process_id: PID as printed by the process lister
        process_name: Name as printed by the process lister
        hostname: Host the batch was collected on
        captured_at: Batch capture time
        raw_property_text: ``jinfo -sysprops`` output or None
        raw_gc_text: ``jstat -gc`` output or None
        app_info_config: Optional overrides for the app info property names

    Returns:
        JvmSnapshot; never raises
    """
    log = logger.bind(pid=process_id)
    app_info_config = app_info_config or {}

    flags: PropertyMap = {}
    app_info = AppInfo()
    if raw_property_text is not None:
        try:
            flags = parse_property_dump(raw_property_text)
            app_info = extract_app_info(
                flags,
                app_name_prefix=app_info_config.get('app_name_prefix', DEFAULT_APP_NAME_PREFIX),
                variant_prefix=app_info_config.get('variant_prefix', DEFAULT_VARIANT_PREFIX),
                main_class_property=app_info_config.get('main_class_property',
                                                        DEFAULT_MAIN_CLASS_PROPERTY),
            )
        except Exception as e:
            log.error("property_parse_error", error=str(e))
            flags, app_info = {}, AppInfo()

    gc_stats = GcStats.unavailable()
    if raw_gc_text is not None:
        try:
            parsed = parse_gc_table(raw_gc_text)
            if isinstance(parsed, GcParseError):
                log.warning("gc_table_unparseable", gc_error=parsed.gc_error)
            else:
                gc_stats = parsed
        except Exception as e:
            log.error("gc_parse_error", error=str(e))

    return JvmSnapshot(
        hostname=hostname,
        captured_at=captured_at,
        process_id=process_id,
        process_name=process_name,
        app_name=app_info.app_name,
        variant=app_info.variant,
        main_class=app_info.main_class,
        old_gen_max_kb=gc_stats.old_gen_max_kb,
        old_gen_current_kb=gc_stats.old_gen_current_kb,
        young_gc_count=gc_stats.young_gc_count,
        young_gc_time_sec=gc_stats.young_gc_time_sec,
        full_gc_count=gc_stats.full_gc_count,
        full_gc_time_sec=gc_stats.full_gc_time_sec,
        total_gc_time_sec=gc_stats.total_gc_time_sec,
        flags=flags,
    )


class SnapshotBuilder:
    """
    Collects one SnapshotBatch per call from a ToolCollector.

    Processes are visited sequentially; a failing tool or an unexpected
    exception for one process only degrades that process's snapshot.
    """

    def __init__(self, collector: ToolCollector,
                 excluded_process_names: Iterable[str] = DEFAULT_EXCLUDED_PROCESS_NAMES,
                 app_info_config: Optional[Dict[str, Any]] = None):
        """
        Args:
            collector: Source of raw tool output
            excluded_process_names: Listed process names to ignore
            app_info_config: Property names used to derive app identity
        """
        self.collector = collector
        self.excluded_process_names = frozenset(excluded_process_names)
        self.app_info_config = app_info_config or {}
        self.logger = structlog.get_logger().bind(component="snapshot_builder")

    async def collect_all_snapshots(self) -> SnapshotBatch:
        """
        Discover every JVM on the host and snapshot each one.

        Returns:
            SnapshotBatch sharing one hostname and capture time
        """
        hostname = await self.resolve_hostname()
        processes = await self.discover_processes()
        return await self.build_batch(processes, hostname)

    async def resolve_hostname(self) -> str:
        result = await self._call("hostname", self.collector.hostname)
        hostname = result.output.strip() if result.ok else ""
        return hostname or UNKNOWN

    async def discover_processes(self) -> List[RawProcessEntry]:
        """
        Run the process lister and parse its output.

        Blank lines and the lister's own JVM are skipped. A failing lister
        yields an empty list.
        """
        result = await self._call("list_processes", self.collector.list_processes)
        if not result.ok:
            self.logger.warning("process_listing_failed",
                                exit_code=result.exit_code,
                                error=result.error.strip())
            return []

        processes = []
        for line in result.output.strip().split("\n"):
            if not line.strip():
                continue
            entry = parse_process_line(line)
            if entry.process_name in self.excluded_process_names:
                continue
            processes.append(entry)

        self.logger.debug("processes_discovered", count=len(processes))
        return processes

    async def build_batch(self, processes: Sequence[Tuple[str, str]],
                          hostname: str) -> SnapshotBatch:
        """
        Snapshot every given process under one shared capture time.

        Args:
            processes: (process_id, process_name) pairs
            hostname: Host the batch is collected on

        Returns:
            SnapshotBatch with exactly one snapshot per given process
        """
        captured_at = datetime.now(timezone.utc)
        snapshots = []

        for process_id, process_name in processes:
            snapshots.append(
                await self._snapshot_process(process_id, process_name, hostname, captured_at)
            )

        self.logger.info("batch_collected",
                         hostname=hostname,
                         processes=len(snapshots),
                         captured_at=captured_at.isoformat())

        return SnapshotBatch(captured_at=captured_at,
                             hostname=hostname,
                             snapshots=tuple(snapshots))

    async def _snapshot_process(self, process_id: str, process_name: str,
                                hostname: str, captured_at: datetime) -> JvmSnapshot:
        property_result = await self._call("dump_properties",
                                           self.collector.dump_properties, process_id)
        if not property_result.ok:
            self.logger.warning("property_dump_failed",
                                pid=process_id,
                                exit_code=property_result.exit_code,
                                error=property_result.error.strip())

        gc_result = await self._call("dump_gc_stats",
                                     self.collector.dump_gc_stats, process_id)
        if not gc_result.ok:
            self.logger.warning("gc_stat_dump_failed",
                                pid=process_id,
                                exit_code=gc_result.exit_code,
                                error=gc_result.error.strip())

        return build_snapshot(
            process_id=process_id,
            process_name=process_name,
            hostname=hostname,
            captured_at=captured_at,
            raw_property_text=property_result.output if property_result.ok else None,
            raw_gc_text=gc_result.output if gc_result.ok else None,
            app_info_config=self.app_info_config,
        )

    async def _call(self, operation: str, func, *args) -> CommandResult:
        # Anything a collector raises becomes a failed result
        try:
            return await func(*args)
        except Exception as e:
            self.logger.error("collector_error", operation=operation,
                              args=list(args), error=str(e))
            return CommandResult(exit_code=-1, error=str(e))
