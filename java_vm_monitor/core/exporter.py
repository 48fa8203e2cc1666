#!/usr/bin/env python3
"""
Java VM Monitor - Batch Export and Console Rendering
"""

import json
from pathlib import Path
from typing import Union

import structlog

from .models import SnapshotBatch

logger = structlog.get_logger()

RULE_WIDTH = 80


def export_batch_as_json(batch: SnapshotBatch, file_path: Union[str, Path]) -> bool:
    """
    Write a batch to disk as a pretty-printed JSON array.

    The batch is encoded before the file is opened, so an encoding failure
    leaves any existing file untouched.

    Args:
        batch: Batch to export
        file_path: Destination file

    Returns:
        True if the file was written, False otherwise
    """
    try:
        payload = json.dumps([snapshot.to_dict() for snapshot in batch], indent=2)
    except (TypeError, ValueError) as e:
        logger.error("batch_encoding_error", file_path=str(file_path), error=str(e))
        return False

    try:
        with open(file_path, 'w') as f:
            f.write(payload)
    except OSError as e:
        logger.error("batch_export_write_error", file_path=str(file_path), error=str(e))
        return False

    logger.info("batch_exported", file_path=str(file_path), processes=len(batch))
    return True


def render_batch_as_text(batch: SnapshotBatch) -> str:
    """Format a batch for console display, one block per JVM."""
    lines = [
        "",
        "=" * RULE_WIDTH,
        f"Java VM Monitor - Host: {batch.hostname}, Time: {batch.captured_at.isoformat()}",
        "=" * RULE_WIDTH,
    ]

    for vm in batch:
        lines.extend([
            f"PID: {vm.process_id}",
            f"Name: {vm.process_name}",
            f"App Name: {vm.app_name}",
            f"App Variant: {vm.variant}",
            f"Main Class: {vm.main_class}",
            "",
            "Garbage Collection Stats:",
            f"  Old Gen Size: {vm.old_gen_current_kb} KB / {vm.old_gen_max_kb} KB",
            f"  Young GC: {vm.young_gc_count} collections, {vm.young_gc_time_sec}s total",
            f"  Full GC: {vm.full_gc_count} collections, {vm.full_gc_time_sec}s total",
            f"  Total GC Time: {vm.total_gc_time_sec}s",
            "-" * 40,
        ])

    return "\n".join(lines)
