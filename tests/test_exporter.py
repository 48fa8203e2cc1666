"""
Tests for JSON export and console rendering of snapshot batches.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path

from java_vm_monitor.core.exporter import export_batch_as_json, render_batch_as_text
from java_vm_monitor.core.models import JvmSnapshot, SnapshotBatch
from java_vm_monitor.core.snapshot_builder import build_snapshot

from conftest import JINFO_OUTPUT, JSTAT_OUTPUT

CAPTURED_AT = datetime(2025, 2, 28, 11, 20, 11, 250000, tzinfo=timezone.utc)

EXPORTED_KEYS = {
    "hostname", "captured_at", "process_id", "process_name", "app_name", "variant",
    "main_class", "old_gen_max_kb", "old_gen_current_kb", "young_gc_count",
    "young_gc_time_sec", "full_gc_count", "full_gc_time_sec", "total_gc_time_sec",
    "flags",
}


def make_batch() -> SnapshotBatch:
    return SnapshotBatch(
        captured_at=CAPTURED_AT,
        hostname="jvmhost01",
        snapshots=(
            build_snapshot("1111", "atomatron.worker.agentsystem.Main", "jvmhost01",
                           CAPTURED_AT, JINFO_OUTPUT, JSTAT_OUTPUT),
            build_snapshot("2222", "Unknown", "jvmhost01", CAPTURED_AT, None, None),
        ),
    )


def test_export_round_trip(tmp_path: Path) -> None:
    batch = make_batch()
    target = tmp_path / "jvms.json"

    assert export_batch_as_json(batch, target) is True

    records = json.loads(target.read_text())
    assert isinstance(records, list)
    assert len(records) == 2

    for record, snapshot in zip(records, batch):
        assert set(record) == EXPORTED_KEYS
        expected = snapshot.to_dict()
        for key in EXPORTED_KEYS - {"captured_at"}:
            assert record[key] == expected[key]
        assert datetime.fromisoformat(record["captured_at"]) == snapshot.captured_at


def test_export_keeps_flag_booleans(tmp_path: Path) -> None:
    target = tmp_path / "jvms.json"
    export_batch_as_json(make_batch(), target)

    flags = json.loads(target.read_text())[0]["flags"]
    assert flags["Java"] is True
    assert flags["com.netfolio.appname"] == "mostagents"


def test_export_is_pretty_printed(tmp_path: Path) -> None:
    target = tmp_path / "jvms.json"
    export_batch_as_json(make_batch(), target)
    assert '\n  {\n    "hostname": "jvmhost01"' in target.read_text()


def test_export_empty_batch_writes_empty_array(tmp_path: Path) -> None:
    target = tmp_path / "empty.json"
    assert export_batch_as_json(SnapshotBatch(CAPTURED_AT, "h"), target)
    assert json.loads(target.read_text()) == []


def test_export_write_failure_returns_false(tmp_path: Path) -> None:
    target = tmp_path / "missing-dir" / "jvms.json"
    assert export_batch_as_json(make_batch(), target) is False


def test_export_encoding_failure_leaves_no_file(tmp_path: Path) -> None:
    bad = JvmSnapshot(hostname="h", captured_at=CAPTURED_AT, process_id="1",
                      process_name="x", flags={"weird": object()})  # type: ignore[dict-item]
    target = tmp_path / "bad.json"

    assert export_batch_as_json(SnapshotBatch(CAPTURED_AT, "h", (bad,)), target) is False
    assert not target.exists()


def test_render_layout() -> None:
    text = render_batch_as_text(make_batch())
    lines = text.split("\n")

    assert lines[1] == "=" * 80
    assert lines[2] == f"Java VM Monitor - Host: jvmhost01, Time: {CAPTURED_AT.isoformat()}"
    assert "PID: 1111" in lines
    assert "Name: atomatron.worker.agentsystem.Main" in lines
    assert "App Name: mostagents" in lines
    assert "App Variant: mostagents1" in lines
    assert "Main Class: atomatron.worker.agentsystem.Main" in lines
    assert "  Old Gen Size: 212480.5 KB / 352256.0 KB" in lines
    assert "  Young GC: 152 collections, 1.234s total" in lines
    assert "  Full GC: 3 collections, 0.567s total" in lines
    assert "  Total GC Time: 1.801s" in lines
    assert lines.count("-" * 40) == 2


def test_render_degraded_snapshot_shows_sentinels() -> None:
    text = render_batch_as_text(make_batch())
    assert "App Name: unknown" in text
    assert "  Old Gen Size: N/A KB / N/A KB" in text


def test_render_empty_batch_has_banner_only() -> None:
    text = render_batch_as_text(SnapshotBatch(CAPTURED_AT, "jvmhost01"))
    assert "Host: jvmhost01" in text
    assert "PID:" not in text
