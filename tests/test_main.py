"""
Tests for the command-line entry point.

``run`` accepts an injected collector, so the CLI wiring can be exercised end
to end with canned tool output.
"""

from __future__ import annotations

import asyncio
import json
from pathlib import Path

import pytest

from java_vm_monitor.config.config_manager import ConfigManager
from java_vm_monitor.main import apply_cli_overrides, build_parser, main, run

from conftest import FakeCollector


def test_parser_defaults_leave_config_untouched() -> None:
    args = build_parser().parse_args([])

    assert args.interval is None
    assert args.once is None
    assert args.export is None
    assert args.config is None


def test_parser_short_flags() -> None:
    args = build_parser().parse_args(["-i", "2500", "-o", "-e", "out.json", "-r", "10"])

    assert args.interval == 2500
    assert args.once is True
    assert args.export == "out.json"
    assert args.retention == 10


def test_parser_rejects_non_integer_interval(capsys) -> None:
    with pytest.raises(SystemExit) as exc_info:
        build_parser().parse_args(["--interval", "soon"])
    assert exc_info.value.code == 2


@pytest.mark.asyncio
async def test_cli_overrides_take_precedence() -> None:
    manager = ConfigManager()
    assert await manager.load_config()

    apply_cli_overrides(manager, build_parser().parse_args(["--interval", "750", "--once"]))

    assert manager.get_section('monitor.interval_ms') == 750
    assert manager.get_section('monitor.run_once') is True
    assert manager.get_section('monitor.retention_count') == 100


@pytest.mark.asyncio
async def test_run_once_with_export(three_jvm_collector: FakeCollector,
                                    tmp_path: Path, capsys) -> None:
    target = tmp_path / "jvms.json"
    manager = ConfigManager()
    assert await manager.load_config()
    manager.set_value('monitor.run_once', True)
    manager.set_value('monitor.export_path', str(target))

    exit_code = await run(manager, collector=three_jvm_collector)

    assert exit_code == 0
    assert len(json.loads(target.read_text())) == 3
    out = capsys.readouterr().out
    assert "Java VM Monitor - Host: jvmhost01" in out
    assert f"Data exported to {target}" in out


@pytest.mark.asyncio
async def test_run_once_failed_export_exits_1(three_jvm_collector: FakeCollector,
                                              tmp_path: Path) -> None:
    manager = ConfigManager()
    assert await manager.load_config()
    manager.set_value('monitor.run_once', True)
    manager.set_value('monitor.export_path', str(tmp_path / "no-dir" / "jvms.json"))

    assert await run(manager, collector=three_jvm_collector) == 1


@pytest.mark.asyncio
async def test_continuous_run_stops_on_cancel(three_jvm_collector: FakeCollector) -> None:
    manager = ConfigManager()
    assert await manager.load_config()
    manager.set_value('monitor.interval_ms', 1)

    task = asyncio.create_task(run(manager, collector=three_jvm_collector))
    await asyncio.sleep(0.05)
    task.cancel()

    with pytest.raises(asyncio.CancelledError):
        await task
    assert three_jvm_collector.calls.count("list_processes") >= 1


@pytest.mark.asyncio
async def test_main_rejects_invalid_cli_values() -> None:
    assert await main(["--once", "--retention", "0"]) == 1


@pytest.mark.asyncio
async def test_main_missing_config_file(tmp_path: Path) -> None:
    assert await main(["--once", "--config", str(tmp_path / "absent.yaml")]) == 1
