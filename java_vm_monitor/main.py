#!/usr/bin/env python3
"""
Java VM Monitor - Main Application Entry Point
Command-line executable for polling the JVMs on this host.
"""

import argparse
import asyncio
import logging
import signal
import sys
from typing import List, Optional

import structlog

from . import __version__
from .agents.jdk_tools import JdkToolCollector
from .config.config_manager import ConfigManager
from .core.collectors import ToolCollector
from .core.history_store import HistoryStore
from .core.poll_loop import PollLoop
from .core.snapshot_builder import SnapshotBuilder

logger = structlog.get_logger()


def configure_logging(log_level: str = "INFO", log_format: str = "json") -> None:
    """
    Configure structured logging.

    Logs go to stderr so the batch rendering on stdout stays readable. DEBUG
    level or the ``console`` format switch to the human-friendly renderer.
    """
    level = getattr(logging, log_level.upper(), logging.INFO)
    logging.basicConfig(format="%(message)s", stream=sys.stderr, level=level, force=True)

    if level == logging.DEBUG or log_format == "console":
        renderer = structlog.dev.ConsoleRenderer()
    else:
        renderer = structlog.processors.JSONRenderer()

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            renderer
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        # Reconfigured once the config file is read
        cache_logger_on_first_use=False,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="java-vm-monitor",
        description="Poll the JVMs on this host for identity and GC statistics",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s --once
  %(prog)s --once --export jvms.json
  %(prog)s --interval 10000 --config config/monitor.yaml
        """
    )

    parser.add_argument(
        '--interval', '-i',
        type=int,
        help='Milliseconds between polls (default: 5000)'
    )

    parser.add_argument(
        '--once', '-o',
        action='store_true',
        default=None,
        help='Poll once and exit'
    )

    parser.add_argument(
        '--export', '-e',
        metavar='PATH',
        help='Write each batch to this JSON file'
    )

    parser.add_argument(
        '--retention', '-r',
        type=int,
        help='Number of batches kept in memory (default: 100)'
    )

    parser.add_argument(
        '--config', '-c',
        help='Path to an optional YAML configuration file'
    )

    parser.add_argument(
        '--log-level', '-l',
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
        help='Set logging level (default: INFO)'
    )

    parser.add_argument(
        '--version',
        action='version',
        version=f'Java VM Monitor v{__version__}'
    )

    return parser


def apply_cli_overrides(config_manager: ConfigManager, args: argparse.Namespace) -> None:
    """Command-line flags take precedence over the configuration file."""
    overrides = {
        'monitor.interval_ms': args.interval,
        'monitor.run_once': args.once,
        'monitor.export_path': args.export,
        'monitor.retention_count': args.retention,
        'logging.level': args.log_level,
    }

    for path, value in overrides.items():
        if value is not None:
            config_manager.set_value(path, value)


async def run(config_manager: ConfigManager,
              collector: Optional[ToolCollector] = None) -> int:
    """
    Build the monitor from configuration and run it.

    Args:
        config_manager: Loaded and validated configuration
        collector: Tool collector to use (JDK tools if omitted)

    Returns:
        Process exit code
    """
    config = config_manager.get_config()
    monitor_config = config['monitor']
    tools_config = config['tools']

    if collector is None:
        collector = JdkToolCollector(tools_config)

    builder = SnapshotBuilder(
        collector,
        excluded_process_names=tools_config.get('excluded_process_names', []),
        app_info_config=config.get('app_info', {})
    )
    poll_loop = PollLoop(
        builder,
        history=HistoryStore(monitor_config['retention_count']),
        interval_ms=monitor_config['interval_ms'],
        export_path=monitor_config.get('export_path')
    )

    if monitor_config.get('run_once'):
        await poll_loop.run_once()

        if poll_loop.export_path:
            if not poll_loop.last_export_ok:
                logger.error("Export failed", export_path=poll_loop.export_path)
                return 1
            poll_loop.output(f"Data exported to {poll_loop.export_path}")
        return 0

    monitoring_task = asyncio.create_task(poll_loop.run_forever())
    shutdown_requested = asyncio.Event()

    def signal_handler():
        logger.info("Received shutdown signal")
        shutdown_requested.set()
        monitoring_task.cancel()

    loop = asyncio.get_running_loop()
    installed_signals = []
    for sig in [signal.SIGTERM, signal.SIGINT]:
        try:
            loop.add_signal_handler(sig, signal_handler)
            installed_signals.append(sig)
        except (NotImplementedError, RuntimeError, ValueError):
            # Signal handlers are unavailable off the main thread and on Windows
            pass

    try:
        await monitoring_task
    except asyncio.CancelledError:
        if not shutdown_requested.is_set():
            raise
        logger.info("Java VM Monitor stopped", passes=poll_loop.pass_count)
    finally:
        for sig in installed_signals:
            loop.remove_signal_handler(sig)

    return 0


async def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point for the Java VM Monitor.
    """
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level or "INFO")

    config_manager = ConfigManager(args.config)
    if not await config_manager.load_config():
        logger.error("Failed to load configuration")
        return 1

    apply_cli_overrides(config_manager, args)
    if not config_manager.validate():
        for error in config_manager.errors:
            logger.error("Invalid configuration", path=error.path, message=error.message)
        return 1

    configure_logging(config_manager.get_section('logging.level', 'INFO'),
                      config_manager.get_section('logging.format', 'json'))

    try:
        return await run(config_manager)
    except KeyboardInterrupt:
        logger.info("Received keyboard interrupt")
        return 0
    except Exception as e:
        logger.error("Unexpected error", error=str(e), exc_info=True)
        return 1


def cli_main() -> int:
    """CLI entry point that handles async main function."""
    return asyncio.run(main())


if __name__ == '__main__':
    sys.exit(cli_main())
