#!/usr/bin/env python3
"""
Java VM Monitor - JDK Tool Collector
Runs the JDK diagnostic tools as subprocesses and hands their output to the
snapshot pipeline:

1. ``jps -l`` for the list of running JVMs
2. ``jinfo -sysprops <pid>`` for system properties
3. ``jstat -gc <pid>`` for garbage collection statistics
4. ``hostname`` for the host name

When ``jps`` is unavailable, running JVMs can be discovered by scanning the
process table with psutil instead.
"""

import asyncio
import os
from typing import Any, Dict, List, Optional

import psutil
import structlog

from ..core.collectors import ToolCollector
from ..core.models import CommandResult

logger = structlog.get_logger()

# Exit codes used for failures that never reached the tool
EXIT_TIMEOUT = 124
EXIT_NOT_FOUND = 127
EXIT_EXEC_ERROR = 126

# Options whose value is the next argument on a java command line
_JAVA_OPTIONS_WITH_VALUE = {'-cp', '-classpath', '--class-path', '-p', '--module-path',
                            '--add-modules', '--add-opens', '--add-exports'}


class JdkToolCollector(ToolCollector):
    """
    ToolCollector backed by the JDK command-line tools.

    Every call is bounded by ``command_timeout_seconds``; a tool that hangs is
    killed and reported as a failed result.
    """

    def __init__(self, config: Dict[str, Any]):
        """
        Initialize the collector.

        Args:
            config: ``tools`` section of the configuration
        """
        self.config = config
        self.java_home = config.get('java_home')
        self.jps_command = self._resolve_tool(config.get('jps_command', 'jps'))
        self.jinfo_command = self._resolve_tool(config.get('jinfo_command', 'jinfo'))
        self.jstat_command = self._resolve_tool(config.get('jstat_command', 'jstat'))
        self.hostname_command = config.get('hostname_command', 'hostname')
        self.command_timeout = config.get('command_timeout_seconds', 30)
        self.psutil_fallback = config.get('psutil_fallback', True)
        self.logger = structlog.get_logger().bind(component="jdk_tools")

    # -------------------------------------------------------------------------
    # TOOL CALLS
    # -------------------------------------------------------------------------

    async def list_processes(self) -> CommandResult:
        result = await self._run(self.jps_command, '-l')
        if result.ok or not self.psutil_fallback:
            return result

        self.logger.warning("jps_unavailable_using_process_scan",
                            exit_code=result.exit_code,
                            error=result.error.strip())
        return self._scan_java_processes()

    async def dump_properties(self, process_id: str) -> CommandResult:
        return await self._run(self.jinfo_command, '-sysprops', process_id)

    async def dump_gc_stats(self, process_id: str) -> CommandResult:
        return await self._run(self.jstat_command, '-gc', process_id)

    async def hostname(self) -> CommandResult:
        return await self._run(self.hostname_command)

    # -------------------------------------------------------------------------
    # SUBPROCESS EXECUTION
    # -------------------------------------------------------------------------

    async def _run(self, *command: str) -> CommandResult:
        """
        Execute a command and capture its output.

        Returns:
            CommandResult; never raises for missing binaries or timeouts
        """
        self.logger.debug("running_command", command=list(command))

        try:
            process = await asyncio.create_subprocess_exec(
                *command,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE
            )
        except FileNotFoundError:
            return CommandResult(exit_code=EXIT_NOT_FOUND,
                                 error=f"Command not found: {command[0]}")
        except OSError as e:
            return CommandResult(exit_code=EXIT_EXEC_ERROR, error=str(e))

        try:
            stdout, stderr = await asyncio.wait_for(
                process.communicate(),
                timeout=self.command_timeout
            )
        except asyncio.TimeoutError:
            try:
                process.kill()
            except ProcessLookupError:
                # Exited between the deadline and the kill
                pass
            await process.wait()
            self.logger.warning("command_timeout", command=list(command),
                                timeout=self.command_timeout)
            return CommandResult(exit_code=EXIT_TIMEOUT,
                                 error=f"Timed out after {self.command_timeout} seconds")

        return CommandResult(
            exit_code=process.returncode,
            output=stdout.decode(errors='replace'),
            error=stderr.decode(errors='replace')
        )

    def _resolve_tool(self, tool: str) -> str:
        # Bare tool names resolve under $java_home/bin when a JDK is configured
        if self.java_home and os.sep not in tool:
            return os.path.join(self.java_home, 'bin', tool)
        return tool

    # -------------------------------------------------------------------------
    # PROCESS TABLE FALLBACK
    # -------------------------------------------------------------------------

    def _scan_java_processes(self) -> CommandResult:
        """
        Discover JVMs from the process table, rendered as ``jps -l`` lines.
        """
        lines = []

        try:
            for proc in psutil.process_iter(['pid', 'name', 'cmdline']):
                try:
                    proc_info = proc.info
                    if not proc_info['name'] or 'java' not in proc_info['name'].lower():
                        continue

                    main_target = java_main_target(proc_info['cmdline'] or [])
                    if main_target:
                        lines.append(f"{proc_info['pid']} {main_target}")
                    else:
                        lines.append(str(proc_info['pid']))

                except (psutil.NoSuchProcess, psutil.AccessDenied, psutil.ZombieProcess):
                    continue

        except Exception as e:
            self.logger.error("process_scan_error", error=str(e))
            return CommandResult(exit_code=EXIT_EXEC_ERROR, error=str(e))

        self.logger.info("process_scan_complete", processes_found=len(lines))
        return CommandResult(exit_code=0, output="\n".join(lines))


def java_main_target(cmdline: List[str]) -> Optional[str]:
    """
    Find what a java command line launches: the ``-jar`` file or the main class.

    Args:
        cmdline: Full argument vector, starting with the java executable

    Returns:
        Jar path or main class, or None if the command line has neither
    """
    args = iter(cmdline[1:])
    for arg in args:
        if arg == '-jar':
            return next(args, None)
        if arg in _JAVA_OPTIONS_WITH_VALUE:
            next(args, None)
            continue
        if arg.startswith('-'):
            continue
        return arg
    return None
