#!/usr/bin/env python3
"""
Java VM Monitor - Collector Interface
Contract between the snapshot pipeline and whatever produces raw tool output.
"""

from abc import ABC, abstractmethod

from .models import CommandResult


class ToolCollector(ABC):
    """
    Source of raw diagnostic text for the snapshot pipeline.

    Implementations must not raise for ordinary tool failures; they report
    them through the exit code of the returned CommandResult.
    """

    @abstractmethod
    async def list_processes(self) -> CommandResult:
        """
        List running JVMs.

        Returns:
            CommandResult whose output holds one ``pid [name]`` line per JVM
        """
        pass

    @abstractmethod
    async def dump_properties(self, process_id: str) -> CommandResult:
        """
        Dump the system properties of one JVM.

        Returns:
            CommandResult whose output holds ``key=value`` or bare ``key`` lines
        """
        pass

    @abstractmethod
    async def dump_gc_stats(self, process_id: str) -> CommandResult:
        """
        Dump GC statistics of one JVM.

        Returns:
            CommandResult whose output holds a header row and one data row
        """
        pass

    @abstractmethod
    async def hostname(self) -> CommandResult:
        """Return the host name of the machine being observed."""
        pass
