"""
Shared fixtures for the Java VM Monitor test suite.

``FakeCollector`` stands in for the JDK tools: each call returns a canned
CommandResult, so the pipeline can be exercised without a JDK installed.
"""

from __future__ import annotations

from typing import Dict, List, Optional

import pytest

from java_vm_monitor.core.collectors import ToolCollector
from java_vm_monitor.core.models import CommandResult


JINFO_OUTPUT = """\
Java System Properties:
#Fri Feb 28 06:20:11 EST 2025
java.specification.version=17
sun.jnu.encoding=UTF-8
java.vm.vendor=Amazon.com Inc.
sun.arch.data.model=64
akka.agent.system.base.name=mostagents
com.netfolio.fullname=mostagents
java.vendor.url=https\\://aws.amazon.com/corretto/
user.timezone=America/New_York
os.name=Linux
sun.java.launcher=SUN_STANDARD
sun.java.command=atomatron.worker.agentsystem.Main
worker.agent.xmlfile=./..//etc/mostagents.xml
user.home=/home/geowealth
java.vm.compressedOopsMode=Zero based
line.separator=\\n
java.awt.headless=true
com.netfolio.appname=mostagents
com.netfolio.fullname=mostagents1
java.runtime.version=17.0.14+7-LTS
path.separator=\\:
java.version=17.0.14
java.class.version=61.0
"""

JSTAT_HEADER = "S0C    S1C    S0U    S1U      EC       EU        OC         OU       MC     MU    CCSC   CCSU   YGC     YGCT    FGC    FGCT     GCT"
JSTAT_ROW = "0.0   4096.0  0.0   4096.0 167936.0  90112.0   352256.0   212480.5  98304.0 95012.3 11264.0 10120.4    152    1.234     3    0.567    1.801"
JSTAT_OUTPUT = f"{JSTAT_HEADER}\n{JSTAT_ROW}\n"


class FakeCollector(ToolCollector):
    """Canned collaborator responses keyed by PID."""

    def __init__(self,
                 processes: str = "",
                 properties: Optional[Dict[str, CommandResult]] = None,
                 gc_stats: Optional[Dict[str, CommandResult]] = None,
                 host: CommandResult = CommandResult(0, "jvmhost01\n"),
                 listing: Optional[CommandResult] = None):
        self.listing = listing if listing is not None else CommandResult(0, processes)
        self.properties = properties or {}
        self.gc_stats = gc_stats or {}
        self.host = host
        self.calls: List[str] = []

    async def list_processes(self) -> CommandResult:
        self.calls.append("list_processes")
        return self.listing

    async def dump_properties(self, process_id: str) -> CommandResult:
        self.calls.append(f"dump_properties:{process_id}")
        return self.properties.get(process_id, CommandResult(1, error="no such process"))

    async def dump_gc_stats(self, process_id: str) -> CommandResult:
        self.calls.append(f"dump_gc_stats:{process_id}")
        return self.gc_stats.get(process_id, CommandResult(1, error="no such process"))

    async def hostname(self) -> CommandResult:
        self.calls.append("hostname")
        return self.host


@pytest.fixture
def jinfo_output() -> str:
    return JINFO_OUTPUT


@pytest.fixture
def jstat_output() -> str:
    return JSTAT_OUTPUT


@pytest.fixture
def three_jvm_collector() -> FakeCollector:
    """Three healthy JVMs plus the jps process itself."""
    ok_props = CommandResult(0, JINFO_OUTPUT)
    ok_gc = CommandResult(0, JSTAT_OUTPUT)
    return FakeCollector(
        processes=(
            "1111 atomatron.worker.agentsystem.Main\n"
            "2222 /opt/app/service.jar\n"
            "3333 org.example.Batch\n"
            "4444 jdk.jcmd/sun.tools.jps.Jps\n"
        ),
        properties={"1111": ok_props, "2222": ok_props, "3333": ok_props},
        gc_stats={"1111": ok_gc, "2222": ok_gc, "3333": ok_gc},
    )
