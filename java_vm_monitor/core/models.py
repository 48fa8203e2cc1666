#!/usr/bin/env python3
"""
Java VM Monitor - Data Structures
Records produced while polling JVMs: raw tool results, parsed GC statistics,
application identity, per-process snapshots and per-cycle batches.
"""

from dataclasses import dataclass, field, fields
from datetime import datetime, timedelta, timezone
from types import MappingProxyType
from typing import Any, Dict, Iterator, Mapping, NamedTuple, Tuple, Union


# Sentinel for identity fields that could not be derived
UNKNOWN = "unknown"

# Sentinel for every GC field that is missing or could not be collected
NOT_AVAILABLE = "N/A"

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

PropertyMap = Dict[str, Union[str, bool]]
ReadOnlyPropertyMap = Mapping[str, Union[str, bool]]


# =============================================================================
# COLLABORATOR RESULTS
# =============================================================================

@dataclass(frozen=True)
class CommandResult:
    """
    Outcome of one external tool invocation.

    Collaborators never raise; a missing binary, a timeout or a non-zero exit
    all come back as a CommandResult with ``ok == False``.
    """
    exit_code: int                      # Process exit status (non-zero = failure)
    output: str = ""                    # Captured stdout
    error: str = ""                     # Captured stderr or failure reason

    @property
    def ok(self) -> bool:
        return self.exit_code == 0


class RawProcessEntry(NamedTuple):
    """One line of process-listing output."""
    process_id: str
    process_name: str


# =============================================================================
# PARSED TOOL OUTPUT
# =============================================================================

@dataclass(frozen=True)
class GcStats:
    """
    Garbage collection statistics taken from one ``jstat -gc`` data row.

    Values are kept exactly as printed by the tool. Every field falls back to
    ``N/A`` when its column is absent or the tool could not be run.
    """
    old_gen_max_kb: str = NOT_AVAILABLE       # OC   - old generation capacity
    old_gen_current_kb: str = NOT_AVAILABLE   # OU   - old generation used
    young_gc_count: str = NOT_AVAILABLE       # YGC  - young collections
    young_gc_time_sec: str = NOT_AVAILABLE    # YGCT - young collection time
    full_gc_count: str = NOT_AVAILABLE        # FGC  - full collections
    full_gc_time_sec: str = NOT_AVAILABLE     # FGCT - full collection time
    total_gc_time_sec: str = NOT_AVAILABLE    # GCT  - total collection time

    @classmethod
    def unavailable(cls) -> "GcStats":
        return cls()


@dataclass(frozen=True)
class GcParseError:
    """Whole-table failure: the GC output did not contain a header and a data row."""
    gc_error: str = "Invalid jstat output format"


@dataclass(frozen=True)
class AppInfo:
    """Application identity derived from JVM system properties."""
    app_name: str = UNKNOWN
    variant: str = UNKNOWN
    main_class: str = UNKNOWN


# =============================================================================
# SNAPSHOTS
# =============================================================================

GC_FIELDS: Tuple[str, ...] = tuple(f.name for f in fields(GcStats))


@dataclass(frozen=True)
class JvmSnapshot:
    """
    State of one JVM observed during one poll cycle.

    Snapshots are built once and never mutated; every snapshot of a batch
    shares the batch hostname and capture time.
    """
    # System info
    hostname: str
    captured_at: datetime

    # VM identity
    process_id: str
    process_name: str
    app_name: str = UNKNOWN
    variant: str = UNKNOWN
    main_class: str = UNKNOWN

    # GC metrics
    old_gen_max_kb: str = NOT_AVAILABLE
    old_gen_current_kb: str = NOT_AVAILABLE
    young_gc_count: str = NOT_AVAILABLE
    young_gc_time_sec: str = NOT_AVAILABLE
    full_gc_count: str = NOT_AVAILABLE
    full_gc_time_sec: str = NOT_AVAILABLE
    total_gc_time_sec: str = NOT_AVAILABLE

    # Raw data
    flags: ReadOnlyPropertyMap = field(default_factory=dict)

    def __post_init__(self):
        # Read-only copy; frozen alone would leave the dict mutable
        object.__setattr__(self, "flags", MappingProxyType(dict(self.flags)))

    @property
    def gc_stats(self) -> GcStats:
        return GcStats(**{name: getattr(self, name) for name in GC_FIELDS})

    def to_dict(self) -> Dict[str, Any]:
        """Flat, JSON-ready representation; ``captured_at`` rendered as ISO-8601."""
        data = {f.name: getattr(self, f.name) for f in fields(self)}
        data["captured_at"] = self.captured_at.isoformat()
        data["flags"] = dict(self.flags)
        return data


@dataclass(frozen=True)
class SnapshotBatch:
    """All snapshots captured in one poll cycle."""
    captured_at: datetime
    hostname: str
    snapshots: Tuple[JvmSnapshot, ...] = ()

    @property
    def key_ms(self) -> int:
        """Capture time in whole milliseconds since the epoch; the History Store key."""
        # Naive datetimes are taken as local time, as datetime.timestamp() does
        return (self.captured_at.astimezone(timezone.utc) - EPOCH) // timedelta(milliseconds=1)

    def __len__(self) -> int:
        return len(self.snapshots)

    def __iter__(self) -> Iterator[JvmSnapshot]:
        return iter(self.snapshots)
