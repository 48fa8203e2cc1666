#!/usr/bin/env python3
"""
Java VM Monitor - Tool Output Parsers
Pure functions turning the text printed by ``jps``, ``jinfo`` and ``jstat``
into structured records. None of them raise on malformed input.
"""

import re
from typing import Dict, Optional, Union

from .models import (
    AppInfo, GcParseError, GcStats, NOT_AVAILABLE, PropertyMap,
    RawProcessEntry, UNKNOWN
)


# Property dump token: key, then an optional "=value" running up to whitespace
PROPERTY_PATTERN = re.compile(r"([^=\s]+)(?:=([^\s]+))?")

# jstat -gc column -> GcStats field
GC_COLUMNS = {
    "OC": "old_gen_max_kb",
    "OU": "old_gen_current_kb",
    "YGC": "young_gc_count",
    "YGCT": "young_gc_time_sec",
    "FGC": "full_gc_count",
    "FGCT": "full_gc_time_sec",
    "GCT": "total_gc_time_sec",
}

DEFAULT_APP_NAME_PREFIX = "com.netfolio.appname"
DEFAULT_VARIANT_PREFIX = "com.netfolio.fullname"
DEFAULT_MAIN_CLASS_PROPERTY = "sun.java.command"


def parse_process_line(line: str) -> RawProcessEntry:
    """
    Parse one line of ``jps -l`` output.

    Splits on the first space only, so names containing spaces survive.
    A line with no space yields the name ``Unknown``.
    """
    parts = line.strip().split(" ", 1)
    if len(parts) == 2:
        return RawProcessEntry(parts[0], parts[1])
    return RawProcessEntry(parts[0], "Unknown")


def parse_property_dump(text: str) -> PropertyMap:
    """
    Parse ``jinfo -sysprops`` output into a property map.

    ``key=value`` lines map the key to the value (up to the first whitespace),
    bare ``key`` lines map to ``True`` and anything else is dropped.
    A later duplicate key overwrites the earlier one.
    """
    properties: PropertyMap = {}

    for line in text.strip().split("\n"):
        match = PROPERTY_PATTERN.search(line)
        if not match:
            continue

        key, value = match.group(1), match.group(2)
        properties[key] = value if value is not None else True

    return properties


def parse_gc_table(text: str) -> Union[GcStats, GcParseError]:
    """
    Parse ``jstat -gc`` output (a header row and one data row).

    Columns are matched to values by position. A column missing from the
    header leaves its field at ``N/A``; fewer than two lines is a whole-table
    failure reported as ``GcParseError``.
    """
    lines = [line for line in text.split("\n") if line.strip()]
    if len(lines) < 2:
        return GcParseError()

    headers = lines[0].split()
    values = lines[1].split()
    data: Dict[str, str] = dict(zip(headers, values))

    return GcStats(**{
        field_name: data.get(column, NOT_AVAILABLE)
        for column, field_name in GC_COLUMNS.items()
    })


def extract_app_info(flags: PropertyMap,
                     app_name_prefix: str = DEFAULT_APP_NAME_PREFIX,
                     variant_prefix: str = DEFAULT_VARIANT_PREFIX,
                     main_class_property: str = DEFAULT_MAIN_CLASS_PROPERTY) -> AppInfo:
    """
    Derive application identity from parsed system properties.

    Args:
        flags: Property map from ``parse_property_dump``
        app_name_prefix: Property (or property prefix) holding the app name
        variant_prefix: Property (or property prefix) holding the full/variant name
        main_class_property: Property holding the launch command

    Returns:
        AppInfo with ``unknown`` for anything that could not be derived
    """
    return AppInfo(
        app_name=_find_property(flags, app_name_prefix) or UNKNOWN,
        variant=_find_property(flags, variant_prefix) or UNKNOWN,
        main_class=_extract_main_class(flags, main_class_property),
    )


def _find_property(flags: PropertyMap, prefix: str) -> Optional[str]:
    # Exact key first, then the first key (in dump order) sharing the prefix.
    # Flag-only entries carry no value and are skipped.
    value = flags.get(prefix)
    if isinstance(value, str):
        return value

    for key, value in flags.items():
        if key.startswith(prefix) and isinstance(value, str):
            return value

    return None


def _extract_main_class(flags: PropertyMap, main_class_property: str) -> str:
    command = flags.get(main_class_property)
    if not isinstance(command, str) or not command:
        return UNKNOWN
    return command.split(" ", 1)[0]
