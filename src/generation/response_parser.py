"""
Line-oriented parser for the five-label event records returned by the model.

A record looks like::

    Title: Plan trip
    Description: Research flights
    Start Time: 2025-06-01T09:00:00.000Z
    Duration: 01:30
    Color: blue

Records are separated by blank lines. The model output is not trusted: lines
without a ``": "`` separator and unknown labels are skipped, and records missing
any of the five fields are dropped without error.
"""

from __future__ import annotations

import logging
from typing import Dict, List

from planner_smart.models import GeneratedTask

logger = logging.getLogger(__name__)

# label (lowercased) -> GeneratedTask field
FIELD_BY_LABEL = {
    "title": "title",
    "description": "description",
    "start time": "start_time",
    "duration": "duration",
    "color": "color",
}

REQUIRED_FIELDS = tuple(FIELD_BY_LABEL.values())


def _is_complete(record: Dict[str, str]) -> bool:
    return all(record.get(field) for field in REQUIRED_FIELDS)


def _clean_color(value: str) -> str:
    # "purple and energetic" -> "purple"
    tokens = value.strip().split()
    return tokens[0] if tokens else ""


def parse_response(text: str) -> List[GeneratedTask]:
    tasks: List[GeneratedTask] = []
    current: Dict[str, str] = {}

    def flush() -> None:
        if _is_complete(current):
            tasks.append(GeneratedTask(**current))
        elif current:
            logger.debug(f"Dropping incomplete record: {sorted(current)}")
        current.clear()

    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line:
            flush()
            continue

        key, sep, value = line.partition(": ")
        if not sep:
            continue

        field = FIELD_BY_LABEL.get(key.lower())
        if field is None:
            continue

        value = value.strip()
        if field == "color":
            value = _clean_color(value)
        current[field] = value

    flush()
    return tasks
