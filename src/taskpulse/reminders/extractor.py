# src/taskpulse/reminders/extractor.py

"""
Reminder extraction.

Turns a task's stored reminder blob (JSON list written by the front-end) into
ReminderOccurrence values. Bad data never raises: a malformed blob yields nothing,
a malformed entry is skipped, and the scan of other tasks goes on.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime
from typing import Any

from ..tasks.task_models import Task
from .models import ReminderOccurrence

logger = logging.getLogger(__name__)

DEFAULT_REPEAT = "none"


def parse_reminder_time(raw: Any) -> int | None:
    """
    Parse an RFC 3339 timestamp into epoch seconds.

    Only absolute timestamps are accepted: a string without a UTC offset has no
    well-defined instant and is rejected, as is anything that is not a string.
    """
    if not isinstance(raw, str):
        return None
    s = raw.strip()
    if not s:
        return None
    try:
        dt = datetime.fromisoformat(s)
    except ValueError:
        return None
    if dt.tzinfo is None or dt.utcoffset() is None:
        return None
    return int(dt.timestamp())


def _load_entries(blob: str | None) -> list[Any]:
    if not blob:
        return []
    try:
        val = json.loads(blob)
    except (TypeError, ValueError):
        return []
    return val if isinstance(val, list) else []


def extract(task: Task) -> list[ReminderOccurrence]:
    out: list[ReminderOccurrence] = []
    seen: set[int] = set()

    for entry in _load_entries(task.reminders):
        if not isinstance(entry, dict):
            continue

        if entry.get("enabled") is False:
            continue

        reminder_time = parse_reminder_time(entry.get("date"))
        if reminder_time is None:
            logger.debug("Skipping reminder without a usable date task_id=%s entry=%r", task.id, entry)
            continue

        # Same instant twice in one task is one delivery unit.
        if reminder_time in seen:
            continue
        seen.add(reminder_time)

        repeat = entry.get("repeat")
        out.append(
            ReminderOccurrence(
                task_id=task.id,
                reminder_time=reminder_time,
                repeat=repeat if isinstance(repeat, str) and repeat else DEFAULT_REPEAT,
                task_title=task.title,
            )
        )

    return out
