# src/taskpulse/tasks/task_api.py

from __future__ import annotations

import json
import logging
import time
import uuid
from datetime import datetime, timezone
from typing import Any

from ..core.ports import TaskRepo
from ..reminders.extractor import extract
from .task_models import Task

logger = logging.getLogger(__name__)


def _iso_utc(ts: float) -> str:
    return datetime.fromtimestamp(ts, tz=timezone.utc).isoformat()


def new_reminder(at_ts: float, *, repeat: str = "none") -> dict[str, Any]:
    """A reminder entry in the shape the front-end stores."""
    return {
        "id": uuid.uuid4().hex,
        "date": _iso_utc(at_ts),
        "repeat": repeat or "none",
        "enabled": True,
    }


def create_task_with_reminder(
    task_store: TaskRepo,
    *,
    title: str,
    remind_after_minutes: float = 0,
    repeat: str = "none",
    list_id: str = "all",
    now_ts: float | None = None,
) -> Task:
    """
    Convenience helper: create a task with a single reminder `remind_after_minutes` from now.
    """
    if now_ts is None:
        now_ts = time.time()
    at_ts = now_ts + max(0.0, float(remind_after_minutes)) * 60

    now_iso = _iso_utc(now_ts)
    task = Task(
        id=uuid.uuid4().hex,
        title=title,
        completed=False,
        reminders=json.dumps([new_reminder(at_ts, repeat=repeat)]),
        list_id=list_id,
        created_at=now_iso,
        updated_at=now_iso,
    )
    task_store.save_task(task)
    logger.info("Task created id=%s remind_at=%s", task.id, _iso_utc(at_ts))
    return task


def add_reminder(
    task_store: TaskRepo,
    task_id: str,
    *,
    remind_after_minutes: float,
    repeat: str = "none",
    now_ts: float | None = None,
) -> bool:
    """
    Append a reminder to an existing task. Returns False if the task does not exist.

    A stored blob that is not a JSON list is replaced rather than extended.
    """
    task = task_store.get_task(task_id)
    if task is None:
        return False

    if now_ts is None:
        now_ts = time.time()
    at_ts = now_ts + max(0.0, float(remind_after_minutes)) * 60

    try:
        entries = json.loads(task.reminders or "[]")
    except ValueError:
        entries = []
    if not isinstance(entries, list):
        entries = []

    entries.append(new_reminder(at_ts, repeat=repeat))
    return task_store.update_reminders(task_id, json.dumps(entries))


def next_reminder_ts(task: Task, now_ts: float) -> int | None:
    """Earliest reminder time still in the future, for display."""
    upcoming = [o.reminder_time for o in extract(task) if o.reminder_time > now_ts]
    return min(upcoming) if upcoming else None
