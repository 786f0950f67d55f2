# src/taskpulse/tasks/task_models.py

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum


class TaskStatus(StrEnum):
    """Board column of a task (independent from the `completed` flag)."""

    TODO = "todo"
    IN_PROGRESS = "in_progress"
    DONE = "done"

    @classmethod
    def from_db(cls, raw: str | None) -> TaskStatus:
        if not raw:
            return cls.TODO
        try:
            return cls(raw)
        except ValueError:
            return cls.TODO


class Priority(StrEnum):
    NONE = "none"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @classmethod
    def from_db(cls, raw: str | None) -> Priority:
        if not raw:
            return cls.NONE
        try:
            return cls(raw)
        except ValueError:
            return cls.NONE


@dataclass(slots=True)
class Task:
    """
    A stored task.

    JSON-ish columns (tags, sub_tasks, reminders) are kept as the raw strings the
    front-end wrote; consumers parse what they need. `reminders` is a JSON list of
    {"id", "date", "repeat", "enabled"} objects.
    """

    id: str
    title: str
    completed: bool
    reminders: str

    list_id: str = "all"
    description: str | None = None
    priority: Priority = Priority.NONE
    status: TaskStatus = TaskStatus.TODO
    tags: str = "[]"
    sub_tasks: str = "[]"
    due_date: str | None = None
    created_at: str = ""
    updated_at: str = ""
    order: int = 0


@dataclass(slots=True, frozen=True)
class TaskList:
    id: str
    name: str
    icon: str | None
    color: str | None
    order: int
    created_at: str
