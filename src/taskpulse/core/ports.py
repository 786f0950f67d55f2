# src/taskpulse/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the reminder engine.

The engine depends on Protocols instead of concrete implementations.
This keeps storage and notification transports swappable and makes testing easier.
"""

from typing import Any, Protocol


class NotificationChannel(Protocol):
    """
    One notification sink (system toast, webhook, ...).

    send() returns normally on success and raises on failure; the dispatcher turns
    either into a ChannelResult.
    """

    name: str

    async def send(self, title: str, body: str) -> None: ...


class TaskRepo(Protocol):
    # Reminder engine API
    def list_incomplete_tasks(self) -> list[Any]: ...

    # Task lifecycle (console / front-end)
    def get_task(self, task_id: str) -> Any | None: ...
    def list_tasks(self) -> list[Any]: ...
    def save_task(self, task: Any) -> None: ...
    def set_completed(self, task_id: str, completed: bool) -> bool: ...
    def update_reminders(self, task_id: str, reminders: str) -> bool: ...
    def delete_task(self, task_id: str) -> bool: ...
    def count_tasks(self) -> int: ...


class DeliveryLedgerRepo(Protocol):
    def exists(self, task_id: str, reminder_time: int) -> bool: ...
    def record(self, record: Any) -> bool: ...  # DeliveryRecord; False if the task is gone
    def delete_for_task(self, task_id: str) -> int: ...
    def cleanup(self, now: float) -> int: ...
    def count(self) -> int: ...


class NotificationSettingsRepo(Protocol):
    def load(self) -> Any | None: ...  # NotificationSettings
    def save(self, settings: Any) -> None: ...
