# src/taskpulse/core/state.py

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from ..reminders.ledger import DeliveryLedger
from ..reminders.runner import SchedulerRunner
from ..reminders.scheduler import ReminderScheduler
from ..reminders.settings_store import NotificationSettingsStore
from ..tasks.task_store import TaskStore


@dataclass
class AppState:
    """
    Long-lived handles built once at startup and passed around explicitly.

    `runner` is set by the CLI once the scheduler thread is up; without it, manual
    checks run the pass on a private event loop.
    """

    # Settings object (config.Settings or a SimpleNamespace in tests).
    settings: Any

    task_store: TaskStore
    ledger: DeliveryLedger
    notification_settings: NotificationSettingsStore
    scheduler: ReminderScheduler

    runner: SchedulerRunner | None = None
