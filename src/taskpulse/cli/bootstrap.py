# src/taskpulse/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- wires concrete stores, channels and the reminder scheduler into AppState.
"""

from __future__ import annotations

import logging

from ..config import get_settings
from ..core.state import AppState
from ..reminders.channels import SystemToastChannel, WebhookChannel
from ..reminders.dispatcher import DispatchCoordinator
from ..reminders.ledger import DeliveryLedger
from ..reminders.scheduler import ReminderScheduler
from ..reminders.settings_store import NotificationSettingsStore
from ..tasks.task_store import TaskStore

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.tasks_db_path.parent.mkdir(parents=True, exist_ok=True)
    settings.notification_settings_path.parent.mkdir(parents=True, exist_ok=True)


def create_initial_state(*, settings=None) -> AppState:
    """
    Create AppState from the provided settings.

    Keeping settings injectable makes the app easier to test and avoids hidden global config reads.
    If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    task_store = TaskStore(settings.tasks_db_path)
    ledger = DeliveryLedger(
        task_store.db_path,
        retention_seconds=int(settings.ledger_retention_days) * 24 * 60 * 60,
        tasks_table="tasks",
    )
    task_store.add_delete_listener(ledger.delete_for_task)

    timeout_s = float(settings.channel_timeout_seconds)
    coordinator = DispatchCoordinator(
        ledger,
        SystemToastChannel(app_name=settings.app_name),
        webhook_factory=lambda url: WebhookChannel(url, timeout_seconds=timeout_s),
        timeout_seconds=timeout_s,
        title=settings.notification_title,
    )

    notification_settings = NotificationSettingsStore(settings.notification_settings_path)
    scheduler = ReminderScheduler(
        task_store,
        ledger,
        notification_settings,
        coordinator,
        tick_seconds=float(settings.reminder_tick_seconds),
        cleanup_every_ticks=int(settings.ledger_cleanup_every_ticks),
    )

    logger.info("State ready db=%s settings=%s", task_store.db_path, notification_settings.path)
    return AppState(
        settings=settings,
        task_store=task_store,
        ledger=ledger,
        notification_settings=notification_settings,
        scheduler=scheduler,
    )
