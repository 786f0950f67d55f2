# tests/conftest.py

from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace

import pytest

from taskpulse.core.state import AppState
from taskpulse.reminders.dispatcher import DispatchCoordinator
from taskpulse.reminders.ledger import DeliveryLedger
from taskpulse.reminders.scheduler import ReminderScheduler
from taskpulse.reminders.settings_store import NotificationSettingsStore
from taskpulse.tasks.task_store import TaskStore

from .fakes import FakeClock, RecordingChannel


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with AppState and the bootstrap.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated and deterministic.
    """
    return SimpleNamespace(
        app_name="taskpulse-test",
        log_level="DEBUG",
        console_enabled=False,
        data_dir=tmp_path,
        tasks_db_path=tmp_path / "todo.db",
        notification_settings_path=tmp_path / "notification_settings.json",
        reminder_tick_seconds=0.01,
        ledger_cleanup_every_ticks=2,
        ledger_retention_days=30,
        channel_timeout_seconds=1.0,
        notification_title="Task reminder",
    )


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def task_store(settings: SimpleNamespace) -> TaskStore:
    return TaskStore(settings.tasks_db_path)


@pytest.fixture()
def ledger(task_store: TaskStore) -> DeliveryLedger:
    ledger = DeliveryLedger(task_store.db_path)
    task_store.add_delete_listener(ledger.delete_for_task)
    return ledger


@pytest.fixture()
def toast() -> RecordingChannel:
    return RecordingChannel(name="system")


@pytest.fixture()
def state(
    settings: SimpleNamespace,
    task_store: TaskStore,
    ledger: DeliveryLedger,
    toast: RecordingChannel,
    clock: FakeClock,
) -> AppState:
    """
    AppState wired with a recording toast channel and a fake clock.

    NOTE: We keep real SQLite stores here (TaskStore/DeliveryLedger) because
    their correctness is part of what we want to test.
    """
    notification_settings = NotificationSettingsStore(settings.notification_settings_path)
    coordinator = DispatchCoordinator(ledger, toast, timeout_seconds=1.0, clock=clock)
    scheduler = ReminderScheduler(
        task_store,
        ledger,
        notification_settings,
        coordinator,
        tick_seconds=settings.reminder_tick_seconds,
        cleanup_every_ticks=settings.ledger_cleanup_every_ticks,
        clock=clock,
    )
    return AppState(
        settings=settings,
        task_store=task_store,
        ledger=ledger,
        notification_settings=notification_settings,
        scheduler=scheduler,
    )
