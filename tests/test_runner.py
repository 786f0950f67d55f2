# tests/test_runner.py

from __future__ import annotations

from taskpulse.cli.bootstrap import create_initial_state
from taskpulse.reminders.models import DeliveryRecord
from taskpulse.reminders.runner import start_scheduler_in_background

from .fakes import NOW, iso, make_task


def test_background_runner_serves_manual_checks(state, toast) -> None:
    state.task_store.save_task(make_task("T1", reminders=[{"date": iso(NOW - 5)}]))

    runner = start_scheduler_in_background(state.scheduler)
    assert runner is not None
    try:
        outcome = runner.check_now(timeout=5.0)
        assert outcome.trigger == "manual"
    finally:
        runner.stop()
        runner.join(timeout=5.0)

    assert not runner.thread.is_alive()
    # Whichever pass got there first, the reminder went out once.
    assert len(toast.sent) == 1
    assert state.ledger.exists("T1", NOW - 5)


def test_bootstrap_wires_ledger_into_task_deletes(settings) -> None:
    app = create_initial_state(settings=settings)
    app.task_store.save_task(make_task("T1", reminders=[{"date": iso(NOW - 5)}]))

    assert app.ledger.count() == 0
    assert app.scheduler.tick_seconds == settings.reminder_tick_seconds
    assert app.notification_settings.path == settings.notification_settings_path

    app.task_store.delete_task("T1")
    assert app.ledger.list_for_task("T1") == []


def test_bootstrap_ledger_refuses_records_for_missing_tasks(settings) -> None:
    app = create_initial_state(settings=settings)
    record = DeliveryRecord(
        record_id="r1",
        task_id="nope",
        reminder_time=NOW,
        sent_at=NOW,
        payload_snapshot="{}",
    )

    assert app.ledger.record(record) is False
    assert app.ledger.count() == 0
