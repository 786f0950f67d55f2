# tests/test_dispatcher.py

from __future__ import annotations

import asyncio
import json
from pathlib import Path

import pytest

from taskpulse.reminders.dispatcher import DispatchCoordinator
from taskpulse.reminders.ledger import DeliveryLedger
from taskpulse.reminders.models import NotificationSettings, ReminderOccurrence

from .fakes import NOW, FailingChannel, FakeClock, FlakyLedger, RecordingChannel

OCC = ReminderOccurrence(task_id="t1", reminder_time=NOW - 5, repeat="daily", task_title="Water plants")


@pytest.mark.asyncio
async def test_dispatch_sends_everywhere_then_records(ledger: DeliveryLedger, clock: FakeClock) -> None:
    toast = RecordingChannel(name="system")
    hook = RecordingChannel(name="webhook")
    built: list[str] = []

    def factory(url: str) -> RecordingChannel:
        built.append(url)
        return hook

    coordinator = DispatchCoordinator(ledger, toast, webhook_factory=factory, clock=clock)
    outcome = await coordinator.dispatch(OCC, NotificationSettings(enabled=True, webhook="https://hook.example/x"))

    assert built == ["https://hook.example/x"]
    assert [(s.title, s.body) for s in toast.sent] == [("Task reminder", "Task: Water plants")]
    assert len(hook.sent) == 1
    assert outcome.committed
    assert outcome.delivered_any
    assert outcome.failed_channels == []

    rec = ledger.get("t1", NOW - 5)
    assert rec is not None
    assert rec.sent_at == NOW
    snapshot = json.loads(rec.payload_snapshot)
    assert snapshot["repeat"] == "daily"
    assert snapshot["task_title"] == "Water plants"
    assert snapshot["date"].startswith("2023-11-14T22:13:15")


@pytest.mark.asyncio
async def test_failed_webhook_still_records(ledger: DeliveryLedger, clock: FakeClock) -> None:
    toast = RecordingChannel(name="system")
    hook = FailingChannel(name="webhook")
    coordinator = DispatchCoordinator(ledger, toast, webhook_factory=lambda url: hook, clock=clock)

    outcome = await coordinator.dispatch(OCC, NotificationSettings(webhook="https://unreachable.invalid"))

    assert len(toast.sent) == 1
    assert hook.attempts == 1
    assert outcome.failed_channels == ["webhook"]
    assert outcome.committed
    assert ledger.exists("t1", NOW - 5)


@pytest.mark.asyncio
async def test_failed_toast_does_not_stop_webhook(ledger: DeliveryLedger, clock: FakeClock) -> None:
    toast = FailingChannel(name="system", error=RuntimeError("no notification daemon"))
    hook = RecordingChannel(name="webhook")
    coordinator = DispatchCoordinator(ledger, toast, webhook_factory=lambda url: hook, clock=clock)

    outcome = await coordinator.dispatch(OCC, NotificationSettings(webhook="https://hook.example/x"))

    assert len(hook.sent) == 1
    results = {r.channel: r for r in outcome.channel_results}
    assert not results["system"].ok
    assert results["system"].error == "no notification daemon"
    assert results["webhook"].ok
    assert outcome.committed


@pytest.mark.asyncio
async def test_slow_channel_is_bounded_by_timeout(ledger: DeliveryLedger, clock: FakeClock) -> None:
    slow = RecordingChannel(name="system", delay=5.0)
    coordinator = DispatchCoordinator(ledger, slow, timeout_seconds=0.1, clock=clock)

    outcome = await asyncio.wait_for(coordinator.dispatch(OCC, NotificationSettings()), timeout=2.0)

    assert outcome.channel_results[0].error == "timeout"
    assert outcome.committed


@pytest.mark.asyncio
async def test_channels_of_one_occurrence_run_concurrently(ledger: DeliveryLedger, clock: FakeClock) -> None:
    released = asyncio.Event()

    class WaitsForWebhook:
        name = "system"

        async def send(self, title: str, body: str) -> None:
            await released.wait()

    class ReleasesToast:
        name = "webhook"

        async def send(self, title: str, body: str) -> None:
            released.set()

    coordinator = DispatchCoordinator(
        ledger,
        WaitsForWebhook(),
        webhook_factory=lambda url: ReleasesToast(),
        timeout_seconds=1.0,
        clock=clock,
    )

    outcome = await coordinator.dispatch(OCC, NotificationSettings(webhook="https://hook.example/x"))

    assert all(r.ok for r in outcome.channel_results)


@pytest.mark.asyncio
async def test_ledger_failure_is_reported_not_raised(tmp_path: Path, clock: FakeClock) -> None:
    ledger = FlakyLedger(tmp_path / "todo.db", fail_records=1)
    toast = RecordingChannel()
    coordinator = DispatchCoordinator(ledger, toast, clock=clock)

    outcome = await coordinator.dispatch(OCC, NotificationSettings())

    assert len(toast.sent) == 1
    assert not outcome.committed
    assert outcome.ledger_error == "database is locked"
    assert not ledger.exists("t1", NOW - 5)


def test_channels_for_without_webhook(ledger: DeliveryLedger) -> None:
    toast = RecordingChannel()
    coordinator = DispatchCoordinator(ledger, toast)

    assert coordinator.channels_for(NotificationSettings(webhook=None)) == [toast]
