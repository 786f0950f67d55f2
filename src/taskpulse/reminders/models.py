# src/taskpulse/reminders/models.py

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(slots=True, frozen=True)
class ReminderOccurrence:
    """
    One concrete due instance of a reminder.

    There is no separate occurrence id in the stored data: (task_id, reminder_time)
    is the identity, and the same pair extracted in two different scans is the same
    delivery unit.
    """

    task_id: str
    reminder_time: int  # epoch seconds
    repeat: str
    task_title: str

    @property
    def key(self) -> tuple[str, int]:
        return (self.task_id, self.reminder_time)


@dataclass(slots=True, frozen=True)
class DeliveryRecord:
    record_id: str
    task_id: str
    reminder_time: int
    sent_at: int
    payload_snapshot: str  # JSON text


@dataclass(slots=True, frozen=True)
class NotificationSettings:
    enabled: bool = True
    webhook: str | None = None


@dataclass(slots=True, frozen=True)
class ChannelResult:
    channel: str
    ok: bool
    error: str | None = None


@dataclass(slots=True, frozen=True)
class DispatchOutcome:
    """Result of sending one occurrence through every configured channel."""

    occurrence: ReminderOccurrence
    channel_results: tuple[ChannelResult, ...]
    committed: bool
    ledger_error: str | None = None

    @property
    def delivered_any(self) -> bool:
        return any(r.ok for r in self.channel_results)

    @property
    def failed_channels(self) -> list[str]:
        return [r.channel for r in self.channel_results if not r.ok]


@dataclass(slots=True)
class PassOutcome:
    """
    Summary of one scan-and-dispatch pass.

    trigger is "tick" for the periodic driver and "manual" for check_now().
    """

    trigger: str
    started_at: int
    skipped_disabled: bool = False
    error: str | None = None
    dispatches: list[DispatchOutcome] = field(default_factory=list)
    cleaned_up: int | None = None

    @property
    def due_count(self) -> int:
        return len(self.dispatches)

    @property
    def committed_count(self) -> int:
        return sum(1 for d in self.dispatches if d.committed)
