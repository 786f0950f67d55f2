# src/taskpulse/reminders/dispatcher.py

"""
Dispatch coordinator.

For one due occurrence:
- render the notification text,
- attempt every configured channel concurrently (each bounded by a timeout),
- collect one ChannelResult per channel,
- then commit a DeliveryRecord, whatever the channels reported.

Marking is "attempted", not "confirmed by all channels": an unreachable webhook
must not turn into a notification storm on every tick.
"""

from __future__ import annotations

import asyncio
import json
import logging
import time
import uuid
from collections.abc import Callable
from datetime import datetime, timezone

from ..core.ports import DeliveryLedgerRepo, NotificationChannel
from .channels import DEFAULT_TIMEOUT_SECONDS, WebhookChannel
from .models import ChannelResult, DeliveryRecord, DispatchOutcome, NotificationSettings, ReminderOccurrence

logger = logging.getLogger(__name__)

DEFAULT_TITLE = "Task reminder"
TEST_BODY = "Test notification: reminders will show up like this."
TASK_GONE = "task deleted"

WebhookFactory = Callable[[str], NotificationChannel]


def render_body(occurrence: ReminderOccurrence) -> str:
    return f"Task: {occurrence.task_title}"


def build_snapshot(occurrence: ReminderOccurrence) -> str:
    return json.dumps(
        {
            "date": datetime.fromtimestamp(occurrence.reminder_time, tz=timezone.utc).isoformat(),
            "repeat": occurrence.repeat,
            "task_title": occurrence.task_title,
        },
        ensure_ascii=False,
    )


class DispatchCoordinator:
    def __init__(
        self,
        ledger: DeliveryLedgerRepo,
        system_channel: NotificationChannel,
        *,
        webhook_factory: WebhookFactory | None = None,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        clock: Callable[[], float] = time.time,
        title: str = DEFAULT_TITLE,
    ) -> None:
        self._ledger = ledger
        self._system_channel = system_channel
        self._webhook_factory: WebhookFactory = webhook_factory or (
            lambda url: WebhookChannel(url, timeout_seconds=timeout_seconds)
        )
        self._timeout_s = max(0.1, float(timeout_seconds))
        self._clock = clock
        self._title = title

    def channels_for(self, settings: NotificationSettings) -> list[NotificationChannel]:
        """System toast first, then the webhook when one is configured."""
        channels: list[NotificationChannel] = [self._system_channel]
        if settings.webhook:
            try:
                channels.append(self._webhook_factory(settings.webhook))
            except Exception:
                logger.exception("Cannot build webhook channel; continuing without it")
        return channels

    async def _attempt(
        self,
        channel: NotificationChannel,
        title: str,
        body: str,
        ref: str,
    ) -> ChannelResult:
        name = str(getattr(channel, "name", type(channel).__name__))
        try:
            await asyncio.wait_for(channel.send(title, body), timeout=self._timeout_s)
        except asyncio.CancelledError:
            raise
        except asyncio.TimeoutError:
            logger.warning("Channel %s timed out after %.1fs %s", name, self._timeout_s, ref)
            return ChannelResult(channel=name, ok=False, error="timeout")
        except Exception as e:
            logger.exception("Channel %s failed %s", name, ref)
            return ChannelResult(channel=name, ok=False, error=str(e) or type(e).__name__)
        return ChannelResult(channel=name, ok=True)

    async def send_test(self, settings: NotificationSettings) -> list[ChannelResult]:
        """Send a fixed test message through every configured channel. Nothing is recorded."""
        channels = self.channels_for(settings)
        results = await asyncio.gather(
            *(self._attempt(ch, self._title, TEST_BODY, "(test notification)") for ch in channels)
        )
        return list(results)

    async def dispatch(self, occurrence: ReminderOccurrence, settings: NotificationSettings) -> DispatchOutcome:
        title = self._title
        body = render_body(occurrence)
        channels = self.channels_for(settings)
        ref = f"task_id={occurrence.task_id} reminder_time={occurrence.reminder_time}"

        results = await asyncio.gather(*(self._attempt(ch, title, body, ref) for ch in channels))

        record = DeliveryRecord(
            record_id=uuid.uuid4().hex,
            task_id=occurrence.task_id,
            reminder_time=occurrence.reminder_time,
            sent_at=int(self._clock()),
            payload_snapshot=build_snapshot(occurrence),
        )
        try:
            written = self._ledger.record(record)
        except Exception as e:
            # The occurrence stays undelivered in the ledger and will be retried next tick.
            logger.exception("Ledger write failed %s", ref)
            return DispatchOutcome(
                occurrence=occurrence,
                channel_results=tuple(results),
                committed=False,
                ledger_error=str(e) or type(e).__name__,
            )

        if written is False:
            return DispatchOutcome(
                occurrence=occurrence,
                channel_results=tuple(results),
                committed=False,
                ledger_error=TASK_GONE,
            )

        outcome = DispatchOutcome(occurrence=occurrence, channel_results=tuple(results), committed=True)
        if outcome.failed_channels:
            logger.warning(
                "Reminder marked sent with failed channels=%s %s",
                ",".join(outcome.failed_channels),
                ref,
            )
        else:
            logger.info("Reminder sent %s", ref)
        return outcome
