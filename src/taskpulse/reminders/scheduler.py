# src/taskpulse/reminders/scheduler.py

"""
Reminder scheduler.

A small polling loop that, on every tick:
- reloads notification settings (no caching, changes apply within one tick),
- resolves due, not-yet-delivered reminder occurrences,
- dispatches them through the coordinator (which writes the ledger),
- every Nth tick, drops ledger rows past the retention window.

check_now() runs the same pass on demand. Both paths take one asyncio.Lock, so two
passes never observe the same occurrence as undelivered at the same time.

To stop the scheduler, set the stop event or cancel the task running run().
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import time
from collections.abc import Callable
from dataclasses import replace

from ..core.ports import DeliveryLedgerRepo, NotificationSettingsRepo, TaskRepo
from .dispatcher import DispatchCoordinator
from .models import ChannelResult, NotificationSettings, PassOutcome
from .resolver import DueSetResolver

logger = logging.getLogger(__name__)


class ReminderScheduler:
    def __init__(
        self,
        task_repo: TaskRepo,
        ledger: DeliveryLedgerRepo,
        settings_repo: NotificationSettingsRepo,
        coordinator: DispatchCoordinator,
        *,
        resolver: DueSetResolver | None = None,
        tick_seconds: float = 30.0,
        cleanup_every_ticks: int = 120,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._task_repo = task_repo
        self._ledger = ledger
        self._settings_repo = settings_repo
        self._coordinator = coordinator
        self._resolver = resolver or DueSetResolver(ledger)
        self._tick_s = max(0.01, float(tick_seconds))
        self._cleanup_every = max(1, int(cleanup_every_ticks))
        self._clock = clock

        self._lock = asyncio.Lock()
        self._tick_count = 0
        self._queued_manual: asyncio.Future[PassOutcome] | None = None

    @property
    def tick_seconds(self) -> float:
        return self._tick_s

    @property
    def tick_count(self) -> int:
        return self._tick_count

    @property
    def is_running(self) -> bool:
        """True while a pass holds the lock."""
        return self._lock.locked()

    # ---- pass body ----

    def _load_settings(self) -> NotificationSettings:
        try:
            loaded = self._settings_repo.load()
        except Exception:
            logger.warning("Notification settings unreadable; notifications stay enabled", exc_info=True)
            return NotificationSettings()
        return loaded if loaded is not None else NotificationSettings()

    async def _scan_and_dispatch(self, trigger: str) -> PassOutcome:
        """One pass. Must be called with the lock held. Never raises (except cancellation)."""
        now = int(self._clock())
        outcome = PassOutcome(trigger=trigger, started_at=now)

        settings = self._load_settings()
        if not settings.enabled:
            logger.debug("Notifications disabled; skipping %s pass", trigger)
            outcome.skipped_disabled = True
            return outcome

        try:
            tasks = self._task_repo.list_incomplete_tasks()
            due = self._resolver.resolve(now, tasks)
        except Exception as e:
            logger.exception("Reminder scan failed (%s); retrying next tick", trigger)
            outcome.error = str(e) or type(e).__name__
            return outcome

        for occ in due:
            try:
                outcome.dispatches.append(await self._coordinator.dispatch(occ, settings))
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.exception(
                    "Dispatch crashed task_id=%s reminder_time=%s",
                    occ.task_id,
                    occ.reminder_time,
                )

        if outcome.dispatches:
            logger.info(
                "%s pass done: due=%d committed=%d",
                trigger,
                outcome.due_count,
                outcome.committed_count,
            )
        return outcome

    def _cleanup(self, now: int) -> int | None:
        try:
            return self._ledger.cleanup(now)
        except Exception:
            logger.exception("Ledger cleanup failed")
            return None

    # ---- entry points ----

    async def tick(self) -> PassOutcome:
        self._tick_count += 1
        run_cleanup = self._tick_count % self._cleanup_every == 0

        async with self._lock:
            outcome = await self._scan_and_dispatch("tick")
            if run_cleanup:
                outcome.cleaned_up = self._cleanup(int(self._clock()))
        return outcome

    async def check_now(self) -> PassOutcome:
        """
        Check and send due reminders now.

        Waits for an in-flight pass instead of overlapping it. While one manual request
        is already waiting for the lock, further requests join it and get the same outcome.
        If that request is cancelled, the requests that joined it run a pass of their own.
        """
        while True:
            queued = self._queued_manual
            if queued is None:
                break
            try:
                return await asyncio.shield(queued)
            except asyncio.CancelledError:
                task = asyncio.current_task()
                if queued.cancelled() and (task is None or not task.cancelling()):
                    continue
                raise

        fut: asyncio.Future[PassOutcome] = asyncio.get_running_loop().create_future()
        self._queued_manual = fut
        try:
            async with self._lock:
                if self._queued_manual is fut:
                    self._queued_manual = None
                outcome = await self._scan_and_dispatch("manual")
        except BaseException:
            if self._queued_manual is fut:
                self._queued_manual = None
            if not fut.done():
                fut.cancel()
            raise

        fut.set_result(outcome)
        return outcome

    async def send_test(self, webhook: str | None = None) -> list[ChannelResult]:
        """
        Send a test notification through the configured channels, or through `webhook`
        instead of the saved one. Ignores the enabled flag and leaves the ledger alone.
        """
        settings = self._load_settings()
        if webhook:
            settings = replace(settings, webhook=webhook)
        return await self._coordinator.send_test(settings)

    async def run(self, stop_event: asyncio.Event | None = None) -> None:
        """
        Fixed-rate loop: the first tick runs immediately, then every tick_seconds.

        A pass that overruns its slot skips the missed deadlines rather than bursting.
        Manual checks do not shift the phase.
        """
        loop = asyncio.get_running_loop()
        next_at = loop.time()
        logger.info("Reminder scheduler started tick=%.1fs cleanup_every=%d", self._tick_s, self._cleanup_every)

        try:
            while stop_event is None or not stop_event.is_set():
                try:
                    await self.tick()
                except asyncio.CancelledError:
                    raise
                except Exception:
                    logger.exception("Reminder tick failed")

                next_at += self._tick_s
                now = loop.time()
                if next_at <= now:
                    missed = int((now - next_at) // self._tick_s) + 1
                    next_at += missed * self._tick_s
                delay = max(0.0, next_at - now)

                if stop_event is None:
                    await asyncio.sleep(delay)
                else:
                    with contextlib.suppress(asyncio.TimeoutError):
                        await asyncio.wait_for(stop_event.wait(), timeout=delay)
        finally:
            logger.info("Reminder scheduler stopped after %d ticks", self._tick_count)
