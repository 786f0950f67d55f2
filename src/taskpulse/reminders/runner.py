# src/taskpulse/reminders/runner.py

from __future__ import annotations

import asyncio
import concurrent.futures
import contextlib
import logging
import threading
from dataclasses import dataclass

from .models import ChannelResult, PassOutcome
from .scheduler import ReminderScheduler

logger = logging.getLogger(__name__)


@dataclass
class SchedulerRunner:
    thread: threading.Thread
    loop: asyncio.AbstractEventLoop
    stop_event: asyncio.Event
    scheduler: ReminderScheduler

    def check_now(self, timeout: float | None = 60.0) -> PassOutcome:
        """
        Thread-safe manual trigger.

        The pass runs on the scheduler's own loop, so it shares the lock with the
        periodic tick.
        """
        fut = asyncio.run_coroutine_threadsafe(self.scheduler.check_now(), self.loop)
        try:
            return fut.result(timeout=timeout)
        except concurrent.futures.TimeoutError:
            fut.cancel()
            raise

    def send_test(self, webhook: str | None = None, timeout: float | None = 30.0) -> list[ChannelResult]:
        fut = asyncio.run_coroutine_threadsafe(self.scheduler.send_test(webhook), self.loop)
        try:
            return fut.result(timeout=timeout)
        except concurrent.futures.TimeoutError:
            fut.cancel()
            raise

    def stop(self) -> None:
        try:
            self.loop.call_soon_threadsafe(self.stop_event.set)
        except RuntimeError:
            logger.debug("Failed to signal scheduler stop (loop already closed).", exc_info=True)

    def join(self, timeout: float | None = None) -> None:
        self.thread.join(timeout=timeout)


def start_scheduler_in_background(scheduler: ReminderScheduler) -> SchedulerRunner | None:
    """
    Start the reminder scheduler in a background thread with its own event loop.

    The console REPL blocks on input(), so the async scheduler cannot share its thread.
    """
    ready = threading.Event()
    holder: dict[str, object] = {}

    def runner() -> None:
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
        stop_event = asyncio.Event()

        holder["loop"] = loop
        holder["stop_event"] = stop_event
        ready.set()

        try:
            loop.run_until_complete(scheduler.run(stop_event))
        except Exception:
            logger.exception("Reminder scheduler thread crashed.")
        finally:
            with contextlib.suppress(Exception):
                loop.run_until_complete(loop.shutdown_default_executor())
            with contextlib.suppress(Exception):
                loop.close()

    t = threading.Thread(target=runner, name="reminder-scheduler", daemon=True)
    t.start()

    ready.wait(timeout=5.0)
    loop = holder.get("loop")
    stop_event = holder.get("stop_event")

    if not isinstance(loop, asyncio.AbstractEventLoop) or not isinstance(stop_event, asyncio.Event):
        logger.error("Scheduler thread did not initialize properly.")
        return None

    logger.info("Reminder scheduler background thread started.")
    return SchedulerRunner(thread=t, loop=loop, stop_event=stop_event, scheduler=scheduler)
