# src/taskpulse/cli/commands.py

from __future__ import annotations

import asyncio
import contextlib
import inspect
import logging
import time
from collections.abc import Callable
from dataclasses import replace
from datetime import datetime
from typing import cast

from ..core.state import AppState
from ..reminders.dispatcher import TASK_GONE
from ..reminders.models import ChannelResult, NotificationSettings, PassOutcome
from ..tasks.task_api import add_reminder, create_task_with_reminder, next_reminder_ts

CommandEmitter = Callable[[str], None]
CommandHandler2 = Callable[[AppState, list[str]], str]
CommandHandler3 = Callable[[AppState, list[str], CommandEmitter | None], str]
CommandHandler = CommandHandler2 | CommandHandler3

logger = logging.getLogger(__name__)


class CommandRegistry:
    """Simple slash-command registry used by the console connector (/help, /check, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    def handle(
        self,
        state: AppState,
        line: str,
        emit: CommandEmitter | None = None,
    ) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.
        """
        if not line.startswith("/"):
            return None

        parts = line[1:].split()
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        try:
            nparams = len(inspect.signature(handler).parameters)
        except (TypeError, ValueError):
            nparams = 3

        if nparams >= 3:
            h3 = cast(CommandHandler3, handler)
            return h3(state, args, emit)

        h2 = cast(CommandHandler2, handler)
        return h2(state, args)

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


def _fmt_ts(ts: float) -> str:
    return datetime.fromtimestamp(ts).astimezone().strftime("%Y-%m-%d %H:%M:%S")


def _current_settings(state: AppState) -> NotificationSettings:
    try:
        return state.notification_settings.load() or NotificationSettings()
    except ValueError:
        logger.warning("Notification settings unreadable; showing defaults", exc_info=True)
        return NotificationSettings()


def _parse_minutes(raw: str) -> float | None:
    try:
        minutes = float(raw)
    except ValueError:
        return None
    return minutes if minutes >= 0 else None


def format_pass_outcome(outcome: PassOutcome) -> str:
    if outcome.skipped_disabled:
        return "Notifications are disabled; nothing was sent. Use /notify on."
    if outcome.error:
        return f"Check failed: {outcome.error}. Will retry on the next tick."
    if not outcome.dispatches:
        return "No due reminders."

    lines = [f"Due reminders: {outcome.due_count}, recorded: {outcome.committed_count}"]
    for d in outcome.dispatches:
        occ = d.occurrence
        status = "ok" if not d.failed_channels else f"failed: {', '.join(d.failed_channels)}"
        if not d.committed:
            if d.ledger_error == TASK_GONE:
                status += "; task was deleted, not recorded"
            else:
                status += "; not recorded, will retry"
        lines.append(f"  - {occ.task_title} @ {_fmt_ts(occ.reminder_time)} ({status})")
    return "\n".join(lines)


def format_test_results(results: list[ChannelResult]) -> str:
    lines = ["Test notification:"]
    for r in results:
        lines.append(f"  {r.channel}: " + ("ok" if r.ok else f"failed ({r.error})"))
    return "\n".join(lines)


def cmd_help(state: AppState, args: list[str]) -> str:
    return registry.build_help()


def cmd_status(state: AppState, args: list[str]) -> str:
    ns = _current_settings(state)
    try:
        tasks_total = state.task_store.count_tasks()
        sent_total = state.ledger.count()
    except Exception:
        logger.exception("Status counters failed")
        tasks_total = sent_total = -1
    busy = "yes" if state.scheduler.is_running else "no"
    return (
        "Status:\n"
        f"  Notifications: {'ON' if ns.enabled else 'OFF'}\n"
        f"  Webhook: {'configured' if ns.webhook else 'none'}\n"
        f"  Tick: every {state.scheduler.tick_seconds:g}s (ticks so far: {state.scheduler.tick_count})\n"
        f"  Check in progress: {busy}\n"
        f"  Tasks: {tasks_total}, delivered reminders on record: {sent_total}"
    )


def cmd_tasks(state: AppState, args: list[str]) -> str:
    tasks = state.task_store.list_incomplete_tasks()
    if not tasks:
        return "No open tasks."
    now_ts = time.time()
    lines = ["Open tasks:"]
    for t in tasks:
        nxt = next_reminder_ts(t, now_ts)
        when = _fmt_ts(nxt) if nxt is not None else "-"
        lines.append(f"  {t.id}  {t.title}  (next reminder: {when})")
    return "\n".join(lines)


def cmd_add(state: AppState, args: list[str]) -> str:
    """
    /add <minutes> <title...>
    """
    if len(args) < 2:
        return "Usage: /add <minutes> <title...>"
    minutes = _parse_minutes(args[0])
    if minutes is None:
        return "Minutes must be a non-negative number."
    title = " ".join(args[1:]).strip()
    task = create_task_with_reminder(state.task_store, title=title, remind_after_minutes=minutes)
    return f"Task {task.id} created; reminder in {minutes:g} min."


def cmd_remind(state: AppState, args: list[str]) -> str:
    """
    /remind <task_id> <minutes> [repeat]
    """
    if len(args) < 2:
        return "Usage: /remind <task_id> <minutes> [repeat]"
    minutes = _parse_minutes(args[1])
    if minutes is None:
        return "Minutes must be a non-negative number."
    repeat = args[2] if len(args) > 2 else "none"
    if not add_reminder(state.task_store, args[0], remind_after_minutes=minutes, repeat=repeat):
        return f"No task with id {args[0]}."
    return f"Reminder added to {args[0]} in {minutes:g} min (repeat: {repeat})."


def cmd_done(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /done <task_id>"
    if not state.task_store.set_completed(args[0], True):
        return f"No task with id {args[0]}."
    return f"Task {args[0]} completed."


def cmd_delete(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /delete <task_id>"
    if not state.task_store.delete_task(args[0]):
        return f"No task with id {args[0]}."
    return f"Task {args[0]} deleted."


def cmd_notify(state: AppState, args: list[str]) -> str:
    """
    /notify          -> show status
    /notify on|off   -> enable / disable reminder notifications
    """
    current = _current_settings(state)
    if not args:
        return f"Notifications are {'ON' if current.enabled else 'OFF'}. Use /notify on or /notify off."

    arg = args[0].lower()
    if arg in ("on", "1", "true", "yes"):
        enabled = True
    elif arg in ("off", "0", "false", "no"):
        enabled = False
    else:
        return "Usage: /notify on or /notify off."

    state.notification_settings.save(replace(current, enabled=enabled))
    return f"Notifications {'enabled' if enabled else 'disabled'} (applies from the next tick)."


def cmd_webhook(state: AppState, args: list[str]) -> str:
    """
    /webhook <url>  -> send reminders to this webhook too
    /webhook off    -> remove the webhook
    """
    current = _current_settings(state)
    if not args:
        return f"Webhook: {current.webhook or 'none'}"

    arg = args[0]
    if arg.lower() in ("off", "none", "clear"):
        state.notification_settings.save(replace(current, webhook=None))
        return "Webhook removed."
    if not arg.lower().startswith(("http://", "https://")):
        return "Webhook must be an http(s) URL."

    state.notification_settings.save(replace(current, webhook=arg))
    return "Webhook saved."


def cmd_check(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    """
    /check -> check and send due reminders now
    """
    if emit and state.scheduler.is_running:
        with contextlib.suppress(Exception):
            emit("[REMINDERS] A check is already running; waiting for it...")

    try:
        if state.runner is not None:
            outcome = state.runner.check_now()
        else:
            outcome = asyncio.run(state.scheduler.check_now())
    except TimeoutError:
        logger.warning("Manual check did not finish in time; it keeps running in the background")
        return "Check still running; results will appear in the log."
    return format_pass_outcome(outcome)


def cmd_test(state: AppState, args: list[str]) -> str:
    """
    /test        -> send a test notification through the saved channels
    /test <url>  -> same, but try this webhook instead of the saved one
    """
    webhook = args[0] if args else None
    if webhook and not webhook.lower().startswith(("http://", "https://")):
        return "Webhook must be an http(s) URL."

    try:
        if state.runner is not None:
            results = state.runner.send_test(webhook)
        else:
            results = asyncio.run(state.scheduler.send_test(webhook))
    except TimeoutError:
        return "Test notification still running; results will appear in the log."
    return format_test_results(results)


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("status", cmd_status, help_text="Show notification settings and counters.")
registry.register("tasks", cmd_tasks, help_text="List open tasks and their next reminder.", aliases=["ls"])
registry.register("add", cmd_add, help_text="Create a task with a reminder: /add <minutes> <title...>.")
registry.register("remind", cmd_remind, help_text="Add a reminder: /remind <task_id> <minutes> [repeat].")
registry.register("done", cmd_done, help_text="Mark a task completed: /done <task_id>.")
registry.register("delete", cmd_delete, help_text="Delete a task: /delete <task_id>.", aliases=["rm"])
registry.register("notify", cmd_notify, help_text="Enable/disable notifications: /notify on | /notify off.")
registry.register("webhook", cmd_webhook, help_text="Set or clear the webhook: /webhook <url> | /webhook off.")
registry.register("check", cmd_check, help_text="Check and send due reminders now.")
registry.register("test", cmd_test, help_text="Send a test notification: /test [webhook_url].")
