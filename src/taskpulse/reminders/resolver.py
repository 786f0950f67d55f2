# src/taskpulse/reminders/resolver.py

from __future__ import annotations

import logging
from collections.abc import Iterable

from ..core.ports import DeliveryLedgerRepo
from ..tasks.task_models import Task
from .extractor import extract
from .models import ReminderOccurrence

logger = logging.getLogger(__name__)


class DueSetResolver:
    """
    Decide which occurrences must be sent now.

    An occurrence is due when reminder_time <= now and the ledger has no record for
    (task_id, reminder_time). There is no lower bound: a reminder missed while the
    app was closed stays due until it is delivered once.

    The existence check is advisory. Passes are serialized by the scheduler and the
    ledger write is an upsert, so the gap between check and commit cannot produce a
    second row.
    """

    def __init__(self, ledger: DeliveryLedgerRepo) -> None:
        self._ledger = ledger

    def resolve(self, now: int, tasks: Iterable[Task]) -> list[ReminderOccurrence]:
        due: list[ReminderOccurrence] = []
        for task in tasks:
            if task.completed:
                continue

            try:
                occurrences = extract(task)
            except Exception:
                logger.exception("Reminder extraction failed task_id=%s", getattr(task, "id", None))
                continue

            for occ in occurrences:
                if occ.reminder_time > now:
                    continue
                # Ledger errors propagate: without the dedup store the pass cannot run safely.
                if self._ledger.exists(occ.task_id, occ.reminder_time):
                    continue
                due.append(occ)

        if due:
            logger.info("Due reminders: %d", len(due))
        return due
