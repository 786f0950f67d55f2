# tests/test_ledger.py

from __future__ import annotations

import sqlite3
from pathlib import Path

import pytest

from taskpulse.reminders.ledger import RETENTION_SECONDS, DeliveryLedger
from taskpulse.reminders.models import DeliveryRecord
from taskpulse.tasks.task_store import TaskStore

from .fakes import NOW, make_task

DAY = 24 * 60 * 60


def _rec(record_id: str, task_id: str, reminder_time: int, sent_at: int = NOW) -> DeliveryRecord:
    return DeliveryRecord(
        record_id=record_id,
        task_id=task_id,
        reminder_time=reminder_time,
        sent_at=sent_at,
        payload_snapshot='{"repeat": "none"}',
    )


def test_record_and_exists_key_off_task_and_time(tmp_path: Path) -> None:
    ledger = DeliveryLedger(tmp_path / "todo.db")

    ledger.record(_rec("r1", "t1", NOW))

    assert ledger.exists("t1", NOW)
    assert not ledger.exists("t1", NOW + 1)
    assert not ledger.exists("t2", NOW)


def test_record_is_an_upsert_on_the_pair(tmp_path: Path) -> None:
    ledger = DeliveryLedger(tmp_path / "todo.db")

    ledger.record(_rec("first", "t1", NOW, sent_at=NOW))
    ledger.record(_rec("second", "t1", NOW, sent_at=NOW + 30))

    assert ledger.count() == 1
    got = ledger.get("t1", NOW)
    assert got is not None
    assert got.record_id == "second"
    assert got.sent_at == NOW + 30


def test_records_survive_reopening(tmp_path: Path) -> None:
    db = tmp_path / "todo.db"
    DeliveryLedger(db).record(_rec("r1", "t1", NOW))

    reopened = DeliveryLedger(db)

    assert reopened.exists("t1", NOW)


def test_delete_for_task_only_touches_that_task(tmp_path: Path) -> None:
    ledger = DeliveryLedger(tmp_path / "todo.db")
    ledger.record(_rec("a", "t1", NOW))
    ledger.record(_rec("b", "t1", NOW + 60))
    ledger.record(_rec("c", "t2", NOW))

    assert ledger.delete_for_task("t1") == 2

    assert ledger.list_for_task("t1") == []
    assert ledger.exists("t2", NOW)


def test_cleanup_uses_sent_at_and_keeps_recent_rows_verbatim(tmp_path: Path) -> None:
    ledger = DeliveryLedger(tmp_path / "todo.db")
    # Reminder time is ancient but it was sent recently: must survive.
    recent = _rec("recent", "t1", NOW - 90 * DAY, sent_at=NOW - 29 * DAY)
    edge = _rec("edge", "t2", NOW, sent_at=NOW - RETENTION_SECONDS)
    old = _rec("old", "t3", NOW - 31 * DAY, sent_at=NOW - 31 * DAY)
    for r in (recent, edge, old):
        ledger.record(r)

    removed = ledger.cleanup(NOW)

    assert removed == 1
    assert ledger.get("t3", old.reminder_time) is None
    assert ledger.get("t1", recent.reminder_time) == recent
    assert ledger.get("t2", edge.reminder_time) == edge


def test_cleanup_honours_custom_retention(tmp_path: Path) -> None:
    ledger = DeliveryLedger(tmp_path / "todo.db", retention_seconds=DAY)
    ledger.record(_rec("a", "t1", NOW, sent_at=NOW - 2 * DAY))
    ledger.record(_rec("b", "t2", NOW, sent_at=NOW - 60))

    assert ledger.cleanup(NOW) == 1
    assert ledger.exists("t2", NOW)


def test_schema_migration_collapses_duplicate_pairs(tmp_path: Path) -> None:
    db = tmp_path / "todo.db"
    conn = sqlite3.connect(str(db))
    conn.execute(
        """
        CREATE TABLE sent_reminders (
            id TEXT PRIMARY KEY,
            task_id TEXT NOT NULL,
            reminder_time INTEGER NOT NULL,
            sent_at INTEGER NOT NULL,
            reminder_data TEXT
        )
        """
    )
    conn.executemany(
        "INSERT INTO sent_reminders VALUES (?, ?, ?, ?, ?)",
        [
            ("old-1", "t1", NOW, NOW, None),
            ("old-2", "t1", NOW, NOW + 5, None),
            ("other", "t2", NOW, NOW, None),
        ],
    )
    conn.commit()
    conn.close()

    ledger = DeliveryLedger(db)

    assert ledger.count() == 2
    kept = ledger.get("t1", NOW)
    assert kept is not None
    assert kept.record_id == "old-2"

    ledger.record(_rec("new", "t1", NOW))
    assert ledger.count() == 2


def test_record_linked_to_tasks_skips_deleted_task(tmp_path: Path) -> None:
    db = tmp_path / "todo.db"
    store = TaskStore(db)
    store.save_task(make_task("t1"))
    ledger = DeliveryLedger(db, tasks_table="tasks")

    assert ledger.record(_rec("a", "t1", NOW)) is True
    assert ledger.record(_rec("b", "gone", NOW)) is False

    assert ledger.exists("t1", NOW)
    assert ledger.list_for_task("gone") == []


def test_tasks_table_name_must_be_an_identifier(tmp_path: Path) -> None:
    with pytest.raises(ValueError):
        DeliveryLedger(tmp_path / "todo.db", tasks_table="tasks; DROP TABLE tasks")
