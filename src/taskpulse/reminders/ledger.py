# src/taskpulse/reminders/ledger.py

from __future__ import annotations

import contextlib
import logging
import sqlite3
from pathlib import Path

from .models import DeliveryRecord

logger = logging.getLogger(__name__)

RETENTION_SECONDS = 30 * 24 * 60 * 60


class DeliveryLedger:
    """
    Durable record of delivered reminder occurrences (the dedup store).

    Rows live in the `sent_reminders` table of the task database; the ledger only
    borrows that file as its persistence location and never touches task rows.

    At most one row exists per (task_id, reminder_time): a UNIQUE index on the
    pair turns INSERT OR REPLACE into an upsert, so retries and races are harmless.

    Failure semantics:
    - write errors propagate to the caller (the dispatcher decides what to do)
    - a lost write means the occurrence may be delivered again on the next tick

    When `tasks_table` is set, record() only writes while the task row still exists
    in that table, in the same statement. A task deleted by another thread between
    resolve and commit then leaves no row behind.

    Thread-safety:
    - each method opens its own SQLite connection
    """

    def __init__(
        self,
        db_path: str | Path,
        *,
        retention_seconds: int = RETENTION_SECONDS,
        tasks_table: str | None = None,
    ) -> None:
        if tasks_table is not None and not tasks_table.isidentifier():
            raise ValueError(f"invalid tasks table name: {tasks_table!r}")
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._retention_seconds = max(1, int(retention_seconds))
        self._tasks_table = tasks_table
        self._ensure_schema()
        logger.info(
            "DeliveryLedger ready db=%s retention_days=%.1f",
            self._db_path,
            self._retention_seconds / 86400,
        )

    @property
    def retention_seconds(self) -> int:
        return self._retention_seconds

    # ---- low-level helpers ----

    def _get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self._db_path), timeout=30.0)
        conn.row_factory = sqlite3.Row
        with contextlib.suppress(sqlite3.Error):
            conn.execute("PRAGMA journal_mode=WAL")
        return conn

    def _ensure_schema(self) -> None:
        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS sent_reminders (
                    id TEXT PRIMARY KEY,
                    task_id TEXT NOT NULL,
                    reminder_time INTEGER NOT NULL,
                    sent_at INTEGER NOT NULL,
                    reminder_data TEXT
                )
                """
            )

            # Older databases had no uniqueness on the pair; keep the newest row per pair
            # before the unique index can be created.
            cur.execute(
                """
                DELETE FROM sent_reminders
                WHERE rowid NOT IN (
                    SELECT MAX(rowid) FROM sent_reminders GROUP BY task_id, reminder_time
                )
                """
            )
            if cur.rowcount and cur.rowcount > 0:
                logger.info("DeliveryLedger migration: collapsed %s duplicate rows", cur.rowcount)

            cur.execute(
                "CREATE UNIQUE INDEX IF NOT EXISTS idx_sent_reminders_task_time "
                "ON sent_reminders(task_id, reminder_time)"
            )
            cur.execute("CREATE INDEX IF NOT EXISTS idx_sent_reminders_task_id ON sent_reminders(task_id)")
            cur.execute("CREATE INDEX IF NOT EXISTS idx_sent_reminders_sent_at ON sent_reminders(sent_at)")
            conn.commit()
        finally:
            conn.close()

    @staticmethod
    def _row_to_record(row: sqlite3.Row) -> DeliveryRecord:
        return DeliveryRecord(
            record_id=str(row["id"]),
            task_id=str(row["task_id"]),
            reminder_time=int(row["reminder_time"]),
            sent_at=int(row["sent_at"]),
            payload_snapshot=str(row["reminder_data"] or ""),
        )

    # ---- public API ----

    def exists(self, task_id: str, reminder_time: int) -> bool:
        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute(
                "SELECT 1 FROM sent_reminders WHERE task_id = ? AND reminder_time = ? LIMIT 1",
                (task_id, int(reminder_time)),
            )
            return cur.fetchone() is not None
        finally:
            conn.close()

    def record(self, record: DeliveryRecord) -> bool:
        """
        Upsert the record for its (task_id, reminder_time).

        Returns False when nothing was written because the task is gone.
        """
        params = (
            record.record_id,
            record.task_id,
            int(record.reminder_time),
            int(record.sent_at),
            record.payload_snapshot,
        )
        conn = self._get_conn()
        try:
            if self._tasks_table is None:
                cur = conn.execute(
                    """
                    INSERT OR REPLACE INTO sent_reminders (id, task_id, reminder_time, sent_at, reminder_data)
                    VALUES (?, ?, ?, ?, ?)
                    """,
                    params,
                )
            else:
                cur = conn.execute(
                    f"""
                    INSERT OR REPLACE INTO sent_reminders (id, task_id, reminder_time, sent_at, reminder_data)
                    SELECT ?, ?, ?, ?, ?
                    WHERE EXISTS (SELECT 1 FROM {self._tasks_table} WHERE id = ?)
                    """,
                    (*params, record.task_id),
                )
            conn.commit()
            written = cur.rowcount > 0
        finally:
            conn.close()

        if written:
            logger.debug(
                "Delivery recorded task_id=%s reminder_time=%s record_id=%s",
                record.task_id,
                record.reminder_time,
                record.record_id,
            )
        else:
            logger.info("Delivery not recorded, task is gone task_id=%s", record.task_id)
        return written

    def get(self, task_id: str, reminder_time: int) -> DeliveryRecord | None:
        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute(
                "SELECT * FROM sent_reminders WHERE task_id = ? AND reminder_time = ?",
                (task_id, int(reminder_time)),
            )
            row = cur.fetchone()
            return self._row_to_record(row) if row else None
        finally:
            conn.close()

    def list_for_task(self, task_id: str) -> list[DeliveryRecord]:
        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute(
                "SELECT * FROM sent_reminders WHERE task_id = ? ORDER BY reminder_time ASC",
                (task_id,),
            )
            return [self._row_to_record(r) for r in cur.fetchall()]
        finally:
            conn.close()

    def count(self) -> int:
        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute("SELECT COUNT(*) FROM sent_reminders")
            (n,) = cur.fetchone()
            return int(n)
        finally:
            conn.close()

    def delete_for_task(self, task_id: str) -> int:
        conn = self._get_conn()
        try:
            cur = conn.execute("DELETE FROM sent_reminders WHERE task_id = ?", (task_id,))
            conn.commit()
            removed = max(0, cur.rowcount)
        finally:
            conn.close()
        if removed:
            logger.info("Dropped %d delivery records for deleted task_id=%s", removed, task_id)
        return removed

    def cleanup(self, now: float) -> int:
        """Delete records whose sent_at is older than the retention window."""
        cutoff = int(now) - self._retention_seconds
        conn = self._get_conn()
        try:
            cur = conn.execute("DELETE FROM sent_reminders WHERE sent_at < ?", (cutoff,))
            conn.commit()
            removed = max(0, cur.rowcount)
        finally:
            conn.close()
        logger.info("Ledger cleanup removed=%d cutoff=%s", removed, cutoff)
        return removed
