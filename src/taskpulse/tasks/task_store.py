# src/taskpulse/tasks/task_store.py

from __future__ import annotations

import contextlib
import logging
import sqlite3
from collections.abc import Callable
from datetime import datetime, timezone
from pathlib import Path

from .task_models import Priority, Task, TaskList, TaskStatus

logger = logging.getLogger(__name__)

TaskDeletedListener = Callable[[str], None]

_DEFAULT_LISTS: list[tuple[str, str, str | None, str | None, int]] = [
    ("all", "All", "Inbox", None, 0),
    ("today", "Today", "Sun", None, 1),
    ("week", "Next 7 days", "Calendar", None, 2),
]


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class TaskStore:
    """
    SQLite task store.

    The schema is intentionally simple and migration-safe:
    - create table if missing
    - use PRAGMA table_info to detect missing columns
    - add columns with ALTER TABLE only when needed

    Thread-safety:
    - each method opens its own SQLite connection

    Deletions notify registered listeners with the task id (the reminder ledger
    subscribes to drop its dedup rows for that task).
    """

    def __init__(self, db_path: str | Path = "todo.db") -> None:
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._delete_listeners: list[TaskDeletedListener] = []
        self._ensure_schema()
        try:
            total = self.count_tasks()
        except sqlite3.Error:
            total = -1
        logger.info("TaskStore ready db=%s total=%s", self._db_path, total)

    @property
    def db_path(self) -> Path:
        return self._db_path

    def close(self) -> None:
        """Compatibility hook for shutdown (no persistent connections to close)."""
        return

    # ---- low-level helpers ----

    def _get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self._db_path), timeout=30.0)
        conn.row_factory = sqlite3.Row
        self._configure_conn(conn)
        return conn

    @staticmethod
    def _configure_conn(conn: sqlite3.Connection) -> None:
        with contextlib.suppress(sqlite3.Error):
            conn.execute("PRAGMA journal_mode=WAL")

    def _ensure_schema(self) -> None:
        conn = self._get_conn()
        try:
            cur = conn.cursor()

            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS tasks (
                    id TEXT PRIMARY KEY,
                    title TEXT NOT NULL,
                    description TEXT,
                    completed INTEGER NOT NULL DEFAULT 0,
                    priority TEXT NOT NULL DEFAULT 'none',
                    status TEXT NOT NULL DEFAULT 'todo',
                    list_id TEXT NOT NULL,
                    tags TEXT NOT NULL DEFAULT '[]',
                    sub_tasks TEXT NOT NULL DEFAULT '[]',
                    reminders TEXT NOT NULL DEFAULT '[]',
                    due_date TEXT,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL,
                    "order" INTEGER NOT NULL DEFAULT 0
                )
                """
            )

            # Migrations (safe): add missing columns.
            cur.execute("PRAGMA table_info(tasks)")
            cols = {row["name"] for row in cur.fetchall()}

            def add_col(name: str, decl: str) -> None:
                if name in cols:
                    return
                cur.execute(f'ALTER TABLE tasks ADD COLUMN "{name}" {decl}')
                logger.info("TaskStore migration: added column %s", name)

            add_col("description", "TEXT")
            add_col("priority", "TEXT NOT NULL DEFAULT 'none'")
            add_col("status", "TEXT NOT NULL DEFAULT 'todo'")
            add_col("tags", "TEXT NOT NULL DEFAULT '[]'")
            add_col("sub_tasks", "TEXT NOT NULL DEFAULT '[]'")
            add_col("reminders", "TEXT NOT NULL DEFAULT '[]'")
            add_col("due_date", "TEXT")
            add_col("order", "INTEGER NOT NULL DEFAULT 0")

            cur.execute("CREATE INDEX IF NOT EXISTS idx_tasks_completed ON tasks(completed)")
            cur.execute("CREATE INDEX IF NOT EXISTS idx_tasks_list ON tasks(list_id)")

            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS lists (
                    id TEXT PRIMARY KEY,
                    name TEXT NOT NULL,
                    icon TEXT,
                    color TEXT,
                    "order" INTEGER NOT NULL DEFAULT 0,
                    created_at TEXT NOT NULL
                )
                """
            )

            now = _utc_now_iso()
            cur.executemany(
                'INSERT OR IGNORE INTO lists (id, name, icon, color, "order", created_at) '
                "VALUES (?, ?, ?, ?, ?, ?)",
                [(lid, name, icon, color, order, now) for lid, name, icon, color, order in _DEFAULT_LISTS],
            )

            conn.commit()
        finally:
            conn.close()

    @staticmethod
    def _row_to_task(row: sqlite3.Row) -> Task:
        return Task(
            id=str(row["id"]),
            title=str(row["title"] or ""),
            completed=bool(row["completed"]),
            reminders=str(row["reminders"] or "[]"),
            list_id=str(row["list_id"] or "all"),
            description=row["description"],
            priority=Priority.from_db(row["priority"]),
            status=TaskStatus.from_db(row["status"]),
            tags=str(row["tags"] or "[]"),
            sub_tasks=str(row["sub_tasks"] or "[]"),
            due_date=row["due_date"],
            created_at=str(row["created_at"] or ""),
            updated_at=str(row["updated_at"] or ""),
            order=int(row["order"] or 0),
        )

    # ---- listeners ----

    def add_delete_listener(self, listener: TaskDeletedListener) -> None:
        self._delete_listeners.append(listener)

    def _notify_deleted(self, task_id: str) -> None:
        for listener in list(self._delete_listeners):
            try:
                listener(task_id)
            except Exception:
                logger.exception("Task delete listener failed task_id=%s", task_id)

    # ---- public API ----

    def count_tasks(self) -> int:
        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute("SELECT COUNT(*) FROM tasks")
            (n,) = cur.fetchone()
            return int(n)
        finally:
            conn.close()

    def save_task(self, task: Task) -> None:
        """Insert or replace a task by id."""
        if not task.id or not task.id.strip():
            raise ValueError("task id is required")
        if not task.title or not task.title.strip():
            raise ValueError("task title is required")

        now = _utc_now_iso()
        created_at = task.created_at or now
        updated_at = task.updated_at or now

        conn = self._get_conn()
        try:
            conn.execute(
                """
                INSERT OR REPLACE INTO tasks (
                    id, title, description, completed, priority, status, list_id,
                    tags, sub_tasks, reminders, due_date, created_at, updated_at, "order"
                )
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    task.id.strip(),
                    task.title.strip(),
                    task.description,
                    1 if task.completed else 0,
                    task.priority.value,
                    task.status.value,
                    task.list_id,
                    task.tags,
                    task.sub_tasks,
                    task.reminders,
                    task.due_date,
                    created_at,
                    updated_at,
                    int(task.order),
                ),
            )
            conn.commit()
            logger.debug("Task saved id=%s completed=%s", task.id, task.completed)
        finally:
            conn.close()

    def get_task(self, task_id: str) -> Task | None:
        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute("SELECT * FROM tasks WHERE id = ?", (task_id,))
            row = cur.fetchone()
            return self._row_to_task(row) if row else None
        finally:
            conn.close()

    def list_tasks(self) -> list[Task]:
        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute('SELECT * FROM tasks ORDER BY "order" ASC, created_at DESC')
            return [self._row_to_task(r) for r in cur.fetchall()]
        finally:
            conn.close()

    def list_incomplete_tasks(self) -> list[Task]:
        """Tasks the reminder engine should scan (completed = 0)."""
        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute('SELECT * FROM tasks WHERE completed = 0 ORDER BY "order" ASC, created_at DESC')
            return [self._row_to_task(r) for r in cur.fetchall()]
        finally:
            conn.close()

    def set_completed(self, task_id: str, completed: bool) -> bool:
        """Returns True if a row was updated."""
        conn = self._get_conn()
        try:
            cur = conn.execute(
                "UPDATE tasks SET completed = ?, status = ?, updated_at = ? WHERE id = ?",
                (
                    1 if completed else 0,
                    TaskStatus.DONE.value if completed else TaskStatus.TODO.value,
                    _utc_now_iso(),
                    task_id,
                ),
            )
            conn.commit()
            return cur.rowcount == 1
        finally:
            conn.close()

    def update_reminders(self, task_id: str, reminders: str) -> bool:
        conn = self._get_conn()
        try:
            cur = conn.execute(
                "UPDATE tasks SET reminders = ?, updated_at = ? WHERE id = ?",
                (reminders, _utc_now_iso(), task_id),
            )
            conn.commit()
            return cur.rowcount == 1
        finally:
            conn.close()

    def delete_task(self, task_id: str) -> bool:
        """
        Delete a task and notify listeners.

        Listeners run even when the row was already gone, so stale state keyed by
        the id is always dropped.
        """
        conn = self._get_conn()
        try:
            cur = conn.execute("DELETE FROM tasks WHERE id = ?", (task_id,))
            conn.commit()
            deleted = cur.rowcount == 1
        finally:
            conn.close()

        self._notify_deleted(task_id)
        logger.info("Task deleted id=%s existed=%s", task_id, deleted)
        return deleted

    def list_lists(self) -> list[TaskList]:
        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute('SELECT * FROM lists ORDER BY "order" ASC')
            return [
                TaskList(
                    id=str(r["id"]),
                    name=str(r["name"]),
                    icon=r["icon"],
                    color=r["color"],
                    order=int(r["order"] or 0),
                    created_at=str(r["created_at"]),
                )
                for r in cur.fetchall()
            ]
        finally:
            conn.close()
