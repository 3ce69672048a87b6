# tasks/task_store.py

from __future__ import annotations

import contextlib
import logging
import sqlite3
import threading
import time
from collections.abc import Iterator
from datetime import datetime
from pathlib import Path
from typing import Any

from ..core.errors import StoreError, TaskNotFoundError
from .task_models import Priority, Task
from .time_windows import day_window, month_window

logger = logging.getLogger(__name__)


class TaskStore:
    """
    SQLite task store.

    The schema is intentionally simple and migration-safe:
    - create table if missing
    - use PRAGMA table_info to detect missing columns
    - add columns with ALTER TABLE only when needed

    Thread-safety:
    - each method opens its own SQLite connection
    - at most `pool_size` connections are open at once; callers wait up to
      `timeout` seconds for a free slot

    Every update/delete filters on both id and user_id, so a task can only be
    changed by its owner.
    """

    def __init__(
        self,
        db_path: str | Path = "tasks.sqlite3",
        *,
        pool_size: int = 10,
        timeout: float = 10.0,
    ) -> None:
        self._db_path = Path(db_path)
        self._timeout = max(0.1, float(timeout))
        self._slots = threading.BoundedSemaphore(max(1, int(pool_size)))
        try:
            self._db_path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise StoreError(f"Cannot create database directory for {self._db_path}") from exc
        self._ensure_schema()
        logger.info("TaskStore ready db=%s total=%s", self._db_path, self.count_tasks())

    def close(self) -> None:
        """Compatibility hook for shutdown (no persistent connections to close)."""
        return

    # ---- low-level helpers ----

    @contextlib.contextmanager
    def _connection(self) -> Iterator[sqlite3.Connection]:
        if not self._slots.acquire(timeout=self._timeout):
            raise StoreError(f"No free database connection after {self._timeout:.1f}s")
        conn: sqlite3.Connection | None = None
        try:
            conn = sqlite3.connect(str(self._db_path), timeout=self._timeout)
            conn.row_factory = sqlite3.Row
            self._configure_conn(conn)
            yield conn
        except sqlite3.Error as exc:
            raise StoreError(str(exc)) from exc
        finally:
            if conn is not None:
                conn.close()
            self._slots.release()

    @staticmethod
    def _configure_conn(conn: sqlite3.Connection) -> None:
        with contextlib.suppress(sqlite3.Error):
            conn.execute("PRAGMA journal_mode=WAL")

    def _ensure_schema(self) -> None:
        with self._connection() as conn:
            cur = conn.cursor()

            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS tasks (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    user_id TEXT NOT NULL,
                    text TEXT NOT NULL,
                    priority TEXT NOT NULL DEFAULT 'medium'
                        CHECK (priority IN ('low', 'medium', 'high')),
                    due_at REAL NOT NULL,
                    completed INTEGER NOT NULL DEFAULT 0,
                    created_at REAL NOT NULL
                )
                """
            )

            # Migrations (safe): add missing columns.
            cur.execute("PRAGMA table_info(tasks)")
            cols = {row["name"] for row in cur.fetchall()}

            def add_col(name: str, decl: str) -> None:
                if name in cols:
                    return
                cur.execute(f"ALTER TABLE tasks ADD COLUMN {name} {decl}")
                logger.info("TaskStore migration: added column %s", name)

            add_col("priority", "TEXT NOT NULL DEFAULT 'medium'")
            add_col("completed", "INTEGER NOT NULL DEFAULT 0")
            add_col("created_at", "REAL NOT NULL DEFAULT 0")

            cur.execute("CREATE INDEX IF NOT EXISTS idx_tasks_user_due ON tasks(user_id, due_at)")

            conn.commit()

    @staticmethod
    def _row_to_task(row: sqlite3.Row) -> Task:
        return Task(
            id=int(row["id"]),
            user_id=str(row["user_id"]),
            text=str(row["text"] or ""),
            priority=Priority.from_db(row["priority"]),
            due_date=datetime.fromtimestamp(float(row["due_at"])),
            completed=bool(row["completed"]),
            created_at=float(row["created_at"] or 0.0),
        )

    def _select(self, sql: str, params: tuple[Any, ...]) -> list[Task]:
        with self._connection() as conn:
            cur = conn.cursor()
            cur.execute(sql, params)
            return [self._row_to_task(r) for r in cur.fetchall()]

    # ---- public API ----

    def count_tasks(self) -> int:
        with self._connection() as conn:
            cur = conn.cursor()
            cur.execute("SELECT COUNT(*) FROM tasks")
            (n,) = cur.fetchone()
            return int(n)

    def create_task(
        self,
        *,
        user_id: str,
        text: str,
        due_date: datetime,
        priority: Priority | str | None = None,
    ) -> int:
        if not user_id or not str(user_id).strip():
            raise ValueError("user_id is required")
        if not text or not text.strip():
            raise ValueError("text is required")

        prio = Priority.from_db(priority) if priority else Priority.MEDIUM
        now = time.time()

        with self._connection() as conn:
            cur = conn.cursor()
            cur.execute(
                """
                INSERT INTO tasks(user_id, text, priority, due_at, completed, created_at)
                VALUES (?, ?, ?, ?, 0, ?)
                """,
                (str(user_id), text.strip(), prio.value, due_date.timestamp(), now),
            )
            conn.commit()
            rowid = cur.lastrowid
            if rowid is None:
                raise StoreError("SQLite did not return lastrowid for tasks insert")
            task_id = int(rowid)
            logger.debug(
                "Task added id=%s user=%s priority=%s due=%s",
                task_id,
                user_id,
                prio.value,
                due_date.isoformat(),
            )
            return task_id

    def get_task(self, task_id: int, user_id: str) -> Task | None:
        rows = self._select(
            "SELECT * FROM tasks WHERE id = ? AND user_id = ?",
            (int(task_id), str(user_id)),
        )
        return rows[0] if rows else None

    def require_task(self, task_id: int, user_id: str) -> Task:
        task = self.get_task(task_id, user_id)
        if task is None:
            raise TaskNotFoundError(task_id, user_id)
        return task

    def list_tasks_for_user(self, user_id: str) -> list[Task]:
        return self._select(
            "SELECT * FROM tasks WHERE user_id = ? ORDER BY due_at ASC, id ASC",
            (str(user_id),),
        )

    def list_tasks_between(
        self,
        user_id: str,
        start: datetime,
        end: datetime,
        *,
        end_inclusive: bool = False,
    ) -> list[Task]:
        """Tasks with start <= due_date < end (or <= end when end_inclusive)."""
        upper = "<=" if end_inclusive else "<"
        return self._select(
            f"""
            SELECT *
            FROM tasks
            WHERE user_id = ?
              AND due_at >= ?
              AND due_at {upper} ?
            ORDER BY due_at ASC, id ASC
            """,
            (str(user_id), start.timestamp(), end.timestamp()),
        )

    def list_today_tasks(self, user_id: str, now: datetime | None = None) -> list[Task]:
        start, end = day_window(now or datetime.now(), 0)
        return self.list_tasks_between(user_id, start, end)

    def list_tomorrow_tasks(self, user_id: str, now: datetime | None = None) -> list[Task]:
        start, end = day_window(now or datetime.now(), 1)
        return self.list_tasks_between(user_id, start, end)

    def list_month_tasks(self, user_id: str, now: datetime | None = None) -> list[Task]:
        first, last = month_window(now or datetime.now())
        return self.list_tasks_between(user_id, first, last, end_inclusive=True)

    def list_user_ids(self) -> list[str]:
        """Distinct owners, used by the reminder job."""
        with self._connection() as conn:
            cur = conn.cursor()
            cur.execute("SELECT DISTINCT user_id FROM tasks ORDER BY user_id")
            return [str(r["user_id"]) for r in cur.fetchall()]

    def mark_done(self, task_id: int, user_id: str) -> bool:
        with self._connection() as conn:
            cur = conn.cursor()
            cur.execute(
                "UPDATE tasks SET completed = 1 WHERE id = ? AND user_id = ?",
                (int(task_id), str(user_id)),
            )
            conn.commit()
            updated = cur.rowcount == 1
        logger.debug("mark_done id=%s user=%s updated=%s", task_id, user_id, updated)
        return updated

    def delete_task(self, task_id: int, user_id: str) -> bool:
        with self._connection() as conn:
            cur = conn.cursor()
            cur.execute(
                "DELETE FROM tasks WHERE id = ? AND user_id = ?",
                (int(task_id), str(user_id)),
            )
            conn.commit()
            deleted = cur.rowcount == 1
        logger.debug("delete_task id=%s user=%s deleted=%s", task_id, user_id, deleted)
        return deleted
