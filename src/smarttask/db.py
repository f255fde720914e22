from __future__ import annotations

import logging
import os
import sqlite3
from contextlib import contextmanager
from dataclasses import dataclass
from threading import RLock
from typing import Any, Callable, Dict, Generator, List, Optional, Tuple

from .clock import Clock, SystemClock
from .errors import DataIntegrityError, NotFoundError, StorageError
from .models import Priority, TaskEntity
from .repositories import Repository, apply_changes, new_task_id
from .schemas import TaskCreate, TaskUpdate
from .utils import format_timestamp, parse_timestamp

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _Cols:
    table: str = "tasks"
    id: str = "id"
    title: str = "title"
    description: str = "description"
    due_date: str = "dueDate"
    priority: str = "priority"
    is_completed: str = "isCompleted"
    created_at: str = "createdAt"


_COLS = _Cols()

# Python field name -> (column, encoder) for partial updates
_UPDATABLE: Dict[str, Tuple[str, Callable[[Any], Any]]] = {
    "title": (_COLS.title, str),
    "description": (_COLS.description, str),
    "due_date": (_COLS.due_date, format_timestamp),
    "priority": (_COLS.priority, lambda p: Priority(p).value),
    "is_completed": (_COLS.is_completed, lambda b: 1 if b else 0),
}

_ORDER_SQL = f"ORDER BY {_COLS.created_at} DESC, rowid DESC"


def _lower(value: Optional[str]) -> Optional[str]:
    return None if value is None else value.lower()


class SQLiteRepository(Repository):
    """
    SQLite repository implementing the Repository interface.

    Each operation opens its own connection and commits before returning, so
    no explicit close is needed. A re-entrant lock serializes operations on
    this instance; the schema is created lazily on first use.
    """

    def __init__(self, db_path: str, clock: Optional[Clock] = None, timeout: float = 5.0) -> None:
        self._db_path = db_path
        self._clock = clock or SystemClock()
        self._timeout = timeout
        self._lock = RLock()
        self._initialized = False

    @property
    def db_path(self) -> str:
        return self._db_path

    @contextmanager
    def _conn(self) -> Generator[sqlite3.Connection, None, None]:
        try:
            conn = sqlite3.connect(self._db_path, timeout=self._timeout)
        except sqlite3.Error as exc:
            logger.error("Cannot open task database db=%s: %s", self._db_path, exc)
            raise StorageError(f"Cannot open task database at {self._db_path}") from exc
        conn.row_factory = sqlite3.Row
        try:
            conn.create_function("py_lower", 1, _lower, deterministic=True)
            yield conn
            conn.commit()
        except sqlite3.Error as exc:
            logger.error("Task database operation failed db=%s: %s", self._db_path, exc)
            raise StorageError(f"Task database operation failed: {exc}") from exc
        finally:
            conn.close()

    def initialize(self) -> None:
        with self._lock:
            if self._initialized:
                return
            try:
                os.makedirs(os.path.dirname(self._db_path) or ".", exist_ok=True)
            except OSError as exc:
                raise StorageError(f"Cannot create directory for {self._db_path}") from exc
            with self._conn() as conn:
                conn.execute(
                    f"""
                    CREATE TABLE IF NOT EXISTS {_COLS.table} (
                        {_COLS.id} TEXT PRIMARY KEY NOT NULL,
                        {_COLS.title} TEXT NOT NULL,
                        {_COLS.description} TEXT,
                        {_COLS.due_date} TEXT NOT NULL,
                        {_COLS.priority} TEXT NOT NULL,
                        {_COLS.is_completed} INTEGER NOT NULL DEFAULT 0,
                        {_COLS.created_at} TEXT NOT NULL
                    )
                    """
                )
                conn.execute(
                    f"CREATE INDEX IF NOT EXISTS idx_{_COLS.table}_created_at "
                    f"ON {_COLS.table}({_COLS.created_at})"
                )
                total = conn.execute(f"SELECT COUNT(*) AS cnt FROM {_COLS.table}").fetchone()["cnt"]
            self._initialized = True
            logger.info("Task database ready db=%s total=%s", self._db_path, total)

    def _row_to_entity(self, row: sqlite3.Row) -> TaskEntity:
        try:
            title = row[_COLS.title]
            if not isinstance(title, str) or not title.strip():
                raise ValueError("title is empty")
            completed = row[_COLS.is_completed]
            if completed not in (0, 1):
                raise ValueError(f"isCompleted is {completed!r}")
            return {
                "id": str(row[_COLS.id]),
                "title": title,
                "description": row[_COLS.description] or "",
                "due_date": parse_timestamp(row[_COLS.due_date]),
                "priority": Priority(row[_COLS.priority]),
                "is_completed": bool(completed),
                "created_at": parse_timestamp(row[_COLS.created_at]),
            }
        except (TypeError, ValueError) as exc:
            raise DataIntegrityError(f"Stored task {row[_COLS.id]!r} is malformed: {exc}") from exc

    def _select_one(self, conn: sqlite3.Connection, task_id: str) -> Optional[sqlite3.Row]:
        return conn.execute(
            f"SELECT * FROM {_COLS.table} WHERE {_COLS.id} = ?", (task_id,)
        ).fetchone()

    def create(self, data: TaskCreate) -> str:
        with self._lock:
            self.initialize()
            task_id = new_task_id()
            with self._conn() as conn:
                conn.execute(
                    f"""
                    INSERT INTO {_COLS.table} ({_COLS.id}, {_COLS.title}, {_COLS.description},
                        {_COLS.due_date}, {_COLS.priority}, {_COLS.is_completed}, {_COLS.created_at})
                    VALUES (?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        task_id,
                        data.title,
                        data.description,
                        format_timestamp(data.due_date),
                        data.priority.value,
                        1 if data.is_completed else 0,
                        format_timestamp(self._clock.now()),
                    ),
                )
            return task_id

    def get(self, task_id: str) -> Optional[TaskEntity]:
        with self._lock:
            self.initialize()
            with self._conn() as conn:
                row = self._select_one(conn, task_id)
            return self._row_to_entity(row) if row else None

    def get_all(self) -> List[TaskEntity]:
        with self._lock:
            self.initialize()
            with self._conn() as conn:
                rows = conn.execute(f"SELECT * FROM {_COLS.table} {_ORDER_SQL}").fetchall()
            return [self._row_to_entity(r) for r in rows]

    def update(self, task_id: str, data: TaskUpdate) -> TaskEntity:
        with self._lock:
            self.initialize()
            with self._conn() as conn:
                row = self._select_one(conn, task_id)
                if not row:
                    raise NotFoundError(task_id)
                current = self._row_to_entity(row)
                changes = {k: v for k, v in data.changes().items() if k in _UPDATABLE}
                if not changes:
                    return current

                set_sql = ", ".join(f"{_UPDATABLE[name][0]} = ?" for name in changes)
                values = [_UPDATABLE[name][1](value) for name, value in changes.items()]
                conn.execute(
                    f"UPDATE {_COLS.table} SET {set_sql} WHERE {_COLS.id} = ?",
                    [*values, task_id],
                )
            return apply_changes(current, changes)

    def delete(self, task_id: str) -> bool:
        with self._lock:
            self.initialize()
            with self._conn() as conn:
                cur = conn.execute(f"DELETE FROM {_COLS.table} WHERE {_COLS.id} = ?", (task_id,))
                return cur.rowcount > 0

    def search(self, query: str) -> List[TaskEntity]:
        if not query or not query.strip():
            return self.get_all()
        needle = query.lower()
        with self._lock:
            self.initialize()
            with self._conn() as conn:
                rows = conn.execute(
                    f"""
                    SELECT * FROM {_COLS.table}
                    WHERE instr(py_lower({_COLS.title}), ?) > 0
                       OR instr(py_lower({_COLS.description}), ?) > 0
                    {_ORDER_SQL}
                    """,
                    (needle, needle),
                ).fetchall()
            return [self._row_to_entity(r) for r in rows]

    def count(self) -> int:
        with self._lock:
            self.initialize()
            with self._conn() as conn:
                row = conn.execute(f"SELECT COUNT(*) AS cnt FROM {_COLS.table}").fetchone()
            return int(row["cnt"])
