"""
Check Store

Durable storage for checks, backed by SQLite.

Every mutation is a single read-decide-write transaction. Inside one process
an asyncio lock orders transactions; across processes sharing the database
file, ``BEGIN IMMEDIATE`` takes SQLite's write lock up front so concurrent
writers are serialized as well.
"""

from __future__ import annotations

import asyncio
import sqlite3
import uuid
from contextlib import contextmanager
from pathlib import Path
from typing import Callable, Iterator

import structlog

from pulse.monitor.errors import CheckNotFoundError, StorageError
from pulse.monitor.models import Check, CheckStatus

logger = structlog.get_logger(__name__)

# Mutator passed to update_*: edits the check in place and returns whether to write it
CheckMutator = Callable[[Check], bool]

_SCHEMA = """
CREATE TABLE IF NOT EXISTS checks (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    token TEXT NOT NULL UNIQUE,
    name TEXT NOT NULL,
    schedule TEXT NOT NULL,
    grace TEXT NOT NULL,
    status TEXT NOT NULL DEFAULT 'new'
        CHECK (status IN ('new', 'up', 'down', 'failed', 'maintenance')),
    last_ping_at INTEGER,
    last_ping_duration_ms INTEGER,
    consecutive_down_count INTEGER NOT NULL DEFAULT 0,
    created_at INTEGER NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_checks_status ON checks (status);
CREATE UNIQUE INDEX IF NOT EXISTS idx_checks_token ON checks (token);
"""

# Columns added after the first release: (table, column, definition)
_ADDED_COLUMNS = [
    ("checks", "last_error", "TEXT"),
]


class CheckStore:
    """
    Stores checks keyed by internal id and by public token.

    Reads return fresh Check instances; mutating them has no effect until
    they go through update_by_token() or update_by_id().
    """

    def __init__(self, path: Path | str) -> None:
        """
        Initialize the store.

        Args:
            path: SQLite database file, or ":memory:"
        """
        self._path = str(path)
        self._conn: sqlite3.Connection | None = None
        self._lock = asyncio.Lock()

    # Connection management

    def open(self) -> None:
        """Open the database and apply migrations."""
        if self._conn is not None:
            return

        if self._path != ":memory:":
            Path(self._path).parent.mkdir(parents=True, exist_ok=True)

        try:
            conn = sqlite3.connect(self._path, check_same_thread=False, isolation_level=None)
            conn.row_factory = sqlite3.Row
            conn.execute("PRAGMA journal_mode=WAL")
            conn.execute("PRAGMA busy_timeout=5000")
        except sqlite3.Error as e:
            raise StorageError(f"Failed to open database {self._path}: {e}") from e

        self._conn = conn
        self.migrate()
        logger.info("Check store opened", path=self._path)

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    @property
    def is_open(self) -> bool:
        return self._conn is not None

    def migrate(self) -> None:
        """Create tables and add missing columns. Safe to run repeatedly."""
        with self._transaction() as conn:
            # executescript would commit our transaction, so run statements one by one
            for statement in _SCHEMA.split(";"):
                if statement.strip():
                    conn.execute(statement)

            for table, column, definition in _ADDED_COLUMNS:
                existing = {row["name"] for row in conn.execute(f"PRAGMA table_info({table})")}
                if column not in existing:
                    logger.info("Schema migration: adding column", table=table, column=column)
                    conn.execute(f"ALTER TABLE {table} ADD COLUMN {column} {definition}")

    def _connection(self) -> sqlite3.Connection:
        if self._conn is None:
            raise StorageError("Check store is not open")
        return self._conn

    @contextmanager
    def _transaction(self) -> Iterator[sqlite3.Connection]:
        """Run a block as one immediate transaction, rolling back on any error."""
        conn = self._connection()
        try:
            conn.execute("BEGIN IMMEDIATE")
        except sqlite3.Error as e:
            raise StorageError(f"Failed to begin transaction: {e}") from e

        try:
            yield conn
        except sqlite3.Error as e:
            conn.execute("ROLLBACK")
            raise StorageError(str(e)) from e
        except BaseException:
            conn.execute("ROLLBACK")
            raise

        try:
            conn.execute("COMMIT")
        except sqlite3.Error as e:
            conn.execute("ROLLBACK")
            raise StorageError(f"Failed to commit: {e}") from e

    @contextmanager
    def _reading(self) -> Iterator[sqlite3.Connection]:
        conn = self._connection()
        try:
            yield conn
        except sqlite3.Error as e:
            raise StorageError(str(e)) from e

    # Reads

    async def get_by_token(self, token: str) -> Check:
        """Get a check by its public token."""
        async with self._lock:
            with self._reading() as conn:
                row = conn.execute("SELECT * FROM checks WHERE token = ?", (token,)).fetchone()
        if row is None:
            raise CheckNotFoundError(token)
        return Check.from_row(row)

    async def get_by_id(self, check_id: int) -> Check:
        """Get a check by its internal id."""
        async with self._lock:
            with self._reading() as conn:
                row = conn.execute("SELECT * FROM checks WHERE id = ?", (check_id,)).fetchone()
        if row is None:
            raise CheckNotFoundError(check_id)
        return Check.from_row(row)

    async def list_all(self, exclude_maintenance: bool = False) -> list[Check]:
        """
        List every check.

        Args:
            exclude_maintenance: Leave out checks in maintenance at the query level
        """
        query = "SELECT * FROM checks"
        params: tuple[str, ...] = ()
        if exclude_maintenance:
            query += " WHERE status != ?"
            params = (CheckStatus.MAINTENANCE.value,)

        async with self._lock:
            with self._reading() as conn:
                rows = conn.execute(query + " ORDER BY id", params).fetchall()
        return [Check.from_row(r) for r in rows]

    async def list_page(self, page: int = 1, limit: int = 20) -> tuple[list[Check], int]:
        """
        List checks ordered by name.

        Returns:
            The checks on the page and the total number of checks
        """
        page = max(page, 1)
        limit = max(limit, 1)
        offset = (page - 1) * limit

        async with self._lock:
            with self._reading() as conn:
                rows = conn.execute(
                    "SELECT * FROM checks ORDER BY name ASC, id ASC LIMIT ? OFFSET ?",
                    (limit, offset),
                ).fetchall()
                total = conn.execute("SELECT COUNT(*) FROM checks").fetchone()[0]
        return [Check.from_row(r) for r in rows], total

    # Writes

    async def create(self, name: str, schedule: str, grace: str, created_at: int) -> Check:
        """Insert a new check with a fresh random token."""
        token = str(uuid.uuid4())
        async with self._lock:
            with self._transaction() as conn:
                cursor = conn.execute(
                    "INSERT INTO checks (token, name, schedule, grace, status, created_at) "
                    "VALUES (?, ?, ?, ?, ?, ?)",
                    (token, name, schedule, grace, CheckStatus.NEW.value, created_at),
                )
                row = conn.execute("SELECT * FROM checks WHERE id = ?", (cursor.lastrowid,)).fetchone()
        return Check.from_row(row)

    async def delete(self, token: str) -> Check:
        """Delete a check and return what was deleted."""
        async with self._lock:
            with self._transaction() as conn:
                row = conn.execute("SELECT * FROM checks WHERE token = ?", (token,)).fetchone()
                if row is None:
                    raise CheckNotFoundError(token)
                conn.execute("DELETE FROM checks WHERE id = ?", (row["id"],))
        return Check.from_row(row)

    async def update_by_token(self, token: str, mutate: CheckMutator) -> tuple[Check, bool]:
        """
        Atomically read, modify and write a check.

        Args:
            token: Public token of the check
            mutate: Edits the check in place; returns False to skip the write

        Returns:
            The check as stored after the transaction, and whether it was written
        """
        return await self._update("token", token, mutate)

    async def update_by_id(self, check_id: int, mutate: CheckMutator) -> tuple[Check, bool]:
        """Same as update_by_token(), keyed by internal id."""
        return await self._update("id", check_id, mutate)

    async def _update(self, column: str, key: str | int, mutate: CheckMutator) -> tuple[Check, bool]:
        async with self._lock:
            with self._transaction() as conn:
                row = conn.execute(f"SELECT * FROM checks WHERE {column} = ?", (key,)).fetchone()
                if row is None:
                    raise CheckNotFoundError(key)

                check = Check.from_row(row)
                if not mutate(check):
                    return check, False

                conn.execute(
                    "UPDATE checks SET status = ?, last_ping_at = ?, last_ping_duration_ms = ?, "
                    "consecutive_down_count = ?, last_error = ? WHERE id = ?",
                    (
                        check.status.value,
                        check.last_ping_at,
                        check.last_ping_duration_ms,
                        check.consecutive_down_count,
                        check.last_error,
                        check.id,
                    ),
                )
        return check, True
