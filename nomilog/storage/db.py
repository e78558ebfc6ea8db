"""SQLite database manager: one connection, one lock, explicit transactions."""

from __future__ import annotations

import logging
import sqlite3
import threading
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Callable, Dict, Iterator, List, Optional, Sequence, Tuple, TypeVar, Union

from nomilog.storage.errors import (
    ConstraintViolationError,
    SchemaError,
    StorageError,
)
from nomilog.storage.migrations import apply_migrations
from nomilog.storage.schema import DEFAULT_CATEGORIES, INDEXES, TABLES

logger = logging.getLogger(__name__)

T = TypeVar("T")

Params = Union[Sequence[Any], Dict[str, Any]]


def translate_error(exc: sqlite3.Error) -> StorageError:
    """Map a sqlite3 exception onto the nomilog error hierarchy."""
    if isinstance(exc, sqlite3.IntegrityError):
        return ConstraintViolationError(str(exc))
    return StorageError(str(exc))


class DatabaseManager:
    """Owns the single SQLite connection behind a re-entrant lock.

    Every public operation holds the lock for its full duration, so exactly
    one logical operation runs against the store at a time.

    Usage:
        db = DatabaseManager("data/nomilog.db")
        db.initialize()
        with db.transaction() as conn:
            conn.execute(...)
        db.close()
    """

    def __init__(
        self,
        db_path: Union[str, Path],
        default_categories: Optional[Sequence[Tuple[str, int]]] = None,
    ):
        self.db_path = str(db_path)
        self.default_categories = list(
            DEFAULT_CATEGORIES if default_categories is None else default_categories
        )
        self._conn: Optional[sqlite3.Connection] = None
        self._lock = threading.RLock()

    def __enter__(self) -> DatabaseManager:
        if self._conn is None:
            self.initialize()
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    @property
    def is_open(self) -> bool:
        return self._conn is not None

    def initialize(self) -> None:
        """Open the database, apply migrations, create schema, seed categories."""
        with self._lock:
            if self._conn is not None:
                return
            if self.db_path != ":memory:":
                Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)

            try:
                # isolation_level=None: transactions are opened explicitly
                conn = sqlite3.connect(
                    self.db_path, isolation_level=None, check_same_thread=False
                )
            except sqlite3.Error as exc:
                raise StorageError(f"cannot open database {self.db_path}: {exc}") from exc
            conn.row_factory = sqlite3.Row

            try:
                version = apply_migrations(conn)
                conn.execute("PRAGMA foreign_keys=ON")
                self._create_schema(conn)
                self._seed_categories(conn)
            except SchemaError:
                conn.close()
                raise
            except sqlite3.Error as exc:
                conn.close()
                logger.exception("Schema initialisation failed for %s", self.db_path)
                raise SchemaError(f"schema initialisation failed: {exc}") from exc

            self._conn = conn
            logger.info("Database initialized: %s (schema v%d)", self.db_path, version)

    def close(self) -> None:
        """Close the database connection."""
        with self._lock:
            if self._conn:
                self._conn.close()
                self._conn = None

    def _require_conn(self) -> sqlite3.Connection:
        if self._conn is None:
            raise StorageError("Database not initialized")
        return self._conn

    # --- Schema ---

    def _create_schema(self, conn: sqlite3.Connection) -> None:
        conn.execute("BEGIN IMMEDIATE")
        try:
            for _name, ddl in TABLES:
                conn.execute(ddl)
            for index_name, table, columns in INDEXES:
                conn.execute(
                    f"CREATE INDEX IF NOT EXISTS {index_name} ON {table}({columns})"
                )
            conn.commit()
        except sqlite3.Error:
            conn.rollback()
            raise

    def _seed_categories(self, conn: sqlite3.Connection) -> None:
        conn.execute("BEGIN IMMEDIATE")
        try:
            count = conn.execute("SELECT COUNT(*) FROM categories").fetchone()[0]
            if count == 0 and self.default_categories:
                conn.executemany(
                    "INSERT INTO categories (name, display_order) VALUES (?, ?)",
                    self.default_categories,
                )
                logger.info("Seeded %d default categories", len(self.default_categories))
            conn.commit()
        except sqlite3.Error:
            conn.rollback()
            raise

    # --- Access primitives ---

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        """Acquire the lock and run the body in one write transaction.

        Any exception rolls back every statement issued inside the block.
        sqlite3 errors are re-raised as StorageError subclasses; domain
        errors propagate unchanged.
        """
        with self._lock:
            conn = self._require_conn()
            try:
                conn.execute("BEGIN IMMEDIATE")
            except sqlite3.Error as exc:
                raise translate_error(exc) from exc
            try:
                yield conn
                conn.commit()
            except sqlite3.Error as exc:
                conn.rollback()
                raise translate_error(exc) from exc
            except BaseException:
                conn.rollback()
                raise

    def run_in_transaction(self, work: Callable[[sqlite3.Connection], T]) -> T:
        """Call work(conn) inside transaction() and return its result."""
        with self.transaction() as conn:
            return work(conn)

    @contextmanager
    def session(self) -> Iterator[sqlite3.Connection]:
        """Acquire the lock for several reads without opening a write transaction."""
        with self._lock:
            conn = self._require_conn()
            try:
                yield conn
            except sqlite3.Error as exc:
                raise translate_error(exc) from exc

    def execute(self, sql: str, params: Params = ()) -> sqlite3.Cursor:
        """Run one statement. Autocommits unless inside transaction()."""
        with self._lock:
            conn = self._require_conn()
            try:
                return conn.execute(sql, params)
            except sqlite3.Error as exc:
                raise translate_error(exc) from exc

    def query(self, sql: str, params: Params = ()) -> List[sqlite3.Row]:
        """Run a SELECT and return all rows."""
        with self._lock:
            conn = self._require_conn()
            t0 = time.monotonic()
            try:
                rows = conn.execute(sql, params).fetchall()
            except sqlite3.Error as exc:
                raise translate_error(exc) from exc
            logger.debug("Query returned %d rows in %.3fs", len(rows), time.monotonic() - t0)
            return rows

    # --- Maintenance ---

    def vacuum(self) -> None:
        """Run VACUUM to reclaim space and defragment."""
        self.execute("VACUUM")

    def integrity_check(self) -> bool:
        """Run integrity check on the database."""
        rows = self.query("PRAGMA integrity_check")
        return bool(rows) and rows[0][0] == "ok"

    def get_stats(self) -> Dict[str, Any]:
        """Get database statistics."""
        stats: Dict[str, Any] = {}
        with self.session() as conn:
            for table, _ddl in TABLES:
                row = conn.execute(f"SELECT COUNT(*) FROM {table}").fetchone()
                stats[f"total_{table}"] = row[0] if row else 0

            row = conn.execute(
                "SELECT page_count * page_size as size FROM pragma_page_count(), pragma_page_size()"
            ).fetchone()
            stats["db_size_bytes"] = row[0] if row else 0

            row = conn.execute("SELECT MAX(version) FROM schema_version").fetchone()
            stats["schema_version"] = row[0] if row and row[0] is not None else 0

        return stats
