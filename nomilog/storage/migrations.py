"""Version-controlled schema migrations for nomilog.

Migrations run before the tables are created, so each step must cope with a
database that is empty, already current, or in an older layout.
"""

from __future__ import annotations

import logging
import sqlite3
from typing import Callable, List, Set, Tuple

from nomilog.storage.errors import SchemaError
from nomilog.storage.schema import POSTS_COLUMNS

logger = logging.getLogger(__name__)

# Each migration is (version, description, step)
MigrationStep = Tuple[int, str, Callable[[sqlite3.Connection], None]]


def _table_columns(conn: sqlite3.Connection, table: str) -> Set[str]:
    return {row[1] for row in conn.execute(f"PRAGMA table_info([{table}])").fetchall()}


def _replace_post_title_with_date(conn: sqlite3.Connection) -> None:
    """Rebuild a legacy posts table (title, no date) into the dated layout."""
    columns = _table_columns(conn, "posts")
    if not columns or "date" in columns or "title" not in columns:
        return

    comment = "COALESCE(comment, title)" if "comment" in columns else "title"
    created = "created_at" if "created_at" in columns else "datetime('now', 'localtime')"
    updated = "updated_at" if "updated_at" in columns else created

    conn.execute(f"CREATE TABLE posts_migrated ({POSTS_COLUMNS})")
    conn.execute(
        f"""INSERT INTO posts_migrated (id, date, comment, created_at, updated_at)
            SELECT id, substr({created}, 1, 10), {comment}, {created}, {updated}
            FROM posts"""
    )
    conn.execute("DROP TABLE posts")
    conn.execute("ALTER TABLE posts_migrated RENAME TO posts")
    logger.info("Rebuilt posts table: title column folded into comment, date added")


def _get_migrations() -> List[MigrationStep]:
    """Return ordered list of migrations."""
    return [
        (1, "Replace posts.title with posts.date", _replace_post_title_with_date),
    ]


def get_current_version(conn: sqlite3.Connection) -> int:
    """Get the current schema version, or 0 if no schema exists."""
    try:
        row = conn.execute(
            "SELECT MAX(version) FROM schema_version"
        ).fetchone()
        return row[0] if row and row[0] is not None else 0
    except sqlite3.OperationalError:
        return 0


def apply_migrations(conn: sqlite3.Connection) -> int:
    """Apply all pending migrations. Returns the final schema version.

    The connection must be in autocommit mode; each step runs in its own
    transaction with foreign keys disabled so tables can be rebuilt.
    """
    conn.execute("PRAGMA foreign_keys=OFF")
    conn.execute(
        """CREATE TABLE IF NOT EXISTS schema_version (
               version INTEGER PRIMARY KEY,
               description TEXT NOT NULL,
               applied_at TEXT NOT NULL DEFAULT (datetime('now', 'localtime'))
           )"""
    )

    current = get_current_version(conn)
    applied = 0

    for version, description, step in _get_migrations():
        if version <= current:
            continue

        logger.info("Applying migration v%d: %s", version, description)
        try:
            conn.execute("BEGIN IMMEDIATE")
            step(conn)
            conn.execute(
                "INSERT INTO schema_version (version, description) VALUES (?, ?)",
                (version, description),
            )
            conn.commit()
            applied += 1
        except Exception as exc:
            conn.rollback()
            logger.exception("Migration v%d failed", version)
            raise SchemaError(f"migration v{version} ({description}) failed: {exc}") from exc

    final = get_current_version(conn)
    if applied:
        logger.info("Applied %d migration(s). Schema at v%d", applied, final)
    else:
        logger.debug("Schema up to date at v%d", final)

    return final
