"""Reference data: categories and beverages.

Deleting reference data is guarded, not cascading: a category cannot go while
a beverage points at it, and a beverage cannot go while any post uses it.
"""

from __future__ import annotations

import logging
import math
import sqlite3
from typing import Any, List, Optional

from nomilog.storage.db import DatabaseManager
from nomilog.storage.errors import (
    DuplicateNameError,
    InUseError,
    InvalidInputError,
    NotFoundError,
)
from nomilog.storage.models import Beverage, Category, as_integer

logger = logging.getLogger(__name__)

_BEVERAGE_SELECT = """
    SELECT b.id, b.name, b.alcohol_content, b.category_id,
           c.name AS category_name, b.created_at, b.updated_at
    FROM beverages b
    INNER JOIN categories c ON b.category_id = c.id
"""


def _clean_name(name: Any, entity: str) -> str:
    if not isinstance(name, str) or not name.strip():
        raise InvalidInputError(f"{entity} name must not be empty")
    return name.strip()


def _clean_alcohol_content(value: Any) -> Optional[float]:
    if value is None:
        return None
    if isinstance(value, bool):
        raise InvalidInputError("alcohol_content must be a number")
    try:
        value = float(value)
    except (TypeError, ValueError):
        raise InvalidInputError(f"alcohol_content must be a number, got {value!r}") from None
    if not math.isfinite(value) or value < 0:
        raise InvalidInputError(f"alcohol_content must be a non-negative number, got {value}")
    return value


def _exists(conn: sqlite3.Connection, table: str, entity_id: int) -> bool:
    return conn.execute(f"SELECT 1 FROM {table} WHERE id = ?", (entity_id,)).fetchone() is not None


class CatalogManager:
    """Categories and beverages, with uniqueness and in-use guards."""

    def __init__(self, db: DatabaseManager) -> None:
        self._db = db

    # --- Categories ---

    def list_categories(self) -> List[Category]:
        rows = self._db.query(
            """SELECT id, name, display_order, created_at, updated_at
               FROM categories
               ORDER BY display_order, name"""
        )
        return [Category.from_row(dict(r)) for r in rows]

    def create_category(self, name: str, display_order: int = 0) -> int:
        """Create a category and return its id."""
        name = _clean_name(name, "category")
        display_order = 0 if display_order is None else as_integer(display_order, "display_order")

        with self._db.transaction() as conn:
            if conn.execute("SELECT 1 FROM categories WHERE name = ?", (name,)).fetchone():
                raise DuplicateNameError("category", name)
            cursor = conn.execute(
                "INSERT INTO categories (name, display_order) VALUES (?, ?)",
                (name, display_order),
            )
            category_id = cursor.lastrowid

        logger.info("Created category %d (%s)", category_id, name)
        return category_id

    def delete_category(self, category_id: int) -> bool:
        """Delete an unused category. Raises InUseError if beverages reference it."""
        with self._db.transaction() as conn:
            if not _exists(conn, "categories", category_id):
                raise NotFoundError("category", category_id)
            count = conn.execute(
                "SELECT COUNT(*) FROM beverages WHERE category_id = ?", (category_id,)
            ).fetchone()[0]
            if count > 0:
                raise InUseError("category", category_id, count, "beverage(s)")
            conn.execute("DELETE FROM categories WHERE id = ?", (category_id,))

        logger.info("Deleted category %d", category_id)
        return True

    # --- Beverages ---

    def list_beverages(self) -> List[Beverage]:
        rows = self._db.query(f"{_BEVERAGE_SELECT} ORDER BY b.name")
        return [Beverage.from_row(dict(r)) for r in rows]

    def list_beverages_by_category(self, category_id: int) -> List[Beverage]:
        rows = self._db.query(
            f"{_BEVERAGE_SELECT} WHERE b.category_id = ? ORDER BY b.name",
            (category_id,),
        )
        return [Beverage.from_row(dict(r)) for r in rows]

    def get_beverage(self, beverage_id: int) -> Beverage:
        rows = self._db.query(f"{_BEVERAGE_SELECT} WHERE b.id = ?", (beverage_id,))
        if not rows:
            raise NotFoundError("beverage", beverage_id)
        return Beverage.from_row(dict(rows[0]))

    def create_beverage(
        self,
        name: str,
        alcohol_content: Optional[float] = None,
        category_id: Optional[int] = None,
    ) -> int:
        """Create a beverage under an existing category and return its id."""
        name = _clean_name(name, "beverage")
        alcohol_content = _clean_alcohol_content(alcohol_content)

        with self._db.transaction() as conn:
            if category_id is None or not _exists(conn, "categories", category_id):
                raise NotFoundError("category", category_id)
            if conn.execute("SELECT 1 FROM beverages WHERE name = ?", (name,)).fetchone():
                raise DuplicateNameError("beverage", name)
            cursor = conn.execute(
                "INSERT INTO beverages (name, alcohol_content, category_id) VALUES (?, ?, ?)",
                (name, alcohol_content, category_id),
            )
            beverage_id = cursor.lastrowid

        logger.info("Created beverage %d (%s, %s%%)", beverage_id, name, alcohol_content)
        return beverage_id

    def update_beverage(
        self,
        beverage_id: int,
        name: str,
        alcohol_content: Optional[float],
        category_id: int,
    ) -> None:
        """Replace a beverage's name, alcohol content and category.

        Past posts see the new alcohol content: intake is always computed
        from the beverage's current value.
        """
        name = _clean_name(name, "beverage")
        alcohol_content = _clean_alcohol_content(alcohol_content)

        with self._db.transaction() as conn:
            if not _exists(conn, "beverages", beverage_id):
                raise NotFoundError("beverage", beverage_id)
            if not _exists(conn, "categories", category_id):
                raise NotFoundError("category", category_id)
            clash = conn.execute(
                "SELECT 1 FROM beverages WHERE name = ? AND id != ?", (name, beverage_id)
            ).fetchone()
            if clash:
                raise DuplicateNameError("beverage", name)
            conn.execute(
                """UPDATE beverages
                   SET name = ?, alcohol_content = ?, category_id = ?,
                       updated_at = datetime('now', 'localtime')
                   WHERE id = ?""",
                (name, alcohol_content, category_id, beverage_id),
            )

        logger.info("Updated beverage %d", beverage_id)

    def delete_beverage(self, beverage_id: int) -> None:
        """Delete a beverage no post uses. InUseError carries the post count."""
        with self._db.transaction() as conn:
            if not _exists(conn, "beverages", beverage_id):
                raise NotFoundError("beverage", beverage_id)
            usage = conn.execute(
                "SELECT COUNT(*) FROM post_beverages WHERE beverage_id = ?", (beverage_id,)
            ).fetchone()[0]
            if usage > 0:
                raise InUseError("beverage", beverage_id, usage, "post(s)")
            conn.execute("DELETE FROM beverages WHERE id = ?", (beverage_id,))

        logger.info("Deleted beverage %d", beverage_id)
