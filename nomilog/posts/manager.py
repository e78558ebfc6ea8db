"""Posts and their beverage associations, written as one unit.

A post and its association rows are always created or replaced together in
a single transaction. Beverage existence and duplicate pairs are left to the
database constraints; a violation rolls back the whole write.
"""

from __future__ import annotations

import logging
import math
import sqlite3
from collections.abc import Mapping
from datetime import date, datetime
from typing import Any, Dict, Iterable, List, Optional, Union

from nomilog.storage.db import DatabaseManager
from nomilog.storage.errors import InvalidInputError, NotFoundError
from nomilog.storage.models import (
    BeverageAmount,
    BeverageAmountInput,
    PostWithBeverages,
    as_integer,
)

logger = logging.getLogger(__name__)

DateLike = Union[date, datetime, str]

_POST_SELECT = "SELECT id, date, comment, created_at, updated_at FROM posts"

_ASSOCIATION_SELECT = """
    SELECT pb.post_id, pb.beverage_id, b.name AS beverage_name,
           pb.amount, b.alcohol_content
    FROM post_beverages pb
    INNER JOIN beverages b ON pb.beverage_id = b.id
"""


def normalize_date(value: DateLike) -> str:
    """Return the ISO calendar day for a date, datetime or YYYY-MM-DD string."""
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, str):
        try:
            return date.fromisoformat(value.strip()).isoformat()
        except ValueError:
            pass
    raise InvalidInputError(f"date must be YYYY-MM-DD, got {value!r}")


def normalize_comment(comment: Optional[str]) -> Optional[str]:
    if comment is None:
        return None
    comment = str(comment).strip()
    return comment or None


def normalize_beverages(beverages: Optional[Iterable[Any]]) -> List[BeverageAmountInput]:
    """Coerce BeverageAmountInput objects, mappings or (id, amount) pairs."""
    result: List[BeverageAmountInput] = []
    for entry in beverages or ():
        if isinstance(entry, BeverageAmountInput):
            beverage_id, amount = entry.beverage_id, entry.amount
        elif isinstance(entry, Mapping):
            try:
                beverage_id, amount = entry["beverage_id"], entry["amount"]
            except KeyError as exc:
                raise InvalidInputError(f"beverage entry is missing {exc.args[0]!r}") from None
        else:
            try:
                beverage_id, amount = entry
            except (TypeError, ValueError):
                raise InvalidInputError(f"cannot read beverage entry {entry!r}") from None

        beverage_id = as_integer(beverage_id, "beverage_id")
        if isinstance(amount, bool):
            raise InvalidInputError("amount must be a number")
        try:
            amount = float(amount)
        except (TypeError, ValueError):
            raise InvalidInputError(f"amount must be a number, got {amount!r}") from None
        if not math.isfinite(amount) or amount <= 0:
            raise InvalidInputError(f"amount must be a positive number, got {amount}")

        result.append(BeverageAmountInput(beverage_id=beverage_id, amount=amount))
    return result


class PostManager:
    """Create, replace, delete and list posts with their beverages."""

    def __init__(self, db: DatabaseManager) -> None:
        self._db = db

    def list_posts(self) -> List[PostWithBeverages]:
        """All posts, newest day first, each with its current beverage data."""
        with self._db.session() as conn:
            rows = conn.execute(
                f"{_POST_SELECT} ORDER BY date DESC, created_at DESC, id DESC"
            ).fetchall()
            posts = [PostWithBeverages.from_row(dict(r)) for r in rows]
            self._attach_beverages(conn, posts)
        return posts

    def get_post(self, post_id: int) -> PostWithBeverages:
        with self._db.session() as conn:
            row = conn.execute(f"{_POST_SELECT} WHERE id = ?", (post_id,)).fetchone()
            if row is None:
                raise NotFoundError("post", post_id)
            post = PostWithBeverages.from_row(dict(row))
            self._attach_beverages(conn, [post], post_id)
        return post

    def create_post(
        self,
        date: DateLike,
        comment: Optional[str] = None,
        beverages: Optional[Iterable[Any]] = None,
    ) -> int:
        """Insert a post and its associations atomically. Returns the post id."""
        day = normalize_date(date)
        comment = normalize_comment(comment)
        entries = normalize_beverages(beverages)

        with self._db.transaction() as conn:
            cursor = conn.execute(
                "INSERT INTO posts (date, comment) VALUES (?, ?)", (day, comment)
            )
            post_id = cursor.lastrowid
            self._insert_associations(conn, post_id, entries)

        logger.info("Created post %d on %s with %d beverage(s)", post_id, day, len(entries))
        return post_id

    def update_post(
        self,
        post_id: int,
        date: DateLike,
        comment: Optional[str] = None,
        beverages: Optional[Iterable[Any]] = None,
    ) -> None:
        """Replace a post's fields and its whole association set atomically."""
        day = normalize_date(date)
        comment = normalize_comment(comment)
        entries = normalize_beverages(beverages)

        with self._db.transaction() as conn:
            cursor = conn.execute(
                """UPDATE posts
                   SET date = ?, comment = ?, updated_at = datetime('now', 'localtime')
                   WHERE id = ?""",
                (day, comment, post_id),
            )
            if cursor.rowcount == 0:
                raise NotFoundError("post", post_id)
            conn.execute("DELETE FROM post_beverages WHERE post_id = ?", (post_id,))
            self._insert_associations(conn, post_id, entries)

        logger.info("Updated post %d (%d beverage(s))", post_id, len(entries))

    def delete_post(self, post_id: int) -> None:
        """Delete a post; its associations go with it via ON DELETE CASCADE."""
        cursor = self._db.execute("DELETE FROM posts WHERE id = ?", (post_id,))
        if cursor.rowcount == 0:
            raise NotFoundError("post", post_id)
        logger.info("Deleted post %d", post_id)

    # --- Helpers ---

    @staticmethod
    def _insert_associations(
        conn: sqlite3.Connection, post_id: int, entries: List[BeverageAmountInput]
    ) -> None:
        for entry in entries:
            conn.execute(
                "INSERT INTO post_beverages (post_id, beverage_id, amount) VALUES (?, ?, ?)",
                entry.to_row(post_id),
            )

    @staticmethod
    def _attach_beverages(
        conn: sqlite3.Connection,
        posts: List[PostWithBeverages],
        post_id: Optional[int] = None,
    ) -> None:
        """Fill each post's beverages; post_id narrows the scan to one post."""
        if not posts:
            return
        by_id: Dict[int, PostWithBeverages] = {p.id: p for p in posts}
        if post_id is None:
            rows = conn.execute(f"{_ASSOCIATION_SELECT} ORDER BY pb.id").fetchall()
        else:
            rows = conn.execute(
                f"{_ASSOCIATION_SELECT} WHERE pb.post_id = ? ORDER BY pb.id", (post_id,)
            ).fetchall()
        for r in rows:
            d = dict(r)
            post = by_id.get(d["post_id"])
            if post is not None:
                post.beverages.append(BeverageAmount.from_row(d))
