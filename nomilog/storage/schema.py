"""Table, index and seed definitions for the nomilog database."""

from __future__ import annotations

from typing import List, Tuple

POSTS_COLUMNS = """
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    date TEXT NOT NULL,
    comment TEXT,
    created_at TEXT NOT NULL DEFAULT (datetime('now', 'localtime')),
    updated_at TEXT NOT NULL DEFAULT (datetime('now', 'localtime'))
"""

# Parents before children so foreign keys resolve in creation order
TABLES: List[Tuple[str, str]] = [
    (
        "categories",
        """CREATE TABLE IF NOT EXISTS categories (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            name TEXT NOT NULL UNIQUE CHECK(length(name) > 0),
            display_order INTEGER NOT NULL DEFAULT 0,
            created_at TEXT NOT NULL DEFAULT (datetime('now', 'localtime')),
            updated_at TEXT NOT NULL DEFAULT (datetime('now', 'localtime'))
        )""",
    ),
    (
        "posts",
        f"CREATE TABLE IF NOT EXISTS posts ({POSTS_COLUMNS})",
    ),
    (
        "beverages",
        """CREATE TABLE IF NOT EXISTS beverages (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            name TEXT NOT NULL UNIQUE CHECK(length(name) > 0),
            alcohol_content REAL,
            category_id INTEGER NOT NULL REFERENCES categories(id),
            created_at TEXT NOT NULL DEFAULT (datetime('now', 'localtime')),
            updated_at TEXT NOT NULL DEFAULT (datetime('now', 'localtime'))
        )""",
    ),
    (
        "post_beverages",
        """CREATE TABLE IF NOT EXISTS post_beverages (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            post_id INTEGER NOT NULL REFERENCES posts(id) ON DELETE CASCADE,
            beverage_id INTEGER NOT NULL REFERENCES beverages(id) ON DELETE CASCADE,
            amount REAL NOT NULL CHECK(amount > 0),
            created_at TEXT NOT NULL DEFAULT (datetime('now', 'localtime')),
            UNIQUE(post_id, beverage_id)
        )""",
    ),
]

INDEXES: List[Tuple[str, str, str]] = [
    ("idx_categories_display_order", "categories", "display_order"),
    ("idx_beverages_category_id", "beverages", "category_id"),
    ("idx_posts_date", "posts", "date DESC"),
    ("idx_posts_created_at", "posts", "created_at DESC"),
    ("idx_post_beverages_post_id", "post_beverages", "post_id"),
    ("idx_post_beverages_beverage_id", "post_beverages", "beverage_id"),
]

# (name, display_order), inserted only into an empty categories table
DEFAULT_CATEGORIES: List[Tuple[str, int]] = [
    ("Beer", 1),
    ("Whisky", 2),
    ("Liqueur", 3),
    ("Umeshu", 4),
    ("Shochu", 5),
    ("Wine", 6),
    ("Sake", 7),
    ("Rum", 8),
    ("Non-alcoholic", 9),
]
