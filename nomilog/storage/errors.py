"""Typed errors raised by the storage layer and the managers built on it."""

from __future__ import annotations

from typing import Any, Optional


class NomiLogError(Exception):
    """Base class for every error the core reports to its caller."""


class InvalidInputError(NomiLogError):
    """A caller-supplied value failed validation (blank name, bad amount, ...)."""


class NotFoundError(NomiLogError):
    """A referenced category, beverage or post does not exist."""

    def __init__(self, entity: str, entity_id: Any, message: Optional[str] = None):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(message or f"{entity} {entity_id!r} not found")


class DuplicateNameError(NomiLogError):
    """A category or beverage with the same (case-sensitive) name exists."""

    def __init__(self, entity: str, name: str):
        self.entity = entity
        self.name = name
        super().__init__(f"{entity} named {name!r} already exists")


class InUseError(NomiLogError):
    """Deletion refused because other rows still reference the entity."""

    def __init__(self, entity: str, entity_id: Any, count: int, referenced_by: str):
        self.entity = entity
        self.entity_id = entity_id
        self.count = count
        self.referenced_by = referenced_by
        super().__init__(
            f"{entity} {entity_id!r} is used by {count} {referenced_by} and cannot be deleted"
        )


class StorageError(NomiLogError):
    """Underlying SQLite failure not otherwise classified."""


class ConstraintViolationError(StorageError):
    """A UNIQUE, FOREIGN KEY, CHECK or NOT NULL constraint rejected a write."""


class SchemaError(StorageError):
    """Migration or schema initialisation failed; the database is unusable."""
