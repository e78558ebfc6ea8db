"""Storage layer - SQLite schema, migrations, locking and transactions."""

from nomilog.storage.db import DatabaseManager
from nomilog.storage.errors import (
    ConstraintViolationError,
    DuplicateNameError,
    InUseError,
    InvalidInputError,
    NomiLogError,
    NotFoundError,
    SchemaError,
    StorageError,
)
from nomilog.storage.models import (
    Beverage,
    BeverageAmount,
    BeverageAmountInput,
    Category,
    MonthlyIntake,
    PostWithBeverages,
)

__all__ = [
    "DatabaseManager",
    "Beverage",
    "BeverageAmount",
    "BeverageAmountInput",
    "Category",
    "MonthlyIntake",
    "PostWithBeverages",
    "NomiLogError",
    "InvalidInputError",
    "NotFoundError",
    "DuplicateNameError",
    "InUseError",
    "StorageError",
    "ConstraintViolationError",
    "SchemaError",
]
