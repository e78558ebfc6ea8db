"""Data models for the nomilog storage layer."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import date, datetime
from typing import Any, Dict, List, Optional

from nomilog.storage.errors import InvalidInputError


def _beverage_intake(amount: float, alcohol_content: Optional[float]) -> float:
    # Shared with the aggregation engine so per-post and monthly figures agree
    from nomilog.intake.calculator import beverage_intake
    return beverage_intake(amount, alcohol_content)


@dataclass
class Category:
    """A grouping of beverages (beer, wine, ...), shown in display_order."""

    id: int
    name: str
    display_order: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> Category:
        return cls(
            id=row["id"],
            name=row["name"],
            display_order=row.get("display_order") or 0,
            created_at=_parse_ts(row.get("created_at")),
            updated_at=_parse_ts(row.get("updated_at")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "display_order": self.display_order,
            "created_at": _format_ts(self.created_at),
            "updated_at": _format_ts(self.updated_at),
        }


@dataclass
class Beverage:
    """A drink type. alcohol_content is a percentage; None means unknown."""

    id: int
    name: str
    category_id: int
    alcohol_content: Optional[float] = None
    category_name: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> Beverage:
        return cls(
            id=row["id"],
            name=row["name"],
            category_id=row["category_id"],
            alcohol_content=row.get("alcohol_content"),
            category_name=row.get("category_name"),
            created_at=_parse_ts(row.get("created_at")),
            updated_at=_parse_ts(row.get("updated_at")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "alcohol_content": self.alcohol_content,
            "category_id": self.category_id,
            "category_name": self.category_name,
            "created_at": _format_ts(self.created_at),
            "updated_at": _format_ts(self.updated_at),
        }


@dataclass
class BeverageAmount:
    """One beverage consumed in a post.

    alcohol_content is read from the beverage at query time, so editing a
    beverage changes the figures of every past post that references it.
    """

    beverage_id: int
    beverage_name: str
    amount: float
    alcohol_content: Optional[float] = None

    @property
    def intake(self) -> float:
        """Pure alcohol in ml for this entry."""
        return _beverage_intake(self.amount, self.alcohol_content)

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> BeverageAmount:
        return cls(
            beverage_id=row["beverage_id"],
            beverage_name=row["beverage_name"],
            amount=row["amount"],
            alcohol_content=row.get("alcohol_content"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class BeverageAmountInput:
    """A (beverage, volume) pair supplied when creating or updating a post."""

    beverage_id: int
    amount: float

    def to_row(self, post_id: int) -> tuple:
        return (post_id, self.beverage_id, self.amount)


@dataclass
class PostWithBeverages:
    """A drinking occasion on a calendar day, with everything drunk."""

    id: int
    date: date
    comment: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    beverages: List[BeverageAmount] = field(default_factory=list)

    @property
    def intake(self) -> float:
        return sum(b.intake for b in self.beverages)

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> PostWithBeverages:
        return cls(
            id=row["id"],
            date=_parse_date(row["date"]),
            comment=row.get("comment"),
            created_at=_parse_ts(row.get("created_at")),
            updated_at=_parse_ts(row.get("updated_at")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "date": self.date.isoformat(),
            "comment": self.comment,
            "created_at": _format_ts(self.created_at),
            "updated_at": _format_ts(self.updated_at),
            "beverages": [b.to_dict() for b in self.beverages],
        }


@dataclass
class MonthlyIntake:
    """Alcohol intake statistics for one calendar month."""

    year: int
    month: int
    total_intake: float = 0.0
    average_per_day: float = 0.0
    drinking_days: int = 0
    days_in_month: int = 30

    def gauge_percent(self, max_ml: float = 20.0) -> float:
        """Fill level of the daily-average gauge, capped at 100."""
        from nomilog.intake.calculator import gauge_percent
        return gauge_percent(self.average_per_day, max_ml)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_intake": self.total_intake,
            "average_per_day": self.average_per_day,
            "drinking_days": self.drinking_days,
        }


# --- Helpers ---

def _parse_ts(val: Any) -> Optional[datetime]:
    """Parse a timestamp string or return None."""
    if val is None:
        return None
    if isinstance(val, datetime):
        return val
    try:
        from dateutil.parser import parse
        return parse(str(val))
    except (ValueError, TypeError, OverflowError):
        return None


def _parse_date(val: Any) -> date:
    if isinstance(val, datetime):
        return val.date()
    if isinstance(val, date):
        return val
    return date.fromisoformat(str(val)[:10])


def _format_ts(val: Optional[datetime]) -> Optional[str]:
    return val.strftime("%Y-%m-%d %H:%M:%S") if val else None


def as_integer(value: Any, label: str) -> int:
    """int(value), refusing bools and anything int() would truncate."""
    if isinstance(value, bool):
        raise InvalidInputError(f"{label} must be an integer, got {value!r}")
    try:
        result = int(value)
    except (TypeError, ValueError, OverflowError):
        raise InvalidInputError(f"{label} must be an integer, got {value!r}") from None
    if not isinstance(value, str) and result != value:
        raise InvalidInputError(f"{label} must be an integer, got {value!r}")
    return result
