"""Pure alcohol-intake arithmetic: unit conversion and calendar helpers."""

from __future__ import annotations

import calendar
from typing import Any, Iterable, Optional, Tuple

# g of ethanol per ml; applied to the volume of pure alcohol
ETHANOL_DENSITY = 0.8

DEFAULT_DAILY_GUIDELINE_ML = 20.0

# Used when the month is outside 1..12
FALLBACK_DAYS_IN_MONTH = 30


def beverage_intake(amount: float, alcohol_content: Optional[float]) -> float:
    """Pure alcohol for one drink: amount * (abv / 100) * 0.8.

    Unknown or non-positive alcohol content contributes nothing.
    """
    if alcohol_content is None or alcohol_content <= 0:
        return 0.0
    return amount * (alcohol_content / 100) * ETHANOL_DENSITY


def calculate_intake(beverages: Iterable[Any]) -> float:
    """Sum beverage_intake over objects with amount and alcohol_content."""
    return sum(
        beverage_intake(b.amount, b.alcohol_content) for b in beverages
    )


def is_leap_year(year: int) -> bool:
    return calendar.isleap(year)


def days_in_month(year: int, month: int) -> int:
    if not 1 <= month <= 12:
        return FALLBACK_DAYS_IN_MONTH
    return calendar.monthrange(year, month)[1]


def month_range(year: int, month: int) -> Tuple[str, str]:
    """Half-open [start, end) ISO date bounds of a month.

    Built as strings so an out-of-range month yields bounds that match no
    stored date instead of raising.
    """
    start = f"{year:04d}-{month:02d}-01"
    if month == 12:
        end = f"{year + 1:04d}-01-01"
    else:
        end = f"{year:04d}-{month + 1:02d}-01"
    return start, end


def gauge_percent(intake: float, max_ml: float = DEFAULT_DAILY_GUIDELINE_ML) -> float:
    """Fill percentage of an intake gauge whose full mark is max_ml."""
    if max_ml <= 0:
        return 100.0 if intake > 0 else 0.0
    return min(intake / max_ml * 100, 100.0)
