"""Alcohol intake - unit conversion and monthly aggregation."""

from nomilog.intake.aggregator import IntakeAggregator
from nomilog.intake.calculator import (
    ETHANOL_DENSITY,
    beverage_intake,
    calculate_intake,
    days_in_month,
    gauge_percent,
    is_leap_year,
    month_range,
)

__all__ = [
    "ETHANOL_DENSITY",
    "IntakeAggregator",
    "beverage_intake",
    "calculate_intake",
    "days_in_month",
    "gauge_percent",
    "is_leap_year",
    "month_range",
]
