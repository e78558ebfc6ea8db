"""Monthly alcohol-intake aggregation over stored posts."""

from __future__ import annotations

import logging
from typing import Set

from nomilog.intake.calculator import beverage_intake, days_in_month, month_range
from nomilog.storage.db import DatabaseManager
from nomilog.storage.models import MonthlyIntake

logger = logging.getLogger(__name__)


class IntakeAggregator:
    """Derive per-month totals, daily averages and drinking days."""

    def __init__(self, db: DatabaseManager) -> None:
        self._db = db

    def monthly_intake(self, year: int, month: int) -> MonthlyIntake:
        """Aggregate every post dated inside (year, month).

        drinking_days counts distinct dates, not posts. The average divides
        by the full length of the month, so days without posts dilute it.
        """
        start, end = month_range(year, month)

        total = 0.0
        dates: Set[str] = set()

        with self._db.session() as conn:
            # LEFT JOIN keeps posts without beverages: they still mark a day
            rows = conn.execute(
                """SELECT p.id, p.date, pb.amount, b.alcohol_content
                   FROM posts p
                   LEFT JOIN post_beverages pb ON pb.post_id = p.id
                   LEFT JOIN beverages b ON b.id = pb.beverage_id
                   WHERE p.date >= ? AND p.date < ?
                   ORDER BY p.date""",
                (start, end),
            ).fetchall()

        for row in rows:
            dates.add(row["date"])
            if row["amount"] is not None:
                total += beverage_intake(row["amount"], row["alcohol_content"])

        days = days_in_month(year, month)
        result = MonthlyIntake(
            year=year,
            month=month,
            total_intake=total,
            average_per_day=total / days,
            drinking_days=len(dates),
            days_in_month=days,
        )
        logger.debug(
            "Intake %04d-%02d: total=%.2f avg=%.2f days=%d/%d",
            year, month, result.total_intake, result.average_per_day,
            result.drinking_days, days,
        )
        return result
