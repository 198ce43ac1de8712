"""Restricted ISO-8601 duration parsing for recurrence periods.

Only the date part of the grammar is supported: ``P[nY][nM][nW][nD]``.
Anything that does not start with a recognisable period degrades to one week
so that malformed upstream schedules still produce a weekly pattern.
"""

import logging
import re
from datetime import datetime
from typing import Optional

from dateutil.relativedelta import relativedelta
from pydantic import BaseModel, ConfigDict

logger = logging.getLogger(__name__)

_DURATION_RE = re.compile(r"^P(?:(\d+)Y)?(?:(\d+)M)?(?:(\d+)W)?(?:(\d+)D)?")


class RepeatPeriod(BaseModel):
    """Structured repeat period; absent components are ``None``."""

    years: Optional[int] = None
    months: Optional[int] = None
    weeks: Optional[int] = None
    days: Optional[int] = None

    model_config = ConfigDict(frozen=True)

    @property
    def is_zero(self) -> bool:
        """True when no component is non-zero (the period never advances)."""
        return not (self.years or self.months or self.weeks or self.days)

    @property
    def repeat_weeks(self) -> int:
        """Week cycle length used by day-of-week recurrences (default 1)."""
        return self.weeks or 1

    def to_iso(self) -> str:
        parts = ["P"]
        for value, unit in (
            (self.years, "Y"),
            (self.months, "M"),
            (self.weeks, "W"),
            (self.days, "D"),
        ):
            if value is not None:
                parts.append(f"{value}{unit}")
        return "".join(parts)


WEEKLY = RepeatPeriod(weeks=1)


def parse_duration(value: Optional[str]) -> RepeatPeriod:
    """Parse an ISO-8601 date duration into a RepeatPeriod.

    Args:
        value: Duration string such as "P1W", "P2W", "P1M" or "P1Y2M"

    Returns:
        Parsed RepeatPeriod. Unparseable input returns a one-week period;
        this never raises.
    """
    if not isinstance(value, str):
        logger.warning("Repeat period %r is not a string; defaulting to weekly", value)
        return WEEKLY

    match = _DURATION_RE.match(value.strip())
    if not match:
        logger.warning("Unparseable repeat period %r; defaulting to weekly", value)
        return WEEKLY

    years, months, weeks, days = (int(g) if g else None for g in match.groups())
    return RepeatPeriod(years=years, months=months, weeks=weeks, days=days)


def add_duration(dt: datetime, period: RepeatPeriod) -> datetime:
    """Advance ``dt`` by one period using calendar-aware arithmetic.

    Month and year steps clamp to the end of shorter months, e.g. Jan 31 plus
    one month is Feb 28 (or 29).
    """
    return dt + relativedelta(
        years=period.years or 0,
        months=period.months or 0,
        weeks=period.weeks or 0,
        days=period.days or 0,
    )
