"""Recurrence expansion for masstimes.

Turns a RecurrenceDefinition into the ordered list of UTC instants at which it
fires inside a ResolutionWindow. Two modes exist:

- day-of-week mode walks UTC calendar days and keeps the ones whose weekday is
  listed and whose week offset from the anchor date is a multiple of the
  repeat period's week count;
- fixed-interval mode steps from the window start by the repeat period.

Expansion is a pure function of its inputs: no caching, no shared state.
"""

from __future__ import annotations

import logging
import time
from datetime import date, datetime, timedelta
from typing import NamedTuple

from .duration import add_duration
from .models import RecurrenceDefinition, ResolutionWindow
from .timezone_utils import resolve_local_time, utc_midnight

logger = logging.getLogger(__name__)


class Occurrence(NamedTuple):
    """One firing of a recurrence: the calendar day walked and its UTC instant."""

    day: date
    starts_at: datetime


def weekday_index(dt: datetime) -> int:
    """Weekday of ``dt`` with 0=Sunday..6=Saturday."""
    return dt.isoweekday() % 7


class ScheduleExpander:
    """Expands recurrence definitions into concrete instants."""

    def expand(
        self,
        recurrence: RecurrenceDefinition,
        window: ResolutionWindow,
    ) -> list[datetime]:
        """Expand ``recurrence`` within ``window``.

        Args:
            recurrence: Recurrence pattern to expand
            window: Requested range and per-definition instance cap

        Returns:
            Ascending list of aware UTC datetimes, at most ``window.limit`` long
        """
        return [occurrence.starts_at for occurrence in self.expand_occurrences(recurrence, window)]

    def expand_occurrences(
        self,
        recurrence: RecurrenceDefinition,
        window: ResolutionWindow,
    ) -> list[Occurrence]:
        """Like ``expand`` but keeps the calendar day each instant was resolved on.

        Local times such as an end time belong on that day, which differs from
        the UTC date of the instant in zones far from UTC.
        """
        started = time.perf_counter()

        if recurrence.is_inert:
            logger.debug("Recurrence has no weekdays and a zero period; nothing to expand")
            return []

        bounds_start, bounds_end = self._effective_bounds(recurrence, window)
        if bounds_start > bounds_end:
            logger.debug(
                "Recurrence bounds empty: start=%s end=%s", bounds_start, bounds_end
            )
            return []

        if recurrence.days_of_week:
            results = self._expand_days_of_week(recurrence, bounds_start, bounds_end, window.limit)
            mode = "day-of-week"
        else:
            results = self._expand_fixed_interval(
                recurrence, bounds_start, bounds_end, window.limit
            )
            mode = "fixed-interval"

        if len(results) >= window.limit:
            logger.debug("Recurrence expansion capped at %d instances", window.limit)

        logger.debug(
            "Expanded %s recurrence (%s): %d instances in %.1fms",
            mode,
            recurrence.repeat_period.to_iso(),
            len(results),
            (time.perf_counter() - started) * 1000,
        )
        return results

    def _effective_bounds(
        self,
        recurrence: RecurrenceDefinition,
        window: ResolutionWindow,
    ) -> tuple[datetime, datetime]:
        bounds_start = window.from_
        if recurrence.valid_from is not None and recurrence.valid_from > bounds_start:
            bounds_start = recurrence.valid_from

        bounds_end = window.to
        if recurrence.valid_until is not None and recurrence.valid_until < bounds_end:
            bounds_end = recurrence.valid_until

        return bounds_start, bounds_end

    def _expand_days_of_week(
        self,
        recurrence: RecurrenceDefinition,
        bounds_start: datetime,
        bounds_end: datetime,
        limit: int,
    ) -> list[Occurrence]:
        cursor = utc_midnight(bounds_start)
        anchor = utc_midnight(recurrence.valid_from or bounds_start)
        repeat_weeks = recurrence.repeat_period.repeat_weeks

        results: list[Occurrence] = []
        while cursor <= bounds_end and len(results) < limit:
            if weekday_index(cursor) in recurrence.days_of_week:
                weeks_since_anchor = (cursor - anchor).days // 7
                if (
                    weeks_since_anchor % repeat_weeks == 0
                    and cursor.date() not in recurrence.except_dates
                ):
                    results.append(self._occurrence_at(cursor, recurrence))
            cursor += timedelta(days=1)
        return results

    def _expand_fixed_interval(
        self,
        recurrence: RecurrenceDefinition,
        bounds_start: datetime,
        bounds_end: datetime,
        limit: int,
    ) -> list[Occurrence]:
        cursor = bounds_start
        results: list[Occurrence] = []
        while cursor <= bounds_end and len(results) < limit:
            if cursor.date() not in recurrence.except_dates:
                results.append(self._occurrence_at(cursor, recurrence))
            cursor = add_duration(cursor, recurrence.repeat_period)
        return results

    def _occurrence_at(self, cursor: datetime, recurrence: RecurrenceDefinition) -> Occurrence:
        """Occurrence for the day of ``cursor``; without a start time the cursor itself."""
        day = cursor.date()
        if recurrence.start_time:
            starts_at = resolve_local_time(day, recurrence.start_time, recurrence.time_zone)
            return Occurrence(day, starts_at)
        return Occurrence(day, cursor)


_default_expander = ScheduleExpander()


def expand_recurrence(
    recurrence: RecurrenceDefinition,
    window: ResolutionWindow | None = None,
) -> list[datetime]:
    """Expand a recurrence into raw UTC instants (no event metadata attached).

    Args:
        recurrence: Recurrence pattern to expand
        window: Range and cap; defaults to the next thirty days with a cap of 500

    Returns:
        Ascending list of aware UTC datetimes
    """
    return _default_expander.expand(recurrence, window or ResolutionWindow())
