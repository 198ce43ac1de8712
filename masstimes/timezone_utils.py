"""Timezone lookup and local wall-clock time resolution for masstimes."""

from __future__ import annotations

import datetime
import logging
import os
import re
import zoneinfo
from functools import lru_cache

from dateutil import parser as date_parser

logger = logging.getLogger(__name__)

TEST_TIME_ENV_VAR = "MASSTIMES_TEST_TIME"

_HHMM_RE = re.compile(r"^(\d{1,2}):(\d{2})(?::(\d{2}))?$")


class TimeProvider:
    """Provides the current time, overridable for tests."""

    def now_utc(self) -> datetime.datetime:
        """Return current UTC time with tzinfo.

        Can be overridden for testing via the MASSTIMES_TEST_TIME environment
        variable. Format: ISO 8601 datetime string (e.g. "2025-03-10T08:00:00Z").
        A naive override is assumed to already be UTC.
        """
        test_time = os.environ.get(TEST_TIME_ENV_VAR)
        if test_time:
            try:
                dt = date_parser.isoparse(test_time)
                if dt.tzinfo is not None:
                    return dt.astimezone(datetime.UTC)
                return dt.replace(tzinfo=datetime.UTC)
            except (ValueError, OverflowError) as e:
                logger.warning("Failed to parse %s=%r: %s", TEST_TIME_ENV_VAR, test_time, e)

        return datetime.datetime.now(datetime.UTC)


_time_provider = TimeProvider()


def now_utc() -> datetime.datetime:
    """Get current UTC time (convenience function)."""
    return _time_provider.now_utc()


def ensure_timezone_aware(dt: datetime.datetime) -> datetime.datetime:
    """Return ``dt`` as an aware UTC datetime; naive values are taken as UTC."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=datetime.UTC)
    return dt.astimezone(datetime.UTC)


def utc_midnight(value: datetime.date | datetime.datetime) -> datetime.datetime:
    """Return UTC midnight of the (UTC) calendar day of ``value``."""
    if isinstance(value, datetime.datetime):
        value = ensure_timezone_aware(value).date()
    return datetime.datetime(value.year, value.month, value.day, tzinfo=datetime.UTC)


def parse_hhmm(value: str) -> tuple[int, int]:
    """Parse "HH:mm" (or "HH:mm:ss", seconds ignored) into (hour, minute).

    Raises:
        ValueError: If the string is not a valid wall-clock time
    """
    match = _HHMM_RE.match(value.strip()) if isinstance(value, str) else None
    if not match:
        raise ValueError(f"Invalid wall-clock time {value!r}, expected HH:mm")
    hour, minute = int(match.group(1)), int(match.group(2))
    if hour > 23 or minute > 59:
        raise ValueError(f"Wall-clock time out of range: {value!r}")
    return hour, minute


@lru_cache(maxsize=128)
def get_zone(tz_name: str) -> zoneinfo.ZoneInfo | None:
    """Look up an IANA timezone, returning None when it is unknown.

    Results (including misses) are cached, so an unknown identifier is only
    reported once per process.
    """
    try:
        return zoneinfo.ZoneInfo(tz_name)
    except (zoneinfo.ZoneInfoNotFoundError, ValueError, TypeError) as e:
        logger.warning("Unknown timezone %r (%s); falling back to UTC", tz_name, e)
        return None


def resolve_local_time(
    day: datetime.date,
    time_of_day: str,
    tz_name: str | None = None,
) -> datetime.datetime:
    """Convert a calendar date plus local "HH:mm" into an absolute UTC instant.

    The wall-clock time is first read as if it were UTC. That provisional
    instant is rendered in the target zone, and the difference between the
    intended and the rendered wall-clock time is subtracted once. This is
    exact away from DST transitions; a skipped or repeated local time may be
    off by the transition offset.

    Args:
        day: Calendar date (a datetime contributes its UTC date)
        time_of_day: Wall-clock time "HH:mm" or "HH:mm:ss"
        tz_name: Optional IANA timezone; absent or unknown means UTC

    Returns:
        Aware datetime in UTC
    """
    if isinstance(day, datetime.datetime):
        day = ensure_timezone_aware(day).date()
    hour, minute = parse_hhmm(time_of_day)
    provisional = datetime.datetime(day.year, day.month, day.day, hour, minute, tzinfo=datetime.UTC)

    if not tz_name:
        return provisional

    zone = get_zone(tz_name)
    if zone is None:
        return provisional

    local_wall = provisional.astimezone(zone).replace(tzinfo=None)
    offset = local_wall - provisional.replace(tzinfo=None)
    return provisional - offset
