"""masstimes - resolve recurring service schedules into concrete occurrences.

The engine expands recurrence definitions (weekday sets, multi-week cycles,
fixed intervals) into timezone-correct UTC instants, drops exception dates and
out-of-season days, filters by category and language, and reconciles one-off
cancellations and reschedules against the scheduled occurrences.
"""

__version__ = "0.1.0"

from typing import Optional

from .duration import RepeatPeriod, add_duration, parse_duration
from .event_filter import EventFilter, matches_filter
from .exceptions import ConfigError, DefinitionLoadError, MassTimesError
from .models import (
    PRIMARY_SERVICE_CATEGORY,
    EventDefinition,
    EventStatus,
    FilterCriteria,
    Location,
    OneOffTiming,
    Performer,
    RecurrenceDefinition,
    RecurringTiming,
    ResolutionWindow,
    ResolvedInstance,
    ServiceCategory,
)
from .override_merger import OverrideMerger
from .resolver import EventResolver, get_upcoming_events, get_upcoming_masses
from .schedule_expander import ScheduleExpander, expand_recurrence
from .timezone_utils import resolve_local_time

__all__ = [
    "PRIMARY_SERVICE_CATEGORY",
    "ConfigError",
    "DefinitionLoadError",
    "EventDefinition",
    "EventFilter",
    "EventResolver",
    "EventStatus",
    "FilterCriteria",
    "Location",
    "MassTimesError",
    "OneOffTiming",
    "OverrideMerger",
    "Performer",
    "RecurrenceDefinition",
    "RecurringTiming",
    "RepeatPeriod",
    "ResolutionWindow",
    "ResolvedInstance",
    "ScheduleExpander",
    "ServiceCategory",
    "add_duration",
    "expand_recurrence",
    "get_upcoming_events",
    "get_upcoming_masses",
    "matches_filter",
    "parse_duration",
    "resolve_local_time",
]


def _init_logging(level_name: Optional[str]) -> None:
    """Initialize root logging to stream to console.

    Installs a colorized stderr handler (colorlog) when the root logger has no
    handlers yet. The MASSTIMES_DEBUG environment variable (truthy values: "1",
    "true", "yes", "on") forces DEBUG verbosity to surface expansion and
    reconciliation traces without changing code.
    """
    import logging
    import os
    import sys

    from colorlog import ColoredFormatter

    debug_env = os.environ.get("MASSTIMES_DEBUG", "")
    if debug_env.strip().lower() in ("1", "true", "yes", "on"):
        level_name = "DEBUG"

    root = logging.getLogger()
    # Only configure a handler if none are present to avoid duplicate output.
    if not root.handlers:
        handler = logging.StreamHandler(stream=sys.stderr)
        # HH:MM:SS  LEVEL   logger.name: message  (only the level is colorized)
        fmt = "%(asctime)s %(log_color)s%(levelname)-7s%(reset)s %(name)s: %(message)s"
        log_colors = {
            "DEBUG": "cyan",
            "INFO": "green",
            "WARNING": "yellow",
            "ERROR": "red",
            "CRITICAL": "bold_red",
        }
        handler.setFormatter(ColoredFormatter(fmt, datefmt="%H:%M:%S", log_colors=log_colors))
        root.addHandler(handler)

    level = logging.INFO
    if isinstance(level_name, str):
        level = getattr(logging, level_name.upper(), logging.INFO)
        if not isinstance(level, int):
            level = logging.INFO
    root.setLevel(level)
    logging.getLogger(__name__).debug(
        "Logging initialized at level %s", logging.getLevelName(level)
    )
