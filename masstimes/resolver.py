"""Resolution of event definitions into concrete instances - masstimes.

Pipeline per call:
    filter definitions -> expand recurrences / collect one-offs
    -> reconcile overrides -> sort by start time
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import date, datetime, timedelta
from typing import Optional

from .event_filter import EventFilter
from .models import (
    PRIMARY_SERVICE_CATEGORY,
    EventDefinition,
    FilterCriteria,
    OneOffTiming,
    RecurrenceDefinition,
    RecurringTiming,
    ResolutionWindow,
    ResolvedInstance,
)
from .override_merger import OverrideMerger
from .schedule_expander import ScheduleExpander
from .timezone_utils import resolve_local_time

logger = logging.getLogger(__name__)


class EventResolver:
    """Resolves event definitions within a window.

    Holds no per-call state, so one resolver may serve concurrent callers.
    """

    def __init__(
        self,
        expander: Optional[ScheduleExpander] = None,
        merger: Optional[OverrideMerger] = None,
    ):
        self.expander = expander or ScheduleExpander()
        self.merger = merger or OverrideMerger()

    def resolve(
        self,
        definitions: Iterable[EventDefinition],
        window: ResolutionWindow,
        criteria: FilterCriteria,
    ) -> list[ResolvedInstance]:
        """Resolve ``definitions`` into sorted, override-reconciled instances.

        Args:
            definitions: Event definitions to resolve
            window: Time range and per-definition instance cap
            criteria: Category and language filter

        Returns:
            Instances ordered by start time
        """
        event_filter = EventFilter(criteria)
        emitted: list[ResolvedInstance] = []
        considered = 0

        for definition in definitions:
            considered += 1
            if not event_filter.matches(definition):
                continue
            emitted.extend(self._instances_for(definition, window))

        result = self.merger.reconcile(emitted)
        logger.debug(
            "Resolved %d definitions into %d instances (%d before reconciliation) for %s..%s",
            considered,
            len(result),
            len(emitted),
            window.from_.isoformat(),
            window.to.isoformat(),
        )
        return result

    def _instances_for(
        self,
        definition: EventDefinition,
        window: ResolutionWindow,
    ) -> list[ResolvedInstance]:
        timing = definition.timing

        if isinstance(timing, RecurringTiming):
            return self._expand_recurring(definition, timing, window)

        if isinstance(timing, OneOffTiming):
            if not window.contains(timing.occurs_at):
                return []
            return [
                ResolvedInstance.from_definition(
                    definition,
                    starts_at=timing.occurs_at,
                    ends_at=timing.ends_at,
                    previous_occurs_at=timing.previous_occurs_at,
                )
            ]

        logger.debug("Skipping definition %r with neither recurrence nor start time", definition.name)
        return []

    def _expand_recurring(
        self,
        definition: EventDefinition,
        timing: RecurringTiming,
        window: ResolutionWindow,
    ) -> list[ResolvedInstance]:
        recurrence = timing.recurrence
        if recurrence.valid_until is not None and recurrence.valid_until < window.from_:
            logger.debug(
                "Skipping stale schedule %r (valid until %s)",
                definition.name,
                recurrence.valid_until.date(),
            )
            return []

        instances = []
        for day, starts_at in self.expander.expand_occurrences(recurrence, window):
            ends_at = None
            if recurrence.end_time:
                ends_at = _end_on_day(day, starts_at, recurrence)
            instances.append(
                ResolvedInstance.from_definition(definition, starts_at=starts_at, ends_at=ends_at)
            )
        return instances


def _end_on_day(day: date, starts_at: datetime, recurrence: RecurrenceDefinition) -> datetime:
    """End instant on the same local day as the start, rolling past midnight if earlier."""
    ends_at = resolve_local_time(day, recurrence.end_time, recurrence.time_zone)
    if ends_at < starts_at:
        ends_at = resolve_local_time(day + timedelta(days=1), recurrence.end_time, recurrence.time_zone)
    return ends_at


_default_resolver = EventResolver()


def get_upcoming_events(
    definitions: Iterable[EventDefinition],
    window: Optional[ResolutionWindow] = None,
    criteria: Optional[FilterCriteria] = None,
) -> list[ResolvedInstance]:
    """Resolve definitions with optional category/language filtering.

    Args:
        definitions: Event definitions to resolve
        window: Range and cap; defaults to the next thirty days
        criteria: Filter; defaults to accepting everything

    Returns:
        Sorted, override-reconciled instances
    """
    return _default_resolver.resolve(
        definitions,
        window or ResolutionWindow(),
        criteria or FilterCriteria(),
    )


def get_upcoming_masses(
    definitions: Iterable[EventDefinition],
    window: Optional[ResolutionWindow] = None,
    criteria: Optional[FilterCriteria] = None,
) -> list[ResolvedInstance]:
    """Resolve primary services (Mass) only.

    Definitions without a category are included, since most sources omit it.
    Language settings from ``criteria`` are kept as given.
    """
    base = criteria or FilterCriteria()
    mass_criteria = base.model_copy(
        update={
            "categories": frozenset({PRIMARY_SERVICE_CATEGORY}),
            "include_uncategorized": True,
        }
    )
    return get_upcoming_events(definitions, window, mass_criteria)
