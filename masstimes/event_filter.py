"""Category and language filtering of event definitions for masstimes."""

from __future__ import annotations

import logging
from collections.abc import Iterable

from .models import EventDefinition, FilterCriteria

logger = logging.getLogger(__name__)


class EventFilter:
    """Decides whether event definitions take part in resolution.

    Evaluated once per definition, before any recurrence is expanded.
    """

    def __init__(self, criteria: FilterCriteria):
        """Initialize event filter.

        Args:
            criteria: Category and language requirements
        """
        self.criteria = criteria

    def matches(self, definition: EventDefinition) -> bool:
        """Return True when ``definition`` passes both category and language checks."""
        return self._matches_category(definition) and self._matches_language(definition)

    def _matches_category(self, definition: EventDefinition) -> bool:
        if not self.criteria.categories:
            return True
        if not definition.category:
            return self.criteria.include_uncategorized
        return definition.category in self.criteria.categories

    def _matches_language(self, definition: EventDefinition) -> bool:
        if not self.criteria.languages:
            return True
        if not definition.languages:
            return self.criteria.include_language_unset
        return not self.criteria.languages.isdisjoint(definition.languages)

    def filter_definitions(self, definitions: Iterable[EventDefinition]) -> list[EventDefinition]:
        """Keep the definitions that match, preserving input order."""
        kept = []
        rejected = 0
        for definition in definitions:
            if self.matches(definition):
                kept.append(definition)
            else:
                rejected += 1
        if rejected:
            logger.debug("Event filter rejected %d of %d definitions", rejected, rejected + len(kept))
        return kept


def matches_filter(definition: EventDefinition, criteria: FilterCriteria) -> bool:
    """Pure predicate form of EventFilter.matches."""
    return EventFilter(criteria).matches(definition)
