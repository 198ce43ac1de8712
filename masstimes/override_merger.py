"""Override reconciliation for resolved instances - masstimes.

Cancellations and reschedules are published as one-off events. Each one
supersedes the scheduled instance that falls on the same UTC calendar day at
the same location. Overrides that match nothing are kept as standalone
instances.
"""

import logging
from datetime import date
from typing import Optional

from .models import EventStatus, ResolvedInstance

logger = logging.getLogger(__name__)

OverrideKey = tuple[date, Optional[str]]


class OverrideMerger:
    """Merges cancellation/reschedule overrides into scheduled instances."""

    def reconcile(self, instances: list[ResolvedInstance]) -> list[ResolvedInstance]:
        """Apply overrides to scheduled instances and return the sorted result.

        Only ``scheduled`` instances and override instances (``cancelled``,
        ``rescheduled``) take part; instances with any other status are not
        part of the result.

        Args:
            instances: Instances emitted for every participating definition

        Returns:
            Instances ordered by start time; equal start times keep input order
        """
        scheduled = [i for i in instances if i.status == EventStatus.SCHEDULED]
        overrides = [i for i in instances if i.status.is_override]

        override_index = self._index_overrides(overrides)
        consumed: set[int] = set()
        result: list[ResolvedInstance] = []
        superseded = 0

        for instance in scheduled:
            key = self._key_for(instance)
            candidates = override_index.get(key, []) if key is not None else []
            if not candidates:
                result.append(instance)
                continue

            position, override = candidates[0]
            superseded += 1
            if position not in consumed:
                consumed.add(position)
                result.append(override)
                logger.debug(
                    "Override %s on %s replaces scheduled %r at %s",
                    override.status.value,
                    key[0],
                    instance.name,
                    instance.starts_at.isoformat(),
                )

        standalone = [o for position, o in enumerate(overrides) if position not in consumed]
        result.extend(standalone)

        if superseded or standalone:
            logger.debug(
                "Override reconciliation: %d scheduled superseded, %d standalone overrides",
                superseded,
                len(standalone),
            )

        return sorted(result, key=lambda i: i.starts_at)

    def _index_overrides(
        self, overrides: list[ResolvedInstance]
    ) -> dict[OverrideKey, list[tuple[int, ResolvedInstance]]]:
        """Group overrides by (UTC day, location id), first-seen first."""
        index: dict[OverrideKey, list[tuple[int, ResolvedInstance]]] = {}
        for position, override in enumerate(overrides):
            key = self._key_for(override)
            if key is None:
                continue
            index.setdefault(key, []).append((position, override))
        return index

    def _key_for(self, instance: ResolvedInstance) -> Optional[OverrideKey]:
        """Matching key, or None when the start instant cannot be read as a day."""
        try:
            return instance.day_key, instance.location_key
        except (AttributeError, OverflowError, ValueError) as e:
            logger.warning("Excluding instance %r from override matching: %s", instance.name, e)
            return None
