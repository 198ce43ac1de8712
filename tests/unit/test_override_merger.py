"""Unit tests for override_merger module."""

from datetime import UTC, datetime

import pytest

from masstimes.models import EventStatus, Location, ResolvedInstance
from masstimes.override_merger import OverrideMerger

pytestmark = pytest.mark.unit

NODE_1 = Location(osm_id="node/1")
NODE_2 = Location(osm_id="node/2")


def instance(starts_at, status=EventStatus.SCHEDULED, location=NODE_1, name="Mass"):
    return ResolvedInstance(name=name, starts_at=starts_at, status=status, location=location)


class TestOverrideMerger:
    """Tests for OverrideMerger.reconcile."""

    def setup_method(self):
        self.merger = OverrideMerger()

    def test_no_overrides_sorts_scheduled(self):
        later = instance(datetime(2025, 3, 16, 11, tzinfo=UTC))
        earlier = instance(datetime(2025, 3, 15, 11, tzinfo=UTC))
        assert self.merger.reconcile([later, earlier]) == [earlier, later]

    def test_cancellation_replaces_same_day_same_location(self):
        scheduled = instance(datetime(2025, 3, 15, 11, tzinfo=UTC))
        cancelled = instance(datetime(2025, 3, 15, 11, tzinfo=UTC), EventStatus.CANCELLED)
        assert self.merger.reconcile([scheduled, cancelled]) == [cancelled]

    def test_override_matches_by_day_not_time(self):
        scheduled = instance(datetime(2025, 3, 15, 11, tzinfo=UTC))
        rescheduled = instance(datetime(2025, 3, 15, 17, tzinfo=UTC), EventStatus.RESCHEDULED)
        assert self.merger.reconcile([scheduled, rescheduled]) == [rescheduled]

    def test_different_location_is_not_replaced(self):
        scheduled = instance(datetime(2025, 3, 15, 11, tzinfo=UTC))
        cancelled = instance(
            datetime(2025, 3, 15, 11, tzinfo=UTC), EventStatus.CANCELLED, location=NODE_2
        )
        assert self.merger.reconcile([scheduled, cancelled]) == [scheduled, cancelled]

    def test_different_day_is_not_replaced(self):
        scheduled = instance(datetime(2025, 3, 16, 11, tzinfo=UTC))
        cancelled = instance(datetime(2025, 3, 15, 11, tzinfo=UTC), EventStatus.CANCELLED)
        assert self.merger.reconcile([scheduled, cancelled]) == [cancelled, scheduled]

    def test_unmatched_override_is_kept(self):
        cancelled = instance(datetime(2025, 3, 20, 9, tzinfo=UTC), EventStatus.CANCELLED)
        assert self.merger.reconcile([cancelled]) == [cancelled]

    def test_override_emitted_once_for_several_scheduled(self):
        morning = instance(datetime(2025, 3, 16, 9, tzinfo=UTC))
        noon = instance(datetime(2025, 3, 16, 12, tzinfo=UTC))
        cancelled = instance(datetime(2025, 3, 16, 9, tzinfo=UTC), EventStatus.CANCELLED)
        assert self.merger.reconcile([morning, noon, cancelled]) == [cancelled]

    def test_first_override_wins(self):
        scheduled = instance(datetime(2025, 3, 15, 11, tzinfo=UTC))
        first = instance(datetime(2025, 3, 15, 11, tzinfo=UTC), EventStatus.CANCELLED, name="first")
        second = instance(datetime(2025, 3, 15, 18, tzinfo=UTC), EventStatus.RESCHEDULED, name="second")
        result = self.merger.reconcile([scheduled, first, second])
        assert result == [first, second]

    def test_missing_locations_match_each_other(self):
        scheduled = instance(datetime(2025, 3, 15, 11, tzinfo=UTC), location=None)
        cancelled = instance(
            datetime(2025, 3, 15, 11, tzinfo=UTC), EventStatus.CANCELLED, location=None
        )
        assert self.merger.reconcile([scheduled, cancelled]) == [cancelled]

    @pytest.mark.parametrize("status", [EventStatus.POSTPONED, EventStatus.MOVED_ONLINE])
    def test_other_statuses_are_dropped(self, status):
        scheduled = instance(datetime(2025, 3, 15, 11, tzinfo=UTC))
        other = instance(datetime(2025, 3, 15, 11, tzinfo=UTC), status)
        assert self.merger.reconcile([scheduled, other]) == [scheduled]

    def test_stable_for_equal_start_times(self):
        at = datetime(2025, 3, 15, 11, tzinfo=UTC)
        first = instance(at, name="first")
        second = instance(at, location=NODE_2, name="second")
        assert self.merger.reconcile([first, second]) == [first, second]

    def test_empty_input(self):
        assert self.merger.reconcile([]) == []
