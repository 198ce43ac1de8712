"""Unit tests for event_filter module."""

import pytest

from masstimes.event_filter import EventFilter, matches_filter
from masstimes.models import EventDefinition, FilterCriteria, ServiceCategory

pytestmark = pytest.mark.unit


def definition(category=None, languages=()):
    return EventDefinition(
        category=category,
        languages=languages,
        recurrence={"days_of_week": ["Sunday"], "start_time": "11:00"},
    )


class TestCategoryFilter:
    """Tests for category matching."""

    def test_empty_criteria_accepts_everything(self):
        event_filter = EventFilter(FilterCriteria())
        assert event_filter.matches(definition())
        assert event_filter.matches(definition(ServiceCategory.VESPERS, ["la"]))

    def test_category_must_be_listed(self):
        criteria = FilterCriteria(categories=[ServiceCategory.MASS])
        assert matches_filter(definition(ServiceCategory.MASS), criteria)
        assert not matches_filter(definition(ServiceCategory.CONFESSION), criteria)

    def test_uncategorized_excluded_by_default(self):
        criteria = FilterCriteria(categories=[ServiceCategory.MASS])
        assert not matches_filter(definition(), criteria)

    def test_uncategorized_included_on_request(self):
        criteria = FilterCriteria(categories=[ServiceCategory.MASS], include_uncategorized=True)
        assert matches_filter(definition(), criteria)
        assert not matches_filter(definition(ServiceCategory.ROSARY), criteria)


class TestLanguageFilter:
    """Tests for language matching."""

    def test_any_shared_language_matches(self):
        criteria = FilterCriteria(languages=["la", "en"])
        assert matches_filter(definition(languages=["es", "la"]), criteria)
        assert not matches_filter(definition(languages=["es"]), criteria)

    def test_language_unset_excluded_by_default(self):
        assert not matches_filter(definition(), FilterCriteria(languages=["es"]))

    def test_language_unset_included_on_request(self):
        criteria = FilterCriteria(languages=["es"], include_language_unset=True)
        assert matches_filter(definition(), criteria)

    def test_category_and_language_both_required(self):
        criteria = FilterCriteria(categories=[ServiceCategory.MASS], languages=["la"])
        assert matches_filter(definition(ServiceCategory.MASS, ["la"]), criteria)
        assert not matches_filter(definition(ServiceCategory.MASS, ["es"]), criteria)
        assert not matches_filter(definition(ServiceCategory.VESPERS, ["la"]), criteria)


class TestFilterDefinitions:
    """Tests for EventFilter.filter_definitions."""

    def test_preserves_order(self):
        first = definition(ServiceCategory.MASS, ["es"])
        second = definition(ServiceCategory.VESPERS, ["es"])
        third = definition(ServiceCategory.MASS, ["en"])
        event_filter = EventFilter(FilterCriteria(categories=[ServiceCategory.MASS]))
        assert event_filter.filter_definitions([first, second, third]) == [first, third]

    def test_is_pure(self):
        criteria = FilterCriteria(languages=["es"])
        target = definition(languages=["es"])
        assert matches_filter(target, criteria) == matches_filter(target, criteria)
