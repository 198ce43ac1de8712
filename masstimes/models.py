"""Data models for recurring event resolution - masstimes."""

import re
from collections.abc import Iterable
from datetime import UTC, date, datetime, timedelta
from enum import Enum
from types import MappingProxyType
from typing import Annotated, Any, Final, Literal, Optional, Union

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, field_validator, model_validator

from .duration import WEEKLY, RepeatPeriod, parse_duration
from .timezone_utils import ensure_timezone_aware, now_utc, parse_hhmm, utc_midnight

DEFAULT_WINDOW_DAYS = 30
DEFAULT_INSTANCE_LIMIT = 500

_OSM_URL_RE = re.compile(r"openstreetmap\.org/(node|way|relation)/(\d+)")

# Aware datetime normalised to UTC; naive input is taken as UTC
UtcDatetime = Annotated[datetime, AfterValidator(ensure_timezone_aware)]


class EventStatus(str, Enum):
    """Lifecycle status of an event or resolved instance."""

    SCHEDULED = "scheduled"
    CANCELLED = "cancelled"
    POSTPONED = "postponed"
    RESCHEDULED = "rescheduled"
    MOVED_ONLINE = "movedOnline"

    @property
    def uri(self) -> str:
        """schema.org EventStatusType URI for this status."""
        return EVENT_STATUS_URIS[self]

    @property
    def is_override(self) -> bool:
        """True for statuses that supersede a scheduled occurrence."""
        return self in (EventStatus.CANCELLED, EventStatus.RESCHEDULED)

    @classmethod
    def from_uri(cls, value: Optional[str]) -> "EventStatus":
        """Convert a wire status (schema.org URI or friendly name) to an EventStatus.

        Unknown or missing values map to SCHEDULED.
        """
        if not value:
            return cls.SCHEDULED
        for status, uri in EVENT_STATUS_URIS.items():
            if value in (uri, status.value):
                return status
        return cls.SCHEDULED


EVENT_STATUS_URIS: Final = MappingProxyType(
    {
        EventStatus.SCHEDULED: "https://schema.org/EventScheduled",
        EventStatus.CANCELLED: "https://schema.org/EventCancelled",
        EventStatus.POSTPONED: "https://schema.org/EventPostponed",
        EventStatus.RESCHEDULED: "https://schema.org/EventRescheduled",
        EventStatus.MOVED_ONLINE: "https://schema.org/EventMovedOnline",
    }
)


class ServiceCategory:
    """Wikidata identifiers for liturgical service types."""

    MASS: Final = "https://www.wikidata.org/wiki/Q132612"
    TRADITIONAL_LATIN_MASS: Final = "https://www.wikidata.org/wiki/Q3504571"
    EUCHARISTIC_ADORATION: Final = "https://www.wikidata.org/wiki/Q1232710"
    CONFESSION: Final = "https://www.wikidata.org/wiki/Q81825"
    VESPERS: Final = "https://www.wikidata.org/wiki/Q841208"
    ROSARY: Final = "https://www.wikidata.org/wiki/Q192427"
    FUNERAL_MASS: Final = "https://www.wikidata.org/wiki/Q273026"


PRIMARY_SERVICE_CATEGORY: Final = ServiceCategory.MASS

_WEEKDAY_NAMES = ("Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday")

# Weekday names and schema.org DayOfWeek URIs -> index (0=Sunday..6=Saturday)
WEEKDAY_INDEX: Final = MappingProxyType(
    {
        **{name: i for i, name in enumerate(_WEEKDAY_NAMES)},
        **{f"https://schema.org/{name}": i for i, name in enumerate(_WEEKDAY_NAMES)},
        **{f"http://schema.org/{name}": i for i, name in enumerate(_WEEKDAY_NAMES)},
    }
)


def _as_list(value: Any) -> list[Any]:
    """Wrap a scalar in a list; None becomes an empty list."""
    if value is None:
        return []
    if isinstance(value, (str, bytes, dict)) or not isinstance(value, Iterable):
        return [value]
    return list(value)


class Address(BaseModel):
    """Postal address of a location."""

    street: Optional[str] = None
    city: Optional[str] = None
    postal_code: Optional[str] = None
    country: Optional[str] = None

    model_config = ConfigDict(frozen=True)


class Location(BaseModel):
    """Place where an event happens.

    ``osm_id`` is the stable identifier used to match overrides against
    scheduled occurrences.
    """

    name: Optional[str] = None
    osm_id: Optional[str] = Field(default=None, description="OpenStreetMap id, e.g. node/123")
    osm_url: Optional[str] = None
    address: Optional[Address] = None

    model_config = ConfigDict(frozen=True)

    @classmethod
    def from_osm_url(cls, url: str, name: Optional[str] = None) -> "Location":
        """Build a Location from an OpenStreetMap URL, extracting the element id."""
        match = _OSM_URL_RE.search(url)
        osm_id = f"{match.group(1)}/{match.group(2)}" if match else None
        return cls(name=name, osm_id=osm_id, osm_url=url)


class Performer(BaseModel):
    """Person leading an event (celebrant, officiant)."""

    name: Optional[str] = None
    job_title: Optional[str] = None

    model_config = ConfigDict(frozen=True)


class RecurrenceDefinition(BaseModel):
    """Repeating occurrence pattern of an event."""

    days_of_week: frozenset[int] = Field(
        default_factory=frozenset, description="Weekday indices, 0=Sunday..6=Saturday"
    )
    start_time: Optional[str] = Field(default=None, description="Local wall-clock start, HH:mm")
    end_time: Optional[str] = Field(default=None, description="Local wall-clock end, HH:mm")
    repeat_period: RepeatPeriod = Field(default=WEEKLY, description="Repeat period")
    valid_from: Optional[UtcDatetime] = None
    valid_until: Optional[UtcDatetime] = None
    except_dates: frozenset[date] = Field(default_factory=frozenset)
    time_zone: Optional[str] = Field(default=None, description="IANA timezone identifier")

    model_config = ConfigDict(frozen=True)

    @field_validator("days_of_week", mode="before")
    @classmethod
    def _coerce_days(cls, value: Any) -> frozenset[int]:
        days = set()
        for day in _as_list(value):
            if isinstance(day, str):
                index = WEEKDAY_INDEX.get(day.strip())
                if index is not None:
                    days.add(index)
            elif isinstance(day, int) and 0 <= day <= 6:
                days.add(day)
        return frozenset(days)

    @field_validator("start_time", "end_time", mode="before")
    @classmethod
    def _normalize_time(cls, value: Any) -> Optional[str]:
        if value is None or value == "":
            return None
        if isinstance(value, int) and not isinstance(value, bool) and 0 <= value < 24 * 60:
            # YAML 1.1 reads an unquoted 11:00 as the sexagesimal integer 660
            value = f"{value // 60}:{value % 60:02d}"
        hour, minute = parse_hhmm(value)
        return f"{hour:02d}:{minute:02d}"

    @field_validator("repeat_period", mode="before")
    @classmethod
    def _parse_period(cls, value: Any) -> Any:
        if value is None:
            return WEEKLY
        if isinstance(value, str):
            return parse_duration(value)
        return value

    @field_validator("valid_from", "valid_until", mode="before")
    @classmethod
    def _date_bound(cls, value: Any) -> Any:
        if isinstance(value, str) and len(value.strip()) == 10:
            value = date.fromisoformat(value.strip())
        if isinstance(value, date) and not isinstance(value, datetime):
            return utc_midnight(value)
        return value

    @field_validator("except_dates", mode="before")
    @classmethod
    def _coerce_except_dates(cls, value: Any) -> list[Any]:
        dates = []
        for item in _as_list(value):
            if isinstance(item, datetime):
                item = ensure_timezone_aware(item).date()
            elif isinstance(item, str):
                item = date.fromisoformat(item.strip()[:10])
            dates.append(item)
        return dates

    @property
    def is_inert(self) -> bool:
        """True when the definition can never produce an instance."""
        return not self.days_of_week and self.repeat_period.is_zero


class OneOffTiming(BaseModel):
    """Timing of a single, non-repeating event."""

    kind: Literal["one_off"] = "one_off"
    occurs_at: UtcDatetime
    ends_at: Optional[UtcDatetime] = None
    previous_occurs_at: Optional[UtcDatetime] = Field(
        default=None, description="Superseded start time when rescheduled"
    )

    model_config = ConfigDict(frozen=True)


class RecurringTiming(BaseModel):
    """Timing of a repeating event."""

    kind: Literal["recurring"] = "recurring"
    recurrence: RecurrenceDefinition

    model_config = ConfigDict(frozen=True)


EventTiming = Annotated[Union[OneOffTiming, RecurringTiming], Field(discriminator="kind")]


class EventDefinition(BaseModel):
    """An event as published by a source: either one-off or recurring.

    Accepts the flat shape (``recurrence`` / ``occurs_at`` / ``ends_at`` /
    ``previous_occurs_at``) as well as an explicit ``timing``. When both a
    recurrence and an instant are present, the recurrence wins. A definition
    with neither has ``timing=None`` and resolves to no instances.
    """

    name: str = "Mass"
    description: Optional[str] = None
    category: Optional[str] = Field(default=None, description="Service type identifier")
    languages: tuple[str, ...] = Field(default=(), description="BCP 47 language tags")
    performers: tuple[Performer, ...] = ()
    location: Optional[Location] = None
    status: EventStatus = EventStatus.SCHEDULED
    timing: Optional[EventTiming] = None

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="before")
    @classmethod
    def _build_timing(cls, data: Any) -> Any:
        if not isinstance(data, dict) or "timing" in data:
            return data
        data = dict(data)
        recurrence = data.pop("recurrence", None)
        occurs_at = data.pop("occurs_at", None)
        ends_at = data.pop("ends_at", None)
        previous_occurs_at = data.pop("previous_occurs_at", None)
        if recurrence is not None:
            data["timing"] = {"kind": "recurring", "recurrence": recurrence}
        elif occurs_at is not None:
            data["timing"] = {
                "kind": "one_off",
                "occurs_at": occurs_at,
                "ends_at": ends_at,
                "previous_occurs_at": previous_occurs_at,
            }
        return data

    @field_validator("status", mode="before")
    @classmethod
    def _coerce_status(cls, value: Any) -> Any:
        if value is None or isinstance(value, str):
            return EventStatus.from_uri(value)
        return value

    @field_validator("languages", "performers", mode="before")
    @classmethod
    def _coerce_sequence(cls, value: Any) -> list[Any]:
        return _as_list(value)

    @property
    def recurrence(self) -> Optional[RecurrenceDefinition]:
        if isinstance(self.timing, RecurringTiming):
            return self.timing.recurrence
        return None

    @property
    def location_key(self) -> Optional[str]:
        return self.location.osm_id if self.location else None


class ResolvedInstance(BaseModel):
    """A single concrete, time-resolved occurrence of an event."""

    starts_at: UtcDatetime
    ends_at: Optional[UtcDatetime] = None
    name: str
    description: Optional[str] = None
    category: Optional[str] = None
    status: EventStatus = EventStatus.SCHEDULED
    location: Optional[Location] = None
    languages: tuple[str, ...] = ()
    performers: tuple[Performer, ...] = ()
    previous_occurs_at: Optional[UtcDatetime] = None

    model_config = ConfigDict(frozen=True)

    @classmethod
    def from_definition(
        cls,
        definition: EventDefinition,
        starts_at: datetime,
        ends_at: Optional[datetime] = None,
        previous_occurs_at: Optional[datetime] = None,
    ) -> "ResolvedInstance":
        """Create an instance carrying the descriptive fields of ``definition``."""
        return cls(
            starts_at=starts_at,
            ends_at=ends_at,
            name=definition.name,
            description=definition.description,
            category=definition.category,
            status=definition.status,
            location=definition.location,
            languages=definition.languages,
            performers=definition.performers,
            previous_occurs_at=previous_occurs_at,
        )

    @property
    def location_key(self) -> Optional[str]:
        """Location identifier used for override matching (None when unset)."""
        return self.location.osm_id if self.location else None

    @property
    def day_key(self) -> date:
        """UTC calendar day of the start instant."""
        return self.starts_at.astimezone(UTC).date()


class ResolutionWindow(BaseModel):
    """Time range to resolve into, plus a per-definition instance cap.

    ``from`` defaults to now and ``to`` to thirty days after ``from``.
    """

    from_: UtcDatetime = Field(default_factory=now_utc, alias="from")
    to: UtcDatetime = Field(
        default_factory=lambda data: data["from_"] + timedelta(days=DEFAULT_WINDOW_DAYS)
    )
    limit: int = Field(default=DEFAULT_INSTANCE_LIMIT, ge=0)

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    @classmethod
    def spanning(
        cls,
        start: datetime,
        days: int = DEFAULT_WINDOW_DAYS,
        limit: int = DEFAULT_INSTANCE_LIMIT,
    ) -> "ResolutionWindow":
        """Window of ``days`` days beginning at ``start``."""
        return cls(from_=start, to=start + timedelta(days=days), limit=limit)

    def contains(self, instant: datetime) -> bool:
        """True when ``instant`` lies within [from, to], both ends inclusive."""
        return self.from_ <= ensure_timezone_aware(instant) <= self.to


class FilterCriteria(BaseModel):
    """Category and language requirements for participating definitions."""

    categories: frozenset[str] = Field(default_factory=frozenset)
    languages: frozenset[str] = Field(default_factory=frozenset)
    include_uncategorized: bool = False
    include_language_unset: bool = False

    model_config = ConfigDict(frozen=True)

    @field_validator("categories", "languages", mode="before")
    @classmethod
    def _coerce_set(cls, value: Any) -> list[Any]:
        return _as_list(value)
