import datetime
from dataclasses import dataclass
from dataclasses import field as dataclass_field

from reservations.constants import RecurrenceFrequencyClass, RecurrenceWeekday


@dataclass(frozen=True)
class RuleDescriptor:
    """
    Canonical in-memory form of a recurrence rule.

    Only the fields belonging to ``frequency_class`` are set:
    ``weekdays`` for WEEKLY and BI_WEEKLY, ``month_day`` for MONTHLY_BY_DATE,
    ``week_position`` and ``position_weekday`` for MONTHLY_BY_WEEK_POSITION.
    Exactly one of ``until`` and ``count`` is set.
    """

    frequency_class: RecurrenceFrequencyClass
    weekdays: frozenset[RecurrenceWeekday] = dataclass_field(default_factory=frozenset)
    month_day: int | None = None  # 1..31, or -1 for the last day of the month
    week_position: int | None = None  # 1..4, or -1 for the last one
    position_weekday: RecurrenceWeekday | None = None
    until: datetime.date | None = None
    count: int | None = None


@dataclass(frozen=True)
class CandidateInterval:
    occurrence_date: datetime.date
    start_time: datetime.datetime
    end_time: datetime.datetime


@dataclass
class ExistingReservationData:
    id: int  # noqa: A003
    start_time: datetime.datetime
    end_time: datetime.datetime


@dataclass
class RecurringSeriesInputData:
    """Recurring booking request as received from the caller, before validation."""

    room_id: int | None
    name: str | None
    start_time: str | None  # HH:MM
    end_time: str | None  # HH:MM
    rule: str | None
    show: bool = True
    ext: str | None = None


@dataclass
class RecurringSeriesData:
    requester_id: int
    room_id: int
    name: str
    rule: str
    start_time: datetime.time
    end_time: datetime.time
    show: bool = True
    ext: str | None = None


@dataclass
class ReservationInputData:
    requester_id: int
    room_id: int
    name: str
    start_time: datetime.datetime
    end_time: datetime.datetime
    occurrence_date: datetime.date
    show: bool = True
    ext: str | None = None


@dataclass
class RecurringSeriesCreationResult:
    series_id: int
    created_count: int
    occurrence_dates: list[datetime.date] = dataclass_field(default_factory=list)
