"""Recurrence utilities: encoding, decoding and expanding recurrence rules.

This module holds the two pure halves of the recurring reservation engine:
``RuleCodec``, which maps ``RuleDescriptor`` objects to and from their
canonical rule text, and ``RecurrenceExpander``, which turns a descriptor and
an anchor date into the sequence of occurrence dates.

Notes:
- Both classes only expose static methods and keep no module-level state.
  A fresh ``dateutil.rrule.rrule`` is built on every expansion.
- Dates are whole-day, naive local dates. Times of day are handled by the
  caller.
"""

import datetime
import itertools
import re
from typing import assert_never

from dateutil.rrule import FR, MO, MONTHLY, SA, SU, TH, TU, WE, WEEKLY, rrule, weekday

from reservations.constants import (
    LAST_DAY_OF_MONTH,
    RULE_DATE_FORMAT,
    WEEK_POSITIONS,
    WEEKDAY_ORDER,
    RecurrenceFrequencyClass,
    RecurrenceWeekday,
)
from reservations.exceptions import MalformedRuleError, TooManyOccurrencesError
from reservations.services.dataclasses import RuleDescriptor


_DATEUTIL_WEEKDAYS: dict[RecurrenceWeekday, weekday] = {
    RecurrenceWeekday.MONDAY: MO,
    RecurrenceWeekday.TUESDAY: TU,
    RecurrenceWeekday.WEDNESDAY: WE,
    RecurrenceWeekday.THURSDAY: TH,
    RecurrenceWeekday.FRIDAY: FR,
    RecurrenceWeekday.SATURDAY: SA,
    RecurrenceWeekday.SUNDAY: SU,
}

_RULE_KEYS = frozenset({"FREQ", "INTERVAL", "BYDAY", "BYMONTHDAY", "UNTIL", "COUNT"})
_INTEGER_RE = re.compile(r"^[+-]?\d+$")
_UNTIL_RE = re.compile(r"^(?P<date>\d{8})(T\d{6}Z?)?$")
_POSITIONED_WEEKDAY_RE = re.compile(r"^(?P<position>\+?[1-4]|-1)(?P<weekday>MO|TU|WE|TH|FR|SA|SU)$")

BI_WEEKLY_INTERVAL = 2


def _sorted_weekdays(weekdays) -> list[RecurrenceWeekday]:
    return sorted(
        (RecurrenceWeekday(day) for day in weekdays),
        key=WEEKDAY_ORDER.index,
    )


class RuleCodec:
    """Bidirectional mapping between ``RuleDescriptor`` and rule text."""

    @staticmethod
    def validate_descriptor(descriptor: RuleDescriptor) -> None:
        """Raise ``MalformedRuleError`` if ``descriptor`` is not structurally valid."""
        try:
            frequency_class = RecurrenceFrequencyClass(descriptor.frequency_class)
        except ValueError as e:
            raise MalformedRuleError(
                f"Unsupported frequency class: {descriptor.frequency_class}"
            ) from e

        RuleCodec._validate_end_condition(descriptor)

        if (
            frequency_class is RecurrenceFrequencyClass.WEEKLY
            or frequency_class is RecurrenceFrequencyClass.BI_WEEKLY
        ):
            if not descriptor.weekdays:
                raise MalformedRuleError("Weekly rules require at least one weekday")
            try:
                _sorted_weekdays(descriptor.weekdays)
            except ValueError as e:
                raise MalformedRuleError("Weekdays must be MO, TU, WE, TH, FR, SA or SU") from e
            if (
                descriptor.month_day is not None
                or descriptor.week_position is not None
                or descriptor.position_weekday is not None
            ):
                raise MalformedRuleError("Weekly rules only accept weekdays")
        elif frequency_class is RecurrenceFrequencyClass.MONTHLY_BY_DATE:
            month_day = descriptor.month_day
            if (
                not isinstance(month_day, int)
                or isinstance(month_day, bool)
                or not (1 <= month_day <= 31 or month_day == LAST_DAY_OF_MONTH)
            ):
                raise MalformedRuleError("Month day must be between 1-31 or -1")
            if (
                descriptor.weekdays
                or descriptor.week_position is not None
                or descriptor.position_weekday is not None
            ):
                raise MalformedRuleError("Monthly by date rules only accept a month day")
        elif frequency_class is RecurrenceFrequencyClass.MONTHLY_BY_WEEK_POSITION:
            if isinstance(descriptor.week_position, bool) or descriptor.week_position not in (
                WEEK_POSITIONS
            ):
                raise MalformedRuleError("Week position must be 1, 2, 3, 4 or -1")
            if descriptor.position_weekday is None:
                raise MalformedRuleError("Monthly by week position rules require a weekday")
            try:
                RecurrenceWeekday(descriptor.position_weekday)
            except ValueError as e:
                raise MalformedRuleError(
                    f"Invalid weekday: {descriptor.position_weekday}"
                ) from e
            if descriptor.weekdays or descriptor.month_day is not None:
                raise MalformedRuleError(
                    "Monthly by week position rules only accept a position and a weekday"
                )
        else:
            assert_never(frequency_class)

    @staticmethod
    def _validate_end_condition(descriptor: RuleDescriptor) -> None:
        has_until = descriptor.until is not None
        has_count = descriptor.count is not None
        if has_until and has_count:
            raise MalformedRuleError("Cannot specify both 'count' and 'until' in a recurrence rule.")
        if not has_until and not has_count:
            raise MalformedRuleError("A recurrence rule requires either 'count' or 'until'.")
        if has_count and (
            not isinstance(descriptor.count, int)
            or isinstance(descriptor.count, bool)
            or descriptor.count < 1
        ):
            raise MalformedRuleError("Count must be at least 1.")
        if has_until and not isinstance(descriptor.until, datetime.date):
            raise MalformedRuleError("Until must be a date.")

    @staticmethod
    def encode(descriptor: RuleDescriptor) -> str:
        """
        Convert ``descriptor`` to its canonical rule text, e.g.
        ``FREQ=WEEKLY;INTERVAL=2;BYDAY=MO,WE;COUNT=10``.
        """
        RuleCodec.validate_descriptor(descriptor)
        frequency_class = RecurrenceFrequencyClass(descriptor.frequency_class)

        parts: list[str]
        if (
            frequency_class is RecurrenceFrequencyClass.WEEKLY
            or frequency_class is RecurrenceFrequencyClass.BI_WEEKLY
        ):
            parts = ["FREQ=WEEKLY"]
            if frequency_class is RecurrenceFrequencyClass.BI_WEEKLY:
                parts.append(f"INTERVAL={BI_WEEKLY_INTERVAL}")
            weekdays = ",".join(day.value for day in _sorted_weekdays(descriptor.weekdays))
            parts.append(f"BYDAY={weekdays}")
        elif frequency_class is RecurrenceFrequencyClass.MONTHLY_BY_DATE:
            parts = ["FREQ=MONTHLY", f"BYMONTHDAY={descriptor.month_day}"]
        elif frequency_class is RecurrenceFrequencyClass.MONTHLY_BY_WEEK_POSITION:
            position_weekday = RecurrenceWeekday(descriptor.position_weekday).value
            parts = ["FREQ=MONTHLY", f"BYDAY={descriptor.week_position}{position_weekday}"]
        else:
            assert_never(frequency_class)

        if descriptor.until is not None:
            parts.append(f"UNTIL={descriptor.until.strftime(RULE_DATE_FORMAT)}")
        else:
            parts.append(f"COUNT={descriptor.count}")

        return ";".join(parts)

    @staticmethod
    def _split_rule_text(rule_text: str) -> dict[str, str]:
        if not isinstance(rule_text, str) or not rule_text.strip():
            raise MalformedRuleError("Recurrence rule is empty")

        text = rule_text.strip()
        if text.upper().startswith("RRULE:"):
            text = text[6:]  # Remove RRULE: prefix

        components: dict[str, str] = {}
        for part in text.split(";"):
            if not part.strip():
                continue
            if "=" not in part:
                raise MalformedRuleError(f"Invalid rule component: {part}")
            key, value = part.split("=", 1)
            key = key.strip().upper()
            value = value.strip().upper()
            if key not in _RULE_KEYS:
                raise MalformedRuleError(f"Unsupported rule component: {key}")
            if key in components:
                raise MalformedRuleError(f"Duplicated rule component: {key}")
            if not value:
                raise MalformedRuleError(f"Empty value for rule component: {key}")
            components[key] = value
        return components

    @staticmethod
    def _parse_integer(value: str, component: str) -> int:
        if not _INTEGER_RE.match(value):
            raise MalformedRuleError(f"{component} must be an integer")
        return int(value)

    @staticmethod
    def _parse_until(value: str) -> datetime.date:
        # RFC 5545 UNTIL values may carry a time part; only the date is kept.
        match = _UNTIL_RE.match(value)
        if not match:
            raise MalformedRuleError("UNTIL must use the YYYYMMDD format")
        try:
            return datetime.datetime.strptime(match.group("date"), RULE_DATE_FORMAT).date()
        except ValueError as e:
            raise MalformedRuleError(f"Invalid UNTIL date: {value}") from e

    @staticmethod
    def _parse_weekday_list(value: str) -> frozenset[RecurrenceWeekday]:
        days = [day.strip() for day in value.split(",")]
        try:
            return frozenset(RecurrenceWeekday(day) for day in days)
        except ValueError as e:
            invalid_weekdays = [day for day in days if day not in RecurrenceWeekday.values]
            raise MalformedRuleError(
                f"Invalid weekdays: {', '.join(invalid_weekdays)}. "
                "Valid options are: MO, TU, WE, TH, FR, SA, SU"
            ) from e

    @staticmethod
    def decode(rule_text: str) -> RuleDescriptor:
        """
        Parse ``rule_text`` into a ``RuleDescriptor``.
        Raises ``MalformedRuleError`` if the text is not one of the supported rule shapes.
        """
        components = RuleCodec._split_rule_text(rule_text)

        frequency = components.pop("FREQ", None)
        if frequency is None:
            raise MalformedRuleError("Recurrence rule requires FREQ")

        until = count = None
        if "UNTIL" in components and "COUNT" in components:
            raise MalformedRuleError("Cannot specify both 'count' and 'until' in a recurrence rule.")
        if "UNTIL" in components:
            until = RuleCodec._parse_until(components.pop("UNTIL"))
        elif "COUNT" in components:
            count = RuleCodec._parse_integer(components.pop("COUNT"), "COUNT")
        else:
            raise MalformedRuleError("A recurrence rule requires either 'count' or 'until'.")

        interval = 1
        if "INTERVAL" in components:
            interval = RuleCodec._parse_integer(components.pop("INTERVAL"), "INTERVAL")

        if frequency == "WEEKLY":
            if interval not in (1, BI_WEEKLY_INTERVAL):
                raise MalformedRuleError("Weekly rules only support INTERVAL=1 or INTERVAL=2")
            if "BYDAY" not in components:
                raise MalformedRuleError("Weekly rules require BYDAY")
            descriptor = RuleDescriptor(
                frequency_class=(
                    RecurrenceFrequencyClass.BI_WEEKLY
                    if interval == BI_WEEKLY_INTERVAL
                    else RecurrenceFrequencyClass.WEEKLY
                ),
                weekdays=RuleCodec._parse_weekday_list(components.pop("BYDAY")),
                until=until,
                count=count,
            )
        elif frequency == "MONTHLY":
            if interval != 1:
                raise MalformedRuleError("Monthly rules do not support INTERVAL")
            if ("BYMONTHDAY" in components) == ("BYDAY" in components):
                raise MalformedRuleError("Monthly rules require exactly one of BYMONTHDAY or BYDAY")
            if "BYMONTHDAY" in components:
                descriptor = RuleDescriptor(
                    frequency_class=RecurrenceFrequencyClass.MONTHLY_BY_DATE,
                    month_day=RuleCodec._parse_integer(
                        components.pop("BYMONTHDAY"), "BYMONTHDAY"
                    ),
                    until=until,
                    count=count,
                )
            else:
                by_day = components.pop("BYDAY")
                match = _POSITIONED_WEEKDAY_RE.match(by_day)
                if not match:
                    raise MalformedRuleError(
                        f"Invalid BYDAY for a monthly rule: {by_day}. Expected e.g. 1FR or -1MO"
                    )
                descriptor = RuleDescriptor(
                    frequency_class=RecurrenceFrequencyClass.MONTHLY_BY_WEEK_POSITION,
                    week_position=int(match.group("position")),
                    position_weekday=RecurrenceWeekday(match.group("weekday")),
                    until=until,
                    count=count,
                )
        else:
            raise MalformedRuleError(f"Unsupported frequency: {frequency}")

        if components:
            raise MalformedRuleError(
                f"Unsupported rule components for {frequency}: {', '.join(sorted(components))}"
            )

        RuleCodec.validate_descriptor(descriptor)
        return descriptor

    @staticmethod
    def is_valid(rule_text: str) -> bool:
        try:
            RuleCodec.decode(rule_text)
        except MalformedRuleError:
            return False
        return True

    @staticmethod
    def build_weekly_rule(
        weekday: RecurrenceWeekday | str,
        until: datetime.date | str | None = None,
        count: int | None = None,
    ) -> str:
        """
        Build the rule text for "every ``weekday``", ending at ``until`` (a date or a
        ``YYYYMMDD`` string) or after ``count`` occurrences.
        """
        if isinstance(until, str):
            until = RuleCodec._parse_until(until)
        try:
            weekdays = frozenset({RecurrenceWeekday(weekday)})
        except ValueError as e:
            raise MalformedRuleError(f"Invalid weekday: {weekday}") from e
        return RuleCodec.encode(
            RuleDescriptor(
                frequency_class=RecurrenceFrequencyClass.WEEKLY,
                weekdays=weekdays,
                until=until,
                count=count,
            )
        )


class RecurrenceExpander:
    """Expands a ``RuleDescriptor`` into its occurrence dates."""

    @staticmethod
    def expand(
        descriptor: RuleDescriptor,
        start_date: datetime.date,
        max_occurrences: int | None = None,
    ) -> tuple[datetime.date, ...]:
        """
        Return the occurrence dates of ``descriptor`` on or after ``start_date``,
        in chronological order.

        The sequence is empty only when the end condition can never be met,
        e.g. ``until`` before ``start_date``.
        Raises ``TooManyOccurrencesError`` when more than ``max_occurrences`` dates
        would be produced.
        """
        RuleCodec.validate_descriptor(descriptor)
        occurrences = iter(RecurrenceExpander._build_rrule(descriptor, start_date))
        if max_occurrences is not None:
            # one past the limit is enough to detect it without walking to a far-off UNTIL
            occurrences = itertools.islice(occurrences, max_occurrences + 1)
        dates = tuple(occurrence.date() for occurrence in occurrences)
        if max_occurrences is not None and len(dates) > max_occurrences:
            raise TooManyOccurrencesError(max_occurrences)
        return dates

    @staticmethod
    def expand_text(
        rule_text: str, start_date: datetime.date, max_occurrences: int | None = None
    ) -> tuple[datetime.date, ...]:
        return RecurrenceExpander.expand(RuleCodec.decode(rule_text), start_date, max_occurrences)

    @staticmethod
    def _build_rrule(descriptor: RuleDescriptor, start_date: datetime.date) -> rrule:
        dtstart = datetime.datetime.combine(start_date, datetime.time.min)
        frequency_class = RecurrenceFrequencyClass(descriptor.frequency_class)

        if frequency_class is RecurrenceFrequencyClass.WEEKLY:
            return RecurrenceExpander._weekly_rrule(descriptor, dtstart, interval=1)
        elif frequency_class is RecurrenceFrequencyClass.BI_WEEKLY:
            return RecurrenceExpander._weekly_rrule(
                descriptor, dtstart, interval=BI_WEEKLY_INTERVAL
            )
        elif frequency_class is RecurrenceFrequencyClass.MONTHLY_BY_DATE:
            return RecurrenceExpander._monthly_by_date_rrule(descriptor, dtstart)
        elif frequency_class is RecurrenceFrequencyClass.MONTHLY_BY_WEEK_POSITION:
            return RecurrenceExpander._monthly_by_week_position_rrule(descriptor, dtstart)
        else:
            assert_never(frequency_class)

    @staticmethod
    def _end_condition(descriptor: RuleDescriptor) -> dict:
        if descriptor.until is not None:
            # occurrences sit at midnight, so an UNTIL at midnight is inclusive
            return {"until": datetime.datetime.combine(descriptor.until, datetime.time.min)}
        return {"count": descriptor.count}

    @staticmethod
    def _weekly_rrule(
        descriptor: RuleDescriptor, dtstart: datetime.datetime, interval: int
    ) -> rrule:
        # Weeks start on Monday and the week holding dtstart is the first eligible one.
        return rrule(
            WEEKLY,
            dtstart=dtstart,
            interval=interval,
            wkst=MO,
            byweekday=[_DATEUTIL_WEEKDAYS[day] for day in _sorted_weekdays(descriptor.weekdays)],
            **RecurrenceExpander._end_condition(descriptor),
        )

    @staticmethod
    def _monthly_by_date_rrule(descriptor: RuleDescriptor, dtstart: datetime.datetime) -> rrule:
        # Months lacking the requested day are skipped, never clamped (RFC 5545).
        return rrule(
            MONTHLY,
            dtstart=dtstart,
            bymonthday=descriptor.month_day,
            **RecurrenceExpander._end_condition(descriptor),
        )

    @staticmethod
    def _monthly_by_week_position_rrule(
        descriptor: RuleDescriptor, dtstart: datetime.datetime
    ) -> rrule:
        position_weekday = _DATEUTIL_WEEKDAYS[RecurrenceWeekday(descriptor.position_weekday)]
        return rrule(
            MONTHLY,
            dtstart=dtstart,
            byweekday=position_weekday(descriptor.week_position),
            **RecurrenceExpander._end_condition(descriptor),
        )
