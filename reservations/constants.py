from django.db.models import TextChoices


class ReservationStatus(TextChoices):
    ACTIVE = "active", "Active"
    CANCELLED = "cancelled", "Cancelled"


class RecurrenceFrequencyClass(TextChoices):
    WEEKLY = "WEEKLY", "Weekly"
    BI_WEEKLY = "BI_WEEKLY", "Every other week"
    MONTHLY_BY_DATE = "MONTHLY_BY_DATE", "Monthly on a fixed day"
    MONTHLY_BY_WEEK_POSITION = "MONTHLY_BY_WEEK_POSITION", "Monthly on the nth weekday"


class RecurrenceWeekday(TextChoices):
    MONDAY = "MO", "Monday"
    TUESDAY = "TU", "Tuesday"
    WEDNESDAY = "WE", "Wednesday"
    THURSDAY = "TH", "Thursday"
    FRIDAY = "FR", "Friday"
    SATURDAY = "SA", "Saturday"
    SUNDAY = "SU", "Sunday"


WEEKDAY_ORDER: tuple[RecurrenceWeekday, ...] = (
    RecurrenceWeekday.MONDAY,
    RecurrenceWeekday.TUESDAY,
    RecurrenceWeekday.WEDNESDAY,
    RecurrenceWeekday.THURSDAY,
    RecurrenceWeekday.FRIDAY,
    RecurrenceWeekday.SATURDAY,
    RecurrenceWeekday.SUNDAY,
)

LAST_DAY_OF_MONTH = -1
LAST_WEEK_POSITION = -1
WEEK_POSITIONS = (1, 2, 3, 4, LAST_WEEK_POSITION)

RULE_DATE_FORMAT = "%Y%m%d"
TIME_OF_DAY_FORMAT = "%H:%M"

SERIES_NAME_MAX_LENGTH = 40
DEFAULT_MAX_OCCURRENCES = 520
