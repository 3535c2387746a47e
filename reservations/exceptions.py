import datetime
from collections.abc import Iterable

from django.core.exceptions import ImproperlyConfigured


# API Configuration Errors
class ReservationServiceNotInjectedError(ImproperlyConfigured):
    pass


# Service Layer Errors
class RecurringReservationError(Exception):
    """Base exception for recurring reservation errors"""

    default_message = ""
    error_kind = "recurring_reservation_error"

    def __init__(self, message: str | None = None):
        if message is None:
            message = self.default_message
        super().__init__(message)


class SeriesValidationError(RecurringReservationError):
    """Raised when a recurring booking request is missing or has malformed fields"""

    default_message = "Invalid recurring reservation request."
    error_kind = "validation_error"


class MissingRequiredFieldError(SeriesValidationError):
    def __init__(self, field_name: str):
        self.field_name = field_name
        super().__init__(f"Missing required field: {field_name}")


class RoomNotFoundError(SeriesValidationError):
    def __init__(self, room_id):
        self.room_id = room_id
        super().__init__(f"Room {room_id} does not exist")


class SeriesNameTooLongError(SeriesValidationError):
    def __init__(self, max_length: int):
        super().__init__(f"Name must have at most {max_length} characters")


class InvalidTimeOfDayError(SeriesValidationError):
    default_message = "Invalid time format, use HH:MM (24-hour)"


class InvalidTimeRangeError(SeriesValidationError):
    default_message = "Start time must be earlier than end time"


class TooManyOccurrencesError(SeriesValidationError):
    def __init__(self, max_occurrences: int):
        self.max_occurrences = max_occurrences
        super().__init__(f"The recurrence rule produces more than {max_occurrences} occurrences")


class MalformedRuleError(SeriesValidationError):
    """Raised when a rule text or descriptor is not a supported recurrence rule"""

    default_message = "Invalid recurrence rule."
    error_kind = "malformed_rule"


class EmptyScheduleError(RecurringReservationError):
    default_message = "The recurrence rule produced no occurrences."
    error_kind = "empty_schedule"


class ConflictError(RecurringReservationError):
    """Raised when one or more occurrences overlap existing active reservations"""

    default_message = "Some occurrences conflict with existing reservations."
    error_kind = "conflict"

    def __init__(self, conflicting_dates: Iterable[datetime.date], message: str | None = None):
        self.conflicting_dates = list(conflicting_dates)
        super().__init__(message)


class PersistenceError(RecurringReservationError):
    """Raised when storage fails; any partially created series was already removed"""

    default_message = "Failed to store the recurring reservation."
    error_kind = "persistence_error"


class OrphanedSeriesError(RecurringReservationError):
    """
    Raised when removing a series after a failed reservation insert also fails.
    The series row is left without reservations and needs out-of-band cleanup.
    """

    error_kind = "orphaned_series"

    def __init__(self, series_id: int):
        self.series_id = series_id
        super().__init__(
            f"Recurring series {series_id} could not be rolled back and has no reservations"
        )
