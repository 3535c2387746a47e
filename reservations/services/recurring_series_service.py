import datetime
import logging
import re
from collections.abc import Iterable
from typing import TYPE_CHECKING, Annotated

from django.utils import timezone

from dependency_injector.wiring import Provide, inject

from reservations.constants import (
    DEFAULT_MAX_OCCURRENCES,
    SERIES_NAME_MAX_LENGTH,
    TIME_OF_DAY_FORMAT,
)
from reservations.exceptions import (
    ConflictError,
    EmptyScheduleError,
    InvalidTimeOfDayError,
    InvalidTimeRangeError,
    MissingRequiredFieldError,
    OrphanedSeriesError,
    PersistenceError,
    ReservationServiceNotInjectedError,
    RoomNotFoundError,
    SeriesNameTooLongError,
)
from reservations.recurrence_utils import RecurrenceExpander, RuleCodec
from reservations.services.dataclasses import (
    CandidateInterval,
    RecurringSeriesCreationResult,
    RecurringSeriesData,
    RecurringSeriesInputData,
    ReservationInputData,
    RuleDescriptor,
)


if TYPE_CHECKING:
    from reservations.models import Reservation
    from reservations.services.conflict_checker_service import ConflictCheckerService
    from reservations.services.protocols.reservation_storage import ReservationStorage
    from rooms.services import RoomLookup


logger = logging.getLogger(__name__)

_TIME_OF_DAY_RE = re.compile(r"^([01][0-9]|2[0-3]):[0-5][0-9]$")
_REQUIRED_FIELDS = ("room_id", "name", "start_time", "end_time", "rule")


class RecurringSeriesService:
    """
    Turns a recurring booking request into a series plus one reservation per occurrence.

    A series is created all-or-nothing: it is validated, expanded and checked for
    conflicts before anything is written, and a series whose reservations cannot be
    stored is removed again.
    """

    @inject
    def __init__(
        self,
        reservation_storage: Annotated[
            "ReservationStorage | None", Provide["reservation_storage"]
        ] = None,
        room_lookup: Annotated["RoomLookup | None", Provide["room_lookup"]] = None,
        conflict_checker_service: Annotated[
            "ConflictCheckerService | None", Provide["conflict_checker_service"]
        ] = None,
        max_occurrences: int | None = None,
    ) -> None:
        self.reservation_storage = reservation_storage
        self.room_lookup = room_lookup
        self.conflict_checker_service = conflict_checker_service
        self.max_occurrences = max_occurrences or DEFAULT_MAX_OCCURRENCES

    def _ensure_dependencies(self) -> None:
        if not self.reservation_storage:
            raise ReservationServiceNotInjectedError(
                "ReservationStorage is not injected in RecurringSeriesService"
            )
        if not self.room_lookup:
            raise ReservationServiceNotInjectedError(
                "RoomLookup is not injected in RecurringSeriesService"
            )
        if not self.conflict_checker_service:
            raise ReservationServiceNotInjectedError(
                "ConflictCheckerService is not injected in RecurringSeriesService"
            )

    @staticmethod
    def _parse_time_of_day(value: str) -> datetime.time:
        if not _TIME_OF_DAY_RE.match(value):
            raise InvalidTimeOfDayError()
        return datetime.datetime.strptime(value, TIME_OF_DAY_FORMAT).time()

    def _validate(
        self, requester_id: int, series_input: RecurringSeriesInputData
    ) -> tuple[RecurringSeriesData, RuleDescriptor]:
        for field_name in _REQUIRED_FIELDS:
            value = getattr(series_input, field_name)
            if value is None or (isinstance(value, str) and not value.strip()):
                raise MissingRequiredFieldError(field_name)

        descriptor = RuleCodec.decode(series_input.rule)

        try:
            room_exists = self.room_lookup.room_exists(series_input.room_id)
        except Exception as e:
            logger.exception("Looking up room %s failed", series_input.room_id)
            raise PersistenceError("Failed to look up the room.") from e
        if not room_exists:
            raise RoomNotFoundError(series_input.room_id)

        if len(series_input.name) > SERIES_NAME_MAX_LENGTH:
            raise SeriesNameTooLongError(SERIES_NAME_MAX_LENGTH)

        start_time = self._parse_time_of_day(series_input.start_time)
        end_time = self._parse_time_of_day(series_input.end_time)
        if start_time >= end_time:
            raise InvalidTimeRangeError()

        series_data = RecurringSeriesData(
            requester_id=requester_id,
            room_id=int(series_input.room_id),
            name=series_input.name,
            rule=RuleCodec.encode(descriptor),
            start_time=start_time,
            end_time=end_time,
            show=series_input.show,
            ext=series_input.ext,
        )
        return series_data, descriptor

    @staticmethod
    def _build_candidates(
        series_data: RecurringSeriesData, occurrence_dates: Iterable[datetime.date]
    ) -> list[CandidateInterval]:
        current_timezone = timezone.get_current_timezone()
        return [
            CandidateInterval(
                occurrence_date=occurrence_date,
                start_time=timezone.make_aware(
                    datetime.datetime.combine(occurrence_date, series_data.start_time),
                    current_timezone,
                ),
                end_time=timezone.make_aware(
                    datetime.datetime.combine(occurrence_date, series_data.end_time),
                    current_timezone,
                ),
            )
            for occurrence_date in occurrence_dates
        ]

    def create_series(
        self,
        requester_id: int,
        series_input: RecurringSeriesInputData,
        anchor_date: datetime.date | None = None,
    ) -> RecurringSeriesCreationResult:
        """
        Validate, expand, conflict-check and store a recurring series.

        :param requester_id: User booking the series.
        :param series_input: The request as received, times as ``HH:MM`` strings.
        :param anchor_date: Date the expansion starts from. Defaults to today.
        :return: The new series id, how many reservations were stored and their dates.
        :raises SeriesValidationError: the request is incomplete or invalid, or the rule
            produces more than ``max_occurrences`` dates.
        :raises EmptyScheduleError: the rule yields no occurrence from ``anchor_date``.
        :raises ConflictError: some occurrences overlap active reservations.
        :raises PersistenceError: storage failed and nothing was kept.
        :raises OrphanedSeriesError: storage failed and the series could not be removed.
        """
        self._ensure_dependencies()

        logger.debug("Validating recurring series request for room %s", series_input.room_id)
        series_data, descriptor = self._validate(requester_id, series_input)

        if anchor_date is None:
            anchor_date = timezone.localdate()
        logger.debug("Expanding rule %s from %s", series_data.rule, anchor_date)
        occurrence_dates = RecurrenceExpander.expand(
            descriptor, anchor_date, max_occurrences=self.max_occurrences
        )
        if not occurrence_dates:
            raise EmptyScheduleError()

        candidates = self._build_candidates(series_data, occurrence_dates)
        logger.debug(
            "Checking %d occurrences for conflicts in room %s", len(candidates), series_data.room_id
        )
        try:
            conflicting_dates = self.conflict_checker_service.check(series_data.room_id, candidates)
        except PersistenceError:
            raise
        except Exception as e:
            logger.exception("Conflict check failed for room %s", series_data.room_id)
            raise PersistenceError() from e
        if conflicting_dates:
            raise ConflictError(conflicting_dates)

        # The conflict check and the inserts are not serialized per room, so two concurrent
        # requests for the same room can both pass the check and both be stored.
        return self._persist(series_data, candidates)

    def _persist(
        self, series_data: RecurringSeriesData, candidates: list[CandidateInterval]
    ) -> RecurringSeriesCreationResult:
        logger.debug("Persisting recurring series for room %s", series_data.room_id)
        try:
            series_id = self.reservation_storage.insert_series(series_data)
        except PersistenceError:
            raise
        except Exception as e:
            raise PersistenceError() from e

        reservations = [
            ReservationInputData(
                requester_id=series_data.requester_id,
                room_id=series_data.room_id,
                name=series_data.name,
                start_time=candidate.start_time,
                end_time=candidate.end_time,
                occurrence_date=candidate.occurrence_date,
                show=series_data.show,
                ext=series_data.ext,
            )
            for candidate in candidates
        ]

        try:
            created_count = self.reservation_storage.insert_reservation_batch(
                series_id, reservations
            )
        except Exception as e:
            logger.warning(
                "Storing reservations of recurring series %s failed, rolling back", series_id
            )
            self._rollback_series(series_id)
            raise PersistenceError() from e

        logger.info(
            "Recurring series %s committed with %d reservations in room %s",
            series_id,
            created_count,
            series_data.room_id,
        )
        return RecurringSeriesCreationResult(
            series_id=series_id,
            created_count=created_count,
            occurrence_dates=[candidate.occurrence_date for candidate in candidates],
        )

    def _rollback_series(self, series_id: int) -> None:
        try:
            self.reservation_storage.delete_series(series_id)
        except Exception as e:
            logger.critical(
                "Recurring series %s could not be rolled back and was left without reservations",
                series_id,
                exc_info=True,
            )
            raise OrphanedSeriesError(series_id) from e
        logger.warning("Recurring series %s rolled back", series_id)

    def get_series_occurrences(self, series_id: int) -> Iterable["Reservation"]:
        """
        Return the active reservations of a series ordered by occurrence date.
        """
        self._ensure_dependencies()
        return self.reservation_storage.get_series_reservations(series_id)

    def cancel_series(self, series_id: int) -> int:
        """
        Cancel every active reservation of a series and return how many were cancelled.
        The series itself is kept.
        """
        self._ensure_dependencies()
        cancelled_count = self.reservation_storage.cancel_series_reservations(series_id)
        logger.info(
            "Cancelled %d reservations of recurring series %s", cancelled_count, series_id
        )
        return cancelled_count

    def cancel_reservation(self, reservation_id: int) -> bool:
        self._ensure_dependencies()
        cancelled = self.reservation_storage.cancel_reservation(reservation_id)
        if cancelled:
            logger.info("Cancelled reservation %s", reservation_id)
        return cancelled
