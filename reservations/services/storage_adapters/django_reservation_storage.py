import datetime
import logging
from collections.abc import Iterable

from django.db import DatabaseError, transaction

from reservations.constants import ReservationStatus
from reservations.exceptions import PersistenceError
from reservations.models import RecurringSeries, Reservation
from reservations.services.dataclasses import (
    ExistingReservationData,
    RecurringSeriesData,
    ReservationInputData,
)
from reservations.services.protocols.reservation_storage import ReservationStorage


logger = logging.getLogger(__name__)


class DjangoReservationStorage(ReservationStorage):
    """
    ``ReservationStorage`` backed by the Django ORM.

    The series row and the reservation rows are written in separate transactions,
    so callers are responsible for removing a series whose batch failed.
    """

    def insert_series(self, series_data: RecurringSeriesData) -> int:
        try:
            series = RecurringSeries.objects.create(
                requester_id=series_data.requester_id,
                room_id=series_data.room_id,
                name=series_data.name,
                rule=series_data.rule,
                start_time=series_data.start_time,
                end_time=series_data.end_time,
                show=series_data.show,
                ext=series_data.ext,
            )
        except DatabaseError as e:
            logger.exception("Failed to insert recurring series for room %s", series_data.room_id)
            raise PersistenceError() from e
        return series.pk

    def delete_series(self, series_id: int) -> None:
        try:
            # reservations go with it through the cascading foreign key
            RecurringSeries.objects.filter(pk=series_id).delete()
        except DatabaseError as e:
            logger.exception("Failed to delete recurring series %s", series_id)
            raise PersistenceError(f"Failed to delete recurring series {series_id}") from e

    def find_existing_active_reservations(
        self,
        room_id: int,
        window_start: datetime.datetime,
        window_end: datetime.datetime,
    ) -> list[ExistingReservationData]:
        try:
            return [
                ExistingReservationData(id=pk, start_time=start_time, end_time=end_time)
                for pk, start_time, end_time in Reservation.objects.filter_active()
                .filter_overlapping(room_id, window_start, window_end)
                .order_by("start_time")
                .values_list("pk", "start_time", "end_time")
            ]
        except DatabaseError as e:
            logger.exception("Failed to look up active reservations of room %s", room_id)
            raise PersistenceError() from e

    def insert_reservation_batch(
        self, series_id: int, reservations: Iterable[ReservationInputData]
    ) -> int:
        reservation_objects = [
            Reservation(
                series_id=series_id,
                requester_id=reservation.requester_id,
                room_id=reservation.room_id,
                name=reservation.name,
                start_time=reservation.start_time,
                end_time=reservation.end_time,
                occurrence_date=reservation.occurrence_date,
                show=reservation.show,
                ext=reservation.ext,
                status=ReservationStatus.ACTIVE,
            )
            for reservation in reservations
        ]
        try:
            with transaction.atomic():
                created = Reservation.objects.bulk_create(reservation_objects)
        except DatabaseError as e:
            logger.exception("Failed to insert reservations for recurring series %s", series_id)
            raise PersistenceError() from e
        return len(created)

    def get_series_reservations(self, series_id: int) -> Iterable[Reservation]:
        return (
            Reservation.objects.filter_by_series(series_id)
            .filter_active()
            .order_by("occurrence_date")
        )

    def cancel_series_reservations(self, series_id: int) -> int:
        try:
            return (
                Reservation.objects.filter_by_series(series_id)
                .filter_active()
                .update(status=ReservationStatus.CANCELLED)
            )
        except DatabaseError as e:
            logger.exception("Failed to cancel reservations of recurring series %s", series_id)
            raise PersistenceError() from e

    def cancel_reservation(self, reservation_id: int) -> bool:
        try:
            updated = (
                Reservation.objects.filter(pk=reservation_id)
                .filter_active()
                .update(status=ReservationStatus.CANCELLED)
            )
        except DatabaseError as e:
            logger.exception("Failed to cancel reservation %s", reservation_id)
            raise PersistenceError() from e
        return updated > 0
