import datetime
from collections.abc import Iterable
from typing import TYPE_CHECKING, Protocol

from reservations.services.dataclasses import (
    ExistingReservationData,
    RecurringSeriesData,
    ReservationInputData,
)


if TYPE_CHECKING:
    from reservations.models import Reservation


class ReservationStorage(Protocol):
    def insert_series(self, series_data: RecurringSeriesData) -> int:
        """
        Store a recurring series and commit it.
        :param series_data: Validated series attributes.
        :return: The id of the new series.
        :raises PersistenceError: if the series could not be stored.
        """
        ...

    def delete_series(self, series_id: int) -> None:
        """
        Remove a series and anything attached to it.
        :raises PersistenceError: if the series could not be removed.
        """
        ...

    def find_existing_active_reservations(
        self,
        room_id: int,
        window_start: datetime.datetime,
        window_end: datetime.datetime,
    ) -> list[ExistingReservationData]:
        """
        Retrieve the active reservations of a room overlapping ``[window_start, window_end)``.
        """
        ...

    def insert_reservation_batch(
        self, series_id: int, reservations: Iterable[ReservationInputData]
    ) -> int:
        """
        Store every reservation of a series, or none of them.
        :return: Number of stored reservations.
        :raises PersistenceError: if the batch could not be stored.
        """
        ...

    def get_series_reservations(self, series_id: int) -> Iterable["Reservation"]:
        ...

    def cancel_series_reservations(self, series_id: int) -> int:
        ...

    def cancel_reservation(self, reservation_id: int) -> bool:
        ...
