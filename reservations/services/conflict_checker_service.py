import datetime
import logging
from collections.abc import Iterable
from typing import Annotated

from dependency_injector.wiring import Provide, inject

from reservations.exceptions import ReservationServiceNotInjectedError
from reservations.services.dataclasses import CandidateInterval
from reservations.services.protocols.reservation_storage import ReservationStorage


logger = logging.getLogger(__name__)


class ConflictCheckerService:
    """
    Finds which candidate intervals of a batch collide with active reservations of a room.
    """

    @inject
    def __init__(
        self,
        reservation_storage: Annotated[
            "ReservationStorage | None", Provide["reservation_storage"]
        ] = None,
    ) -> None:
        self.reservation_storage = reservation_storage

    def check(
        self, room_id: int, candidates: Iterable[CandidateInterval]
    ) -> list[datetime.date]:
        """
        Return the occurrence dates of every candidate overlapping an active reservation
        of ``room_id``, in the order the candidates were given.

        Storage is queried once for the whole ``[min(start), max(end))`` window of the
        batch and each candidate is then compared in memory. Intervals are half-open,
        so a candidate ending exactly when a reservation starts does not conflict.
        """
        if not self.reservation_storage:
            raise ReservationServiceNotInjectedError(
                "ReservationStorage is not injected in ConflictCheckerService"
            )

        candidates = list(candidates)
        if not candidates:
            return []

        window_start = min(candidate.start_time for candidate in candidates)
        window_end = max(candidate.end_time for candidate in candidates)
        existing_reservations = self.reservation_storage.find_existing_active_reservations(
            room_id=room_id,
            window_start=window_start,
            window_end=window_end,
        )

        conflicting_dates = []
        blocking_reservation_ids = set()
        for candidate in candidates:
            overlapping_ids = [
                existing.id
                for existing in existing_reservations
                if candidate.start_time < existing.end_time
                and existing.start_time < candidate.end_time
            ]
            if overlapping_ids:
                conflicting_dates.append(candidate.occurrence_date)
                blocking_reservation_ids.update(overlapping_ids)

        if conflicting_dates:
            logger.info(
                "Found %d conflicting occurrences in room %s: %s (blocked by reservations %s)",
                len(conflicting_dates),
                room_id,
                ", ".join(date.isoformat() for date in conflicting_dates),
                ", ".join(str(pk) for pk in sorted(blocking_reservation_ids)),
            )
        return conflicting_dates
