import datetime

from django.db.models import QuerySet

from reservations.constants import ReservationStatus


class ReservationQuerySet(QuerySet):
    def filter_active(self):
        """
        Returns reservations that still occupy their room.
        """
        return self.filter(status=ReservationStatus.ACTIVE)

    def filter_by_series(self, series_id: int):
        return self.filter(series_id=series_id)

    def filter_overlapping(
        self, room_id: int, start_time: datetime.datetime, end_time: datetime.datetime
    ):
        """
        Returns reservations in ``room_id`` whose ``[start_time, end_time)`` interval
        overlaps the given one. Intervals that only touch do not overlap.
        """
        return self.filter(room_id=room_id, start_time__lt=end_time, end_time__gt=start_time)
