import datetime

from django.db.models import Manager

from reservations.querysets import ReservationQuerySet


class ReservationManager(Manager):
    def get_queryset(self) -> ReservationQuerySet:
        return ReservationQuerySet(self.model, using=self._db)

    def filter_active(self):
        return self.get_queryset().filter_active()

    def filter_by_series(self, series_id: int):
        return self.get_queryset().filter_by_series(series_id)

    def filter_overlapping(
        self, room_id: int, start_time: datetime.datetime, end_time: datetime.datetime
    ):
        return self.get_queryset().filter_overlapping(room_id, start_time, end_time)
