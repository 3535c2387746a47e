from django.db.models import Manager

from rooms.querysets import RoomQuerySet


class RoomManager(Manager):
    def get_queryset(self) -> RoomQuerySet:
        return RoomQuerySet(self.model, using=self._db)

    def filter_active(self):
        return self.get_queryset().filter_active()
