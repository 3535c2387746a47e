from django.db.models import QuerySet


class RoomQuerySet(QuerySet):
    def filter_active(self):
        """
        Returns rooms that can still receive reservations.
        """
        return self.filter(is_active=True)
