import django_virtual_models as v

from reservations.models import RecurringSeries, Reservation
from rooms.virtual_models import RoomVirtualModel
from users.virtual_models import UserVirtualModel


class RecurringSeriesVirtualModel(v.VirtualModel):
    requester = UserVirtualModel()
    room = RoomVirtualModel()

    class Meta:
        model = RecurringSeries


class ReservationSeriesVirtualModel(v.VirtualModel):
    class Meta:
        model = RecurringSeries


class ReservationVirtualModel(v.VirtualModel):
    requester = UserVirtualModel()
    room = RoomVirtualModel()
    series = ReservationSeriesVirtualModel()

    class Meta:
        model = Reservation
