from typing import Protocol

from rooms.models import Room


class RoomLookup(Protocol):
    def room_exists(self, room_id: int) -> bool:
        """
        Return whether ``room_id`` refers to a room that can be booked.
        """
        ...


class DjangoRoomLookup(RoomLookup):
    def room_exists(self, room_id: int) -> bool:
        try:
            room_pk = int(room_id)
        except (TypeError, ValueError):
            return False
        return Room.objects.filter_active().filter(pk=room_pk).exists()
