from django.db import models

from common.models import BaseModel
from rooms.managers import RoomManager


class Room(BaseModel):
    """
    A bookable meeting room.
    """

    name = models.CharField(max_length=255, unique=True)
    description = models.TextField(blank=True)
    capacity = models.PositiveIntegerField(null=True, blank=True)
    is_active = models.BooleanField(
        default=True, help_text="Inactive rooms are treated as non-existent when booking"
    )

    objects: RoomManager = RoomManager()

    def __str__(self):
        return self.name
