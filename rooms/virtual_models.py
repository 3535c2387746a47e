import django_virtual_models as v

from rooms.models import Room


class RoomVirtualModel(v.VirtualModel):
    class Meta(v.VirtualModel.Meta):
        model = Room
