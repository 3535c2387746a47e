from common.utils.serializer_utils import VirtualModelSerializer

from .models import Room
from .virtual_models import RoomVirtualModel


class RoomSerializer(VirtualModelSerializer):
    class Meta:  # type: ignore
        model = Room
        virtual_model = RoomVirtualModel
        fields = (
            "id",
            "name",
            "capacity",
        )
        read_only_fields = fields
