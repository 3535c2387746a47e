from rest_framework import serializers

from common.utils.serializer_utils import IsoDateListField, VirtualModelSerializer
from reservations.constants import TIME_OF_DAY_FORMAT
from reservations.models import RecurringSeries, Reservation
from reservations.services.dataclasses import RecurringSeriesInputData
from reservations.virtual_models import RecurringSeriesVirtualModel, ReservationVirtualModel
from rooms.serializers import RoomSerializer
from users.serializers import UserSerializer


class RecurringSeriesCreateSerializer(serializers.Serializer):
    """
    Input of a recurring booking request.

    Fields are deliberately permissive: presence, format and consistency checks are made by
    ``RecurringSeriesService.create_series`` so they are reported in a single, fixed order.
    """

    room_id = serializers.IntegerField(required=False, allow_null=True)
    name = serializers.CharField(
        required=False, allow_null=True, allow_blank=True, trim_whitespace=False
    )
    start_time = serializers.CharField(
        required=False, allow_null=True, allow_blank=True, help_text="HH:MM, 24-hour"
    )
    end_time = serializers.CharField(
        required=False, allow_null=True, allow_blank=True, help_text="HH:MM, 24-hour"
    )
    rule = serializers.CharField(
        required=False,
        allow_null=True,
        allow_blank=True,
        help_text="Recurrence rule, e.g. FREQ=WEEKLY;INTERVAL=2;BYDAY=WE;COUNT=10",
    )
    show = serializers.BooleanField(default=True)
    ext = serializers.CharField(required=False, allow_null=True, allow_blank=True, default=None)

    def to_input_data(self) -> RecurringSeriesInputData:
        return RecurringSeriesInputData(
            room_id=self.validated_data.get("room_id"),
            name=self.validated_data.get("name"),
            start_time=self.validated_data.get("start_time"),
            end_time=self.validated_data.get("end_time"),
            rule=self.validated_data.get("rule"),
            show=self.validated_data["show"],
            ext=self.validated_data.get("ext"),
        )


class RecurringSeriesCreationResultSerializer(serializers.Serializer):
    series_id = serializers.IntegerField(read_only=True)
    created_count = serializers.IntegerField(read_only=True)
    occurrences = IsoDateListField(source="occurrence_dates", read_only=True)


class RecurringReservationErrorSerializer(serializers.Serializer):
    error_kind = serializers.CharField(read_only=True)
    error = serializers.CharField(read_only=True)


class ConflictErrorSerializer(RecurringReservationErrorSerializer):
    conflicts = IsoDateListField(read_only=True)


class CancellationResultSerializer(serializers.Serializer):
    cancelled_count = serializers.IntegerField(read_only=True)


class RecurringSeriesSerializer(VirtualModelSerializer):
    requester = UserSerializer(read_only=True)
    room = RoomSerializer(read_only=True)
    start_time = serializers.TimeField(format=TIME_OF_DAY_FORMAT, read_only=True)
    end_time = serializers.TimeField(format=TIME_OF_DAY_FORMAT, read_only=True)

    class Meta:
        model = RecurringSeries
        virtual_model = RecurringSeriesVirtualModel
        fields = (
            "id",
            "requester",
            "room",
            "name",
            "rule",
            "start_time",
            "end_time",
            "show",
            "ext",
            "created",
            "modified",
        )
        read_only_fields = fields


class ReservationOccurrenceSerializer(serializers.ModelSerializer):
    class Meta:
        model = Reservation
        fields = (
            "id",
            "occurrence_date",
            "start_time",
            "end_time",
            "status",
        )
        read_only_fields = fields


class ReservationSerializer(VirtualModelSerializer):
    requester = UserSerializer(read_only=True)
    room = RoomSerializer(read_only=True)

    class Meta:
        model = Reservation
        virtual_model = ReservationVirtualModel
        fields = (
            "id",
            "requester",
            "room",
            "name",
            "start_time",
            "end_time",
            "status",
            "show",
            "ext",
            "series",
            "occurrence_date",
            "created",
            "modified",
        )
        read_only_fields = fields
