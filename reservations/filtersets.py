from django_filters import rest_framework as filters

from reservations.constants import ReservationStatus
from reservations.models import Reservation


class ReservationFilterSet(filters.FilterSet):
    """
    FilterSet for Reservation model.
    """

    room = filters.NumberFilter(
        field_name="room_id",
        label="Filter by room ID",
    )
    series = filters.NumberFilter(
        field_name="series_id",
        label="Filter by recurring series ID",
    )
    status = filters.ChoiceFilter(
        field_name="status",
        choices=ReservationStatus.choices,
        label="Filter by status",
    )
    start_time = filters.DateTimeFilter(
        field_name="start_time",
        lookup_expr="gte",
        label="Start time (greater than or equal to)",
    )
    end_time = filters.DateTimeFilter(
        field_name="end_time",
        lookup_expr="lte",
        label="End time (less than or equal to)",
    )

    class Meta:
        model = Reservation
        fields = (
            "room",
            "series",
            "status",
            "start_time",
            "end_time",
        )
