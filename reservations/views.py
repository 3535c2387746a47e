from typing import TYPE_CHECKING, Annotated

from dependency_injector.wiring import Provide, inject
from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.response import Response

from common.utils.view_utils import ReadOnlyRoomBookingModelViewSet
from reservations.exceptions import (
    ConflictError,
    EmptyScheduleError,
    OrphanedSeriesError,
    PersistenceError,
    RecurringReservationError,
    SeriesValidationError,
)
from reservations.filtersets import ReservationFilterSet
from reservations.models import RecurringSeries, Reservation
from reservations.permissions import ReadOnlyExceptRequesterOrStaff
from reservations.serializers import (
    CancellationResultSerializer,
    ConflictErrorSerializer,
    RecurringReservationErrorSerializer,
    RecurringSeriesCreateSerializer,
    RecurringSeriesCreationResultSerializer,
    RecurringSeriesSerializer,
    ReservationOccurrenceSerializer,
    ReservationSerializer,
)


if TYPE_CHECKING:
    from reservations.services.recurring_series_service import RecurringSeriesService


def _error_response(error: RecurringReservationError, status_code: int, **extra) -> Response:
    return Response(
        {"error_kind": error.error_kind, "error": str(error), **extra},
        status=status_code,
    )


class RecurringSeriesViewSet(ReadOnlyRoomBookingModelViewSet):
    """
    ViewSet for booking and managing recurring reservations.
    """

    permission_classes = (ReadOnlyExceptRequesterOrStaff,)
    queryset = RecurringSeries.objects.all().order_by("-created")
    serializer_class = RecurringSeriesSerializer

    @inject
    def __init__(
        self,
        *args,
        recurring_series_service: Annotated[
            "RecurringSeriesService", Provide["recurring_series_service"]
        ],
        **kwargs,
    ):
        super().__init__(*args, **kwargs)
        self.recurring_series_service = recurring_series_service

    @extend_schema(
        summary="Book a recurring reservation",
        description=(
            "Expands the recurrence rule from today and books every occurrence, "
            "or none of them if any occurrence conflicts with an existing reservation."
        ),
        request=RecurringSeriesCreateSerializer,
        responses={
            201: RecurringSeriesCreationResultSerializer,
            400: RecurringReservationErrorSerializer,
            409: ConflictErrorSerializer,
            422: RecurringReservationErrorSerializer,
            500: RecurringReservationErrorSerializer,
            503: RecurringReservationErrorSerializer,
        },
    )
    def create(self, request, *args, **kwargs):
        serializer = RecurringSeriesCreateSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(
                {
                    "error_kind": SeriesValidationError.error_kind,
                    "error": SeriesValidationError.default_message,
                    "fields": serializer.errors,
                },
                status=status.HTTP_400_BAD_REQUEST,
            )

        try:
            result = self.recurring_series_service.create_series(
                requester_id=request.user.pk,
                series_input=serializer.to_input_data(),
            )
        except SeriesValidationError as e:
            return _error_response(e, status.HTTP_400_BAD_REQUEST)
        except EmptyScheduleError as e:
            return _error_response(e, status.HTTP_422_UNPROCESSABLE_ENTITY)
        except ConflictError as e:
            return _error_response(
                e,
                status.HTTP_409_CONFLICT,
                conflicts=[conflicting_date.isoformat() for conflicting_date in e.conflicting_dates],
            )
        except PersistenceError as e:
            return _error_response(e, status.HTTP_503_SERVICE_UNAVAILABLE)
        except OrphanedSeriesError as e:
            return _error_response(e, status.HTTP_500_INTERNAL_SERVER_ERROR)

        return Response(
            RecurringSeriesCreationResultSerializer(instance=result).data,
            status=status.HTTP_201_CREATED,
        )

    @extend_schema(
        summary="List active occurrences of a recurring series",
        responses={200: ReservationOccurrenceSerializer(many=True)},
    )
    @action(
        methods=["GET"],
        detail=True,
        url_path="occurrences",
        url_name="occurrences",
    )
    def occurrences(self, request, *args, **kwargs):
        series = self.get_object()
        reservations = self.recurring_series_service.get_series_occurrences(series.pk)
        return Response(ReservationOccurrenceSerializer(reservations, many=True).data)

    @extend_schema(
        summary="Cancel every active occurrence of a recurring series",
        request=None,
        responses={200: CancellationResultSerializer},
    )
    @action(
        methods=["POST"],
        detail=True,
        url_path="cancel",
        url_name="cancel",
    )
    def cancel(self, request, *args, **kwargs):
        series = self.get_object()
        cancelled_count = self.recurring_series_service.cancel_series(series.pk)
        return Response(
            CancellationResultSerializer(instance={"cancelled_count": cancelled_count}).data,
            status=status.HTTP_200_OK,
        )


class ReservationViewSet(ReadOnlyRoomBookingModelViewSet):
    """
    ViewSet for the requester's reservations.
    """

    permission_classes = (ReadOnlyExceptRequesterOrStaff,)
    queryset = Reservation.objects.all().order_by("start_time")
    serializer_class = ReservationSerializer
    filterset_class = ReservationFilterSet

    @inject
    def __init__(
        self,
        *args,
        recurring_series_service: Annotated[
            "RecurringSeriesService", Provide["recurring_series_service"]
        ],
        **kwargs,
    ):
        super().__init__(*args, **kwargs)
        self.recurring_series_service = recurring_series_service

    @extend_schema(
        summary="Cancel a single reservation",
        request=None,
        responses={200: ReservationSerializer, 400: RecurringReservationErrorSerializer},
    )
    @action(
        methods=["POST"],
        detail=True,
        url_path="cancel",
        url_name="cancel",
    )
    def cancel(self, request, *args, **kwargs):
        reservation = self.get_object()
        if not reservation.is_active or not self.recurring_series_service.cancel_reservation(
            reservation.pk
        ):
            return Response(
                {
                    "error_kind": SeriesValidationError.error_kind,
                    "error": "Reservation is already cancelled",
                },
                status=status.HTTP_400_BAD_REQUEST,
            )

        return Response(
            self.get_serializer(instance=self.get_queryset().get(pk=reservation.pk)).data,
            status=status.HTTP_200_OK,
        )
