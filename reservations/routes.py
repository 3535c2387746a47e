from common.types import RouteDict

from .views import RecurringSeriesViewSet, ReservationViewSet


routes: list[RouteDict] = [
    {
        "regex": r"recurring-series",
        "viewset": RecurringSeriesViewSet,
        "basename": "RecurringSeries",
    },
    {
        "regex": r"reservations",
        "viewset": ReservationViewSet,
        "basename": "Reservations",
    },
]
