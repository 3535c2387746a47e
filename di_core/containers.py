from dependency_injector import containers, providers

from reservations.services.conflict_checker_service import ConflictCheckerService
from reservations.services.recurring_series_service import RecurringSeriesService
from reservations.services.storage_adapters.django_reservation_storage import (
    DjangoReservationStorage,
)
from rooms.services import DjangoRoomLookup


class AppContainer(containers.DeclarativeContainer):
    config = providers.Configuration()

    reservation_storage = providers.Factory(
        DjangoReservationStorage,
    )

    room_lookup = providers.Factory(
        DjangoRoomLookup,
    )

    conflict_checker_service = providers.Factory(
        ConflictCheckerService,
        reservation_storage=reservation_storage,
    )

    recurring_series_service = providers.Factory(
        RecurringSeriesService,
        reservation_storage=reservation_storage,
        room_lookup=room_lookup,
        conflict_checker_service=conflict_checker_service,
        max_occurrences=config.RECURRING_SERIES_MAX_OCCURRENCES,
    )


container: AppContainer | None = None  # set during app startup
