from typing import TYPE_CHECKING

from rest_framework.permissions import SAFE_METHODS, IsAuthenticated


if TYPE_CHECKING:
    from reservations.models import RecurringSeries, Reservation


class ReadOnlyExceptRequesterOrStaff(IsAuthenticated):
    """
    Reservations and series can be read by whoever can see them,
    but only their requester or a staff user may change them.
    """

    def has_object_permission(self, request, view, obj: "RecurringSeries | Reservation"):
        return request.method in SAFE_METHODS or (
            request.user.is_staff or request.user.pk == obj.requester_id
        )
