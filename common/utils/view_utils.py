import django_virtual_models as v
from rest_framework import generics, mixins
from rest_framework.viewsets import ViewSetMixin


class FilterOnlyOnListMixin:
    def filter_queryset(self, queryset):
        if self.action != "list":
            return queryset
        return super().filter_queryset(queryset)


class OwnedByRequesterQuerySetMixin:
    """
    Restricts the queryset to rows whose ``requester`` is the authenticated user.
    Staff users see every row.
    """

    requester_field = "requester"

    def get_queryset(self):
        queryset = super().get_queryset()
        user = self.request.user
        if not user.is_authenticated:
            return queryset.none()
        if user.is_staff:
            return queryset
        return queryset.filter(**{self.requester_field: user})


class ReadOnlyRoomBookingModelViewSet(
    ViewSetMixin,
    OwnedByRequesterQuerySetMixin,
    FilterOnlyOnListMixin,
    v.GenericVirtualModelViewMixin,
    mixins.RetrieveModelMixin,
    mixins.ListModelMixin,
    generics.GenericAPIView,
):
    """
    A viewset that provides read-only access to room booking models owned by the requester.
    Write operations are exposed as explicit actions on the concrete viewsets.
    """

    pass
