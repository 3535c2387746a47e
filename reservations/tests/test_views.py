import datetime
import json
from unittest.mock import Mock, patch

from django.db import DatabaseError
from django.urls import reverse

import pytest
from model_bakery import baker
from rest_framework import status

from reservations.constants import ReservationStatus
from reservations.exceptions import OrphanedSeriesError
from reservations.models import RecurringSeries, Reservation
from users.factories import UserFactory


TODAY = datetime.date(2026, 2, 2)  # a Monday


def assert_response_status_code(response, expected_status_code):
    assert response.status_code == expected_status_code, (
        f"The status error {response.status_code} != {expected_status_code}\n"
        f"Response Payload: {json.dumps(response.json())}"
    )


@pytest.fixture
def today():
    with patch(
        "reservations.services.recurring_series_service.timezone.localdate", return_value=TODAY
    ):
        yield TODAY


@pytest.fixture
def series_payload(room):
    return {
        "room_id": room.pk,
        "name": "Team sync",
        "start_time": "14:00",
        "end_time": "16:00",
        "rule": "FREQ=WEEKLY;INTERVAL=2;BYDAY=WE;COUNT=3",
    }


def _make_reservation(requester, room, day, start_hour=9, end_hour=10, **kwargs):
    return baker.make(
        Reservation,
        requester=requester,
        room=room,
        start_time=datetime.datetime(2026, 2, day, start_hour, tzinfo=datetime.UTC),
        end_time=datetime.datetime(2026, 2, day, end_hour, tzinfo=datetime.UTC),
        **kwargs,
    )


@pytest.mark.django_db
class TestRecurringSeriesCreate:
    @property
    def url(self):
        return reverse("api:RecurringSeries-list")

    def test_requires_authentication(self, anonymous_client, series_payload):
        response = anonymous_client.post(self.url, series_payload, format="json")

        assert_response_status_code(response, status.HTTP_403_FORBIDDEN)
        assert RecurringSeries.objects.count() == 0

    def test_create_series(self, auth_client, user, series_payload, today):
        response = auth_client.post(self.url, series_payload, format="json")

        assert_response_status_code(response, status.HTTP_201_CREATED)
        data = response.json()
        series = RecurringSeries.objects.get()
        assert data == {
            "series_id": series.pk,
            "created_count": 3,
            "occurrences": ["2026-02-04", "2026-02-18", "2026-03-04"],
        }
        assert series.requester == user
        assert series.reservations.count() == 3

    def test_show_and_ext_are_stored(self, auth_client, series_payload, today):
        response = auth_client.post(
            self.url, {**series_payload, "show": False, "ext": "projector"}, format="json"
        )

        assert_response_status_code(response, status.HTTP_201_CREATED)
        series = RecurringSeries.objects.get()
        assert series.show is False
        assert series.ext == "projector"
        assert all(not reservation.show for reservation in series.reservations.all())

    def test_missing_field(self, auth_client, series_payload):
        del series_payload["name"]

        response = auth_client.post(self.url, series_payload, format="json")

        assert_response_status_code(response, status.HTTP_400_BAD_REQUEST)
        assert response.json() == {
            "error_kind": "validation_error",
            "error": "Missing required field: name",
        }

    def test_malformed_rule(self, auth_client, series_payload):
        response = auth_client.post(
            self.url, {**series_payload, "rule": "FREQ=YEARLY;COUNT=2"}, format="json"
        )

        assert_response_status_code(response, status.HTTP_400_BAD_REQUEST)
        assert response.json()["error_kind"] == "malformed_rule"

    def test_unknown_room(self, auth_client, series_payload):
        response = auth_client.post(
            self.url, {**series_payload, "room_id": series_payload["room_id"] + 1000}, format="json"
        )

        assert_response_status_code(response, status.HTTP_400_BAD_REQUEST)
        assert response.json()["error_kind"] == "validation_error"

    def test_invalid_field_type(self, auth_client, series_payload):
        response = auth_client.post(
            self.url, {**series_payload, "room_id": "lobby"}, format="json"
        )

        assert_response_status_code(response, status.HTTP_400_BAD_REQUEST)
        data = response.json()
        assert data["error_kind"] == "validation_error"
        assert "room_id" in data["fields"]

    def test_invalid_time_range(self, auth_client, series_payload):
        response = auth_client.post(
            self.url, {**series_payload, "start_time": "17:00"}, format="json"
        )

        assert_response_status_code(response, status.HTTP_400_BAD_REQUEST)
        assert response.json()["error"] == "Start time must be earlier than end time"

    def test_empty_schedule(self, auth_client, series_payload, today):
        response = auth_client.post(
            self.url, {**series_payload, "rule": "FREQ=WEEKLY;BYDAY=WE;UNTIL=20260101"}, format="json"
        )

        assert_response_status_code(response, status.HTTP_422_UNPROCESSABLE_ENTITY)
        assert response.json()["error_kind"] == "empty_schedule"
        assert RecurringSeries.objects.count() == 0

    def test_conflict(self, auth_client, series_payload, room, today):
        other_user = UserFactory().create_user()
        _make_reservation(other_user, room, 18, start_hour=15, end_hour=17)

        response = auth_client.post(self.url, series_payload, format="json")

        assert_response_status_code(response, status.HTTP_409_CONFLICT)
        data = response.json()
        assert data["error_kind"] == "conflict"
        assert data["conflicts"] == ["2026-02-18"]
        assert RecurringSeries.objects.count() == 0
        assert Reservation.objects.count() == 1

    def test_persistence_error(self, auth_client, series_payload, today):
        with patch.object(Reservation.objects, "bulk_create", side_effect=DatabaseError("boom")):
            response = auth_client.post(self.url, series_payload, format="json")

        assert_response_status_code(response, status.HTTP_503_SERVICE_UNAVAILABLE)
        assert response.json()["error_kind"] == "persistence_error"
        assert RecurringSeries.objects.count() == 0

    def test_storage_failure_during_conflict_check(self, auth_client, series_payload, today):
        with patch.object(
            Reservation.objects, "filter_active", side_effect=DatabaseError("db down")
        ):
            response = auth_client.post(self.url, series_payload, format="json")

        assert_response_status_code(response, status.HTTP_503_SERVICE_UNAVAILABLE)
        assert response.json()["error_kind"] == "persistence_error"
        assert RecurringSeries.objects.count() == 0

    def test_too_many_occurrences(self, auth_client, series_payload, today):
        response = auth_client.post(
            self.url, {**series_payload, "rule": "FREQ=WEEKLY;BYDAY=WE;COUNT=10000000"}, format="json"
        )

        assert_response_status_code(response, status.HTTP_400_BAD_REQUEST)
        assert response.json()["error_kind"] == "validation_error"
        assert RecurringSeries.objects.count() == 0
        assert Reservation.objects.count() == 0

    def test_orphaned_series(self, auth_client, series_payload, di_container):
        service_mock = Mock()
        service_mock.create_series.side_effect = OrphanedSeriesError(99)

        with di_container.recurring_series_service.override(service_mock):
            response = auth_client.post(self.url, series_payload, format="json")

        assert_response_status_code(response, status.HTTP_500_INTERNAL_SERVER_ERROR)
        assert response.json()["error_kind"] == "orphaned_series"
        service_mock.create_series.assert_called_once()


@pytest.mark.django_db
class TestRecurringSeriesRead:
    def test_list_only_returns_own_series(self, auth_client, user, room):
        own_series = baker.make(RecurringSeries, requester=user, room=room, name="Mine")
        baker.make(
            RecurringSeries, requester=UserFactory().create_user(), room=room, name="Not mine"
        )

        response = auth_client.get(reverse("api:RecurringSeries-list"))

        assert_response_status_code(response, status.HTTP_200_OK)
        results = response.json()["results"]
        assert [series["id"] for series in results] == [own_series.pk]
        assert results[0]["room"]["name"] == room.name
        assert results[0]["requester"]["email"] == user.email

    def test_staff_sees_every_series(self, staff_client, user, room):
        baker.make(RecurringSeries, requester=user, room=room, _quantity=2)

        response = staff_client.get(reverse("api:RecurringSeries-list"))

        assert_response_status_code(response, status.HTTP_200_OK)
        assert response.json()["count"] == 2

    def test_retrieve_other_users_series_is_not_found(self, auth_client, room):
        series = baker.make(RecurringSeries, requester=UserFactory().create_user(), room=room)

        response = auth_client.get(reverse("api:RecurringSeries-detail", args=[series.pk]))

        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_occurrences(self, auth_client, series_payload, today):
        created = auth_client.post(reverse("api:RecurringSeries-list"), series_payload, format="json")
        series_id = created.json()["series_id"]
        Reservation.objects.filter(
            series_id=series_id, occurrence_date=datetime.date(2026, 2, 18)
        ).update(status=ReservationStatus.CANCELLED)

        response = auth_client.get(reverse("api:RecurringSeries-occurrences", args=[series_id]))

        assert_response_status_code(response, status.HTTP_200_OK)
        assert [occurrence["occurrence_date"] for occurrence in response.json()] == [
            "2026-02-04",
            "2026-03-04",
        ]


@pytest.mark.django_db
class TestRecurringSeriesCancel:
    def test_owner_cancels_series(self, auth_client, series_payload, today):
        created = auth_client.post(reverse("api:RecurringSeries-list"), series_payload, format="json")
        series_id = created.json()["series_id"]

        response = auth_client.post(reverse("api:RecurringSeries-cancel", args=[series_id]))

        assert_response_status_code(response, status.HTTP_200_OK)
        assert response.json() == {"cancelled_count": 3}
        assert not Reservation.objects.filter_active().exists()
        assert RecurringSeries.objects.filter(pk=series_id).exists()

    def test_staff_cancels_series(self, staff_client, user, room):
        series = baker.make(RecurringSeries, requester=user, room=room)
        _make_reservation(user, room, 4, series=series, occurrence_date=datetime.date(2026, 2, 4))

        response = staff_client.post(reverse("api:RecurringSeries-cancel", args=[series.pk]))

        assert_response_status_code(response, status.HTTP_200_OK)
        assert response.json() == {"cancelled_count": 1}

    def test_other_user_cannot_cancel_series(self, auth_client, room):
        other_user = UserFactory().create_user()
        series = baker.make(RecurringSeries, requester=other_user, room=room)
        reservation = _make_reservation(
            other_user, room, 4, series=series, occurrence_date=datetime.date(2026, 2, 4)
        )

        response = auth_client.post(reverse("api:RecurringSeries-cancel", args=[series.pk]))

        assert response.status_code == status.HTTP_404_NOT_FOUND
        reservation.refresh_from_db()
        assert reservation.status == ReservationStatus.ACTIVE


@pytest.mark.django_db
class TestReservationViewSet:
    def test_list_filters_by_room(self, auth_client, user, room):
        other_room = baker.make("rooms.Room", name="Borealis")
        in_room = _make_reservation(user, room, 4)
        _make_reservation(user, other_room, 4)
        _make_reservation(UserFactory().create_user(), room, 5)

        response = auth_client.get(reverse("api:Reservations-list"), {"room": room.pk})

        assert_response_status_code(response, status.HTTP_200_OK)
        assert [reservation["id"] for reservation in response.json()["results"]] == [in_room.pk]

    def test_list_filters_by_time_range(self, auth_client, user, room):
        _make_reservation(user, room, 4)
        later = _make_reservation(user, room, 10)

        response = auth_client.get(
            reverse("api:Reservations-list"), {"start_time": "2026-02-05T00:00:00Z"}
        )

        assert_response_status_code(response, status.HTTP_200_OK)
        assert [reservation["id"] for reservation in response.json()["results"]] == [later.pk]

    def test_cancel_reservation(self, auth_client, user, room):
        reservation = _make_reservation(user, room, 4)
        url = reverse("api:Reservations-cancel", args=[reservation.pk])

        response = auth_client.post(url)

        assert_response_status_code(response, status.HTTP_200_OK)
        assert response.json()["status"] == ReservationStatus.CANCELLED

        response = auth_client.post(url)

        assert_response_status_code(response, status.HTTP_400_BAD_REQUEST)
        assert response.json()["error_kind"] == "validation_error"

    def test_other_user_cannot_cancel_reservation(self, auth_client, room):
        reservation = _make_reservation(UserFactory().create_user(), room, 4)

        response = auth_client.post(reverse("api:Reservations-cancel", args=[reservation.pk]))

        assert response.status_code == status.HTTP_404_NOT_FOUND
        reservation.refresh_from_db()
        assert reservation.status == ReservationStatus.ACTIVE
