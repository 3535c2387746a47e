import datetime
from unittest.mock import patch

from django.db import DatabaseError

import pytest
from model_bakery import baker

from reservations.constants import ReservationStatus
from reservations.exceptions import PersistenceError
from reservations.models import RecurringSeries, Reservation
from reservations.services.dataclasses import RecurringSeriesData, ReservationInputData
from reservations.services.storage_adapters.django_reservation_storage import (
    DjangoReservationStorage,
)


def _dt(day, hour):
    return datetime.datetime(2026, 4, day, hour, tzinfo=datetime.UTC)


@pytest.fixture
def storage():
    return DjangoReservationStorage()


@pytest.fixture
def series_data(user, room):
    return RecurringSeriesData(
        requester_id=user.pk,
        room_id=room.pk,
        name="Planning",
        rule="FREQ=WEEKLY;BYDAY=MO;COUNT=2",
        start_time=datetime.time(9, 0),
        end_time=datetime.time(10, 0),
        ext="board",
    )


def _reservation_inputs(series_data, days):
    return [
        ReservationInputData(
            requester_id=series_data.requester_id,
            room_id=series_data.room_id,
            name=series_data.name,
            start_time=_dt(day, 9),
            end_time=_dt(day, 10),
            occurrence_date=datetime.date(2026, 4, day),
        )
        for day in days
    ]


@pytest.mark.django_db
class TestDjangoReservationStorage:
    def test_insert_series(self, storage, series_data):
        series_id = storage.insert_series(series_data)

        series = RecurringSeries.objects.get(pk=series_id)
        assert series.name == "Planning"
        assert series.rule == "FREQ=WEEKLY;BYDAY=MO;COUNT=2"
        assert series.ext == "board"
        assert series.show is True

    def test_insert_series_wraps_database_errors(self, storage, series_data):
        with patch.object(
            RecurringSeries.objects, "create", side_effect=DatabaseError("connection lost")
        ):
            with pytest.raises(PersistenceError):
                storage.insert_series(series_data)

    def test_insert_reservation_batch(self, storage, series_data):
        series_id = storage.insert_series(series_data)

        created_count = storage.insert_reservation_batch(
            series_id, _reservation_inputs(series_data, [6, 13])
        )

        assert created_count == 2
        reservations = Reservation.objects.filter_by_series(series_id).order_by("occurrence_date")
        assert [reservation.occurrence_date for reservation in reservations] == [
            datetime.date(2026, 4, 6),
            datetime.date(2026, 4, 13),
        ]
        assert all(reservation.status == ReservationStatus.ACTIVE for reservation in reservations)

    def test_insert_reservation_batch_is_all_or_nothing(self, storage, series_data):
        series_id = storage.insert_series(series_data)

        # the same occurrence twice violates the per-series uniqueness
        with pytest.raises(PersistenceError):
            storage.insert_reservation_batch(
                series_id, _reservation_inputs(series_data, [6, 13, 13])
            )

        assert Reservation.objects.filter_by_series(series_id).count() == 0

    def test_delete_series_cascades_to_reservations(self, storage, series_data):
        series_id = storage.insert_series(series_data)
        storage.insert_reservation_batch(series_id, _reservation_inputs(series_data, [6]))

        storage.delete_series(series_id)

        assert not RecurringSeries.objects.filter(pk=series_id).exists()
        assert Reservation.objects.count() == 0

    def test_delete_series_wraps_database_errors(self, storage, series_data):
        series_id = storage.insert_series(series_data)

        with patch.object(
            RecurringSeries.objects, "filter", side_effect=DatabaseError("connection lost")
        ):
            with pytest.raises(PersistenceError):
                storage.delete_series(series_id)

    def test_find_existing_active_reservations(self, storage, user, room):
        overlapping = baker.make(
            Reservation, requester=user, room=room, start_time=_dt(6, 9), end_time=_dt(6, 11)
        )
        baker.make(
            Reservation, requester=user, room=room, start_time=_dt(6, 11), end_time=_dt(6, 12)
        )
        baker.make(
            Reservation,
            requester=user,
            room=room,
            start_time=_dt(6, 10),
            end_time=_dt(6, 11),
            status=ReservationStatus.CANCELLED,
        )

        existing = storage.find_existing_active_reservations(room.pk, _dt(6, 8), _dt(6, 11))

        assert [reservation.id for reservation in existing] == [overlapping.pk]
        assert existing[0].start_time == _dt(6, 9)
        assert existing[0].end_time == _dt(6, 11)

    def test_find_existing_active_reservations_failure(self, storage, room):
        with patch.object(
            Reservation.objects, "filter_active", side_effect=DatabaseError("db down")
        ):
            with pytest.raises(PersistenceError):
                storage.find_existing_active_reservations(room.pk, _dt(6, 8), _dt(6, 11))

    def test_cancel_reservation_only_cancels_active_ones(self, storage, user, room):
        reservation = baker.make(
            Reservation, requester=user, room=room, start_time=_dt(6, 9), end_time=_dt(6, 10)
        )

        assert storage.cancel_reservation(reservation.pk) is True
        assert storage.cancel_reservation(reservation.pk) is False

        reservation.refresh_from_db()
        assert reservation.status == ReservationStatus.CANCELLED

    def test_series_reservations(self, storage, series_data):
        series_id = storage.insert_series(series_data)
        storage.insert_reservation_batch(series_id, _reservation_inputs(series_data, [13, 6, 20]))
        first = Reservation.objects.get(series_id=series_id, occurrence_date=datetime.date(2026, 4, 6))
        storage.cancel_reservation(first.pk)

        assert [
            reservation.occurrence_date for reservation in storage.get_series_reservations(series_id)
        ] == [datetime.date(2026, 4, 13), datetime.date(2026, 4, 20)]
        assert storage.cancel_series_reservations(series_id) == 2
        assert list(storage.get_series_reservations(series_id)) == []
