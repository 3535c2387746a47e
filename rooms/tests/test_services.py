import pytest
from model_bakery import baker

from rooms.models import Room
from rooms.services import DjangoRoomLookup


@pytest.mark.django_db
def test_room_exists_for_active_room():
    room = baker.make(Room, name="Conference Room A", is_active=True)

    assert DjangoRoomLookup().room_exists(room.pk) is True


@pytest.mark.django_db
def test_room_exists_is_false_for_inactive_room():
    room = baker.make(Room, name="Closed Room", is_active=False)

    assert DjangoRoomLookup().room_exists(room.pk) is False


@pytest.mark.django_db
def test_room_exists_is_false_for_unknown_id():
    assert DjangoRoomLookup().room_exists(999999) is False


@pytest.mark.django_db
@pytest.mark.parametrize("room_id", [None, "not-a-number", ""])
def test_room_exists_is_false_for_non_numeric_ids(room_id):
    assert DjangoRoomLookup().room_exists(room_id) is False
