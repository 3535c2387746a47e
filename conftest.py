import pytest
from model_bakery import baker
from rest_framework.test import APIClient


@pytest.fixture
def user_password():
    from users.factories import DEFAULT_TEST_USER_PASSWORD

    return DEFAULT_TEST_USER_PASSWORD


@pytest.fixture
def user(user_password):
    from users.factories import UserFactory

    return UserFactory().create_user()


@pytest.fixture
def staff_user(user_password):
    from users.factories import UserFactory

    return UserFactory().create_user(is_staff=True)


@pytest.fixture
def auth_client(user, user_password):
    client = APIClient()
    client.login(username=user.email, password=user_password)
    return client


@pytest.fixture
def staff_client(staff_user, user_password):
    client = APIClient()
    client.login(username=staff_user.email, password=user_password)
    return client


@pytest.fixture
def anonymous_client():
    client = APIClient()
    return client


@pytest.fixture
def room():
    return baker.make("rooms.Room", name="Aurora", capacity=8, is_active=True)


@pytest.fixture
def di_container():
    """Fixture to get the DI container."""
    from di_core.containers import container

    return container
