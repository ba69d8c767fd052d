from datetime import datetime, timedelta, timezone

import pytest

from evapi import create_app
from evapi.auth import generate_jwt
from evapi.config import TestConfig
from evapi.extensions import db
from evapi.http import _rate_state
from evapi.models import ChargingStation, Role
from evapi.services.users import create_user


@pytest.fixture
def app():
    _rate_state.clear()
    app = create_app(TestConfig)
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def make_user(app):
    counter = {"n": 0}

    def _make(roles=None):
        counter["n"] += 1
        n = counter["n"]
        return create_user(f"user{n}", f"user{n}@example.com", "secret-password", roles=roles)

    return _make


@pytest.fixture
def user(make_user):
    return make_user()


@pytest.fixture
def admin(make_user):
    return make_user(roles=[Role.ADMIN, Role.USER])


def auth_header(user) -> dict:
    return {"Authorization": f"Bearer {generate_jwt(user)}"}


@pytest.fixture
def make_station(app):
    def _make(number_of_spaces=1, address_id=None):
        station = ChargingStation(address_id=address_id, number_of_spaces=number_of_spaces)
        db.session.add(station)
        db.session.commit()
        return station

    return _make


@pytest.fixture
def base_time():
    """A whole hour, two days ahead, as naive UTC."""
    now = datetime.now(timezone.utc).replace(tzinfo=None, minute=0, second=0, microsecond=0)
    return now + timedelta(days=2)


def iso_z(dt: datetime) -> str:
    return dt.replace(microsecond=0).isoformat() + "Z"
