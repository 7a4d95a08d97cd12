from datetime import date, timedelta
from decimal import Decimal

import pytest
from django.contrib.auth import get_user_model

from parking.models import Spot


User = get_user_model()

VALID_FROM = date(2030, 1, 1)
VALID_UNTIL = date(2030, 12, 31)


def next_weekday(start: date, weekday: int) -> date:
    """First date on or after `start` whose weekday() equals `weekday` (Monday == 0)."""
    return start + timedelta(days=(weekday - start.weekday()) % 7)


@pytest.fixture
def owner(db):
    return User.objects.create_user(username="owner", email="owner@example.com", password="owner-pass-123")


@pytest.fixture
def renter(db):
    return User.objects.create_user(username="renter", email="renter@example.com", password="renter-pass-123")


@pytest.fixture
def stranger(db):
    return User.objects.create_user(username="stranger", password="stranger-pass-123")


@pytest.fixture
def make_spot(owner):
    def _make_spot(**overrides):
        fields = {
            "owner": owner,
            "address": "1 Test Street",
            "city": "Springfield",
            "price": Decimal("5.25"),
            "days": [],
            "every_day": True,
            "start_hour": 9,
            "end_hour": 17,
            "valid_from": VALID_FROM,
            "valid_until": VALID_UNTIL,
        }
        fields.update(overrides)
        return Spot.objects.create(**fields)

    return _make_spot


@pytest.fixture
def spot(make_spot):
    return make_spot()


@pytest.fixture
def monday():
    return next_weekday(VALID_FROM, 0)


@pytest.fixture
def tuesday():
    return next_weekday(VALID_FROM, 1)
