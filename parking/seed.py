from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date as date_type
from datetime import timedelta
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.db import transaction
from django.utils import timezone

from .availability import Weekday
from .models import Spot, SpotType


DEMO_OWNER_USERNAME = "demo-owner"


@dataclass(frozen=True)
class SpotSeed:
    address: str
    city: str
    spot_type: str
    price: Decimal
    start_hour: int
    end_hour: int
    days: list[str] = field(default_factory=list)
    every_day: bool = False
    description: str = ""


DEFAULT_SPOTS: list[SpotSeed] = [
    SpotSeed(
        address="12 Harbour Street",
        city="Springfield",
        spot_type=SpotType.DRIVEWAY,
        price=Decimal("4.50"),
        start_hour=8,
        end_hour=18,
        days=[Weekday.MONDAY, Weekday.TUESDAY, Weekday.WEDNESDAY, Weekday.THURSDAY, Weekday.FRIDAY],
        description="Wide driveway, two minutes from the station.",
    ),
    SpotSeed(
        address="3 Stadium Road",
        city="Springfield",
        spot_type=SpotType.GARAGE,
        price=Decimal("7.00"),
        start_hour=9,
        end_hour=23,
        every_day=True,
        description="Covered garage close to the stadium.",
    ),
    SpotSeed(
        address="88 Market Lane",
        city="Shelbyville",
        spot_type=SpotType.STREET,
        price=Decimal("2.25"),
        start_hour=7,
        end_hour=20,
        days=[Weekday.SATURDAY, Weekday.SUNDAY],
        description="Residential permit spot, weekends only.",
    ),
]


def seed_demo_spots(*, update_existing: bool = False, valid_days: int = 90) -> dict[str, int]:
    """
    Idempotently seed demo spots owned by a demo owner account.

    - If update_existing is False: creates missing spots only (does not overwrite edits).
    - If update_existing is True: updates existing spots to match defaults.
    """
    created = 0
    updated = 0
    skipped = 0
    today: date_type = timezone.localdate()

    with transaction.atomic():
        owner, _ = get_user_model().objects.get_or_create(username=DEMO_OWNER_USERNAME)

        for spot in DEFAULT_SPOTS:
            defaults = {
                "city": spot.city,
                "spot_type": spot.spot_type,
                "price": spot.price,
                "start_hour": spot.start_hour,
                "end_hour": spot.end_hour,
                "days": [str(day) for day in spot.days],
                "every_day": spot.every_day,
                "description": spot.description,
                "valid_from": today,
                "valid_until": today + timedelta(days=valid_days),
                "is_active": True,
            }

            if update_existing:
                _, was_created = Spot.objects.update_or_create(owner=owner, address=spot.address, defaults=defaults)
                if was_created:
                    created += 1
                else:
                    updated += 1
            else:
                _, was_created = Spot.objects.get_or_create(owner=owner, address=spot.address, defaults=defaults)
                if was_created:
                    created += 1
                else:
                    skipped += 1

    return {"created": created, "updated": updated, "skipped": skipped}
