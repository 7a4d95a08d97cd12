from django.urls import path

from .api import (
    available_slots_api,
    cancel_booking_api,
    check_availability_api,
    create_booking_api,
    daily_availability_api,
)


app_name = "parking"

urlpatterns = [
    path("api/spots/<int:spot_id>/slots/", available_slots_api, name="available_slots_api"),
    path("api/spots/<int:spot_id>/availability/", check_availability_api, name="check_availability_api"),
    path("api/spots/<int:spot_id>/daily/", daily_availability_api, name="daily_availability_api"),
    path("api/bookings/", create_booking_api, name="create_booking_api"),
    path(
        "api/bookings/<int:booking_id>/cancel/",
        cancel_booking_api,
        name="cancel_booking_api",
    ),
]
