import json

import pytest
from django.urls import reverse

from parking.models import Booking, BookingStatus
from parking.services import BookingInput, create_booking


pytestmark = pytest.mark.django_db


def post_json(client, url, payload):
    return client.post(url, data=json.dumps(payload), content_type="application/json")


@pytest.fixture
def renter_client(client, renter):
    client.force_login(renter)
    return client


@pytest.fixture
def existing_booking(spot, renter, monday):
    return create_booking(
        renter=renter,
        data=BookingInput(spot_id=spot.id, date=monday, start_hour=10, duration=2),
    )


class TestAvailableSlotsApi:
    def test_lists_free_hours(self, client, spot, monday, existing_booking):
        url = reverse("parking:available_slots_api", args=[spot.id])

        response = client.get(url, {"date": monday.isoformat()})

        assert response.status_code == 200
        body = response.json()
        assert body["date"] == monday.isoformat()
        assert body["slots"] == ["09:00", "12:00", "13:00", "14:00", "15:00", "16:00"]

    def test_missing_date(self, client, spot):
        response = client.get(reverse("parking:available_slots_api", args=[spot.id]))

        assert response.status_code == 400

    def test_invalid_date(self, client, spot):
        response = client.get(reverse("parking:available_slots_api", args=[spot.id]), {"date": "01/02/2030"})

        assert response.status_code == 400
        assert "YYYY-MM-DD" in response.json()["error"]

    def test_unknown_spot(self, client, monday):
        response = client.get(reverse("parking:available_slots_api", args=[4040]), {"date": monday.isoformat()})

        assert response.status_code == 404
        assert response.json() == {"error": "Spot not found", "code": "not_found"}


class TestCheckAvailabilityApi:
    def test_available(self, client, spot, monday):
        response = client.get(
            reverse("parking:check_availability_api", args=[spot.id]),
            {"date": monday.isoformat(), "start_time": "12:00", "duration": "2"},
        )

        assert response.status_code == 200
        assert response.json() == {"available": True, "reason": None, "error": None}

    def test_reports_reason(self, client, spot, monday, existing_booking):
        response = client.get(
            reverse("parking:check_availability_api", args=[spot.id]),
            {"date": monday.isoformat(), "start_time": "11:00", "duration": "2"},
        )

        assert response.json() == {"available": False, "reason": "Time slot already booked", "error": "unavailable"}

    @pytest.mark.parametrize(
        "params",
        [
            {"start_time": "11:30"},
            {"start_time": "11:00", "duration": "zero"},
            {"start_time": "11:00", "duration": "1.5"},
        ],
    )
    def test_rejects_malformed_input(self, client, spot, monday, params):
        response = client.get(
            reverse("parking:check_availability_api", args=[spot.id]),
            {"date": monday.isoformat(), **params},
        )

        assert response.status_code == 400


class TestCreateBookingApi:
    def test_creates_booking(self, renter_client, spot, renter, monday, existing_booking):
        response = post_json(
            renter_client,
            reverse("parking:create_booking_api"),
            {"spot_id": spot.id, "date": monday.isoformat(), "start_time": "12:00", "duration": 2},
        )

        assert response.status_code == 201
        booking = response.json()["booking"]
        assert booking["start_time"] == "12:00"
        assert booking["end_time"] == "14:00"
        assert booking["total_price"] == "10.50"
        assert booking["status"] == BookingStatus.CONFIRMED
        assert booking["renter_id"] == renter.id

    def test_accepts_integer_start_time(self, renter_client, spot, monday):
        response = post_json(
            renter_client,
            reverse("parking:create_booking_api"),
            {"spot_id": spot.id, "date": monday.isoformat(), "start_time": 9, "duration": 1},
        )

        assert response.status_code == 201

    def test_requires_login(self, client, spot, monday):
        response = post_json(
            client,
            reverse("parking:create_booking_api"),
            {"spot_id": spot.id, "date": monday.isoformat(), "start_time": "12:00", "duration": 1},
        )

        assert response.status_code == 401
        assert response.json()["code"] == "not_authenticated"
        assert not Booking.objects.exists()

    def test_overlap_conflict(self, renter_client, spot, monday, existing_booking):
        response = post_json(
            renter_client,
            reverse("parking:create_booking_api"),
            {"spot_id": spot.id, "date": monday.isoformat(), "start_time": "11:00", "duration": 2},
        )

        assert response.status_code == 409
        assert response.json() == {"error": "Time slot already booked", "code": "unavailable"}

    def test_outside_hours(self, renter_client, spot, monday):
        response = post_json(
            renter_client,
            reverse("parking:create_booking_api"),
            {"spot_id": spot.id, "date": monday.isoformat(), "start_time": "16:00", "duration": 3},
        )

        assert response.status_code == 400
        assert response.json()["code"] == "invalid_schedule"

    def test_unknown_spot(self, renter_client, monday):
        response = post_json(
            renter_client,
            reverse("parking:create_booking_api"),
            {"spot_id": 987, "date": monday.isoformat(), "start_time": "10:00", "duration": 1},
        )

        assert response.status_code == 404

    @pytest.mark.parametrize(
        "payload",
        [
            {"spot_id": "1", "date": "2030-01-07", "start_time": "10:00", "duration": 1},
            {"spot_id": 1, "date": "", "start_time": "10:00", "duration": 1},
            {"spot_id": 1, "date": "2030-13-01", "start_time": "10:00", "duration": 1},
            {"spot_id": 1, "date": "2030-01-07", "start_time": "10:15", "duration": 1},
            {"spot_id": 1, "date": "2030-01-07", "start_time": "10:00", "duration": 0},
            {"spot_id": 1, "date": "2030-01-07", "start_time": "10:00", "duration": 9},
            {"spot_id": 1, "date": "2030-01-07", "start_time": "10:00", "duration": None},
            {"spot_id": 1, "date": "2030-01-07", "start_time": "10:00", "duration": 2.9},
            {"spot_id": 1, "date": "2030-01-07", "start_time": "10:00", "duration": 1.5},
        ],
    )
    def test_rejects_malformed_payload(self, renter_client, payload):
        response = post_json(renter_client, reverse("parking:create_booking_api"), payload)

        assert response.status_code == 400
        assert not Booking.objects.exists()

    @pytest.mark.parametrize("body", ["[1, 2]", "\"x\"", "42", "null"])
    def test_rejects_json_that_is_not_an_object(self, renter_client, body):
        response = renter_client.post(
            reverse("parking:create_booking_api"),
            data=body,
            content_type="application/json",
        )

        assert response.status_code == 400
        assert response.json() == {"error": "Invalid JSON payload."}

    def test_whole_number_float_duration_is_accepted(self, renter_client, spot, monday):
        response = post_json(
            renter_client,
            reverse("parking:create_booking_api"),
            {"spot_id": spot.id, "date": monday.isoformat(), "start_time": "10:00", "duration": 2.0},
        )

        assert response.status_code == 201
        assert response.json()["booking"]["duration"] == 2

    def test_rejects_invalid_json(self, renter_client):
        response = renter_client.post(
            reverse("parking:create_booking_api"),
            data="{not json",
            content_type="application/json",
        )

        assert response.status_code == 400

    def test_get_not_allowed(self, renter_client):
        assert renter_client.get(reverse("parking:create_booking_api")).status_code == 405


class TestCancelBookingApi:
    def test_renter_cancels(self, renter_client, existing_booking):
        response = renter_client.post(reverse("parking:cancel_booking_api", args=[existing_booking.id]))

        assert response.status_code == 200
        assert response.json()["booking"]["status"] == BookingStatus.CANCELLED

    def test_stranger_forbidden(self, client, stranger, existing_booking):
        client.force_login(stranger)

        response = client.post(reverse("parking:cancel_booking_api", args=[existing_booking.id]))

        assert response.status_code == 403

    def test_requires_login(self, client, existing_booking):
        response = client.post(reverse("parking:cancel_booking_api", args=[existing_booking.id]))

        assert response.status_code == 401

    def test_missing_booking(self, renter_client):
        response = renter_client.post(reverse("parking:cancel_booking_api", args=[5555]))

        assert response.status_code == 404

    def test_already_cancelled(self, renter_client, existing_booking):
        url = reverse("parking:cancel_booking_api", args=[existing_booking.id])
        renter_client.post(url)

        response = renter_client.post(url)

        assert response.status_code == 409
        assert response.json()["code"] == "invalid_transition"


class TestDailyAvailabilityApi:
    def test_returns_index(self, client, spot, monday, existing_booking):
        response = client.get(reverse("parking:daily_availability_api", args=[spot.id]), {"date": monday.isoformat()})

        assert response.status_code == 200
        time_slots = response.json()["time_slots"]
        assert time_slots["10:00"] == {"is_available": False, "booking_id": existing_booking.id}
        assert time_slots["12:00"] == {"is_available": True, "booking_id": None}
