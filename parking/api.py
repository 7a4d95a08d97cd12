from __future__ import annotations

import json
from datetime import date as date_type

from django.conf import settings
from django.core.exceptions import PermissionDenied
from django.http import JsonResponse
from django.views.decorators.http import require_GET
from django.views.decorators.http import require_POST

from .availability import parse_hour
from .models import Booking
from .services import (
    BookingError,
    BookingInput,
    InvalidScheduleError,
    InvalidTransitionError,
    NotAuthenticatedError,
    NotFoundError,
    PersistenceError,
    SlotUnavailableError,
    cancel_booking,
    check_availability,
    create_booking,
    get_daily_availability,
    list_available_slots,
)


ERROR_STATUS = {
    NotFoundError: 404,
    InvalidScheduleError: 400,
    SlotUnavailableError: 409,
    NotAuthenticatedError: 401,
    InvalidTransitionError: 409,
    PersistenceError: 503,
}


def _parse_date(value: str) -> date_type:
    return date_type.fromisoformat(value)


def _parse_duration(value) -> int:
    # Whole hours only.
    if isinstance(value, bool):
        raise ValueError
    if isinstance(value, float) and not value.is_integer():
        raise ValueError
    duration = int(value)
    if not 1 <= duration <= settings.PARKING_MAX_BOOKING_HOURS:
        raise ValueError
    return duration


def _error_response(exc: BookingError) -> JsonResponse:
    status = next((code for cls, code in ERROR_STATUS.items() if isinstance(exc, cls)), 400)
    return JsonResponse({"error": exc.reason, "code": exc.code}, status=status)


def _duration_error() -> JsonResponse:
    return JsonResponse(
        {"error": f"duration must be an integer between 1 and {settings.PARKING_MAX_BOOKING_HOURS}."},
        status=400,
    )


def _required_date(request):
    date_str = request.GET.get("date", "").strip()
    if not date_str:
        return None, JsonResponse({"error": "Missing required query param: date"}, status=400)
    try:
        return _parse_date(date_str), None
    except ValueError:
        return None, JsonResponse({"error": "Invalid date. Expected YYYY-MM-DD."}, status=400)


def booking_payload(booking: Booking) -> dict:
    return {
        "id": booking.id,
        "spot_id": booking.spot_id,
        "renter_id": booking.renter_id,
        "date": booking.date.isoformat(),
        "start_time": booking.start_time,
        "end_time": booking.end_time,
        "duration": booking.duration,
        "total_price": str(booking.total_price),
        "status": booking.status,
    }


@require_GET
def available_slots_api(request, spot_id: int):
    """
    GET /api/spots/<id>/slots/?date=YYYY-MM-DD

    Returns the free "HH:00" hours of the spot for the provided date.
    """
    target_date, error = _required_date(request)
    if error:
        return error

    try:
        slots = list_available_slots(spot_id, target_date)
    except BookingError as exc:
        return _error_response(exc)

    return JsonResponse({"spot_id": spot_id, "date": target_date.isoformat(), "slots": slots})


@require_GET
def check_availability_api(request, spot_id: int):
    """
    GET /api/spots/<id>/availability/?date=YYYY-MM-DD&start_time=HH:00&duration=N
    """
    target_date, error = _required_date(request)
    if error:
        return error

    try:
        start_hour = parse_hour(request.GET.get("start_time", ""))
    except ValueError:
        return JsonResponse({"error": "Invalid start_time. Expected HH:00."}, status=400)

    try:
        duration = _parse_duration(request.GET.get("duration", "1"))
    except ValueError:
        return _duration_error()

    result = check_availability(spot_id, target_date, start_hour, duration)
    return JsonResponse({"available": result.available, "reason": result.reason, "error": result.error})


@require_GET
def daily_availability_api(request, spot_id: int):
    """
    GET /api/spots/<id>/daily/?date=YYYY-MM-DD

    Returns the per-hour availability index for the spot and date.
    """
    target_date, error = _required_date(request)
    if error:
        return error

    try:
        time_slots = get_daily_availability(spot_id, target_date)
    except BookingError as exc:
        return _error_response(exc)

    return JsonResponse({"spot_id": spot_id, "date": target_date.isoformat(), "time_slots": time_slots})


@require_POST
def create_booking_api(request):
    """
    POST /api/bookings/
    Payload (JSON):
      - spot_id: int
      - date: YYYY-MM-DD
      - start_time: "HH:00" or int hour
      - duration: int (hours)
    """
    try:
        payload = json.loads(request.body.decode("utf-8") or "{}")
    except json.JSONDecodeError:
        return JsonResponse({"error": "Invalid JSON payload."}, status=400)

    if not isinstance(payload, dict):
        return JsonResponse({"error": "Invalid JSON payload."}, status=400)

    spot_id = payload.get("spot_id")
    date_str = str(payload.get("date") or "").strip()

    if not isinstance(spot_id, int) or isinstance(spot_id, bool):
        return JsonResponse({"error": "spot_id must be an integer."}, status=400)
    if not date_str:
        return JsonResponse({"error": "date is required."}, status=400)

    try:
        target_date = _parse_date(date_str)
    except ValueError:
        return JsonResponse({"error": "Invalid date. Expected YYYY-MM-DD."}, status=400)

    try:
        start_hour = parse_hour(payload.get("start_time", ""))
    except ValueError:
        return JsonResponse({"error": "Invalid start_time. Expected HH:00."}, status=400)

    try:
        duration = _parse_duration(payload.get("duration", 1))
    except (TypeError, ValueError):
        return _duration_error()

    try:
        booking = create_booking(
            renter=request.user,
            data=BookingInput(spot_id=spot_id, date=target_date, start_hour=start_hour, duration=duration),
        )
    except BookingError as exc:
        return _error_response(exc)

    return JsonResponse(
        {
            "success": True,
            "booking": booking_payload(booking),
            "message": "Booking created successfully.",
        },
        status=201,
    )


@require_POST
def cancel_booking_api(request, booking_id: int):
    """
    POST /api/bookings/<id>/cancel/
    """
    if not request.user.is_authenticated:
        return JsonResponse({"error": "Authentication required.", "code": NotAuthenticatedError.code}, status=401)

    try:
        booking = cancel_booking(user=request.user, booking_id=booking_id)
    except PermissionDenied:
        return JsonResponse({"error": "You do not have permission to cancel this booking."}, status=403)
    except BookingError as exc:
        return _error_response(exc)

    return JsonResponse({"success": True, "booking": booking_payload(booking), "message": "Booking cancelled."})
