from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date as date_type
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from django.core.exceptions import PermissionDenied
from django.db import DatabaseError, IntegrityError, transaction
from django.utils import timezone

from .availability import Weekday, free_hours, hour_label, intervals_overlap, within_window
from .models import BookedHour, Booking, BookingStatus, Spot


logger = logging.getLogger(__name__)

CENTS = Decimal("0.01")


class BookingError(Exception):
    """Base error type for booking domain errors."""

    code = "booking_error"

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


class NotFoundError(BookingError):
    code = "not_found"


class SpotNotFoundError(NotFoundError):
    """Raised when a spot does not exist or has been deactivated."""


class BookingNotFoundError(NotFoundError):
    pass


class InvalidScheduleError(BookingError):
    """Raised when the requested day or hours fall outside the spot's schedule."""

    code = "invalid_schedule"


class SlotUnavailableError(BookingError):
    """Raised when the requested hours overlap an existing confirmed booking."""

    code = "unavailable"


class NotAuthenticatedError(BookingError):
    code = "not_authenticated"


class PersistenceError(BookingError):
    """
    Raised when the store rejects a write after validation passed.
    Nothing was committed; callers must re-run the whole booking request.
    """

    code = "persistence_error"


class InvalidTransitionError(BookingError):
    code = "invalid_transition"


@dataclass(frozen=True)
class BookingInput:
    spot_id: int
    date: date_type
    start_hour: int
    duration: int


@dataclass(frozen=True)
class AvailabilityResult:
    available: bool
    reason: Optional[str] = None
    error: Optional[str] = None


def calculate_total_price(price, duration: int) -> Decimal:
    return (Decimal(str(price)) * int(duration)).quantize(CENTS, rounding=ROUND_HALF_UP)


def _get_spot(spot_id: int, *, for_update: bool = False) -> Spot:
    queryset = Spot.objects.filter(is_active=True)
    if for_update:
        queryset = queryset.select_for_update()
    try:
        return queryset.get(id=spot_id)
    except Spot.DoesNotExist as exc:
        raise SpotNotFoundError("Spot not found") from exc


def _confirmed_intervals(spot: Spot, date_value: date_type) -> list[tuple[int, int]]:
    rows = Booking.objects.filter(
        spot=spot,
        date=date_value,
        status=BookingStatus.CONFIRMED,
    ).values_list("start_hour", "end_hour")
    return [(int(start), int(end)) for start, end in rows]


def _find_conflict(spot: Spot, date_value: date_type, start_hour: int, end_hour: int) -> bool:
    return any(
        intervals_overlap(start_hour, end_hour, booked_start, booked_end)
        for booked_start, booked_end in _confirmed_intervals(spot, date_value)
    )


def _validate_request(spot: Spot, date_value: date_type, start_hour: int, duration: int) -> None:
    """
    Schedule and overlap checks, in order, stopping at the first failure.
    """
    if not spot.allows_weekday(date_value):
        day_name = Weekday.for_date(date_value).label
        raise InvalidScheduleError(f"Spot is not available on {day_name}s")

    if not spot.is_valid_on(date_value):
        raise InvalidScheduleError("Date is outside the valid booking period")

    end_hour = start_hour + duration
    if duration < 1 or not within_window(start_hour, end_hour, spot.start_hour, spot.end_hour):
        raise InvalidScheduleError("Time is outside operating hours")

    if _find_conflict(spot, date_value, start_hour, end_hour):
        raise SlotUnavailableError("Time slot already booked")


def list_available_slots(spot_id: int, date_value: date_type) -> list[str]:
    """
    Free hours of the spot's operating window on the given date, as "HH:00" labels.

    Advisory only: the weekday and validity window are not checked here.
    """
    spot = _get_spot(spot_id)
    hours = free_hours(spot.start_hour, spot.end_hour, _confirmed_intervals(spot, date_value))
    return [hour_label(hour) for hour in hours]


def check_availability(spot_id: int, date_value: date_type, start_hour: int, duration: int) -> AvailabilityResult:
    """
    Read-only pre-check. create_booking repeats it under a lock before writing.
    """
    try:
        spot = _get_spot(spot_id)
        _validate_request(spot, date_value, start_hour, duration)
    except (NotFoundError, InvalidScheduleError, SlotUnavailableError) as exc:
        return AvailabilityResult(available=False, reason=exc.reason, error=exc.code)
    return AvailabilityResult(available=True)


def create_booking(*, renter, data: BookingInput) -> Booking:
    """
    Create a confirmed booking safely:
    - Locks the target Spot row (row-level locking).
    - Re-checks availability in-transaction.
    - Writes the booking and its BookedHour rows together; the unique
      constraint on BookedHour is the final guard.
    """
    if renter is None or not getattr(renter, "is_authenticated", False):
        raise NotAuthenticatedError("Please log in to book a spot")

    try:
        with transaction.atomic():
            spot = _get_spot(data.spot_id, for_update=True)
            _validate_request(spot, data.date, data.start_hour, data.duration)

            end_hour = data.start_hour + data.duration
            booking = Booking.objects.create(
                spot=spot,
                renter=renter,
                date=data.date,
                start_hour=data.start_hour,
                end_hour=end_hour,
                duration=data.duration,
                total_price=calculate_total_price(spot.price, data.duration),
                status=BookingStatus.CONFIRMED,
            )
            BookedHour.objects.bulk_create(
                [
                    BookedHour(spot=spot, date=data.date, hour=hour, booking=booking)
                    for hour in range(data.start_hour, end_hour)
                ]
            )
    except IntegrityError as exc:
        logger.warning(
            "Lost booking race for spot %s on %s at %s",
            data.spot_id,
            data.date,
            hour_label(data.start_hour),
        )
        raise SlotUnavailableError("That time slot was just booked. Please pick another.") from exc
    except DatabaseError as exc:
        logger.exception("Failed to persist booking for spot %s on %s", data.spot_id, data.date)
        raise PersistenceError("Failed to create booking. Please try again.") from exc

    logger.info("Booking %s created for spot %s (%s %s)", booking.id, spot.id, booking.date, booking.time_range)
    return booking


def _release_hours(booking: Booking) -> None:
    BookedHour.objects.filter(booking=booking).delete()


def cancel_booking(*, user, booking_id: int) -> Booking:
    """
    Cancel a confirmed booking (renter or spot owner only) and free its hours.
    """
    with transaction.atomic():
        try:
            booking = Booking.objects.select_for_update().select_related("spot").get(id=booking_id)
        except Booking.DoesNotExist as exc:
            raise BookingNotFoundError("Booking not found") from exc

        if user.id not in (booking.renter_id, booking.spot.owner_id):
            raise PermissionDenied("You do not have permission to cancel this booking.")

        if booking.status != BookingStatus.CONFIRMED:
            raise InvalidTransitionError(f"A {booking.status} booking cannot be cancelled.")

        booking.status = BookingStatus.CANCELLED
        booking.cancelled_at = timezone.now()
        booking.save(update_fields=["status", "cancelled_at", "updated_at"])
        _release_hours(booking)

    logger.info("Booking %s cancelled by user %s", booking.id, user.id)
    return booking


def complete_booking(*, booking_id: int) -> Booking:
    with transaction.atomic():
        try:
            booking = Booking.objects.select_for_update().get(id=booking_id)
        except Booking.DoesNotExist as exc:
            raise BookingNotFoundError("Booking not found") from exc

        if booking.status != BookingStatus.CONFIRMED:
            raise InvalidTransitionError(f"A {booking.status} booking cannot be completed.")

        booking.status = BookingStatus.COMPLETED
        booking.save(update_fields=["status", "updated_at"])
        _release_hours(booking)

    logger.info("Booking %s marked completed", booking.id)
    return booking


def get_daily_availability(spot_id: int, date_value: date_type) -> dict[str, dict]:
    """
    Per-hour view of the availability index for one spot and date:
    {"HH:00": {"is_available": bool, "booking_id": int | None}}.
    """
    spot = _get_spot(spot_id)
    held = dict(
        BookedHour.objects.filter(spot=spot, date=date_value).values_list("hour", "booking_id")
    )
    hours = sorted(set(range(spot.start_hour, spot.end_hour)) | set(held))
    return {
        hour_label(hour): {"is_available": hour not in held, "booking_id": held.get(hour)}
        for hour in hours
    }
