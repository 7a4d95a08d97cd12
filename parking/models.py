from datetime import date as date_type

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import F, Q

from .availability import Weekday, hour_label


class SpotType(models.TextChoices):
    DRIVEWAY = "driveway", "Driveway"
    GARAGE = "garage", "Garage"
    STREET = "street", "Street"


class Spot(models.Model):
    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="spots",
    )
    address = models.CharField(max_length=200)
    city = models.CharField(max_length=80, blank=True)
    spot_type = models.CharField(max_length=16, choices=SpotType.choices, default=SpotType.DRIVEWAY)
    description = models.TextField(blank=True)
    price = models.DecimalField(max_digits=8, decimal_places=2)

    # Weekly recurrence rule.
    days = models.JSONField(default=list, blank=True)
    every_day = models.BooleanField(default=False)
    start_hour = models.PositiveSmallIntegerField()
    end_hour = models.PositiveSmallIntegerField()

    valid_from = models.DateField()
    valid_until = models.DateField()

    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["city", "address"]
        constraints = [
            models.CheckConstraint(
                condition=Q(start_hour__lt=F("end_hour")) & Q(end_hour__lte=24),
                name="spot_start_before_end",
            ),
            models.CheckConstraint(
                condition=Q(valid_from__lte=F("valid_until")),
                name="spot_valid_from_before_until",
            ),
            models.CheckConstraint(condition=Q(price__gte=0), name="spot_price_non_negative"),
        ]
        indexes = [
            models.Index(fields=["owner", "is_active"], name="idx_spot_owner_active"),
        ]

    def __str__(self) -> str:  # pragma: no cover
        return f"{self.address} ({self.get_spot_type_display()})"

    def allows_weekday(self, value: date_type) -> bool:
        return self.every_day or Weekday.for_date(value).value in (self.days or [])

    def is_valid_on(self, value: date_type) -> bool:
        return self.valid_from <= value <= self.valid_until

    @property
    def hours_display(self) -> str:
        return f"{hour_label(self.start_hour)}–{hour_label(self.end_hour)}"

    def clean(self) -> None:
        super().clean()
        errors = {}
        unknown = [d for d in (self.days or []) if d not in Weekday.values]
        if unknown:
            errors["days"] = f"Unknown weekday(s): {', '.join(map(str, unknown))}."
        elif not self.every_day and not self.days:
            errors["days"] = "Pick at least one weekday or mark the spot as available every day."
        if self.start_hour is not None and self.end_hour is not None:
            if self.end_hour > 24:
                errors["end_hour"] = "End hour cannot be later than 24."
            elif self.start_hour >= self.end_hour:
                errors["end_hour"] = "End hour must be after start hour."
        if self.valid_from and self.valid_until and self.valid_from > self.valid_until:
            errors["valid_until"] = "Valid until must not be before valid from."
        if errors:
            raise ValidationError(errors)


class BookingStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    CONFIRMED = "confirmed", "Confirmed"
    COMPLETED = "completed", "Completed"
    CANCELLED = "cancelled", "Cancelled"


class Booking(models.Model):
    spot = models.ForeignKey(Spot, on_delete=models.PROTECT, related_name="bookings")
    renter = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="bookings",
    )
    date = models.DateField()
    start_hour = models.PositiveSmallIntegerField()
    end_hour = models.PositiveSmallIntegerField()
    duration = models.PositiveSmallIntegerField()
    total_price = models.DecimalField(max_digits=10, decimal_places=2)
    status = models.CharField(max_length=16, choices=BookingStatus.choices, default=BookingStatus.CONFIRMED)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        constraints = [
            models.CheckConstraint(condition=Q(duration__gte=1), name="booking_duration_positive"),
            models.CheckConstraint(
                condition=Q(end_hour=F("start_hour") + F("duration")),
                name="booking_end_matches_duration",
            ),
        ]
        indexes = [
            models.Index(fields=["spot", "date", "status"], name="idx_booking_spot_date_status"),
            models.Index(fields=["renter", "date"], name="idx_booking_renter_date"),
        ]
        ordering = ["-date", "start_hour", "-created_at"]

    def __str__(self) -> str:  # pragma: no cover
        return f"{self.spot} · {self.date} · {self.time_range} · {self.renter}"

    @property
    def start_time(self) -> str:
        return hour_label(self.start_hour)

    @property
    def end_time(self) -> str:
        return hour_label(self.end_hour)

    @property
    def time_range(self) -> str:
        return f"{self.start_time}–{self.end_time}"


class BookedHour(models.Model):
    """
    One row per hour held by a confirmed booking.

    This is the per-date availability index. It is only written inside the
    transaction that creates or cancels the booking, and the unique constraint
    makes the database reject a second booking of the same hour.
    """

    spot = models.ForeignKey(Spot, on_delete=models.CASCADE, related_name="booked_hours")
    date = models.DateField()
    hour = models.PositiveSmallIntegerField()
    booking = models.ForeignKey(Booking, on_delete=models.CASCADE, related_name="booked_hours")

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=["spot", "date", "hour"],
                name="unique_booked_hour_spot_date_hour",
            )
        ]
        ordering = ["spot", "date", "hour"]

    def __str__(self) -> str:  # pragma: no cover
        return f"{self.spot_id} · {self.date} · {hour_label(self.hour)}"
