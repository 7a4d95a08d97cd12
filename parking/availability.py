from __future__ import annotations

from datetime import date as date_type
from typing import Iterable

from django.db import models


class Weekday(models.TextChoices):
    MONDAY = "Monday", "Monday"
    TUESDAY = "Tuesday", "Tuesday"
    WEDNESDAY = "Wednesday", "Wednesday"
    THURSDAY = "Thursday", "Thursday"
    FRIDAY = "Friday", "Friday"
    SATURDAY = "Saturday", "Saturday"
    SUNDAY = "Sunday", "Sunday"

    @classmethod
    def for_date(cls, value: date_type) -> "Weekday":
        # date.weekday(): Monday == 0, same order as the members above.
        return list(cls)[value.weekday()]


def hour_label(hour: int) -> str:
    return f"{int(hour):02d}:00"


def parse_hour(value) -> int:
    """
    Accept an integer hour or an "HH:00" label.
    Raises ValueError for anything else (bookings are whole hours only).
    """
    if isinstance(value, bool):
        raise ValueError("Invalid hour.")
    if isinstance(value, int):
        hour = value
    else:
        text = str(value).strip()
        hours, sep, minutes = text.partition(":")
        if not hours.isdigit() or (sep and minutes != "00"):
            raise ValueError("Invalid hour. Expected HH:00.")
        hour = int(hours)
    if not 0 <= hour <= 23:
        raise ValueError("Hour must be between 0 and 23.")
    return hour


def intervals_overlap(a_start: int, a_end: int, b_start: int, b_end: int) -> bool:
    """
    Half-open overlap test: [a_start, a_end) and [b_start, b_end) share an hour.
    Back-to-back intervals ([9, 11) and [11, 13)) do not overlap.
    """
    return a_start < b_end and b_start < a_end


def within_window(start: int, end: int, window_start: int, window_end: int) -> bool:
    return window_start <= start and end <= window_end


def occupied_hours(intervals: Iterable[tuple[int, int]]) -> set[int]:
    hours: set[int] = set()
    for start, end in intervals:
        hours.update(range(int(start), int(end)))
    return hours


def free_hours(window_start: int, window_end: int, intervals: Iterable[tuple[int, int]]) -> list[int]:
    taken = occupied_hours(intervals)
    return [hour for hour in range(window_start, window_end) if hour not in taken]
