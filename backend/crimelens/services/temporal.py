# backend/crimelens/services/temporal.py
from __future__ import annotations

import math
from datetime import date
from enum import Enum


class TimeBucket(str, Enum):
    """Coarse time-of-day windows. The value is the label shown to users."""

    NIGHT = "Night (10 PM - 4 AM)"
    EARLY_MORNING = "Early Morning (4 AM - 8 AM)"
    MORNING = "Morning (8 AM - 12 PM)"
    AFTERNOON = "Afternoon (12 PM - 5 PM)"
    EVENING = "Evening (5 PM - 10 PM)"


class DayType(str, Enum):
    WEEKDAY = "Weekday"
    WEEKEND = "Weekend"
    UNKNOWN = "Unknown"


# [start, end) in whole hours; anything not covered is NIGHT (22 -> 4, wraps midnight)
_BUCKET_TABLE = (
    (4, 8, TimeBucket.EARLY_MORNING),
    (8, 12, TimeBucket.MORNING),
    (12, 17, TimeBucket.AFTERNOON),
    (17, 22, TimeBucket.EVENING),
)


def hour_of_day(hours: float) -> int:
    """Whole hour on a 24h clock. 25.5 -> 1, -1.0 -> 23."""
    return math.floor(hours) % 24


def classify_time(hours: float) -> TimeBucket:
    """
    Map decimal hours (1.5 = 1:30 AM) to a TimeBucket.
    Only the whole hour matters, so 3.999 is still NIGHT and 4.0 is EARLY_MORNING.
    """
    hour = hour_of_day(hours)
    for start, end, bucket in _BUCKET_TABLE:
        if start <= hour < end:
            return bucket
    return TimeBucket.NIGHT


def classify_day(date_text: str) -> DayType:
    """
    Parse a DD-MM-YYYY string and tell weekday from weekend.
    Anything we cannot turn into a real calendar date is UNKNOWN.
    """
    try:
        day, month, year = (int(part) for part in date_text.split("-"))
        weekday = date(year, month, day).weekday()
    except (AttributeError, TypeError, ValueError):
        return DayType.UNKNOWN
    # Monday == 0 ... Saturday == 5, Sunday == 6
    return DayType.WEEKEND if weekday >= 5 else DayType.WEEKDAY


def format_clock(hours: float) -> str:
    """
    Decimal hours -> "H:MM AM/PM". Minutes are rounded half-up; a rounded
    minute of 60 rolls into the next hour (23.999 -> "12:00 AM").
    """
    whole = math.floor(hours)
    hour = whole % 24
    minute = math.floor((hours - whole) * 60 + 0.5)
    if minute >= 60:
        minute %= 60
        hour = (hour + 1) % 24

    period = "PM" if hour >= 12 else "AM"
    if hour == 0:
        display_hour = 12
    elif hour > 12:
        display_hour = hour - 12
    else:
        display_hour = hour
    return f"{display_hour}:{minute:02d} {period}"
