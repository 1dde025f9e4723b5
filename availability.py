"""Calendar availability for a single car, computed from its bookings."""

from datetime import date, timedelta
from typing import Iterable, List

from pricing import DateLike, to_date
from schemas import Booking

# Statuses that no longer hold the car
RELEASED_STATUSES = ("cancelled",)


def _active(bookings: Iterable[Booking]):
    return [b for b in bookings if b.status not in RELEASED_STATUSES]


def is_date_booked(bookings: Iterable[Booking], day: DateLike) -> bool:
    """True when ``day`` falls inside any booking's inclusive start/end span."""
    day = to_date(day)
    for booking in _active(bookings):
        if to_date(booking.start_date) <= day <= to_date(booking.end_date):
            return True
    return False


def booked_dates(bookings: Iterable[Booking]) -> List[date]:
    days = set()
    for booking in _active(bookings):
        current = to_date(booking.start_date)
        last = to_date(booking.end_date)
        while current <= last:
            days.add(current)
            current += timedelta(days=1)
    return sorted(days)


def is_range_available(bookings: Iterable[Booking], start: DateLike, end: DateLike) -> bool:
    """False when any day from start through end is already booked."""
    start_day = to_date(start)
    end_day = to_date(end)
    for booking in _active(bookings):
        if to_date(booking.start_date) <= end_day and to_date(booking.end_date) >= start_day:
            return False
    return True
