from datetime import date

from availability import booked_dates, is_date_booked, is_range_available
from schemas import Booking


def make_booking(start, end, status="pending", **overrides):
    data = {
        "id": f"b-{start}",
        "carId": "car-1",
        "carName": "Toyota Supra",
        "startDate": start,
        "endDate": end,
        "firstName": "Ana",
        "lastName": "Perez",
        "email": "ana@example.com",
        "phone": "555-0101",
        "totalPrice": 400,
        "status": status,
        "createdAt": "2024-05-01T00:00:00.000Z",
    }
    data.update(overrides)
    return Booking.model_validate(data)


def test_every_date_in_inclusive_span_is_booked():
    bookings = [make_booking("2024-06-01", "2024-06-05")]
    for day in range(1, 6):
        assert is_date_booked(bookings, date(2024, 6, day))
    assert not is_date_booked(bookings, date(2024, 5, 31))
    assert not is_date_booked(bookings, date(2024, 6, 6))


def test_booked_dates_lists_each_day_once():
    bookings = [
        make_booking("2024-06-01", "2024-06-03"),
        make_booking("2024-06-03", "2024-06-04"),
    ]
    assert booked_dates(bookings) == [date(2024, 6, d) for d in (1, 2, 3, 4)]


def test_cancelled_bookings_release_dates():
    bookings = [make_booking("2024-06-01", "2024-06-05", status="cancelled")]
    assert not is_date_booked(bookings, "2024-06-03")
    assert booked_dates(bookings) == []
    assert is_range_available(bookings, "2024-06-01", "2024-06-05")


def test_range_overlapping_a_booking_is_unavailable():
    bookings = [make_booking("2024-06-10", "2024-06-12")]
    assert not is_range_available(bookings, "2024-06-08", "2024-06-10")
    assert not is_range_available(bookings, "2024-06-11", "2024-06-15")
    assert not is_range_available(bookings, "2024-06-01", "2024-06-30")
    assert is_range_available(bookings, "2024-06-01", "2024-06-09")
    assert is_range_available(bookings, "2024-06-13", "2024-06-20")


def test_no_bookings_means_everything_is_free():
    assert not is_date_booked([], "2024-06-01")
    assert is_range_available([], "2024-06-01", "2024-06-30")
