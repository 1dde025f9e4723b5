"""
Booking repository over the ``bookings`` collection and the customer
booking flow built on top of it.

Each repository call is a single independent request; checking
availability and inserting the booking are separate round trips.
"""

import logging
import uuid
from datetime import date, datetime, timezone
from typing import List

from pydantic import ValidationError
from pymongo import ASCENDING, DESCENDING

from availability import is_range_available
from cars import CarRepository
from errors import (
    BookingNotFoundError,
    InvalidDocumentError,
    InvalidInputError,
    backend_errors,
)
from pricing import check_rental_length, estimate_price, rental_days, to_date
from schemas import (
    BOOKING_STATUSES,
    Booking,
    BookingInput,
    BookingRequest,
    BookingStats,
    PricingSettings,
)

logger = logging.getLogger(__name__)

BOOKINGS_COLLECTION = "bookings"


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def booking_from_document(doc: dict) -> Booking:
    try:
        return Booking.model_validate({k: v for k, v in doc.items() if k != "_id"})
    except ValidationError as exc:
        logger.error(f"Booking document {doc.get('_id')!r} failed validation: {exc}")
        raise InvalidDocumentError("booking", doc.get("id") or doc.get("_id")) from exc


def bookings_from_documents(docs) -> List[Booking]:
    bookings = []
    for doc in docs:
        try:
            bookings.append(booking_from_document(doc))
        except InvalidDocumentError:
            continue
    return bookings


class BookingRepository:
    def __init__(self, db):
        self.collection = db[BOOKINGS_COLLECTION]

    def list_all(self) -> List[Booking]:
        with backend_errors("fetch bookings"):
            docs = self.collection.find({}).sort([("createdAt", DESCENDING)])
            return bookings_from_documents(docs)

    def list_by_car(self, car_id: str) -> List[Booking]:
        with backend_errors("fetch bookings"):
            docs = self.collection.find({"carId": car_id}).sort([("startDate", ASCENDING)])
            return bookings_from_documents(docs)

    def get(self, booking_id: str) -> Booking:
        with backend_errors("fetch booking"):
            doc = self.collection.find_one({"id": booking_id})
        if doc is None:
            raise BookingNotFoundError(booking_id)
        return booking_from_document(doc)

    def create(self, data: BookingInput) -> Booking:
        booking = Booking(
            **data.model_dump(include=set(BookingInput.model_fields)),
            id=str(uuid.uuid4()),
            status="pending",
            created_at=utc_timestamp(),
        )
        with backend_errors("create booking"):
            self.collection.insert_one(booking.model_dump(by_alias=True))
        logger.info(f"Saved booking {booking.id} for car {booking.car_id}")
        return booking

    def update_status(self, booking_id: str, status: str) -> Booking:
        if status not in BOOKING_STATUSES:
            raise InvalidInputError(f'Invalid booking status "{status}"')
        with backend_errors("update booking status"):
            result = self.collection.update_one({"id": booking_id}, {"$set": {"status": status}})
        if result.matched_count == 0:
            raise BookingNotFoundError(booking_id)
        logger.info(f"Booking {booking_id} set to {status}")
        return self.get(booking_id)

    def delete(self, booking_id: str) -> None:
        with backend_errors("delete booking"):
            result = self.collection.delete_one({"id": booking_id})
        if result.deleted_count == 0:
            raise BookingNotFoundError(booking_id)
        logger.info(f"Deleted booking {booking_id}")


def place_booking(
    cars: CarRepository,
    bookings: BookingRepository,
    pricing: PricingSettings,
    request: BookingRequest,
    today: date = None,
) -> Booking:
    """Validate a customer's request, price it on the server and save it as pending."""
    today = today or datetime.now(timezone.utc).date()

    if not request.start_date.strip() or not request.end_date.strip():
        raise InvalidInputError("Please select both pick-up and return dates.")
    if to_date(request.start_date) < today:
        raise InvalidInputError("Pick-up date cannot be in the past.")

    days = rental_days(request.start_date, request.end_date)
    if days == 0:
        raise InvalidInputError("Return date must be after pick-up date.")
    check_rental_length(days, pricing)

    car = cars.get_by_id(request.car_id)
    if not car.available:
        raise InvalidInputError(f"{car.name} is not available for booking.")

    existing = bookings.list_by_car(car.id)
    if not is_range_available(existing, request.start_date, request.end_date):
        raise InvalidInputError("The selected dates are not available for this car.")

    quote = estimate_price(
        car.price_per_day,
        request.start_date,
        request.end_date,
        pricing,
        include_insurance=request.include_insurance,
        include_delivery=request.include_delivery,
    )
    if quote.total <= 0:
        raise InvalidInputError("Please select valid rental dates to calculate the price.")

    if request.total_price and request.total_price != quote.total:
        logger.info(
            f"Client total {request.total_price} for car {car.id} replaced by server total {quote.total}"
        )

    data = request.model_copy(update={"car_id": car.id, "car_name": car.name, "total_price": quote.total})
    return bookings.create(data)


def booking_stats(bookings: List[Booking]) -> BookingStats:
    counts = {status: 0 for status in BOOKING_STATUSES}
    for booking in bookings:
        counts[booking.status] += 1
    return BookingStats(total=len(bookings), **counts)
