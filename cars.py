"""
Car repository over the ``cars`` collection, plus catalog filtering and
dashboard statistics.

Cars carry their own ``id`` field. Some older documents were stored under
their slug or an ObjectId without one, so lookups by id fall back to the
storage key ``_id``.
"""

import logging
import random
import re
import uuid
from typing import List, Optional

from bson import ObjectId
from pydantic import ValidationError

from errors import CarNotFoundError, InvalidDocumentError, InvalidInputError, backend_errors
from schemas import Car, CarInput, FleetStats

logger = logging.getLogger(__name__)

CARS_COLLECTION = "cars"
COPY_SLUG_ATTEMPTS = 20

_NON_ALNUM = re.compile(r"[^a-z0-9]+")


def slugify(name: str) -> str:
    return _NON_ALNUM.sub("-", name.lower()).strip("-")


def car_from_document(doc: dict) -> Car:
    data = {k: v for k, v in doc.items() if k != "_id"}
    if not data.get("id"):
        data["id"] = str(doc["_id"])
    if not data.get("slug") and isinstance(data.get("name"), str):
        data["slug"] = slugify(data["name"])
    if not isinstance(data.get("images"), list):
        data["images"] = []
    try:
        return Car.model_validate(data)
    except ValidationError as exc:
        logger.error(f"Car document {doc.get('_id')!r} failed validation: {exc}")
        raise InvalidDocumentError("car", data["id"]) from exc


def cars_from_documents(docs) -> List[Car]:
    cars = []
    for doc in docs:
        try:
            cars.append(car_from_document(doc))
        except InvalidDocumentError:
            continue
    return cars


def _storage_keys(car_id: str):
    keys = [car_id]
    if ObjectId.is_valid(car_id):
        keys.append(ObjectId(car_id))
    return keys


class CarRepository:
    def __init__(self, db):
        self.collection = db[CARS_COLLECTION]

    def _find_document(self, car_id: str) -> Optional[dict]:
        doc = self.collection.find_one({"id": car_id})
        if doc is not None:
            return doc
        logger.warning(f"No car with id field {car_id!r}; trying it as a storage key")
        return self.collection.find_one({"_id": {"$in": _storage_keys(car_id)}})

    def _ensure_slug_free(self, slug: str, storage_key=None):
        existing = self.collection.find_one({"slug": slug})
        if existing is None:
            return
        if storage_key is not None and existing["_id"] == storage_key:
            return
        raise InvalidInputError(f'A car with slug "{slug}" already exists')

    def list_all(self) -> List[Car]:
        with backend_errors("fetch cars"):
            return cars_from_documents(self.collection.find({}))

    def get_by_slug(self, slug: str) -> Car:
        with backend_errors("fetch car"):
            doc = self.collection.find_one({"slug": slug})
        if doc is None:
            raise CarNotFoundError(slug, field="slug")
        return car_from_document(doc)

    def get_by_id(self, car_id: str) -> Car:
        if not car_id:
            raise InvalidInputError("Car ID is required")
        logger.debug(f"Looking up car {car_id}")
        with backend_errors("fetch car"):
            doc = self._find_document(car_id)
        if doc is None:
            raise CarNotFoundError(car_id)
        return car_from_document(doc)

    def create(self, data: CarInput) -> Car:
        car = Car(**data.model_dump(), id=str(uuid.uuid4()), slug=slugify(data.name))
        with backend_errors("create car"):
            self._ensure_slug_free(car.slug)
            self.collection.insert_one(car.model_dump(by_alias=True))
        logger.info(f"Created car {car.name} (ID: {car.id}, slug: {car.slug})")
        return car

    def update(self, car_id: str, data: CarInput) -> Car:
        with backend_errors("update car"):
            doc = self._find_document(car_id)
            if doc is None:
                raise CarNotFoundError(car_id)
            car = Car(**data.model_dump(), id=car_id, slug=slugify(data.name))
            self._ensure_slug_free(car.slug, doc["_id"])
            self.collection.update_one({"_id": doc["_id"]}, {"$set": car.model_dump(by_alias=True)})
        logger.info(f"Updated car {car.id} (slug: {car.slug})")
        return car

    def _copy_slug(self, slug: str) -> str:
        for _ in range(COPY_SLUG_ATTEMPTS):
            candidate = f"{slug}-copy-{random.randint(0, 999)}"
            if self.collection.find_one({"slug": candidate}) is None:
                return candidate
        return f"{slug}-copy-{uuid.uuid4().hex[:8]}"

    def duplicate(self, car_id: str) -> Car:
        original = self.get_by_id(car_id)
        with backend_errors("duplicate car"):
            slug = self._copy_slug(original.slug)
            copy = original.model_copy(
                update={"id": str(uuid.uuid4()), "name": f"{original.name} (Copy)", "slug": slug}
            )
            self.collection.insert_one(copy.model_dump(by_alias=True))
        logger.info(f"Duplicated car {original.id} as {copy.id} ({copy.slug})")
        return copy

    def delete(self, car_id: str) -> None:
        if not car_id:
            raise InvalidInputError("Car ID is required for deletion")
        with backend_errors("delete car"):
            doc = self._find_document(car_id)
            if doc is None:
                raise CarNotFoundError(car_id)
            self.collection.delete_one({"_id": doc["_id"]})
        logger.info(f"Deleted car {car_id}")


# Catalog

SORT_KEYS = {
    "recommended": (lambda c: c.name.lower(), False),
    "seats-desc": (lambda c: c.seats, True),
    "newest": (lambda c: c.year, True),
    "price-asc": (lambda c: c.price_per_day, False),
    "price-desc": (lambda c: c.price_per_day, True),
}


def filter_cars(
    cars: List[Car],
    q: Optional[str] = None,
    category: Optional[str] = None,
    transmission: Optional[str] = None,
    seats: Optional[int] = None,
    sort: str = "recommended",
) -> List[Car]:
    """Catalog search; "all" or empty means no filter for category/transmission."""
    term = (q or "").strip().lower()
    result = []
    for car in cars:
        if term and term not in car.name.lower() and term not in car.description.lower():
            continue
        if category and category != "all" and car.category.lower() != category.lower():
            continue
        if transmission and transmission != "all" and car.transmission.lower() != transmission.lower():
            continue
        if seats is not None and car.seats != seats:
            continue
        result.append(car)

    key, reverse = SORT_KEYS.get(sort, SORT_KEYS["recommended"])
    return sorted(result, key=key, reverse=reverse)


def fleet_stats(cars: List[Car]) -> FleetStats:
    available = sum(1 for car in cars if car.available)
    avg_price = round(sum(car.price_per_day for car in cars) / len(cars)) if cars else 0
    return FleetStats(
        total=len(cars),
        available=available,
        booked=len(cars) - available,
        avg_price=avg_price,
    )
