"""
Load cars from a JSON file into the ``cars`` collection.

    python seed.py data/cars.json

Each entry is validated as a car input; ids and slugs are assigned by the
repository. Entries that fail are logged and skipped.
"""

import argparse
import json
import logging
import sys
from typing import List

from pydantic import ValidationError

import database
from cars import CARS_COLLECTION, CarRepository
from errors import RentalError
from schemas import Car, CarInput

logger = logging.getLogger(__name__)


def load_cars(path: str) -> List[dict]:
    with open(path, encoding="utf-8") as fh:
        data = json.load(fh)
    if not isinstance(data, list):
        raise ValueError(f"Expected a JSON array of cars in {path}")
    return data


def seed_cars(repo: CarRepository, entries: List[dict]) -> List[Car]:
    created = []
    for entry in entries:
        name = entry.get("name", "<unnamed>") if isinstance(entry, dict) else "<invalid>"
        try:
            car = repo.create(CarInput.model_validate(entry))
        except (ValidationError, RentalError) as exc:
            logger.error(f"Failed to save car {name}: {exc}")
            continue
        logger.info(f"Saved car: {car.name} (ID: {car.id}, slug: {car.slug})")
        created.append(car)
    return created


def seed_if_empty(db, path: str) -> List[Car]:
    if db[CARS_COLLECTION].count_documents({}) > 0:
        logger.info("Cars collection already populated; skipping seed")
        return []
    return seed_cars(CarRepository(db), load_cars(path))


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Seed cars into the database")
    parser.add_argument("path", help="JSON file holding an array of cars")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(levelname)s - %(message)s")

    created = seed_cars(CarRepository(database.get_db()), load_cars(args.path))
    logger.info(f"Done seeding {len(created)} cars")
    return 0


if __name__ == "__main__":
    sys.exit(main())
