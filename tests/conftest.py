import mongomock
import pytest
from fastapi.testclient import TestClient

from cars import CarRepository
from bookings import BookingRepository
from main import app, get_database, get_image_storage
from schemas import CarInput
from uploads import LocalImageStorage


@pytest.fixture
def db():
    return mongomock.MongoClient().db


@pytest.fixture
def car_repo(db):
    return CarRepository(db)


@pytest.fixture
def booking_repo(db):
    return BookingRepository(db)


def make_car_input(**overrides) -> CarInput:
    data = {
        "name": "Toyota Supra",
        "category": "Sports",
        "description": "Turbocharged inline-six coupe",
        "image": "/images/supra.jpg",
        "images": ["/images/supra-1.jpg"],
        "pricePerDay": 100,
        "seats": 4,
        "transmission": "Automatic",
        "fuelType": "Petrol",
        "luggage": 2,
        "doors": 2,
        "year": 1998,
    }
    data.update(overrides)
    return CarInput.model_validate(data)


@pytest.fixture
def upload_storage(tmp_path):
    return LocalImageStorage(str(tmp_path / "uploads"), "/attached_assets/uploads")


@pytest.fixture
def client(db, upload_storage):
    app.dependency_overrides[get_database] = lambda: db
    app.dependency_overrides[get_image_storage] = lambda: upload_storage
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
