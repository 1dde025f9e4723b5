import os
import logging
from contextlib import asynccontextmanager
from typing import List, Optional

from fastapi import Depends, FastAPI, File, Request, Response, UploadFile
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

import database
from availability import booked_dates
from bookings import BookingRepository, booking_stats, place_booking
from cars import CarRepository, filter_cars, fleet_stats
from config import Config
from errors import NoFileProvidedError, RentalError
from pricing import estimate_price
from schemas import (
    Booking,
    BookingRequest,
    BookingStats,
    Car,
    CarAvailability,
    CarInput,
    FleetStats,
    PriceQuote,
    PricingSettings,
    QuoteRequest,
    StatusUpdate,
    UploadedImage,
    UploadedImages,
    WebsiteSettings,
)
from seed import seed_if_empty
from settings_store import PricingSettingsStore, WebsiteSettingsStore
from uploads import LocalImageStorage, default_storage, store_upload, store_uploads

logging.basicConfig(
    level=getattr(logging, Config.LOG_LEVEL, logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def seed_data():
    if not Config.SEED_DATA_PATH or database.db is None:
        return
    seed_if_empty(database.db, Config.SEED_DATA_PATH)


@asynccontextmanager
async def lifespan(app: FastAPI):
    seed_data()
    yield


app = FastAPI(title="Car Rental Booking API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=Config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Uploaded images are served from the same origin as the API
app.mount(
    Config.UPLOAD_URL_PREFIX,
    StaticFiles(directory=Config.UPLOAD_DIR, check_dir=False),
    name="uploads",
)


# Error responses are always {"error": message}
@app.exception_handler(RentalError)
async def rental_error_handler(request: Request, exc: RentalError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    label = "Invalid car data" if request.url.path.startswith("/api/cars") else "Invalid request data"
    return JSONResponse(
        status_code=400,
        content={"error": label, "details": jsonable_encoder(exc.errors())},
    )


# Dependencies
def get_database():
    return database.get_db()


def get_car_repository(db=Depends(get_database)) -> CarRepository:
    return CarRepository(db)


def get_booking_repository(db=Depends(get_database)) -> BookingRepository:
    return BookingRepository(db)


def get_pricing_store(db=Depends(get_database)) -> PricingSettingsStore:
    return PricingSettingsStore(db)


def get_website_store(db=Depends(get_database)) -> WebsiteSettingsStore:
    return WebsiteSettingsStore(db)


def get_image_storage() -> LocalImageStorage:
    return default_storage()


@app.get("/")
def read_root():
    return {"message": "Car Rental Booking Backend is running"}


# Cars Endpoints
@app.get("/api/cars", response_model=List[Car])
def list_cars(
    q: Optional[str] = None,
    category: Optional[str] = None,
    transmission: Optional[str] = None,
    seats: Optional[int] = None,
    sort: str = "recommended",
    cars: CarRepository = Depends(get_car_repository),
):
    return filter_cars(
        cars.list_all(),
        q=q,
        category=category,
        transmission=transmission,
        seats=seats,
        sort=sort,
    )


@app.get("/api/cars/stats", response_model=FleetStats)
def get_fleet_stats(cars: CarRepository = Depends(get_car_repository)):
    return fleet_stats(cars.list_all())


@app.get("/api/cars/by-slug/{slug}", response_model=Car)
def get_car_by_slug(slug: str, cars: CarRepository = Depends(get_car_repository)):
    return cars.get_by_slug(slug)


@app.get("/api/cars/{car_id}", response_model=Car)
def get_car(car_id: str, cars: CarRepository = Depends(get_car_repository)):
    return cars.get_by_id(car_id)


@app.post("/api/cars", response_model=Car, status_code=201)
def create_car(payload: CarInput, cars: CarRepository = Depends(get_car_repository)):
    return cars.create(payload)


@app.patch("/api/cars/{car_id}", response_model=Car)
def update_car(car_id: str, payload: CarInput, cars: CarRepository = Depends(get_car_repository)):
    return cars.update(car_id, payload)


@app.post("/api/cars/{car_id}/duplicate", response_model=Car, status_code=201)
def duplicate_car(car_id: str, cars: CarRepository = Depends(get_car_repository)):
    return cars.duplicate(car_id)


@app.delete("/api/cars/{car_id}", status_code=204)
def delete_car(car_id: str, cars: CarRepository = Depends(get_car_repository)):
    cars.delete(car_id)
    return Response(status_code=204)


@app.get("/api/cars/{car_id}/bookings", response_model=List[Booking])
def list_car_bookings(
    car_id: str,
    cars: CarRepository = Depends(get_car_repository),
    bookings: BookingRepository = Depends(get_booking_repository),
):
    car = cars.get_by_id(car_id)
    return bookings.list_by_car(car.id)


@app.get("/api/cars/{car_id}/availability", response_model=CarAvailability)
def get_car_availability(
    car_id: str,
    cars: CarRepository = Depends(get_car_repository),
    bookings: BookingRepository = Depends(get_booking_repository),
):
    car = cars.get_by_id(car_id)
    days = booked_dates(bookings.list_by_car(car.id))
    return CarAvailability(car_id=car.id, booked_dates=[d.isoformat() for d in days])


# Quotes
@app.post("/api/quote", response_model=PriceQuote)
def quote_price(
    payload: QuoteRequest,
    cars: CarRepository = Depends(get_car_repository),
    pricing: PricingSettingsStore = Depends(get_pricing_store),
):
    car = cars.get_by_id(payload.car_id)
    return estimate_price(
        car.price_per_day,
        payload.start_date,
        payload.end_date,
        pricing.get(),
        include_insurance=payload.include_insurance,
        include_delivery=payload.include_delivery,
        clamp=True,
    )


# Bookings Endpoints
@app.get("/api/bookings", response_model=List[Booking])
def list_bookings(bookings: BookingRepository = Depends(get_booking_repository)):
    return bookings.list_all()


@app.get("/api/bookings/stats", response_model=BookingStats)
def get_booking_stats(bookings: BookingRepository = Depends(get_booking_repository)):
    return booking_stats(bookings.list_all())


@app.post("/api/bookings", response_model=Booking, status_code=201)
def create_booking(
    payload: BookingRequest,
    cars: CarRepository = Depends(get_car_repository),
    bookings: BookingRepository = Depends(get_booking_repository),
    pricing: PricingSettingsStore = Depends(get_pricing_store),
):
    return place_booking(cars, bookings, pricing.get(), payload)


@app.patch("/api/bookings/{booking_id}/status", response_model=Booking)
def update_booking_status(
    booking_id: str,
    payload: StatusUpdate,
    bookings: BookingRepository = Depends(get_booking_repository),
):
    return bookings.update_status(booking_id, payload.status)


@app.delete("/api/bookings/{booking_id}", status_code=204)
def delete_booking(booking_id: str, bookings: BookingRepository = Depends(get_booking_repository)):
    bookings.delete(booking_id)
    return Response(status_code=204)


# Settings Endpoints
@app.get("/api/settings/pricing", response_model=PricingSettings)
def read_pricing_settings(store: PricingSettingsStore = Depends(get_pricing_store)):
    return store.get()


@app.put("/api/settings/pricing", response_model=PricingSettings)
def save_pricing_settings(
    payload: PricingSettings,
    store: PricingSettingsStore = Depends(get_pricing_store),
):
    return store.save(payload)


@app.get("/api/settings/website", response_model=WebsiteSettings)
def read_website_settings(store: WebsiteSettingsStore = Depends(get_website_store)):
    return store.get()


@app.put("/api/settings/website", response_model=WebsiteSettings)
def save_website_settings(
    payload: WebsiteSettings,
    store: WebsiteSettingsStore = Depends(get_website_store),
):
    return store.save(payload)


# Upload Endpoints
@app.get("/api/upload/test")
def upload_test():
    return {"message": "Upload route is working"}


@app.post("/api/upload/image", response_model=UploadedImage)
async def upload_image(
    image: Optional[UploadFile] = File(None),
    storage: LocalImageStorage = Depends(get_image_storage),
):
    if image is None:
        raise NoFileProvidedError("No image file provided")
    return await store_upload(image, storage)


@app.post("/api/upload/images", response_model=UploadedImages)
async def upload_images(
    images: Optional[List[UploadFile]] = File(None),
    storage: LocalImageStorage = Depends(get_image_storage),
):
    stored = await store_uploads(images or [], storage)
    return UploadedImages(urls=stored)


@app.get("/test")
def test_database():
    response = {
        "backend": "✅ Running",
        "database": "❌ Not Available",
        "database_url": None,
        "database_name": None,
        "connection_status": "Not Connected",
        "collections": [],
    }

    try:
        db = database.db
        if db is not None:
            response["database"] = "✅ Available"
            response["database_name"] = db.name if hasattr(db, "name") else "✅ Connected"
            response["connection_status"] = "Connected"
            try:
                collections = db.list_collection_names()
                response["collections"] = collections[:10]
                response["database"] = "✅ Connected & Working"
            except Exception as e:
                response["database"] = f"⚠️  Connected but Error: {str(e)[:50]}"
        else:
            response["database"] = "⚠️  Available but not initialized"
    except Exception as e:
        response["database"] = f"❌ Error: {str(e)[:50]}"

    # Check environment variables
    response["database_url"] = "✅ Set" if os.getenv("DATABASE_URL") else "❌ Not Set"
    response["database_name"] = "✅ Set" if os.getenv("DATABASE_NAME") else "❌ Not Set"

    return response


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=Config.PORT)
