"""
Singleton settings documents (pricing and website content).

Reads always merge the stored document over the model defaults, so fields
added later never come back missing. A failed read falls back to the
defaults instead of failing the page.
"""

import logging
from typing import Type

from pydantic import BaseModel, ValidationError
from pymongo.errors import PyMongoError

from errors import InvalidInputError, backend_errors
from schemas import PricingSettings, WebsiteSettings

logger = logging.getLogger(__name__)

SETTINGS_ID = "default"
PRICING_SETTINGS_COLLECTION = "pricing_settings"
WEBSITE_SETTINGS_COLLECTION = "website_settings"


class SettingsStore:
    def __init__(self, db, collection_name: str, model: Type[BaseModel]):
        self.collection = db[collection_name]
        self.collection_name = collection_name
        self.model = model

    def defaults(self) -> BaseModel:
        return self.model()

    def get(self) -> BaseModel:
        try:
            doc = self.collection.find_one({"_id": SETTINGS_ID})
        except PyMongoError as exc:
            logger.error(f"Error fetching {self.collection_name}: {exc}")
            return self.defaults()
        if doc is None:
            return self.defaults()

        stored = self.upgrade({k: v for k, v in doc.items() if k != "_id" and v is not None})
        merged = {**self.defaults().model_dump(by_alias=True), **stored}
        try:
            return self.model.model_validate(merged)
        except ValidationError as exc:
            logger.error(f"Stored {self.collection_name} are invalid, using defaults: {exc}")
            return self.defaults()

    def upgrade(self, stored: dict) -> dict:
        return stored

    def to_document(self, settings: BaseModel) -> dict:
        # Only fields the caller set are written; the rest of the stored
        # document is left as it is.
        data = {}
        for key, value in settings.model_dump(by_alias=True, exclude_unset=True).items():
            if value is None:
                continue
            if key in self.model.OMIT_WHEN_BLANK and not str(value).strip():
                continue
            data[key] = value
        return data

    def validate(self, settings: BaseModel) -> None:
        pass

    def merged_with(self, settings: BaseModel) -> BaseModel:
        return self.get().model_copy(update=settings.model_dump(exclude_unset=True))

    def save(self, settings: BaseModel) -> BaseModel:
        self.validate(self.merged_with(settings))
        data = self.to_document(settings)
        if not data:
            return self.get()
        with backend_errors(f"save {self.collection_name.replace('_', ' ')}"):
            self.collection.update_one({"_id": SETTINGS_ID}, {"$set": data}, upsert=True)
        logger.info(f"Saved {self.collection_name} ({len(data)} fields)")
        return self.get()


class PricingSettingsStore(SettingsStore):
    def __init__(self, db):
        super().__init__(db, PRICING_SETTINGS_COLLECTION, PricingSettings)

    def upgrade(self, stored: dict) -> dict:
        # Older documents kept the percentage under "taxRate"
        legacy = stored.pop("taxRate", None)
        if legacy is not None and "taxRatePercent" not in stored:
            stored["taxRatePercent"] = legacy
        return stored

    def validate(self, settings: PricingSettings) -> None:
        if settings.minimum_rental_days > settings.maximum_rental_days:
            raise InvalidInputError(
                "Minimum rental days cannot be greater than maximum rental days"
            )


class WebsiteSettingsStore(SettingsStore):
    def __init__(self, db):
        super().__init__(db, WEBSITE_SETTINGS_COLLECTION, WebsiteSettings)
