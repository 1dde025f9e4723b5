import pytest
from pymongo.errors import ServerSelectionTimeoutError

from errors import InvalidInputError
from schemas import PricingSettings, WebsiteSettings
from settings_store import PricingSettingsStore, WebsiteSettingsStore


def test_missing_document_yields_defaults(db):
    assert WebsiteSettingsStore(db).get() == WebsiteSettings()
    assert PricingSettingsStore(db).get() == PricingSettings()


def test_empty_document_yields_defaults(db):
    db.website_settings.insert_one({"_id": "default"})
    assert WebsiteSettingsStore(db).get() == WebsiteSettings()


def test_partial_document_is_merged_over_defaults(db):
    db.website_settings.insert_one({"_id": "default", "websiteName": "X"})
    settings = WebsiteSettingsStore(db).get()
    assert settings.website_name == "X"
    assert settings.model_dump(exclude={"website_name"}) == WebsiteSettings().model_dump(
        exclude={"website_name"}
    )


def test_pricing_defaults():
    settings = PricingSettings()
    assert settings.insurance_rate_per_day == 25
    assert settings.delivery_flat_rate == 75
    assert (settings.minimum_rental_days, settings.maximum_rental_days) == (1, 30)
    assert settings.tax_rate_percent == 10
    assert settings.enable_insurance and settings.enable_delivery and not settings.enable_tax


def test_legacy_tax_rate_key_is_read(db):
    db.pricing_settings.insert_one({"_id": "default", "taxRate": 15, "enableTax": True})
    settings = PricingSettingsStore(db).get()
    assert settings.tax_rate_percent == 15
    assert settings.enable_tax


def test_failed_read_falls_back_to_defaults(db, monkeypatch):
    store = PricingSettingsStore(db)

    def offline(*args, **kwargs):
        raise ServerSelectionTimeoutError("connection refused")

    monkeypatch.setattr(store.collection, "find_one", offline)
    assert store.get() == PricingSettings()


def test_invalid_stored_values_fall_back_to_defaults(db):
    db.pricing_settings.insert_one({"_id": "default", "minimumRentalDays": "lots"})
    assert PricingSettingsStore(db).get() == PricingSettings()


def test_save_pricing_round_trips(db):
    store = PricingSettingsStore(db)
    saved = store.save(PricingSettings(insurance_rate_per_day=40, enable_tax=True))
    assert saved.insurance_rate_per_day == 40
    assert saved.tax_rate_percent == 10
    doc = db.pricing_settings.find_one({"_id": "default"})
    assert doc["insuranceRatePerDay"] == 40
    assert "taxRatePercent" not in doc


def test_save_pricing_rejects_min_above_max(db):
    store = PricingSettingsStore(db)
    with pytest.raises(InvalidInputError, match="cannot be greater"):
        store.save(PricingSettings(minimum_rental_days=10, maximum_rental_days=5))
    assert db.pricing_settings.find_one({"_id": "default"}) is None


def test_save_website_omits_blank_optional_fields(db):
    store = WebsiteSettingsStore(db)
    store.save(WebsiteSettings(website_name="Drift Rentals", facebook_url="  ", x_url=None, hero_image=""))
    doc = db.website_settings.find_one({"_id": "default"})
    assert doc["websiteName"] == "Drift Rentals"
    assert "facebookUrl" not in doc
    assert "xUrl" not in doc
    assert doc["heroImage"] == ""


def test_save_website_merges_with_existing(db):
    db.website_settings.insert_one({"_id": "default", "instagramUrl": "https://instagram.com/drift"})
    store = WebsiteSettingsStore(db)
    saved = store.save(WebsiteSettings(phone="+61 400 000 000"))
    assert saved.phone == "+61 400 000 000"
    assert saved.instagram_url == "https://instagram.com/drift"


def test_partial_website_save_keeps_stored_values(db):
    store = WebsiteSettingsStore(db)
    store.save(WebsiteSettings(phone="+61 400 111 222", hero_title="Drive"))
    saved = store.save(WebsiteSettings(website_name="X"))
    assert saved.website_name == "X"
    assert saved.phone == "+61 400 111 222"
    assert saved.hero_title == "Drive"


def test_partial_pricing_save_keeps_stored_values(db):
    store = PricingSettingsStore(db)
    store.save(PricingSettings(minimum_rental_days=5, maximum_rental_days=20, enable_tax=True))
    saved = store.save(PricingSettings(maximum_rental_days=10))
    assert (saved.minimum_rental_days, saved.maximum_rental_days) == (5, 10)
    assert saved.enable_tax


def test_pricing_bounds_checked_against_stored_values(db):
    store = PricingSettingsStore(db)
    store.save(PricingSettings(minimum_rental_days=5))
    with pytest.raises(InvalidInputError, match="cannot be greater"):
        store.save(PricingSettings(maximum_rental_days=3))
    assert store.get().maximum_rental_days == 30


def test_empty_save_changes_nothing(db):
    store = WebsiteSettingsStore(db)
    store.save(WebsiteSettings(phone="+61 400 111 222"))
    assert store.save(WebsiteSettings()).phone == "+61 400 111 222"


def test_home_page_content_is_saved(db):
    store = WebsiteSettingsStore(db)
    assert store.get().testimonials_title == "What Our Customers Say"
    saved = store.save(WebsiteSettings(testimonials_title="Reviews", stats1_value="2000+"))
    assert saved.testimonials_title == "Reviews"
    assert saved.stats1_value == "2000+"
    doc = db.website_settings.find_one({"_id": "default"})
    assert doc["testimonialsTitle"] == "Reviews"
    assert doc["stats1Value"] == "2000+"
