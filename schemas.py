"""
Database Schemas

Car rental booking schemas using Pydantic models.
Documents are stored with camelCase keys; models expose snake_case attributes.
- Car -> "cars"
- Booking -> "bookings"
- PricingSettings -> "pricing_settings/default"
- WebsiteSettings -> "website_settings/default"
"""

from typing import ClassVar, List, Literal, Optional, get_args
from urllib.parse import urlparse

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def is_url_or_path(value: str) -> bool:
    """Empty, an absolute URL, or a relative path."""
    if not value or not value.strip():
        return True
    if value.startswith(("/", "./", "../")):
        return True
    parsed = urlparse(value)
    return bool(parsed.scheme) and bool(parsed.netloc or parsed.path)


class CarInput(CamelModel):
    """
    Fields an admin submits when creating or editing a car.
    The id and slug are assigned by the repository.
    """
    name: str = Field(..., min_length=1, description="Display name, e.g., Toyota Supra")
    category: str = Field(..., description="Catalog category, e.g., Sports")
    description: str = Field(..., description="Marketing description")
    image: str = Field(..., description="Primary image URL or relative path")
    images: List[str] = Field(default_factory=list, description="Gallery image URLs")
    price_per_day: int = Field(..., gt=0, description="Daily rental price")
    seats: int = Field(..., ge=1)
    transmission: str
    fuel_type: str
    luggage: int = Field(..., ge=0)
    doors: int = Field(..., ge=1)
    year: int = Field(..., ge=1900, le=2100)
    has_gps: bool = Field(False, alias="hasGPS")
    has_bluetooth: bool = False
    has_ac: bool = Field(True, alias="hasAC")
    has_usb: bool = Field(False, alias="hasUSB")
    available: bool = True

    @field_validator("images", mode="before")
    @classmethod
    def ensure_list(cls, v):
        return v if isinstance(v, list) else []

    @field_validator("image")
    @classmethod
    def check_image(cls, v: str) -> str:
        if not is_url_or_path(v):
            raise ValueError("Must be a valid URL or relative path (starting with /)")
        return v

    @field_validator("images")
    @classmethod
    def check_images(cls, v: List[str]) -> List[str]:
        for item in v:
            if not is_url_or_path(item):
                raise ValueError("Must be a valid URL or relative path (starting with /)")
        return v


class Car(CarInput):
    """
    Vehicles listed in the catalog
    Collection: "cars"
    """
    id: str
    slug: str


BookingStatus = Literal["pending", "confirmed", "completed", "cancelled"]
BOOKING_STATUSES = get_args(BookingStatus)


class BookingInput(CamelModel):
    car_id: str = Field(..., min_length=1, description="Car ID is required")
    car_name: str = Field(..., min_length=1, description="Car name snapshot")
    start_date: str = Field(..., min_length=1, description="Pick-up date, YYYY-MM-DD")
    end_date: str = Field(..., min_length=1, description="Return date, YYYY-MM-DD")
    first_name: str = Field(..., min_length=1)
    last_name: str = Field(..., min_length=1)
    email: EmailStr
    phone: str = Field(..., min_length=1)
    address: str = ""
    notes: str = ""
    total_price: float = Field(0, ge=0)

    @field_validator("address", "notes", mode="before")
    @classmethod
    def blank_if_missing(cls, v):
        return v or ""


class Booking(BookingInput):
    """
    Booking requests made through the inquiry form
    Collection: "bookings"
    """
    id: str
    status: BookingStatus = "pending"
    created_at: str


class BookingRequest(BookingInput):
    """Customer submission; the price is recomputed on the server."""
    car_name: str = ""
    include_insurance: bool = False
    include_delivery: bool = False


class StatusUpdate(CamelModel):
    status: BookingStatus


class QuoteRequest(CamelModel):
    car_id: str = Field(..., min_length=1)
    start_date: str
    end_date: str
    include_insurance: bool = False
    include_delivery: bool = False


class PriceQuote(CamelModel):
    days: int
    requested_days: int
    base: float
    insurance: float = 0
    delivery: float = 0
    subtotal: float
    tax: float = 0
    total: float
    valid: bool


class PricingSettings(CamelModel):
    """
    Site-wide pricing configuration
    Document: "pricing_settings/default"
    """
    insurance_rate_per_day: float = Field(25, ge=0)
    delivery_flat_rate: float = Field(75, ge=0)
    minimum_rental_days: int = Field(1, ge=1)
    maximum_rental_days: int = Field(30, ge=1)
    # as percentage, e.g. 10 for 10%
    tax_rate_percent: float = Field(10, ge=0)
    enable_insurance: bool = True
    enable_delivery: bool = True
    enable_tax: bool = False

    OMIT_WHEN_BLANK: ClassVar[frozenset] = frozenset()


DEFAULT_TERMS = """## Agreement to Terms
By accessing our website and using our car rental services, you agree to be bound by these Terms and Conditions and all applicable laws and regulations.

## 1. Use License
Permission is granted to temporarily view the materials on our website for personal, non-commercial transitory viewing only.

## 2. Disclaimer
The materials on our website are provided on an 'as is' basis. We make no warranties, expressed or implied.

## 3. Limitations
In no event shall we or our suppliers be liable for any damages arising out of the use or inability to use the materials on our website.

## 4. Accuracy of Materials
The materials appearing on our website could include technical, typographical, or photographic errors. We may make changes to them at any time without notice.

## 5. Governing Law
These terms and conditions are governed by and construed in accordance with the laws of the location of our headquarters."""


class WebsiteSettings(CamelModel):
    """
    Branding, contact details, hero copy and legal text
    Document: "website_settings/default"
    """
    website_name: str = "Premium Car Rentals Australia"
    logo: str = ""
    favicon: str = "/favicon.png"
    company_name: str = "Premium Car Rentals Australia"
    email: str = "info@premiumcarrentals.com.au"
    phone: str = "+61 2 9999 8888"
    address: str = "123 Premium Street, Sydney, NSW 2000, Australia"
    description: str = (
        "Australia's premier car rental service offering luxury vehicles, premium sedans, "
        "SUVs, and sports cars."
    )
    facebook_url: Optional[str] = ""
    x_url: Optional[str] = ""
    instagram_url: Optional[str] = ""
    linkedin_url: Optional[str] = ""
    meta_description: Optional[str] = (
        "Premium car rental in Australia. Choose from luxury sedans, SUVs, sports cars and more."
    )
    meta_keywords: Optional[str] = "car rental Australia, luxury car hire, premium car rental"

    hero_title: Optional[str] = "Premium Car Rentals Australia"
    hero_subtitle: Optional[str] = (
        "Experience luxury and performance with Australia's finest collection of premium vehicles."
    )
    hero_image: Optional[str] = ""
    hero_button_text: Optional[str] = "Browse Our Fleet"
    hero_button_link: Optional[str] = "/cars"
    hero_learn_more_text: Optional[str] = "Learn More"
    hero_learn_more_link: Optional[str] = "#features"

    stats1_value: Optional[str] = "1000+"
    stats1_label: Optional[str] = "Happy Customers"
    stats2_value: Optional[str] = "50+"
    stats2_label: Optional[str] = "Premium Vehicles"
    stats3_value: Optional[str] = "5"
    stats3_label: Optional[str] = "Locations"
    stats4_value: Optional[str] = "24/7"
    stats4_label: Optional[str] = "Support"

    featured_title: Optional[str] = "Featured Vehicles"
    featured_subtitle: Optional[str] = "Discover our most popular luxury and performance cars"

    how_it_works_title: Optional[str] = "How It Works"
    how_it_works_subtitle: Optional[str] = "Renting a car has never been easier"
    how_it_works_step1_title: Optional[str] = "Choose Your Car"
    how_it_works_step1_description: Optional[str] = (
        "Browse our extensive fleet and select the perfect vehicle for your needs"
    )
    how_it_works_step2_title: Optional[str] = "Book Online"
    how_it_works_step2_description: Optional[str] = (
        "Complete your reservation quickly and securely through our platform"
    )
    how_it_works_step3_title: Optional[str] = "Hit the Road"
    how_it_works_step3_description: Optional[str] = (
        "Pick up your vehicle and enjoy your journey with confidence"
    )

    testimonials_title: Optional[str] = "What Our Customers Say"
    testimonials_subtitle: Optional[str] = "Hear from those who have experienced our premium service"
    testimonial1_name: Optional[str] = "James Davidson"
    testimonial1_role: Optional[str] = "Business Executive"
    testimonial1_content: Optional[str] = (
        "Outstanding service! The Tesla Model 3 was in perfect condition, and the booking "
        "process was seamless. Premium Car Rentals Australia made my business trip "
        "incredibly convenient."
    )
    testimonial2_name: Optional[str] = "Sarah Martinez"
    testimonial2_role: Optional[str] = "Family Traveler"
    testimonial2_content: Optional[str] = (
        "We rented the BMW X5 for our family vacation and it was perfect! Spacious, "
        "comfortable, and the customer support was fantastic. Highly recommend!"
    )

    cta_title: Optional[str] = "Ready to Start Your Journey?"
    cta_subtitle: Optional[str] = (
        "Book your premium vehicle today and experience the road like never before"
    )
    cta_button_text: Optional[str] = "Book Now"
    cta_button_link: Optional[str] = "/cars"

    terms_and_conditions: Optional[str] = DEFAULT_TERMS

    # Optional keys that are left out of a save when blank
    OMIT_WHEN_BLANK: ClassVar[frozenset] = frozenset({
        "facebookUrl",
        "xUrl",
        "instagramUrl",
        "linkedinUrl",
        "metaDescription",
        "metaKeywords",
    })


class UploadedImage(BaseModel):
    url: str
    filename: str


class UploadedImages(BaseModel):
    urls: List[UploadedImage]


class FleetStats(CamelModel):
    total: int
    available: int
    booked: int
    avg_price: int


class BookingStats(CamelModel):
    total: int
    pending: int
    confirmed: int
    completed: int
    cancelled: int


class CarAvailability(CamelModel):
    car_id: str
    booked_dates: List[str]
