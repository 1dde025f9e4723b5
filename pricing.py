"""
Rental price estimation.

A quote is days * daily rate, plus optional insurance (per day), delivery
(flat) and tax on the subtotal, each gated by the admin's pricing toggles.
"""

import math
from datetime import date, datetime, timezone
from typing import Union

from errors import InvalidInputError
from schemas import PriceQuote, PricingSettings

MS_PER_DAY = 1000 * 60 * 60 * 24

DateLike = Union[str, date, datetime]


def to_datetime(value: DateLike) -> datetime:
    """Parse a calendar date or timestamp; naive values are taken as UTC."""
    if isinstance(value, str):
        text = value.strip()
        if not text:
            raise InvalidInputError("Date is required")
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            value = datetime.fromisoformat(text)
        except ValueError:
            raise InvalidInputError(f'Invalid date "{value}"')
    elif not isinstance(value, datetime):
        value = datetime(value.year, value.month, value.day)
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value


def to_date(value: DateLike) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return to_datetime(value).date()


def rental_days(start: DateLike, end: DateLike) -> int:
    """Whole days between start and end, rounded up; 0 if end is not after start."""
    start_dt = to_datetime(start)
    end_dt = to_datetime(end)
    if end_dt <= start_dt:
        return 0
    diff_ms = (end_dt - start_dt).total_seconds() * 1000
    return math.ceil(diff_ms / MS_PER_DAY)


def clamp_days(days: int, settings: PricingSettings) -> int:
    if days <= 0:
        return 0
    return max(settings.minimum_rental_days, min(days, settings.maximum_rental_days))


def check_rental_length(days: int, settings: PricingSettings) -> None:
    if days < settings.minimum_rental_days:
        raise InvalidInputError(
            f"Minimum rental period is {settings.minimum_rental_days} "
            f"day{'s' if settings.minimum_rental_days != 1 else ''}."
        )
    if days > settings.maximum_rental_days:
        raise InvalidInputError(
            f"Maximum rental period is {settings.maximum_rental_days} days."
        )


def quote_for_days(
    price_per_day: int,
    days: int,
    settings: PricingSettings,
    include_insurance: bool = False,
    include_delivery: bool = False,
    requested_days: int = None,
) -> PriceQuote:
    if requested_days is None:
        requested_days = days
    if days <= 0:
        return PriceQuote(
            days=0, requested_days=requested_days, base=0, subtotal=0, total=0, valid=False
        )

    base = price_per_day * days
    insurance = (
        settings.insurance_rate_per_day * days
        if settings.enable_insurance and include_insurance
        else 0
    )
    delivery = (
        settings.delivery_flat_rate
        if settings.enable_delivery and include_delivery
        else 0
    )
    subtotal = base + insurance + delivery
    tax = subtotal * settings.tax_rate_percent / 100 if settings.enable_tax else 0

    return PriceQuote(
        days=days,
        requested_days=requested_days,
        base=base,
        insurance=insurance,
        delivery=delivery,
        subtotal=subtotal,
        tax=tax,
        total=subtotal + tax,
        valid=True,
    )


def estimate_price(
    price_per_day: int,
    start: DateLike,
    end: DateLike,
    settings: PricingSettings = None,
    include_insurance: bool = False,
    include_delivery: bool = False,
    clamp: bool = False,
) -> PriceQuote:
    """
    Quote a rental of ``[start, end)``.

    With ``clamp`` the day count is pulled into the configured min/max
    rental bounds (the quick estimator); without it the requested range is
    priced as-is and the caller validates the length.
    """
    settings = settings or PricingSettings()
    requested = rental_days(start, end)
    days = clamp_days(requested, settings) if clamp else requested
    return quote_for_days(
        price_per_day,
        days,
        settings,
        include_insurance=include_insurance,
        include_delivery=include_delivery,
        requested_days=requested,
    )
