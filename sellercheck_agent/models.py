from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field


class SellerFlag(str, Enum):
    LOW_ACTIVE_ITEMS = "low_active_items"
    LOW_SOLD_ITEMS = "low_sold_items"
    HIGH_CHEAP_ITEMS = "high_cheap_items"
    LOW_IMAGES = "low_images"
    SHORT_DESCRIPTIONS = "short_descriptions"
    LOW_RETURNS = "low_returns"
    LOW_RETURN_PAYMENT = "low_return_payment"
    LOW_FREE_POSTAGE = "low_free_postage"
    LOW_FEEDBACK_COUNT = "low_feedback_count"
    POOR_FEEDBACK = "poor_feedback"
    HIGH_DUPLICATE_FEEDBACK = "high_duplicate_feedback"
    NEW_ACCOUNT = "new_account"


class TimeSince(BaseModel):
    # Fixed-size units (30-day months, 360-day years), not calendar-exact.
    seconds: int = 0
    minutes: int = 0
    hours: int = 0
    days: int = 0
    months: int = 0
    years: int = 0


class SellerStats(BaseModel):
    # Only the first results page is sampled (at most 60 listings by default).
    active_items: int = 0
    sold_items: int = 0

    cheap_items_percentage: float = 0.0
    average_image_count: float = 0.0
    average_description_length: float = 0.0

    accept_returns_percentage: float = 0.0
    seller_pays_returns_percentage: float = 0.0
    free_postage_percentage: float = 0.0

    feedback_count: int = 0
    positive_feedback_percentage: float = 0.0
    duplicate_feedback_percentage: float = 0.0

    time_since_creation: TimeSince | None = None


class ScoreResult(BaseModel):
    score: float
    flags: list[SellerFlag]


class RateSellerRequest(BaseModel):
    username: str = Field(..., min_length=1, max_length=64, pattern=r"^[A-Za-z0-9._*\-]+$")


class Assessment(BaseModel):
    username: str
    score: float
    flags: list[SellerFlag]
    stats: SellerStats

    # metadata
    analyzed_at: str
    timings_ms: dict[str, int]
