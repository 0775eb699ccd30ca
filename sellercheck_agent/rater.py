from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

from .mathutil import clamp, safe_div
from .models import ScoreResult, SellerFlag, SellerStats


@dataclass(frozen=True)
class Factor:
    """Scoring metadata for one statistic.

    A positive weight raises the score as the value grows, a negative weight
    lowers it. `threshold` is the percentage of `ceiling` past which the flag
    is raised: below it for positive factors, above it for negative ones.
    """

    name: str
    weight: float
    ceiling: float
    flag: SellerFlag
    read: Callable[[SellerStats], float | None]
    threshold: float | None = None

    @property
    def is_positive(self) -> bool:
        return self.weight > 0

    @property
    def flag_threshold(self) -> float:
        if self.threshold is not None:
            return self.threshold
        return 20.0 if self.is_positive else 65.0


def _account_age_days(stats: SellerStats) -> float | None:
    if stats.time_since_creation is None:
        return None
    return stats.time_since_creation.days


FACTORS: tuple[Factor, ...] = (
    Factor("active_items", 1, 60, SellerFlag.LOW_ACTIVE_ITEMS, lambda s: s.active_items),
    Factor("sold_items", 8, 1000, SellerFlag.LOW_SOLD_ITEMS, lambda s: s.sold_items),
    Factor("cheap_items_percentage", -3, 100, SellerFlag.HIGH_CHEAP_ITEMS, lambda s: s.cheap_items_percentage),
    # Listings carry up to 24 images, but anything past 7 is plenty.
    Factor("average_image_count", 2, 7, SellerFlag.LOW_IMAGES, lambda s: s.average_image_count),
    Factor("average_description_length", 1, 100, SellerFlag.SHORT_DESCRIPTIONS, lambda s: s.average_description_length),
    Factor("accept_returns_percentage", 10, 100, SellerFlag.LOW_RETURNS, lambda s: s.accept_returns_percentage),
    Factor(
        "seller_pays_returns_percentage", 3, 100, SellerFlag.LOW_RETURN_PAYMENT,
        lambda s: s.seller_pays_returns_percentage,
    ),
    Factor("free_postage_percentage", 3, 100, SellerFlag.LOW_FREE_POSTAGE, lambda s: s.free_postage_percentage),
    Factor("feedback_count", 20, 100, SellerFlag.LOW_FEEDBACK_COUNT, lambda s: s.feedback_count),
    Factor(
        "positive_feedback_percentage", 10, 100, SellerFlag.POOR_FEEDBACK,
        lambda s: s.positive_feedback_percentage,
    ),
    Factor(
        "duplicate_feedback_percentage", -10, 100, SellerFlag.HIGH_DUPLICATE_FEEDBACK,
        lambda s: s.duplicate_feedback_percentage, threshold=10.0,
    ),
    Factor("time_since_creation", 7, 365 * 2, SellerFlag.NEW_ACCOUNT, _account_age_days),
)


def weighted_value(factor: Factor, value: float) -> float:
    """Contribution of one factor; never exceeds its weight in magnitude."""
    normalized = value / factor.ceiling
    if factor.is_positive:
        return clamp(normalized * factor.weight, 0, factor.weight)
    return clamp(normalized * factor.weight, factor.weight, 0)


def is_flagged(factor: Factor, value: float) -> bool:
    percent = value * 100 / factor.ceiling
    if factor.is_positive:
        return percent < factor.flag_threshold
    return percent > factor.flag_threshold


def rate_seller(stats: SellerStats, factors: tuple[Factor, ...] = FACTORS) -> ScoreResult:
    positive_total = 0.0
    negative_total = 0.0
    positive_max = 0.0
    negative_min = 0.0

    flags: list[SellerFlag] = []

    for factor in factors:
        value = factor.read(stats)
        if value is None:
            # Unknown account age: the factor is left out of both the score and its ceiling.
            continue

        if factor.is_positive:
            positive_total += weighted_value(factor, value)
            positive_max += factor.weight
        else:
            negative_total += weighted_value(factor, value)
            negative_min += factor.weight

        if is_flagged(factor, value):
            flags.append(factor.flag)

    positive_score = safe_div(positive_total, positive_max) * 100
    negative_score = safe_div(negative_total, negative_min) * 100

    return ScoreResult(score=clamp(positive_score - negative_score, 0, 100), flags=flags)
