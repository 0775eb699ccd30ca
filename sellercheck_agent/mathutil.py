from __future__ import annotations


def clamp(value: float, lower: float, upper: float) -> float:
    return max(lower, min(upper, value))


def safe_div(numerator: float, denominator: float) -> float:
    if not denominator:
        return 0.0
    return numerator / denominator


def percentage(part: float, whole: float) -> float:
    """`part / whole * 100`, or 0 when `whole` is zero."""
    return safe_div(part, whole) * 100
