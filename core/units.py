"""Intensity unit conversions between linear ratios and decibels."""
import math


def linear_to_db(value: float) -> float:
    """Convert a linear ratio to dB; non-positive values pass through unconverted."""
    if value > 0:
        return 20.0 * math.log10(value)
    return value


def db_to_linear(value: float) -> float:
    return 10.0 ** (value / 20.0)
