#!/usr/bin/env python3
"""
Unit conversions for NDBC buoy fields.

NDBC reports SI units: wave height in meters, water temperature in Celsius,
wave direction in whole degrees true. BuoyBot reports feet, Fahrenheit and
16-point compass labels.
"""

import math

from buoy_errors import InvalidAngle

FEET_PER_METER = 3.28084

# Inclusive upper bound (degrees) -> compass label, checked in order
COMPASS_BUCKETS = (
    (11, "N"),
    (34, "NNE"),
    (56, "NE"),
    (79, "ENE"),
    (101, "E"),
    (124, "ESE"),
    (146, "SE"),
    (169, "SSE"),
    (191, "S"),
    (214, "SSW"),
    (236, "SW"),
    (259, "WSW"),
    (281, "W"),
    (304, "WNW"),
    (326, "NW"),
    (349, "NNW"),
    (360, "N"),
)

COMPASS_LABELS = frozenset(label for _, label in COMPASS_BUCKETS)


def meters_to_feet(meters: float) -> float:
    """Convert meters to feet. No rounding."""
    return meters * FEET_PER_METER


def round_plus(value: float, places: int) -> float:
    """Round half-up to the given number of decimal places.

    Unlike the builtin round(), ties always go up: round_plus(0.25, 1) == 0.3.
    """
    shift = math.pow(10, places)
    return math.floor(value * shift + 0.5) / shift


def celsius_to_fahrenheit(celsius: float) -> float:
    """Convert Celsius to Fahrenheit, rounded half-up to 1 decimal."""
    return round_plus(celsius * 9 / 5 + 32, 1)


def degrees_to_compass(degrees: int) -> str:
    """Map a whole-degree azimuth to one of the compass labels.

    Args:
        degrees: Direction in degrees true, 0-360 inclusive

    Returns:
        Compass label (N, NNE, ... NNW)

    Raises:
        InvalidAngle: If degrees is negative or greater than 360
    """
    if degrees < 0:
        raise InvalidAngle(degrees)
    for upper, label in COMPASS_BUCKETS:
        if degrees <= upper:
            return label
    raise InvalidAngle(degrees)
