#!/usr/bin/env python3
"""
NDBC Realtime Observation Parser

Turns the raw realtime2 standard meteorological feed for one station into a
single Observation in BuoyBot's units.

Feed layout (whitespace-delimited, newest observation first):

    #YY  MM DD hh mm WDIR WSPD GST  WVHT   DPD   APD MWD   PRES  ATMP  WTMP  DEWP  VIS PTDY  TIDE
    #yr  mo dy hr mn degT m/s  m/s     m   sec   sec degT   hPa  degC  degC  degC  nmi  hPa    ft
    2016 01 01 12 00 270  5.0  6.0   1.0    10   9.5 180 1015.0  14.0  15.0  10.0   MM   MM    MM

Fields used: 0-4 timestamp (UTC), 8 WVHT, 9 DPD, 10 APD, 11 MWD, 14 WTMP.
"""

import math
from dataclasses import dataclass
from datetime import datetime, timezone
from zoneinfo import ZoneInfo

from buoy_errors import MalformedFeed, ParseError
from unit_conversions import celsius_to_fahrenheit, degrees_to_compass, meters_to_feet

STATION_TZ = ZoneInfo("America/Los_Angeles")

OBSERVATION_LINE = 2          # Two header lines precede the newest row
LEGACY_SLICE = slice(188, 281)  # Historical byte range of the newest row
MIN_TOKENS = 15

FEED_TIME_FORMAT = "%Y %m %d %H %M"

# Token index for each consumed field
IDX_WAVE_HEIGHT = 8
IDX_DOMINANT_PERIOD = 9
IDX_AVERAGE_PERIOD = 10
IDX_WAVE_DIRECTION = 11
IDX_WATER_TEMP = 14


@dataclass(frozen=True)
class Observation:
    """Latest buoy observation, converted to reporting units."""
    timestamp: datetime
    significant_wave_height_ft: float
    dominant_wave_period_s: int
    average_period_s: float
    mean_wave_direction: str
    water_temperature_f: float


def extract_tokens(raw: bytes, legacy_offsets: bool = False) -> list:
    """Isolate the newest observation row and split it into tokens.

    Args:
        raw: Full body of the realtime2 feed
        legacy_offsets: Slice the fixed historical byte range instead of
            locating the third line

    Returns:
        List of whitespace-delimited tokens (at least MIN_TOKENS long)

    Raises:
        MalformedFeed: If the row is absent, undecodable or too short
    """
    if legacy_offsets:
        if len(raw) < LEGACY_SLICE.stop:
            raise MalformedFeed(
                f"Feed is {len(raw)} bytes, expected at least {LEGACY_SLICE.stop}"
            )
        chunk = raw[LEGACY_SLICE]
    else:
        lines = raw.splitlines()
        if len(lines) <= OBSERVATION_LINE:
            raise MalformedFeed(f"Feed has {len(lines)} lines, no observation row")
        chunk = lines[OBSERVATION_LINE]

    try:
        text = chunk.decode("ascii")
    except UnicodeDecodeError as e:
        raise MalformedFeed(f"Observation row is not ASCII: {e}") from e

    tokens = text.split()
    if len(tokens) < MIN_TOKENS:
        raise MalformedFeed(
            f"Observation row has {len(tokens)} fields, expected at least {MIN_TOKENS}"
        )
    return tokens


def parse_timestamp(tokens: list) -> datetime:
    """Parse YY MM DD hh mm (UTC) and convert to the station's civil zone."""
    raw_time = " ".join(tokens[0:5])
    try:
        parsed = datetime.strptime(raw_time, FEED_TIME_FORMAT)
    except ValueError as e:
        raise ParseError("timestamp", raw_time) from e
    return parsed.replace(tzinfo=timezone.utc).astimezone(STATION_TZ)


def _parse_number(tokens: list, index: int, field: str, kind):
    value = tokens[index]
    # int() and float() accept digit-group underscores
    if "_" in value:
        raise ParseError(field, value)
    try:
        result = kind(value)
    except ValueError as e:
        raise ParseError(field, value) from e
    if not math.isfinite(result):
        raise ParseError(field, value)
    return result


def build_observation(tokens: list) -> Observation:
    """Assemble an Observation from a tokenized feed row.

    Raises:
        MalformedFeed: If fewer than MIN_TOKENS tokens are given
        ParseError: If any consumed field is not a valid number/date
        InvalidAngle: If the wave direction is outside 0-360
    """
    if len(tokens) < MIN_TOKENS:
        raise MalformedFeed(
            f"Observation row has {len(tokens)} fields, expected at least {MIN_TOKENS}"
        )

    timestamp = parse_timestamp(tokens)
    height_m = _parse_number(tokens, IDX_WAVE_HEIGHT, "significant_wave_height", float)
    dominant_period = _parse_number(tokens, IDX_DOMINANT_PERIOD, "dominant_wave_period", int)
    average_period = _parse_number(tokens, IDX_AVERAGE_PERIOD, "average_period", float)
    direction_deg = _parse_number(tokens, IDX_WAVE_DIRECTION, "mean_wave_direction", int)
    water_temp_c = _parse_number(tokens, IDX_WATER_TEMP, "water_temperature", float)

    return Observation(
        timestamp=timestamp,
        significant_wave_height_ft=meters_to_feet(height_m),
        dominant_wave_period_s=dominant_period,
        average_period_s=average_period,
        mean_wave_direction=degrees_to_compass(direction_deg),
        water_temperature_f=celsius_to_fahrenheit(water_temp_c),
    )


def parse_feed(raw: bytes, legacy_offsets: bool = False) -> Observation:
    """Extract and build the newest Observation from a raw feed body."""
    return build_observation(extract_tokens(raw, legacy_offsets=legacy_offsets))
