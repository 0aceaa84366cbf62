#!/usr/bin/env python3
"""
NDBC realtime2 feed client.

One GET per run, no retries and no caching.
"""

import logging

import requests

from buoy_errors import FetchError

NDBC_URL_FMT = "https://www.ndbc.noaa.gov/data/realtime2/{station}.txt"
DEFAULT_TIMEOUT = 30

logger = logging.getLogger(__name__)


def feed_url(station_id: str) -> str:
    """Return the realtime2 standard meteorological URL for a station."""
    return NDBC_URL_FMT.format(station=station_id)


def fetch_feed(station_id: str, session=None, timeout: int = DEFAULT_TIMEOUT) -> bytes:
    """Download the raw realtime2 feed for a station.

    Args:
        station_id: NDBC station identifier (e.g. "46026")
        session: Optional requests.Session to issue the request with
        timeout: Request timeout in seconds

    Returns:
        Response body as bytes

    Raises:
        FetchError: On connection failure, timeout or non-2xx status
    """
    url = feed_url(station_id)
    http = session or requests
    logger.info("Fetching NDBC feed: %s", url)

    try:
        response = http.get(url, timeout=timeout)
        response.raise_for_status()
    except requests.exceptions.RequestException as e:
        raise FetchError(f"Error fetching {url}: {e}") from e

    logger.debug("Fetched %d bytes from %s", len(response.content), url)
    return response.content
