#!/usr/bin/env python3
"""
Observation summary formatting and status publishing.
"""

import logging
from datetime import datetime

import requests
from requests_oauthlib import OAuth1

from buoy_errors import PublishError

STATUS_URL = "https://api.twitter.com/2/tweets"
DEFAULT_TIMEOUT = 30

# Local (US/Pacific) hours at which a run posts its summary
PUBLISH_HOURS = (5, 7, 9, 11, 13, 16, 18, 20)

# RFC 822 layout: "02 Jan 06 15:04 MST"
RFC822_FORMAT = "%d %b %y %H:%M %Z"

logger = logging.getLogger(__name__)


def format_observation(observation) -> str:
    """Render the three-line summary posted for an observation."""
    return (
        f"{observation.timestamp.strftime(RFC822_FORMAT)}\n"
        f"Swell: {observation.significant_wave_height_ft:.1f}ft at "
        f"{observation.dominant_wave_period_s} sec from {observation.mean_wave_direction}\n"
        f"Water: {observation.water_temperature_f}F"
    )


def should_publish(now: datetime) -> bool:
    """Return True if `now` falls in one of the publish hours."""
    return now.hour in PUBLISH_HOURS


def post_status(config, text: str, timeout: int = DEFAULT_TIMEOUT) -> dict:
    """Post `text` as a public status update.

    Signs the request with OAuth 1.0a user context using the consumer and
    access token credentials from config.

    Returns:
        The created post as returned by the API ("data" object)

    Raises:
        PublishError: If the request fails or the API rejects the post
    """
    auth = OAuth1(
        config.consumer_key,
        client_secret=config.consumer_secret,
        resource_owner_key=config.token,
        resource_owner_secret=config.token_secret,
    )
    try:
        response = requests.post(STATUS_URL, json={"text": text}, auth=auth, timeout=timeout)
    except requests.exceptions.RequestException as e:
        raise PublishError(f"Status update failed: {e}") from e

    if not response.ok:
        raise PublishError(
            f"Status update rejected: {response.status_code} {response.text[:200]}"
        )

    try:
        return response.json().get("data", {})
    except ValueError:
        return {}


def publish_observation(config, text: str) -> bool:
    """Post a formatted observation; failures are logged, never raised.

    Returns:
        True if the post was accepted
    """
    logger.info("Preparing to post observation...")
    try:
        post = post_status(config, text)
    except PublishError as e:
        logger.warning("Update error: %s", e)
        return False

    logger.info("Status posted (id %s):\n%s", post.get("id", "unknown"), post.get("text", text))
    return True
