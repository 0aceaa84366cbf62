#!/usr/bin/env python3
"""
BuoyBot error kinds.

Everything except PublishError is fatal: buoybot.main() logs it and exits 1.
"""


class BuoyBotError(Exception):
    """Base class for all BuoyBot failures."""


class ConfigMissing(BuoyBotError):
    """CONFIGPATH unset, config file missing/unreadable, or required key absent."""


class DatabaseConnectionError(BuoyBotError):
    """Observation store could not be opened or did not answer a ping."""


class StoreWriteError(BuoyBotError):
    """Observation insert failed."""


class FetchError(BuoyBotError):
    """Upstream NDBC feed unreachable or returned a non-2xx status."""


class MalformedFeed(BuoyBotError):
    """Observation line missing or shorter than the required field count."""


class ParseError(BuoyBotError):
    """A single observation field failed numeric or date parsing."""

    def __init__(self, field: str, value=None):
        self.field = field
        self.value = value
        super().__init__(f"Could not parse {field}: {value!r}")


class InvalidAngle(BuoyBotError):
    """Wave direction outside 0-360 degrees."""

    def __init__(self, degrees: int):
        self.degrees = degrees
        if degrees < 0:
            message = f"Degree less than zero: {degrees}"
        else:
            message = f"Degree greater than 360: {degrees}"
        super().__init__(message)


class PublishError(BuoyBotError):
    """Status update rejected or unreachable. Non-fatal."""
