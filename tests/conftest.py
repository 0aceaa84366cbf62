"""Shared fixtures for BuoyBot tests."""

import json

import pytest

HEADER_LINE = "#YY  MM DD hh mm WDIR WSPD GST  WVHT   DPD   APD MWD   PRES  ATMP  WTMP  DEWP  VIS PTDY  TIDE"
UNITS_LINE = "#yr  mo dy hr mn degT m/s  m/s     m   sec   sec degT   hPa  degC  degC  degC  nmi  hPa    ft"
LATEST_LINE = "2016 01 01 12 00 270  5.0  6.0   1.0    10   9.5 180 1015.0  14.0  15.0  10.0   MM   MM    MM"
OLDER_LINE = "2016 01 01 11 00 260  4.0  5.0   1.2    11   9.0 190 1015.5  14.1  15.1  10.1   MM   MM    MM"


def make_feed(*rows: str) -> bytes:
    """Build a realtime2 feed body from observation rows (newest first)."""
    lines = [HEADER_LINE, UNITS_LINE] + list(rows)
    return ("\n".join(lines) + "\n").encode("ascii")


@pytest.fixture
def sample_feed() -> bytes:
    """Canonical feed: two header lines and two observation rows."""
    return make_feed(LATEST_LINE, OLDER_LINE)


@pytest.fixture
def config_file(tmp_path):
    """Write a valid config file and return its path."""
    path = tmp_path / "config.json"
    path.write_text(json.dumps({
        "UserName": "sfbuoy",
        "ConsumerKey": "ckey",
        "ConsumerSecret": "csecret",
        "Token": "atoken",
        "TokenSecret": "asecret",
        "DatabaseFile": "buoy.db",
        "BuoyId": "46026",
    }))
    return path
