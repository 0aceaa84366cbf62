#!/usr/bin/env python3
"""
BuoyBot configuration.

Credentials, database file and station id live in a JSON file whose path is
given by the CONFIGPATH environment variable. See configexample.json.
"""

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from buoy_errors import ConfigMissing

CONFIG_ENV_VAR = "CONFIGPATH"

# JSON key -> Config attribute
CONFIG_KEYS = {
    "UserName": "user_name",
    "ConsumerKey": "consumer_key",
    "ConsumerSecret": "consumer_secret",
    "Token": "token",
    "TokenSecret": "token_secret",
    "DatabaseFile": "database_file",
    "BuoyId": "buoy_id",
}

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Config:
    """Publishing credentials, store location and target station."""
    user_name: str
    consumer_key: str
    consumer_secret: str
    token: str
    token_secret: str
    database_file: Path
    buoy_id: str


def get_config_path(path: Optional[str] = None) -> Path:
    """Resolve the config file location from an explicit path or CONFIGPATH."""
    if path:
        return Path(path)
    env_path = os.environ.get(CONFIG_ENV_VAR, "").strip()
    if not env_path:
        raise ConfigMissing(f"{CONFIG_ENV_VAR} environment variable not specified")
    return Path(env_path)


def load_config(path: Optional[str] = None) -> Config:
    """Load and validate the BuoyBot config file.

    Args:
        path: Optional explicit path; falls back to $CONFIGPATH

    Returns:
        Config

    Raises:
        ConfigMissing: If the path is unset, the file is unreadable or not
            JSON, or a required key is missing
    """
    config_path = get_config_path(path)

    try:
        with open(config_path) as f:
            data = json.load(f)
    except OSError as e:
        raise ConfigMissing(f"Error loading {config_path}: {e}") from e
    except json.JSONDecodeError as e:
        raise ConfigMissing(f"Error parsing {config_path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigMissing(f"Error parsing {config_path}: expected a JSON object")

    missing = [key for key in CONFIG_KEYS if key not in data]
    if missing:
        raise ConfigMissing(f"{config_path} is missing keys: {', '.join(missing)}")

    values = {attr: str(data[key]) for key, attr in CONFIG_KEYS.items()}

    # Relative database paths are relative to the config file
    db_file = Path(values["database_file"])
    if not db_file.is_absolute():
        db_file = config_path.parent / db_file
    values["database_file"] = db_file

    logger.debug("Loaded config from %s (station %s)", config_path, values["buoy_id"])
    return Config(**values)
