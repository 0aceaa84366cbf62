#!/usr/bin/env python3
"""
BuoyBot

Obtains the latest observation for an NDBC station, saves it to the
observation database, and posts a summary at the scheduled hours.
Runs hourly via cron.

Usage:
    CONFIGPATH=config.json python buoybot.py
    python buoybot.py --config config.json --dry-run   # Fetch and print only
    python buoybot.py --config config.json --init-db   # Create tables and exit
"""

import argparse
import logging
import sqlite3
import sys
from datetime import datetime
from typing import Optional
from zoneinfo import ZoneInfo

import db_utils
import ndbc_feed
from bot_config import load_config
from buoy_errors import BuoyBotError, StoreWriteError
from buoy_parser import parse_feed
from publisher import format_observation, publish_observation, should_publish
from script_metrics import ScriptMetrics, init_metrics_tables

SCRIPT_NAME = "buoybot"

# Publish hours are evaluated in this zone
PUBLISH_TZ = ZoneInfo("US/Pacific")

logger = logging.getLogger(__name__)


def setup_logging(log_file: Optional[str] = None, verbose: bool = False):
    """Configure root logging to stderr and, optionally, a log file."""
    handlers = [logging.StreamHandler()]
    if log_file:
        handlers.append(logging.FileHandler(log_file))
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
        handlers=handlers
    )


def init_database(config) -> None:
    """Create the observation and metrics tables."""
    with db_utils.get_db_connection(config.database_file) as conn:
        db_utils.ping(conn)
        db_utils.init_tables(conn)
        try:
            init_metrics_tables(conn)
        except sqlite3.Error as e:
            raise StoreWriteError(f"Error creating metrics tables: {e}") from e
    logger.info("Initialized database at %s", config.database_file)


def dry_run(config) -> str:
    """Fetch and format the latest observation without saving or posting."""
    raw = ndbc_feed.fetch_feed(config.buoy_id)
    observation = parse_feed(raw)
    output = format_observation(observation)
    print(output)
    return output


def run(config, now: Optional[datetime] = None) -> bool:
    """Run the full pipeline once.

    Args:
        config: bot_config.Config
        now: Publish-gate clock; defaults to the current US/Pacific time

    Returns:
        True if the observation was posted

    Raises:
        BuoyBotError: On any fatal failure (config, store, fetch, parse)
    """
    with db_utils.get_db_connection(config.database_file) as conn:
        db_utils.ping(conn)
        db_utils.init_tables(conn)

        with ScriptMetrics(conn, SCRIPT_NAME, station_id=config.buoy_id) as metrics:
            with metrics.track_step("fetch"):
                raw = ndbc_feed.fetch_feed(config.buoy_id)

            with metrics.track_step("parse"):
                observation = parse_feed(raw)
            metrics.observation_time = observation.timestamp.isoformat()

            with metrics.track_step("save"):
                db_utils.save_observation(conn, observation)

            output = format_observation(observation)

            now = now or datetime.now(PUBLISH_TZ)
            logger.info("Local time: %s", now.isoformat())

            if not should_publish(now):
                logger.info("Not at update interval - not tweeting.")
                logger.info("%s", output)
                metrics.add_note("outside publish hours")
                return False

            with metrics.track_step("publish") as step:
                metrics.published = publish_observation(config, output)
                if not metrics.published:
                    step.status = "failed"
                    step.error_message = "Status update failed"

            return metrics.published


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Save and post the latest NDBC buoy observation"
    )
    parser.add_argument("--config", type=str,
                        help="Config file path (default: $CONFIGPATH)")
    parser.add_argument("--init-db", action="store_true",
                        help="Create database tables and exit")
    parser.add_argument("--dry-run", action="store_true",
                        help="Fetch and print the observation without saving or posting")
    parser.add_argument("--log-file", type=str, help="Also write log to this file")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    return parser.parse_args(argv)


def main(argv=None) -> int:
    """Main entry point."""
    args = parse_args(argv)
    setup_logging(args.log_file, args.verbose)

    logger.info("=" * 50)
    logger.info("Starting BuoyBot...")

    try:
        config = load_config(args.config)
        if args.init_db:
            init_database(config)
        elif args.dry_run:
            dry_run(config)
        else:
            run(config)
    except BuoyBotError as e:
        logger.error("Error: %s", e)
        return 1

    logger.info("Exiting BuoyBot...")
    return 0


if __name__ == "__main__":
    sys.exit(main())
