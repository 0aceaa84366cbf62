#!/usr/bin/env python3
"""
Database Utilities for BuoyBot

Provides the observation store:
- Connection setup with crash-resilient SQLite settings
- Scoped connections that always close
- The observations schema and the per-run insert

The connection is opened once by the entry point and passed explicitly to
everything that needs it.
"""

import logging
import sqlite3
from contextlib import contextmanager
from pathlib import Path

from buoy_errors import DatabaseConnectionError, StoreWriteError

# ============================================================================
# Configuration
# ============================================================================

DB_BUSY_TIMEOUT_MS = 30000  # 30 seconds SQLite busy timeout

logger = logging.getLogger(__name__)

# Columns beyond the six written per run (windspeed, winddirection,
# airtemperature) are part of the schema but never populated.
OBSERVATIONS_SCHEMA = """
    CREATE TABLE IF NOT EXISTS observations (
        uid INTEGER PRIMARY KEY AUTOINCREMENT,
        observationtime TIMESTAMP,
        windspeed REAL,
        winddirection VARCHAR(3),
        significantwaveheight REAL,
        dominantwaveperiod INTEGER,
        averageperiod REAL,
        meanwavedirection VARCHAR(3),
        airtemperature REAL,
        watertemperature REAL,
        rowcreated TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP
    )
"""


# ============================================================================
# Database Connection
# ============================================================================

def get_connection(db_path: Path) -> sqlite3.Connection:
    """Open the observation store with crash-resilient settings.

    The parent directory must already exist; a missing directory is treated
    as an unreachable store rather than created.

    Args:
        db_path: Path to the SQLite database file

    Returns:
        sqlite3.Connection

    Raises:
        DatabaseConnectionError: If the database cannot be opened
    """
    try:
        conn = sqlite3.connect(str(db_path), timeout=DB_BUSY_TIMEOUT_MS / 1000)
        conn.execute("PRAGMA journal_mode=WAL")
        conn.execute("PRAGMA synchronous=NORMAL")
        conn.execute(f"PRAGMA busy_timeout={DB_BUSY_TIMEOUT_MS}")
    except sqlite3.Error as e:
        raise DatabaseConnectionError(f"Could not open database {db_path}: {e}") from e
    return conn


@contextmanager
def get_db_connection(db_path: Path):
    """Context manager for the store connection with automatic cleanup.

    Usage:
        with get_db_connection(config.database_file) as conn:
            ping(conn)
            save_observation(conn, observation)

    Yields:
        sqlite3.Connection
    """
    conn = get_connection(db_path)
    try:
        yield conn
    finally:
        conn.close()


def ping(conn: sqlite3.Connection) -> None:
    """Verify the store answers a trivial query.

    Raises:
        DatabaseConnectionError: If the query fails
    """
    try:
        conn.execute("SELECT 1").fetchone()
    except sqlite3.Error as e:
        raise DatabaseConnectionError(
            f"Could not establish connection with the database: {e}"
        ) from e


# ============================================================================
# Schema and Writes
# ============================================================================

def init_tables(conn: sqlite3.Connection) -> None:
    """Create the observations table if it doesn't exist."""
    try:
        conn.execute(OBSERVATIONS_SCHEMA)
        conn.commit()
    except sqlite3.Error as e:
        raise StoreWriteError(f"Error creating observations table: {e}") from e


def save_observation(conn: sqlite3.Connection, observation) -> int:
    """Insert one observation row.

    Args:
        conn: Open store connection
        observation: buoy_parser.Observation

    Returns:
        uid of the inserted row

    Raises:
        StoreWriteError: If the insert fails
    """
    try:
        cursor = conn.execute("""
            INSERT INTO observations (
                observationtime, significantwaveheight, dominantwaveperiod,
                averageperiod, meanwavedirection, watertemperature
            ) VALUES (?, ?, ?, ?, ?, ?)
        """, (
            observation.timestamp.isoformat(),
            observation.significant_wave_height_ft,
            observation.dominant_wave_period_s,
            observation.average_period_s,
            observation.mean_wave_direction,
            observation.water_temperature_f,
        ))
        conn.commit()
    except sqlite3.Error as e:
        raise StoreWriteError(f"Error saving observation: {e}") from e

    logger.info("Saved observation for %s (uid %d)",
                observation.timestamp.isoformat(), cursor.lastrowid)
    return cursor.lastrowid


def get_recent_observations(conn: sqlite3.Connection, limit: int = 10) -> list:
    """Return the newest stored observations, most recent first."""
    cursor = conn.execute("""
        SELECT uid, observationtime, significantwaveheight, dominantwaveperiod,
               averageperiod, meanwavedirection, watertemperature, rowcreated
        FROM observations
        ORDER BY observationtime DESC, uid DESC
        LIMIT ?
    """, (limit,))
    return cursor.fetchall()
