#!/usr/bin/env python3
"""
Script Metrics - Run tracking for BuoyBot.

Records one row per bot run and one row per pipeline step in the same SQLite
store as the observations.

Usage:
    from script_metrics import ScriptMetrics

    with ScriptMetrics(conn, 'buoybot', station_id='46026') as metrics:
        with metrics.track_step('fetch'):
            raw = fetch_feed(...)
        with metrics.track_step('publish') as step:
            if not publish_observation(config, text):
                step.status = 'failed'

Key features:
- Fail-safe: If metrics logging fails, the bot continues normally
- Automatic timing (start/end times captured)
- Automatic status determination (success/partial/failed based on steps)
"""

import logging
import sqlite3
import traceback
import uuid
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

logger = logging.getLogger(__name__)


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def init_metrics_tables(conn: sqlite3.Connection):
    """Create metrics tables if they don't exist."""
    cursor = conn.cursor()

    # One row per bot execution
    cursor.execute("""
        CREATE TABLE IF NOT EXISTS script_runs (
            run_id TEXT PRIMARY KEY,
            script_name TEXT NOT NULL,
            station_id TEXT,
            start_time TEXT NOT NULL,
            end_time TEXT,
            status TEXT DEFAULT 'running',
            exit_code INTEGER,
            error_message TEXT,
            error_traceback TEXT,
            observation_time TEXT,
            published INTEGER DEFAULT 0,
            notes TEXT
        )
    """)

    # One row per pipeline step (fetch, save, publish)
    cursor.execute("""
        CREATE TABLE IF NOT EXISTS script_run_steps (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            run_id TEXT NOT NULL,
            step_name TEXT NOT NULL,
            status TEXT DEFAULT 'pending',
            start_time TEXT,
            end_time TEXT,
            error_message TEXT,
            FOREIGN KEY (run_id) REFERENCES script_runs(run_id)
        )
    """)

    cursor.execute("CREATE INDEX IF NOT EXISTS idx_runs_start ON script_runs(start_time)")
    cursor.execute("CREATE INDEX IF NOT EXISTS idx_runs_status ON script_runs(status)")
    cursor.execute("CREATE INDEX IF NOT EXISTS idx_steps_run ON script_run_steps(run_id)")

    conn.commit()


@dataclass
class StepTracker:
    """Tracks a single pipeline step within a run."""
    name: str
    status: str = "pending"
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    error_message: Optional[str] = None


@dataclass
class ScriptMetrics:  # pylint: disable=too-many-instance-attributes
    """
    Context manager for tracking a bot run.

    All database operations are wrapped in try/except: if metrics logging
    fails, a warning is logged and the run continues.
    """
    conn: sqlite3.Connection
    script_name: str
    station_id: Optional[str] = None
    notes: Optional[str] = None

    run_id: str = field(default_factory=lambda: str(uuid.uuid4())[:8])
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    status: str = "running"
    exit_code: Optional[int] = None
    error_message: Optional[str] = None
    error_traceback: Optional[str] = None
    observation_time: Optional[str] = None
    published: bool = False

    steps: dict = field(default_factory=dict)
    _initialized: bool = field(default=False, repr=False)

    def __enter__(self):
        """Initialize metrics tracking on context entry."""
        self.start_time = _now_iso()
        self._safe_init_db()
        self._safe_insert_run()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Finalize metrics on context exit."""
        self.end_time = _now_iso()

        if exc_type is not None:
            self.status = "failed"
            self.error_message = str(exc_val)
            self.error_traceback = "".join(traceback.format_exception(exc_type, exc_val, exc_tb))
            self.exit_code = 1
        else:
            self._determine_status()
            if self.exit_code is None:
                self.exit_code = 0

        self._safe_update_run()
        return False  # Don't suppress exceptions

    def _safe_init_db(self):
        try:
            init_metrics_tables(self.conn)
            self._initialized = True
        except sqlite3.Error as e:
            logger.warning("Failed to initialize metrics tables: %s", e)
            self._initialized = False

    def _safe_insert_run(self):
        if not self._initialized:
            return
        try:
            self.conn.execute("""
                INSERT INTO script_runs (
                    run_id, script_name, station_id, start_time, status, notes
                ) VALUES (?, ?, ?, ?, ?, ?)
            """, (
                self.run_id,
                self.script_name,
                self.station_id,
                self.start_time,
                self.status,
                self.notes
            ))
            self.conn.commit()
        except sqlite3.Error as e:
            logger.warning("Failed to insert run record: %s", e)

    def _safe_update_run(self):
        if not self._initialized:
            return
        try:
            self.conn.execute("""
                UPDATE script_runs SET
                    end_time = ?,
                    status = ?,
                    exit_code = ?,
                    error_message = ?,
                    error_traceback = ?,
                    observation_time = ?,
                    published = ?,
                    notes = ?
                WHERE run_id = ?
            """, (
                self.end_time,
                self.status,
                self.exit_code,
                self.error_message,
                self.error_traceback,
                self.observation_time,
                int(self.published),
                self.notes,
                self.run_id
            ))
            self.conn.commit()
        except sqlite3.Error as e:
            logger.warning("Failed to update run record: %s", e)

    def _determine_status(self):
        """Determine final status based on step outcomes."""
        succeeded = sum(1 for s in self.steps.values() if s.status == "success")
        failed = sum(1 for s in self.steps.values() if s.status == "failed")

        if failed == 0:
            self.status = "success"
        elif succeeded == 0:
            self.status = "failed"
        else:
            self.status = "partial"

    @contextmanager
    def track_step(self, name: str):
        """
        Context manager for tracking a single pipeline step.

        An exception escaping the block marks the step failed and propagates.
        """
        step = StepTracker(name=name, status="running", start_time=_now_iso())
        self.steps[name] = step

        try:
            yield step
            if step.status == "running":
                step.status = "success"
        except Exception as e:
            step.status = "failed"
            step.error_message = str(e)
            raise
        finally:
            step.end_time = _now_iso()
            self._safe_insert_step(step)

    def _safe_insert_step(self, step: StepTracker):
        if not self._initialized:
            return
        try:
            self.conn.execute("""
                INSERT INTO script_run_steps (
                    run_id, step_name, status, start_time, end_time, error_message
                ) VALUES (?, ?, ?, ?, ?, ?)
            """, (
                self.run_id,
                step.name,
                step.status,
                step.start_time,
                step.end_time,
                step.error_message
            ))
            self.conn.commit()
        except sqlite3.Error as e:
            logger.warning("Failed to insert step record: %s", e)

    def add_note(self, note: str):
        """Append a note to the run record."""
        if self.notes:
            self.notes += f"; {note}"
        else:
            self.notes = note
