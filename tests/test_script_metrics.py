#!/usr/bin/env python3
"""
Tests for script_metrics module.

Tests cover the ScriptMetrics context manager, StepTracker, and database operations.
Uses pytest fixtures for isolation and cleanup.
"""

import sqlite3
import sys
from pathlib import Path
from unittest.mock import MagicMock

import pytest

# Import module under test
sys.path.insert(0, str(Path(__file__).parent.parent / "scripts"))
from script_metrics import ScriptMetrics, StepTracker, init_metrics_tables


@pytest.fixture
def conn(tmp_path):
    """Open a temporary database for testing."""
    connection = sqlite3.connect(tmp_path / "test_buoy.db")
    yield connection
    connection.close()


class TestStepTracker:
    """Tests for StepTracker dataclass."""

    def test_default_values(self):
        """StepTracker should have sensible defaults."""
        step = StepTracker(name="fetch")
        assert step.name == "fetch"
        assert step.status == "pending"
        assert step.start_time is None
        assert step.end_time is None
        assert step.error_message is None


class TestScriptMetricsInit:
    """Tests for ScriptMetrics initialization."""

    def test_default_values(self, conn):
        """ScriptMetrics should have sensible defaults."""
        metrics = ScriptMetrics(conn, script_name="buoybot")
        assert metrics.script_name == "buoybot"
        assert metrics.station_id is None
        assert metrics.notes is None
        assert metrics.status == "running"
        assert len(metrics.run_id) == 8
        assert metrics.steps == {}
        assert metrics.published is False


class TestScriptMetricsContextManager:
    """Tests for ScriptMetrics context manager behavior."""

    def test_context_manager_sets_times(self, conn):
        """Context manager should set start and end times."""
        with ScriptMetrics(conn, "buoybot") as metrics:
            assert metrics.start_time is not None
            assert metrics.end_time is None

        assert metrics.end_time is not None

    def test_success_status(self, conn):
        """All steps succeeding should give success."""
        with ScriptMetrics(conn, "buoybot") as metrics:
            with metrics.track_step("fetch"):
                pass
            with metrics.track_step("save"):
                pass

        assert metrics.status == "success"
        assert metrics.exit_code == 0

    def test_no_steps_is_success(self, conn):
        with ScriptMetrics(conn, "buoybot") as metrics:
            pass

        assert metrics.status == "success"

    def test_partial_status(self, conn):
        """A failed publish after a successful save is partial, exit 0."""
        with ScriptMetrics(conn, "buoybot") as metrics:
            with metrics.track_step("save"):
                pass
            with metrics.track_step("publish") as step:
                step.status = "failed"
                step.error_message = "API rejected post"

        assert metrics.status == "partial"
        assert metrics.exit_code == 0

    def test_all_steps_failed(self, conn):
        with ScriptMetrics(conn, "buoybot") as metrics:
            with metrics.track_step("publish") as step:
                step.status = "failed"
                step.error_message = "API rejected post"

        assert metrics.status == "failed"

    def test_exception_handling(self, conn):
        """Context manager should capture exception info and re-raise."""
        with pytest.raises(ValueError):
            with ScriptMetrics(conn, "buoybot") as metrics:
                raise ValueError("Test error")

        assert metrics.status == "failed"
        assert metrics.exit_code == 1
        assert "Test error" in metrics.error_message
        assert "ValueError" in metrics.error_traceback


class TestTrackStep:
    """Tests for track_step context manager."""

    def test_success(self, conn):
        with ScriptMetrics(conn, "buoybot") as metrics:
            with metrics.track_step("fetch") as step:
                assert step.status == "running"
                assert step.end_time is None

        assert metrics.steps["fetch"].status == "success"
        assert metrics.steps["fetch"].end_time is not None

    def test_failure_on_exception(self, conn):
        with pytest.raises(RuntimeError):
            with ScriptMetrics(conn, "buoybot") as metrics:
                with metrics.track_step("fetch"):
                    raise RuntimeError("Feed unreachable")

        assert metrics.steps["fetch"].status == "failed"
        assert "Feed unreachable" in metrics.steps["fetch"].error_message

    def test_manual_failure(self, conn):
        """track_step should respect manually set failure status."""
        with ScriptMetrics(conn, "buoybot") as metrics:
            with metrics.track_step("publish") as step:
                step.status = "failed"
                step.error_message = "Manual failure"

        assert metrics.steps["publish"].status == "failed"
        assert metrics.steps["publish"].error_message == "Manual failure"


class TestDatabaseOperations:
    """Tests for database operations."""

    def test_tables_created(self, conn):
        init_metrics_tables(conn)
        tables = {row[0] for row in conn.execute(
            "SELECT name FROM sqlite_master WHERE type='table'")}

        assert "script_runs" in tables
        assert "script_run_steps" in tables

    def test_run_record(self, conn):
        """Final run state should be written on exit."""
        with ScriptMetrics(conn, "buoybot", station_id="46026") as metrics:
            metrics.observation_time = "2016-01-01T04:00:00-08:00"
            metrics.published = True

        row = conn.execute("""
            SELECT script_name, station_id, status, observation_time, published, exit_code
            FROM script_runs WHERE run_id = ?
        """, (metrics.run_id,)).fetchone()

        assert row == ("buoybot", "46026", "success", "2016-01-01T04:00:00-08:00", 1, 0)

    def test_step_records(self, conn):
        with ScriptMetrics(conn, "buoybot") as metrics:
            with metrics.track_step("fetch"):
                pass
            with metrics.track_step("publish") as step:
                step.status = "failed"
                step.error_message = "rejected"

        rows = conn.execute("""
            SELECT step_name, status, error_message FROM script_run_steps
            WHERE run_id = ? ORDER BY id
        """, (metrics.run_id,)).fetchall()

        assert rows == [("fetch", "success", None), ("publish", "failed", "rejected")]


class TestFailSafeBehavior:
    """Tests for fail-safe behavior when database operations fail."""

    def test_db_failure_continues(self):
        """Run should complete if every metrics write fails."""
        broken = MagicMock()
        broken.cursor.return_value.execute.side_effect = sqlite3.Error("locked")
        broken.execute.side_effect = sqlite3.Error("locked")

        with ScriptMetrics(broken, "buoybot") as metrics:
            with metrics.track_step("fetch"):
                pass

        assert metrics.status == "success"
        assert metrics._initialized is False

    def test_insert_failure_after_init_continues(self, conn):
        with ScriptMetrics(conn, "buoybot") as metrics:
            conn.execute("DROP TABLE script_run_steps")
            with metrics.track_step("fetch"):
                pass

        assert metrics.steps["fetch"].status == "success"


class TestAddNote:
    """Tests for add_note method."""

    def test_add_notes(self, conn):
        """add_note should append with semicolon."""
        with ScriptMetrics(conn, "buoybot") as metrics:
            metrics.add_note("First")
            metrics.add_note("Second")
            assert metrics.notes == "First; Second"
