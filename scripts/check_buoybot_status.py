#!/usr/bin/env python3
"""
BuoyBot Status Monitor

View run history and stored observations in the BuoyBot database.

Usage:
    python check_buoybot_status.py --db buoy.db                  # Last 24 hours summary
    python check_buoybot_status.py --db buoy.db --failures       # Show only failures
    python check_buoybot_status.py --db buoy.db --hours 48       # Custom time window
    python check_buoybot_status.py --db buoy.db --details RUN_ID # Show run steps
    python check_buoybot_status.py --db buoy.db --observations 5 # Newest observations
"""

import argparse
import sqlite3
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Optional

import db_utils

DB_PATH = Path("buoy.db")


def get_connection() -> sqlite3.Connection:
    """Create a database connection with row factory."""
    conn = db_utils.get_connection(DB_PATH)
    conn.row_factory = sqlite3.Row
    return conn


def format_duration(start_str: str, end_str: str) -> str:
    """Format the duration between two ISO timestamps."""
    if not start_str or not end_str:
        return "N/A"
    try:
        start = datetime.fromisoformat(start_str.replace('Z', '+00:00'))
        end = datetime.fromisoformat(end_str.replace('Z', '+00:00'))
        seconds = (end - start).total_seconds()
        if seconds < 60:
            return f"{seconds:.1f}s"
        return f"{seconds/60:.1f}m"
    except (ValueError, TypeError):
        return "N/A"


def format_time(iso_str: str) -> str:
    """Format ISO timestamp for display."""
    if not iso_str:
        return "N/A"
    try:
        parsed_dt = datetime.fromisoformat(iso_str.replace('Z', '+00:00'))
        return parsed_dt.strftime("%Y-%m-%d %H:%M %Z").strip()
    except (ValueError, TypeError):
        return iso_str[:16]


def status_icon(status: str) -> str:
    """Return status indicator."""
    icons = {
        "success": "[OK]",
        "partial": "[!!]",
        "failed": "[XX]",
        "running": "[..]"
    }
    return icons.get(status, "[??]")


def print_header(title: str):
    print(f"\n{'='*80}")
    print(f" {title}")
    print(f"{'='*80}")


def print_footer():
    print(f"{'='*80}\n")


def truncate_error(error_msg: str, max_len: int = 100) -> str:
    """Truncate error message if too long."""
    if not error_msg:
        return ""
    if len(error_msg) <= max_len:
        return error_msg
    return error_msg[:max_len] + "..."


def build_summary_query(failures_only: bool) -> str:
    """Build the SQL query for summary view."""
    query = """
        SELECT run_id, station_id, start_time, end_time, status,
               observation_time, published, error_message, notes
        FROM script_runs
        WHERE start_time > ?
    """
    if failures_only:
        query += " AND status IN ('failed', 'partial')"
    query += " ORDER BY start_time DESC"
    return query


def print_run_summary(run: sqlite3.Row):
    """Print a single run summary line."""
    duration = format_duration(run['start_time'], run['end_time'])

    print(f"\n{status_icon(run['status'])} {run['run_id']} (station {run['station_id']})")
    print(f"     Time:        {format_time(run['start_time'])} ({duration})")
    if run['observation_time']:
        print(f"     Observation: {format_time(run['observation_time'])}")
    print(f"     Posted:      {'yes' if run['published'] else 'no'}")
    if run['notes']:
        print(f"     Notes:       {run['notes']}")
    if run['error_message']:
        print(f"     Error:       {truncate_error(run['error_message'])}")


def show_summary(hours: int = 24, failures_only: bool = False):
    """Show summary of bot runs in the specified time window."""
    conn = get_connection()
    cutoff = (datetime.now(timezone.utc) - timedelta(hours=hours)).isoformat()
    try:
        runs = conn.execute(build_summary_query(failures_only), (cutoff,)).fetchall()
    except sqlite3.OperationalError:
        # No runs recorded yet
        runs = []
    conn.close()

    if not runs:
        print(f"\nNo runs found in the last {hours} hours")
        if failures_only:
            print("(showing failures only)")
        return

    title = f"BuoyBot {'Failures' if failures_only else 'Status'} - Last {hours} hours"
    print_header(title)

    for run in runs:
        print_run_summary(run)

    success = sum(1 for r in runs if r['status'] == 'success')
    partial = sum(1 for r in runs if r['status'] == 'partial')
    failed = sum(1 for r in runs if r['status'] == 'failed')
    posted = sum(1 for r in runs if r['published'])
    print(f"\n{'='*80}")
    print(f" Total: {len(runs)} runs, {posted} posted")
    print(f" Success: {success} | Partial: {partial} | Failed: {failed}")
    print_footer()


def fetch_run_by_id(conn: sqlite3.Connection, run_id: str) -> Optional[sqlite3.Row]:
    """Fetch a run by exact or partial ID match."""
    run = conn.execute("SELECT * FROM script_runs WHERE run_id = ?", (run_id,)).fetchone()
    if not run:
        run = conn.execute("""
            SELECT * FROM script_runs WHERE run_id LIKE ?
            ORDER BY start_time DESC LIMIT 1
        """, (f"%{run_id}%",)).fetchone()
    return run


def print_run_steps(conn: sqlite3.Connection, run_id: str):
    steps = conn.execute("""
        SELECT * FROM script_run_steps WHERE run_id = ?
        ORDER BY id
    """, (run_id,)).fetchall()

    if not steps:
        return

    print(f"\n{'-'*40}")
    print(f" Steps ({len(steps)})")
    print(f"{'-'*40}")

    for step in steps:
        print(f"\n {status_icon(step['status'])} {step['step_name']}")
        print(f"      Duration: {format_duration(step['start_time'], step['end_time'])}")
        if step['error_message']:
            print(f"      Error: {truncate_error(step['error_message'], 80)}")


def show_details(run_id: str):
    """Show detailed information for a specific run."""
    conn = get_connection()

    try:
        run = fetch_run_by_id(conn, run_id)
    except sqlite3.OperationalError:
        run = None
    if not run:
        print(f"\nNo run found matching: {run_id}")
        conn.close()
        return

    print_header(f"Run Details: {run['run_id']}")
    print(f"\n Station:   {run['station_id']}")
    print(f" Status:    {status_icon(run['status'])} {run['status']}")
    print(f" Started:   {format_time(run['start_time'])}")
    print(f" Ended:     {format_time(run['end_time'])}")
    print(f" Duration:  {format_duration(run['start_time'], run['end_time'])}")
    if run['exit_code'] is not None:
        print(f" Exit Code: {run['exit_code']}")
    if run['observation_time']:
        print(f" Observed:  {format_time(run['observation_time'])}")
    if run['notes']:
        print(f" Notes:     {run['notes']}")

    if run['error_traceback']:
        print("\n Traceback:")
        for line in run['error_traceback'].split('\n')[:10]:
            print(f"   {line}")
    elif run['error_message']:
        print(f"\n Error: {run['error_message']}")

    print_run_steps(conn, run['run_id'])
    conn.close()
    print(f"\n{'='*80}\n")


def show_observations(limit: int = 10):
    """Show the newest stored observations."""
    conn = get_connection()
    try:
        rows = db_utils.get_recent_observations(conn, limit)
    except sqlite3.OperationalError:
        rows = []
    conn.close()

    if not rows:
        print("\nNo observations stored")
        return

    print_header(f"Latest {len(rows)} Observations")
    header = f" {'Observed':<22} {'Height':>7} {'Period':>7} {'Avg':>6} {'Dir':>4} {'Water':>6}"
    print(f"\n{header}")
    print(f" {'-'*22} {'-'*7} {'-'*7} {'-'*6} {'-'*4} {'-'*6}")
    for row in rows:
        print(f" {format_time(row['observationtime']):<22} "
              f"{row['significantwaveheight']:>5.1f}ft {row['dominantwaveperiod']:>5}s "
              f"{row['averageperiod']:>5.1f}s {row['meanwavedirection']:>4} "
              f"{row['watertemperature']:>5}F")
    print_footer()


def main() -> int:
    """Parse arguments and dispatch to appropriate view function."""
    global DB_PATH  # pylint: disable=global-statement

    parser = argparse.ArgumentParser(
        description='Check BuoyBot run status and stored observations',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s --db buoy.db                  Show last 24 hours summary
  %(prog)s --db buoy.db --failures       Show only failures
  %(prog)s --db buoy.db --details abc123 Show steps for run ID
  %(prog)s --db buoy.db --observations 5 Show 5 newest observations
        """
    )
    parser.add_argument('--db', type=str, default=None,
                        help=f'Database path (default: {DB_PATH})')
    parser.add_argument('--hours', type=int, default=24,
                        help='Time window in hours (default: 24)')
    parser.add_argument('--failures', action='store_true',
                        help='Show only failures and partial runs')
    parser.add_argument('--details', type=str, metavar='RUN_ID',
                        help='Show detailed info for a specific run')
    parser.add_argument('--observations', type=int, metavar='N',
                        help='Show the N newest stored observations')

    args = parser.parse_args()
    if args.db:
        DB_PATH = Path(args.db)

    if not DB_PATH.exists():
        print(f"Database not found: {DB_PATH}")
        return 1

    if args.details:
        show_details(args.details)
    elif args.observations:
        show_observations(args.observations)
    else:
        show_summary(args.hours, args.failures)

    return 0


if __name__ == "__main__":
    sys.exit(main())
