"""
Text rendering of a tracker session with rich.

Run with: python -m bptracker [YYYY-MM-DD]
"""

import datetime as dt
import sys

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from bptracker.config import get_config
from bptracker.domain.errors import ValidationError
from bptracker.log import logger
from bptracker.services.tracker import BloodPressureTracker


def readings_table(tracker: BloodPressureTracker) -> Table:
    table = Table(title="Blood Pressure Readings")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Date")
    table.add_column("Time")
    table.add_column("Systolic", justify="right")
    table.add_column("Diastolic", justify="right")
    table.add_column("Heart rate", justify="right")

    for row in tracker.list_rows():
        table.add_row(
            str(row.index),
            row.reading.date.isoformat(),
            row.reading.time,
            str(row.systolic),
            str(row.diastolic),
            "-" if row.heart_rate is None else str(row.heart_rate),
        )
    return table


def render_summary(tracker: BloodPressureTracker, console: Console) -> None:
    """Print the selected day's average followed by every reading."""
    avg = tracker.daily_average()
    console.print(
        Panel(
            f"Systolic: {avg.systolic} mmHg, Diastolic: {avg.diastolic} mmHg, "
            f"Heart rate: {avg.heart_rate} bpm",
            title=f"Daily Average ({tracker.selected_date.isoformat()})",
        )
    )
    console.print(readings_table(tracker))


def main(argv: list[str] | None = None) -> int:
    args = sys.argv[1:] if argv is None else argv
    console = Console()

    tracker = BloodPressureTracker.open(get_config())
    if args:
        try:
            tracker.select_date(dt.date.fromisoformat(args[0]))
        except (ValueError, ValidationError) as e:
            logger.error("invalid_date_argument", value=args[0], error=str(e))
            console.print(f"[red]Invalid date {args[0]!r}: {e}[/red]")
            return 2

    render_summary(tracker, console)
    return 0
