"""
Core services: the reading store, aggregation and undo.
"""

from .aggregation import chart_series, combined_value, daily_average
from .reading_store import ReadingRepository, ReadingStore, Result, parse_submission
from .undo import AsyncioScheduler, Scheduler, UndoController

__all__ = [
    "AsyncioScheduler",
    "ReadingRepository",
    "ReadingStore",
    "Result",
    "Scheduler",
    "UndoController",
    "chart_series",
    "combined_value",
    "daily_average",
    "parse_submission",
]
