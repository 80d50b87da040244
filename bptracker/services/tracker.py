"""
Session facade wiring store, persistence, aggregation and undo together.

This is what an interface talks to: it submits form input, deletes and
undoes rows, changes the selected date, and reads back the derived views.
"""

import datetime as dt
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any

from bptracker.adapters.storage import (
    InMemoryStorage,
    JsonFileStorage,
    KeyValueStorage,
    StorageReadingRepository,
)
from bptracker.config import TrackerConfig, get_config
from bptracker.domain.errors import ValidationError
from bptracker.domain.models import ChartPoint, DailyAverage, Reading
from bptracker.log import configure_logging, logger
from bptracker.services.aggregation import chart_series, combined_value, daily_average
from bptracker.services.reading_store import ReadingRepository, ReadingStore, Result
from bptracker.services.undo import AsyncioScheduler, Scheduler, UndoController


@dataclass(frozen=True)
class ListRow:
    """One row of the reading list with its display values."""

    index: int
    reading: Reading
    systolic: int | None
    diastolic: int | None
    heart_rate: int | None


def build_storage(config: TrackerConfig) -> KeyValueStorage:
    if config.storage.backend == "memory":
        return InMemoryStorage()
    return JsonFileStorage(config.storage.path)


class BloodPressureTracker:
    """
    One user's tracking session.

    The daily average follows the selected date and is recomputed from the
    current snapshot on every read, so store changes and date changes are
    always reflected.
    """

    def __init__(
        self,
        store: ReadingStore,
        undo: UndoController,
        *,
        selected_date: dt.date | None = None,
        today: Callable[[], dt.date] = dt.date.today,
    ) -> None:
        self.store = store
        self.undo_controller = undo
        self._today = today
        self.selected_date = selected_date or today()
        self.logger = logger.bind(component="tracker")

    @classmethod
    def open(
        cls,
        config: TrackerConfig | None = None,
        *,
        repository: ReadingRepository | None = None,
        scheduler: Scheduler | None = None,
        today: Callable[[], dt.date] = dt.date.today,
    ) -> "BloodPressureTracker":
        """Build a session from configuration and load the persisted readings once."""
        config = config or get_config()
        configure_logging(config.logging.level, config.logging.format)

        if repository is None:
            repository = StorageReadingRepository(build_storage(config), key=config.storage.key)

        store = ReadingStore(
            repository, allowed_times=config.reading.time_options, today=today
        ).load()
        undo = UndoController(
            store, scheduler or AsyncioScheduler(), window_seconds=config.undo.window_seconds
        )
        return cls(store, undo, today=today)

    # Writes

    def submit(self, raw: Mapping[str, Any]) -> Result[Reading, ValidationError]:
        """Validate and append form input; failures come back as an Err result."""
        return self.store.submit(raw)

    def delete(self, index: int) -> Reading:
        return self.undo_controller.delete(index)

    def undo(self) -> Reading | None:
        return self.undo_controller.undo()

    def select_date(self, day: dt.date) -> DailyAverage:
        """Change the selected date; dates after today are refused."""
        if day > self._today():
            raise ValidationError(["Date cannot be in the future"])
        self.selected_date = day
        return self.daily_average()

    def close(self) -> None:
        """End the session, making any pending deletion permanent."""
        self.undo_controller.finalize()

    # Reads

    @property
    def can_undo(self) -> bool:
        return self.undo_controller.can_undo

    def readings(self) -> tuple[Reading, ...]:
        return self.store.all()

    def daily_average(self) -> DailyAverage:
        return daily_average(self.store.all(), self.selected_date)

    def chart_series(self) -> list[ChartPoint]:
        return chart_series(self.store.all())

    def list_rows(self) -> list[ListRow]:
        return [
            ListRow(
                index=i,
                reading=r,
                systolic=combined_value(r, "systolic"),
                diastolic=combined_value(r, "diastolic"),
                heart_rate=combined_value(r, "heart_rate"),
            )
            for i, r in enumerate(self.store.all())
        ]
