"""Shared fixtures: in-memory persistence and a manually driven scheduler."""

import datetime as dt
from collections.abc import Callable

import pytest

from bptracker.adapters.storage import InMemoryStorage, StorageReadingRepository
from bptracker.domain.models import Reading, SubReading
from bptracker.services.reading_store import ReadingStore
from bptracker.services.undo import UndoController

TODAY = dt.date(2024, 3, 15)


class FakeHandle:
    def __init__(self, scheduler: "FakeScheduler", due: float, callback: Callable[[], None]):
        self.scheduler = scheduler
        self.due = due
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class FakeScheduler:
    """Scheduler whose clock only moves when the test calls advance()."""

    def __init__(self) -> None:
        self.now = 0.0
        self.handles: list[FakeHandle] = []

    def call_later(self, delay: float, callback: Callable[[], None]) -> FakeHandle:
        handle = FakeHandle(self, self.now + delay, callback)
        self.handles.append(handle)
        return handle

    def advance(self, seconds: float) -> None:
        self.now += seconds
        for handle in list(self.handles):
            if not handle.cancelled and handle.due <= self.now:
                self.handles.remove(handle)
                handle.callback()

    @property
    def live(self) -> list[FakeHandle]:
        return [h for h in self.handles if not h.cancelled]


def make_reading(
    day: dt.date = TODAY,
    time: str = "Morning",
    first: tuple[int, int, int] = (120, 80, 70),
    second: tuple[int, int, int] | None = None,
) -> Reading:
    subs = [SubReading(systolic=first[0], diastolic=first[1], heart_rate=first[2])]
    if second is not None:
        subs.append(SubReading(systolic=second[0], diastolic=second[1], heart_rate=second[2]))
    return Reading(date=day, time=time, readings=tuple(subs))


@pytest.fixture
def storage() -> InMemoryStorage:
    return InMemoryStorage()


@pytest.fixture
def repository(storage: InMemoryStorage) -> StorageReadingRepository:
    return StorageReadingRepository(storage)


@pytest.fixture
def store(repository: StorageReadingRepository) -> ReadingStore:
    return ReadingStore(repository, today=lambda: TODAY).load()


@pytest.fixture
def scheduler() -> FakeScheduler:
    return FakeScheduler()


@pytest.fixture
def undo(store: ReadingStore, scheduler: FakeScheduler) -> UndoController:
    return UndoController(store, scheduler, window_seconds=5.0)
