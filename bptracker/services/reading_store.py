"""
Ordered reading collection with write-through persistence.

Key patterns:
- Protocol-based dependency injection for the persistence adapter
- Explicit Result values for expected submission failures
- Whole-collection snapshots: the in-memory list only changes after a save succeeds
"""

import datetime as dt
import re
import threading
from collections.abc import Callable, Mapping, Sequence
from typing import Any, Generic, Protocol, TypeVar

from bptracker.domain.errors import IndexOutOfRange, ValidationError
from bptracker.domain.models import Reading, SubReading, TimeOfDay
from bptracker.log import logger


ValueT = TypeVar("ValueT")
ErrorT = TypeVar("ErrorT", bound=BaseException)


class Result(Generic[ValueT, ErrorT]):
    """
    Explicit error handling without exceptions for expected failures.

    Used where failure is ordinary user input (an incomplete form), not a bug.
    """

    def __init__(self, value: ValueT | None = None, error: ErrorT | None = None) -> None:
        if value is not None and error is not None:
            raise ValueError("Result cannot have both value and error")
        if value is None and error is None:
            raise ValueError("Result must have either value or error")
        self._value: ValueT | None = value
        self._error: ErrorT | None = error

    @classmethod
    def ok(cls, value: ValueT) -> "Result[ValueT, ErrorT]":
        return cls(value=value)

    @classmethod
    def err(cls, error: ErrorT) -> "Result[ValueT, ErrorT]":
        return cls(error=error)

    def is_ok(self) -> bool:
        return self._error is None

    def is_err(self) -> bool:
        return self._error is not None

    def unwrap(self) -> ValueT:
        if self._error is not None:
            raise self._error
        return self._value  # type: ignore

    def unwrap_or(self, default: ValueT) -> ValueT:
        return self._value if self._error is None else default  # type: ignore

    def unwrap_err(self) -> ErrorT:
        if self._error is None:
            raise ValueError("Called unwrap_err() on an Ok value")
        return self._error


DEFAULT_TIME_OPTIONS: tuple[str, ...] = tuple(t.value for t in TimeOfDay)

_ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_DIGITS = re.compile(r"^\d+$")

# (form key, label) for each sub-reading slot
_FIRST_FIELDS = (("systolic", "Systolic"), ("diastolic", "Diastolic"), ("heartRate", "Heart rate"))
_SECOND_FIELDS = (
    ("systolic2", "Second systolic"),
    ("diastolic2", "Second diastolic"),
    ("heartRate2", "Second heart rate"),
)


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _parse_positive_int(value: Any, label: str, errors: list[str]) -> int | None:
    """Parse an int or a string of decimal digits; no float or NaN coercion."""
    if _is_blank(value):
        errors.append(f"{label} is required")
        return None
    if isinstance(value, bool):
        parsed = None
    elif isinstance(value, int):
        parsed = value
    elif isinstance(value, str) and _DIGITS.match(value.strip()):
        parsed = int(value.strip())
    else:
        parsed = None

    if parsed is None:
        errors.append(f"{label} must be a whole number")
        return None
    if parsed <= 0:
        errors.append(f"{label} must be positive")
        return None
    return parsed


def _parse_date(value: Any, today: dt.date, errors: list[str]) -> dt.date | None:
    if _is_blank(value):
        errors.append("Date is required")
        return None
    if isinstance(value, dt.datetime):
        parsed = value.date()
    elif isinstance(value, dt.date):
        parsed = value
    elif isinstance(value, str) and _ISO_DATE.match(value.strip()):
        try:
            parsed = dt.date.fromisoformat(value.strip())
        except ValueError:
            errors.append(f"Date {value!r} is not a valid calendar day")
            return None
    else:
        errors.append("Date must be in YYYY-MM-DD format")
        return None

    if parsed > today:
        errors.append("Date cannot be in the future")
        return None
    return parsed


def parse_submission(
    raw: Mapping[str, Any],
    *,
    today: dt.date,
    allowed_times: Sequence[str] = DEFAULT_TIME_OPTIONS,
) -> Result[Reading, ValidationError]:
    """
    Validate raw form input into a Reading.

    Expected keys: ``date``, ``time``, ``systolic``, ``diastolic``, ``heartRate``
    and optionally ``systolic2``, ``diastolic2``, ``heartRate2``. Once any second
    field is filled in, all three become required.

    Returns:
        Result[Reading, ValidationError]: the reading, or every problem found.
    """
    errors: list[str] = []

    reading_date = _parse_date(raw.get("date"), today, errors)

    time_label = raw.get("time")
    if _is_blank(time_label):
        errors.append("Time of day is required")
    elif time_label not in allowed_times:
        errors.append(f"Time of day must be one of: {', '.join(allowed_times)}")

    slots = [_FIRST_FIELDS]
    if any(not _is_blank(raw.get(key)) for key, _ in _SECOND_FIELDS):
        slots.append(_SECOND_FIELDS)

    subs: list[dict[str, int | None]] = []
    for slot in slots:
        subs.append(
            {
                name: _parse_positive_int(raw.get(key), label, errors)
                for (key, label), name in zip(slot, ("systolic", "diastolic", "heart_rate"))
            }
        )

    if errors:
        logger.info("submission_rejected", errors=errors)
        return Result.err(ValidationError(errors))

    return Result.ok(
        Reading(
            date=reading_date,
            time=time_label,
            readings=tuple(SubReading(**sub) for sub in subs),
        )
    )


def check_complete(reading: Reading, *, today: dt.date) -> None:
    """
    Apply the submission rules to an already-built Reading.

    Raises:
        ValidationError: the date is in the future or a sub-reading has no
            heart rate (only legacy stored records may lack one).
    """
    errors: list[str] = []
    if reading.date > today:
        errors.append("Date cannot be in the future")
    for position, sub in enumerate(reading.readings):
        if sub.heart_rate is None:
            label = "Heart rate" if position == 0 else "Second heart rate"
            errors.append(f"{label} is required")
    if errors:
        logger.info("submission_rejected", errors=errors)
        raise ValidationError(errors)


class ReadingRepository(Protocol):
    """Durable home of the reading collection (whole-collection replace)."""

    def load(self) -> list[Reading]:
        """Return the stored collection, or an empty list when none is readable."""
        ...

    def save(self, readings: Sequence[Reading]) -> None:
        """Overwrite the stored collection with ``readings``."""
        ...


ChangeListener = Callable[[tuple[Reading, ...]], None]


class ReadingStore:
    """
    Owns the ordered reading collection.

    Insertion order is display order and the order the undo mechanism restores.
    Every mutation writes the full collection through the repository before it
    becomes visible, then notifies subscribers with the new snapshot.
    """

    def __init__(
        self,
        repository: ReadingRepository,
        *,
        allowed_times: Sequence[str] = DEFAULT_TIME_OPTIONS,
        today: Callable[[], dt.date] = dt.date.today,
    ) -> None:
        self.repository = repository
        self.allowed_times = tuple(allowed_times)
        self._today = today
        self._readings: list[Reading] = []
        self._listeners: list[ChangeListener] = []
        self._lock = threading.RLock()
        self.logger = logger.bind(component="reading_store")

    def load(self) -> "ReadingStore":
        """Replace the in-memory collection with the persisted one."""
        with self._lock:
            self._readings = list(self.repository.load())
        self.logger.info("readings_loaded", count=len(self._readings))
        return self

    def subscribe(self, listener: ChangeListener) -> Callable[[], None]:
        """Register a change listener; returns a callable that unregisters it."""
        self._listeners.append(listener)
        return lambda: self._listeners.remove(listener)

    def submit(self, raw: Mapping[str, Any]) -> Result[Reading, ValidationError]:
        """Parse raw form input and append it when valid."""
        result = parse_submission(raw, today=self._today(), allowed_times=self.allowed_times)
        if result.is_ok():
            self.append(result.unwrap())
        return result

    def append(self, reading: Reading | Mapping[str, Any]) -> Reading:
        """
        Append a reading to the end of the collection.

        Raises:
            ValidationError: raw input is incomplete or invalid, a required
                field is missing, or the date is in the future. Nothing is appended.
        """
        if not isinstance(reading, Reading):
            reading = parse_submission(
                reading, today=self._today(), allowed_times=self.allowed_times
            ).unwrap()
        else:
            check_complete(reading, today=self._today())

        with self._lock:
            self._commit([*self._readings, reading])
            index = len(self._readings) - 1
        self.logger.info("reading_appended", index=index, date=reading.date.isoformat())
        return reading

    def remove_at(self, index: int) -> Reading:
        """Remove and return the reading at ``index``."""
        with self._lock:
            if not 0 <= index < len(self._readings):
                raise IndexOutOfRange(index, len(self._readings))
            updated = list(self._readings)
            removed = updated.pop(index)
            self._commit(updated)
        self.logger.info("reading_removed", index=index, remaining=len(updated))
        return removed

    def insert_at(self, index: int, reading: Reading) -> None:
        """Insert ``reading`` at ``index`` (0..len inclusive), shifting later ones."""
        with self._lock:
            if not 0 <= index <= len(self._readings):
                raise IndexOutOfRange(index, len(self._readings))
            updated = list(self._readings)
            updated.insert(index, reading)
            self._commit(updated)
        self.logger.info("reading_reinserted", index=index, count=len(updated))

    def all(self) -> tuple[Reading, ...]:
        """Order-preserving read-only snapshot."""
        with self._lock:
            return tuple(self._readings)

    def __len__(self) -> int:
        return len(self._readings)

    def _commit(self, updated: list[Reading]) -> None:
        # Save first: a failed write leaves the previous state in place
        self.repository.save(updated)
        self._readings = updated
        snapshot = tuple(updated)
        for listener in list(self._listeners):
            listener(snapshot)
