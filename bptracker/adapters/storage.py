"""
Persistence for the reading collection.

The collection lives under a single key of a key-value store as a JSON array
of reading records (UTF-8 text). Every save is a complete, independent
snapshot. Loading fails soft: an unreadable payload gives an empty collection
and an unreadable record is skipped, leaving the rest intact.
"""

import json
import os
import tempfile
from collections.abc import Sequence
from pathlib import Path
from typing import Any, Protocol

from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from bptracker.domain.errors import DeserializationFailure
from bptracker.domain.models import Reading
from bptracker.log import logger

DEFAULT_STORAGE_KEY = "bpData"

_readings_adapter = TypeAdapter(list[Reading])
_records_adapter = TypeAdapter(list[Any])


class KeyValueStorage(Protocol):
    """Durable string-to-string storage, in the manner of browser localStorage."""

    def get_item(self, key: str) -> str | None: ...

    def set_item(self, key: str, value: str) -> None: ...

    def remove_item(self, key: str) -> None: ...


class InMemoryStorage:
    """Process-local storage, for tests and throwaway sessions."""

    def __init__(self, items: dict[str, str] | None = None) -> None:
        self.items: dict[str, str] = dict(items or {})

    def get_item(self, key: str) -> str | None:
        return self.items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self.items[key] = value

    def remove_item(self, key: str) -> None:
        self.items.pop(key, None)


class JsonFileStorage:
    """
    Key-value storage backed by one JSON object on disk.

    Writes go to a temporary file in the same directory which then replaces
    the target, so a reader never sees a partially written file.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self.logger = logger.bind(component="json_file_storage", path=str(self.path))

    def _read_all(self) -> dict[str, str]:
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            self.logger.warning("storage_file_unreadable", error=str(e))
            return {}
        if not isinstance(data, dict):
            self.logger.warning("storage_file_unreadable", error="top-level value is not an object")
            return {}
        return {k: v for k, v in data.items() if isinstance(v, str)}

    def _write_all(self, items: dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(items, fh, ensure_ascii=False)
                fh.flush()
                os.fsync(fh.fileno())
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def get_item(self, key: str) -> str | None:
        return self._read_all().get(key)

    def set_item(self, key: str, value: str) -> None:
        items = self._read_all()
        items[key] = value
        self._write_all(items)

    def remove_item(self, key: str) -> None:
        items = self._read_all()
        if items.pop(key, None) is not None:
            self._write_all(items)


def encode_readings(readings: Sequence[Reading]) -> str:
    """Serialize readings to the persisted JSON array layout."""
    return _readings_adapter.dump_json(list(readings), by_alias=True).decode("utf-8")


def decode_readings(payload: str) -> list[Reading]:
    """
    Parse the persisted JSON array layout.

    Elements that are not valid readings are dropped one by one and logged,
    so a single bad entry does not cost the rest of the collection.

    Raises:
        DeserializationFailure: payload is not valid JSON or not an array.
    """
    try:
        records = _records_adapter.validate_json(payload)
    except PydanticValidationError as e:
        raise DeserializationFailure(str(e)) from e

    readings: list[Reading] = []
    for position, record in enumerate(records):
        try:
            readings.append(Reading.model_validate(record))
        except PydanticValidationError as e:
            logger.warning("reading_record_dropped", position=position, error=str(e))
    return readings


class StorageReadingRepository:
    """Persistence adapter storing the whole collection under one key."""

    def __init__(self, storage: KeyValueStorage, key: str = DEFAULT_STORAGE_KEY) -> None:
        self.storage = storage
        self.key = key
        self.logger = logger.bind(component="reading_repository", key=key)

    def load(self) -> list[Reading]:
        """Stored collection, or ``[]`` when absent or not a JSON array."""
        payload = self.storage.get_item(self.key)
        if payload is None:
            return []
        try:
            return decode_readings(payload)
        except DeserializationFailure as e:
            self.logger.warning("readings_load_failed", error=str(e))
            return []

    def save(self, readings: Sequence[Reading]) -> None:
        self.storage.set_item(self.key, encode_readings(readings))
        self.logger.debug("readings_saved", count=len(readings))
