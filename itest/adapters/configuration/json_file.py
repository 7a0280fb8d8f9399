"""JSON file configuration store adapter.

Implements ConfigurationStorePort by keeping every configuration record in
one JSON document. The file is re-read on every access and rewritten
atomically (write to a temporary file, then rename) on every change, so
records survive the test process and can be inspected after a run.
"""

import json
import logging
import os
import threading
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from itest.core.errors import ConfigurationIOFailure
from itest.core.ports import ConfigurationPort, ConfigurationStorePort

logger = logging.getLogger(__name__)


def _check_round_trip(config_id: str, properties: dict[str, Any]) -> None:
    try:
        decoded = json.loads(json.dumps(properties))
    except (TypeError, ValueError) as e:
        raise ConfigurationIOFailure(
            config_id, f"properties are not JSON serializable: {e}"
        ) from e
    if decoded == properties:
        return
    for key, value in properties.items():
        if not isinstance(key, str):
            raise ConfigurationIOFailure(
                config_id,
                f"key {key!r} is not a string and would not read back unchanged",
            )
        if decoded.get(key) != value:
            raise ConfigurationIOFailure(
                config_id,
                f"value of {key!r} would read back as {decoded.get(key)!r}, "
                f"not {value!r}",
            )
    raise ConfigurationIOFailure(config_id, "properties would not read back unchanged")


class JsonFileConfiguration(ConfigurationPort):
    """A configuration record held by a JsonFileConfigurationStore."""

    def __init__(self, store: "JsonFileConfigurationStore", config_id: str):
        self._store = store
        self._id = config_id

    @property
    def id(self) -> str:
        return self._id

    def get_properties(self) -> dict[str, Any] | None:
        return self._store._load(self._id).get(self._id)

    def update(self, properties: Mapping[str, Any]) -> None:
        """Replace the stored properties.

        Raises:
            ConfigurationIOFailure: If the properties would not read back
                unchanged from JSON (tuples, non-string keys, custom objects)
                or the file cannot be written.
        """
        properties = dict(properties)
        _check_round_trip(self._id, properties)
        self._store._modify(self._id, properties)

    def delete(self) -> None:
        self._store._modify(self._id, None, remove=True)


class JsonFileConfigurationStore(ConfigurationStorePort):
    """Configuration records persisted in a single JSON file."""

    def __init__(self, path: str):
        """Initialize the store.

        Args:
            path: Path of the JSON file. It is created on first write.

        Raises:
            ValueError: If path is an existing directory.
        """
        self.path = Path(path)
        if self.path.is_dir():
            raise ValueError(f"Configuration path is a directory: {path}")
        self._lock = threading.Lock()

    def fetch_or_create(self, config_id: str) -> JsonFileConfiguration:
        if not config_id or not config_id.strip():
            raise ValueError("config_id must be a non-empty string")
        with self._lock:
            records = self._read_all(config_id)
            if config_id not in records:
                records[config_id] = None
                self._write_all(config_id, records)
                logger.debug(
                    f"Created configuration {config_id}",
                    extra={"config_id": config_id, "path": str(self.path)},
                )
        return JsonFileConfiguration(self, config_id)

    def list_ids(self) -> list[str]:
        with self._lock:
            return sorted(self._read_all("*"))

    def _load(self, config_id: str) -> dict[str, Any]:
        with self._lock:
            return self._read_all(config_id)

    def _modify(
        self, config_id: str, properties: dict[str, Any] | None, remove: bool = False
    ) -> None:
        with self._lock:
            records = self._read_all(config_id)
            if remove:
                records.pop(config_id, None)
            else:
                records[config_id] = properties
            self._write_all(config_id, records)

        logger.debug(
            f"{'Deleted' if remove else 'Updated'} configuration {config_id}",
            extra={"config_id": config_id, "path": str(self.path)},
        )

    def _read_all(self, config_id: str) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            text = self.path.read_text(encoding="utf-8")
        except OSError as e:
            raise ConfigurationIOFailure(
                config_id, f"cannot read {self.path}: {e}"
            ) from e
        if not text.strip():
            return {}
        try:
            records = json.loads(text)
        except json.JSONDecodeError as e:
            raise ConfigurationIOFailure(
                config_id, f"{self.path} is not valid JSON: {e}"
            ) from e
        if not isinstance(records, dict):
            raise ConfigurationIOFailure(
                config_id, f"{self.path} does not contain a JSON object"
            )
        return records

    def _write_all(self, config_id: str, records: dict[str, Any]) -> None:
        temp_path = self.path.with_name(self.path.name + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            temp_path.write_text(
                json.dumps(records, indent=2, sort_keys=True), encoding="utf-8"
            )
            os.replace(temp_path, self.path)
        except TypeError as e:
            raise ConfigurationIOFailure(
                config_id, f"properties are not JSON serializable: {e}"
            ) from e
        except OSError as e:
            logger.error(
                f"Failed to write configuration store {self.path}: {e}",
                exc_info=True,
            )
            raise ConfigurationIOFailure(
                config_id, f"cannot write {self.path}: {e}"
            ) from e
