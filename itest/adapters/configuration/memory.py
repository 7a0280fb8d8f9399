"""In-memory configuration store adapter."""

import copy
import logging
import threading
from collections.abc import Mapping
from typing import Any

from itest.core.ports import ConfigurationPort, ConfigurationStorePort

logger = logging.getLogger(__name__)


class InMemoryConfiguration(ConfigurationPort):
    """A configuration record held by an InMemoryConfigurationStore."""

    def __init__(self, store: "InMemoryConfigurationStore", config_id: str):
        self._store = store
        self._id = config_id

    @property
    def id(self) -> str:
        return self._id

    def get_properties(self) -> dict[str, Any] | None:
        return self._store._read(self._id)

    def update(self, properties: Mapping[str, Any]) -> None:
        self._store._write(self._id, properties)

    def delete(self) -> None:
        self._store._remove(self._id)


class InMemoryConfigurationStore(ConfigurationStorePort):
    """Configuration records kept in a dict for the lifetime of the process."""

    def __init__(self) -> None:
        self._records: dict[str, dict[str, Any] | None] = {}
        self._lock = threading.Lock()

    def fetch_or_create(self, config_id: str) -> InMemoryConfiguration:
        if not config_id or not config_id.strip():
            raise ValueError("config_id must be a non-empty string")
        with self._lock:
            if config_id not in self._records:
                self._records[config_id] = None
                logger.debug(f"Created configuration {config_id}")
        return InMemoryConfiguration(self, config_id)

    def list_ids(self) -> list[str]:
        with self._lock:
            return sorted(self._records)

    def _read(self, config_id: str) -> dict[str, Any] | None:
        with self._lock:
            properties = self._records.get(config_id)
            return copy.deepcopy(properties) if properties is not None else None

    def _write(self, config_id: str, properties: Mapping[str, Any]) -> None:
        with self._lock:
            self._records[config_id] = copy.deepcopy(dict(properties))
        logger.debug(
            f"Updated configuration {config_id}",
            extra={"config_id": config_id, "keys": list(properties)},
        )

    def _remove(self, config_id: str) -> None:
        with self._lock:
            self._records.pop(config_id, None)
