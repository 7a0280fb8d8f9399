"""Tests for the configuration store adapters."""

import json
from pathlib import Path

import pytest

from itest.adapters.configuration.json_file import JsonFileConfigurationStore
from itest.adapters.configuration.memory import InMemoryConfigurationStore
from itest.core.errors import ConfigurationIOFailure
from itest.core.models import ConfigurationRecord
from itest.core.ports import ConfigurationStorePort

PROPERTIES = {
    "url": "http://localhost:8080",
    "retries": 3,
    "enabled": True,
    "ratio": 0.5,
    "tags": ["a", "b"],
    "nested": {"depth": 1},
}


@pytest.fixture(params=["memory", "json"])
def store(request: pytest.FixtureRequest, tmp_path: Path) -> ConfigurationStorePort:
    """Create each configuration store backend."""
    if request.param == "json":
        return JsonFileConfigurationStore(str(tmp_path / "config" / "store.json"))
    return InMemoryConfigurationStore()


class TestRoundTrip:
    """Configurations read back exactly what was written."""

    def test_new_configuration_round_trips(self, store: ConfigurationStorePort) -> None:
        store.fetch_or_create("db").update(PROPERTIES)
        assert store.fetch_or_create("db").get_properties() == PROPERTIES

    def test_existing_configuration_is_replaced(self, store: ConfigurationStorePort) -> None:
        store.fetch_or_create("db").update({"url": "old", "obsolete": 1})
        store.fetch_or_create("db").update(PROPERTIES)
        assert store.fetch_or_create("db").get_properties() == PROPERTIES

    def test_created_configuration_has_no_properties(
        self, store: ConfigurationStorePort
    ) -> None:
        configuration = store.fetch_or_create("fresh")
        assert configuration.id == "fresh"
        assert configuration.get_properties() is None
        assert store.list_ids() == ["fresh"]

    def test_returned_properties_are_copies(self, store: ConfigurationStorePort) -> None:
        configuration = store.fetch_or_create("db")
        configuration.update(PROPERTIES)
        configuration.get_properties()["tags"].append("c")
        assert configuration.get_properties() == PROPERTIES

    @pytest.mark.parametrize(
        "properties",
        [
            {"hosts": ("a", "b")},
            {1: "one", "two": 2},
            {"nested": {2: "x"}},
        ],
        ids=["tuple", "mixed-keys", "nested-int-key"],
    )
    def test_properties_never_read_back_altered(
        self, store: ConfigurationStorePort, properties: dict
    ) -> None:
        configuration = store.fetch_or_create("db")
        try:
            configuration.update(properties)
        except ConfigurationIOFailure:
            assert configuration.get_properties() is None
        else:
            assert configuration.get_properties() == properties

    def test_to_record(self, store: ConfigurationStorePort) -> None:
        configuration = store.fetch_or_create("db")
        configuration.update({"url": "x"})
        assert configuration.to_record() == ConfigurationRecord(
            id="db", properties={"url": "x"}
        )

    def test_delete(self, store: ConfigurationStorePort) -> None:
        configuration = store.fetch_or_create("db")
        configuration.update({"url": "x"})
        configuration.delete()
        assert store.list_ids() == []

    def test_empty_id_rejected(self, store: ConfigurationStorePort) -> None:
        with pytest.raises(ValueError):
            store.fetch_or_create(" ")


class TestJsonFileStore:
    """JSON persistence and IO failure reporting."""

    def test_persists_across_instances(self, tmp_path: Path) -> None:
        path = tmp_path / "store.json"
        JsonFileConfigurationStore(str(path)).fetch_or_create("db").update(PROPERTIES)

        reopened = JsonFileConfigurationStore(str(path))
        assert reopened.fetch_or_create("db").get_properties() == PROPERTIES
        assert json.loads(path.read_text(encoding="utf-8"))["db"] == PROPERTIES

    def test_corrupt_file_raises_io_failure(self, tmp_path: Path) -> None:
        path = tmp_path / "store.json"
        path.write_text("{not json", encoding="utf-8")

        with pytest.raises(ConfigurationIOFailure) as excinfo:
            JsonFileConfigurationStore(str(path)).fetch_or_create("db")
        assert excinfo.value.config_id == "db"

    def test_non_object_document_raises_io_failure(self, tmp_path: Path) -> None:
        path = tmp_path / "store.json"
        path.write_text("[]", encoding="utf-8")

        with pytest.raises(ConfigurationIOFailure):
            JsonFileConfigurationStore(str(path)).list_ids()

    def test_unserializable_properties_raise_io_failure(self, tmp_path: Path) -> None:
        store = JsonFileConfigurationStore(str(tmp_path / "store.json"))
        configuration = store.fetch_or_create("db")

        with pytest.raises(ConfigurationIOFailure):
            configuration.update({"handle": object()})
        assert configuration.get_properties() is None

    def test_tuple_rejected_and_named(self, tmp_path: Path) -> None:
        configuration = JsonFileConfigurationStore(
            str(tmp_path / "store.json")
        ).fetch_or_create("db")
        configuration.update({"hosts": ["a"]})

        with pytest.raises(ConfigurationIOFailure, match="hosts"):
            configuration.update({"hosts": ("a", "b")})
        assert configuration.get_properties() == {"hosts": ["a"]}

    def test_non_string_key_rejected_and_named(self, tmp_path: Path) -> None:
        configuration = JsonFileConfigurationStore(
            str(tmp_path / "store.json")
        ).fetch_or_create("db")

        with pytest.raises(ConfigurationIOFailure, match="key 1 "):
            configuration.update({1: "one", "two": 2})

    def test_unwritable_location_raises_io_failure(self, tmp_path: Path) -> None:
        blocker = tmp_path / "blocker"
        blocker.write_text("", encoding="utf-8")
        store = JsonFileConfigurationStore(str(blocker / "store.json"))

        with pytest.raises(ConfigurationIOFailure):
            store.fetch_or_create("db")

    def test_io_failure_is_an_os_error(self, tmp_path: Path) -> None:
        path = tmp_path / "store.json"
        path.write_text("{", encoding="utf-8")
        with pytest.raises(OSError):
            JsonFileConfigurationStore(str(path)).list_ids()

    def test_directory_path_rejected(self, tmp_path: Path) -> None:
        with pytest.raises(ValueError):
            JsonFileConfigurationStore(str(tmp_path))
