"""Tests for Hydra ConfigStore registration of stores."""

from __future__ import annotations

from hydra.core.config_store import ConfigStore

import eco_sorter.storage  # noqa: F401  # trigger @register
from eco_sorter.utils.hydra import register


class TestStoreRegistration:
    def test_store_group_options(self) -> None:
        options = ConfigStore.instance().list("store")
        assert "ram.yaml" in options
        assert "sqlite.yaml" in options

    def test_sqlite_node_targets_class_with_default_path(self) -> None:
        node = ConfigStore.instance().load("store/sqlite.yaml").node
        assert node["_target_"] == "eco_sorter.storage.sqlite.SQLiteStore"
        assert node["db_path"] == "eco_sorter.db"


class TestRegisterDecorator:
    def test_infers_group_and_name(self) -> None:
        class Fake:
            pass

        Fake.__module__ = "eco_sorter.uploads.fake"
        register(Fake)
        assert "Fake.yaml" in ConfigStore.instance().list("uploads")

    def test_explicit_group_with_defaults(self) -> None:
        @register(group="uploader", name="simulated", retries=0)
        class Simulated:
            pass

        node = ConfigStore.instance().load("uploader/simulated.yaml").node
        assert node["_target_"].endswith("Simulated")
        assert node["retries"] == 0
