"""Tests for SettingsStore and the module-level settings API."""

import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from unittest.mock import patch

import pytest
import yaml

import birdnet_core.config as config
from birdnet_core.config import SettingsStore
from birdnet_core.config._loader import load_settings as real_load_settings
from birdnet_core.config._rwlock import RWLock
from birdnet_core.errors import CategorizedError, ErrorCategory, SettingsValidationError


class TestLoad:
    """Tests for load, get_settings and reload."""

    def test_no_settings_before_load(self, store):
        assert store.get_settings() is None
        assert store.config_path is None

    def test_load_installs_instance(self, store, config_dir):
        settings = store.load()
        assert store.get_settings() is settings
        assert store.config_path == config_dir / "config.yaml"

    def test_each_load_builds_a_new_instance(self, store):
        first = store.load()
        second = store.load()
        assert first is not second
        assert store.get_settings() is second

    def test_reload_failure_keeps_previous(self, store, write_config, caplog):
        write_config("main:\n  name: garden\n")
        previous = store.load()

        write_config("birdnet:\n  threshold: 7\n")
        with caplog.at_level(logging.ERROR, logger="birdnet_core.config"):
            with pytest.raises(SettingsValidationError):
                store.reload()

        assert store.get_settings() is previous
        assert "keeping current settings" in caplog.text

    def test_reload_parse_failure_keeps_previous(self, store, write_config):
        write_config("main:\n  name: garden\n")
        previous = store.load()

        write_config("main: [broken\n")
        with pytest.raises(CategorizedError) as exc_info:
            store.reload()
        assert exc_info.value.category is ErrorCategory.CONFIGURATION
        assert store.get_settings() is previous

    def test_warnings_logged(self, store, write_config, caplog):
        write_config("birdnet:\n  locale: xx\n")
        with caplog.at_level(logging.WARNING, logger="birdnet_core.config"):
            store.load()
        assert "Configuration warning" in caplog.text


class TestSetting:
    """Tests for lazy first-use loading."""

    def test_loads_once(self, store):
        with patch("birdnet_core.config._store.load_settings", wraps=real_load_settings) as loader:
            with ThreadPoolExecutor(max_workers=16) as pool:
                results = list(pool.map(lambda _: store.setting(), range(64)))

        assert loader.call_count == 1
        assert all(r is results[0] for r in results)

    def test_does_not_reload_existing(self, store):
        loaded = store.load()
        assert store.setting() is loaded

    def test_failure_exits(self, store, write_config, caplog):
        write_config("birdnet: [broken\n")
        with caplog.at_level(logging.CRITICAL, logger="birdnet_core.config"):
            with pytest.raises(SystemExit) as exc_info:
                store.setting()
        assert exc_info.value.code == 1
        assert "Error loading settings" in caplog.text

    def test_failure_is_not_retried(self, store, write_config):
        write_config("birdnet: [broken\n")
        with patch("birdnet_core.config._store.load_settings", wraps=real_load_settings) as loader:
            for _ in range(3):
                with pytest.raises(SystemExit):
                    store.setting()

        assert loader.call_count == 1
        assert store.get_settings() is None


class TestSaveSettings:
    """Tests for save_settings."""

    def test_save_writes_current_values(self, store, config_dir):
        store.load()
        with store.edit() as s:
            s.main.name = "garden"

        path = store.save_settings()
        assert path == config_dir / "config.yaml"
        assert yaml.safe_load(path.read_text())["main"]["name"] == "garden"

    def test_save_does_not_touch_live_instance(self, store):
        live = store.load()
        store.update_range_filter_species(["Parus major"])
        before = live.model_dump()

        store.save_settings()
        assert store.get_settings() is live
        assert live.model_dump() == before
        assert store.range_filter_species() == ["Parus major"]

    def test_save_without_settings(self, store):
        with pytest.raises(CategorizedError) as exc_info:
            store.save_settings()
        assert exc_info.value.category is ErrorCategory.CONFIGURATION

    def test_save_recreates_deleted_document(self, store, config_dir):
        store.load()
        (config_dir / "config.yaml").unlink()
        path = store.save_settings()
        assert path.is_file()

    def test_save_failure_is_file_io(self, store):
        store.load()
        with patch("birdnet_core.config._persist.os.replace", side_effect=OSError("denied")):
            with pytest.raises(CategorizedError) as exc_info:
                store.save_settings()
        assert exc_info.value.category is ErrorCategory.FILE_IO
        assert "path" in exc_info.value.context

    def test_concurrent_saves_serialized(self, store, config_dir):
        store.load()
        with ThreadPoolExecutor(max_workers=8) as pool:
            paths = list(pool.map(lambda _: store.save_settings(), range(20)))
        assert set(paths) == {config_dir / "config.yaml"}
        assert sorted(p.name for p in config_dir.glob("config-*.yaml")) == []
        yaml.safe_load((config_dir / "config.yaml").read_text())


class TestConcurrency:
    """Readers always see a complete instance from a single generation."""

    def test_readers_during_save(self, store):
        """1000 concurrent readers while settings are saved and reloaded."""
        store.load()
        with store.edit() as s:
            s.main.name = "post-save"
        expected_names = {"BirdNET-Go", "post-save"}

        stop = threading.Event()
        writer_errors = []

        def writer():
            try:
                while not stop.is_set():
                    store.save_settings()
                    store.reload()
            except Exception as e:  # surfaced by the assertion below
                writer_errors.append(e)

        def reader(_):
            s = store.get_settings()
            return (
                s is not None
                and s.main.name in expected_names
                and len(s.security.basic_auth.client_secret) == 43
                and s.system_id != ""
                and s.birdnet.locale == "en-uk"
            )

        thread = threading.Thread(target=writer)
        thread.start()
        try:
            with ThreadPoolExecutor(max_workers=32) as pool:
                results = list(pool.map(reader, range(1000)))
        finally:
            stop.set()
            thread.join()

        assert writer_errors == []
        assert len(results) == 1000
        assert all(results)

    def test_no_mixed_generations(self, store, write_config):
        """Fields that change together are always read together."""
        generations = [("gen-a", "de"), ("gen-b", "fi")]
        name, locale = generations[0]
        write_config(f"main:\n  name: {name}\nbirdnet:\n  locale: {locale}\n")
        store.load()

        stop = threading.Event()

        def writer():
            i = 0
            while not stop.is_set():
                i += 1
                name, locale = generations[i % 2]
                write_config(f"main:\n  name: {name}\nbirdnet:\n  locale: {locale}\n")
                store.reload()

        def reader(_):
            s = store.get_settings()
            return (s.main.name, s.birdnet.locale) in generations

        thread = threading.Thread(target=writer)
        thread.start()
        try:
            with ThreadPoolExecutor(max_workers=16) as pool:
                results = list(pool.map(reader, range(500)))
        finally:
            stop.set()
            thread.join()

        assert all(results)


class TestEditAndSnapshot:
    """Tests for edit() and snapshot()."""

    def test_edit_requires_settings(self, store):
        with pytest.raises(CategorizedError):
            with store.edit():
                pass

    def test_snapshot_is_a_copy(self, store):
        live = store.load()
        snap = store.snapshot()
        snap.main.name = "other"
        assert live.main.name == "BirdNET-Go"
        assert snap.system_id == live.system_id

    def test_snapshot_before_load(self, store):
        assert store.snapshot() is None


class TestRangeFilterSpecies:
    """Tests for the independently refreshed species list."""

    def test_update_and_read(self, store):
        store.load()
        assert store.range_filter_species() == []

        store.update_range_filter_species(["Turdus merula", "Erithacus rubecula"])
        species = store.range_filter_species()
        assert species == ["Turdus merula", "Erithacus rubecula"]
        assert store.get_settings().birdnet.range_filter.last_updated is not None

        species.append("mutating the copy")
        assert len(store.range_filter_species()) == 2

    def test_update_without_settings(self, store):
        with pytest.raises(CategorizedError):
            store.update_range_filter_species(["x"])
        assert store.range_filter_species() == []

    def test_species_not_persisted(self, store, config_dir):
        store.load()
        store.update_range_filter_species(["Turdus merula"])
        store.save_settings()
        document = yaml.safe_load((config_dir / "config.yaml").read_text())
        assert "species" not in document["birdnet"]["range_filter"]

    def test_species_survive_reload(self, store):
        store.load()
        store.update_range_filter_species(["Turdus merula"])
        store.reload()
        assert store.range_filter_species() == ["Turdus merula"]

    def test_update_racing_reload_lands_on_new_instance(self, store):
        store.load()
        real_get_settings = store.get_settings

        def get_then_reload():
            current = real_get_settings()
            store.reload()
            return current

        with patch.object(store, "get_settings", side_effect=get_then_reload):
            store.update_range_filter_species(["Turdus merula"])

        assert store.range_filter_species() == ["Turdus merula"]
        assert store.get_settings().birdnet.range_filter.species == ["Turdus merula"]

    def test_updates_during_saves(self, store):
        store.load()
        with ThreadPoolExecutor(max_workers=8) as pool:
            futures = [pool.submit(store.update_range_filter_species, [f"species-{i}"]) for i in range(50)]
            futures += [pool.submit(store.save_settings) for _ in range(10)]
            for future in futures:
                future.result()
        assert len(store.range_filter_species()) == 1


class TestRWLock:
    """Tests for the readers-writer lock."""

    def test_readers_share(self):
        lock = RWLock()
        inside = threading.Barrier(3, timeout=2)

        def reader():
            with lock.read():
                inside.wait()

        threads = [threading.Thread(target=reader) for _ in range(3)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

    def test_writer_waits_for_readers_and_blocks_new_ones(self):
        lock = RWLock()
        order = []
        lock.acquire_read()

        def writer():
            with lock.write():
                order.append("writer")

        def late_reader():
            with lock.read():
                order.append("reader")

        w = threading.Thread(target=writer)
        w.start()
        time.sleep(0.05)
        r = threading.Thread(target=late_reader)
        r.start()
        time.sleep(0.05)
        assert order == []

        lock.release_read()
        w.join(timeout=2)
        r.join(timeout=2)
        assert order == ["writer", "reader"]


class TestModuleApi:
    """Tests for the process-wide default store."""

    def test_setting_uses_default_paths(self, config_dir):
        s = config.setting()
        assert config.get_settings() is s
        assert config.get_store().config_path == config_dir / "config.yaml"

    def test_reset_settings(self, config_dir):
        first = config.get_store()
        config.reset_settings()
        assert config.get_store() is not first

    def test_save_settings(self, config_dir):
        config.load()
        with config.get_store().edit() as s:
            s.main.name = "module-api"
        config.save_settings()
        assert "module-api" in (config_dir / "config.yaml").read_text()

    def test_explicit_store_is_independent(self, config_dir):
        own = SettingsStore([config_dir])
        own.load()
        assert config.get_settings() is None
