"""Concurrency-safe holder of the current Settings instance."""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path

from birdnet_core.config._loader import load_settings
from birdnet_core.config._paths import find_config_file
from birdnet_core.config._persist import save_yaml_config
from birdnet_core.config._rwlock import RWLock
from birdnet_core.config._settings import Settings
from birdnet_core.config._validate import SettingsValidator, split_findings
from birdnet_core.errors import CategorizedError, ErrorCategory, SettingsValidationError

logger = logging.getLogger("birdnet_core.config")


class SettingsStore:
    """Holds the latest complete, validated Settings instance.

    Readers get the current reference under a shared lock and never see a
    partially built instance: load() parses and validates under the exclusive
    lock and swaps the new instance in whole. There is no versioning, so two
    separate reads may come from two generations if a reload interleaves;
    use snapshot() when several fields must agree.

    The range-filter species list is refreshed independently of reloads and
    has its own lock. Lock order is always settings lock, then species lock.

    A store is normally created once at startup and handed to every
    subsystem; birdnet_core.config also keeps a process-wide default store.
    """

    def __init__(
        self,
        config_paths: Iterable[Path] | None = None,
        validator: SettingsValidator | None = None,
    ) -> None:
        self._config_paths = [Path(p) for p in config_paths] if config_paths else None
        self._validator = validator or SettingsValidator()
        self._lock = RWLock()
        self._species_lock = threading.Lock()
        self._save_lock = threading.Lock()
        self._init_lock = threading.Lock()
        self._initialized = False
        self._init_error: CategorizedError | None = None
        self._settings: Settings | None = None
        self._config_path: Path | None = None

    @property
    def config_path(self) -> Path | None:
        """The document the current instance was loaded from."""
        with self._lock.read():
            return self._config_path

    def load(self) -> Settings:
        """Read, validate and install a new Settings instance.

        Raises:
            CategorizedError: the document could not be found, read or parsed
            SettingsValidationError: validation produced at least one fatal finding

        On failure the previously installed instance stays current.
        """
        with self._lock.write():
            settings, config_path = load_settings(self._config_paths)

            errors, warnings = split_findings(self._validator.validate(settings))
            if errors:
                raise SettingsValidationError(
                    errors, warnings, {"component": "settings", "path": str(config_path)}
                )
            for finding in warnings:
                logger.warning("Configuration warning: %s", finding.message)
                settings.validation_warnings.append(finding.message)

            # species updates find the live instance under the species lock,
            # so carry-over and swap happen together under it
            with self._species_lock:
                previous = self._settings
                if previous is not None:
                    old_filter = previous.birdnet.range_filter
                    settings.birdnet.range_filter.species = list(old_filter.species)
                    settings.birdnet.range_filter.last_updated = old_filter.last_updated
                self._settings = settings
            self._config_path = config_path

        logger.debug("Settings loaded from %s", config_path)
        return settings

    def reload(self) -> Settings:
        """Load again after startup; failures keep the current instance and are re-raised."""
        try:
            return self.load()
        except CategorizedError as e:
            logger.error("Reloading settings failed, keeping current settings: %s", e)
            raise

    def get_settings(self) -> Settings | None:
        """Return the current instance without copying it."""
        with self._lock.read():
            return self._settings

    def setting(self) -> Settings:
        """Return the current instance, loading it on first use.

        Exactly one load is attempted. If it fails the process cannot run
        without configuration and exits.
        """
        if not self._initialized:
            with self._init_lock:
                if not self._initialized:
                    try:
                        if self.get_settings() is None:
                            self.load()
                    except CategorizedError as e:
                        self._init_error = CategorizedError.wrap(
                            e, ErrorCategory.CONFIGURATION, operation="load-settings-init"
                        )
                        logger.critical("Error loading settings: %s", self._init_error)
                        raise SystemExit(1) from e
                    finally:
                        self._initialized = True
        if self._init_error is not None:
            raise SystemExit(1) from self._init_error
        return self.get_settings()

    def snapshot(self) -> Settings | None:
        """Return a deep copy of the current instance for multi-field reads."""
        with self._lock.read():
            if self._settings is None:
                return None
            return self._settings.model_copy(deep=True)

    @contextmanager
    def edit(self) -> Iterator[Settings]:
        """Exclusive access to the live instance for in-process setters.

        Usage:
            with store.edit() as s:
                s.main.name = "garden"
            store.save_settings()
        """
        with self._lock.write():
            if self._settings is None:
                raise CategorizedError("no settings loaded", ErrorCategory.CONFIGURATION, {"operation": "edit-settings"})
            yield self._settings

    def save_settings(self) -> Path:
        """Persist a copy of the current instance to the config document.

        Returns the path written. The live instance is never modified.
        """
        with self._save_lock, self._lock.read():
            live = self._settings
            if live is None:
                raise CategorizedError("no settings loaded", ErrorCategory.CONFIGURATION, {"operation": "save-settings"})

            with self._species_lock:
                species = list(live.birdnet.range_filter.species)
            snapshot = live.model_copy(deep=True)
            snapshot.birdnet.range_filter.species = species

            config_path = find_config_file(self._config_paths) or self._config_path
            if config_path is None:
                raise CategorizedError("config file not found", ErrorCategory.FILE_IO, {"operation": "find-config-file"})

            try:
                save_yaml_config(config_path, snapshot)
            except CategorizedError as e:
                raise CategorizedError.wrap(e, ErrorCategory.FILE_IO, operation="save-yaml-config", path=str(config_path))

        logger.info("Settings saved successfully to %s", config_path)
        return config_path

    def update_range_filter_species(self, species: Iterable[str]) -> None:
        """Replace the range-filter species list and stamp the update time."""
        if self.get_settings() is None:
            raise CategorizedError(
                "no settings loaded", ErrorCategory.CONFIGURATION, {"operation": "update-range-filter"}
            )
        with self._species_lock:
            # re-read: a reload may have installed a new instance meanwhile
            range_filter = self._settings.birdnet.range_filter
            range_filter.species = list(species)
            range_filter.last_updated = datetime.now(timezone.utc)

    def range_filter_species(self) -> list[str]:
        with self._species_lock:
            current = self._settings
            if current is None:
                return []
            return list(current.birdnet.range_filter.species)
