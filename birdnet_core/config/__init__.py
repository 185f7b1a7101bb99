"""Node configuration.

Usage:
    from birdnet_core.config import setting

    s = setting()
    s.birdnet.locale            # "en-uk"
    s.realtime.mqtt.broker      # "tcp://localhost:1883"

Subsystems that prefer explicit wiring can construct their own
SettingsStore and pass it around instead of using the module-level one.
"""

from __future__ import annotations

import threading
from pathlib import Path

from birdnet_core.config._loader import create_default_config, get_default_config, load_settings
from birdnet_core.config._paths import CONFIG_FILENAME, find_config_file, get_default_config_paths
from birdnet_core.config._persist import save_yaml_config
from birdnet_core.config._secrets import generate_random_secret
from birdnet_core.config._settings import RUNTIME_FIELDS, Settings, runtime_field_paths
from birdnet_core.config._store import SettingsStore
from birdnet_core.config._targets import (
    TargetValidationError,
    UnknownTargetTypeError,
    decode_target_settings,
    validate_target,
)
from birdnet_core.config._types import Duration, format_duration, parse_duration
from birdnet_core.config._validate import Finding, Severity, SettingsValidator, classify_message

_store: SettingsStore | None = None
_store_lock = threading.Lock()


def get_store() -> SettingsStore:
    """Return the process-wide SettingsStore (created on first call)."""
    global _store
    if _store is None:
        with _store_lock:
            if _store is None:
                _store = SettingsStore()
    return _store


def load() -> Settings:
    return get_store().load()


def get_settings() -> Settings | None:
    """Current settings, or None before the first successful load."""
    return get_store().get_settings()


def setting() -> Settings:
    """Current settings, loading them on first use; exits the process if that fails."""
    return get_store().setting()


def save_settings() -> Path:
    return get_store().save_settings()


def reset_settings() -> None:
    """Drop the process-wide store (useful for tests)."""
    global _store
    with _store_lock:
        _store = None


__all__ = [
    "CONFIG_FILENAME",
    "RUNTIME_FIELDS",
    "Duration",
    "Finding",
    "Settings",
    "SettingsStore",
    "SettingsValidator",
    "Severity",
    "TargetValidationError",
    "UnknownTargetTypeError",
    "classify_message",
    "create_default_config",
    "decode_target_settings",
    "find_config_file",
    "format_duration",
    "generate_random_secret",
    "get_default_config",
    "get_default_config_paths",
    "get_settings",
    "get_store",
    "load",
    "load_settings",
    "parse_duration",
    "reset_settings",
    "runtime_field_paths",
    "save_settings",
    "save_yaml_config",
    "setting",
    "validate_target",
]
