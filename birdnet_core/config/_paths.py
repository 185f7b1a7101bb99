"""Config document search paths."""

from __future__ import annotations

import os
import sys
from pathlib import Path

CONFIG_FILENAME = "config.yaml"
CONFIG_DIR_ENV = "BIRDNET_CONFIG_DIR"
APP_DIR_NAME = "birdnet-go"


def get_default_config_paths() -> list[Path]:
    """Return the directories searched for config.yaml, in priority order.

    1. $BIRDNET_CONFIG_DIR (explicit override, searched alone)
    2. Windows: the executable's directory, then %LOCALAPPDATA%\\birdnet-go
       Elsewhere: ~/.config/birdnet-go, then /etc/birdnet-go
    """
    explicit = os.environ.get(CONFIG_DIR_ENV)
    if explicit:
        return [Path(explicit).expanduser()]

    if sys.platform == "win32":
        paths = [Path(sys.executable).resolve().parent]
        local_app_data = os.environ.get("LOCALAPPDATA")
        if local_app_data:
            paths.append(Path(local_app_data) / APP_DIR_NAME)
        return paths

    return [
        Path.home() / ".config" / APP_DIR_NAME,
        Path("/etc") / APP_DIR_NAME,
    ]


def find_config_file(config_paths: list[Path] | None = None) -> Path | None:
    """Return the first existing config.yaml on the search paths."""
    for directory in config_paths or get_default_config_paths():
        candidate = directory / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
    return None


def first_writable_dir(config_paths: list[Path]) -> Path | None:
    """Return the first search path that exists or can be created, and is writable."""
    for directory in config_paths:
        try:
            directory.mkdir(mode=0o755, parents=True, exist_ok=True)
        except OSError:
            continue
        if os.access(directory, os.W_OK):
            return directory
    return None
