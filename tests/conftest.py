"""Pytest configuration and fixtures for birdnet-core tests."""

import os
import textwrap

import pytest

from birdnet_core.config import SettingsStore, reset_settings


@pytest.fixture
def config_dir(tmp_path, monkeypatch):
    """An isolated, not yet existing config directory with a clean BIRDNET_* environment."""
    for name in list(os.environ):
        if name.upper().startswith("BIRDNET_"):
            monkeypatch.delenv(name)

    directory = tmp_path / "birdnet-go"
    monkeypatch.setenv("BIRDNET_CONFIG_DIR", str(directory))
    reset_settings()
    yield directory
    reset_settings()


@pytest.fixture
def write_config(config_dir):
    """Write a config.yaml document into the isolated config directory."""

    def _write(text: str):
        config_dir.mkdir(parents=True, exist_ok=True)
        path = config_dir / "config.yaml"
        path.write_text(textwrap.dedent(text), encoding="utf-8")
        return path

    return _write


@pytest.fixture
def store(config_dir):
    """A SettingsStore searching only the isolated config directory."""
    return SettingsStore([config_dir])
