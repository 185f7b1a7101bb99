"""Config document discovery, default materialization and layered loading.

Layers, lowest to highest priority:
    1. the embedded template (birdnet_core/config/config.yaml)
    2. the on-disk document found on the search paths
    3. BIRDNET_* environment variables (see Settings.settings_customise_sources)

When no document exists on any search path, the template is written to the
first writable one with a freshly generated OAuth client secret.
"""

from __future__ import annotations

import copy
import logging
import os
import re
import secrets
from importlib import metadata, resources
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from birdnet_core.config._paths import (
    CONFIG_FILENAME,
    find_config_file,
    first_writable_dir,
    get_default_config_paths,
)
from birdnet_core.config._secrets import generate_random_secret
from birdnet_core.config._settings import RUNTIME_FIELDS, Settings
from birdnet_core.errors import CategorizedError, ErrorCategory

logger = logging.getLogger("birdnet_core.config")

TEMPLATE_NAME = "config.yaml"
SYSTEM_ID_FILENAME = ".system_id"
PACKAGE_NAME = "birdnet-core"

# runtime-only, but still read from older documents
LEGACY_READ_FIELDS = frozenset({"realtime.openweather"})

_CLIENT_SECRET_LINE = re.compile(r"^(?P<indent>[ \t]+)client_secret:.*$", re.MULTILINE)
_SYSTEM_ID = re.compile(r"[0-9A-F]{4}-[0-9A-F]{4}-[0-9A-F]{4}")


def get_default_config() -> str:
    """Return the embedded template text."""
    return resources.files("birdnet_core.config").joinpath(TEMPLATE_NAME).read_text(encoding="utf-8")


def _parse_yaml(text: str, source: str | Path) -> dict[str, Any]:
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise CategorizedError(
            f"invalid YAML: {e}",
            ErrorCategory.CONFIGURATION,
            {"operation": "parse-config", "path": str(source)},
        ) from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise CategorizedError(
            "config document must be a mapping",
            ErrorCategory.CONFIGURATION,
            {"operation": "parse-config", "path": str(source)},
        )
    return data


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Merge ``override`` into a copy of ``base``; nested mappings merge, everything else replaces."""
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def _strip_runtime_fields(data: dict[str, Any]) -> dict[str, Any]:
    """Drop runtime-only keys a document may carry; they are computed, not read."""
    data = copy.deepcopy(data)
    for path in RUNTIME_FIELDS - LEGACY_READ_FIELDS:
        *parents, leaf = path.split(".")
        node: Any = data
        for key in parents:
            node = node.get(key) if isinstance(node, dict) else None
        if isinstance(node, dict):
            node.pop(leaf, None)
    return data


def _fill_client_secret(text: str) -> str:
    """Put a generated client secret into the template's basic_auth block.

    The template is otherwise kept verbatim so its comments survive.
    """
    data = _parse_yaml(text, "embedded template")
    basic_auth = data.get("security", {}).get("basic_auth", {})
    if basic_auth.get("client_secret"):
        return text

    secret = generate_random_secret()
    if secret is None:
        logger.warning("No client secret generated, security.basic_auth.client_secret left empty")
        return text

    block = text.find("basic_auth:")
    match = _CLIENT_SECRET_LINE.search(text, block) if block != -1 else None
    if match is None:
        data.setdefault("security", {}).setdefault("basic_auth", {})["client_secret"] = secret
        return yaml.safe_dump(data, sort_keys=False)
    line = f'{match.group("indent")}client_secret: "{secret}"'
    return text[: match.start()] + line + text[match.end() :]


def create_default_config(config_paths: list[Path]) -> Path:
    """Write the embedded template to the first writable search path."""
    directory = first_writable_dir(config_paths)
    if directory is None:
        raise CategorizedError(
            "no writable config directory",
            ErrorCategory.FILE_IO,
            {"operation": "create-config-dirs", "paths": ", ".join(str(p) for p in config_paths)},
        )

    config_path = directory / CONFIG_FILENAME
    text = _fill_client_secret(get_default_config())
    try:
        # owner read/write only, the document may hold credentials
        fd = os.open(config_path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            fh.write(text)
    except OSError as e:
        raise CategorizedError(
            f"cannot write default config: {e}",
            ErrorCategory.FILE_IO,
            {"operation": "write-default-config", "path": str(config_path)},
        ) from e

    logger.info("Created default config file at %s", config_path)
    return config_path


def read_document(config_path: Path) -> dict[str, Any]:
    try:
        text = config_path.read_text(encoding="utf-8")
    except OSError as e:
        raise CategorizedError(
            f"cannot read config file: {e}",
            ErrorCategory.FILE_IO,
            {"operation": "read-config-file", "path": str(config_path)},
        ) from e
    return _parse_yaml(text, config_path)


def load_document(config_paths: list[Path] | None = None) -> tuple[dict[str, Any], Path]:
    """Return the template merged with the on-disk document, and the document path.

    A missing document is the only condition that triggers materialization.
    """
    paths = config_paths or get_default_config_paths()
    config_path = find_config_file(paths)
    if config_path is None:
        config_path = create_default_config(paths)

    document = read_document(config_path)
    template = _parse_yaml(get_default_config(), "embedded template")
    return _strip_runtime_fields(deep_merge(template, document)), config_path


def _package_version() -> str:
    try:
        return metadata.version(PACKAGE_NAME)
    except metadata.PackageNotFoundError:
        return "dev"


def get_or_create_system_id(config_dir: Path) -> str:
    """Return the node's system identifier, creating .system_id when missing.

    When the file cannot be written a fresh id is used for this process only.
    """
    id_path = config_dir / SYSTEM_ID_FILENAME
    try:
        existing = id_path.read_text(encoding="utf-8").strip()
    except FileNotFoundError:
        existing = ""
    except OSError as e:
        logger.warning("Could not read system id from %s: %s", id_path, e)
        existing = ""
    if _SYSTEM_ID.fullmatch(existing):
        return existing

    raw = secrets.token_hex(6).upper()
    system_id = f"{raw[0:4]}-{raw[4:8]}-{raw[8:12]}"
    try:
        fd = os.open(id_path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            fh.write(system_id + "\n")
    except OSError as e:
        logger.warning("Could not persist system id to %s: %s", id_path, e)
    return system_id


def apply_runtime_values(settings: Settings, config_dir: Path) -> None:
    """Compute the runtime-only fields of a freshly parsed instance."""
    if not settings.version:
        settings.version = _package_version()
    if not settings.build_date:
        settings.build_date = "unknown"
    settings.system_id = get_or_create_system_id(config_dir)
    settings.validation_warnings = []


def load_settings(config_paths: list[Path] | None = None) -> tuple[Settings, Path]:
    """Build a Settings instance from template, document and environment.

    The result is parsed but not yet semantically validated.
    """
    data, config_path = load_document(config_paths)
    try:
        settings = Settings(**data)
    except ValidationError as e:
        raise CategorizedError(
            f"cannot parse config document: {e}",
            ErrorCategory.CONFIGURATION,
            {"operation": "unmarshal-config", "path": str(config_path)},
        ) from e

    apply_runtime_values(settings, config_path.parent)
    return settings, config_path
