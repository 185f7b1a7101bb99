"""Atomic YAML persistence of a settings snapshot."""

from __future__ import annotations

import errno
import logging
import os
import shutil
import tempfile
from pathlib import Path

import yaml

from birdnet_core.config._settings import Settings
from birdnet_core.errors import CategorizedError, ErrorCategory

logger = logging.getLogger("birdnet_core.config")


def _remove_temp(tmp_path: str) -> None:
    try:
        os.unlink(tmp_path)
    except FileNotFoundError:
        pass
    except OSError as e:
        logger.warning("Failed to remove temporary file %s: %s", tmp_path, e)


def _move_file(src: str, dst: Path) -> None:
    """Copy-then-delete, for when src and dst live on different filesystems."""
    shutil.copyfile(src, dst)
    os.chmod(dst, 0o600)
    os.unlink(src)


def save_yaml_config(config_path: Path, settings: Settings) -> None:
    """Write the persisted fields of ``settings`` to ``config_path`` atomically.

    The document is written to a temp file in the destination directory and
    renamed over the destination. On any failure the temp file is removed and
    the destination is left as it was. Comments in an existing document are
    not preserved.
    """
    config_path = Path(config_path)
    try:
        data = yaml.safe_dump(settings.persisted(), sort_keys=False, allow_unicode=True)
    except yaml.YAMLError as e:
        raise CategorizedError(
            f"cannot serialize settings: {e}",
            ErrorCategory.CONFIGURATION,
            {"operation": "yaml-marshal"},
        ) from e

    try:
        fd, tmp_path = tempfile.mkstemp(dir=str(config_path.parent), prefix="config-", suffix=".yaml")
    except OSError as e:
        raise CategorizedError(
            f"cannot create temporary file: {e}",
            ErrorCategory.FILE_IO,
            {"operation": "create-temp-file", "dir": str(config_path.parent)},
        ) from e

    try:
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(data)
                fh.flush()
                os.fsync(fh.fileno())
        except OSError as e:
            raise CategorizedError(
                f"cannot write temporary file: {e}",
                ErrorCategory.FILE_IO,
                {"operation": "write-temp-file", "path": tmp_path},
            ) from e

        try:
            os.replace(tmp_path, config_path)
        except OSError as e:
            if e.errno != errno.EXDEV:
                raise CategorizedError(
                    f"cannot replace config file: {e}",
                    ErrorCategory.FILE_IO,
                    {"operation": "rename-config-file", "src": tmp_path, "dst": str(config_path)},
                ) from e
            try:
                _move_file(tmp_path, config_path)
            except OSError as move_err:
                raise CategorizedError(
                    f"cannot move config file: {move_err}",
                    ErrorCategory.FILE_IO,
                    {"operation": "move-config-file", "src": tmp_path, "dst": str(config_path)},
                ) from move_err
    finally:
        # no-op after a successful rename or move
        _remove_temp(tmp_path)
