"""Backup target payloads and their validation.

A backup target is a ``type`` discriminator plus a ``settings`` mapping. The
mapping is decoded into the typed payload for that type when the document is
parsed; validation is a single function keyed on the type string. Each
per-type routine checks the required fields and fills protocol defaults
(FTP port 21, SFTP port 22, ...) in place, so validating a target can change
it.

Usage:
    from birdnet_core.config import validate_target

    try:
        payload = validate_target(settings.backup.targets[0])
    except TargetValidationError as e:
        log.warning("target unusable: %s (field %s)", e, e.field)
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import TYPE_CHECKING, Any, Union

from pydantic import BaseModel, Field, ValidationError

if TYPE_CHECKING:
    from birdnet_core.config._sections.backup import BackupTarget

TARGET_LOCAL = "local"
TARGET_FTP = "ftp"
TARGET_SFTP = "sftp"
TARGET_S3 = "s3"
TARGET_RSYNC = "rsync"
TARGET_GOOGLE_DRIVE = "googledrive"

DEFAULT_FTP_PORT = 21
DEFAULT_SSH_PORT = 22


class _TargetPayload(BaseModel):
    model_config = {"populate_by_name": True, "extra": "ignore"}


class LocalTargetSettings(_TargetPayload):
    path: str = ""


class FTPTargetSettings(_TargetPayload):
    host: str = ""
    port: int = 0
    username: str = ""
    password: str = ""
    path: str = ""
    use_tls: bool = Field(default=False, alias="usetls")


class SFTPTargetSettings(_TargetPayload):
    host: str = ""
    port: int = 0
    username: str = ""
    password: str = ""  # optional when a private key is given
    private_key_path: str = Field(default="", alias="privatekeypath")
    path: str = ""


class S3TargetSettings(_TargetPayload):
    endpoint: str = ""
    region: str = ""
    bucket: str = ""
    access_key_id: str = Field(default="", alias="accesskeyid")
    secret_access_key: str = Field(default="", alias="secretaccesskey")
    prefix: str = ""
    use_ssl: bool = Field(default=True, alias="usessl")


class RsyncTargetSettings(_TargetPayload):
    host: str = ""  # empty for a local rsync destination
    port: int = 0
    username: str = ""
    path: str = ""
    ssh_key_path: str = Field(default="", alias="sshkeypath")
    options: list[str] = Field(default_factory=list)


class GoogleDriveTargetSettings(_TargetPayload):
    credentials_path: str = Field(default="", alias="credentialspath")
    folder_id: str = Field(default="", alias="folderid")


TargetSettings = Union[
    LocalTargetSettings,
    FTPTargetSettings,
    SFTPTargetSettings,
    S3TargetSettings,
    RsyncTargetSettings,
    GoogleDriveTargetSettings,
]

TARGET_SETTINGS_MODELS: dict[str, type[_TargetPayload]] = {
    TARGET_LOCAL: LocalTargetSettings,
    TARGET_FTP: FTPTargetSettings,
    TARGET_SFTP: SFTPTargetSettings,
    TARGET_S3: S3TargetSettings,
    TARGET_RSYNC: RsyncTargetSettings,
    TARGET_GOOGLE_DRIVE: GoogleDriveTargetSettings,
}


class TargetValidationError(ValueError):
    """A backup target payload is missing or has an invalid required field."""

    def __init__(self, target_type: str, field: str, message: str):
        self.target_type = target_type
        self.field = field
        super().__init__(message)


class UnknownTargetTypeError(TargetValidationError):
    """The ``type`` discriminator names no known target kind."""

    def __init__(self, target_type: str):
        super().__init__(target_type, "type", f"unknown backup target type {target_type!r}")


def decode_target_settings(target_type: str, payload: Any) -> TargetSettings | dict[str, Any]:
    """Decode a raw settings mapping into the payload model for ``target_type``.

    Unknown types keep the raw mapping so the document still loads; the
    type is reported later by validate_target. A field of the wrong type
    raises TargetValidationError naming that field.
    """
    if payload is None:
        payload = {}
    model = TARGET_SETTINGS_MODELS.get(target_type.strip().lower())
    if model is None:
        if isinstance(payload, BaseModel):
            return payload.model_dump(by_alias=True)
        if not isinstance(payload, Mapping):
            raise ValueError("backup target settings must be a mapping")
        return dict(payload)
    if isinstance(payload, model):
        return payload
    if isinstance(payload, BaseModel):
        payload = payload.model_dump(by_alias=True)
    if not isinstance(payload, Mapping):
        raise ValueError("backup target settings must be a mapping")
    try:
        return model.model_validate(dict(payload))
    except ValidationError as e:
        first = e.errors()[0]
        field = ".".join(str(part) for part in first["loc"]) or "settings"
        raise TargetValidationError(
            target_type.strip().lower(), field, f"invalid {field}: {first['msg']}"
        ) from e


def _validate_local(s: LocalTargetSettings) -> None:
    if not s.path:
        raise TargetValidationError(TARGET_LOCAL, "path", "local backup path cannot be empty")


def _validate_ftp(s: FTPTargetSettings) -> None:
    if not s.host:
        raise TargetValidationError(TARGET_FTP, "host", "FTP host cannot be empty")
    if s.port == 0:
        s.port = DEFAULT_FTP_PORT


def _validate_sftp(s: SFTPTargetSettings) -> None:
    if not s.host:
        raise TargetValidationError(TARGET_SFTP, "host", "SFTP host cannot be empty")
    if s.port == 0:
        s.port = DEFAULT_SSH_PORT
    if not s.username:
        raise TargetValidationError(TARGET_SFTP, "username", "SFTP username cannot be empty")


def _validate_s3(s: S3TargetSettings) -> None:
    if not s.bucket:
        raise TargetValidationError(TARGET_S3, "bucket", "S3 bucket name cannot be empty")
    if not s.region:
        raise TargetValidationError(TARGET_S3, "region", "S3 region cannot be empty")


def _validate_rsync(s: RsyncTargetSettings) -> None:
    if not s.path:
        raise TargetValidationError(TARGET_RSYNC, "path", "rsync path cannot be empty")
    if s.host and s.port == 0:
        s.port = DEFAULT_SSH_PORT


def _validate_google_drive(s: GoogleDriveTargetSettings) -> None:
    if not s.credentials_path:
        raise TargetValidationError(
            TARGET_GOOGLE_DRIVE, "credentialspath", "google drive credentials path cannot be empty"
        )


_VALIDATORS: dict[str, Callable[[Any], None]] = {
    TARGET_LOCAL: _validate_local,
    TARGET_FTP: _validate_ftp,
    TARGET_SFTP: _validate_sftp,
    TARGET_S3: _validate_s3,
    TARGET_RSYNC: _validate_rsync,
    TARGET_GOOGLE_DRIVE: _validate_google_drive,
}


def validate_target(target: BackupTarget) -> TargetSettings:
    """Validate a target and fill its defaults, returning the typed payload.

    Raises:
        UnknownTargetTypeError: the type discriminator is not recognized
        TargetValidationError: a required field is missing or invalid
    """
    kind = target.type.strip().lower()
    validator = _VALIDATORS.get(kind)
    if validator is None:
        raise UnknownTargetTypeError(target.type)

    payload = target.settings
    if not isinstance(payload, TARGET_SETTINGS_MODELS[kind]):
        payload = decode_target_settings(kind, payload)
        target.settings = payload

    validator(payload)
    return payload
