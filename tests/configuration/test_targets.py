"""Tests for backup target decoding and validation."""

import pytest

from birdnet_core.config import (
    TargetValidationError,
    UnknownTargetTypeError,
    decode_target_settings,
    validate_target,
)
from birdnet_core.config._sections import BackupTarget
from birdnet_core.config._targets import (
    FTPTargetSettings,
    GoogleDriveTargetSettings,
    RsyncTargetSettings,
    S3TargetSettings,
    SFTPTargetSettings,
)


def _target(kind, **settings):
    return BackupTarget(type=kind, settings=settings)


class TestDecodeTargetSettings:
    """Tests for decoding raw payloads into typed models."""

    def test_known_type_decodes_to_model(self):
        """A target's settings become the typed payload at parse time."""
        target = BackupTarget.model_validate({"type": "ftp", "settings": {"host": "nas", "usetls": True}})
        assert isinstance(target.settings, FTPTargetSettings)
        assert target.settings.host == "nas"
        assert target.settings.use_tls is True

    def test_lowercase_aliases(self):
        """Document keys for S3 credentials are lowercase without separators."""
        payload = decode_target_settings(
            "s3", {"bucket": "b", "region": "eu-west-1", "accesskeyid": "AK", "secretaccesskey": "SK"}
        )
        assert isinstance(payload, S3TargetSettings)
        assert payload.access_key_id == "AK"
        assert payload.secret_access_key == "SK"

    def test_type_is_case_insensitive(self):
        payload = decode_target_settings("GoogleDrive", {"credentialspath": "/creds.json"})
        assert isinstance(payload, GoogleDriveTargetSettings)

    def test_unknown_type_keeps_raw_mapping(self):
        """An unknown type still loads; it is reported on validation."""
        target = BackupTarget.model_validate({"type": "webdav", "settings": {"url": "https://x"}})
        assert target.settings == {"url": "https://x"}

    def test_missing_settings_decode_to_defaults(self):
        target = BackupTarget.model_validate({"type": "local"})
        assert target.settings.path == ""

    @pytest.mark.parametrize(
        ("settings", "field"),
        [({"host": "nas", "port": "twenty-one"}, "port"), ({"host": None}, "host")],
    )
    def test_mistyped_field_names_the_field(self, settings, field):
        with pytest.raises(TargetValidationError) as exc_info:
            decode_target_settings("ftp", settings)
        assert exc_info.value.target_type == "ftp"
        assert exc_info.value.field == field

    def test_mistyped_field_keeps_raw_mapping_until_validation(self):
        """The document still loads; the bad field surfaces on validate_target."""
        target = BackupTarget.model_validate({"type": "ftp", "settings": {"host": "nas", "port": "twenty-one"}})
        assert target.settings == {"host": "nas", "port": "twenty-one"}

        with pytest.raises(TargetValidationError) as exc_info:
            validate_target(target)
        assert exc_info.value.field == "port"
        assert target.model_dump(mode="json")["settings"]["port"] == "twenty-one"

    def test_non_mapping_payload_rejected(self):
        with pytest.raises(ValueError):
            decode_target_settings("ftp", ["host"])

    def test_serializes_with_document_keys(self):
        """Dumping a target writes the aliased keys back."""
        target = _target("sftp", host="h", privatekeypath="/k")
        dumped = target.model_dump(mode="json")
        assert dumped["settings"]["privatekeypath"] == "/k"
        assert "private_key_path" not in dumped["settings"]


class TestValidateTarget:
    """Tests for validate_target defaulting and errors."""

    def test_ftp_default_port(self):
        """An FTP target without a port validates and gets port 21."""
        payload = validate_target(_target("ftp", host="nas.local"))
        assert isinstance(payload, FTPTargetSettings)
        assert payload.port == 21

    def test_ftp_explicit_port_kept(self):
        payload = validate_target(_target("ftp", host="nas.local", port=2121))
        assert payload.port == 2121

    def test_sftp_default_port(self):
        payload = validate_target(_target("sftp", host="nas.local", username="pi"))
        assert isinstance(payload, SFTPTargetSettings)
        assert payload.port == 22

    def test_rsync_port_only_with_host(self):
        """Rsync gets port 22 only when a remote host is set."""
        remote = validate_target(_target("rsync", host="backup", path="/srv"))
        local = validate_target(_target("rsync", path="/srv"))
        assert isinstance(remote, RsyncTargetSettings)
        assert remote.port == 22
        assert local.port == 0

    def test_defaults_are_written_back(self):
        """Validation fills defaults on the target itself."""
        target = _target("ftp", host="nas.local")
        validate_target(target)
        assert target.settings.port == 21

    @pytest.mark.parametrize(
        ("kind", "settings", "field"),
        [
            ("local", {}, "path"),
            ("ftp", {}, "host"),
            ("sftp", {}, "host"),
            ("sftp", {"host": "h"}, "username"),
            ("s3", {"region": "us-east-1"}, "bucket"),
            ("s3", {"bucket": "b"}, "region"),
            ("rsync", {"host": "h"}, "path"),
            ("googledrive", {}, "credentialspath"),
        ],
    )
    def test_missing_required_field_names_field(self, kind, settings, field):
        """Each missing required field produces its own field-naming error."""
        with pytest.raises(TargetValidationError) as exc_info:
            validate_target(_target(kind, **settings))
        assert exc_info.value.field == field
        assert exc_info.value.target_type == kind

    def test_errors_are_distinct(self):
        """S3 bucket and region failures produce different messages."""
        messages = set()
        for settings in ({"region": "r"}, {"bucket": "b"}):
            with pytest.raises(TargetValidationError) as exc_info:
                validate_target(_target("s3", **settings))
            messages.add(str(exc_info.value))
        assert len(messages) == 2

    def test_unknown_type(self):
        with pytest.raises(UnknownTargetTypeError) as exc_info:
            validate_target(_target("webdav", url="https://x"))
        assert exc_info.value.field == "type"
        assert "webdav" in str(exc_info.value)

    def test_empty_ftp_host_from_document(self):
        """An FTP target with host "" is unusable and the error names host."""
        target = BackupTarget.model_validate({"type": "ftp", "settings": {"host": "", "username": "u"}})
        with pytest.raises(TargetValidationError) as exc_info:
            validate_target(target)
        assert exc_info.value.field == "host"
        assert "host" in str(exc_info.value)

    def test_type_changed_after_parse(self):
        """A payload decoded for another type is re-decoded for the current one."""
        target = _target("local", path="/backups")
        target.type = "rsync"
        payload = validate_target(target)
        assert isinstance(payload, RsyncTargetSettings)
        assert payload.path == "/backups"
