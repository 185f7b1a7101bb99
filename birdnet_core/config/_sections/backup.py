"""Backup configuration models."""

from __future__ import annotations

import re
from datetime import timedelta
from typing import Any

from pydantic import BaseModel, Field, field_serializer, model_validator

from birdnet_core.config._targets import TargetValidationError, decode_target_settings
from birdnet_core.config._types import Duration, parse_duration

WEEKDAYS = ("sunday", "monday", "tuesday", "wednesday", "thursday", "friday", "saturday")

DEFAULT_OPERATION_TIMEOUTS = {
    "backup": timedelta(hours=2),
    "store": timedelta(minutes=15),
    "cleanup": timedelta(minutes=10),
    "delete": timedelta(minutes=2),
}

_RETENTION_AGE = re.compile(r"^\s*(\d+)\s*([dwmy])\s*$", re.IGNORECASE)
_RETENTION_DAYS = {"d": 1, "w": 7, "m": 30, "y": 365}


def parse_weekday(value: str) -> int:
    """Return 0 (Sunday) to 6 (Saturday) for a weekday name or numeric string."""
    text = value.strip().lower()
    if text in WEEKDAYS:
        return WEEKDAYS.index(text)
    if text.isdigit() and 0 <= int(text) <= 6:
        return int(text)
    raise ValueError(f"invalid weekday {value!r}")


def parse_retention_age(value: str) -> timedelta | None:
    """Parse a retention age such as "30d", "2w", "6m" or "1y".

    Months count as 30 days and years as 365. An empty value means no age
    limit and returns None.
    """
    if not value or not value.strip():
        return None
    match = _RETENTION_AGE.match(value)
    if match is None:
        raise ValueError(f"invalid retention age {value!r}, expected e.g. 30d, 2w, 6m or 1y")
    return timedelta(days=int(match.group(1)) * _RETENTION_DAYS[match.group(2).lower()])


class BackupRetention(BaseModel):
    max_age: str = "30d"
    max_backups: int = 30  # 0 means no count limit
    min_backups: int = 7  # always kept regardless of age or count

    def max_age_delta(self) -> timedelta | None:
        return parse_retention_age(self.max_age)


class BackupTarget(BaseModel):
    type: str = ""
    enabled: bool = True
    # typed payload for known types, raw mapping otherwise
    settings: Any = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def _decode_settings(cls, data: Any) -> Any:
        if isinstance(data, dict):
            data = dict(data)
            try:
                data["settings"] = decode_target_settings(str(data.get("type") or ""), data.get("settings"))
            except TargetValidationError:
                # keep the raw mapping; validate_target reports it as a finding
                data["settings"] = dict(data.get("settings") or {})
        return data

    @field_serializer("settings")
    def _dump_settings(self, value: Any, info) -> Any:
        if isinstance(value, BaseModel):
            return value.model_dump(mode=info.mode, by_alias=True)
        return value


class BackupSchedule(BaseModel):
    enabled: bool = True
    hour: int = 0
    minute: int = 0
    weekday: str = ""  # weekly only: "Sunday".."Saturday" or "0".."6"
    is_weekly: bool = False

    def weekday_number(self) -> int | None:
        """Weekday index for weekly schedules, None for daily ones."""
        if not self.is_weekly:
            return None
        return parse_weekday(self.weekday)


class OperationTimeouts(BaseModel):
    backup: Duration = DEFAULT_OPERATION_TIMEOUTS["backup"]
    store: Duration = DEFAULT_OPERATION_TIMEOUTS["store"]
    cleanup: Duration = DEFAULT_OPERATION_TIMEOUTS["cleanup"]
    delete: Duration = DEFAULT_OPERATION_TIMEOUTS["delete"]

    @model_validator(mode="before")
    @classmethod
    def _default_unset(cls, data: Any) -> Any:
        if data is None:
            return {}
        if not isinstance(data, dict):
            return data
        data = dict(data)
        for key, default in DEFAULT_OPERATION_TIMEOUTS.items():
            value = data.get(key)
            if value is None or value == "":
                data[key] = default
                continue
            try:
                if parse_duration(value) == timedelta(0):
                    data[key] = default
            except ValueError:
                pass  # reported by field validation
        return data


class BackupConfig(BaseModel):
    enabled: bool = False
    debug: bool = False
    encryption: bool = False
    encryption_key: str = ""  # reference to the archive key, never the archive itself
    sanitize_config: bool = True
    retention: BackupRetention = Field(default_factory=BackupRetention)
    targets: list[BackupTarget] = Field(default_factory=list)
    schedules: list[BackupSchedule] = Field(default_factory=list)
    operation_timeouts: OperationTimeouts = Field(default_factory=OperationTimeouts)
