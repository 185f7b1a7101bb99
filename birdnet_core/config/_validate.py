"""Semantic validation of a parsed Settings instance.

Validation produces structured findings rather than raising on the first
problem. A finding is either a WARNING (recorded on
``Settings.validation_warnings``, the load still succeeds) or an ERROR (the
load fails with SettingsValidationError).

Some checks repair what they report: an unsupported locale is replaced by the
fallback locale, and backup targets get their protocol defaults filled in.
"""

from __future__ import annotations

import ipaddress
import re
from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass
from enum import Enum

from birdnet_core.config._sections import LogConfig, RetrySettings
from birdnet_core.config._sections.backup import WEEKDAYS, parse_retention_age, parse_weekday
from birdnet_core.config._settings import Settings
from birdnet_core.config._targets import TargetValidationError, validate_target


class Severity(str, Enum):
    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True)
class Finding:
    severity: Severity
    code: str
    message: str
    field: str = ""

    @property
    def is_fatal(self) -> bool:
        return self.severity is Severity.ERROR


# Free-text messages from extra checks containing one of these are warnings.
WARNING_MARKERS = ("fallback", "not supported")

FALLBACK_LOCALE = "en-uk"

SUPPORTED_LOCALES = frozenset(
    {
        "af", "ar", "bg", "ca", "cs", "da", "de", "el", "en-uk", "en-us", "es", "et",
        "fi", "fr", "he", "hr", "hu", "id", "is", "it", "ja", "ko", "lt", "lv", "ml",
        "nl", "no", "pl", "pt-br", "pt-pt", "ro", "ru", "sk", "sl", "sr", "sv", "th",
        "tr", "uk", "zh",
    }
)  # fmt: skip

LOCALE_ALIASES = {"en": "en-uk", "en-gb": "en-uk", "pt": "pt-pt", "nb": "no", "zh-cn": "zh"}

EXPORT_TYPES = ("wav", "mp3", "flac", "aac", "opus")
RETENTION_POLICIES = ("none", "age", "usage")
RTSP_TRANSPORTS = ("tcp", "udp")
WEATHER_PROVIDERS = ("none", "yrno", "openweather")
LOG_ROTATIONS = ("daily", "weekly", "size")

_USAGE_PERCENT = re.compile(r"^\s*(\d{1,3})\s*%\s*$")

Check = Callable[[Settings], Iterable["Finding | str"]]


def classify_message(message: str) -> Severity:
    """Severity for a free-text validation message."""
    lowered = message.lower()
    if any(marker in lowered for marker in WARNING_MARKERS):
        return Severity.WARNING
    return Severity.ERROR


def _error(code: str, field: str, message: str) -> Finding:
    return Finding(Severity.ERROR, code, message, field)


def _warning(code: str, field: str, message: str) -> Finding:
    return Finding(Severity.WARNING, code, message, field)


def _check_range(field: str, value: float, low: float, high: float) -> Iterator[Finding]:
    if not low <= value <= high:
        yield _error("out-of-range", field, f"{field} must be between {low} and {high}, got {value}")


# ── birdnet ─────────────────────────────────────────────────────────────


def check_birdnet(settings: Settings) -> Iterator[Finding]:
    b = settings.birdnet
    yield from _check_range("birdnet.sensitivity", b.sensitivity, 0.0, 1.5)
    yield from _check_range("birdnet.threshold", b.threshold, 0.0, 1.0)
    yield from _check_range("birdnet.overlap", b.overlap, 0.0, 2.9)
    yield from _check_range("birdnet.latitude", b.latitude, -90.0, 90.0)
    yield from _check_range("birdnet.longitude", b.longitude, -180.0, 180.0)
    yield from _check_range("birdnet.range_filter.threshold", b.range_filter.threshold, 0.0, 1.0)
    if b.threads < 0:
        yield _error("out-of-range", "birdnet.threads", "birdnet.threads cannot be negative")


def normalize_locale(locale: str) -> str | None:
    """Return the canonical supported locale, or None when unsupported."""
    key = locale.strip().lower().replace("_", "-")
    key = LOCALE_ALIASES.get(key, key)
    return key if key in SUPPORTED_LOCALES else None


def check_locale(settings: Settings) -> Iterator[Finding]:
    requested = settings.birdnet.locale
    normalized = normalize_locale(requested)
    if normalized is None:
        settings.birdnet.locale = FALLBACK_LOCALE
        yield _warning(
            "locale-fallback",
            "birdnet.locale",
            f"locale {requested!r} is not supported, using fallback locale {FALLBACK_LOCALE!r}",
        )
    else:
        settings.birdnet.locale = normalized


# ── realtime ────────────────────────────────────────────────────────────


def _check_retry(field: str, retry: RetrySettings) -> Iterator[Finding]:
    if not retry.enabled:
        return
    if retry.max_retries < 0:
        yield _error("retry", f"{field}.max_retries", f"{field}.max_retries cannot be negative")
    if retry.initial_delay < 0:
        yield _error("retry", f"{field}.initial_delay", f"{field}.initial_delay cannot be negative")
    if retry.max_delay < retry.initial_delay:
        yield _error("retry", f"{field}.max_delay", f"{field}.max_delay must not be less than initial_delay")
    if retry.backoff_multiplier < 1.0:
        yield _error(
            "retry", f"{field}.backoff_multiplier", f"{field}.backoff_multiplier must be at least 1.0"
        )


def check_realtime(settings: Settings) -> Iterator[Finding]:
    rt = settings.realtime
    if rt.interval < 0:
        yield _error("out-of-range", "realtime.interval", "realtime.interval cannot be negative")

    export = rt.audio.export
    export.type = export.type.lower()
    if export.type not in EXPORT_TYPES:
        yield _error(
            "export-type",
            "realtime.audio.export.type",
            f"unknown audio export type {export.type!r}, expected one of {', '.join(EXPORT_TYPES)}",
        )
    elif export.enabled and export.type != "wav" and not rt.audio.ffmpeg_path:
        yield _warning(
            "export-type",
            "realtime.audio.export.type",
            f"audio export type {export.type!r} is not supported without ffmpeg, falling back to wav",
        )
        export.type = "wav"

    retention = export.retention
    if retention.policy not in RETENTION_POLICIES:
        yield _error(
            "retention-policy",
            "realtime.audio.export.retention.policy",
            f"unknown clip retention policy {retention.policy!r}",
        )
    match = _USAGE_PERCENT.match(retention.max_usage)
    if match is None or not 0 < int(match.group(1)) <= 100:
        yield _error(
            "retention-usage",
            "realtime.audio.export.retention.max_usage",
            f"clip retention max_usage must be a percentage like 80%, got {retention.max_usage!r}",
        )
    if retention.policy == "age":
        try:
            parse_retention_age(retention.max_age)
        except ValueError as e:
            yield _error("retention-age", "realtime.audio.export.retention.max_age", str(e))

    if rt.rtsp.transport.lower() not in RTSP_TRANSPORTS:
        yield _error("rtsp-transport", "realtime.rtsp.transport", f"unknown RTSP transport {rt.rtsp.transport!r}")

    if rt.mqtt.enabled and not rt.mqtt.broker:
        yield _error("mqtt", "realtime.mqtt.broker", "MQTT is enabled but no broker is configured")
    yield from _check_retry("realtime.mqtt.retry_settings", rt.mqtt.retry_settings)

    if rt.birdweather.enabled and not rt.birdweather.id:
        yield _error("birdweather", "realtime.birdweather.id", "BirdWeather is enabled but no station id is set")
    yield from _check_range("realtime.birdweather.threshold", rt.birdweather.threshold, 0.0, 1.0)
    yield from _check_retry("realtime.birdweather.retry_settings", rt.birdweather.retry_settings)

    provider, openweather = settings.get_weather_settings()
    if provider not in WEATHER_PROVIDERS:
        yield _error("weather", "realtime.weather.provider", f"unknown weather provider {provider!r}")
    elif provider == "openweather" and not openweather.api_key:
        yield _error("weather", "realtime.weather.openweather.api_key", "OpenWeather provider requires an API key")

    if rt.dashboard.summary_limit < 1:
        yield _error(
            "out-of-range", "realtime.dashboard.summary_limit", "realtime.dashboard.summary_limit must be at least 1"
        )


# ── logging, web server, security ───────────────────────────────────────


def _check_log(field: str, log: LogConfig) -> Iterator[Finding]:
    if not log.enabled:
        return
    rotation = log.rotation.lower()
    if rotation not in LOG_ROTATIONS:
        yield _error("log-rotation", f"{field}.rotation", f"unknown log rotation {log.rotation!r}")
    elif rotation == "weekly" and log.rotation_day.strip().lower() not in WEEKDAYS:
        yield _error("log-rotation", f"{field}.rotation_day", f"invalid rotation day {log.rotation_day!r}")
    elif rotation == "size" and log.max_size <= 0:
        yield _error("log-rotation", f"{field}.max_size", f"{field}.max_size must be positive for size rotation")


def check_logging(settings: Settings) -> Iterator[Finding]:
    yield from _check_log("main.log", settings.main.log)
    yield from _check_log("web_server.log", settings.web_server.log)


def check_web_server(settings: Settings) -> Iterator[Finding]:
    port = settings.web_server.port.strip()
    if not port.isdigit() or not 0 < int(port) < 65536:
        yield _error("port", "web_server.port", f"invalid web server port {settings.web_server.port!r}")


def check_security(settings: Settings) -> Iterator[Finding]:
    sec = settings.security
    if sec.auto_tls and not sec.host:
        yield _error("security", "security.host", "auto TLS requires security.host to be set")
    for name, provider in (("google_auth", sec.google_auth), ("github_auth", sec.github_auth)):
        if provider.enabled and not (provider.client_id and provider.client_secret):
            yield _error(
                "security",
                f"security.{name}",
                f"security.{name} is enabled but client_id or client_secret is missing",
            )
    bypass = sec.allow_subnet_bypass
    if bypass.enabled:
        subnets = [s.strip() for s in bypass.subnet.split(",") if s.strip()]
        if not subnets:
            yield _error("security", "security.allow_subnet_bypass.subnet", "subnet bypass enabled without a subnet")
        for subnet in subnets:
            try:
                ipaddress.ip_network(subnet, strict=False)
            except ValueError:
                yield _error("security", "security.allow_subnet_bypass.subnet", f"invalid subnet {subnet!r}")


# ── backup ──────────────────────────────────────────────────────────────


def check_backup(settings: Settings) -> Iterator[Finding]:
    backup = settings.backup

    retention = backup.retention
    try:
        parse_retention_age(retention.max_age)
    except ValueError as e:
        yield _error("backup-retention", "backup.retention.max_age", str(e))
    if retention.max_backups < 0:
        yield _error("backup-retention", "backup.retention.max_backups", "backup.retention.max_backups cannot be negative")
    if retention.min_backups < 0:
        yield _error("backup-retention", "backup.retention.min_backups", "backup.retention.min_backups cannot be negative")
    if 0 < retention.max_backups < retention.min_backups:
        yield _error(
            "backup-retention",
            "backup.retention.min_backups",
            "backup.retention.min_backups cannot exceed max_backups",
        )

    for i, schedule in enumerate(backup.schedules):
        field = f"backup.schedules[{i}]"
        if not 0 <= schedule.hour <= 23:
            yield _error("backup-schedule", f"{field}.hour", f"{field}.hour must be between 0 and 23")
        if not 0 <= schedule.minute <= 59:
            yield _error("backup-schedule", f"{field}.minute", f"{field}.minute must be between 0 and 59")
        if schedule.is_weekly:
            try:
                parse_weekday(schedule.weekday)
            except ValueError as e:
                yield _error("backup-schedule", f"{field}.weekday", f"{field}: {e}")

    for name in ("backup", "store", "cleanup", "delete"):
        if getattr(backup.operation_timeouts, name).total_seconds() < 0:
            yield _error(
                "backup-timeout",
                f"backup.operation_timeouts.{name}",
                f"backup.operation_timeouts.{name} cannot be negative",
            )

    # Targets are a backup-time concern: a broken one is reported, not fatal.
    for i, target in enumerate(backup.targets):
        try:
            validate_target(target)
        except TargetValidationError as e:
            yield _warning("backup-target", f"backup.targets[{i}].{e.field}", f"backup target {i} ({target.type}): {e}")

    if backup.enabled and not any(t.enabled for t in backup.targets):
        yield _warning("backup-target", "backup.targets", "backup is enabled but no backup target is enabled")


BUILTIN_CHECKS: tuple[Check, ...] = (
    check_birdnet,
    check_locale,
    check_realtime,
    check_logging,
    check_web_server,
    check_security,
    check_backup,
)


class SettingsValidator:
    """Runs the built-in checks plus any extra checks over a Settings instance.

    Extra checks may yield Finding objects or plain message strings; strings
    are classified with classify_message.
    """

    def __init__(self, extra_checks: Iterable[Check] = ()):
        self._checks: list[Check] = [*BUILTIN_CHECKS, *extra_checks]

    def validate(self, settings: Settings) -> list[Finding]:
        findings: list[Finding] = []
        for check in self._checks:
            for item in check(settings):
                if isinstance(item, str):
                    item = Finding(classify_message(item), "message", item)
                findings.append(item)
        return findings


def split_findings(findings: Iterable[Finding]) -> tuple[list[Finding], list[Finding]]:
    """Partition findings into (errors, warnings)."""
    errors: list[Finding] = []
    warnings: list[Finding] = []
    for finding in findings:
        (errors if finding.is_fatal else warnings).append(finding)
    return errors, warnings
