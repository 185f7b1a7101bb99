"""Config section models."""

from birdnet_core.config._sections.backup import (
    BackupConfig,
    BackupRetention,
    BackupSchedule,
    BackupTarget,
    OperationTimeouts,
)
from birdnet_core.config._sections.birdnet import BirdNETConfig, InputConfig, RangeFilterSettings
from birdnet_core.config._sections.common import LogConfig, RetrySettings
from birdnet_core.config._sections.main import MainSettings
from birdnet_core.config._sections.output import OutputSettings, SentrySettings
from birdnet_core.config._sections.realtime import (
    AudioSettings,
    BirdweatherSettings,
    MQTTSettings,
    OpenWeatherSettings,
    RealtimeSettings,
    WeatherSettings,
)
from birdnet_core.config._sections.security import SecuritySettings
from birdnet_core.config._sections.webserver import WebServerSettings

__all__ = [
    "AudioSettings",
    "BackupConfig",
    "BackupRetention",
    "BackupSchedule",
    "BackupTarget",
    "BirdNETConfig",
    "BirdweatherSettings",
    "InputConfig",
    "LogConfig",
    "MQTTSettings",
    "MainSettings",
    "OpenWeatherSettings",
    "OperationTimeouts",
    "OutputSettings",
    "RangeFilterSettings",
    "RealtimeSettings",
    "RetrySettings",
    "SecuritySettings",
    "SentrySettings",
    "WeatherSettings",
    "WebServerSettings",
]
