"""Root Settings model."""

from __future__ import annotations

import os
from typing import Any

from pydantic import BaseModel, Field
from pydantic.fields import FieldInfo
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource

from birdnet_core.config._sections import (
    BackupConfig,
    BirdNETConfig,
    InputConfig,
    MainSettings,
    OpenWeatherSettings,
    OutputSettings,
    RealtimeSettings,
    SecuritySettings,
    SentrySettings,
    WebServerSettings,
)

ENV_PREFIX = "BIRDNET_"

# Short names documented for the container image. Explicit nested variables
# (BIRDNET_BIRDNET__LOCALE) take precedence over these.
ENV_ALIASES: dict[str, tuple[str, ...]] = {
    "BIRDNET_LOCALE": ("birdnet", "locale"),
    "BIRDNET_LATITUDE": ("birdnet", "latitude"),
    "BIRDNET_LONGITUDE": ("birdnet", "longitude"),
    "BIRDNET_SENSITIVITY": ("birdnet", "sensitivity"),
    "BIRDNET_OVERLAP": ("birdnet", "overlap"),
    "BIRDNET_THRESHOLD": ("birdnet", "threshold"),
}

# Fields computed at process start. They never reach the document and are
# recomputed on every load. Must match runtime_field_paths(Settings).
RUNTIME_FIELDS: frozenset[str] = frozenset(
    {
        "version",
        "build_date",
        "system_id",
        "validation_warnings",
        "input",
        "birdnet.labels",
        "birdnet.range_filter.species",
        "birdnet.range_filter.last_updated",
        "realtime.audio.sox_audio_types",
        "realtime.openweather",
        "output.file",
    }
)


class EnvAliasSettingsSource(PydanticBaseSettingsSource):
    """Load the short BIRDNET_* environment aliases."""

    def __init__(self, settings_cls: type[BaseSettings]) -> None:
        super().__init__(settings_cls)
        self._env_data: dict[str, Any] = {}
        for name, path in ENV_ALIASES.items():
            value = os.environ.get(name)
            if not value:
                continue
            node = self._env_data
            for key in path[:-1]:
                node = node.setdefault(key, {})
            node[path[-1]] = value

    def get_field_value(self, field: FieldInfo, field_name: str) -> tuple[Any, str, bool]:
        val = self._env_data.get(field_name)
        return val, field_name, val is not None

    def __call__(self) -> dict[str, Any]:
        return self._env_data


class Settings(BaseSettings):
    model_config = {
        "env_prefix": ENV_PREFIX,
        "env_nested_delimiter": "__",
        "case_sensitive": False,
        "extra": "ignore",
    }

    debug: bool = False

    version: str = Field(default="", exclude=True)
    build_date: str = Field(default="", exclude=True)
    system_id: str = Field(default="", exclude=True)
    validation_warnings: list[str] = Field(default_factory=list, exclude=True)

    main: MainSettings = Field(default_factory=MainSettings)
    birdnet: BirdNETConfig = Field(default_factory=BirdNETConfig)
    input: InputConfig = Field(default_factory=InputConfig, exclude=True)
    realtime: RealtimeSettings = Field(default_factory=RealtimeSettings)
    web_server: WebServerSettings = Field(default_factory=WebServerSettings)
    security: SecuritySettings = Field(default_factory=SecuritySettings)
    sentry: SentrySettings = Field(default_factory=SentrySettings)
    output: OutputSettings = Field(default_factory=OutputSettings)
    backup: BackupConfig = Field(default_factory=BackupConfig)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
        **kwargs: Any,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        # init values carry the merged template and document, lowest priority
        return (
            env_settings,
            EnvAliasSettingsSource(settings_cls),
            init_settings,
        )

    def persisted(self) -> dict[str, Any]:
        """The document representation: persisted fields only."""
        return self.model_dump(mode="json", by_alias=True)

    def get_weather_settings(self) -> tuple[str, OpenWeatherSettings]:
        """Return the weather provider and its OpenWeather settings.

        The ``realtime.weather`` section wins; the legacy
        ``realtime.openweather`` section is honored when enabled.
        """
        if self.realtime.weather.provider:
            return self.realtime.weather.provider, self.realtime.weather.openweather
        if self.realtime.openweather.enabled:
            return "openweather", self.realtime.openweather
        return "yrno", OpenWeatherSettings()


def runtime_field_paths(model_cls: type[BaseModel], prefix: str = "") -> set[str]:
    """Collect the dotted paths of every excluded (runtime-only) field."""
    paths: set[str] = set()
    for name, field in model_cls.model_fields.items():
        path = f"{prefix}{name}"
        if field.exclude:
            paths.add(path)
            continue
        annotation = field.annotation
        if isinstance(annotation, type) and issubclass(annotation, BaseModel):
            paths |= runtime_field_paths(annotation, f"{path}.")
    return paths
