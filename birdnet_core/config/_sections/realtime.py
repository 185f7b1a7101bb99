"""Realtime processing and integration configuration models."""

from pydantic import BaseModel, Field

from birdnet_core.config._sections.common import RetrySettings


# ── audio ───────────────────────────────────────────────────────────────


class ExportRetentionSettings(BaseModel):
    debug: bool = False
    policy: str = "usage"  # none, age or usage
    max_age: str = "30d"
    max_usage: str = "80%"
    min_clips: int = 10  # per species
    keep_spectrograms: bool = False


class ExportSettings(BaseModel):
    debug: bool = False
    enabled: bool = True
    path: str = "clips/"
    type: str = "wav"
    bitrate: str = "96k"
    retention: ExportRetentionSettings = Field(default_factory=ExportRetentionSettings)


class SoundLevelSettings(BaseModel):
    enabled: bool = False
    interval: int = 10  # seconds
    debug: bool = False
    debug_realtime_logging: bool = False


class EqualizerFilter(BaseModel):
    type: str  # LowPass, HighPass, BandPass, ...
    frequency: float = 0.0
    q: float = 0.0
    gain: float = 0.0
    width: float = 0.0
    passes: int = 0


class EqualizerSettings(BaseModel):
    enabled: bool = False
    filters: list[EqualizerFilter] = Field(default_factory=list)


class AudioSettings(BaseModel):
    source: str = ""
    ffmpeg_path: str = ""
    sox_path: str = ""
    sox_audio_types: list[str] = Field(default_factory=list, exclude=True)
    stream_transport: str = "auto"  # auto, sse or ws
    export: ExportSettings = Field(default_factory=ExportSettings)
    sound_level: SoundLevelSettings = Field(default_factory=SoundLevelSettings)
    use_audio_core: bool = False
    equalizer: EqualizerSettings = Field(default_factory=EqualizerSettings)


# ── dashboard ───────────────────────────────────────────────────────────


class ThumbnailSettings(BaseModel):
    debug: bool = False
    summary: bool = True
    recent: bool = True
    image_provider: str = "auto"
    fallback_policy: str = "all"


class DashboardSettings(BaseModel):
    thumbnails: ThumbnailSettings = Field(default_factory=ThumbnailSettings)
    summary_limit: int = 100


class DynamicThresholdSettings(BaseModel):
    enabled: bool = True
    debug: bool = False
    trigger: float = 0.9
    min: float = 0.2
    valid_hours: int = 2


class ObsLogSettings(BaseModel):
    enabled: bool = False
    path: str = "birdnet.txt"


# ── integrations ────────────────────────────────────────────────────────


class BirdweatherSettings(BaseModel):
    enabled: bool = False
    debug: bool = False
    id: str = ""
    threshold: float = 0.9
    location_accuracy: float = 500.0  # meters
    retry_settings: RetrySettings = Field(default_factory=RetrySettings)


class OpenWeatherSettings(BaseModel):
    enabled: bool = False
    api_key: str = ""
    endpoint: str = "https://api.openweathermap.org/data/2.5/weather"
    units: str = "metric"
    language: str = "en"


class WeatherSettings(BaseModel):
    provider: str = "yrno"  # none, yrno or openweather
    poll_interval: int = 60  # minutes
    debug: bool = False
    openweather: OpenWeatherSettings = Field(default_factory=OpenWeatherSettings)


class PrivacyFilterSettings(BaseModel):
    debug: bool = False
    enabled: bool = True
    confidence: float = 0.05


class DogBarkFilterSettings(BaseModel):
    debug: bool = False
    enabled: bool = True
    confidence: float = 0.1
    remember: int = 5  # minutes
    species: list[str] = Field(default_factory=list)


class RTSPHealthSettings(BaseModel):
    healthy_data_threshold: int = 60
    monitoring_interval: int = 30


class RTSPSettings(BaseModel):
    transport: str = "tcp"
    urls: list[str] = Field(default_factory=list)
    health: RTSPHealthSettings = Field(default_factory=RTSPHealthSettings)
    ffmpeg_parameters: list[str] = Field(default_factory=list)


class MQTTTLSSettings(BaseModel):
    enabled: bool = False
    insecure_skip_verify: bool = False
    ca_cert: str = ""
    client_cert: str = ""
    client_key: str = ""


class MQTTSettings(BaseModel):
    enabled: bool = False
    debug: bool = False
    broker: str = "tcp://localhost:1883"
    topic: str = "birdnet"
    username: str = ""
    password: str = ""
    retain: bool = False
    retry_settings: RetrySettings = Field(default_factory=RetrySettings)
    tls: MQTTTLSSettings = Field(default_factory=MQTTTLSSettings)


class TelemetrySettings(BaseModel):
    enabled: bool = False
    listen: str = "0.0.0.0:8090"


class ThresholdSettings(BaseModel):
    enabled: bool = True
    warning: float = 85.0
    critical: float = 95.0


class DiskThresholdSettings(ThresholdSettings):
    paths: list[str] = Field(default_factory=lambda: ["/"])


class MonitoringSettings(BaseModel):
    enabled: bool = False
    check_interval: int = 60  # seconds
    critical_resend_interval: int = 30  # minutes
    hysteresis_percent: float = 5.0
    cpu: ThresholdSettings = Field(default_factory=ThresholdSettings)
    memory: ThresholdSettings = Field(default_factory=ThresholdSettings)
    disk: DiskThresholdSettings = Field(default_factory=DiskThresholdSettings)


# ── species ─────────────────────────────────────────────────────────────


class SpeciesAction(BaseModel):
    type: str = "ExecuteCommand"
    command: str = ""
    parameters: list[str] = Field(default_factory=list)
    execute_defaults: bool = True


class SpeciesConfig(BaseModel):
    threshold: float = 0.0
    interval: int = 0  # seconds, 0 uses the global interval
    actions: list[SpeciesAction] = Field(default_factory=list)


class SpeciesSettings(BaseModel):
    include: list[str] = Field(default_factory=list)
    exclude: list[str] = Field(default_factory=list)
    config: dict[str, SpeciesConfig] = Field(default_factory=dict)


class RealtimeSettings(BaseModel):
    interval: int = 15  # seconds between repeated detections of a species
    processing_time: bool = False
    audio: AudioSettings = Field(default_factory=AudioSettings)
    dashboard: DashboardSettings = Field(default_factory=DashboardSettings)
    dynamic_threshold: DynamicThresholdSettings = Field(default_factory=DynamicThresholdSettings)
    log: ObsLogSettings = Field(default_factory=ObsLogSettings)
    birdweather: BirdweatherSettings = Field(default_factory=BirdweatherSettings)
    # legacy location, still read from old documents but never written back
    openweather: OpenWeatherSettings = Field(default_factory=OpenWeatherSettings, exclude=True)
    privacy_filter: PrivacyFilterSettings = Field(default_factory=PrivacyFilterSettings)
    dog_bark_filter: DogBarkFilterSettings = Field(default_factory=DogBarkFilterSettings)
    rtsp: RTSPSettings = Field(default_factory=RTSPSettings)
    mqtt: MQTTSettings = Field(default_factory=MQTTSettings)
    telemetry: TelemetrySettings = Field(default_factory=TelemetrySettings)
    monitoring: MonitoringSettings = Field(default_factory=MonitoringSettings)
    species: SpeciesSettings = Field(default_factory=SpeciesSettings)
    weather: WeatherSettings = Field(default_factory=WeatherSettings)
