"""Web server configuration models."""

from pydantic import BaseModel, Field

from birdnet_core.config._sections.common import LogConfig


class LiveStreamSettings(BaseModel):
    debug: bool = False
    bit_rate: int = 128  # kbps
    sample_rate: int = 48000  # Hz
    segment_length: int = 2  # seconds
    ffmpeg_log_level: str = "warning"


class WebServerSettings(BaseModel):
    debug: bool = False
    enabled: bool = True
    port: str = "8080"
    log: LogConfig = Field(default_factory=lambda: LogConfig(path="webui.log"))
    live_stream: LiveStreamSettings = Field(default_factory=LiveStreamSettings)
