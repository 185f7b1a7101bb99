"""Node identity configuration models."""

from pydantic import BaseModel, Field

from birdnet_core.config._sections.common import LogConfig


class MainSettings(BaseModel):
    name: str = "BirdNET-Go"
    time_as_24h: bool = True
    log: LogConfig = Field(default_factory=LogConfig)
