"""BirdNET analyzer configuration models."""

from datetime import datetime

from pydantic import BaseModel, Field


class RangeFilterSettings(BaseModel):
    debug: bool = False
    model: str = ""  # empty selects the bundled model
    threshold: float = 0.01
    # refreshed by the range filter on its own schedule, see SettingsStore
    species: list[str] = Field(default_factory=list, exclude=True)
    last_updated: datetime | None = Field(default=None, exclude=True)


class BirdNETConfig(BaseModel):
    debug: bool = False
    sensitivity: float = 1.0
    threshold: float = 0.8
    overlap: float = 0.0
    longitude: float = 0.0
    latitude: float = 0.0
    threads: int = 0  # 0 uses all cores
    locale: str = "en-uk"
    range_filter: RangeFilterSettings = Field(default_factory=RangeFilterSettings)
    model_path: str = ""
    label_path: str = ""
    labels: list[str] = Field(default_factory=list, exclude=True)
    use_xnnpack: bool = True


class InputConfig(BaseModel):
    """File or directory analysis input, set from the command line only."""

    path: str = ""
    recursive: bool = False
    watch: bool = False
