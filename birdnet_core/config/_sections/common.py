"""Value types reused by several config sections."""

from pydantic import BaseModel


class RetrySettings(BaseModel):
    enabled: bool = True
    max_retries: int = 5
    initial_delay: int = 30  # seconds
    max_delay: int = 3600  # seconds
    backoff_multiplier: float = 2.0


class LogConfig(BaseModel):
    enabled: bool = False
    path: str = "birdnet.log"
    rotation: str = "daily"  # daily, weekly or size
    max_size: int = 1048576  # bytes, size rotation only
    rotation_day: str = "Sunday"  # weekly rotation only
