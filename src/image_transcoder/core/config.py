"""
Configuration loader for the image transcoder.

Environment variables are centralized here so that operational tuning
(pool size, batch deadline, log level) stays out of the pipeline code.
"""

from functools import lru_cache
from typing import Optional

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .exceptions import ConfigurationError

MAX_FILE_SIZE = 50 * 1024 * 1024

PROCESSOR_CHOICES = ("serial", "multithread", "multiprocess", "asyncio")


class TranscoderSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="TRANSCODER_", env_file=".env", case_sensitive=False
    )

    max_file_size: int = Field(MAX_FILE_SIZE, gt=0)
    max_workers: int = Field(8, gt=0)
    processor: str = "asyncio"
    batch_timeout_seconds: Optional[float] = Field(None, gt=0)
    include_original_payload: bool = True
    log_level: str = "INFO"

    @field_validator("processor")
    @classmethod
    def validate_processor(cls, v: str) -> str:
        if v not in PROCESSOR_CHOICES:
            raise ValueError(
                f"TRANSCODER_PROCESSOR must be one of {'|'.join(PROCESSOR_CHOICES)}"
            )
        return v


@lru_cache()
def get_settings() -> TranscoderSettings:
    """
    Return cached settings to avoid reparsing env on every call.

    Raises:
        ConfigurationError: if a TRANSCODER_* variable holds an invalid value
    """
    try:
        return TranscoderSettings()
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid transcoder configuration: {exc}") from exc
