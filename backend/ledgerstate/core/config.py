"""Configuration for ledgerstate.

Values are read from the environment (prefixed with ``LEDGERSTATE_``) or a
local ``.env`` file.
"""

from functools import lru_cache
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Library settings.

    Attributes:
        LOG_LEVEL: Level of the ``ledgerstate`` logger
        LOG_FORMAT: Format string passed to logging.Formatter
        DEFAULT_RESOLVE_DEPTH: Depth used by StoragePointer.to_plain_object when
            the caller does not pass one. None resolves without limit.
    """

    model_config = SettingsConfigDict(
        env_prefix="LEDGERSTATE_",
        env_file=".env",
        extra="ignore",
    )

    LOG_LEVEL: str = Field(default="INFO")
    LOG_FORMAT: str = Field(default="%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    DEFAULT_RESOLVE_DEPTH: Optional[int] = Field(default=None, ge=0)

    @field_validator("LOG_LEVEL")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        level = value.upper()
        if level not in {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG", "NOTSET"}:
            raise ValueError(f"Unknown log level: {value}")
        return level


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
