"""Configuration loading and validation."""

import logging
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    TomlConfigSettingsSource,
)

from .consts import REQUEST_RETRIES, REQUEST_RETRY_DELAY
from .errors import ConfigException
from .utils import BackoffStrategy

logger = logging.getLogger(__name__)


class LogConfig(BaseModel):
    """Logging configuration."""

    level: str = Field(default="INFO")
    file: str = ""

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        level = v.strip().upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"Invalid log level: {v}")
        return level


class RequestConfig(BaseModel):
    """Default retry policy for Request operations."""

    retries: int = Field(default=REQUEST_RETRIES, ge=1)
    initial_delay: float = Field(default=REQUEST_RETRY_DELAY, ge=0)
    backoff: BackoffStrategy = "exponential"


class Config(BaseSettings):
    """Application configuration."""

    log: LogConfig = Field(default_factory=LogConfig)
    request: RequestConfig = Field(default_factory=RequestConfig)

    model_config = SettingsConfigDict(
        env_prefix="FORMSTATE_",
        env_nested_delimiter="__",
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,
            env_settings,
            TomlConfigSettingsSource(settings_cls),
        )

    @classmethod
    def load_from_file(cls, config_path: str) -> "Config":
        """Load configuration from specified path."""
        path = Path(config_path)
        if not path.exists():
            raise ConfigException(f"Configuration file not found: {config_path}")

        class _Config(cls):
            model_config = SettingsConfigDict(
                toml_file=str(path),
                env_prefix="FORMSTATE_",
                env_nested_delimiter="__",
            )

        try:
            return _Config()
        except ValidationError as e:
            error_lines = ["Configuration validation failed:"]
            for error in e.errors():
                loc = " -> ".join(str(item) for item in error["loc"])
                error_lines.append(f"  - {loc}: {error['msg']}")
            raise ConfigException("\n".join(error_lines)) from e
