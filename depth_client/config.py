"""
Runtime configuration.

Values come from the process environment, overlaid by an optional .env file
(file wins, like godotenv.Overload). A Config is built once at startup and
handed to the fetcher and subscriber.
"""

from __future__ import annotations

from typing import Literal

import pydantic
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .errors import ConfigError

# Binance spot endpoints
DEFAULT_API_URL = "https://api.binance.com/api/v3"
DEFAULT_API_WS = "wss://stream.binance.com:9443"
DEFAULT_CONFIG_PATH = ".env"

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


class Config(BaseSettings):
    """Endpoints and client options, read from BINANCE_* / LOG_LEVEL variables."""

    model_config = SettingsConfigDict(
        env_file=None,
        env_file_encoding="utf-8",
        env_ignore_empty=True,
        case_sensitive=False,
        populate_by_name=True,
        extra="ignore",
        frozen=True,
    )

    api_url: str = Field(
        default=DEFAULT_API_URL,
        validation_alias="BINANCE_API_URL",
        description="REST base URL",
    )
    api_ws: str = Field(
        default=DEFAULT_API_WS,
        validation_alias="BINANCE_API_WS",
        description="WebSocket base URL",
    )
    insecure_skip_verify: bool = Field(
        default=False,
        validation_alias="BINANCE_INSECURE_SKIP_VERIFY",
        description="Skip TLS certificate verification",
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        validation_alias="LOG_LEVEL",
        description="Default log level",
    )

    @field_validator("api_url", "api_ws")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        v = v.strip().rstrip("/")
        if not v:
            raise ValueError("base URL cannot be blank")
        return v

    @field_validator("log_level", mode="before")
    @classmethod
    def upper_log_level(cls, v):
        return v.strip().upper() if isinstance(v, str) else v

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls,
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        # .env values take precedence over the process environment
        return init_settings, dotenv_settings, env_settings, file_secret_settings


def load_config(path: str | None = DEFAULT_CONFIG_PATH) -> Config:
    """
    Build a Config from the environment and an optional .env file.

    A missing file is ignored. Empty values fall back to the defaults.
    Raises ConfigError on values that fail validation.
    """
    try:
        return Config(_env_file=path or None)
    except pydantic.ValidationError as e:
        details = "; ".join(
            f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}" for err in e.errors()
        )
        raise ConfigError(f"invalid configuration: {details}") from e
