import os
import tomllib
from functools import lru_cache
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from vcstream.core.logging import get_logger

from .http import HTTPSettings
from .logging import LoggingSettings


__all__ = ["Settings", "ConfigurationError", "get_settings"]


class ConfigurationError(Exception):
    """Raised when configuration loading or validation fails."""

    pass


class Settings(BaseSettings):
    """
    Configuration settings for vcstream.

    Settings are loaded from environment variables, .env files and an optional
    TOML configuration file. Environment variables take precedence over TOML
    values; explicit keyword overrides take precedence over both. The TOML file
    is taken from the ``config_path`` argument, then ``VCSTREAM_CONFIG``, then
    ``vcstream.toml`` in the current directory.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        env_nested_delimiter="__",
    )

    logging: LoggingSettings = Field(
        default_factory=LoggingSettings,
        description="Logging configuration",
    )

    http: HTTPSettings = Field(
        default_factory=HTTPSettings,
        description="Default upstream transport configuration",
    )

    @classmethod
    def load_toml_config(cls, toml_path: Path) -> dict[str, Any]:
        """Load configuration from a TOML file."""
        try:
            with toml_path.open("rb") as f:
                return tomllib.load(f)
        except OSError as e:
            raise ConfigurationError(
                f"Cannot read TOML config file {toml_path}: {e}"
            ) from e
        except tomllib.TOMLDecodeError as e:
            raise ConfigurationError(f"Invalid TOML syntax in {toml_path}: {e}") from e

    @classmethod
    def from_config(
        cls,
        config_path: Path | str | None = None,
        **kwargs: Any,
    ) -> "Settings":
        """Create Settings instance from configuration file and overrides."""
        if config_path is None:
            config_path_env = os.environ.get("VCSTREAM_CONFIG")
            if config_path_env:
                config_path = Path(config_path_env)

        if isinstance(config_path, str):
            config_path = Path(config_path)

        if config_path is None:
            default_path = Path.cwd() / "vcstream.toml"
            if default_path.exists():
                config_path = default_path

        config_data: dict[str, Any] = {}
        if config_path is not None:
            if config_path.suffix.lower() != ".toml":
                raise ConfigurationError(
                    f"Unsupported config file format: {config_path.suffix}. "
                    "Only TOML (.toml) files are supported."
                )
            if config_path.exists():
                config_data = cls.load_toml_config(config_path)
                get_logger(__name__).info(
                    "config_file_loaded",
                    path=str(config_path),
                    category="config",
                )

        settings = cls()

        for key, value in config_data.items():
            if not hasattr(settings, key) or not isinstance(value, dict):
                continue
            nested_obj = getattr(settings, key)
            for nested_key, nested_value in value.items():
                env_key = f"{key.upper()}__{nested_key.upper()}"
                if os.getenv(env_key) is None:
                    _assign(nested_obj, nested_key, nested_value, f"{key}.{nested_key}")

        def _apply_overrides(target: Any, overrides: dict[str, Any], prefix: str) -> None:
            for k, v in overrides.items():
                if isinstance(v, dict) and isinstance(getattr(target, k, None), BaseModel):
                    _apply_overrides(getattr(target, k), v, f"{prefix}{k}.")
                else:
                    _assign(target, k, v, f"{prefix}{k}")

        if kwargs:
            _apply_overrides(settings, kwargs, "")

        return settings


def _assign(target: BaseModel, field: str, value: Any, path: str) -> None:
    """Set one validated field, reporting bad keys and values as ConfigurationError."""
    try:
        setattr(target, field, value)
    except ValueError as e:
        # pydantic's ValidationError is a ValueError, as is the unknown-field error
        raise ConfigurationError(f"Invalid configuration value for {path}: {e}") from e


@lru_cache
def get_settings() -> Settings:
    """Return the process-wide settings, loaded once."""
    return Settings.from_config()
