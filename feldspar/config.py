"""Configuration management using pydantic-settings.

This module provides the process-level settings for feldspar, with support
for environment variables and .env files.

Configuration Sources (in order of precedence):
    1. Direct instantiation parameters
    2. Environment variables (prefixed with FELDSPAR_)
    3. .env file in the current working directory

Available Settings:
    - Startup Model Target: default_url, default_token, default_model, default_adapter
    - Requests: request_timeout
    - Storage: data_dir, history_file_name
    - Logging: log_level, log_file_level, log_dir, log_file_name, log_json_format, log_max_bytes, log_backup_count

The startup model target only seeds the runtime. Scripts change the live
target with ``configure_model``, which never writes back to these settings.

Example:
    >>> from feldspar.config import settings, reload_settings
    >>>
    >>> print(settings.default_model)
    'gpt-4o-mini'
    >>>
    >>> # Reload after changing the environment
    >>> settings = reload_settings()
"""

from pathlib import Path
from typing import Annotated

from platformdirs import user_data_dir
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

APP_NAME = "feldspar"


class FeldsparSettings(BaseSettings):
    """Global settings for feldspar.

    Configuration values can be set via:
    1. Environment variables (e.g., FELDSPAR_DEFAULT_MODEL)
    2. .env file
    3. Direct instantiation with parameters
    """

    model_config = SettingsConfigDict(
        env_prefix="FELDSPAR_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Startup model target
    default_url: str = "https://api.openai.com/v1"
    default_token: str = ""
    default_model: str = "gpt-4o-mini"
    default_adapter: str = "openai"

    # None leaves timeouts to the LLM client
    request_timeout: Annotated[float | None, Field(gt=0)] = None

    # Storage
    data_dir: Path | None = None  # None means the platform's local data dir
    history_file_name: str = "history.txt"

    # Logging settings
    log_level: str = "WARNING"
    log_file_level: str = "DEBUG"
    log_dir: Path | None = None  # None means <data_dir>/logs
    log_file_name: str = "feldspar.log"
    log_json_format: bool = False
    log_max_bytes: int = 10485760  # 10MB
    log_backup_count: int = 5

    @property
    def resolved_data_dir(self) -> Path:
        """Directory holding the REPL history and default log files."""
        if self.data_dir is not None:
            return Path(self.data_dir)
        return Path(user_data_dir(APP_NAME, appauthor=False))

    @property
    def history_path(self) -> Path:
        return self.resolved_data_dir / self.history_file_name

    @property
    def resolved_log_dir(self) -> Path:
        if self.log_dir is not None:
            return Path(self.log_dir)
        return self.resolved_data_dir / "logs"


# Global settings instance
settings = FeldsparSettings()


def get_settings() -> FeldsparSettings:
    """Get the global settings instance.

    Returns:
        FeldsparSettings: The global settings instance
    """
    return settings


def reload_settings() -> FeldsparSettings:
    """Reload settings from environment and .env file.

    Returns:
        FeldsparSettings: A new settings instance
    """
    global settings
    settings = FeldsparSettings()
    return settings
