"""Configuration management for the Risk Dashboard."""

import os
import re
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = "INFO"
    format: str = "console"
    log_file: str | None = None


class RegisterConfig(BaseModel):
    """In-memory risk register configuration."""

    id_prefix: str = "risk"
    load_sample_data: bool = True


class ImportConfig(BaseModel):
    """Bulk import configuration."""

    reject_out_of_range: bool = True
    max_rows: int = 5000
    effectiveness_as_percent: bool = False


class UIConfig(BaseModel):
    """Dashboard presentation configuration."""

    page_title: str = "Risk Management Dashboard"
    residual_precision: int = 1


class Settings(BaseSettings):
    """Main settings class combining all configurations."""

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    register: RegisterConfig = Field(default_factory=RegisterConfig)
    import_: ImportConfig = Field(default_factory=ImportConfig, alias="import")
    ui: UIConfig = Field(default_factory=UIConfig)

    # Environment variables
    log_level: str | None = Field(default=None, alias="RISK_DASHBOARD_LOG_LEVEL")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"
        populate_by_name = True


def _resolve_env_vars(value: Any) -> Any:
    """Resolve environment variable references in config values."""
    if isinstance(value, str):
        # Match ${VAR:-default} or ${VAR} patterns
        pattern = r"\$\{([^}:]+)(?::-([^}]*))?\}"
        matches = re.findall(pattern, value)
        for var_name, default in matches:
            env_value = os.environ.get(var_name, default)
            value = re.sub(
                rf"\$\{{{var_name}(?::-[^}}]*)?\}}",
                env_value if env_value else "",
                value,
            )
        return value
    elif isinstance(value, dict):
        return {k: _resolve_env_vars(v) for k, v in value.items()}
    elif isinstance(value, list):
        return [_resolve_env_vars(item) for item in value]
    return value


def load_config(config_path: str | Path | None = None) -> Settings:
    """Load configuration from YAML file and environment variables.

    The loaded settings become the global instance returned by
    :func:`get_settings`.

    Args:
        config_path: Path to config.yaml file. If None, looks for configs/config.yaml

    Returns:
        Settings object with all configuration
    """
    global _settings

    if config_path is None:
        possible_paths = [
            Path("configs/config.yaml"),
            Path("config.yaml"),
            Path(__file__).parent.parent.parent / "configs" / "config.yaml",
        ]
        for path in possible_paths:
            if path.exists():
                config_path = path
                break

    config_data = {}
    if config_path and Path(config_path).exists():
        with open(config_path) as f:
            config_data = yaml.safe_load(f) or {}
        config_data = _resolve_env_vars(config_data)

    settings = Settings(**config_data)

    # Environment override for the log level
    if settings.log_level:
        settings.logging.level = settings.log_level

    _settings = settings
    return settings


# Global settings instance (lazy loaded)
_settings: Settings | None = None


def get_settings() -> Settings:
    """Get the global settings instance."""
    global _settings
    if _settings is None:
        _settings = load_config()
    return _settings


def reset_settings() -> None:
    """Reset the global settings instance (useful for testing)."""
    global _settings
    _settings = None
