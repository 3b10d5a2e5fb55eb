"""
Configuration loading and validation.
"""

import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import yaml

from finboard.engine.periods import MONTH_ABBREVIATIONS

STORE_BACKENDS = ("local", "rest")


class ConfigValidationError(Exception):
    """Raised when configuration is invalid."""

    pass


@dataclass
class StoreConfig:
    """Data store configuration."""

    backend: str = "local"
    path: str = "data/finboard.db"
    url: Optional[str] = None
    api_key: Optional[str] = None
    access_token: Optional[str] = None
    timeout: float = 10


@dataclass
class DashboardConfig:
    """Dashboard presentation settings."""

    locale: str = "es"
    timezone: str = "UTC"


@dataclass
class ReconcileConfig:
    """Goal reconciliation settings."""

    max_workers: int = 4
    track_applied: bool = False


@dataclass
class AdvancedConfig:
    """Advanced configuration."""

    log_level: str = "INFO"


@dataclass
class AppConfig:
    """Main application configuration."""

    store: StoreConfig = field(default_factory=StoreConfig)
    dashboard: DashboardConfig = field(default_factory=DashboardConfig)
    reconcile: ReconcileConfig = field(default_factory=ReconcileConfig)
    advanced: AdvancedConfig = field(default_factory=AdvancedConfig)


def _substitute_env_vars(value: Any) -> Any:
    """Substitute environment variables in string values."""
    if isinstance(value, str):
        # Match ${VAR_NAME} pattern
        pattern = r"\$\{([^}]+)\}"
        matches = re.findall(pattern, value)
        for var_name in matches:
            env_value = os.environ.get(var_name, "")
            value = value.replace(f"${{{var_name}}}", env_value)
        return value
    elif isinstance(value, dict):
        return {k: _substitute_env_vars(v) for k, v in value.items()}
    elif isinstance(value, list):
        return [_substitute_env_vars(item) for item in value]
    return value


def _validate_timezone(timezone: str) -> None:
    """Validate timezone string."""
    if not timezone:
        raise ConfigValidationError("Timezone cannot be empty")
    try:
        ZoneInfo(timezone)
    except (ZoneInfoNotFoundError, ValueError):
        raise ConfigValidationError(f"Unknown timezone: {timezone}")


def _validate_config(config_dict: dict[str, Any]) -> None:
    """Validate configuration values."""
    store = config_dict.get("store") or {}
    backend = store.get("backend", "local")
    if backend not in STORE_BACKENDS:
        raise ConfigValidationError(f"Unknown store backend: {backend}")

    if backend == "local":
        db_path = store.get("path", StoreConfig.path)
        if not db_path:
            raise ConfigValidationError("Database path is required")
        if db_path != ":memory:":
            parent = Path(db_path).parent
            if parent.exists() and not os.access(parent, os.W_OK):
                raise ConfigValidationError(f"Database path not writable: {parent}")
    else:
        if not store.get("url"):
            raise ConfigValidationError("Store URL is required for the rest backend")
        if not store.get("api_key"):
            raise ConfigValidationError("API key is required for the rest backend")

    dashboard = config_dict.get("dashboard") or {}
    _validate_timezone(dashboard.get("timezone", "UTC"))
    locale = dashboard.get("locale", "es")
    if locale not in MONTH_ABBREVIATIONS:
        raise ConfigValidationError(f"Unsupported locale: {locale}")

    reconcile = config_dict.get("reconcile") or {}
    max_workers = reconcile.get("max_workers", 4)
    if not isinstance(max_workers, int) or max_workers < 1:
        raise ConfigValidationError("reconcile.max_workers must be a positive integer")


def load_config(config_path: str) -> AppConfig:
    """
    Load configuration from YAML file.

    Args:
        config_path: Path to configuration file

    Returns:
        AppConfig instance

    Raises:
        ConfigValidationError: If configuration is invalid
        FileNotFoundError: If config file doesn't exist
    """
    path = Path(config_path)
    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with open(path) as f:
        raw_config = yaml.safe_load(f) or {}

    # Substitute environment variables
    config_dict = _substitute_env_vars(raw_config)

    # Validate
    _validate_config(config_dict)

    store_dict = dict(config_dict.get("store") or {})
    # Empty substitutions mean "not set"
    for key in ("url", "api_key", "access_token"):
        if store_dict.get(key) == "":
            store_dict[key] = None

    return AppConfig(
        store=StoreConfig(**store_dict),
        dashboard=DashboardConfig(**(config_dict.get("dashboard") or {})),
        reconcile=ReconcileConfig(**(config_dict.get("reconcile") or {})),
        advanced=AdvancedConfig(**(config_dict.get("advanced") or {})),
    )
