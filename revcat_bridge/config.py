"""Configuration management - loads catalog.yaml and environment variables."""

import os
from pathlib import Path
from typing import Optional

import yaml
from pydantic import ValidationError

from revcat_bridge.models import BridgeSettings, CatalogConfig, ProductDefinition

DEFAULT_CONFIG_PATH = "config/catalog.yaml"


class ConfigurationError(Exception):
    """Raised when configuration is invalid or missing."""

    pass


class Config:
    """Application configuration loader and manager.

    Loads catalog.yaml and provides validated access to:
    - Subscription product catalog
    - Bridge settings (hook name, de-duplication, created_via tag)
    """

    def __init__(self, config_path: Optional[str] = None):
        """Initialize configuration loader.

        Args:
            config_path: Path to catalog.yaml. If not provided, uses CONFIG_PATH env var
                        or defaults to ./config/catalog.yaml
        """
        self._config_path = self._resolve_config_path(config_path)
        self._catalog_config: Optional[CatalogConfig] = None
        self._load_config()

    def _resolve_config_path(self, config_path: Optional[str]) -> Path:
        if config_path:
            return Path(config_path)

        env_path = os.getenv("CONFIG_PATH")
        if env_path:
            return Path(env_path)

        return Path(DEFAULT_CONFIG_PATH)

    def _load_config(self) -> None:
        """Load and validate catalog.yaml."""
        if not self._config_path.exists():
            raise ConfigurationError(
                f"Configuration file not found: {self._config_path}\n"
                f"Please create {DEFAULT_CONFIG_PATH} or set CONFIG_PATH environment variable"
            )

        try:
            with open(self._config_path, encoding="utf-8") as f:
                raw_config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Failed to parse YAML configuration: {e}") from e

        if not raw_config:
            raise ConfigurationError(f"Configuration file is empty: {self._config_path}")
        if not isinstance(raw_config, dict):
            raise ConfigurationError(f"Configuration root must be a mapping: {self._config_path}")

        try:
            self._catalog_config = CatalogConfig(**raw_config)
        except ValidationError as e:
            raise ConfigurationError(f"Configuration validation failed:\n{e}") from e

    @property
    def catalog(self) -> CatalogConfig:
        """Get validated catalog configuration."""
        if self._catalog_config is None:
            raise ConfigurationError("Configuration not loaded")
        return self._catalog_config

    @property
    def config_path(self) -> Path:
        return self._config_path

    @property
    def products(self) -> list[ProductDefinition]:
        return self.catalog.catalog

    @property
    def settings(self) -> BridgeSettings:
        return self.catalog.bridge

    @property
    def hook_name(self) -> str:
        """Action name the RevenueCat listener is bound to (e.g. "revenuecat_webhook")."""
        return self.settings.hook_name

    def reload(self) -> None:
        """Reload configuration from disk."""
        self._load_config()


# Global configuration instance
_config_instance: Optional[Config] = None


def get_config(config_path: Optional[str] = None) -> Config:
    """Get global configuration instance (singleton).

    Args:
        config_path: Optional path to configuration file (only used on first call)
    """
    global _config_instance
    if _config_instance is None:
        _config_instance = Config(config_path)
    return _config_instance


def reset_config() -> None:
    """Drop the global configuration so the next get_config() reloads it."""
    global _config_instance
    _config_instance = None
