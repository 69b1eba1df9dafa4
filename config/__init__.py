"""
Configuration Module for the Receipt Engine.

Thresholds, weights, keyword tables and resource limits live in
settings.yaml so they can be tuned without touching code. Components read
their defaults through ``get_config`` and accept constructor overrides.
"""

from pathlib import Path
from typing import Any, Dict, Optional

import yaml


class ConfigurationManager:
    """
    Singleton access to settings.yaml.

    Example:
        >>> config = ConfigurationManager()
        >>> config.get("ocr.timeout_seconds")
        30
        >>> config.get("extraction.amount.max_amount")
        10000000
    """

    _instance: Optional['ConfigurationManager'] = None
    _config: Dict[str, Any] = {}

    def __new__(cls, config_path: Optional[str] = None) -> 'ConfigurationManager':
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self, config_path: Optional[str] = None) -> None:
        """
        Args:
            config_path: Optional path to a settings file.
                        Defaults to config/settings.yaml.
        """
        if self._initialized:
            return

        if config_path is None:
            self.config_path = Path(__file__).parent / "settings.yaml"
        else:
            self.config_path = Path(config_path)

        self._load_config()
        self._initialized = True

    def _load_config(self) -> None:
        """
        Load settings from the YAML file.

        Raises:
            FileNotFoundError: If the settings file doesn't exist.
            ValueError: If the file does not contain a mapping.
        """
        if not self.config_path.exists():
            raise FileNotFoundError(
                f"Configuration file not found: {self.config_path}"
            )

        with open(self.config_path, 'r', encoding='utf-8') as f:
            loaded = yaml.safe_load(f)

        if loaded is None:
            loaded = {}
        if not isinstance(loaded, dict):
            raise ValueError(
                f"Configuration file must contain a mapping: {self.config_path}"
            )

        self._config = loaded
        self._resolve_paths()

    def _resolve_paths(self) -> None:
        """Resolve relative entries under ``paths`` against the project root."""
        project_root = Path(__file__).parent.parent

        for key, value in (self._config.get('paths') or {}).items():
            if value and not Path(value).is_absolute():
                self._config['paths'][key] = str(project_root / value)

        log_path = self.get('logging.file.path')
        if log_path and not Path(log_path).is_absolute():
            self._config['logging']['file']['path'] = str(project_root / log_path)

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get a value using dot notation.

        Example:
            >>> config.get("preprocessing.scale_factor")
            3
            >>> config.get("nonexistent.key", "fallback")
            "fallback"
        """
        value = self._config

        try:
            for part in key.split('.'):
                value = value[part]
            return value
        except (KeyError, TypeError):
            return default

    def get_all(self) -> Dict[str, Any]:
        """Return a shallow copy of the whole configuration."""
        return self._config.copy()

    def reload(self) -> None:
        """Re-read the settings file."""
        self._load_config()

    @classmethod
    def reset(cls) -> None:
        """Drop the singleton so the next access reloads from disk."""
        cls._instance = None


def get_config(key: str, default: Any = None) -> Any:
    """Shortcut for ``ConfigurationManager().get(key, default)``."""
    return ConfigurationManager().get(key, default)


__all__ = ['ConfigurationManager', 'get_config']
