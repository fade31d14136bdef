"""
Configuration management for Tonal Autoplay.

This module provides centralized configuration loading and access,
supporting YAML files and environment variable overrides.
"""

import copy
import logging
import os
import threading
from pathlib import Path
from typing import Any, Dict, Optional, Type, TypeVar, Union

import yaml

from tonal_autoplay.core.models import AutoplaySettings

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_API_BASE = "https://saavn.dev/api"


class ConfigurationManager:
    """
    Centralized configuration management for Tonal Autoplay.

    Loads configuration from a YAML file, applies environment variable
    overrides and exposes typed autoplay settings.
    """

    def __init__(self, config_path: Optional[str] = None):
        """
        Initialize the configuration manager.

        Args:
            config_path: Path to the config YAML file (defaults to config.yml in project root)
        """
        self.config_path = config_path or self._find_config_file()
        self._base_config: Dict[str, Any] = {}
        self._config: Dict[str, Any] = {}
        self._load_config()

    def _find_config_file(self) -> str:
        """Find the config.yml file by walking up from the package."""
        current_dir = Path(__file__).parent
        for _ in range(4):
            config_file = current_dir / "config.yml"
            if config_file.exists():
                return str(config_file)
            current_dir = current_dir.parent

        return "config.yml"

    def _load_config(self) -> None:
        """Load configuration from YAML file."""
        try:
            with open(self.config_path, "r", encoding="utf-8") as f:
                self._base_config = yaml.safe_load(f) or {}

            self._config = copy.deepcopy(self._base_config)

            if self._base_config.get("environment_overrides", {}).get("enabled"):
                self._apply_env_overrides()

            logger.info(f"✅ Loaded configuration from {self.config_path}")

        except FileNotFoundError:
            logger.warning(
                f"⚠️  Config file not found: {self.config_path}. Using built-in defaults."
            )
            self._base_config = {}
            self._config = {}
        except yaml.YAMLError as e:
            logger.error(f"❌ Error parsing config YAML: {e}. Using built-in defaults.")
            self._base_config = {}
            self._config = {}

    def _apply_env_overrides(self) -> None:
        """Apply environment variable overrides."""
        env_config = self._base_config.get("environment_overrides", {})
        prefix = env_config.get("prefix", "TA_")
        mappings = env_config.get("mappings", {})

        overrides_applied = 0
        for config_path, env_suffix in mappings.items():
            env_value = os.getenv(f"{prefix}{env_suffix}")
            if env_value is not None:
                converted_value = self._convert_env_value(env_value)
                self._set_nested_value(config_path, converted_value)
                overrides_applied += 1
                logger.info(
                    f"🔧 Environment override: {config_path} = {converted_value}"
                )

        if overrides_applied:
            logger.info(f"✅ Applied {overrides_applied} environment overrides")

    def _convert_env_value(self, value: str) -> Union[str, int, float, bool]:
        """Convert environment variable string to appropriate type."""
        if value.lower() in ("true", "yes", "on"):
            return True
        elif value.lower() in ("false", "no", "off"):
            return False

        try:
            return int(value)
        except ValueError:
            pass

        try:
            return float(value)
        except ValueError:
            pass

        return value

    def _set_nested_value(self, path: str, value: Any) -> None:
        """Set a nested configuration value using dot notation."""
        keys = path.split(".")
        current = self._config

        for key in keys[:-1]:
            if not isinstance(current.get(key), dict):
                current[key] = {}
            current = current[key]

        current[keys[-1]] = value

    def get(
        self, path: str, default: Any = None, type_hint: Optional[Type[T]] = None
    ) -> Any:
        """
        Get a configuration value using dot notation.

        Args:
            path: Dot-separated path to the config value (e.g., 'history.max_size')
            default: Default value if path doesn't exist
            type_hint: Optional type hint for return value

        Returns:
            Configuration value with optional type casting
        """
        current: Any = self._config

        try:
            for key in path.split("."):
                current = current[key]
        except (KeyError, TypeError):
            return default

        if type_hint and current is not None:
            try:
                if type_hint == bool:
                    return bool(current)
                elif type_hint == int:
                    return int(current)
                elif type_hint == float:
                    return float(current)
                elif type_hint == str:
                    return str(current)
            except (ValueError, TypeError):
                pass

        return current

    def get_section(self, section: str) -> Any:
        """Get an entire configuration section."""
        return self._config.get(section, {})

    @property
    def autoplay_settings(self) -> AutoplaySettings:
        """Get the autoplay engine settings."""
        defaults = AutoplaySettings()
        return AutoplaySettings(
            enabled=self.get("autoplay.enabled", defaults.enabled, bool),
            preferred_quality=self.get(
                "autoplay.preferred_quality", defaults.preferred_quality, str
            ),
            max_history_size=self.get(
                "history.max_size", defaults.max_history_size, int
            ),
            min_history_before_repeat=self.get(
                "history.min_before_repeat", defaults.min_history_before_repeat, int
            ),
            embedding_neighbors=self.get(
                "embeddings.neighbors", defaults.embedding_neighbors, int
            ),
            preferred_languages=[
                str(lang).lower()
                for lang in self.get(
                    "fallback.preferred_languages", defaults.preferred_languages
                )
            ],
            year_offsets=[
                int(o) for o in self.get("fallback.year_offsets", defaults.year_offsets)
            ],
            current_year_offsets=[
                int(o)
                for o in self.get(
                    "fallback.current_year_offsets", defaults.current_year_offsets
                )
            ],
            year_tolerance=self.get(
                "fallback.year_tolerance", defaults.year_tolerance, int
            ),
            diversity_years=self.get(
                "fallback.diversity_years", defaults.diversity_years, int
            ),
            search_limit=self.get("fallback.search_limit", defaults.search_limit, int),
            popular_query=self.get(
                "fallback.popular_query", defaults.popular_query, str
            ),
            diversity_thresholds={
                str(lang).lower(): int(count)
                for lang, count in self.get(
                    "diversity.thresholds", defaults.diversity_thresholds
                ).items()
            },
        )

    @property
    def catalog_config(self) -> Dict[str, Any]:
        """Get catalog API client configuration."""
        return {
            "api_base": self.get(
                "catalog.api_base", os.getenv("API_BASE", DEFAULT_API_BASE)
            ),
            "timeout": self.get("catalog.timeout", 10.0, float),
        }

    @property
    def embedding_source(self) -> Optional[str]:
        """Get the location of the precomputed embedding table."""
        return self.get("embeddings.url")


_config_instance: Optional[ConfigurationManager] = None
_config_lock = threading.Lock()


def get_config(config_path: Optional[str] = None) -> ConfigurationManager:
    """
    Get the global configuration instance using thread-safe double-checked locking.

    Args:
        config_path: Path to config file (only used on first call)

    Returns:
        ConfigurationManager instance
    """
    global _config_instance

    if _config_instance is None:
        with _config_lock:
            if _config_instance is None:
                _config_instance = ConfigurationManager(config_path)

    return _config_instance


def reset_config() -> None:
    """
    Reset the global configuration instance for testing purposes.

    This is primarily intended for unit tests to ensure clean state.
    """
    global _config_instance

    with _config_lock:
        _config_instance = None
