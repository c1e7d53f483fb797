"""Configuration management with defaults and backup support."""

import logging
import shutil
from typing import Any

import yaml
from pydantic import ValidationError

from birdscope.config.models import BirdScopeConfig
from birdscope.system.path_resolver import PathResolver

logger = logging.getLogger(__name__)


class ConfigManager:
    """Manages configuration loading and saving."""

    CURRENT_VERSION = "1.0.0"

    def __init__(self, path_resolver: PathResolver | None = None):
        """Initialize ConfigManager.

        Args:
            path_resolver: Optional PathResolver instance. If None, creates a new one.
        """
        self.path_resolver = path_resolver or PathResolver()
        self.config_path = self.path_resolver.get_birdscope_config_path()

    def load(self) -> BirdScopeConfig:
        """Load configuration and validate it.

        Returns:
            BirdScopeConfig: Loaded and validated configuration

        Raises:
            ValueError: If the configuration file does not validate
        """
        self._ensure_config_exists()
        raw_config = self._read_yaml()

        config_version = raw_config.get("config_version", self.CURRENT_VERSION)
        if config_version != self.CURRENT_VERSION:
            logger.warning(
                "Config version %s differs from %s, loading with current defaults",
                config_version,
                self.CURRENT_VERSION,
            )
            raw_config["config_version"] = self.CURRENT_VERSION

        try:
            return self._create_config_object(raw_config)
        except ValidationError as e:
            raise ValueError(f"Configuration validation failed: {e}") from e

    def save(self, config: BirdScopeConfig) -> None:
        """Save configuration to file with backup.

        Args:
            config: Configuration to save

        Raises:
            PermissionError: If config file cannot be written
        """
        self.config_path.parent.mkdir(parents=True, exist_ok=True)

        # Backup existing config
        if self.config_path.exists():
            backup_path = self.config_path.with_suffix(".yaml.backup")
            try:
                shutil.copy2(self.config_path, backup_path)
            except PermissionError:
                logger.warning("Could not create backup at %s", backup_path)

        config_yaml = yaml.dump(config.model_dump(), default_flow_style=False, sort_keys=False)
        self.config_path.write_text(config_yaml)
        logger.info("Configuration saved successfully to %s", self.config_path)

    def reload(self) -> BirdScopeConfig:
        """Reload configuration from disk.

        Returns:
            BirdScopeConfig: Freshly loaded configuration
        """
        return self.load()

    def _ensure_config_exists(self) -> None:
        """Ensure config file exists, create it from model defaults if needed."""
        if not self.config_path.exists():
            self.config_path.parent.mkdir(parents=True, exist_ok=True)
            defaults = BirdScopeConfig().model_dump()
            config_yaml = yaml.dump(defaults, default_flow_style=False, sort_keys=False)
            self.config_path.write_text(config_yaml)
            logger.info("Created default configuration at %s", self.config_path)

    def _read_yaml(self) -> dict[str, Any]:
        """Read YAML config file.

        Returns:
            dict: Raw configuration dictionary
        """
        config_text = self.config_path.read_text()
        return yaml.safe_load(config_text) or {}

    def _create_config_object(self, raw_config: dict[str, Any]) -> BirdScopeConfig:
        """Create BirdScopeConfig object from dictionary.

        Args:
            raw_config: Configuration dictionary

        Returns:
            BirdScopeConfig: Typed configuration object
        """
        expected_fields = set(BirdScopeConfig.model_fields.keys())
        filtered_config = {k: v for k, v in raw_config.items() if k in expected_fields}

        unexpected_fields = set(raw_config.keys()) - expected_fields
        if unexpected_fields:
            logger.warning("Filtered out unexpected config fields: %s", unexpected_fields)

        return BirdScopeConfig(**filtered_config)


def get_config(path_resolver: PathResolver | None = None) -> BirdScopeConfig:
    """Load BirdScope configuration.

    Args:
        path_resolver: Optional PathResolver instance to use. If not provided,
                      creates a new PathResolver instance.

    Returns:
        BirdScopeConfig: The loaded and validated configuration.
    """
    return ConfigManager(path_resolver).load()
