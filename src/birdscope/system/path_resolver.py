"""Resolves where BirdScope keeps its configuration and local storage."""

import os
from pathlib import Path


class PathResolver:
    """Central authority for all file path resolution in BirdScope.

    Uses environment variables for configuration with sensible defaults.
    """

    def __init__(self) -> None:
        """Initialize PathResolver with environment-based configuration."""
        self.data_dir = Path(os.getenv("BIRDSCOPE_DATA", str(Path.home() / ".birdscope")))

    def get_birdscope_config_path(self) -> Path:
        """Get the path to the main configuration file.

        Checks BIRDSCOPE_CONFIG environment variable first, then falls back to default.
        """
        config_path = os.getenv("BIRDSCOPE_CONFIG")
        if config_path:
            return Path(config_path)

        # Default: runtime config in data directory
        return self.data_dir / "config" / "birdscope.yaml"

    def get_data_dir(self) -> Path:
        """Get the data directory path.

        Returns:
            Path to the data directory where all local state is stored.
        """
        return self.data_dir

    def get_storage_path(self) -> Path:
        """Get the path to the local key-value storage database."""
        return self.data_dir / "storage" / "birdscope.db"
