"""BirdScope configuration package.

This package provides centralized configuration management with:
- Typed Pydantic models with validation
- Smart defaults management
- YAML parsing and serialization
"""

from .manager import ConfigManager, get_config
from .models import BirdScopeConfig

__all__ = [
    "BirdScopeConfig",
    "ConfigManager",
    "get_config",
]
