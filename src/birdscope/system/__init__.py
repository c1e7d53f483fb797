"""System domain package.

This package contains system-level components:
- PathResolver: Path resolution for configuration and local data
"""

from birdscope.system.path_resolver import PathResolver

__all__ = [
    "PathResolver",
]
