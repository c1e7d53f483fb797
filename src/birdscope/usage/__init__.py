"""Free identification credits."""

from birdscope.usage.counter import RestUsageBackend, UsageBackend, UsageCounter

__all__ = ["RestUsageBackend", "UsageBackend", "UsageCounter"]
