"""Local search history and onboarding state."""

from birdscope.history.onboarding import OnboardingState
from birdscope.history.store import SearchHistoryEntry, SearchHistoryStore

__all__ = ["OnboardingState", "SearchHistoryEntry", "SearchHistoryStore"]
