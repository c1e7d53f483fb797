"""Persisted onboarding completion flag with change listeners."""

import logging
from collections.abc import Callable

from birdscope.storage.key_value import KeyValueStore

logger = logging.getLogger(__name__)

OnChangeCallback = Callable[[bool], None]


class OnboardingState:
    """Whether the user finished onboarding.

    Listeners belong to this instance; share the instance (the container
    does) to share them.
    """

    def __init__(self, storage: KeyValueStore, key: str = "@onboarding_completed") -> None:
        self.storage = storage
        self.key = key
        self._listeners: list[OnChangeCallback] = []

    async def is_completed(self) -> bool:
        return await self.storage.get_item(self.key) == "true"

    async def mark_completed(self) -> None:
        await self.storage.set_item(self.key, "true")
        logger.info("Onboarding marked completed")
        self._notify(True)

    async def reset(self) -> None:
        await self.storage.remove_item(self.key)
        logger.info("Onboarding reset")
        self._notify(False)

    def on_change(self, callback: OnChangeCallback) -> Callable[[], None]:
        """Register a listener and return a function that removes it."""
        self._listeners.append(callback)

        def unsubscribe() -> None:
            if callback in self._listeners:
                self._listeners.remove(callback)

        return unsubscribe

    def _notify(self, completed: bool) -> None:
        for callback in list(self._listeners):
            callback(completed)
