"""Listener registry for sink and stream notifications."""

from __future__ import annotations

import logging
from typing import Callable

logger = logging.getLogger(__name__)

Listener = Callable[[], None]


class ListenerSet:
    """Ordered set of zero-argument callbacks for one notification.

    ``add`` returns an unsubscribe function.  A listener that raises is
    logged and does not stop the remaining listeners from running.
    """

    def __init__(self, name: str) -> None:
        self.name = name
        self._listeners: list[Listener] = []

    def add(self, listener: Listener) -> Callable[[], None]:
        """Register *listener*. Returns unsubscribe function."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def emit(self) -> None:
        for listener in list(self._listeners):
            try:
                listener()
            except Exception:
                logger.exception("Error in %s listener", self.name)

    def clear(self) -> None:
        self._listeners.clear()

    def __len__(self) -> int:
        return len(self._listeners)
