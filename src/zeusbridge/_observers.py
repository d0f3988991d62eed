"""Callback fan-out with per-callback failure isolation."""

from __future__ import annotations

import contextlib
import logging
from collections.abc import Callable
from typing import Generic, ParamSpec

P = ParamSpec("P")

_logger = logging.getLogger(__name__)


class ObserverList(Generic[P]):
    """Ordered set of callbacks notified one after another.

    A callback that raises is logged and skipped; the remaining callbacks
    are still notified.
    """

    def __init__(self, label: str) -> None:
        self._label = label
        self._callbacks: list[Callable[P, None]] = []

    def __len__(self) -> int:
        return len(self._callbacks)

    def add(self, callback: Callable[P, None]) -> Callable[[], None]:
        """Register *callback*; the returned callable deregisters it."""
        self._callbacks.append(callback)

        def _remove() -> None:
            with contextlib.suppress(ValueError):
                self._callbacks.remove(callback)

        return _remove

    def clear(self) -> None:
        self._callbacks.clear()

    def notify(self, *args: P.args, **kwargs: P.kwargs) -> None:
        for callback in list(self._callbacks):
            try:
                callback(*args, **kwargs)
            except Exception:
                _logger.warning("%s callback %r raised", self._label, callback, exc_info=True)
