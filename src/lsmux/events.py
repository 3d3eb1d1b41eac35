"""Minimal event primitives shared by backends and the multiplexer."""

from __future__ import annotations

import logging
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)

Listener = Callable[[Any], None]


class Disposable:
    """Handle that runs a release callback at most once."""

    def __init__(self, on_dispose: Optional[Callable[[], None]] = None):
        self._on_dispose = on_dispose

    def dispose(self) -> None:
        callback, self._on_dispose = self._on_dispose, None
        if callback is not None:
            callback()


class EventEmitter:
    """Source of an event stream.

    ``emitter.event`` is what gets handed out to subscribers: calling it with a
    listener registers the listener and returns a :class:`Disposable` that
    unregisters it. Only the owner of the emitter calls :meth:`fire`.
    """

    def __init__(self):
        self._listeners: list[Listener] = []
        self._disposed = False

    @property
    def event(self) -> Callable[[Listener], Disposable]:
        return self._subscribe

    def _subscribe(self, listener: Listener) -> Disposable:
        if self._disposed:
            return Disposable()
        self._listeners.append(listener)

        def _remove():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return Disposable(_remove)

    def fire(self, data: Any = None) -> None:
        # Snapshot, listeners may unsubscribe while being called
        for listener in list(self._listeners):
            try:
                listener(data)
            except Exception:
                logger.exception(f"Event listener {listener!r} failed")

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def dispose(self) -> None:
        self._listeners.clear()
        self._disposed = True
