"""Listener registry for the events stores and channels expose to collaborators."""

from __future__ import annotations
from collections import defaultdict
from typing import Any, Callable, Dict, List

Listener = Callable[..., None]


class EventEmitter:
    """
    Synchronous named events.

    Listeners run in registration order before ``emit`` returns. A listener
    that raises propagates to the caller of the operation that emitted.
    """

    EVENTS: tuple = ()

    def __init__(self) -> None:
        self._listeners: Dict[str, List[Listener]] = defaultdict(list)

    def on(self, event: str, listener: Listener) -> Listener:
        if self.EVENTS and event not in self.EVENTS:
            raise ValueError(f"Unknown event: {event}. Available: {list(self.EVENTS)}")
        self._listeners[event].append(listener)
        return listener

    def off(self, event: str, listener: Listener) -> None:
        try:
            self._listeners[event].remove(listener)
        except ValueError:
            pass

    def emit(self, event: str, *args: Any) -> bool:
        """Call every listener for ``event``. Returns False when nobody listened."""
        listeners = list(self._listeners.get(event, ()))
        for listener in listeners:
            listener(*args)
        return bool(listeners)
