"""Named-event pub/sub — the primitive every stream node is built on.

A Broadcaster maps event names to ordered subscriber sets. Alongside the
subscriber sets it keeps a list of disposers: cleanup callbacks (upstream
subscriptions, timer cancellation, external listeners) that run exactly
once when the broadcaster is terminated.
"""

from __future__ import annotations

import logging
from typing import Any, Callable

from raleigh._delivery import Subscriber, deliver, require_callable

logger = logging.getLogger("raleigh")

Disposer = Callable[[], None]


class Broadcaster:
    """Named-event subscriber registry with synchronous emit."""

    def __init__(self) -> None:
        # dicts used as insertion-ordered sets
        self._events: dict[str, dict[Subscriber, None]] = {}
        self._disposers: list[Disposer] = []

    def on(self, event: str, subscriber: Subscriber) -> Disposer:
        """Register subscriber for event. Returns a function that removes it.

        Registering the same subscriber twice for one event is a no-op.
        """
        require_callable(subscriber)
        self._events.setdefault(event, {})[subscriber] = None

        def _off() -> None:
            self.off(event, subscriber)

        return _off

    def off(self, event: str, subscriber: Subscriber) -> None:
        """Remove subscriber. No-op if it (or the event) is unknown."""
        subscribers = self._events.get(event)
        if subscribers is not None:
            subscribers.pop(subscriber, None)

    def emit(self, event: str, value: Any) -> None:
        """Synchronously call every current subscriber of event with value."""
        subscribers = self._events.get(event)
        if subscribers:
            deliver(subscribers, value)

    def add_disposer(self, disposer: Disposer) -> None:
        """Register cleanup to run once on terminate()."""
        self._disposers.append(disposer)

    def subscriber_count(self, event: str) -> int:
        return len(self._events.get(event, ()))

    def terminate(self) -> None:
        """Run pending disposers, then drop every subscriber. Safe to repeat."""
        disposers, self._disposers = self._disposers, []
        for disposer in disposers:
            try:
                disposer()
            except Exception:
                logger.exception("Disposer %r failed during terminate", disposer)
        for subscribers in self._events.values():
            subscribers.clear()
        self._events.clear()
