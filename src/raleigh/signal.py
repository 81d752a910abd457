"""Signals — a current value that notifies only when it changes.

Unlike a stream, a Signal does not forward every write: assigning a value
that same(old, new) considers equal does nothing. New subscribers get the
current value immediately when has_value(value) holds.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Generic, TypeVar

from raleigh import _anchor
from raleigh._delivery import Subscriber, deliver_current, report_error, require_callable
from raleigh._ids import rid
from raleigh.broadcaster import Disposer
from raleigh.stream import Chainable

T = TypeVar("T")

logger = logging.getLogger("raleigh")


def _same(old: Any, new: Any) -> bool:
    return old is new or old == new


def _has_value(value: Any) -> bool:
    return value is not None


class Signal(Generic[T]):
    """A stateful value holder with change-only notification."""

    def __init__(
        self,
        value: T,
        same: Callable[[Any, Any], bool] | None = None,
        has_value: Callable[[Any], bool] | None = None,
        *,
        id_factory: Callable[[], str] = rid,
    ) -> None:
        self._node_id = _anchor.new_id()
        self._value = value
        self._same = same or _same
        self._has_value = has_value or _has_value
        self._id_factory = id_factory
        self._id: str | None = None
        self._subscribers: dict[Subscriber, None] = {}
        self._terminated = False
        self.name = type(self).__name__
        _anchor.register(self, self._node_id)

    @property
    def id(self) -> str:
        """Opaque identifier, generated on first access."""
        if self._id is None:
            self._id = self._id_factory()
        return self._id

    @property
    def value(self) -> T:
        return self._value

    @value.setter
    def value(self, new_value: T) -> None:
        if self._same(self._value, new_value):
            return
        self._value = new_value
        self.notify()

    @property
    def terminated(self) -> bool:
        return self._terminated

    @property
    def path(self) -> list:
        return [self]

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def subscribe(self, subscriber: Callable[[T], None]) -> Disposer:
        """Register a callback, calling it now if a value is present."""
        require_callable(subscriber)
        if self._has_value(self._value):
            try:
                subscriber(self._value)
            except Exception as exc:
                report_error(exc, subscriber)
        if self._terminated:
            return lambda: None
        self._subscribers[subscriber] = None

        def _unsubscribe() -> None:
            self._subscribers.pop(subscriber, None)

        return _unsubscribe

    def notify(self) -> None:
        """Call every subscriber with the current value, in registration order."""
        deliver_current(self._subscribers, lambda: self._value)

    def terminate(self) -> None:
        """Drop all subscribers. Later writes still update value."""
        _anchor.release_chain(self._node_id)

    def _release(self) -> None:
        if self._terminated:
            return
        self._terminated = True
        self._subscribers.clear()
        logger.debug("Released %r", self)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._value!r})"


class ReactiveSignal(Chainable, Signal[T]):
    """A Signal with the stream operator vocabulary.

    Usage:
        count = ReactiveSignal(0)
        labels = count.filter(lambda n: n > 0).map(lambda n: f"{n} items")
        labels.subscribe(print)
        count.value = 3   # prints "3 items"
    """
