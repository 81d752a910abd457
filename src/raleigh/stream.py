"""Push-based stream nodes with operator chaining.

A StreamNode wraps a Broadcaster and pushes values on its "value" event.
Derived nodes remember which node they were built from (by id, through
the node table), and terminate() walks that chain: the node releases its
own resources, then its parent, up to the root.

Stream adds the operator vocabulary as chainable methods. Each method is
a thin call into raleigh.operators, so anything with a subscribe()
method can be passed to the free functions directly.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Generic, Protocol, TypeVar, runtime_checkable

from raleigh import _anchor
from raleigh import operators
from raleigh._delivery import Subscriber, report_error, require_callable
from raleigh.broadcaster import Broadcaster, Disposer

T = TypeVar("T")
U = TypeVar("U")

logger = logging.getLogger("raleigh")

VALUE_EVENT = "value"

_UNSET: Any = object()


def _noop() -> None:
    pass


@runtime_checkable
class Subscribable(Protocol):
    """Anything operators can consume: subscribe(fn) -> disposer."""

    def subscribe(self, subscriber: Subscriber) -> Disposer: ...


class StreamNode(Generic[T]):
    """A Broadcaster-backed node with an optional upstream link and replay.

    replay_last: when True, the most recent value is cached and handed to
    new subscribers immediately, provided last_value_test(value) passes.
    """

    def __init__(
        self,
        *,
        name: str | None = None,
        replay_last: bool = False,
        last_value_test: Callable[[Any], bool] = lambda v: v is not None,
    ) -> None:
        self._node_id = _anchor.new_id()
        self._events = Broadcaster()
        self._terminated = False
        self.name = name or type(self).__name__
        self.replay_last = replay_last
        self.last_value_test = last_value_test
        self._last_value: Any = _UNSET
        _anchor.register(self, self._node_id)

    # --- Upstream link ---

    @property
    def source(self) -> Any:
        """The node this one was derived from, or None for a root."""
        parent_id = _anchor.sources.get(self._node_id)
        return None if parent_id is None else _anchor.nodes.get(parent_id)

    def _link(self, source: object) -> None:
        """Record source as this node's parent, if it is a registered node."""
        _anchor.sources[self._node_id] = _anchor.node_id_of(source)

    @property
    def path(self) -> list:
        """Nodes from the root down to this one."""
        return _anchor.lineage(self._node_id)[::-1]

    # --- Values ---

    @property
    def last_value(self) -> Any:
        """Cached most recent value (replay_last only), None if nothing cached."""
        return None if self._last_value is _UNSET else self._last_value

    @property
    def terminated(self) -> bool:
        return self._terminated

    def emit_value(self, value: T) -> None:
        """Push a value to all subscribers."""
        if self._terminated:
            return
        if self.replay_last:
            self._last_value = value
        self._events.emit(VALUE_EVENT, value)

    def subscribe(self, subscriber: Callable[[T], None]) -> Disposer:
        """Register a callback. Returns a function that removes it.

        With replay_last, a cached value that passes last_value_test is
        delivered to the subscriber before this returns.
        """
        require_callable(subscriber)
        if self._terminated:
            return _noop
        if (
            self.replay_last
            and self._last_value is not _UNSET
            and self.last_value_test(self._last_value)
        ):
            try:
                subscriber(self._last_value)
            except Exception as exc:
                report_error(exc, subscriber)
        self._events.on(VALUE_EVENT, subscriber)

        def _unsubscribe() -> None:
            self._events.off(VALUE_EVENT, subscriber)

        return _unsubscribe

    # --- Broadcaster passthrough ---

    def on(self, event: str, subscriber: Subscriber) -> Disposer:
        return self._events.on(event, subscriber)

    def off(self, event: str, subscriber: Subscriber) -> None:
        self._events.off(event, subscriber)

    def emit(self, event: str, value: Any) -> None:
        self._events.emit(event, value)

    def add_disposer(self, disposer: Disposer) -> None:
        """Register cleanup to run once when this node is released.

        On an already terminated node the disposer runs immediately.
        """
        if self._terminated:
            disposer()
        else:
            self._events.add_disposer(disposer)

    @property
    def subscriber_count(self) -> int:
        return self._events.subscriber_count(VALUE_EVENT)

    # --- Teardown ---

    def terminate(self) -> None:
        """Tear down this node and every ancestor it was derived from."""
        _anchor.release_chain(self._node_id)

    def _release(self) -> None:
        if self._terminated:
            return
        self._terminated = True
        self._last_value = _UNSET
        self._events.terminate()
        logger.debug("Released %r", self)

    def __repr__(self) -> str:
        state = "terminated" if self._terminated else "active"
        return f"{type(self).__name__}({self.name!r}, {state})"


class Chainable:
    """Operator vocabulary as methods. Mixed into Stream and ReactiveSignal."""

    def map(self, fn: Callable[[Any], U]) -> Stream[U]:
        """Transform values through fn."""
        return operators.map(self, fn)

    def filter(self, fn: Callable[[Any], bool]) -> Stream:
        """Only pass values where fn returns True."""
        return operators.filter(self, fn)

    def iterate(self) -> Stream:
        return operators.iterate(self)

    def debounce(self, seconds: float, *, scheduler=None) -> Stream:
        return operators.debounce(self, seconds, scheduler=scheduler)

    def throttle(self, seconds: float, *, scheduler=None) -> Stream:
        return operators.throttle(self, seconds, scheduler=scheduler)

    def delay(self, seconds: float, *, scheduler=None) -> Stream:
        return operators.delay(self, seconds, scheduler=scheduler)

    def scan(self, accumulator: Callable[[Any, Any], Any], seed: Any) -> Stream:
        return operators.scan(self, accumulator, seed)

    def distinct_until_changed(
        self, compare: Callable[[Any, Any], bool] | None = None
    ) -> Stream:
        return operators.distinct_until_changed(self, compare)

    def with_latest_from(self, other: Subscribable) -> Stream:
        return operators.with_latest_from(self, other)

    def merge(self, *others: Subscribable) -> Stream:
        return operators.merge(self, *others)


class Stream(Chainable, StreamNode[T]):
    """Push-based stream with operator chaining.

    Usage:
        clicks = Stream()
        doubled = clicks.map(lambda v: v * 2).filter(lambda v: v > 2)
        doubled.subscribe(print)
        clicks.emit_value(1)   # filtered out
        clicks.emit_value(2)   # prints 4
        doubled.terminate()    # tears down doubled, the map, and clicks
    """

    def from_event(self, event: str) -> Stream:
        """Stream of this node's named event."""
        return operators.from_event(self, event)
