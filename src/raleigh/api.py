"""Function-style construction and subscription helpers."""

from __future__ import annotations

from typing import Any, Callable, TypeVar

from raleigh._delivery import Subscriber
from raleigh.broadcaster import Broadcaster, Disposer
from raleigh.operators import _require_subscribable
from raleigh.signal import ReactiveSignal, Signal
from raleigh.stream import Stream, Subscribable

T = TypeVar("T")


def new_stream(name: str | None = None, *, replay_last: bool = False) -> Stream:
    """A root stream: no source, values pushed with emit_value()."""
    return Stream(name=name, replay_last=replay_last)


def new_signal(
    value: T,
    same: Callable[[Any, Any], bool] | None = None,
    has_value: Callable[[Any], bool] | None = None,
) -> Signal[T]:
    return Signal(value, same, has_value)


def new_reactive_signal(
    value: T,
    same: Callable[[Any, Any], bool] | None = None,
    has_value: Callable[[Any], bool] | None = None,
) -> ReactiveSignal[T]:
    return ReactiveSignal(value, same, has_value)


def subscribe(node: Subscribable, subscriber: Subscriber) -> Disposer:
    _require_subscribable(node, "subscribe")
    return node.subscribe(subscriber)


def on(broadcaster: Broadcaster, event: str, subscriber: Subscriber) -> Disposer:
    return broadcaster.on(event, subscriber)


def off(broadcaster: Broadcaster, event: str, subscriber: Subscriber) -> None:
    broadcaster.off(event, subscriber)
