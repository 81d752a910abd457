"""Operator library — free functions that derive a new Stream from sources.

Every operator builds exactly one new Stream, links it to its (first)
source for teardown, subscribes a translating callback to the source(s),
and returns the new Stream. The subscription disposers, and any timers the
operator owns, are registered on the new Stream, so terminating it (or
anything downstream of it) removes them.

Sources only need a subscribe(fn) -> disposer method; Streams, Signals
and foreign objects all qualify.

Timer operators (debounce, throttle, delay) use the scheduler passed in,
or the default from raleigh.scheduler at construction time.
"""

from __future__ import annotations

import threading
from collections import deque
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, Iterable

from raleigh import stream as _stream
from raleigh.scheduler import Scheduler, get_scheduler

if TYPE_CHECKING:
    from raleigh.stream import Stream, Subscribable

_UNSET: Any = object()

# (register, unregister) method pairs from_event() knows how to drive
_LISTENER_METHODS = (
    ("on", "off"),
    ("add_listener", "remove_listener"),
    ("add_event_listener", "remove_event_listener"),
)


# ─── Per-operator timer state ────────────────────────────────────────────────


@dataclass
class _TimerState:
    """debounce/throttle state: one live handle, or the last fire time."""

    handle: Any = None
    generation: int = 0
    last_fire: float | None = None


@dataclass
class _DelayState:
    """Values waiting out their delay, oldest first, and their live timers."""

    pending: deque = field(default_factory=deque)
    handles: dict = field(default_factory=dict)


# ─── Wiring helpers ──────────────────────────────────────────────────────────


def _require_subscribable(source: object, operator: str) -> None:
    if not callable(getattr(source, "subscribe", None)):
        raise TypeError(
            f"{operator}() needs a source with a subscribe() method, "
            f"got {type(source).__name__}"
        )


def _require_duration(seconds: float, operator: str) -> None:
    if seconds < 0:
        raise ValueError(f"{operator}() duration must be >= 0, got {seconds!r}")


def _derive(source: Subscribable, name: str) -> Stream:
    _require_subscribable(source, name)
    result = _stream.Stream(name=name)
    result._link(source)
    return result


def _attach(result: Stream, source: Subscribable, callback: Callable[[Any], None]) -> None:
    """Subscribe callback to source; the subscription is owned by result."""
    result.add_disposer(source.subscribe(callback))


# ─── Stateless operators ─────────────────────────────────────────────────────


def map(source: Subscribable, fn: Callable[[Any], Any]) -> Stream:
    """Re-emit fn(value) for every upstream value."""
    result = _derive(source, "map")
    _attach(result, source, lambda v: result.emit_value(fn(v)))
    return result


def filter(source: Subscribable, predicate: Callable[[Any], bool]) -> Stream:
    """Re-emit values for which predicate is truthy."""
    result = _derive(source, "filter")

    def _on_value(value: Any) -> None:
        if predicate(value):
            result.emit_value(value)

    _attach(result, source, _on_value)
    return result


def iterate(source: Subscribable) -> Stream:
    """Flatten: each upstream sequence is re-emitted element by element."""
    result = _derive(source, "iterate")

    def _on_value(values: Iterable[Any]) -> None:
        for item in values:
            result.emit_value(item)

    _attach(result, source, _on_value)
    return result


# ─── Stateful operators ──────────────────────────────────────────────────────


def scan(source: Subscribable, accumulator: Callable[[Any, Any], Any], seed: Any) -> Stream:
    """Running fold: emits acc = accumulator(acc, value), starting from seed."""
    result = _derive(source, "scan")
    acc = seed

    def _on_value(value: Any) -> None:
        nonlocal acc
        acc = accumulator(acc, value)
        result.emit_value(acc)

    _attach(result, source, _on_value)
    return result


def distinct_until_changed(
    source: Subscribable, compare: Callable[[Any, Any], bool] | None = None
) -> Stream:
    """Drop a value when compare(value, previous) holds.

    Only the immediately preceding emission is compared; the first value
    always passes. None is an ordinary value here.
    """
    result = _derive(source, "distinct_until_changed")
    same = compare or (lambda a, b: a == b)
    last = _UNSET

    def _on_value(value: Any) -> None:
        nonlocal last
        if last is _UNSET or not same(value, last):
            last = value
            result.emit_value(value)

    _attach(result, source, _on_value)
    return result


# ─── Timer operators ─────────────────────────────────────────────────────────


def debounce(
    source: Subscribable, seconds: float, *, scheduler: Scheduler | None = None
) -> Stream:
    """Coalesce rapid values — emit the latest after a quiet period.

    Each new value cancels the pending timer and starts another, so only
    the last value in a burst fires, `seconds` after it arrived.
    """
    _require_duration(seconds, "debounce")
    result = _derive(source, "debounce")
    clock = scheduler or get_scheduler()
    state = _TimerState()
    lock = threading.Lock()

    def _fire(generation: int, value: Any) -> None:
        with lock:
            # a timer thread may already be running when it gets cancelled
            if generation != state.generation:
                return
            state.handle = None
        result.emit_value(value)

    def _on_value(value: Any) -> None:
        with lock:
            if state.handle is not None:
                clock.cancel(state.handle)
            state.generation += 1
            generation = state.generation
            state.handle = clock.schedule(lambda: _fire(generation, value), seconds)

    def _cancel() -> None:
        with lock:
            state.generation += 1
            if state.handle is not None:
                clock.cancel(state.handle)
                state.handle = None

    result.add_disposer(_cancel)
    _attach(result, source, _on_value)
    return result


def throttle(
    source: Subscribable, seconds: float, *, scheduler: Scheduler | None = None
) -> Stream:
    """Leading-edge throttle.

    The first value passes immediately; later values are dropped until
    `seconds` have elapsed since the last value that passed.
    """
    _require_duration(seconds, "throttle")
    result = _derive(source, "throttle")
    clock = scheduler or get_scheduler()
    state = _TimerState()
    lock = threading.Lock()

    def _on_value(value: Any) -> None:
        with lock:
            now = clock.now()
            if state.last_fire is not None and now - state.last_fire < seconds:
                return
            state.last_fire = now
        result.emit_value(value)

    _attach(result, source, _on_value)
    return result


def delay(
    source: Subscribable, seconds: float, *, scheduler: Scheduler | None = None
) -> Stream:
    """Re-emit every value `seconds` after it arrived.

    Each value gets its own timer, but a firing timer always emits the
    oldest pending value, so output order matches input order even when
    host timers fire out of order.
    """
    _require_duration(seconds, "delay")
    result = _derive(source, "delay")
    clock = scheduler or get_scheduler()
    state = _DelayState()
    lock = threading.Lock()

    def _on_value(value: Any) -> None:
        token = object()

        def _fire() -> None:
            with lock:
                state.handles.pop(token, None)
                if not state.pending:
                    return
                oldest = state.pending.popleft()
            result.emit_value(oldest)

        with lock:
            state.pending.append(value)
            state.handles[token] = clock.schedule(_fire, seconds)

    def _cancel() -> None:
        with lock:
            for handle in state.handles.values():
                clock.cancel(handle)
            state.handles.clear()
            state.pending.clear()

    result.add_disposer(_cancel)
    _attach(result, source, _on_value)
    return result


# ─── Multi-source operators ──────────────────────────────────────────────────


def with_latest_from(source: Subscribable, other: Subscribable) -> Stream:
    """Pair each source value with other's latest: emits [value, latest].

    Source values that arrive before other has produced anything are
    dropped, not buffered.
    """
    result = _derive(source, "with_latest_from")
    _require_subscribable(other, "with_latest_from")
    latest = _UNSET

    def _on_other(value: Any) -> None:
        nonlocal latest
        latest = value

    def _on_value(value: Any) -> None:
        if latest is not _UNSET:
            result.emit_value([value, latest])

    _attach(result, other, _on_other)
    _attach(result, source, _on_value)
    return result


def merge(*sources: Subscribable) -> Stream:
    """Fan several sources into one stream, in the order values occur.

    The first source is the recorded parent for teardown; the others are
    only unsubscribed from.
    """
    if not sources:
        raise ValueError("merge() needs at least one source")
    for source in sources:
        _require_subscribable(source, "merge")
    result = _derive(sources[0], "merge")
    for source in sources:
        # a fresh callback per source, so merge(a, a) subscribes twice
        _attach(result, source, lambda v: result.emit_value(v))
    return result


# ─── Bridging ────────────────────────────────────────────────────────────────


def from_event(target: Any, event: str) -> Stream:
    """Stream of a named event from an external emitter.

    Accepts Broadcaster-like objects (on/off), pyee-style emitters
    (add_listener/remove_listener) and add_event_listener/
    remove_event_listener targets. The returned stream is a root: terminating
    it removes the listener and leaves the target running.
    """
    result = _stream.Stream(name="from_event")
    handler = result.emit_value

    for add_name, remove_name in _LISTENER_METHODS:
        add = getattr(target, add_name, None)
        remove = getattr(target, remove_name, None)
        if callable(add) and callable(remove):
            break
    else:
        raise TypeError(
            f"from_event() cannot listen on {type(target).__name__}: expected one of "
            + ", ".join(f"{a}/{r}" for a, r in _LISTENER_METHODS)
        )

    add(event, handler)
    result.add_disposer(lambda: remove(event, handler))
    return result
