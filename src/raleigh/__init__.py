"""Raleigh: push-based streams, signals and stream operators for Python."""

from importlib.metadata import version as _version

__version__ = _version("raleigh")

from raleigh._delivery import set_error_handler
from raleigh._ids import rid
from raleigh.broadcaster import Broadcaster
from raleigh.stream import Stream, StreamNode, Subscribable
from raleigh.signal import Signal, ReactiveSignal
from raleigh.operators import (
    debounce,
    delay,
    distinct_until_changed,
    filter,
    from_event,
    iterate,
    map,
    merge,
    scan,
    throttle,
    with_latest_from,
)
from raleigh.combine import named_combine_latest
from raleigh.scheduler import ManualScheduler, ThreadingScheduler, get_scheduler, set_scheduler
from raleigh.api import new_reactive_signal, new_signal, new_stream, off, on, subscribe
# textual NOT auto-imported — opt-in only

__all__ = [
    "Broadcaster",
    "StreamNode",
    "Stream",
    "Subscribable",
    "Signal",
    "ReactiveSignal",
    "map",
    "filter",
    "iterate",
    "debounce",
    "throttle",
    "delay",
    "scan",
    "distinct_until_changed",
    "with_latest_from",
    "merge",
    "from_event",
    "named_combine_latest",
    "ManualScheduler",
    "ThreadingScheduler",
    "set_scheduler",
    "get_scheduler",
    "set_error_handler",
    "rid",
    "new_stream",
    "new_signal",
    "new_reactive_signal",
    "subscribe",
    "on",
    "off",
]
