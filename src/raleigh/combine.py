"""Combine-latest over a named collection of signals.

named_combine_latest({"x": sig_x, "y": sig_y}) stays silent until every
input has produced a value, then emits {"x": ..., "y": ...}. After that,
any input changing re-emits a full snapshot with the latest value of
every input. The result replays its last snapshot to new subscribers.

The inputs are shared, so the result is a root node: terminating it
unsubscribes from every input but leaves the inputs themselves running.
"""

from __future__ import annotations

from typing import Any, Mapping

from raleigh.operators import _require_subscribable
from raleigh.stream import Stream, Subscribable


def named_combine_latest(named: Mapping[str, Subscribable]) -> Stream[dict[str, Any]]:
    """Join named signals into a stream of snapshot dicts.

    Snapshot keys follow the mapping's iteration order.

    Usage:
        width, height = Signal(2), Signal(3)
        area = named_combine_latest({"w": width, "h": height}).map(
            lambda s: s["w"] * s["h"]
        )
        area.subscribe(print)   # prints 6
        width.value = 4         # prints 12
    """
    if not named:
        raise ValueError("named_combine_latest() needs at least one input")
    for source in named.values():
        _require_subscribable(source, "named_combine_latest")

    result: Stream[dict[str, Any]] = Stream(name="named_combine_latest", replay_last=True)
    names = list(named)
    values: list[Any] = [None] * len(names)
    has_value = [False] * len(names)

    def _track(index: int):
        def _on_value(value: Any) -> None:
            values[index] = value
            has_value[index] = True
            if all(has_value):
                result.emit_value(dict(zip(names, values)))

        return _on_value

    for index, source in enumerate(named.values()):
        result.add_disposer(source.subscribe(_track(index)))

    return result
