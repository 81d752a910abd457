"""Subscriber delivery with per-subscriber error isolation.

Every broadcast (Broadcaster.emit, Signal.notify) goes through deliver().
The subscriber collection is snapshotted before iterating, and a
subscriber removed mid-broadcast is skipped if its turn has not come yet.
A subscriber that raises never stops the ones after it: the error is
handed to the configured error handler and delivery continues.
"""

from __future__ import annotations

import logging
from typing import Any, Callable

logger = logging.getLogger("raleigh")

Subscriber = Callable[[Any], None]
ErrorHandler = Callable[[Exception, Subscriber], None]

_error_handler: ErrorHandler | None = None


def set_error_handler(handler: ErrorHandler | None) -> None:
    """Route subscriber errors to handler(exc, subscriber).

    Pass None to restore the default, which logs the error with its
    traceback on the "raleigh" logger.
    """
    global _error_handler
    _error_handler = handler


def report_error(exc: Exception, subscriber: Subscriber) -> None:
    if _error_handler is None:
        logger.error("Subscriber %r raised", subscriber, exc_info=exc)
    else:
        _error_handler(exc, subscriber)


def deliver(subscribers: dict[Subscriber, None], value: Any) -> None:
    """Call every subscriber with value. subscribers is an ordered set (dict keys)."""
    deliver_current(subscribers, lambda: value)


def deliver_current(subscribers: dict[Subscriber, None], current: Callable[[], Any]) -> None:
    """Like deliver(), but each subscriber gets current() read at its turn.

    A subscriber that writes the source mid-pass leaves the remaining
    subscribers seeing the newest value, not the one the pass started with.
    """
    for subscriber in list(subscribers):
        if subscriber not in subscribers:
            continue  # removed by an earlier subscriber in this same pass
        try:
            subscriber(current())
        except Exception as exc:
            report_error(exc, subscriber)


def require_callable(subscriber: object) -> None:
    if not callable(subscriber):
        raise TypeError(
            f"subscriber must be callable, got {type(subscriber).__name__}"
        )
