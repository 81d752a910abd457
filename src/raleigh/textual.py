"""Textual integration for raleigh. Opt-in — requires textual.

// [LAW:single-enforcer] Guard + NoMatches + thread-marshal enforced here, not at callsites.
// [LAW:locality-or-seam] Textual coupling isolated in this module — core raleigh stays agnostic.
// [LAW:no-shared-mutable-globals] _paused_apps has single owner (this module), explicit API
//   (pause/is_safe), documented invariant (id present ↔ inside pause context).
"""

import logging
import threading
import time
from contextlib import contextmanager

from textual.css.query import NoMatches

logger = logging.getLogger("raleigh.textual")

# Module-owned pause state — keyed by id(app) so multiple apps work in tests.
_paused_apps: set[int] = set()


@contextmanager
def pause(app):
    """Suspend guarded subscribers and timers during widget replacement."""
    key = id(app)
    _paused_apps.add(key)
    try:
        yield
    finally:
        _paused_apps.discard(key)


def is_safe(app) -> bool:
    """Is the widget tree in a queryable state?"""
    return app.is_running and id(app) not in _paused_apps


def _guard(app, fn, main: int):
    """Wrap fn(*args): skip while unsafe, marshal to the app thread, drop NoMatches."""

    def _safe(*args):
        try:
            fn(*args)
        except NoMatches:
            logger.debug("Dropped update for missing widget: %r", fn)

    def _guarded(*args):
        if not is_safe(app):
            return
        if threading.get_ident() != main:
            app.call_from_thread(_safe, *args)
        else:
            _safe(*args)

    return _guarded


def subscribe(app, node, subscriber):
    """node.subscribe() that safely bridges to Textual widgets.

    Guards against firing during pause/not-running, swallows NoMatches
    from widget queries, and marshals values emitted on timer threads via
    call_from_thread.
    """
    return node.subscribe(_guard(app, subscriber, threading.get_ident()))


class TextualScheduler:
    """Scheduler backed by the app's own timers (app.set_timer).

    Callbacks run on the app's event loop, so debounce/throttle/delay
    emissions land on the UI thread without marshaling. Pass it per
    operator (scheduler=...) or install it with raleigh.set_scheduler().
    """

    def __init__(self, app) -> None:
        self._app = app
        self._main = threading.get_ident()

    def now(self) -> float:
        return time.monotonic()

    def schedule(self, callback, delay: float):
        guarded = _guard(self._app, callback, self._main)
        if threading.get_ident() != self._main:
            return self._app.call_from_thread(self._app.set_timer, delay, guarded)
        return self._app.set_timer(delay, guarded)

    def cancel(self, handle) -> None:
        if threading.get_ident() != self._main:
            self._app.call_from_thread(handle.stop)
        else:
            handle.stop()
