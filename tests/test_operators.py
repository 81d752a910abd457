"""Tests for the operator library (free functions and chained methods)."""

import threading

import pytest

from raleigh import (
    Broadcaster,
    ManualScheduler,
    Signal,
    Stream,
    delay,
    distinct_until_changed,
    from_event,
    iterate,
    map,
    merge,
    scan,
    throttle,
    with_latest_from,
)


def collect(node):
    received = []
    node.subscribe(lambda v: received.append(v))
    return received


class TestScan:
    def test_running_sum(self):
        stream = Stream()
        received = collect(scan(stream, lambda a, b: a + b, 0))
        for v in (1, 2, 3):
            stream.emit_value(v)
        assert received == [1, 3, 6]

    def test_method_form_with_seed(self):
        stream = Stream()
        received = collect(stream.scan(lambda acc, v: acc + [v], []))
        stream.emit_value("a")
        stream.emit_value("b")
        assert received == [["a"], ["a", "b"]]


class TestDistinctUntilChanged:
    def test_drops_consecutive_duplicates(self):
        stream = Stream()
        received = collect(distinct_until_changed(stream))
        for v in (1, 1, 2, 2, 3, 1):
            stream.emit_value(v)
        assert received == [1, 2, 3, 1]

    def test_custom_compare(self):
        stream = Stream()
        received = collect(stream.distinct_until_changed(lambda a, b: abs(a - b) < 5))
        for v in (10, 12, 20, 21, 9):
            stream.emit_value(v)
        assert received == [10, 20, 9]

    def test_none_is_a_real_value(self):
        stream = Stream()
        received = collect(stream.distinct_until_changed())
        for v in (None, None, 1, None):
            stream.emit_value(v)
        assert received == [None, 1, None]


class TestThrottle:
    def test_leading_edge(self):
        clock = ManualScheduler()
        stream = Stream()
        received = collect(throttle(stream, 10, scheduler=clock))

        stream.emit_value(1)  # t=0 passes
        clock.advance(5)
        stream.emit_value(2)  # t=5 dropped
        clock.advance(6)
        stream.emit_value(3)  # t=11 passes, window now anchored at 11
        clock.advance(5)
        stream.emit_value(4)  # t=16 dropped
        clock.advance(5)
        stream.emit_value(5)  # t=21 passes
        assert received == [1, 3, 5]

    def test_no_timers_left_behind(self):
        clock = ManualScheduler()
        stream = Stream()
        stream.throttle(10, scheduler=clock)
        stream.emit_value(1)
        assert clock.pending == 0

    def test_negative_duration_rejected(self):
        with pytest.raises(ValueError):
            Stream().throttle(-1)


class TestDelay:
    def test_each_value_after_latency(self):
        clock = ManualScheduler()
        stream = Stream()
        received = collect(delay(stream, 10, scheduler=clock))

        stream.emit_value("a")
        clock.advance(3)
        stream.emit_value("b")
        assert received == []
        clock.advance(7)
        assert received == ["a"]
        clock.advance(3)
        assert received == ["a", "b"]

    def test_order_kept_when_timers_fire_out_of_order(self):
        class ReversingScheduler:
            def __init__(self):
                self.callbacks = []

            def now(self):
                return 0.0

            def schedule(self, callback, delay):
                self.callbacks.append(callback)
                return callback

            def cancel(self, handle):
                pass

            def fire_all_reversed(self):
                for cb in reversed(self.callbacks):
                    cb()

        clock = ReversingScheduler()
        stream = Stream()
        received = collect(stream.delay(1, scheduler=clock))
        for v in (1, 2, 3):
            stream.emit_value(v)
        clock.fire_all_reversed()
        assert received == [1, 2, 3]

    def test_subscriber_can_wait_on_another_emitting_thread(self):
        clock = ManualScheduler()
        stream = Stream()
        delayed = stream.delay(1, scheduler=clock)
        finished = []

        def on_value(v):
            if v == "first":
                t = threading.Thread(target=lambda: stream.emit_value("second"))
                t.start()
                t.join(timeout=1)
                finished.append(not t.is_alive())

        delayed.subscribe(on_value)
        stream.emit_value("first")
        clock.advance(1)
        assert finished == [True]
        assert clock.pending == 1


class TestDebounce:
    def test_only_last_of_burst(self):
        clock = ManualScheduler()
        stream = Stream()
        received = collect(stream.debounce(10, scheduler=clock))
        for v in (1, 2, 3):
            stream.emit_value(v)
            clock.advance(2)
        clock.advance(10)
        assert received == [3]
        assert clock.pending == 0

    def test_quiet_gap_lets_each_through(self):
        clock = ManualScheduler()
        stream = Stream()
        received = collect(stream.debounce(10, scheduler=clock))
        stream.emit_value("a")
        clock.advance(11)
        stream.emit_value("b")
        clock.advance(11)
        assert received == ["a", "b"]


class TestWithLatestFrom:
    def test_pairs_with_latest_other(self):
        source, other = Stream(), Stream()
        received = collect(with_latest_from(source, other))

        source.emit_value(1)  # dropped, other silent
        other.emit_value("x")
        source.emit_value(2)
        other.emit_value("y")
        other.emit_value("z")
        source.emit_value(3)
        assert received == [[2, "x"], [3, "z"]]

    def test_signal_other_counts_immediately(self):
        source = Stream()
        received = collect(source.with_latest_from(Signal("ready")))
        source.emit_value(1)
        assert received == [[1, "ready"]]

    def test_none_from_other_counts_as_a_value(self):
        source, other = Stream(), Stream()
        received = collect(source.with_latest_from(other))
        other.emit_value(None)
        source.emit_value(1)
        assert received == [[1, None]]

    def test_rejects_non_stream_other(self):
        with pytest.raises(TypeError, match="with_latest_from"):
            with_latest_from(Stream(), 42)


class TestMerge:
    def test_interleaves_in_emission_order(self):
        a, b = Stream(), Stream()
        received = collect(merge(a, b))
        a.emit_value("a1")
        b.emit_value("b1")
        a.emit_value("a2")
        b.emit_value("b2")
        assert received == ["a1", "b1", "a2", "b2"]

    def test_same_source_twice(self):
        first, a = Stream(), Stream()
        merged = merge(first, a, a)
        received = collect(merged)
        a.emit_value(1)
        assert received == [1, 1]
        assert a.subscriber_count == 2
        merged.terminate()
        assert a.subscriber_count == 0
        assert not a.terminated

    def test_no_dedup(self):
        a, b = Stream(), Stream()
        received = collect(a.merge(b))
        a.emit_value(1)
        b.emit_value(1)
        assert received == [1, 1]

    def test_records_first_source(self):
        a, b = Stream(), Stream()
        merged = merge(a, b)
        assert merged.source is a

    def test_requires_sources(self):
        with pytest.raises(ValueError):
            merge()

    def test_rejects_non_stream(self):
        with pytest.raises(TypeError, match="merge"):
            merge(Stream(), "nope")


class TestIterate:
    def test_flattens_sequences(self):
        stream = Stream()
        received = collect(iterate(stream))
        stream.emit_value([1, 2])
        stream.emit_value(())
        stream.emit_value([3])
        assert received == [1, 2, 3]

    def test_signal_source(self):
        s = Signal(None)
        received = collect(Stream().merge(s).iterate())
        s.value = ["x", "y"]
        assert received == ["x", "y"]


class TestFromEvent:
    def test_broadcaster_target(self):
        target = Broadcaster()
        stream = from_event(target, "click")
        received = collect(stream)
        target.emit("click", (1, 2))
        target.emit("other", "ignored")
        assert received == [(1, 2)]
        assert stream.source is None

    def test_listener_style_target(self):
        class Emitter:
            def __init__(self):
                self.listeners = {}

            def add_listener(self, event, fn):
                self.listeners.setdefault(event, []).append(fn)

            def remove_listener(self, event, fn):
                self.listeners[event].remove(fn)

            def fire(self, event, value):
                for fn in list(self.listeners.get(event, [])):
                    fn(value)

        target = Emitter()
        stream = from_event(target, "data")
        received = collect(stream)
        target.fire("data", 1)
        stream.terminate()
        target.fire("data", 2)
        assert received == [1]
        assert target.listeners["data"] == []

    def test_event_target_style(self):
        class Target:
            def __init__(self):
                self.handlers = []

            def add_event_listener(self, event, fn):
                self.handlers.append((event, fn))

            def remove_event_listener(self, event, fn):
                self.handlers.remove((event, fn))

        target = Target()
        stream = from_event(target, "input")
        target.handlers[0][1]("typed")
        stream.terminate()
        assert target.handlers == []

    def test_terminate_unregisters(self):
        target = Broadcaster()
        stream = from_event(target, "click")
        stream.terminate()
        assert target.subscriber_count("click") == 0

    def test_stream_named_event(self):
        stream = Stream()
        pings = stream.from_event("ping")
        received = collect(pings)
        stream.emit("ping", 1)
        stream.emit_value(2)
        assert received == [1]
        assert pings.source is None

    def test_terminate_leaves_target_running(self):
        stream = Stream()
        received = collect(stream)
        pings = stream.from_event("ping")
        stream.on("ping", lambda v: None)
        pings.terminate()
        assert not stream.terminated
        assert pings.path == [pings]
        stream.emit_value(1)
        assert received == [1]
        assert stream._events.subscriber_count("ping") == 1

    def test_unknown_target(self):
        with pytest.raises(TypeError, match="from_event"):
            from_event(object(), "click")


class TestMisuse:
    def test_operator_needs_subscribable(self):
        with pytest.raises(TypeError, match="map"):
            map([1, 2, 3], lambda v: v)

    def test_foreign_subscribable_source(self):
        class Ticker:
            def __init__(self):
                self.subs = []

            def subscribe(self, fn):
                self.subs.append(fn)
                return lambda: self.subs.remove(fn)

        ticker = Ticker()
        doubled = map(ticker, lambda v: v * 2)
        received = collect(doubled)
        ticker.subs[0](4)
        assert received == [8]
        assert doubled.source is None
        doubled.terminate()
        assert ticker.subs == []
