from __future__ import annotations

import pytest

from game.scheduler import Scheduler


def test_call_later_fires_once_at_due_time():
    scheduler = Scheduler()
    fired_at = []
    handle = scheduler.call_later(2.0, lambda: fired_at.append(scheduler.now))

    assert scheduler.advance(1.9) == 0
    assert handle.active
    assert scheduler.advance(0.2) == 1
    assert fired_at == [2.0]
    assert not handle.active
    assert scheduler.now == pytest.approx(2.1)

    scheduler.advance(10.0)
    assert fired_at == [2.0]


def test_call_every_repeats_until_cancelled():
    scheduler = Scheduler()
    fired_at = []
    handle = scheduler.call_every(1.0, lambda: fired_at.append(scheduler.now))

    assert scheduler.advance(3.5) == 3
    assert fired_at == [1.0, 2.0, 3.0]
    assert scheduler.now == 3.5

    handle.cancel()
    scheduler.advance(5.0)
    assert fired_at == [1.0, 2.0, 3.0]
    assert scheduler.pending() == 0


def test_interval_can_change_inside_callback():
    scheduler = Scheduler()
    fired_at = []
    handle = None

    def on_fire():
        fired_at.append(scheduler.now)
        handle.interval = 5.0

    handle = scheduler.call_every(1.0, on_fire)
    scheduler.advance(12.0)

    assert fired_at == [1.0, 6.0, 11.0]


def test_callbacks_fire_in_time_then_insertion_order():
    scheduler = Scheduler()
    calls = []
    scheduler.call_later(2.0, lambda: calls.append("b"))
    scheduler.call_later(1.0, lambda: calls.append("a"))
    scheduler.call_later(2.0, lambda: calls.append("c"))

    scheduler.advance(3.0)

    assert calls == ["a", "b", "c"]


def test_callback_scheduled_inside_advance_fires_in_same_advance():
    scheduler = Scheduler()
    calls = []
    scheduler.call_later(1.0, lambda: scheduler.call_later(1.0, lambda: calls.append(scheduler.now)))

    scheduler.advance(5.0)

    assert calls == [2.0]


def test_zero_delay_fires_on_next_advance():
    scheduler = Scheduler()
    calls = []
    scheduler.call_later(0.0, lambda: calls.append("now"))

    assert scheduler.advance(0.0) == 1
    assert calls == ["now"]


def test_non_positive_interval_rejected():
    scheduler = Scheduler()
    with pytest.raises(ValueError):
        scheduler.call_every(0.0, lambda: None)


def test_cancel_all():
    scheduler = Scheduler()
    calls = []
    first = scheduler.call_every(1.0, lambda: calls.append(1))
    scheduler.call_later(1.0, lambda: calls.append(2))

    scheduler.cancel_all()
    scheduler.advance(5.0)

    assert calls == []
    assert not first.active
