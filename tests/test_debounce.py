from __future__ import annotations

import logging

from highlight_colors.ui.debounce import DebounceScheduler


def test_burst_runs_once_with_last_arguments(fake_timers):
    scheduler = DebounceScheduler()
    calls = []

    for value in range(5):
        scheduler.schedule("doc", 50, calls.append, value)

    assert len(fake_timers) == 1
    timer = fake_timers[0]
    assert timer.single_shot is True
    assert timer.started == 5
    assert timer.interval == 50
    assert calls == []

    timer.fire()
    assert calls == [4]
    assert timer.deleted is True
    assert scheduler.is_pending("doc") is False


def test_keys_are_independent(fake_timers):
    scheduler = DebounceScheduler()
    calls = []

    scheduler.schedule("a", 50, calls.append, "a")
    scheduler.schedule("b", 50, calls.append, "b")
    assert len(fake_timers) == 2
    assert sorted(scheduler.pending_keys()) == ["a", "b"]

    fake_timers[1].fire()
    assert calls == ["b"]
    assert scheduler.is_pending("a") is True

    fake_timers[0].fire()
    assert calls == ["b", "a"]


def test_new_burst_after_flush_gets_fresh_timer(fake_timers):
    scheduler = DebounceScheduler()
    calls = []

    scheduler.schedule("doc", 10, calls.append, 1)
    fake_timers[0].fire()
    scheduler.schedule("doc", 10, calls.append, 2)
    assert len(fake_timers) == 2
    fake_timers[1].fire()
    assert calls == [1, 2]


def test_cancel_prevents_execution(fake_timers):
    scheduler = DebounceScheduler()
    calls = []

    scheduler.schedule("doc", 50, calls.append, 1)
    scheduler.cancel("doc")
    fake_timers[0].fire()

    assert calls == []
    assert fake_timers[0].deleted is True
    assert scheduler.pending_keys() == []


def test_cancel_all_and_shutdown(fake_timers):
    scheduler = DebounceScheduler()
    calls = []

    scheduler.schedule("a", 50, calls.append, "a")
    scheduler.schedule("b", 50, calls.append, "b")
    scheduler.shutdown()
    for timer in fake_timers:
        timer.fire()

    assert calls == []
    assert all(timer.deleted for timer in fake_timers)


def test_negative_interval_is_clamped(fake_timers):
    scheduler = DebounceScheduler()
    scheduler.schedule("doc", -20, lambda: None)
    assert fake_timers[0].interval == 0


def test_failing_action_is_logged(fake_timers, caplog):
    scheduler = DebounceScheduler()

    def boom():
        raise RuntimeError("refresh failed")

    scheduler.schedule("doc", 50, boom)
    with caplog.at_level(logging.ERROR):
        fake_timers[0].fire()

    assert "Debounced action" in caplog.text
    assert scheduler.is_pending("doc") is False
