import pytest

from pitch_tuner.core.scheduler import FrameScheduler


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now

    def sleep(self, seconds):
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def scheduler(clock):
    return FrameScheduler(clock=clock, sleep=clock.sleep)


def test_runs_in_scheduling_order(scheduler):
    calls = []
    scheduler.schedule_next(lambda: calls.append("a"))
    scheduler.schedule_next(lambda: calls.append("b"))

    assert scheduler.run_pending() == 2
    assert calls == ["a", "b"]
    assert scheduler.pending == 0


def test_rescheduled_callback_waits_for_next_tick(scheduler):
    calls = []

    def tick():
        calls.append(len(calls))
        scheduler.schedule_next(tick)

    scheduler.schedule_next(tick)
    scheduler.run_pending()
    scheduler.run_pending()

    assert calls == [0, 1]
    assert scheduler.pending == 1


def test_call_later_waits_for_delay(scheduler, clock):
    calls = []
    scheduler.call_later(250, lambda: calls.append("late"))

    scheduler.run_pending()
    assert calls == []

    clock.now = 0.25
    scheduler.run_pending()
    assert calls == ["late"]


def test_due_time_orders_before_sequence(scheduler, clock):
    calls = []
    scheduler.call_later(100, lambda: calls.append("timeout"))
    clock.now = 0.2
    scheduler.schedule_next(lambda: calls.append("frame"))

    scheduler.run_pending()

    assert calls == ["timeout", "frame"]


def test_cancel(scheduler):
    calls = []
    handle = scheduler.schedule_next(lambda: calls.append("x"))

    scheduler.cancel(handle)
    scheduler.cancel(handle)
    scheduler.cancel(None)

    assert scheduler.run_pending() == 0
    assert calls == []
    assert not handle.active


def test_cancel_from_earlier_callback_in_same_tick(scheduler):
    calls = []
    second = None

    def first():
        calls.append("first")
        scheduler.cancel(second)

    scheduler.schedule_next(first)
    second = scheduler.schedule_next(lambda: calls.append("second"))

    assert scheduler.run_pending() == 1
    assert calls == ["first"]


def test_run_for_duration(scheduler, clock):
    ticks = []

    def tick():
        ticks.append(clock.now)
        scheduler.schedule_next(tick)

    scheduler.schedule_next(tick)
    scheduler.run(duration=1.0)

    # 60 ticks per second
    assert 59 <= len(ticks) <= 61


def test_run_until(scheduler):
    ticks = []

    def tick():
        ticks.append(1)
        scheduler.schedule_next(tick)

    scheduler.schedule_next(tick)
    scheduler.run(until=lambda: len(ticks) >= 5)

    assert len(ticks) == 5


def test_run_returns_when_nothing_is_pending(scheduler, clock):
    scheduler.call_later(500, lambda: None)

    scheduler.run()

    assert scheduler.pending == 0
    assert clock.now >= 0.5


@pytest.mark.parametrize("refresh_rate", [0, -30])
def test_invalid_refresh_rate(refresh_rate):
    with pytest.raises(ValueError):
        FrameScheduler(refresh_rate=refresh_rate)
