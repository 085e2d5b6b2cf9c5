import pytest
import numpy as np

from config import GameConfig
from scheduler import ManualClock, MonotonicClock, Scheduler
from state import create_initial_state


@pytest.fixture
def config():
    return GameConfig()


@pytest.fixture
def state(config):
    state = create_initial_state(config, np.random.default_rng(0))
    state.is_paused = False
    return state


def test_paused_game_does_not_move(config, state):
    state.is_paused = True
    report = Scheduler(config).advance(state, 1.0)
    assert state.day == 1
    assert report.elapsed == 0
    assert not report.day_crossed


def test_event_pause_freezes_time(config, state):
    state.is_event_paused = True
    Scheduler(config).advance(state, 1.0)
    assert state.day == 1


def test_one_second_at_speed_ten_is_a_day(config, state):
    state.game_speed = 10
    report = Scheduler(config).advance(state, 1.0)
    assert state.day == pytest.approx(2.0)
    assert report.day_crossed
    assert not report.month_crossed
    assert report.sim_seconds == 10


def test_day_boundary(config, state):
    state.game_speed = 5
    scheduler = Scheduler(config)
    assert not scheduler.advance(state, 1.0).day_crossed
    assert scheduler.advance(state, 1.0).day_crossed


def test_elapsed_is_clamped(config, state):
    state.game_speed = 10
    report = Scheduler(config).advance(state, 30.0)
    assert report.elapsed == 1.0
    assert state.day == pytest.approx(2.0)


def test_negative_elapsed_ignored(config, state):
    report = Scheduler(config).advance(state, -3.0)
    assert state.day == 1
    assert report.sim_seconds == 0


def test_month_boundary(config, state):
    state.game_speed = 10
    state.day = 29.5
    report = Scheduler(config).advance(state, 1.0)
    assert report.day_crossed
    assert report.month_crossed


def test_manual_clock():
    clock = ManualClock(start=5.0)
    clock.advance(2.5)
    assert clock.now() == 7.5


def test_monotonic_clock_never_goes_back():
    clock = MonotonicClock()
    first = clock.now()
    assert clock.now() >= first
