"""
Turns elapsed real time into simulated time.

The scheduler only moves the day counter and reports which boundaries were
crossed; the engine decides what runs on each boundary.
"""

from dataclasses import dataclass
import math
import time

from config import GameConfig
from state import GameState


class MonotonicClock:
    """Wall clock backed by time.monotonic()."""

    def now(self) -> float:
        return time.monotonic()


class ManualClock:
    """Clock that only moves when told to; used by tests and headless runs."""

    def __init__(self, start: float = 0.0):
        self._now = start

    def now(self) -> float:
        return self._now

    def advance(self, seconds: float) -> None:
        self._now += seconds


@dataclass
class TickReport:
    elapsed: float = 0.0  # real seconds actually simulated (after clamping)
    sim_seconds: float = 0.0  # elapsed * game speed; drives queues and battles
    day_crossed: bool = False
    month_crossed: bool = False


class Scheduler:
    def __init__(self, config: GameConfig):
        self.config = config

    def advance(self, state: GameState, elapsed_real_seconds: float) -> TickReport:
        """
        Move the day counter. Nothing advances while paused, and elapsed time
        is clamped so one call crosses each boundary at most once.
        """
        if state.is_paused or state.is_event_paused:
            return TickReport()
        elapsed = max(0.0, min(float(elapsed_real_seconds), self.config.max_elapsed_seconds))
        if elapsed == 0:
            return TickReport()

        before = state.day
        state.day = before + elapsed * state.game_speed * self.config.day_conversion_factor
        dpm = self.config.days_per_month
        return TickReport(
            elapsed=elapsed,
            sim_seconds=elapsed * state.game_speed,
            day_crossed=math.floor(state.day) > math.floor(before),
            month_crossed=math.floor(state.day / dpm) > math.floor(before / dpm),
        )
