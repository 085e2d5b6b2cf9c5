"""
Population dynamics: monthly growth and decline, and job assignment.
"""

from typing import List
import logging
import math

from config import GameConfig
from economy import calculate_satisfaction
from state import GameState, Result, add_log, remove_people, remove_soldiers_from_units

logger = logging.getLogger(__name__)

ASSIGNABLE_JOBS = ("farmers", "miners", "craftsmen", "soldiers")

# Emigration never takes soldiers
DECLINE_ORDER = ["unemployed", "farmers", "miners", "craftsmen"]


class PopulationDynamics:
    """Monthly population changes driven by satisfaction."""

    def __init__(self, config: GameConfig):
        self.config = config

    def apply_monthly(self, state: GameState) -> List[str]:
        """Recompute satisfaction, then grow or shrink the population."""
        state.satisfaction = calculate_satisfaction(state, self.config)
        return self.apply_satisfaction_change(state)

    def apply_satisfaction_change(self, state: GameState) -> List[str]:
        cfg = self.config
        events = []
        pop = state.population

        if state.satisfaction >= cfg.satisfaction_growth_threshold:
            growth = int(math.ceil(pop.total * cfg.population_growth_rate))
            if growth > 0:
                add_people(state, growth)
                msg = f"{growth} immigrants arrived, drawn by a content realm"
                add_log(state, msg, "domestic", capacity=cfg.event_log_capacity)
                events.append(msg)

        elif state.satisfaction <= cfg.satisfaction_decline_threshold:
            decline = int(math.ceil(pop.total * cfg.population_decline_rate))
            left = remove_people(state, decline, DECLINE_ORDER)
            if left > 0:
                msg = f"{left} people left the realm in discontent"
                add_log(state, msg, "important", "high", cfg.event_log_capacity)
                logger.info(msg)
                events.append(msg)

        return events


def add_people(state: GameState, count: int) -> None:
    """Newcomers arrive without a job."""
    state.population.unemployed += count
    state.population.total += count


def assign_population(state: GameState, job: str, new_count: int) -> Result:
    """
    Move workers between a job and the unemployed pool.
    The total never changes; the move is rejected if unemployed would go negative.
    """
    if job not in ASSIGNABLE_JOBS:
        return Result.fail(f"Unknown job: {job}")
    if new_count < 0:
        return Result.fail("Worker count cannot be negative")
    if job == "soldiers" and state.current_battle is not None:
        return Result.fail("Cannot reorganise soldiers during a battle")

    pop = state.population
    new_count = int(new_count)
    delta = new_count - getattr(pop, job)
    if delta > pop.unemployed:
        return Result.fail(f"Not enough unemployed people ({pop.unemployed} available)")

    setattr(pop, job, new_count)
    pop.unemployed -= delta

    if job == "soldiers":
        mil = state.military
        if delta > 0:
            mil.infantry += delta
        elif delta < 0:
            remove_soldiers_from_units(state, -delta)
        mil.total_soldiers = pop.soldiers

    return Result.ok(f"{job.capitalize()} set to {new_count}")
