"""
Realm simulation engine.

GameEngine owns the one GameState and every system that mutates it. Callers
drive it with tick() (or step() against a clock), issue commands that return
a Result, and observe it through subscribe(); all of them only ever see
copies of the state.
"""

from typing import Any, Callable, Dict, List, Optional
import copy
import logging

import numpy as np
from numpy.random import Generator

from config import GameConfig
from combat import CombatResolver
from court import Court
from diplomacy import RivalPolicyEngine
from economy import EconomyModel
from events import AutoPresenter, EventDispatcher
from intelligence import EspionageService
from magic import MagicSystem
from persistence import serialize, deserialize
from population import PopulationDynamics, assign_population
from queues import ProjectQueues
from scheduler import MonotonicClock, Scheduler
from state import GameState, Result, add_log, create_initial_state
from victory import VictoryEvaluator, purchase_upgrade

logger = logging.getLogger(__name__)

Subscriber = Callable[[GameState], None]


class GameEngine:
    """Single-threaded driver of the realm simulation."""

    def __init__(self, config: Optional[GameConfig] = None, presenter=None,
                 rng: Optional[Generator] = None, seed: Optional[int] = None,
                 clock=None, state: Optional[GameState] = None):
        self.config = config or GameConfig()
        self.rng = rng if rng is not None else np.random.default_rng(seed)
        self.clock = clock or MonotonicClock()
        self.presenter = presenter or AutoPresenter()

        # Systems
        self.scheduler = Scheduler(self.config)
        self.economy = EconomyModel(self.config)
        self.population = PopulationDynamics(self.config)
        self.queues = ProjectQueues(self.config)
        self.combat = CombatResolver(self.config, self.rng)
        self.events = EventDispatcher(self.config, self.rng, self.presenter, self.combat.start_battle)
        self.rivals = RivalPolicyEngine(self.config, self.rng, self.combat, self.events)
        self.espionage = EspionageService(self.config, self.rng, self.combat)
        self.magic = MagicSystem(self.config)
        self.court = Court(self.config)
        self.victory = VictoryEvaluator(self.config)
        self.events.on_resolved = self._on_event_resolved

        self._state = state if state is not None else create_initial_state(self.config, self.rng)
        self._subscribers: List[Subscriber] = []
        self._last_now: Optional[float] = None
        self._busy = False
        self.history: List[Dict[str, Any]] = []

    # --- observation -----------------------------------------------------

    @property
    def state(self) -> GameState:
        """A copy of the current state; changing it has no effect on the game."""
        return copy.deepcopy(self._state)

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register a listener called with a state copy after every change."""
        self._subscribers.append(callback)

        def unsubscribe():
            if callback in self._subscribers:
                self._subscribers.remove(callback)
        return unsubscribe

    def _notify(self) -> None:
        if not self._subscribers:
            return
        snapshot = self.state
        for callback in list(self._subscribers):
            callback(snapshot)

    def _on_event_resolved(self) -> None:
        # Choices made inside a tick are published with the tick itself
        if not self._busy:
            self._notify()

    # --- time ------------------------------------------------------------

    def step(self) -> List[str]:
        """Advance by the real time passed on the clock since the last step."""
        now = self.clock.now()
        elapsed = 0.0 if self._last_now is None else now - self._last_now
        self._last_now = now
        return self.tick(elapsed)

    def tick(self, elapsed_real_seconds: float) -> List[str]:
        """Advance the simulation. Returns the notable things that happened."""
        state = self._state
        if state.is_finished:
            return []
        report = self.scheduler.advance(state, elapsed_real_seconds)
        if report.elapsed == 0:
            return []

        self._busy = True
        try:
            events = self.queues.advance(state, report.sim_seconds)
            events += self.combat.advance(state, report.sim_seconds)
            if report.day_crossed:
                events += self._run_day(state, report.month_crossed)
        finally:
            self._busy = False
        self._notify()
        return events

    def _run_day(self, state: GameState, month_crossed: bool) -> List[str]:
        events = self.economy.apply_daily(state)
        if month_crossed:
            events += self.population.apply_monthly(state)
            events += self.rivals.apply_monthly(state)
        events += self.rivals.apply_daily(state)
        events += self.events.apply_daily(state)
        events += self.magic.expire_effects(state)
        self._record(state)

        outcome = self.victory.evaluate(state)
        if outcome is not None:
            state.is_paused = True
            events.append(f"{outcome[0]}: {outcome[1]}")
        return events

    def _record(self, state: GameState) -> None:
        res = state.resources
        self.history.append({
            "day": int(state.day),
            "gold": res.gold,
            "food": res.food,
            "ore": res.ore,
            "mana": res.mana,
            "wealth": res.total_wealth(),
            "population": state.population.total,
            "soldiers": state.military.total_soldiers,
            "morale": state.military.morale,
            "satisfaction": state.satisfaction,
            "buildings": len(state.buildings),
            "technologies": len(state.researched_ids()),
            "nations_alive": len(state.surviving_nations()),
            "at_war": sum(1 for n in state.surviving_nations() if n.is_at_war),
            "in_battle": state.current_battle is not None and not state.current_battle.is_over,
        })

    # --- commands --------------------------------------------------------

    def _command(self, action: Callable[..., Result], *args) -> Result:
        if self._state.is_finished:
            return Result.fail("The reign has ended")
        result = action(self._state, *args)
        if result.success:
            self._notify()
        return result

    def start_construction(self, building_id: str) -> Result:
        return self._command(self.queues.start_construction, building_id)

    def start_research(self, tech_id: str) -> Result:
        return self._command(self.queues.start_research, tech_id)

    def cancel_construction(self, index: int) -> Result:
        return self._command(self.queues.cancel_construction, index)

    def cancel_research(self, index: int) -> Result:
        return self._command(self.queues.cancel_research, index)

    def assign_population(self, job: str, new_count: int) -> Result:
        return self._command(assign_population, job, new_count)

    def set_tax_rate(self, rate: float) -> Result:
        return self._command(self._set_tax_rate, rate)

    def _set_tax_rate(self, state: GameState, rate: float) -> Result:
        cfg = self.config
        if not cfg.min_tax_rate <= rate <= cfg.max_tax_rate:
            return Result.fail(f"Tax rate must be between {cfg.min_tax_rate:.0%} and {cfg.max_tax_rate:.0%}")
        state.tax_rate = rate
        return Result.ok(f"Tax rate set to {rate:.0%}")

    def attack_nation(self, nation_id: str) -> Result:
        return self._command(self.combat.attack_nation, nation_id)

    def retreat_from_battle(self) -> Result:
        return self._command(self.combat.retreat)

    def close_battle(self) -> Result:
        return self._command(self.combat.close_battle)

    def organize_units(self, infantry: int, archers: int, cavalry: int,
                       mage_warriors: int = 0) -> Result:
        return self._command(self.combat.organize_units, infantry, archers, cavalry, mage_warriors)

    def propose_trade_agreement(self, nation_id: str) -> Result:
        return self._command(self.rivals.propose_trade_agreement, nation_id)

    def sign_treaty(self, nation_id: str, treaty_type: str) -> Result:
        return self._command(self.rivals.sign_treaty, nation_id, treaty_type)

    def execute_espionage(self, mission_id: str, target_id: str) -> Result:
        result = self._command(self.espionage.execute_espionage, mission_id, target_id)
        # A failed mission still spends its gold
        if not result.success and not self._state.is_finished:
            self._notify()
        return result

    def cast_magic(self, spell_id: str, target_id: Optional[str] = None) -> Result:
        return self._command(self.magic.cast_magic, spell_id, target_id)

    def hire_specialist(self, template_id: str) -> Result:
        return self._command(self.court.hire_specialist, template_id)

    def dismiss_specialist(self, specialist_id: str) -> Result:
        return self._command(self.court.dismiss_specialist, specialist_id)

    def hire_hero(self, template_id: str) -> Result:
        return self._command(self.court.hire_hero, template_id)

    def dismiss_hero(self, hero_id: str) -> Result:
        return self._command(self.court.dismiss_hero, hero_id)

    def toggle_pause(self) -> Result:
        if self._state.is_finished:
            return Result.fail("The reign has ended")
        self._state.is_paused = not self._state.is_paused
        self._notify()
        return Result.ok("Paused" if self._state.is_paused else "Resumed")

    def set_speed(self, speed: int) -> Result:
        if speed not in self.config.game_speeds:
            return Result.fail(f"Speed must be one of {list(self.config.game_speeds)}")
        self._state.game_speed = speed
        self._notify()
        return Result.ok(f"Speed set to {speed}x")

    # --- New Game+ -------------------------------------------------------

    def purchase_upgrade(self, upgrade_id: str) -> Result:
        result = purchase_upgrade(self._state, upgrade_id)
        if result.success:
            self._notify()
        return result

    def new_game(self) -> GameState:
        """Start a fresh reign, keeping prestige and bought upgrades."""
        permanent = copy.deepcopy(self._state.permanent)
        self._state = create_initial_state(self.config, self.rng, permanent=permanent)
        self.history = []
        self._last_now = None
        logger.info("New game started (%d prestige points banked)", permanent.points)
        self._notify()
        return self.state

    # --- persistence -----------------------------------------------------

    def serialize(self) -> Dict[str, Any]:
        return serialize(self._state)

    def deserialize(self, snapshot: Dict[str, Any]) -> GameState:
        """Replace the current game with a saved one."""
        self._state = deserialize(snapshot, self.config, self.rng)
        self.history = []
        self._last_now = None
        add_log(self._state, "The chronicle was restored", capacity=self.config.event_log_capacity)
        self.events.resume(self._state)
        self._notify()
        return self.state
