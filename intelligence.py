"""
Covert operations against rival nations.
"""

from typing import Dict
import logging

from numpy.random import Generator

from catalog import get_mission
from combat import CombatResolver
from config import GameConfig
from diplomacy import adjust_relation, declare_war
from economy import bonus_percent
from state import GameState, Result, AINation, add_log

logger = logging.getLogger(__name__)


class EspionageService:
    """
    Runs espionage missions.
    Success odds drop against strong targets and rise with espionage research;
    a detected mission sours relations and may provoke war.
    """

    def __init__(self, config: GameConfig, rng: Generator, combat: CombatResolver):
        self.config = config
        self.rng = rng
        self.combat = combat
        self._handlers = {
            "scout": self._scout,
            "sabotage": self._sabotage,
            "steal_technology": self._steal_technology,
            "incite_unrest": self._incite_unrest,
        }

    def success_chance(self, state: GameState, base_success: float, nation: AINation) -> float:
        prob = base_success + bonus_percent(state, "espionageBonus") / 100
        # Large armies keep better watch
        prob -= min(0.3, nation.military_power / 2000)
        return max(0.05, min(0.95, prob))

    def execute_espionage(self, state: GameState, mission_id: str, target_id: str) -> Result:
        mission = get_mission(mission_id)
        if mission is None:
            return Result.fail(f"Unknown mission: {mission_id}")
        nation = state.get_nation(target_id)
        if nation is None:
            return Result.fail(f"Unknown nation: {target_id}")
        if nation.is_defeated:
            return Result.fail(f"{nation.name} no longer exists")
        if state.resources.gold < mission.gold_cost:
            return Result.fail(f"{mission.name} needs {mission.gold_cost} gold")

        state.resources.gold -= mission.gold_cost
        succeeded = self.rng.random() < self.success_chance(state, mission.base_success, nation)
        if succeeded:
            message = self._handlers[mission.id](state, nation)
        else:
            message = f"{mission.name} against {nation.name} failed"

        detection = mission.detection_chance * (1 - bonus_percent(state, "espionageBonus") / 100)
        if self.rng.random() < detection:
            message += self._detected(state, nation)

        add_log(state, message, "diplomacy", capacity=self.config.event_log_capacity)
        logger.info("Espionage %s vs %s: success=%s", mission.id, nation.name, succeeded)
        return Result(succeeded, message)

    def _detected(self, state: GameState, nation: AINation) -> str:
        adjust_relation(nation, -20)
        state.reputation = max(-100, state.reputation - 10)
        if (not nation.is_at_war and state.current_battle is None
                and nation.relation_with_player <= self.config.ai_hostile_relation
                and self.rng.random() < 0.5):
            declare_war(state, nation, self.config)
            self.combat.start_battle(state, nation.id, is_defense=True)
            return f". Our agents were caught and {nation.name} declared war!"
        return f". Our agents were caught; {nation.name} is furious"

    # --- mission effects ---------------------------------------------------

    def _scout(self, state: GameState, nation: AINation) -> str:
        report: Dict[str, int] = {
            "troops": self.combat.enemy_troops(nation),
            "power": self.combat.enemy_combat_power(nation),
            "population": int(nation.population),
            "wealth": int(nation.economic_power),
        }
        return (f"Scouts report on {nation.name}: {report['troops']} troops "
                f"(power {report['power']}), population {report['population']}, "
                f"wealth {report['wealth']}")

    def _sabotage(self, state: GameState, nation: AINation) -> str:
        nation.military_power *= 0.9
        nation.economic_power *= 0.9
        return f"Saboteurs struck the armouries of {nation.name}"

    def _steal_technology(self, state: GameState, nation: AINation) -> str:
        if state.research_queue:
            order = state.research_queue[0]
            order.remaining_time /= 2
            return f"Stolen plans from {nation.name} sped up research into {order.tech_id}"
        gold = int(nation.economic_power * 0.1)
        state.resources.gold += gold
        return f"Stolen secrets from {nation.name} were sold for {gold} gold"

    def _incite_unrest(self, state: GameState, nation: AINation) -> str:
        nation.population *= 0.95
        nation.military_power *= 0.95
        return f"Riots broke out in {nation.name}"
