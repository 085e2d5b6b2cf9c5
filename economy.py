"""
Economic model: production, consumption, treasury and satisfaction.

The calculation functions are pure functions of the game state and config so
the presentation layer can call them for previews. EconomyModel applies them
to the state once per simulated day.
"""

from typing import Dict, List
import logging
import math

from config import GameConfig, TREATY_BONUSES
from state import GameState, add_log, remove_people

logger = logging.getLogger(__name__)


def get_coefficient(value: float, coefficients: Dict[int, float]) -> float:
    """Look up a step coefficient from a descending-threshold table."""
    thresholds = sorted(coefficients.keys(), reverse=True)
    for threshold in thresholds:
        if value >= threshold:
            return coefficients[threshold]
    # Below every threshold: the lowest bracket applies
    return coefficients[thresholds[-1]]


def bonus_percent(state: GameState, effect_type: str) -> float:
    """
    Aggregate percentage bonus of one effect type across buildings,
    researched technologies, specialists, heroes, active effects and treaties.
    """
    total = 0.0
    for building in state.buildings:
        if building.effect.type == effect_type:
            total += building.effect.value
    for tech in state.technologies:
        if tech.is_researched and tech.effect.type == effect_type:
            total += tech.effect.value
    for specialist in state.specialists:
        if specialist.template.bonus.type == effect_type:
            total += specialist.template.bonus.value
    for hero in state.heroes:
        if hero.template.ability.type == effect_type:
            total += hero.template.ability.value
    for effect in state.active_effects:
        if effect.type == effect_type:
            total += effect.value
    for nation in state.ai_nations:
        if nation.is_defeated:
            continue
        for treaty in nation.treaties:
            total += TREATY_BONUSES.get(treaty.type, {}).get(effect_type, 0)
    return total


def _produce(workers: int, rate: float, bonus: float) -> int:
    return int(math.floor(workers * rate * (1 + bonus / 100)))


# ---------------------------------------------------------------------------
# Production


def food_production(state: GameState, config: GameConfig) -> int:
    bonus = bonus_percent(state, "foodProduction") + bonus_percent(state, "productionBonus")
    return _produce(state.population.farmers, config.food_per_farmer, bonus)


def ore_production(state: GameState, config: GameConfig) -> int:
    bonus = bonus_percent(state, "oreProduction") + bonus_percent(state, "productionBonus")
    return _produce(state.population.miners, config.ore_per_miner, bonus)


def weapon_production(state: GameState, config: GameConfig) -> int:
    bonus = bonus_percent(state, "weaponProduction") + bonus_percent(state, "productionBonus")
    return _produce(state.population.craftsmen, config.weapons_per_craftsman, bonus)


def armor_production(state: GameState, config: GameConfig) -> int:
    bonus = bonus_percent(state, "armorProduction") + bonus_percent(state, "productionBonus")
    return _produce(state.population.craftsmen, config.armor_per_craftsman, bonus)


def mana_production(state: GameState, config: GameConfig) -> int:
    """Mana has no workers: flat output from towers and heroes, scaled by mana bonuses."""
    base = sum(b.effect.value for b in state.buildings if b.effect.type == "manaGeneration")
    base += sum(h.template.ability.value for h in state.heroes
                if h.template.ability.type == "manaGeneration")
    return int(math.floor(base * (1 + bonus_percent(state, "manaBonus") / 100)))


# ---------------------------------------------------------------------------
# Consumption and treasury


def food_consumption(state: GameState, config: GameConfig) -> int:
    soldiers = state.military.total_soldiers
    civilians = state.population.total - soldiers
    return int(math.ceil(civilians * config.food_per_civilian + soldiers * config.food_per_soldier))


def mana_consumption(state: GameState, config: GameConfig) -> int:
    heroes = sum(h.template.mana_cost for h in state.heroes)
    return heroes + state.military.mage_warriors * config.mage_warrior_mana_cost


def tax_income(state: GameState, config: GameConfig) -> int:
    """Monthly tax revenue."""
    base = state.population.total * config.tax_per_capita
    satisfaction_coef = state.satisfaction / 100
    bonus = bonus_percent(state, "taxBonus")
    return int(math.floor(base * satisfaction_coef * state.tax_rate * (1 + bonus / 100)))


def maintenance(state: GameState, config: GameConfig) -> float:
    """Monthly upkeep: soldiers plus specialist and hero salaries."""
    soldier_cost = state.military.total_soldiers * config.soldier_upkeep
    salaries = sum(s.template.salary for s in state.specialists)
    salaries += sum(h.template.salary for h in state.heroes)
    return soldier_cost + salaries


def calculate_equipment_rate(soldiers: int, weapons: float, armor: float) -> int:
    if soldiers <= 0:
        return 100
    equipped = min(soldiers, weapons, armor)
    return int(math.floor(max(0, equipped) / soldiers * 100))


def calculate_satisfaction(state: GameState, config: GameConfig) -> int:
    """Score 0-100 from food reserves, tax burden and unemployment."""
    score = config.base_satisfaction

    # Food reserve in days
    food_days = state.resources.food / max(1, food_consumption(state, config))
    if food_days >= 14:
        score += 25
    elif food_days >= 7:
        score += 15
    elif food_days >= 3:
        score += 5
    elif food_days < 1:
        score -= 30

    # Tax burden
    if state.tax_rate > 0.20:
        score -= 10
    if state.tax_rate > 0.25:
        score -= 10
    if state.tax_rate < 0.10:
        score += 5

    # Unemployment
    unemployment = state.population.unemployed / max(1, state.population.total)
    if unemployment > 0.30:
        score -= 15
    elif unemployment > 0.20:
        score -= 5

    return int(max(0, min(100, score)))


def monthly_summary(state: GameState, config: GameConfig) -> Dict[str, float]:
    """Income/expense overview for presenters."""
    tax = tax_income(state, config)
    upkeep = maintenance(state, config)
    return {
        "tax": tax,
        "maintenance": upkeep,
        "net": tax - upkeep,
        "food_production": food_production(state, config) * config.days_per_month,
        "food_consumption": food_consumption(state, config) * config.days_per_month,
    }


class EconomyModel:
    """Applies the daily economy to the state."""

    def __init__(self, config: GameConfig):
        self.config = config

    def apply_daily(self, state: GameState) -> List[str]:
        """Run one day of production, consumption, treasury and starvation."""
        cfg = self.config
        events = []
        res = state.resources

        res.food += food_production(state, cfg) - food_consumption(state, cfg)
        res.ore += ore_production(state, cfg)
        res.weapons += weapon_production(state, cfg)
        res.armor += armor_production(state, cfg)
        res.mana = max(0, res.mana + mana_production(state, cfg) - mana_consumption(state, cfg))

        if res.food < 0:
            res.food = 0
            loss = int(math.ceil(state.population.total * cfg.starvation_rate))
            lost = remove_people(state, loss)
            if lost:
                msg = f"Famine! {lost} people starved to death"
                add_log(state, msg, "domestic", "critical", cfg.event_log_capacity)
                logger.warning(msg)
                events.append(msg)

        # Treasury is settled daily in monthly fractions
        res.gold += (tax_income(state, cfg) - maintenance(state, cfg)) / cfg.days_per_month

        state.military.equipment_rate = calculate_equipment_rate(
            state.military.total_soldiers, res.weapons, res.armor)
        self._drift_morale(state)
        return events

    def _drift_morale(self, state: GameState) -> None:
        """Army morale recovers slowly toward its peacetime level."""
        if state.current_battle is not None and not state.current_battle.is_over:
            return
        target = min(100, self.config.initial_morale + bonus_percent(state, "moraleBonus"))
        mil = state.military
        if mil.morale < target:
            mil.morale += 1
        elif mil.morale > target:
            mil.morale -= 1
