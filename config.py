"""
Configuration and constants for the realm simulation.
Values follow the final balance pass of the game; every magic number used by
the engine should be reachable from here.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Tuple


@dataclass
class GameConfig:
    """Global simulation configuration."""

    # Time
    days_per_month: int = 30
    day_conversion_factor: float = 0.1  # simulated days per real second at speed 1
    max_elapsed_seconds: float = 1.0  # clamp for a single tick
    game_speeds: Tuple[int, ...] = (1, 2, 5, 10, 20)

    # Production (per worker, per day)
    food_per_farmer: float = 1.0
    ore_per_miner: float = 0.5
    weapons_per_craftsman: float = 0.3
    armor_per_craftsman: float = 0.2

    # Consumption (per head, per day)
    food_per_civilian: float = 1.0
    food_per_soldier: float = 1.5

    # Treasury (monthly values, applied daily as a fraction)
    tax_per_capita: float = 1.2
    default_tax_rate: float = 0.15
    min_tax_rate: float = 0.0
    max_tax_rate: float = 0.5
    soldier_upkeep: float = 5.0

    # Satisfaction
    base_satisfaction: int = 50
    satisfaction_growth_threshold: int = 70
    satisfaction_decline_threshold: int = 30

    # Population (monthly rates)
    population_growth_rate: float = 0.02
    population_decline_rate: float = 0.01
    starvation_rate: float = 0.05

    # Combat
    battle_tick_interval: float = 10.0  # simulated seconds between rounds
    attacker_damage_rate: float = 0.10
    defender_damage_rate: float = 0.08
    morale_win_bonus: int = 2
    morale_lose_penalty: int = 3
    rout_morale_threshold: int = 30
    rout_chance: float = 0.2
    defeat_threshold_fraction: float = 0.3
    battle_log_capacity: int = 30
    battle_victory_morale: int = 10
    battle_defeat_morale: int = -15
    battle_retreat_morale: int = -5
    mage_warrior_mana_cost: int = 1  # per mage warrior per day
    enemy_equipment_rate: int = 80
    enemy_initial_morale: int = 70
    defeat_gold_penalty: float = 0.1  # fraction of treasury lost on a lost battle

    # Rival nations
    ai_grace_period_days: int = 30
    ai_action_cooldown_days: int = 15
    ai_growth_rate: float = 0.01  # monthly
    ai_relation_decay: float = 0.1  # per day toward zero
    ai_reattack_chance: float = 0.05
    ai_hostile_relation: int = -60
    ai_hostile_war_chance: float = 0.05
    ai_aggression_threshold: int = 70
    ai_strength_ratio: float = 1.5
    ai_unprovoked_war_chance: float = 0.01
    ai_action_chance: float = 1 / 30
    ai_tribute_strength_ratio: float = 2.0
    ai_tribute_refusal_war_chance: float = 0.3
    starting_nations: int = 5

    # Events
    event_chance: float = 0.05  # per day
    event_log_capacity: int = 50

    # Victory / defeat
    economic_victory_wealth: int = 100000
    technological_victory_wealth: int = 50000
    victory_technology: str = "ascension"
    bankruptcy_days_limit: int = 30
    low_satisfaction_days_limit: int = 7

    # Treaties
    treaty_duration_days: int = 180

    # Starting conditions
    initial_gold: int = 500
    initial_food: int = 100
    initial_ore: int = 20
    initial_weapons: int = 5
    initial_armor: int = 5
    initial_population: int = 10
    initial_satisfaction: int = 60
    initial_morale: int = 70
    initial_equipment_rate: int = 50

    # Prestige
    prestige_per_month: int = 1
    prestige_per_conquest: int = 50
    prestige_victory_bonus: int = 200

    def month_of(self, day: float) -> int:
        """Return the month index a fractional day falls in."""
        return int(day // self.days_per_month)


# Descending-threshold lookup tables (value >= threshold -> coefficient)
EQUIPMENT_COEFFICIENTS: Dict[int, float] = {
    100: 1.0,
    80: 0.9,
    60: 0.75,
    40: 0.5,
    20: 0.3,
    0: 0.2,
}

MORALE_COEFFICIENTS: Dict[int, float] = {
    100: 1.15,
    80: 1.0,
    60: 0.85,
    40: 0.65,
    20: 0.4,
}

# Unit multipliers by stance
STANCE_MULTIPLIERS: Dict[str, Dict[str, float]] = {
    "defense": {"infantry": 1.1, "archers": 1.5, "cavalry": 0.8, "mage_warriors": 1.3},
    "offense": {"infantry": 1.0, "archers": 0.9, "cavalry": 1.2, "mage_warriors": 1.3},
}

# Percentage bonuses granted by each active treaty
TREATY_BONUSES: Dict[str, Dict[str, float]] = {
    "trade": {"foodProduction": 5, "oreProduction": 5, "taxBonus": 10},
    "nonAggression": {},
    "alliance": {"defenseBonus": 10},
}

# Relation required before a rival will sign each treaty
TREATY_RELATION_REQUIREMENTS: Dict[str, int] = {
    "trade": 0,
    "nonAggression": 20,
    "alliance": 60,
}

JOBS: List[str] = ["farmers", "miners", "craftsmen", "soldiers", "unemployed"]

# Order in which people are lost to starvation, emigration or war
LOSS_PRIORITY: List[str] = ["unemployed", "farmers", "miners", "craftsmen", "soldiers"]

# Rival nation roster (fixed templates)
NATION_TEMPLATES: List[Dict] = [
    {"name": "Iron Blood Empire", "personality": "aggressive", "population": 800,
     "military_power": 400, "aggressiveness": 85, "expansion_desire": 90},
    {"name": "Holy Guardian Kingdom", "personality": "cautious", "population": 600,
     "military_power": 300, "aggressiveness": 20, "expansion_desire": 30},
    {"name": "Merchant League", "personality": "commercial", "population": 500,
     "military_power": 150, "aggressiveness": 15, "expansion_desire": 40},
    {"name": "Hermit Forest", "personality": "isolationist", "population": 300,
     "military_power": 200, "aggressiveness": 10, "expansion_desire": 5},
    {"name": "Wandering Clans", "personality": "opportunist", "population": 400,
     "military_power": 200, "aggressiveness": 60, "expansion_desire": 70},
    {"name": "Order of Knights", "personality": "honorable", "population": 500,
     "military_power": 350, "aggressiveness": 40, "expansion_desire": 50},
    {"name": "Sacred Flame Theocracy", "personality": "fanatic", "population": 600,
     "military_power": 300, "aggressiveness": 70, "expansion_desire": 60},
    {"name": "Academic City", "personality": "scientific", "population": 400,
     "military_power": 150, "aggressiveness": 25, "expansion_desire": 35},
    {"name": "Barbarian Horde", "personality": "aggressive", "population": 350,
     "military_power": 250, "aggressiveness": 90, "expansion_desire": 80},
    {"name": "Abyssal Folk", "personality": "isolationist", "population": 250,
     "military_power": 180, "aggressiveness": 30, "expansion_desire": 20},
]

# Willingness of each personality to trade (added to acceptance probability)
PERSONALITY_TRADE_AFFINITY: Dict[str, float] = {
    "aggressive": -0.2,
    "cautious": 0.0,
    "commercial": 0.3,
    "isolationist": -0.3,
    "opportunist": 0.1,
    "honorable": 0.1,
    "fanatic": -0.1,
    "scientific": 0.1,
}

# Starting bonuses bought with prestige points
PRESTIGE_UPGRADES: Dict[str, Dict] = {
    "royal_treasury": {"cost": 50, "resource": "gold", "amount": 500},
    "granary_stock": {"cost": 30, "resource": "food", "amount": 200},
    "veteran_guard": {"cost": 80, "resource": "soldiers", "amount": 5},
    "settlers": {"cost": 60, "resource": "unemployed", "amount": 10},
}
