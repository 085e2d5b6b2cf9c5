"""
Victory and defeat conditions, and prestige awarded when a reign ends.
"""

from typing import Optional, Tuple
import logging

from config import GameConfig, PRESTIGE_UPGRADES
from state import GameState, Result, add_log

logger = logging.getLogger(__name__)

VICTORY_MESSAGES = {
    "conquest": "Every rival has fallen. The realm rules alone.",
    "economic": "Trade and treasure have made the realm the heart of the world.",
    "technological": "The realm has ascended beyond its rivals.",
}

DEFEAT_MESSAGES = {
    "annihilation": "No one is left to carry the realm's name.",
    "bankruptcy": "The treasury collapsed under its debts.",
    "revolution": "The people rose up and overthrew the crown.",
}


class VictoryEvaluator:
    """Checks the end conditions once per simulated day."""

    def __init__(self, config: GameConfig):
        self.config = config

    def update_counters(self, state: GameState) -> None:
        """Track consecutive days of debt and of rock-bottom satisfaction."""
        if state.resources.gold < 0:
            state.bankruptcy_days += 1
        else:
            state.bankruptcy_days = 0
        if state.satisfaction <= 0:
            state.low_satisfaction_days += 1
        else:
            state.low_satisfaction_days = 0

    def check_victory(self, state: GameState) -> Optional[str]:
        cfg = self.config
        survivors = state.surviving_nations()
        if state.ai_nations and not survivors:
            return "conquest"
        wealth = state.resources.total_wealth()
        if (wealth >= cfg.economic_victory_wealth and survivors
                and all(n.has_treaty("trade") for n in survivors)):
            return "economic"
        if state.is_researched(cfg.victory_technology) and wealth >= cfg.technological_victory_wealth:
            return "technological"
        return None

    def check_defeat(self, state: GameState) -> Optional[str]:
        cfg = self.config
        if state.population.total <= 0:
            return "annihilation"
        if state.bankruptcy_days >= cfg.bankruptcy_days_limit:
            return "bankruptcy"
        if state.low_satisfaction_days >= cfg.low_satisfaction_days_limit:
            return "revolution"
        return None

    def evaluate(self, state: GameState) -> Optional[Tuple[str, str]]:
        """Returns ("victory"|"defeat", kind) when the reign ends today."""
        if state.is_finished:
            return None
        self.update_counters(state)

        kind = self.check_victory(state)
        if kind is not None:
            state.victory = True
            state.victory_type = kind
            add_log(state, f"VICTORY! {VICTORY_MESSAGES[kind]}", "important", "critical",
                    self.config.event_log_capacity)
            logger.info("Victory (%s) on day %d", kind, int(state.day))
            self.award_prestige(state)
            return "victory", kind

        kind = self.check_defeat(state)
        if kind is not None:
            state.game_over = True
            state.game_over_reason = kind
            add_log(state, f"DEFEAT. {DEFEAT_MESSAGES[kind]}", "important", "critical",
                    self.config.event_log_capacity)
            logger.warning("Defeat (%s) on day %d", kind, int(state.day))
            self.award_prestige(state)
            return "defeat", kind
        return None

    def prestige_for(self, state: GameState) -> int:
        cfg = self.config
        points = cfg.month_of(state.day) * cfg.prestige_per_month
        points += state.conquests * cfg.prestige_per_conquest
        if state.victory:
            points += cfg.prestige_victory_bonus
        return points

    def award_prestige(self, state: GameState) -> int:
        points = self.prestige_for(state)
        permanent = state.permanent
        permanent.points += points
        permanent.total_days_played += state.day
        if state.victory:
            permanent.clear_count += 1
        logger.info("Awarded %d prestige points", points)
        return points


def purchase_upgrade(state: GameState, upgrade_id: str) -> Result:
    """Spend prestige on a starting bonus for the next reign."""
    upgrade = PRESTIGE_UPGRADES.get(upgrade_id)
    if upgrade is None:
        return Result.fail(f"Unknown upgrade: {upgrade_id}")
    if not state.is_finished:
        return Result.fail("Upgrades can only be bought once the reign has ended")
    permanent = state.permanent
    if upgrade_id in permanent.upgrades:
        return Result.fail("Upgrade already owned")
    if permanent.points < upgrade["cost"]:
        return Result.fail(f"Not enough prestige ({upgrade['cost']} needed)")
    permanent.points -= upgrade["cost"]
    permanent.upgrades.append(upgrade_id)
    return Result.ok(f"Purchased {upgrade_id.replace('_', ' ')}")
