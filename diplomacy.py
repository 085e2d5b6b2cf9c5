"""
Rival nation behaviour and treaties.

Each surviving rival gets one decision per simulated day once the grace
period is over. A shared cooldown spaces out every action a nation takes,
whether diplomatic or martial. Trade offers and tribute demands are raised as
events so the player answers them through the same choice protocol as random
events.
"""

from typing import List, Optional
import logging

from numpy.random import Generator

from combat import CombatResolver, player_combat_power
from config import GameConfig, TREATY_RELATION_REQUIREMENTS, PERSONALITY_TRADE_AFFINITY
from state import GameState, Result, AINation, Treaty, add_log

logger = logging.getLogger(__name__)

TREATY_NAMES = {
    "trade": "trade agreement",
    "nonAggression": "non-aggression pact",
    "alliance": "alliance",
}


def clamp_relation(value: float) -> float:
    return max(-100.0, min(100.0, value))


def adjust_relation(nation: AINation, delta: float) -> None:
    nation.relation_with_player = clamp_relation(nation.relation_with_player + delta)


def add_treaty(state: GameState, nation: AINation, treaty_type: str, config: GameConfig) -> None:
    """Sign (or renew) a treaty of the given type."""
    nation.treaties = [t for t in nation.treaties if t.type != treaty_type]
    nation.treaties.append(Treaty(type=treaty_type, duration=config.treaty_duration_days,
                                  started_at=state.day))
    add_log(state, f"A {TREATY_NAMES[treaty_type]} was signed with {nation.name}",
            "diplomacy", capacity=config.event_log_capacity)


def declare_war(state: GameState, nation: AINation, config: GameConfig) -> None:
    """A rival declares war: every treaty is torn up and relations hit bottom."""
    nation.is_at_war = True
    nation.relation_with_player = -100.0
    nation.treaties = []
    add_log(state, f"{nation.name} has declared war on the realm!", "military", "critical",
            config.event_log_capacity)
    logger.warning("%s declared war on day %d", nation.name, int(state.day))


class RivalPolicyEngine:
    """Runs the daily decisions of every rival nation."""

    def __init__(self, config: GameConfig, rng: Generator, combat: CombatResolver, events=None):
        self.config = config
        self.rng = rng
        self.combat = combat
        self.events = events

    # --- scheduled updates -----------------------------------------------

    def apply_daily(self, state: GameState) -> List[str]:
        cfg = self.config
        growth = 1 + cfg.ai_growth_rate / cfg.days_per_month
        for nation in state.surviving_nations():
            nation.population *= growth
            nation.military_power *= growth
            nation.economic_power *= growth

        events = []
        acted = set()
        if state.current_battle is None and state.day >= cfg.ai_grace_period_days:
            for nation in state.surviving_nations():
                if state.current_battle is not None or state.active_event is not None:
                    break
                if state.day - nation.last_action_day < cfg.ai_action_cooldown_days:
                    continue
                msg = self.decide(state, nation)
                if msg:
                    nation.last_action_day = state.day
                    acted.add(nation.id)
                    events.append(msg)

        # Relations only drift on days a nation leaves the player alone
        for nation in state.surviving_nations():
            if nation.id not in acted:
                self._decay_relation(nation)
        return events

    def apply_monthly(self, state: GameState) -> List[str]:
        """Treaties run down a month at a time and lapse at zero."""
        events = []
        for nation in state.surviving_nations():
            kept = []
            for treaty in nation.treaties:
                treaty.duration -= self.config.days_per_month
                if treaty.duration > 0:
                    kept.append(treaty)
                else:
                    msg = f"The {TREATY_NAMES[treaty.type]} with {nation.name} has expired"
                    add_log(state, msg, "diplomacy", capacity=self.config.event_log_capacity)
                    events.append(msg)
            nation.treaties = kept
        return events

    def _decay_relation(self, nation: AINation) -> None:
        decay = self.config.ai_relation_decay
        if nation.relation_with_player > 0:
            nation.relation_with_player = max(0.0, nation.relation_with_player - decay)
        elif nation.relation_with_player < 0:
            nation.relation_with_player = min(0.0, nation.relation_with_player + decay)

    # --- decisions -------------------------------------------------------

    def decide(self, state: GameState, nation: AINation) -> Optional[str]:
        """One decision for one nation. Returns a message when it acted."""
        cfg = self.config
        rng = self.rng
        player_power = max(1, player_combat_power(state, is_defense=True))
        nation_power = self.combat.enemy_combat_power(nation)
        protected = nation.has_treaty("nonAggression") or nation.has_treaty("alliance")

        if nation.is_at_war:
            if rng.random() < cfg.ai_reattack_chance:
                return self._attack(state, nation)
            return None

        if not protected and nation.relation_with_player <= cfg.ai_hostile_relation:
            if rng.random() < cfg.ai_hostile_war_chance:
                return self._war(state, nation)

        if (not protected and nation.aggressiveness >= cfg.ai_aggression_threshold
                and nation_power > player_power * cfg.ai_strength_ratio):
            if rng.random() < cfg.ai_unprovoked_war_chance:
                return self._war(state, nation)

        if rng.random() < cfg.ai_action_chance:
            return self._diplomatic_action(state, nation, nation_power, player_power)
        return None

    def _war(self, state: GameState, nation: AINation) -> str:
        declare_war(state, nation, self.config)
        self.combat.start_battle(state, nation.id, is_defense=True)
        return f"{nation.name} declared war"

    def _attack(self, state: GameState, nation: AINation) -> str:
        add_log(state, f"{nation.name} launches a new offensive", "military", "high",
                self.config.event_log_capacity)
        self.combat.start_battle(state, nation.id, is_defense=True)
        return f"{nation.name} attacked"

    def _diplomatic_action(self, state: GameState, nation: AINation,
                           nation_power: float, player_power: float) -> Optional[str]:
        cfg = self.config
        relation = nation.relation_with_player
        dominant = nation_power >= player_power * cfg.ai_tribute_strength_ratio

        if dominant and relation < 0:
            amount = int(max(50, nation.economic_power * 0.2))
            self._raise(state, "ai_tribute_demand", {"nation_id": nation.id, "amount": amount})
            return f"{nation.name} demanded tribute"

        if relation < 0:
            return None

        affinity = PERSONALITY_TRADE_AFFINITY.get(nation.personality, 0.0)
        if not nation.has_treaty("trade") and self.rng.random() < 0.5 + affinity:
            gift = 0
            if self.rng.random() < 0.3:
                gift = int(nation.economic_power * 0.1)
            adjust_relation(nation, 5)
            self._raise(state, "ai_trade_offer", {"nation_id": nation.id, "gift": gift})
            return f"{nation.name} proposed a trade agreement"

        adjust_relation(nation, 3)
        add_log(state, f"{nation.name} sent a letter of goodwill", "diplomacy",
                capacity=cfg.event_log_capacity)
        return f"{nation.name} sent goodwill"

    def _raise(self, state: GameState, event_id: str, payload: dict) -> None:
        if self.events is None:
            logger.debug("No event dispatcher; dropping %s", event_id)
            return
        self.events.raise_event(state, event_id, payload)

    # --- player commands -------------------------------------------------

    def _negotiable(self, state: GameState, nation_id: str):
        nation = state.get_nation(nation_id)
        if nation is None:
            return None, Result.fail(f"Unknown nation: {nation_id}")
        if nation.is_defeated:
            return None, Result.fail(f"{nation.name} no longer exists")
        if nation.is_at_war:
            return None, Result.fail(f"We are at war with {nation.name}")
        return nation, None

    def propose_trade_agreement(self, state: GameState, nation_id: str) -> Result:
        """Offer a trade agreement; the rival may decline."""
        nation, error = self._negotiable(state, nation_id)
        if error is not None:
            return error
        if nation.has_treaty("trade"):
            return Result.fail(f"A trade agreement with {nation.name} is already in force")
        if nation.relation_with_player < TREATY_RELATION_REQUIREMENTS["trade"]:
            return Result.fail(f"{nation.name} will not trade with us")

        affinity = PERSONALITY_TRADE_AFFINITY.get(nation.personality, 0.0)
        chance = min(1.0, 0.5 + nation.relation_with_player / 100 + affinity)
        if self.rng.random() >= chance:
            adjust_relation(nation, -2)
            return Result.fail(f"{nation.name} declined the trade agreement")

        add_treaty(state, nation, "trade", self.config)
        adjust_relation(nation, 5)
        return Result.ok(f"Trade agreement signed with {nation.name}")

    def sign_treaty(self, state: GameState, nation_id: str, treaty_type: str) -> Result:
        """Sign a treaty with a rival whose relation is good enough."""
        if treaty_type not in TREATY_RELATION_REQUIREMENTS:
            return Result.fail(f"Unknown treaty type: {treaty_type}")
        nation, error = self._negotiable(state, nation_id)
        if error is not None:
            return error
        if nation.has_treaty(treaty_type):
            return Result.fail(f"A {TREATY_NAMES[treaty_type]} with {nation.name} is already in force")
        required = TREATY_RELATION_REQUIREMENTS[treaty_type]
        if nation.relation_with_player < required:
            return Result.fail(f"{nation.name} needs a relation of at least {required}")

        add_treaty(state, nation, treaty_type, self.config)
        adjust_relation(nation, 5)
        return Result.ok(f"{TREATY_NAMES[treaty_type].capitalize()} signed with {nation.name}")
