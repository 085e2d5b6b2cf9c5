"""
Spellcasting and timed effects.
"""

from typing import List, Optional
import logging
import math

from catalog import get_spell
from config import GameConfig
from combat import rescale_side
from diplomacy import adjust_relation
from state import GameState, Result, ActiveEffect, add_log

logger = logging.getLogger(__name__)


class MagicSystem:
    def __init__(self, config: GameConfig):
        self.config = config

    def cast_magic(self, state: GameState, spell_id: str, target_id: Optional[str] = None) -> Result:
        spell = get_spell(spell_id)
        if spell is None:
            return Result.fail(f"Unknown spell: {spell_id}")
        missing = [p for p in spell.prerequisite if not state.is_researched(p)]
        if missing:
            return Result.fail(f"{spell.name} requires {', '.join(missing)}")

        nation = None
        if spell.requires_target:
            nation = state.get_nation(target_id) if target_id else None
            if nation is None or nation.is_defeated:
                return Result.fail(f"{spell.name} needs a living target")
        if state.resources.mana < spell.mana_cost:
            return Result.fail(f"Not enough mana ({spell.mana_cost} needed)")

        state.resources.mana -= spell.mana_cost

        if spell.duration_days > 0:
            # Recasting refreshes the duration instead of stacking
            state.active_effects = [e for e in state.active_effects if e.source != spell.id]
            state.active_effects.append(ActiveEffect(
                source=spell.id,
                type=spell.effect.type,
                value=spell.effect.value,
                remaining_days=spell.duration_days,
            ))
            message = f"{spell.name} takes hold for {spell.duration_days} days"
        elif spell.effect.type == "inspire":
            message = self._inspire(state, int(spell.effect.value))
        elif spell.effect.type == "fireball":
            message = self._fireball(state, nation, spell.effect.value)
        else:
            message = f"{spell.name} fizzles"

        add_log(state, message, "magic", capacity=self.config.event_log_capacity)
        logger.debug("Cast %s: %s", spell.id, message)
        return Result.ok(message)

    def _inspire(self, state: GameState, value: int) -> str:
        state.military.morale = min(100, state.military.morale + value)
        battle = state.current_battle
        if battle is not None and not battle.is_over:
            battle.player.morale = min(100, battle.player.morale + value)
        return f"The army is inspired (+{value} morale)"

    def _fireball(self, state: GameState, nation, percent: float) -> str:
        nation.military_power *= 1 - percent / 100
        battle = state.current_battle
        if battle is not None and not battle.is_over and battle.target_nation_id == nation.id:
            burned = int(math.ceil(battle.enemy.total * percent / 100))
            battle.enemy.total = max(0, battle.enemy.total - burned)
            rescale_side(battle.enemy)
        if not nation.is_at_war:
            adjust_relation(nation, -10)
        return f"Fire rains on the armies of {nation.name}"

    def expire_effects(self, state: GameState) -> List[str]:
        """Count down timed effects by one day and drop the finished ones."""
        events = []
        kept = []
        for effect in state.active_effects:
            effect.remaining_days -= 1
            if effect.remaining_days > 0:
                kept.append(effect)
            else:
                msg = f"The effect of {effect.source.replace('_', ' ')} has faded"
                add_log(state, msg, "magic", capacity=self.config.event_log_capacity)
                events.append(msg)
        state.active_effects = kept
        return events
