"""
Battle resolution with an attrition model.

A battle moves through ongoing -> victory | defeat | retreat. Rounds are
fought every battle_tick_interval simulated seconds; each side loses troops in
proportion to the other's combat power, and combat power shrinks with the
troops that are left.
"""

from typing import List, Optional
import logging
import math

from numpy.random import Generator

from config import (
    GameConfig,
    EQUIPMENT_COEFFICIENTS,
    MORALE_COEFFICIENTS,
    STANCE_MULTIPLIERS,
)
from economy import get_coefficient, bonus_percent
from state import (
    GameState,
    Result,
    Battle,
    BattleSide,
    BattleLogEntry,
    AINation,
    UNIT_TYPES,
    add_log,
    remove_people,
)

logger = logging.getLogger(__name__)

UNIT_TECHNOLOGIES = {"archers": "archery", "cavalry": "horsemanship", "mage_warriors": "battle_magic"}


def combat_power(soldiers: float, equipment_rate: float, morale: float,
                 multiplier: float = 1.0) -> int:
    """floor(soldiers * multiplier * equipment coefficient * morale coefficient)"""
    equipment_coef = get_coefficient(equipment_rate, EQUIPMENT_COEFFICIENTS)
    morale_coef = get_coefficient(morale, MORALE_COEFFICIENTS)
    return int(math.floor(soldiers * multiplier * equipment_coef * morale_coef))


def player_combat_power(state: GameState, is_defense: bool) -> int:
    """
    Player power for a stance. Units are weighted by the stance multipliers,
    soldiers outside any unit fight at 1.0. Technology, building, spell and
    treaty bonuses apply as a percentage; heroes add their flat power.
    """
    mil = state.military
    stance = STANCE_MULTIPLIERS["defense" if is_defense else "offense"]
    unassigned = max(0, mil.total_soldiers - mil.assigned)
    weighted = sum(getattr(mil, unit) * stance[unit] for unit in UNIT_TYPES) + unassigned

    bonus = bonus_percent(state, "combatPower")
    if is_defense:
        bonus += bonus_percent(state, "defenseBonus")

    power = combat_power(weighted, mil.equipment_rate, mil.morale, 1 + bonus / 100)
    power += sum(h.template.combat_power for h in state.heroes)
    return power


def hero_ability_total(state: GameState, ability: str) -> float:
    return sum(h.template.ability.value for h in state.heroes
               if h.template.ability.type == ability)


def rescale_side(side: BattleSide) -> None:
    """Power shrinks in proportion to the troops left, never below 1."""
    if side.initial_total <= 0:
        side.combat_power = 1
        return
    side.combat_power = max(1, int(math.floor(side.initial_power * side.total / side.initial_total)))


class CombatResolver:
    """Owns the battle state machine for the single active battle."""

    def __init__(self, config: GameConfig, rng: Generator):
        self.config = config
        self.rng = rng

    def enemy_troops(self, nation: AINation) -> int:
        return max(0, int(nation.military_power))

    def enemy_combat_power(self, nation: AINation) -> int:
        return combat_power(self.enemy_troops(nation), self.config.enemy_equipment_rate,
                            self.config.enemy_initial_morale)

    # --- lifecycle ---------------------------------------------------------

    def start_battle(self, state: GameState, nation_id: str, is_defense: bool) -> Result:
        """Snapshot both sides and open a new battle."""
        if state.current_battle is not None:
            return Result.fail("A battle is already in progress")
        nation = state.get_nation(nation_id)
        if nation is None:
            return Result.fail(f"Unknown nation: {nation_id}")
        if nation.is_defeated:
            return Result.fail(f"{nation.name} has already fallen")

        mil = state.military
        player_power = max(1, player_combat_power(state, is_defense))
        enemy_troops = self.enemy_troops(nation)
        enemy_power = max(1, self.enemy_combat_power(nation))

        battle = Battle(
            id=state.allocate_id("battle"),
            target_nation_id=nation.id,
            target_nation_name=nation.name,
            is_defensive=is_defense,
            player=BattleSide(total=mil.total_soldiers, initial_total=mil.total_soldiers,
                              combat_power=player_power, initial_power=player_power,
                              morale=mil.morale),
            enemy=BattleSide(total=enemy_troops, initial_total=enemy_troops,
                             combat_power=enemy_power, initial_power=enemy_power,
                             morale=self.config.enemy_initial_morale),
            composition={unit: getattr(mil, unit) for unit in UNIT_TYPES},
        )
        for hero in state.heroes:
            hero.is_deployed = True
            battle.deployed_hero_ids.append(hero.id)
        state.current_battle = battle

        if is_defense:
            opening = f"{nation.name} marches on the realm! {mil.total_soldiers} soldiers stand to defend"
        else:
            opening = f"The army marches on {nation.name} with {mil.total_soldiers} soldiers"
        self._battle_log(battle, opening, "important")
        add_log(state, opening, "military", "high", self.config.event_log_capacity)
        logger.info("Battle %s started against %s (defense=%s, power %d vs %d)",
                    battle.id, nation.name, is_defense, player_power, enemy_power)

        kills = int(hero_ability_total(state, "instantKill"))
        if kills > 0 and battle.enemy.total > 0:
            kills = min(kills, battle.enemy.total)
            battle.enemy.total -= kills
            rescale_side(battle.enemy)
            self._battle_log(battle, f"Our champions cut down {kills} enemies before the lines meet",
                             "important")

        return Result.ok(opening)

    def advance(self, state: GameState, sim_seconds: float) -> List[str]:
        """Fight every round whose interval has elapsed."""
        battle = state.current_battle
        if battle is None or battle.is_over or sim_seconds <= 0:
            return []

        battle.elapsed_time += sim_seconds
        battle.time_since_round += sim_seconds
        events = []
        while battle.time_since_round >= self.config.battle_tick_interval:
            battle.time_since_round -= self.config.battle_tick_interval
            outcome = self.fight_round(state, battle)
            if outcome is not None:
                events.append(self.resolve_battle(state, outcome))
                break
        return events

    def fight_round(self, state: GameState, battle: Battle) -> Optional[str]:
        """One exchange of losses. Returns the terminal result, if any."""
        cfg = self.config
        player, enemy = battle.player, battle.enemy

        player_losses = int(math.ceil(enemy.combat_power * cfg.attacker_damage_rate))
        enemy_losses = int(math.ceil(player.combat_power * cfg.defender_damage_rate))
        if battle.rounds == 0:
            first_strike = hero_ability_total(state, "firstStrike")
            if first_strike:
                enemy_losses = int(math.ceil(enemy_losses * (1 + first_strike / 100)))

        player.total = max(0, player.total - player_losses)
        enemy.total = max(0, enemy.total - enemy_losses)

        morale_locked = battle.is_defensive and hero_ability_total(state, "moraleLock") > 0
        if player.combat_power > enemy.combat_power:
            player.morale = min(100, player.morale + cfg.morale_win_bonus)
            enemy.morale = max(0, enemy.morale - cfg.morale_lose_penalty)
        elif enemy.combat_power > player.combat_power:
            enemy.morale = min(100, enemy.morale + cfg.morale_win_bonus)
            if not morale_locked:
                player.morale = max(0, player.morale - cfg.morale_lose_penalty)

        rescale_side(player)
        rescale_side(enemy)
        battle.rounds += 1
        self._battle_log(
            battle,
            f"Round {battle.rounds}: we lost {player_losses}, the enemy lost {enemy_losses} "
            f"({player.total} vs {enemy.total} remain)",
        )
        return self.check_termination(battle)

    def check_termination(self, battle: Battle) -> Optional[str]:
        cfg = self.config
        player, enemy = battle.player, battle.enemy
        if player.total <= player.initial_total * cfg.defeat_threshold_fraction:
            return "defeat"
        if enemy.total <= enemy.initial_total * cfg.defeat_threshold_fraction:
            return "victory"
        if player.morale <= 0:
            return "defeat"
        if enemy.morale <= 0:
            return "victory"
        if player.morale <= cfg.rout_morale_threshold and self.rng.random() < cfg.rout_chance:
            self._battle_log(battle, "Our lines break and the soldiers flee", "critical")
            return "defeat"
        if enemy.morale <= cfg.rout_morale_threshold and self.rng.random() < cfg.rout_chance:
            self._battle_log(battle, "The enemy breaks and runs", "important")
            return "victory"
        return None

    def resolve_battle(self, state: GameState, result: str) -> str:
        """Commit the outcome of the battle to the realm."""
        cfg = self.config
        battle = state.current_battle
        battle.result = result
        nation = state.get_nation(battle.target_nation_id)
        mil = state.military

        lost = battle.player.initial_total - battle.player.total
        remove_people(state, lost, ["soldiers"])
        nation.military_power = max(0.0, nation.military_power
                                    - (battle.enemy.initial_total - battle.enemy.total))

        if result == "victory":
            mil.morale = min(100, mil.morale + cfg.battle_victory_morale)
            loot = int(round(nation.economic_power * self.rng.uniform(0.5, 1.0)))
            state.resources.gold += loot
            battle.spoils = {"gold": loot}
            if battle.is_defensive:
                nation.is_at_war = False
                nation.relation_with_player = -30
                msg = f"Victory! {nation.name} was repelled. Spoils: {loot} gold"
            else:
                nation.is_defeated = True
                nation.is_at_war = False
                nation.treaties = []
                state.conquests += 1
                msg = f"Victory! {nation.name} has been conquered. Spoils: {loot} gold"
            log_type = "victory"
        elif result == "defeat":
            mil.morale = max(0, mil.morale + cfg.battle_defeat_morale)
            penalty = int(max(0.0, state.resources.gold) * cfg.defeat_gold_penalty)
            state.resources.gold -= penalty
            battle.spoils = {"gold": -penalty}
            msg = f"Defeat against {nation.name}. {lost} soldiers fell and {penalty} gold was lost"
            log_type = "defeat"
        else:
            mil.morale = max(0, mil.morale + cfg.battle_retreat_morale)
            msg = f"The army retreated from {nation.name} after losing {lost} soldiers"
            log_type = "important"

        for hero in state.heroes:
            hero.is_deployed = False
        self._battle_log(battle, msg, log_type)
        add_log(state, msg, "military", "high", cfg.event_log_capacity)
        logger.info("Battle %s ended: %s after %d rounds", battle.id, result, battle.rounds)
        return msg

    def retreat(self, state: GameState) -> Result:
        battle = state.current_battle
        if battle is None or battle.is_over:
            return Result.fail("No battle to retreat from")
        return Result.ok(self.resolve_battle(state, "retreat"))

    def close_battle(self, state: GameState) -> Result:
        battle = state.current_battle
        if battle is None:
            return Result.fail("No battle to close")
        if not battle.is_over:
            return Result.fail("The battle is still raging")
        state.current_battle = None
        return Result.ok("Battle closed")

    # --- commands ------------------------------------------------------------

    def attack_nation(self, state: GameState, nation_id: str) -> Result:
        """Declare war on a rival and march on it."""
        nation = state.get_nation(nation_id)
        if nation is None:
            return Result.fail(f"Unknown nation: {nation_id}")
        if nation.is_defeated:
            return Result.fail(f"{nation.name} has already fallen")
        if state.current_battle is not None:
            return Result.fail("A battle is already in progress")
        if nation.has_treaty("nonAggression") or nation.has_treaty("alliance"):
            return Result.fail(f"A treaty with {nation.name} forbids an attack")
        if state.military.total_soldiers <= 0:
            return Result.fail("There are no soldiers to attack with")

        if not nation.is_at_war:
            nation.is_at_war = True
            nation.relation_with_player = -100
            nation.treaties = []
            state.reputation = max(-100, state.reputation - 10)
            add_log(state, f"War declared on {nation.name}", "military", "high",
                    self.config.event_log_capacity)
        return self.start_battle(state, nation_id, is_defense=False)

    def organize_units(self, state: GameState, infantry: int, archers: int, cavalry: int,
                       mage_warriors: int = 0) -> Result:
        """Rearrange soldiers into unit types."""
        counts = {"infantry": int(infantry), "archers": int(archers), "cavalry": int(cavalry),
                  "mage_warriors": int(mage_warriors)}
        if any(c < 0 for c in counts.values()):
            return Result.fail("Unit counts cannot be negative")
        if state.current_battle is not None and not state.current_battle.is_over:
            return Result.fail("Cannot reorganise units during a battle")
        for unit, tech in UNIT_TECHNOLOGIES.items():
            if counts[unit] > 0 and not state.is_researched(tech):
                return Result.fail(f"{unit.replace('_', ' ').capitalize()} require {tech}")
        if sum(counts.values()) > state.military.total_soldiers:
            return Result.fail(f"Only {state.military.total_soldiers} soldiers are available")

        for unit, count in counts.items():
            setattr(state.military, unit, count)
        return Result.ok(f"Army organised: {counts['infantry']} infantry, "
                         f"{counts['archers']} archers, {counts['cavalry']} cavalry, "
                         f"{counts['mage_warriors']} mage warriors")

    # --- helpers -------------------------------------------------------------

    def _battle_log(self, battle: Battle, message: str, log_type: str = "info") -> None:
        battle.battle_log.append(BattleLogEntry(time=battle.elapsed_time, message=message, type=log_type))
        del battle.battle_log[:-self.config.battle_log_capacity]
