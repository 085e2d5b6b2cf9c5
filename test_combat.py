"""
Tests for the battle state machine and combat power.
"""

import pytest
import numpy as np

from config import GameConfig
from combat import CombatResolver, combat_power, player_combat_power
from state import (
    Battle,
    BattleSide,
    Hero,
    Population,
    Treaty,
    check_invariants,
    create_initial_state,
)


class FixedRng:
    """Stands in for a Generator with scripted draws."""

    def __init__(self, value=0.99):
        self.value = value

    def random(self):
        return self.value

    def uniform(self, low, high):
        return low


@pytest.fixture
def config():
    return GameConfig()


@pytest.fixture
def resolver(config):
    return CombatResolver(config, np.random.default_rng(11))


@pytest.fixture
def army_state(config):
    """A realm with 100 well-equipped infantry."""
    state = create_initial_state(config, np.random.default_rng(5))
    state.population = Population(total=110, farmers=10, soldiers=100)
    state.military.total_soldiers = 100
    state.military.infantry = 100
    state.military.equipment_rate = 100
    state.military.morale = 80
    return state


def make_battle(player_power, enemy_power, troops=100):
    return Battle(
        id="battle_test",
        target_nation_id="nation_1",
        target_nation_name="Test",
        is_defensive=False,
        player=BattleSide(total=troops, initial_total=troops, combat_power=player_power,
                          initial_power=player_power, morale=70),
        enemy=BattleSide(total=troops, initial_total=troops, combat_power=enemy_power,
                         initial_power=enemy_power, morale=70),
    )


class TestCombatPower:
    def test_equipment_and_morale_brackets(self):
        assert combat_power(100, 85, 90) == 90

    def test_player_offense(self, army_state):
        army_state.military.equipment_rate = 85
        army_state.military.morale = 90
        assert player_combat_power(army_state, is_defense=False) == 90

    def test_archers_favoured_on_defense(self, army_state):
        army_state.military.infantry = 0
        army_state.military.archers = 100
        assert player_combat_power(army_state, is_defense=True) == 150
        assert player_combat_power(army_state, is_defense=False) == 90

    def test_unassigned_soldiers_fight_plain(self, army_state):
        army_state.military.infantry = 0
        assert player_combat_power(army_state, is_defense=False) == 100

    def test_defense_bonus_only_when_defending(self, army_state):
        army_state.get_technology("fortification").is_researched = True
        assert player_combat_power(army_state, is_defense=False) == 100
        assert player_combat_power(army_state, is_defense=True) == int(100 * 1.1 * 1.25)

    def test_heroes_add_flat_power(self, army_state):
        army_state.heroes.append(Hero(id="hero_1", template_id="ironwall_gald"))
        assert player_combat_power(army_state, is_defense=False) == 160


class TestRounds:
    def test_one_round_of_losses(self, config, army_state):
        resolver = CombatResolver(config, FixedRng())
        battle = make_battle(player_power=90, enemy_power=60)

        resolver.fight_round(army_state, battle)

        assert battle.player.total == 94
        assert battle.enemy.total == 92
        assert battle.player.morale == 72
        assert battle.enemy.morale == 67
        assert battle.rounds == 1

    def test_power_shrinks_with_troops(self, config, army_state):
        resolver = CombatResolver(config, FixedRng())
        battle = make_battle(player_power=90, enemy_power=60)
        resolver.fight_round(army_state, battle)
        assert battle.player.combat_power == int(90 * 94 / 100)
        assert battle.enemy.combat_power == int(60 * 92 / 100)

    def test_power_never_below_one(self, config, army_state):
        resolver = CombatResolver(config, FixedRng())
        battle = make_battle(player_power=1000, enemy_power=1, troops=10)
        resolver.fight_round(army_state, battle)
        assert battle.enemy.total == 0
        assert battle.enemy.combat_power == 1

    def test_rounds_wait_for_interval(self, resolver, army_state):
        resolver.start_battle(army_state, army_state.ai_nations[0].id, is_defense=False)
        resolver.advance(army_state, 9.9)
        assert army_state.current_battle.rounds == 0
        resolver.advance(army_state, 0.1)
        assert army_state.current_battle.rounds == 1

    def test_battle_log_is_bounded(self, config, army_state):
        resolver = CombatResolver(config, FixedRng())
        battle = make_battle(player_power=1, enemy_power=1, troops=10000)
        for _ in range(50):
            resolver.fight_round(army_state, battle)
        assert len(battle.battle_log) == config.battle_log_capacity


class TestTermination:
    def test_troop_threshold_defeat(self, config):
        resolver = CombatResolver(config, FixedRng())
        battle = make_battle(90, 60)
        battle.player.total = 30
        assert resolver.check_termination(battle) == "defeat"

    def test_morale_collapse(self, config):
        resolver = CombatResolver(config, FixedRng())
        battle = make_battle(90, 60)
        battle.enemy.morale = 0
        assert resolver.check_termination(battle) == "victory"

    def test_rout(self, config):
        battle = make_battle(90, 60)
        battle.player.morale = 25
        assert CombatResolver(config, FixedRng(0.99)).check_termination(battle) is None
        assert CombatResolver(config, FixedRng(0.1)).check_termination(battle) == "defeat"

    def test_battle_always_ends(self, resolver, army_state):
        army_state.ai_nations[0].military_power = 5000
        resolver.start_battle(army_state, army_state.ai_nations[0].id, is_defense=True)
        for _ in range(1000):
            resolver.advance(army_state, 10)
            if army_state.current_battle.is_over:
                break
        assert army_state.current_battle.is_over
        assert check_invariants(army_state) == []


class TestResolution:
    def test_offensive_victory_conquers(self, config, army_state):
        resolver = CombatResolver(config, FixedRng())
        nation = army_state.ai_nations[0]
        nation.military_power = 10
        gold_before = army_state.resources.gold

        assert resolver.attack_nation(army_state, nation.id)
        resolver.advance(army_state, 10)

        battle = army_state.current_battle
        assert battle.result == "victory"
        assert nation.is_defeated
        assert army_state.conquests == 1
        assert army_state.military.morale == 90
        assert army_state.resources.gold == gold_before + int(round(nation.economic_power * 0.5))
        assert check_invariants(army_state) == []

    def test_defensive_victory_ends_war(self, config, army_state):
        resolver = CombatResolver(config, FixedRng())
        nation = army_state.ai_nations[0]
        nation.military_power = 10
        nation.is_at_war = True

        resolver.start_battle(army_state, nation.id, is_defense=True)
        resolver.advance(army_state, 10)

        assert army_state.current_battle.result == "victory"
        assert not nation.is_defeated
        assert not nation.is_at_war

    def test_defeat_costs_soldiers_and_gold(self, config, army_state):
        resolver = CombatResolver(config, FixedRng())
        army_state.population = Population(total=20, farmers=10, soldiers=10)
        army_state.military.total_soldiers = 10
        army_state.military.infantry = 10
        army_state.resources.gold = 1000
        nation = army_state.ai_nations[0]
        nation.military_power = 400

        resolver.start_battle(army_state, nation.id, is_defense=True)
        resolver.advance(army_state, 10)

        assert army_state.current_battle.result == "defeat"
        assert army_state.population.soldiers == 0
        assert army_state.military.total_soldiers == 0
        assert army_state.resources.gold == 900
        assert army_state.military.morale == 65
        assert check_invariants(army_state) == []

    def test_retreat(self, resolver, army_state):
        resolver.start_battle(army_state, army_state.ai_nations[0].id, is_defense=False)
        assert resolver.retreat(army_state)
        assert army_state.current_battle.result == "retreat"
        assert army_state.military.morale == 75
        assert not resolver.retreat(army_state)

    def test_close_battle(self, resolver, army_state):
        resolver.start_battle(army_state, army_state.ai_nations[0].id, is_defense=False)
        assert not resolver.close_battle(army_state)
        resolver.retreat(army_state)
        assert resolver.close_battle(army_state)
        assert army_state.current_battle is None
        assert not resolver.close_battle(army_state)

    def test_only_one_battle(self, resolver, army_state):
        assert resolver.start_battle(army_state, army_state.ai_nations[0].id, is_defense=False)
        assert not resolver.start_battle(army_state, army_state.ai_nations[1].id, is_defense=False)


class TestCommands:
    def test_attack_declares_war(self, resolver, army_state):
        nation = army_state.ai_nations[0]
        nation.treaties.append(Treaty(type="trade", duration=100))
        assert resolver.attack_nation(army_state, nation.id)
        assert nation.is_at_war
        assert nation.relation_with_player == -100
        assert nation.treaties == []

    def test_treaty_forbids_attack(self, resolver, army_state):
        nation = army_state.ai_nations[0]
        nation.treaties.append(Treaty(type="nonAggression", duration=100))
        result = resolver.attack_nation(army_state, nation.id)
        assert not result.success
        assert army_state.current_battle is None

    def test_cannot_attack_fallen_nation(self, resolver, army_state):
        nation = army_state.ai_nations[0]
        nation.is_defeated = True
        assert not resolver.attack_nation(army_state, nation.id)

    def test_cannot_attack_without_soldiers(self, resolver, config):
        state = create_initial_state(config, np.random.default_rng(1))
        state.population.soldiers = 0
        state.population.unemployed += 2
        state.military.total_soldiers = 0
        state.military.infantry = 0
        assert not resolver.attack_nation(state, state.ai_nations[0].id)

    def test_hero_strikes_first(self, resolver, army_state):
        army_state.heroes.append(Hero(id="hero_1", template_id="swordmaster_aries"))
        nation = army_state.ai_nations[0]
        troops = int(nation.military_power)
        resolver.start_battle(army_state, nation.id, is_defense=False)
        assert army_state.current_battle.enemy.total == troops - 50
        assert army_state.heroes[0].is_deployed


class TestOrganizeUnits:
    def test_archers_need_archery(self, resolver, army_state):
        result = resolver.organize_units(army_state, 50, 50, 0)
        assert not result.success
        assert "archery" in result.message

    def test_organise(self, resolver, army_state):
        army_state.get_technology("archery").is_researched = True
        assert resolver.organize_units(army_state, 50, 40, 0)
        assert army_state.military.archers == 40
        assert check_invariants(army_state) == []

    def test_mage_warriors_need_battle_magic(self, resolver, army_state):
        result = resolver.organize_units(army_state, 50, 0, 0, 30)
        assert not result.success
        assert "battle_magic" in result.message
        assert army_state.military.mage_warriors == 0

    def test_mage_warriors_fight(self, resolver, army_state):
        army_state.get_technology("battle_magic").is_researched = True
        assert resolver.organize_units(army_state, 50, 0, 0, 50)
        assert army_state.military.mage_warriors == 50
        assert check_invariants(army_state) == []
        assert player_combat_power(army_state, is_defense=False) == 115

    def test_too_many(self, resolver, army_state):
        assert not resolver.organize_units(army_state, 101, 0, 0)
        assert not resolver.organize_units(army_state, -1, 0, 0)
