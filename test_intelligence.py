import pytest
import numpy as np

from config import GameConfig
from combat import CombatResolver
from intelligence import EspionageService
from state import ResearchOrder, create_initial_state


class ScriptedRng:
    """Returns the given draws in order."""

    def __init__(self, *draws):
        self.draws = list(draws)

    def random(self):
        return self.draws.pop(0)


@pytest.fixture
def config():
    return GameConfig()


@pytest.fixture
def state(config):
    return create_initial_state(config, np.random.default_rng(31))


def make_service(config, *draws):
    rng = ScriptedRng(*draws)
    return EspionageService(config, rng, CombatResolver(config, rng))


class TestOdds:
    def test_army_size_lowers_odds(self, config, state):
        service = make_service(config)
        nation = state.ai_nations[0]
        nation.military_power = 200
        assert service.success_chance(state, 0.9, nation) == pytest.approx(0.8)
        nation.military_power = 5000
        assert service.success_chance(state, 0.9, nation) == pytest.approx(0.6)

    def test_espionage_research_helps(self, config, state):
        service = make_service(config)
        nation = state.ai_nations[0]
        nation.military_power = 200
        state.get_technology("espionage").is_researched = True
        assert service.success_chance(state, 0.5, nation) == pytest.approx(0.6)

    def test_clamped(self, config, state):
        service = make_service(config)
        nation = state.ai_nations[0]
        nation.military_power = 0
        assert service.success_chance(state, 1.0, nation) == 0.95
        nation.military_power = 5000
        assert service.success_chance(state, 0.0, nation) == 0.05


class TestMissions:
    def test_sabotage(self, config, state):
        service = make_service(config, 0.0, 0.99)
        nation = state.ai_nations[0]
        power, wealth = nation.military_power, nation.economic_power

        result = service.execute_espionage(state, "sabotage", nation.id)

        assert result.success
        assert state.resources.gold == 300
        assert nation.military_power == pytest.approx(power * 0.9)
        assert nation.economic_power == pytest.approx(wealth * 0.9)
        assert nation.relation_with_player == 0

    def test_failed_mission_still_costs(self, config, state):
        service = make_service(config, 0.99, 0.99)
        nation = state.ai_nations[0]
        power = nation.military_power

        result = service.execute_espionage(state, "sabotage", nation.id)

        assert not result.success
        assert state.resources.gold == 300
        assert nation.military_power == power

    def test_scout_report(self, config, state):
        service = make_service(config, 0.0, 0.99)
        nation = state.ai_nations[0]
        result = service.execute_espionage(state, "scout", nation.id)
        assert f"{int(nation.military_power)} troops" in result.message
        assert state.event_log[0].message == result.message

    def test_steal_technology_speeds_research(self, config, state):
        service = make_service(config, 0.0, 0.99)
        state.research_queue.append(ResearchOrder(tech_id="masonry", remaining_time=50))
        service.execute_espionage(state, "steal_technology", state.ai_nations[0].id)
        assert state.research_queue[0].remaining_time == 25

    def test_steal_technology_sells_secrets(self, config, state):
        service = make_service(config, 0.0, 0.99)
        nation = state.ai_nations[0]
        service.execute_espionage(state, "steal_technology", nation.id)
        assert state.resources.gold == 200 + int(nation.economic_power * 0.1)

    def test_incite_unrest(self, config, state):
        service = make_service(config, 0.0, 0.99)
        nation = state.ai_nations[0]
        population = nation.population
        service.execute_espionage(state, "incite_unrest", nation.id)
        assert nation.population == pytest.approx(population * 0.95)


class TestDetection:
    def test_caught_agents(self, config, state):
        service = make_service(config, 0.0, 0.0)
        nation = state.ai_nations[0]

        result = service.execute_espionage(state, "scout", nation.id)

        assert result.success
        assert "caught" in result.message
        assert nation.relation_with_player == -20
        assert state.reputation == -10
        assert not nation.is_at_war

    def test_caught_by_hostile_nation_means_war(self, config, state):
        service = make_service(config, 0.99, 0.0, 0.0)
        nation = state.ai_nations[0]
        nation.relation_with_player = -50

        service.execute_espionage(state, "sabotage", nation.id)

        assert nation.is_at_war
        assert state.current_battle.is_defensive


class TestRejections:
    def test_not_enough_gold(self, config, state):
        service = make_service(config)
        state.resources.gold = 100
        assert not service.execute_espionage(state, "sabotage", state.ai_nations[0].id)
        assert state.resources.gold == 100

    def test_unknown_mission_or_target(self, config, state):
        service = make_service(config)
        assert not service.execute_espionage(state, "assassinate", state.ai_nations[0].id)
        assert not service.execute_espionage(state, "scout", "nation_99")
        assert state.resources.gold == 500

    def test_fallen_nation(self, config, state):
        service = make_service(config)
        state.ai_nations[0].is_defeated = True
        assert not service.execute_espionage(state, "scout", state.ai_nations[0].id)
