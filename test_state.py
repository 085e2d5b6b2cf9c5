import pytest
import numpy as np

from catalog import BUILDINGS, TECHNOLOGIES, get_building, get_technology, get_spell
from config import GameConfig
from state import (
    Population,
    add_log,
    check_invariants,
    create_initial_state,
    format_day,
    format_game_time,
    remove_people,
)


@pytest.fixture
def config():
    return GameConfig()


@pytest.fixture
def state(config):
    return create_initial_state(config, np.random.default_rng(0))


class TestInitialState:
    def test_starting_realm(self, state):
        assert state.population.total == 10
        assert (state.population.farmers, state.population.soldiers, state.population.unemployed) == (5, 2, 3)
        assert state.resources.gold == 500
        assert state.is_paused
        assert check_invariants(state) == []

    def test_rivals_are_distinct(self, state, config):
        names = [n.name for n in state.ai_nations]
        assert len(names) == config.starting_nations
        assert len(set(names)) == len(names)

    def test_every_technology_tracked(self, state):
        assert [t.id for t in state.technologies] == [t.id for t in TECHNOLOGIES]
        assert state.researched_ids() == []

    def test_seed_decides_rivals(self, config):
        first = create_initial_state(config, np.random.default_rng(3))
        second = create_initial_state(config, np.random.default_rng(3))
        assert [n.name for n in first.ai_nations] == [n.name for n in second.ai_nations]


class TestCatalog:
    def test_lookup(self):
        assert get_building("farm_lv1").name == "Farm Lv1"
        assert get_technology("masonry") is not None
        assert get_building("castle") is None
        assert get_spell("meteor") is None

    def test_prerequisites_exist(self):
        known = {b.id for b in BUILDINGS} | {t.id for t in TECHNOLOGIES}
        for item in list(BUILDINGS) + list(TECHNOLOGIES):
            for prerequisite in item.prerequisite:
                assert prerequisite in known


class TestHelpers:
    def test_game_time(self):
        assert format_game_time(3.5) == "12:00"
        assert format_game_time(2.0) == "00:00"
        assert format_day(7.9) == "Day 7"

    def test_log_is_bounded_newest_first(self, state):
        for i in range(60):
            add_log(state, f"entry {i}", capacity=50)
        assert len(state.event_log) == 50
        assert state.event_log[0].message == "entry 59"

    def test_remove_people_follows_priority(self, state):
        state.population = Population(total=10, farmers=4, soldiers=3, unemployed=3)
        state.military.total_soldiers = 3
        state.military.infantry = 3

        assert remove_people(state, 8) == 8

        assert state.population.unemployed == 0
        assert state.population.farmers == 0
        assert state.population.soldiers == 2
        assert state.military.total_soldiers == 2
        assert check_invariants(state) == []

    def test_remove_more_than_exist(self, state):
        assert remove_people(state, 500) == 10
        assert state.population.total == 0

    def test_ids_are_unique(self, state):
        assert state.allocate_id("hero") != state.allocate_id("hero")

    def test_invariant_violations_reported(self, state):
        state.population.total = 99
        state.military.archers = 50
        problems = check_invariants(state)
        assert len(problems) == 2
