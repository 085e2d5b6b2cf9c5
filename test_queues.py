import pytest
import numpy as np

from config import GameConfig
from queues import ProjectQueues
from state import create_initial_state


@pytest.fixture
def config():
    return GameConfig()


@pytest.fixture
def queues(config):
    return ProjectQueues(config)


@pytest.fixture
def state(config):
    return create_initial_state(config, np.random.default_rng(3))


def research(state, *tech_ids):
    for tech_id in tech_ids:
        state.get_technology(tech_id).is_researched = True


class TestConstruction:
    def test_start_deducts_cost(self, queues, state):
        result = queues.start_construction(state, "farm_lv1")
        assert result.success
        assert state.resources.gold == 400
        assert len(state.construction_queue) == 1

    def test_queue_at_capacity(self, queues, state):
        assert queues.start_construction(state, "farm_lv1")
        resources_before = (state.resources.gold, state.resources.ore)

        result = queues.start_construction(state, "mine_lv1")

        assert not result.success
        assert "full" in result.message
        assert (state.resources.gold, state.resources.ore) == resources_before
        assert len(state.construction_queue) == 1

    def test_engineering_raises_capacity(self, queues, state):
        research(state, "masonry", "engineering")
        assert queues.construction_cap(state) == 2
        assert queues.start_construction(state, "farm_lv1")
        assert queues.start_construction(state, "mine_lv1")

    def test_unknown_building(self, queues, state):
        assert not queues.start_construction(state, "castle")

    def test_missing_prerequisite(self, queues, state):
        state.resources.gold = 5000
        state.resources.ore = 500
        result = queues.start_construction(state, "farm_lv2")
        assert not result.success
        assert "farm_lv1" in result.message

    def test_insufficient_resources(self, queues, state):
        state.resources.gold = 50
        result = queues.start_construction(state, "farm_lv1")
        assert not result.success
        assert state.resources.gold == 50

    def test_max_count(self, queues, state):
        state.resources.gold = 10000
        assert queues.start_construction(state, "market")
        queues.advance(state, 120)
        assert state.count_buildings("market") == 1

        result = queues.start_construction(state, "market")
        assert not result.success
        assert state.resources.gold == 9200

    def test_completion(self, queues, state):
        queues.start_construction(state, "farm_lv1")
        assert queues.advance(state, 29) == []
        assert state.buildings == []

        events = queues.advance(state, 1)
        assert state.built_ids() == ["farm_lv1"]
        assert state.construction_queue == []
        assert "Farm Lv1" in events[0]
        assert state.event_log[0].message == events[0]

    def test_speed_bonus(self, queues, state):
        research(state, "masonry")
        queues.start_construction(state, "farm_lv1")
        queues.advance(state, 24)
        assert state.built_ids() == ["farm_lv1"]

    def test_building_counts_as_prerequisite(self, queues, state):
        state.resources.gold = 2000
        state.resources.ore = 100
        queues.start_construction(state, "farm_lv1")
        queues.advance(state, 30)
        assert queues.start_construction(state, "farm_lv2")

    def test_cancel_refunds_half(self, queues, state):
        queues.start_construction(state, "farm_lv1")
        assert queues.cancel_construction(state, 0)
        assert state.resources.gold == 450
        assert state.construction_queue == []
        assert not queues.cancel_construction(state, 0)


class TestResearch:
    def test_research_completes(self, queues, state):
        assert queues.start_research(state, "crop_rotation")
        assert state.resources.gold == 350
        queues.advance(state, 40)
        assert state.is_researched("crop_rotation")
        assert state.research_queue == []

    def test_already_researched(self, queues, state):
        research(state, "crop_rotation")
        assert not queues.start_research(state, "crop_rotation")

    def test_duplicate_in_queue(self, queues, state):
        research(state, "taxation", "scholarship")
        assert queues.start_research(state, "crop_rotation")
        result = queues.start_research(state, "crop_rotation")
        assert not result.success
        assert "already" in result.message

    def test_prerequisites(self, queues, state):
        state.resources.gold = 5000
        result = queues.start_research(state, "engineering")
        assert not result.success
        assert "masonry" in result.message

    def test_research_queue_capacity(self, queues, state):
        state.resources.gold = 5000
        assert queues.start_research(state, "crop_rotation")
        assert not queues.start_research(state, "masonry")

    def test_slot_technology_message(self, queues, state):
        state.resources.gold = 5000
        research(state, "taxation")
        queues.start_research(state, "scholarship")
        events = queues.advance(state, 100)
        assert queues.research_cap(state) == 2
        assert any("2 projects" in e for e in events)

    def test_unlock_building_message(self, queues, state):
        state.resources.gold = 5000
        research(state, "taxation", "scholarship")
        queues.start_research(state, "magic_theory")
        events = queues.advance(state, 150)
        assert state.is_researched("magic_theory")
        assert any("Magic Tower Lv1" in e for e in events)

    def test_cancel_research(self, queues, state):
        queues.start_research(state, "crop_rotation")
        assert queues.cancel_research(state, 0)
        assert state.resources.gold == 425
