"""
End-to-end tests driving the GameEngine the way a UI would.
"""

import pytest

from config import GameConfig
from economy import maintenance, tax_income
from engine import GameEngine
from scheduler import ManualClock
from state import check_invariants


class DeferredPresenter:
    def __init__(self):
        self.callbacks = []

    def present_event(self, event, on_choice):
        self.callbacks.append(on_choice)


@pytest.fixture
def config():
    return GameConfig(event_chance=0.0)


@pytest.fixture
def engine(config):
    engine = GameEngine(config, seed=42)
    engine.toggle_pause()
    engine.set_speed(10)
    return engine


class TestObservation:
    def test_new_game_starts_paused(self, config):
        engine = GameEngine(config, seed=1)
        assert engine.state.is_paused
        assert engine.tick(1.0) == []
        assert engine.state.day == 1

    def test_state_is_a_copy(self, engine):
        snapshot = engine.state
        snapshot.resources.gold = 0
        snapshot.ai_nations.clear()
        assert engine.state.resources.gold == 500
        assert len(engine.state.ai_nations) == 5

    def test_subscribers_get_copies(self, engine):
        seen = []
        unsubscribe = engine.subscribe(seen.append)
        engine.tick(1.0)
        assert len(seen) == 1
        seen[0].resources.gold = -1
        assert engine.state.resources.gold != -1

        unsubscribe()
        engine.tick(1.0)
        assert len(seen) == 1

    def test_zero_tick_changes_nothing(self, engine):
        seen = []
        engine.subscribe(seen.append)
        assert engine.tick(0) == []
        assert engine.state.day == 1
        assert seen == []

    def test_failed_command_is_silent(self, engine):
        seen = []
        engine.subscribe(seen.append)
        assert not engine.start_construction("castle")
        assert seen == []
        assert engine.start_construction("farm_lv1")
        assert len(seen) == 1


class TestTime:
    def test_first_day(self, engine, config):
        state = engine.state
        expected_gold = 500 + (tax_income(state, config) - maintenance(state, config)) / 30

        engine.tick(1.0)

        state = engine.state
        assert state.day == pytest.approx(2.0)
        assert state.resources.food == 94
        assert state.resources.gold == pytest.approx(expected_gold)
        assert engine.history[-1]["day"] == 2

    def test_step_uses_clock(self, config):
        clock = ManualClock()
        engine = GameEngine(config, seed=1, clock=clock)
        engine.toggle_pause()
        engine.set_speed(10)

        assert engine.step() == []
        clock.advance(1.0)
        engine.step()
        assert engine.state.day == pytest.approx(2.0)

    def test_construction_progresses_with_speed(self, engine):
        engine.start_construction("farm_lv1")
        engine.tick(1.0)
        engine.tick(1.0)
        assert engine.state.construction_queue[0].remaining_time == pytest.approx(10)
        engine.tick(1.0)
        assert engine.state.built_ids() == ["farm_lv1"]

    def test_long_run_keeps_invariants(self):
        engine = GameEngine(GameConfig(), seed=7)
        engine.toggle_pause()
        engine.set_speed(10)
        for _ in range(240):
            engine.tick(1.0)
            state = engine.state
            assert check_invariants(state) == []
            if state.current_battle is not None and state.current_battle.is_over:
                engine.close_battle()
            if state.is_finished:
                break
        assert len(engine.history) > 0

    def test_same_seed_same_reign(self):
        runs = []
        for _ in range(2):
            engine = GameEngine(GameConfig(event_chance=0.5), seed=99)
            engine.toggle_pause()
            engine.set_speed(10)
            for _ in range(90):
                engine.tick(1.0)
            runs.append(engine.history)
        assert runs[0] == runs[1]


class TestEvents:
    def test_event_pauses_the_clock(self):
        presenter = DeferredPresenter()
        engine = GameEngine(GameConfig(event_chance=1.0), presenter=presenter, seed=3)
        engine.toggle_pause()
        engine.set_speed(10)

        engine.tick(1.0)
        assert engine.state.is_event_paused
        day = engine.state.day
        assert engine.tick(1.0) == []
        assert engine.state.day == day

        seen = []
        engine.subscribe(seen.append)
        presenter.callbacks[-1](0)
        assert len(seen) == 1
        assert not engine.state.is_event_paused


class TestCommands:
    def test_tax_rate_bounds(self, engine):
        assert engine.set_tax_rate(0.3)
        assert engine.state.tax_rate == 0.3
        assert not engine.set_tax_rate(0.6)
        assert not engine.set_tax_rate(-0.1)

    def test_speed_must_be_known(self, engine):
        assert not engine.set_speed(3)
        assert engine.state.game_speed == 10

    def test_pause_toggles(self, engine):
        assert engine.state.is_paused is False
        engine.toggle_pause()
        assert engine.state.is_paused

    def test_assign_population(self, engine):
        assert engine.assign_population("miners", 2)
        assert engine.state.population.miners == 2

    def test_failed_espionage_is_published(self, engine):
        seen = []
        engine.subscribe(seen.append)
        assert not engine.execute_espionage("assassinate", engine.state.ai_nations[0].id)
        assert len(seen) == 1


    def test_treaty_commands_reject_unknown_nation(self, engine):
        for result in (engine.sign_treaty("nation_99", "trade"),
                       engine.propose_trade_agreement("nation_99")):
            assert not result.success
            assert "Unknown nation" in result.message

    def test_treaty_commands_reject_fallen_nation(self, engine):
        nation = engine._state.ai_nations[0]
        nation.is_defeated = True
        nation.relation_with_player = 100
        for result in (engine.sign_treaty(nation.id, "trade"),
                       engine.propose_trade_agreement(nation.id)):
            assert not result.success
            assert "no longer exists" in result.message
        assert nation.treaties == []

    def test_treaty_commands_reject_enemy_at_war(self, engine):
        nation = engine._state.ai_nations[0]
        nation.is_at_war = True
        nation.relation_with_player = 100
        for result in (engine.sign_treaty(nation.id, "nonAggression"),
                       engine.propose_trade_agreement(nation.id)):
            assert not result.success
            assert "at war" in result.message
        assert nation.relation_with_player == 100


class TestEndOfReign:
    def test_victory_pauses_and_freezes(self, engine):
        for nation in engine._state.ai_nations:
            nation.is_defeated = True

        events = engine.tick(1.0)

        state = engine.state
        assert "victory: conquest" in events
        assert state.victory
        assert state.is_paused
        assert engine.tick(1.0) == []
        assert engine.state.day == state.day

    def test_commands_rejected_after_end(self, engine):
        engine._state.game_over = True
        result = engine.start_construction("farm_lv1")
        assert not result.success
        assert result.message == "The reign has ended"
        assert not engine.toggle_pause()
        assert engine.state.resources.gold == 500

    def test_new_game_keeps_prestige(self, engine):
        engine._state.game_over = True
        engine._state.permanent.points = 40
        assert engine.purchase_upgrade("granary_stock")

        state = engine.new_game()

        assert not state.is_finished
        assert state.day == 1
        assert state.resources.food == 300
        assert state.permanent.points == 10
        assert state.permanent.upgrades == ["granary_stock"]
        assert engine.history == []
