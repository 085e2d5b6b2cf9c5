import pytest
import matplotlib
matplotlib.use('Agg') # Non-interactive backend
from pathlib import Path
import tempfile
import numpy as np

from config import GameConfig
from engine import GameEngine
from state import create_initial_state
from viz import Visualizer


@pytest.fixture
def output_dir():
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def history():
    """Daily records from a short headless reign."""
    engine = GameEngine(GameConfig(), seed=5)
    engine.toggle_pause()
    engine.set_speed(10)
    for _ in range(45):
        engine.tick(1.0)
    return engine.history


def test_plot_timeline_analysis(history, output_dir):
    """Test the 2x2 timeline chart."""
    viz = Visualizer(GameConfig())
    output_file = output_dir / "timeline_analysis.png"

    viz.plot_timeline_analysis(history, output_file)

    assert output_file.exists()
    assert output_file.stat().st_size > 0


def test_plot_timeline_with_battle_days(history, output_dir):
    history[3]["in_battle"] = True
    output_file = output_dir / "timeline_analysis.png"
    Visualizer(GameConfig()).plot_timeline_analysis(history, output_file)
    assert output_file.exists()


def test_plot_rivals(output_dir):
    config = GameConfig()
    state = create_initial_state(config, np.random.default_rng(3))
    state.ai_nations[0].is_defeated = True
    state.ai_nations[1].relation_with_player = -40
    output_file = output_dir / "rivals.png"

    Visualizer(config).plot_rivals(state, output_file)

    assert output_file.exists()
    assert output_file.stat().st_size > 0


def test_plot_rivals_without_nations(output_dir):
    config = GameConfig()
    state = create_initial_state(config, np.random.default_rng(3))
    state.ai_nations = []
    output_file = output_dir / "rivals.png"
    Visualizer(config).plot_rivals(state, output_file)
    assert output_file.exists()


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
