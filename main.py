"""
Realm Simulation
Main entry point for running a reign headless: a simple steward manages the
realm while a rich dashboard shows its progress. The game is autosaved as
JSON and the run can be charted and written up as an HTML chronicle.
"""

import argparse
from pathlib import Path
import numpy as np

from rich.console import Console
from rich.live import Live
from rich.table import Table
from rich.layout import Layout
from rich.panel import Panel
from rich.prompt import IntPrompt

from config import GameConfig
from engine import GameEngine
from economy import food_consumption, monthly_summary
from events import AutoPresenter, RandomPresenter
from logger import setup_logger
from persistence import save_game, load_game
from reporting import ReportGenerator
from scheduler import ManualClock
from state import GameState, format_day, format_game_time
from viz import Visualizer

logger = None
console = Console()


def parse_args() -> argparse.Namespace:
    """Parse command-line arguments for the run."""
    parser = argparse.ArgumentParser(
        description="Real-time nation management simulation"
    )
    parser.add_argument(
        "--days", type=int, default=360,
        help="Number of simulated days to run (default: 360)"
    )
    parser.add_argument(
        "--speed", type=int, choices=[1, 2, 5, 10, 20], default=20,
        help="Game speed multiplier (default: 20)"
    )
    parser.add_argument(
        "--seed", type=int, default=None,
        help="Random seed for reproducibility"
    )
    parser.add_argument(
        "--presenter", choices=["auto", "random", "ask"], default="auto",
        help="How event choices are made (default: auto, always the first choice)"
    )
    parser.add_argument(
        "--resume", action="store_true",
        help="Continue from the autosave in the output directory"
    )
    parser.add_argument(
        "--output-dir", type=str, default="output",
        help="Directory for output files (default: output)"
    )
    parser.add_argument(
        "--log-level", choices=["DEBUG", "INFO", "WARNING", "ERROR"], default="WARNING",
        help="Logging verbosity level (default: WARNING)"
    )
    parser.add_argument(
        "--no-viz", action="store_true",
        help="Skip plot and report generation"
    )
    return parser.parse_args()


class ConsolePresenter:
    """Asks the player on the terminal."""

    def present_event(self, event, on_choice):
        console.print(Panel(event.description, title=event.title, style="yellow"))
        for i, text in enumerate(event.choices):
            console.print(f"  [{i}] {text}")
        choice = IntPrompt.ask("Your choice", choices=[str(i) for i in range(len(event.choices))])
        on_choice(choice)


class Steward:
    """A cautious automatic ruler used for headless runs."""

    BUILD_ORDER = ["farm_lv1", "mine_lv1", "workshop_lv1", "market", "farm_lv2", "barracks"]
    RESEARCH_ORDER = ["crop_rotation", "masonry", "taxation", "archery", "iron_smelting", "scholarship"]

    def __init__(self, engine: GameEngine):
        self.engine = engine

    def manage(self, state: GameState):
        engine = self.engine
        pop = state.population

        # Feed the realm first, then put idle hands to work
        if pop.unemployed > 0:
            if state.resources.food < food_consumption(state, engine.config) * 7:
                engine.assign_population("farmers", pop.farmers + 1)
            elif pop.miners < pop.farmers // 3:
                engine.assign_population("miners", pop.miners + 1)
            elif pop.soldiers < pop.total // 5:
                engine.assign_population("soldiers", pop.soldiers + 1)
            else:
                engine.assign_population("craftsmen", pop.craftsmen + 1)

        if not state.construction_queue:
            for building_id in self.BUILD_ORDER:
                if engine.start_construction(building_id).success:
                    break
        if not state.research_queue:
            for tech_id in self.RESEARCH_ORDER:
                if engine.start_research(tech_id).success:
                    break

        battle = state.current_battle
        if battle is not None and battle.is_over:
            engine.close_battle()


def create_dashboard(state: GameState, total_days: int, summary: dict, events):
    """Create a rich layout dashboard."""
    layout = Layout()
    layout.split_column(
        Layout(name="header", size=3),
        Layout(name="main", ratio=1),
        Layout(name="footer", size=3)
    )

    layout["header"].update(Panel(
        f"Realm - {format_day(state.day)} {format_game_time(state.day)} / {total_days}",
        style="bold blue"))

    table = Table(title="Realm")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="green")
    res = state.resources
    table.add_row("Gold", f"{res.gold:.0f} ({summary['net']:+.0f}/month)")
    table.add_row("Food", f"{res.food:.0f}")
    table.add_row("Ore / Weapons / Armor", f"{res.ore:.0f} / {res.weapons:.0f} / {res.armor:.0f}")
    table.add_row("Mana", f"{res.mana:.0f}")
    table.add_row("Population", str(state.population.total))
    table.add_row("Satisfaction", str(state.satisfaction))
    table.add_row("Soldiers", f"{state.military.total_soldiers} (morale {state.military.morale})")
    table.add_row("Rivals standing", str(len(state.surviving_nations())))

    event_text = "\n".join([f"• {e}" for e in events[-10:]]) if events else "No events yet."

    layout["main"].split_row(
        Layout(Panel(table, title="Stats"), ratio=1),
        Layout(Panel(event_text, title="Recent Events", style="yellow"), ratio=2)
    )

    battle = state.current_battle
    if battle is not None and not battle.is_over:
        status = (f"Battle vs {battle.target_nation_name}: "
                  f"{battle.player.total} vs {battle.enemy.total}")
    else:
        status = "Running simulation..."
    layout["footer"].update(Panel(status, style="italic"))
    return layout


def main():
    """Run a reign with a live dashboard, then save, chart and report it."""
    global logger
    args = parse_args()
    logger = setup_logger(level_name=args.log_level)

    output_dir = Path(args.output_dir)
    output_dir.mkdir(exist_ok=True)
    save_path = output_dir / "savegame.json"

    config = GameConfig()
    rng = np.random.default_rng(args.seed)
    if args.presenter == "ask":
        presenter = ConsolePresenter()
    elif args.presenter == "random":
        presenter = RandomPresenter(rng)
    else:
        presenter = AutoPresenter()

    clock = ManualClock()
    engine = GameEngine(config, presenter=presenter, rng=rng, clock=clock)
    if args.resume:
        snapshot = load_game(save_path)
        if snapshot is not None:
            engine.deserialize(snapshot)
            console.print(f"[bold green]Resumed from {save_path}[/bold green]")

    engine.set_speed(args.speed)
    if engine.state.is_paused:
        engine.toggle_pause()

    steward = Steward(engine)
    recent_events = []
    target_day = int(engine.state.day) + args.days
    console.print(f"[bold green]Running the realm for {args.days} days...[/bold green]")

    engine.step()
    with Live(console=console, refresh_per_second=4, transient=args.presenter == "ask") as live:
        last_day = int(engine.state.day)
        while True:
            state = engine.state
            if state.is_finished or state.day >= target_day:
                break
            clock.advance(config.max_elapsed_seconds)
            recent_events.extend(str(e) for e in engine.step())
            recent_events = recent_events[-20:]

            state = engine.state
            if int(state.day) != last_day:
                last_day = int(state.day)
                steward.manage(state)
                if last_day % config.days_per_month == 0:
                    save_game(save_path, engine.serialize())
                live.update(create_dashboard(state, target_day, monthly_summary(state, config),
                                             recent_events))

    state = engine.state
    save_game(save_path, engine.serialize())
    console.print(f"[bold green]Game saved to {save_path}[/bold green]")
    if state.victory:
        console.print(f"[bold green]Victory: {state.victory_type}[/bold green]")
    elif state.game_over:
        console.print(f"[bold red]Defeat: {state.game_over_reason}[/bold red]")

    if not args.no_viz and engine.history:
        console.print("[bold yellow]Generating final report...[/bold yellow]")
        visualizer = Visualizer(config)
        visualizer.plot_timeline_analysis(engine.history, output_dir / "timeline_analysis.png")
        visualizer.plot_rivals(state, output_dir / "rivals.png")
        report_path = ReportGenerator(config).generate_report(engine.history, state, output_dir)
        console.print(f"[bold green]Report generated at: {report_path}[/bold green]")

    console.print("[bold blue]Simulation complete![/bold blue]")


if __name__ == "__main__":
    main()
