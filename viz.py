"""
Visualization module for charts of a reign.
Generates matplotlib-based plots from the engine's daily history and state.
"""

from typing import List
import matplotlib.pyplot as plt
import numpy as np
from pathlib import Path

from config import GameConfig
from state import GameState


class Visualizer:
    """Handles all visualization and plotting."""

    def __init__(self, config: GameConfig):
        self.config = config

    def plot_timeline_analysis(self, history: List[dict], output_path: Path):
        """Generate timeline analysis plots."""
        days = [h['day'] for h in history]

        fig, axes = plt.subplots(2, 2, figsize=(16, 12))
        fig.suptitle('Reign Timeline Analysis', fontsize=16, fontweight='bold')

        # Treasury and wealth
        axes[0, 0].plot(days, [h['gold'] for h in history], linewidth=2, color='goldenrod', label='Gold')
        axes[0, 0].plot(days, [h['wealth'] for h in history], linewidth=1, color='green',
                        linestyle='--', label='Total wealth')
        axes[0, 0].axhline(y=0, color='r', linestyle=':', alpha=0.5)
        axes[0, 0].set_title('Treasury')
        axes[0, 0].set_xlabel('Day')
        axes[0, 0].set_ylabel('Gold')
        axes[0, 0].grid(True, alpha=0.3)
        axes[0, 0].legend()

        # Population and army
        axes[0, 1].plot(days, [h['population'] for h in history], linewidth=2, color='blue', label='Population')
        axes[0, 1].plot(days, [h['soldiers'] for h in history], linewidth=2, color='red', label='Soldiers')
        axes[0, 1].set_title('Population')
        axes[0, 1].set_xlabel('Day')
        axes[0, 1].set_ylabel('People')
        axes[0, 1].grid(True, alpha=0.3)
        axes[0, 1].legend()

        # Satisfaction and morale
        axes[1, 0].plot(days, [h['satisfaction'] for h in history], linewidth=2, color='purple',
                        label='Satisfaction')
        axes[1, 0].plot(days, [h['morale'] for h in history], linewidth=2, color='orange', label='Morale')
        axes[1, 0].axhline(y=self.config.satisfaction_growth_threshold, color='g', linestyle='--', alpha=0.5)
        axes[1, 0].axhline(y=self.config.satisfaction_decline_threshold, color='r', linestyle='--', alpha=0.5)
        axes[1, 0].set_ylim(0, 100)
        axes[1, 0].set_title('Satisfaction & Morale')
        axes[1, 0].set_xlabel('Day')
        axes[1, 0].grid(True, alpha=0.3)
        axes[1, 0].legend()

        # Rivals and wars, with battle days shaded
        axes[1, 1].plot(days, [h['nations_alive'] for h in history], linewidth=2, color='black',
                        label='Surviving rivals')
        axes[1, 1].plot(days, [h['at_war'] for h in history], linewidth=2, color='red', label='At war')
        battle_days = [h['day'] for h in history if h['in_battle']]
        if battle_days:
            axes[1, 1].scatter(battle_days, np.zeros(len(battle_days)), marker='|', color='darkred',
                               label='Battle')
        axes[1, 1].set_title('Rival Nations')
        axes[1, 1].set_xlabel('Day')
        axes[1, 1].grid(True, alpha=0.3)
        axes[1, 1].legend()

        plt.tight_layout()
        plt.savefig(output_path, dpi=150, bbox_inches='tight')
        plt.close()

    def plot_rivals(self, state: GameState, output_path: Path):
        """Bar chart of every rival's relation and military power."""
        nations = sorted(state.ai_nations, key=lambda n: n.military_power, reverse=True)

        fig, axes = plt.subplots(1, 2, figsize=(16, 6))
        fig.suptitle(f'Rival Nations - Day {int(state.day)}', fontsize=16, fontweight='bold')

        if not nations:
            for ax in axes:
                ax.text(0.5, 0.5, 'No rival nations', ha='center', va='center')
        else:
            names = [n.name[:20] for n in nations]
            relations = [n.relation_with_player for n in nations]
            colors = ['gray' if n.is_defeated else ('green' if r >= 0 else 'red')
                      for n, r in zip(nations, relations)]
            axes[0].barh(names, relations, color=colors)
            axes[0].set_xlim(-100, 100)
            axes[0].axvline(x=0, color='black', linewidth=0.8)
            axes[0].set_xlabel('Relation with the realm')
            axes[0].invert_yaxis()

            powers = [n.military_power for n in nations]
            bars = axes[1].barh(names, powers, color=colors)
            axes[1].set_xlabel('Military power')
            axes[1].invert_yaxis()
            for bar, power in zip(bars, powers):
                axes[1].text(power, bar.get_y() + bar.get_height() / 2,
                             f'{power:.0f}', va='center', ha='left', fontsize=8)

        plt.tight_layout()
        plt.savefig(output_path, dpi=150, bbox_inches='tight')
        plt.close()
