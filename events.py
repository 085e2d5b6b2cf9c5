"""
Random events with branching player choices.

Once per simulated day an event may be drawn from the catalog by weight among
those whose condition holds. The dispatcher pauses the game, hands the event to
the injected presenter and waits for exactly one choice. Rival nations raise
their trade offers and tribute demands through the same protocol.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional
import logging
import math

import numpy as np
from numpy.random import Generator

from config import GameConfig
from diplomacy import add_treaty, adjust_relation, declare_war
from population import add_people
from state import GameState, PendingEvent, ActiveEffect, Result, add_log, remove_people

logger = logging.getLogger(__name__)


@dataclass
class EventContext:
    """Everything a choice effect may touch."""

    state: GameState
    rng: Generator
    config: GameConfig
    payload: Dict[str, Any]
    start_battle: Callable[[str, bool], Result]
    enqueue: Callable[[str, Dict[str, Any]], None]


@dataclass
class EventChoice:
    text: str
    effect: Callable[[EventContext], str]


@dataclass
class GameEvent:
    id: str
    title: str
    description: str  # formatted with the payload (and nation name) when shown
    choices: List[EventChoice]
    weight: float = 1.0
    condition: Optional[Callable[[GameState], bool]] = None
    is_random: bool = True  # False for events only raised by other systems


@dataclass
class PresentedEvent:
    """What a presenter gets to show."""

    id: str
    title: str
    description: str
    choices: List[str] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Choice effects


def _gain(state: GameState, resource: str, amount: float) -> None:
    value = getattr(state.resources, resource) + amount
    if resource != "gold":
        value = max(0, value)
    setattr(state.resources, resource, value)


def _harvest_store(ctx: EventContext) -> str:
    amount = 10 * ctx.state.population.farmers
    _gain(ctx.state, "food", amount)
    return f"The granaries gained {amount} food"


def _harvest_festival(ctx: EventContext) -> str:
    amount = 5 * ctx.state.population.farmers
    _gain(ctx.state, "food", amount)
    ctx.state.satisfaction = min(100, ctx.state.satisfaction + 10)
    return f"The people feasted; {amount} food was stored and spirits rose"


def _merchant_buy(ctx: EventContext) -> str:
    _gain(ctx.state, "gold", -100)
    _gain(ctx.state, "ore", 60)
    return "Bought 60 ore for 100 gold"


def _decline(ctx: EventContext) -> str:
    return "Nothing came of it"


def _refugees_accept(ctx: EventContext) -> str:
    count = int(ctx.rng.integers(3, 9))
    add_people(ctx.state, count)
    ctx.state.reputation = min(100, ctx.state.reputation + 5)
    return f"{count} refugees settled in the realm"


def _refugees_reject(ctx: EventContext) -> str:
    ctx.state.reputation = max(-100, ctx.state.reputation - 5)
    return "The refugees were turned away"


def _plague_quarantine(ctx: EventContext) -> str:
    _gain(ctx.state, "gold", -80)
    lost = remove_people(ctx.state, int(math.ceil(ctx.state.population.total * 0.02)))
    return f"The quarantine cost 80 gold; {lost} people died"


def _plague_pray(ctx: EventContext) -> str:
    lost = remove_people(ctx.state, int(math.ceil(ctx.state.population.total * 0.05)))
    return f"The plague ran its course; {lost} people died"


def _bandits_fight(ctx: EventContext) -> str:
    state = ctx.state
    if state.military.total_soldiers >= 5:
        loot = int(ctx.rng.integers(50, 151))
        _gain(state, "gold", loot)
        state.military.morale = min(100, state.military.morale + 5)
        return f"The bandits were routed and {loot} gold recovered"
    _gain(state, "food", -30)
    return "The garrison was too small; the bandits made off with 30 food"


def _bandits_pay(ctx: EventContext) -> str:
    _gain(ctx.state, "gold", -100)
    return "The bandits took 100 gold and left"


def _collapse_rescue(ctx: EventContext) -> str:
    _gain(ctx.state, "gold", -50)
    return "The trapped miners were dug out for 50 gold"


def _collapse_abandon(ctx: EventContext) -> str:
    lost = remove_people(ctx.state, min(2, ctx.state.population.miners), ["miners"])
    return f"{lost} miners were lost"


def _mage_hire(ctx: EventContext) -> str:
    _gain(ctx.state, "gold", -200)
    _gain(ctx.state, "mana", 50)
    ctx.enqueue("mage_prophecy", {})
    return "The mage joined the court and shared 50 mana"


def _prophecy_heed(ctx: EventContext) -> str:
    ctx.state.active_effects.append(ActiveEffect(
        source="mage_prophecy", type="defenseBonus", value=20, remaining_days=30))
    return "Walls were reinforced (+20% defense for 30 days)"


def _prophecy_ignore(ctx: EventContext) -> str:
    ctx.state.satisfaction = max(0, ctx.state.satisfaction - 5)
    return "The court laughed the prophecy off, but the people worry"


def _festival_fund(ctx: EventContext) -> str:
    _gain(ctx.state, "gold", -150)
    ctx.state.satisfaction = min(100, ctx.state.satisfaction + 15)
    return "The festival lifted the realm's mood"


def _festival_refuse(ctx: EventContext) -> str:
    ctx.state.satisfaction = max(0, ctx.state.satisfaction - 5)
    return "The people grumble"


def _trade_accept(ctx: EventContext) -> str:
    nation = ctx.state.get_nation(ctx.payload["nation_id"])
    if nation is None or nation.is_defeated or nation.is_at_war:
        return "The envoy has already left"
    add_treaty(ctx.state, nation, "trade", ctx.config)
    adjust_relation(nation, 10)
    gift = ctx.payload.get("gift", 0)
    if gift:
        _gain(ctx.state, "gold", gift)
        return f"Trade agreement signed with {nation.name}, who sent {gift} gold as a gift"
    return f"Trade agreement signed with {nation.name}"


def _trade_decline(ctx: EventContext) -> str:
    nation = ctx.state.get_nation(ctx.payload["nation_id"])
    if nation is not None:
        adjust_relation(nation, -5)
    return "The offer was declined"


def _tribute_pay(ctx: EventContext) -> str:
    nation = ctx.state.get_nation(ctx.payload["nation_id"])
    amount = ctx.payload["amount"]
    _gain(ctx.state, "gold", -amount)
    if nation is not None:
        adjust_relation(nation, 10)
    return f"Paid {amount} gold in tribute"


def _tribute_refuse(ctx: EventContext) -> str:
    nation = ctx.state.get_nation(ctx.payload["nation_id"])
    if nation is None or nation.is_defeated:
        return "The demand was ignored"
    adjust_relation(nation, -10)
    if ctx.rng.random() < ctx.config.ai_tribute_refusal_war_chance:
        declare_war(ctx.state, nation, ctx.config)
        ctx.start_battle(nation.id, True)
        return f"{nation.name} answered the refusal with war"
    return f"{nation.name} withdrew its envoy in anger"


EVENT_CATALOG: List[GameEvent] = [
    GameEvent(
        id="bountiful_harvest",
        title="Bountiful Harvest",
        description="The fields yielded far more than expected this season.",
        choices=[EventChoice("Store the surplus", _harvest_store),
                 EventChoice("Hold a harvest festival", _harvest_festival)],
        weight=3,
        condition=lambda s: s.population.farmers > 0,
    ),
    GameEvent(
        id="wandering_merchant",
        title="Wandering Merchant",
        description="A merchant offers a cartload of ore for 100 gold.",
        choices=[EventChoice("Buy the ore", _merchant_buy),
                 EventChoice("Send the merchant away", _decline)],
        weight=2,
        condition=lambda s: s.resources.gold >= 100,
    ),
    GameEvent(
        id="refugees",
        title="Refugees at the Gate",
        description="Families fleeing a distant war ask for shelter.",
        choices=[EventChoice("Take them in", _refugees_accept),
                 EventChoice("Turn them away", _refugees_reject)],
        weight=2,
    ),
    GameEvent(
        id="plague",
        title="Plague",
        description="A sickness is spreading through the villages.",
        choices=[EventChoice("Quarantine the sick (80 gold)", _plague_quarantine),
                 EventChoice("Pray it passes", _plague_pray)],
        weight=1,
        condition=lambda s: s.population.total >= 20,
    ),
    GameEvent(
        id="bandit_raid",
        title="Bandit Raid",
        description="Bandits have been seen on the roads near the storehouses.",
        choices=[EventChoice("Send the garrison", _bandits_fight),
                 EventChoice("Pay them off (100 gold)", _bandits_pay)],
        weight=2,
    ),
    GameEvent(
        id="mine_collapse",
        title="Mine Collapse",
        description="A tunnel has caved in with miners inside.",
        choices=[EventChoice("Mount a rescue (50 gold)", _collapse_rescue),
                 EventChoice("Seal the tunnel", _collapse_abandon)],
        weight=1,
        condition=lambda s: s.population.miners > 0,
    ),
    GameEvent(
        id="wandering_mage",
        title="Wandering Mage",
        description="A travelling mage offers to serve the court for 200 gold.",
        choices=[EventChoice("Hire the mage", _mage_hire),
                 EventChoice("Decline", _decline)],
        weight=1,
        condition=lambda s: s.day >= 60 and s.resources.gold >= 200,
    ),
    GameEvent(
        id="mage_prophecy",
        title="The Mage's Prophecy",
        description="The court mage foresees an army at the walls.",
        choices=[EventChoice("Reinforce the walls", _prophecy_heed),
                 EventChoice("Ignore the warning", _prophecy_ignore)],
        is_random=False,
    ),
    GameEvent(
        id="festival_request",
        title="Call for a Festival",
        description="The people are restless and ask for a festival (150 gold).",
        choices=[EventChoice("Fund the festival", _festival_fund),
                 EventChoice("Refuse", _festival_refuse)],
        weight=1,
        condition=lambda s: s.satisfaction < 40 and s.resources.gold >= 150,
    ),
    GameEvent(
        id="ai_trade_offer",
        title="Trade Proposal",
        description="Envoys from {nation_name} propose a trade agreement.",
        choices=[EventChoice("Accept", _trade_accept),
                 EventChoice("Decline", _trade_decline)],
        is_random=False,
    ),
    GameEvent(
        id="ai_tribute_demand",
        title="Tribute Demanded",
        description="{nation_name} demands {amount} gold in tribute.",
        choices=[EventChoice("Pay", _tribute_pay),
                 EventChoice("Refuse", _tribute_refuse)],
        is_random=False,
    ),
]

_EVENTS_BY_ID = {e.id: e for e in EVENT_CATALOG}


def get_event(event_id: str) -> Optional[GameEvent]:
    return _EVENTS_BY_ID.get(event_id)


def weighted_choice(weights: List[float], rng: Generator) -> int:
    """Cumulative weight walk: index of the bucket a uniform draw falls in."""
    cumulative = np.cumsum(weights)
    draw = rng.random() * cumulative[-1]
    return int(np.searchsorted(cumulative, draw, side="right"))


# ---------------------------------------------------------------------------
# Presenters


class AutoPresenter:
    """Answers every event immediately with a fixed choice index."""

    def __init__(self, choice: int = 0):
        self.choice = choice
        self.seen: List[PresentedEvent] = []

    def present_event(self, event: PresentedEvent, on_choice: Callable[[int], None]) -> None:
        self.seen.append(event)
        on_choice(min(self.choice, len(event.choices) - 1))


class RandomPresenter:
    """Answers every event immediately with a random choice."""

    def __init__(self, rng: Generator):
        self.rng = rng

    def present_event(self, event: PresentedEvent, on_choice: Callable[[int], None]) -> None:
        on_choice(int(self.rng.integers(len(event.choices))))


# ---------------------------------------------------------------------------
# Dispatcher


class EventDispatcher:
    """Draws events and runs the pause/choice/effect protocol."""

    def __init__(self, config: GameConfig, rng: Generator, presenter,
                 start_battle: Callable[[GameState, str, bool], Result]):
        self.config = config
        self.rng = rng
        self.presenter = presenter
        self.start_battle = start_battle
        self.on_resolved: Optional[Callable[[], None]] = None

    def apply_daily(self, state: GameState) -> List[str]:
        if self.rng.random() >= self.config.event_chance:
            return []
        candidates = [e for e in EVENT_CATALOG
                      if e.is_random and (e.condition is None or e.condition(state))]
        if not candidates:
            return []
        event = candidates[weighted_choice([e.weight for e in candidates], self.rng)]
        logger.debug("Event drawn: %s", event.id)
        self.raise_event(state, event.id, {})
        return [event.title]

    def raise_event(self, state: GameState, event_id: str, payload: Dict[str, Any]) -> None:
        """Show the event now, or queue it behind the one already waiting."""
        if get_event(event_id) is None:
            raise KeyError(event_id)
        pending = PendingEvent(event_id=event_id, payload=dict(payload))
        if state.active_event is not None:
            state.pending_events.append(pending)
            return
        self._activate(state, pending)

    def resume(self, state: GameState) -> None:
        """Re-present an event that was waiting when the game was saved."""
        if state.active_event is not None:
            state.is_event_paused = True
            self.presenter.present_event(self.describe(state, state.active_event),
                                         self._make_on_choice(state, state.active_event))

    def describe(self, state: GameState, pending: PendingEvent) -> PresentedEvent:
        event = get_event(pending.event_id)
        fields = dict(pending.payload)
        nation = state.get_nation(fields.get("nation_id", ""))
        fields["nation_name"] = nation.name if nation is not None else "A rival"
        return PresentedEvent(
            id=event.id,
            title=event.title,
            description=event.description.format(**fields),
            choices=[c.text for c in event.choices],
        )

    def _activate(self, state: GameState, pending: PendingEvent) -> None:
        state.active_event = pending
        state.is_event_paused = True
        self.presenter.present_event(self.describe(state, pending),
                                     self._make_on_choice(state, pending))

    def _make_on_choice(self, state: GameState, pending: PendingEvent) -> Callable[[int], None]:
        used = []

        def on_choice(index: int) -> None:
            if used:
                raise RuntimeError(f"Event {pending.event_id} was already answered")
            event = get_event(pending.event_id)
            if not 0 <= index < len(event.choices):
                raise IndexError(f"Event {event.id} has no choice {index}")
            used.append(index)
            self._resolve(state, pending, event, index)

        return on_choice

    def _resolve(self, state: GameState, pending: PendingEvent, event: GameEvent, index: int) -> None:
        if not state.is_finished:
            ctx = EventContext(
                state=state,
                rng=self.rng,
                config=self.config,
                payload=pending.payload,
                start_battle=lambda nation_id, is_defense: self.start_battle(state, nation_id, is_defense),
                enqueue=lambda event_id, payload: self.raise_event(state, event_id, payload),
            )
            outcome = event.choices[index].effect(ctx)
            add_log(state, f"{event.title}: {outcome}", "event", capacity=self.config.event_log_capacity)
            logger.info("Event %s resolved with choice %d: %s", event.id, index, outcome)

        if state.active_event is pending:
            state.active_event = None
        state.is_event_paused = False
        if state.pending_events and state.active_event is None:
            self._activate(state, state.pending_events.pop(0))
        if self.on_resolved is not None:
            self.on_resolved()
