"""
Canonical game state.

Every simulated entity lives in one GameState aggregate. Systems mutate it in
place; the engine hands copies to the outside world so callers cannot poke at
nested fields between engine calls.
"""

from __future__ import annotations

from dataclasses import dataclass, field, asdict, fields
from typing import Dict, List, Optional, Any
import math

from numpy.random import Generator

from catalog import (
    Effect,
    get_building,
    get_technology,
    get_specialist,
    get_hero,
    TECHNOLOGIES,
)
from config import GameConfig, NATION_TEMPLATES, PRESTIGE_UPGRADES, LOSS_PRIORITY

UNIT_TYPES = ("infantry", "archers", "cavalry", "mage_warriors")


@dataclass
class Result:
    """Outcome of a player command. Validation failures never raise."""

    success: bool
    message: str = ""

    @classmethod
    def ok(cls, message: str = "") -> "Result":
        return cls(True, message)

    @classmethod
    def fail(cls, message: str) -> "Result":
        return cls(False, message)

    def __bool__(self) -> bool:
        return self.success


@dataclass
class Resources:
    gold: float = 0.0
    food: float = 0.0
    ore: float = 0.0
    mana: float = 0.0
    weapons: float = 0.0
    armor: float = 0.0

    def total_wealth(self) -> float:
        """Sum of every stockpile; debt counts against it."""
        return self.gold + self.food + self.ore + self.mana + self.weapons + self.armor


@dataclass
class Population:
    total: int = 0
    farmers: int = 0
    miners: int = 0
    craftsmen: int = 0
    soldiers: int = 0
    unemployed: int = 0

    def partition_sum(self) -> int:
        return self.farmers + self.miners + self.craftsmen + self.soldiers + self.unemployed

    @property
    def civilians(self) -> int:
        return self.total - self.soldiers


@dataclass
class Military:
    total_soldiers: int = 0
    infantry: int = 0
    archers: int = 0
    cavalry: int = 0
    mage_warriors: int = 0
    morale: int = 70
    equipment_rate: int = 50

    @property
    def assigned(self) -> int:
        return sum(getattr(self, unit) for unit in UNIT_TYPES)


@dataclass
class Building:
    """A completed building. Static data is joined from the catalog."""

    id: str
    built_at: float = 0.0

    @property
    def definition(self):
        return get_building(self.id)

    @property
    def effect(self) -> Effect:
        return self.definition.effect


@dataclass
class ConstructionOrder:
    building_id: str
    remaining_time: float
    start_day: float = 0.0


@dataclass
class Technology:
    id: str
    is_researched: bool = False
    researched_at: Optional[float] = None

    @property
    def definition(self):
        return get_technology(self.id)

    @property
    def effect(self) -> Effect:
        return self.definition.effect


@dataclass
class ResearchOrder:
    tech_id: str
    remaining_time: float
    start_day: float = 0.0


@dataclass
class Specialist:
    id: str
    template_id: str
    hired_at: float = 0.0

    @property
    def template(self):
        return get_specialist(self.template_id)


@dataclass
class Hero:
    id: str
    template_id: str
    hired_at: float = 0.0
    is_deployed: bool = False

    @property
    def template(self):
        return get_hero(self.template_id)


@dataclass
class ActiveEffect:
    """Timed bonus, usually from a spell or an event choice."""

    source: str
    type: str
    value: float
    remaining_days: int


@dataclass
class Treaty:
    type: str  # "trade", "nonAggression", "alliance"
    duration: int  # remaining days
    started_at: float = 0.0


@dataclass
class AINation:
    id: str
    name: str
    personality: str
    population: float
    military_power: float
    economic_power: float
    relation_with_player: float = 0.0
    treaties: List[Treaty] = field(default_factory=list)
    is_at_war: bool = False
    aggressiveness: int = 50
    expansion_desire: int = 50
    last_action_day: float = -1e9
    is_defeated: bool = False

    def has_treaty(self, treaty_type: str) -> bool:
        return any(t.type == treaty_type for t in self.treaties)


@dataclass
class BattleSide:
    total: int
    initial_total: int
    combat_power: int
    initial_power: int
    morale: int


@dataclass
class BattleLogEntry:
    time: float  # simulated seconds since battle start
    message: str
    type: str = "info"  # info, important, critical, victory, defeat


@dataclass
class Battle:
    id: str
    target_nation_id: str
    target_nation_name: str
    is_defensive: bool
    player: BattleSide
    enemy: BattleSide
    composition: Dict[str, int] = field(default_factory=dict)
    elapsed_time: float = 0.0
    time_since_round: float = 0.0
    rounds: int = 0
    battle_log: List[BattleLogEntry] = field(default_factory=list)
    deployed_hero_ids: List[str] = field(default_factory=list)
    result: str = "ongoing"  # ongoing, victory, defeat, retreat
    spoils: Dict[str, float] = field(default_factory=dict)

    @property
    def is_over(self) -> bool:
        return self.result != "ongoing"


@dataclass
class LogEntry:
    day: int
    time: str
    type: str
    message: str
    priority: str = "normal"


@dataclass
class PendingEvent:
    """An event waiting for (or awaiting) a player choice."""

    event_id: str
    payload: Dict[str, Any] = field(default_factory=dict)


@dataclass
class PermanentData:
    """Carried across playthroughs (New Game+)."""

    total_days_played: float = 0.0
    clear_count: int = 0
    points: int = 0
    upgrades: List[str] = field(default_factory=list)


@dataclass
class GameState:
    day: float = 1.0
    game_speed: int = 1
    is_paused: bool = True
    is_event_paused: bool = False

    resources: Resources = field(default_factory=Resources)
    population: Population = field(default_factory=Population)
    satisfaction: int = 60
    tax_rate: float = 0.15

    military: Military = field(default_factory=Military)

    buildings: List[Building] = field(default_factory=list)
    construction_queue: List[ConstructionOrder] = field(default_factory=list)
    technologies: List[Technology] = field(default_factory=list)
    research_queue: List[ResearchOrder] = field(default_factory=list)

    specialists: List[Specialist] = field(default_factory=list)
    heroes: List[Hero] = field(default_factory=list)
    active_effects: List[ActiveEffect] = field(default_factory=list)

    ai_nations: List[AINation] = field(default_factory=list)
    reputation: float = 0.0

    current_battle: Optional[Battle] = None

    event_log: List[LogEntry] = field(default_factory=list)
    active_event: Optional[PendingEvent] = None
    pending_events: List[PendingEvent] = field(default_factory=list)

    bankruptcy_days: int = 0
    low_satisfaction_days: int = 0
    conquests: int = 0

    victory: bool = False
    victory_type: Optional[str] = None
    game_over: bool = False
    game_over_reason: Optional[str] = None

    permanent: PermanentData = field(default_factory=PermanentData)
    next_id: int = 1

    # --- helpers -----------------------------------------------------------

    @property
    def is_finished(self) -> bool:
        return self.victory or self.game_over

    def allocate_id(self, prefix: str) -> str:
        """Return a unique id for a newly created entity."""
        new_id = f"{prefix}_{self.next_id}"
        self.next_id += 1
        return new_id

    def get_nation(self, nation_id: str) -> Optional[AINation]:
        for nation in self.ai_nations:
            if nation.id == nation_id:
                return nation
        return None

    def get_technology(self, tech_id: str) -> Optional[Technology]:
        for tech in self.technologies:
            if tech.id == tech_id:
                return tech
        return None

    def researched_ids(self) -> List[str]:
        return [t.id for t in self.technologies if t.is_researched]

    def is_researched(self, tech_id: str) -> bool:
        tech = self.get_technology(tech_id)
        return tech is not None and tech.is_researched

    def built_ids(self) -> List[str]:
        return [b.id for b in self.buildings]

    def count_buildings(self, building_id: str) -> int:
        return sum(1 for b in self.buildings if b.id == building_id)

    def surviving_nations(self) -> List[AINation]:
        return [n for n in self.ai_nations if not n.is_defeated]

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GameState":
        """Rebuild a state from a fully migrated snapshot dict."""
        battle = data.get("current_battle")
        active = data.get("active_event")
        return cls(
            **_scalars(cls, data),
            resources=_build(Resources, data["resources"]),
            population=_build(Population, data["population"]),
            military=_build(Military, data["military"]),
            buildings=[_build(Building, b) for b in data["buildings"] if get_building(b["id"])],
            construction_queue=[_build(ConstructionOrder, c) for c in data["construction_queue"]],
            technologies=_merge_technologies(data["technologies"]),
            research_queue=[_build(ResearchOrder, r) for r in data["research_queue"]],
            specialists=[_build(Specialist, s) for s in data["specialists"]],
            heroes=[_build(Hero, h) for h in data["heroes"]],
            active_effects=[_build(ActiveEffect, e) for e in data["active_effects"]],
            ai_nations=[_build_nation(n) for n in data["ai_nations"]],
            current_battle=_build_battle(battle) if battle else None,
            event_log=[_build(LogEntry, e) for e in data["event_log"]],
            active_event=_build(PendingEvent, active) if active else None,
            pending_events=[_build(PendingEvent, e) for e in data["pending_events"]],
            permanent=_build(PermanentData, data["permanent"]),
        )


_NESTED_FIELDS = {
    "resources", "population", "military", "buildings", "construction_queue",
    "technologies", "research_queue", "specialists", "heroes", "active_effects",
    "ai_nations", "current_battle", "event_log", "active_event", "pending_events",
    "permanent",
}


def _scalars(cls, data: Dict[str, Any]) -> Dict[str, Any]:
    names = {f.name for f in fields(cls)} - _NESTED_FIELDS
    return {k: v for k, v in data.items() if k in names}


def _build(cls, data: Dict[str, Any]):
    names = {f.name for f in fields(cls)}
    return cls(**{k: v for k, v in data.items() if k in names})


def _build_nation(data: Dict[str, Any]) -> AINation:
    nation = _build(AINation, {k: v for k, v in data.items() if k != "treaties"})
    nation.treaties = [_build(Treaty, t) for t in data.get("treaties", [])]
    return nation


def _build_battle(data: Dict[str, Any]) -> Battle:
    rest = {k: v for k, v in data.items() if k not in ("player", "enemy", "battle_log")}
    return _build(Battle, dict(
        rest,
        player=_build(BattleSide, data["player"]),
        enemy=_build(BattleSide, data["enemy"]),
        battle_log=[_build(BattleLogEntry, e) for e in data.get("battle_log", [])],
    ))


def _merge_technologies(saved: List[Dict[str, Any]]) -> List[Technology]:
    """Join saved research flags against the current catalog."""
    flags = {t["id"]: t for t in saved}
    techs = []
    for definition in TECHNOLOGIES:
        entry = flags.get(definition.id, {})
        techs.append(Technology(
            id=definition.id,
            is_researched=bool(entry.get("is_researched", False)),
            researched_at=entry.get("researched_at"),
        ))
    return techs


# ---------------------------------------------------------------------------
# Log and time helpers


def format_game_time(day: float) -> str:
    """Time of day as HH:MM."""
    fraction = day % 1
    hours = int(fraction * 24)
    minutes = int((fraction * 24 - hours) * 60)
    return f"{hours:02d}:{minutes:02d}"


def format_day(day: float) -> str:
    return f"Day {int(math.floor(day))}"


def add_log(state: GameState, message: str, log_type: str = "domestic",
            priority: str = "normal", capacity: int = 50) -> None:
    """Prepend a log entry, dropping the oldest beyond capacity."""
    entry = LogEntry(
        day=int(math.floor(state.day)),
        time=format_game_time(state.day),
        type=log_type,
        message=message,
        priority=priority,
    )
    state.event_log.insert(0, entry)
    del state.event_log[capacity:]


# ---------------------------------------------------------------------------
# Population bookkeeping shared by economy, population and combat


def remove_people(state: GameState, count: int, order: List[str] = LOSS_PRIORITY) -> int:
    """
    Remove up to `count` people following the loss priority order.
    Returns the number actually removed. Keeps soldiers mirrored.
    """
    pop = state.population
    remaining = max(0, int(count))
    removed = 0
    for job in order:
        if remaining <= 0:
            break
        available = getattr(pop, job)
        taken = min(available, remaining)
        if taken <= 0:
            continue
        setattr(pop, job, available - taken)
        remaining -= taken
        removed += taken
        if job == "soldiers":
            remove_soldiers_from_units(state, taken)
    pop.total -= removed
    state.military.total_soldiers = pop.soldiers
    return removed


def remove_soldiers_from_units(state: GameState, count: int) -> None:
    """
    Shrink the unit breakdown after `count` soldiers were lost.
    Soldiers outside any unit go first, then losses are spread in proportion.
    """
    mil = state.military
    assigned = mil.assigned
    unassigned = max(0, mil.total_soldiers - assigned)
    remaining = max(0, count - unassigned)
    if remaining <= 0 or assigned <= 0:
        return
    remaining = min(remaining, assigned)
    losses = {}
    for unit in UNIT_TYPES:
        losses[unit] = (getattr(mil, unit) * remaining) // assigned
    leftover = remaining - sum(losses.values())
    for unit in UNIT_TYPES:
        if leftover <= 0:
            break
        spare = getattr(mil, unit) - losses[unit]
        extra = min(spare, leftover)
        losses[unit] += extra
        leftover -= extra
    for unit, lost in losses.items():
        setattr(mil, unit, getattr(mil, unit) - lost)


def check_invariants(state: GameState) -> List[str]:
    """Return a list of violated invariants (empty when consistent)."""
    problems = []
    pop = state.population
    if pop.total != pop.partition_sum():
        problems.append(f"population total {pop.total} != parts {pop.partition_sum()}")
    if state.military.total_soldiers != pop.soldiers:
        problems.append("military.total_soldiers does not mirror population.soldiers")
    mil = state.military
    if mil.assigned > mil.total_soldiers:
        problems.append("unit breakdown exceeds total soldiers")
    for name in ("food", "ore", "mana", "weapons", "armor"):
        if getattr(state.resources, name) < 0:
            problems.append(f"resource {name} is negative")
    for name in ("farmers", "miners", "craftsmen", "soldiers", "unemployed"):
        if getattr(pop, name) < 0:
            problems.append(f"population bucket {name} is negative")
    if state.victory and state.game_over:
        problems.append("victory and game_over both set")
    return problems


# ---------------------------------------------------------------------------
# Initial state


def create_initial_nations(config: GameConfig, rng: Generator) -> List[AINation]:
    """Pick rival nations from the fixed template roster."""
    order = rng.permutation(len(NATION_TEMPLATES))[:config.starting_nations]
    nations = []
    for i, index in enumerate(order, start=1):
        template = NATION_TEMPLATES[int(index)]
        nations.append(AINation(
            id=f"nation_{i}",
            name=template["name"],
            personality=template["personality"],
            population=float(template["population"]),
            military_power=float(template["military_power"]),
            economic_power=float(template["population"] // 2),
            aggressiveness=template["aggressiveness"],
            expansion_desire=template["expansion_desire"],
        ))
    return nations


def create_initial_state(config: GameConfig, rng: Generator,
                         permanent: Optional[PermanentData] = None) -> GameState:
    """Build a fresh game, applying any prestige upgrades already bought."""
    initial_farmers = int(config.initial_population * 0.5)
    initial_soldiers = int(config.initial_population * 0.2)
    initial_unemployed = config.initial_population - initial_farmers - initial_soldiers

    state = GameState(
        resources=Resources(
            gold=config.initial_gold,
            food=config.initial_food,
            ore=config.initial_ore,
            mana=0,
            weapons=config.initial_weapons,
            armor=config.initial_armor,
        ),
        population=Population(
            total=config.initial_population,
            farmers=initial_farmers,
            soldiers=initial_soldiers,
            unemployed=initial_unemployed,
        ),
        satisfaction=config.initial_satisfaction,
        tax_rate=config.default_tax_rate,
        military=Military(
            total_soldiers=initial_soldiers,
            infantry=initial_soldiers,
            morale=config.initial_morale,
            equipment_rate=config.initial_equipment_rate,
        ),
        technologies=[Technology(id=t.id) for t in TECHNOLOGIES],
        ai_nations=create_initial_nations(config, rng),
        permanent=permanent if permanent is not None else PermanentData(),
    )
    _apply_upgrades(state)
    add_log(state, "The realm is founded. Build your nation from a handful of settlers.",
            "important", capacity=config.event_log_capacity)
    return state


def _apply_upgrades(state: GameState) -> None:
    for upgrade_id in state.permanent.upgrades:
        upgrade = PRESTIGE_UPGRADES.get(upgrade_id)
        if upgrade is None:
            continue
        target, amount = upgrade["resource"], upgrade["amount"]
        if target in ("soldiers", "unemployed"):
            setattr(state.population, target, getattr(state.population, target) + amount)
            state.population.total += amount
            if target == "soldiers":
                state.military.total_soldiers = state.population.soldiers
                state.military.infantry += amount
        else:
            setattr(state.resources, target, getattr(state.resources, target) + amount)
