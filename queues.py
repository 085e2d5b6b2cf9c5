"""
Construction and research queues.

Orders are paid for when submitted and count down in simulated seconds,
scaled by the current speed bonuses. Completed orders commit their effect to
the game state.
"""

from typing import Dict, List, Callable
import logging

from catalog import (
    BUILDINGS,
    SPELLS,
    get_building,
    get_technology,
    TechnologyDefinition,
)
from config import GameConfig
from economy import bonus_percent
from state import (
    GameState,
    Result,
    Building,
    ConstructionOrder,
    ResearchOrder,
    add_log,
)

logger = logging.getLogger(__name__)


def can_afford(state: GameState, cost: Dict[str, int]) -> bool:
    return all(getattr(state.resources, name) >= amount for name, amount in cost.items())


def pay(state: GameState, cost: Dict[str, int], fraction: float = 1.0) -> None:
    for name, amount in cost.items():
        setattr(state.resources, name, getattr(state.resources, name) - amount * fraction)


def describe_cost(cost: Dict[str, int]) -> str:
    return ", ".join(f"{amount} {name}" for name, amount in cost.items())


class ProjectQueues:
    """Manages the construction and research pipelines."""

    def __init__(self, config: GameConfig):
        self.config = config
        self._tech_effects: Dict[str, Callable[[GameState, TechnologyDefinition], str]] = {
            "constructionSlots": self._on_construction_slots,
            "researchSlots": self._on_research_slots,
            "unlockBuilding": self._on_unlock_building,
            "unlockUnit": self._on_unlock_unit,
            "unlockSpell": self._on_unlock_spell,
            "ascension": self._on_ascension,
        }

    # --- capacity and speed ------------------------------------------------

    def construction_cap(self, state: GameState) -> int:
        return 1 + int(sum(t.effect.value for t in state.technologies
                           if t.is_researched and t.effect.type == "constructionSlots"))

    def research_cap(self, state: GameState) -> int:
        return 1 + int(sum(t.effect.value for t in state.technologies
                           if t.is_researched and t.effect.type == "researchSlots"))

    def construction_speed(self, state: GameState) -> float:
        return 1 + bonus_percent(state, "constructionSpeed") / 100

    def research_speed(self, state: GameState) -> float:
        return 1 + bonus_percent(state, "researchSpeed") / 100

    # --- submission --------------------------------------------------------

    def start_construction(self, state: GameState, building_id: str) -> Result:
        building = get_building(building_id)
        if building is None:
            return Result.fail(f"Unknown building: {building_id}")

        cap = self.construction_cap(state)
        if len(state.construction_queue) >= cap:
            return Result.fail(f"Construction queue is full ({cap} at a time)")

        missing = [p for p in building.prerequisite
                   if not state.is_researched(p) and p not in state.built_ids()]
        if missing:
            return Result.fail(f"Missing prerequisites: {', '.join(missing)}")

        if building.max_count is not None:
            queued = sum(1 for o in state.construction_queue if o.building_id == building_id)
            if state.count_buildings(building_id) + queued >= building.max_count:
                return Result.fail(f"{building.name} cannot be built again")

        if not can_afford(state, building.cost):
            return Result.fail(f"Insufficient resources (needs {describe_cost(building.cost)})")

        pay(state, building.cost)
        state.construction_queue.append(ConstructionOrder(
            building_id=building.id,
            remaining_time=building.build_time,
            start_day=state.day,
        ))
        add_log(state, f"Construction of {building.name} has begun",
                capacity=self.config.event_log_capacity)
        return Result.ok(f"Started building {building.name}")

    def start_research(self, state: GameState, tech_id: str) -> Result:
        tech = get_technology(tech_id)
        if tech is None:
            return Result.fail(f"Unknown technology: {tech_id}")
        if state.is_researched(tech_id):
            return Result.fail(f"{tech.name} is already researched")
        if any(o.tech_id == tech_id for o in state.research_queue):
            return Result.fail(f"{tech.name} is already being researched")

        cap = self.research_cap(state)
        if len(state.research_queue) >= cap:
            return Result.fail(f"Research queue is full ({cap} at a time)")

        missing = [p for p in tech.prerequisite if not state.is_researched(p)]
        if missing:
            return Result.fail(f"Missing prerequisites: {', '.join(missing)}")

        if not can_afford(state, tech.cost):
            return Result.fail(f"Insufficient resources (needs {describe_cost(tech.cost)})")

        pay(state, tech.cost)
        state.research_queue.append(ResearchOrder(
            tech_id=tech.id,
            remaining_time=tech.research_time,
            start_day=state.day,
        ))
        add_log(state, f"Research into {tech.name} has begun", "tech",
                capacity=self.config.event_log_capacity)
        return Result.ok(f"Started researching {tech.name}")

    def cancel_construction(self, state: GameState, index: int) -> Result:
        """Drop a queued building; half the cost is refunded."""
        if not 0 <= index < len(state.construction_queue):
            return Result.fail("No such construction order")
        order = state.construction_queue.pop(index)
        building = get_building(order.building_id)
        pay(state, building.cost, fraction=-0.5)
        add_log(state, f"Construction of {building.name} was cancelled",
                capacity=self.config.event_log_capacity)
        return Result.ok(f"Cancelled {building.name}")

    def cancel_research(self, state: GameState, index: int) -> Result:
        """Drop a queued research project; half the cost is refunded."""
        if not 0 <= index < len(state.research_queue):
            return Result.fail("No such research order")
        order = state.research_queue.pop(index)
        tech = get_technology(order.tech_id)
        pay(state, tech.cost, fraction=-0.5)
        add_log(state, f"Research into {tech.name} was cancelled", "tech",
                capacity=self.config.event_log_capacity)
        return Result.ok(f"Cancelled {tech.name}")

    # --- progress ----------------------------------------------------------

    def advance(self, state: GameState, sim_seconds: float) -> List[str]:
        """Count down every order and commit the ones that finished."""
        events = []
        if sim_seconds <= 0:
            return events

        build_step = sim_seconds * self.construction_speed(state)
        research_step = sim_seconds * self.research_speed(state)

        finished_builds = []
        for order in state.construction_queue:
            order.remaining_time -= build_step
            if order.remaining_time <= 0:
                finished_builds.append(order)
        finished_research = []
        for order in state.research_queue:
            order.remaining_time -= research_step
            if order.remaining_time <= 0:
                finished_research.append(order)

        for order in finished_builds:
            state.construction_queue.remove(order)
            events.append(self._complete_building(state, order))
        for order in finished_research:
            state.research_queue.remove(order)
            events.extend(self._complete_research(state, order))
        return events

    def _complete_building(self, state: GameState, order: ConstructionOrder) -> str:
        building = get_building(order.building_id)
        state.buildings.append(Building(id=building.id, built_at=state.day))
        msg = f"{building.name} has been completed"
        add_log(state, msg, capacity=self.config.event_log_capacity)
        logger.debug(msg)
        return msg

    def _complete_research(self, state: GameState, order: ResearchOrder) -> List[str]:
        tech = state.get_technology(order.tech_id)
        tech.is_researched = True
        tech.researched_at = state.day
        definition = tech.definition
        messages = [f"Research complete: {definition.name}"]
        add_log(state, messages[0], "tech", capacity=self.config.event_log_capacity)

        handler = self._tech_effects.get(definition.effect.type)
        if handler is not None:
            extra = handler(state, definition)
            if extra:
                add_log(state, extra, "tech", capacity=self.config.event_log_capacity)
                messages.append(extra)
        return messages

    # --- one-time technology effects --------------------------------------

    def _on_construction_slots(self, state: GameState, tech: TechnologyDefinition) -> str:
        return f"Builders can now work on {self.construction_cap(state)} projects at once"

    def _on_research_slots(self, state: GameState, tech: TechnologyDefinition) -> str:
        return f"Scholars can now pursue {self.research_cap(state)} projects at once"

    def _on_unlock_building(self, state: GameState, tech: TechnologyDefinition) -> str:
        names = [b.name for b in BUILDINGS if tech.id in b.prerequisite]
        if not names:
            return ""
        return f"New buildings available: {', '.join(names)}"

    def _on_unlock_unit(self, state: GameState, tech: TechnologyDefinition) -> str:
        unit = "archers" if tech.id == "archery" else "cavalry"
        return f"Soldiers can now be trained as {unit}"

    def _on_unlock_spell(self, state: GameState, tech: TechnologyDefinition) -> str:
        names = [s.name for s in SPELLS if tech.id in s.prerequisite]
        return f"New spells available: {', '.join(names)}"

    def _on_ascension(self, state: GameState, tech: TechnologyDefinition) -> str:
        logger.info("Ascension researched on day %d", int(state.day))
        return "The realm has achieved Ascension. Its wealth now decides its destiny."
