"""
Specialists and heroes in the service of the realm.
Hiring costs one month of salary up front; afterwards salaries are part of
the monthly maintenance.
"""

import logging

from catalog import get_specialist, get_hero
from config import GameConfig
from state import GameState, Result, Specialist, Hero, add_log

logger = logging.getLogger(__name__)


class Court:
    def __init__(self, config: GameConfig):
        self.config = config

    def hire_specialist(self, state: GameState, template_id: str) -> Result:
        template = get_specialist(template_id)
        if template is None:
            return Result.fail(f"Unknown specialist: {template_id}")
        if any(s.template_id == template_id for s in state.specialists):
            return Result.fail(f"{template.name} is already in service")
        if state.resources.gold < template.salary:
            return Result.fail(f"Hiring {template.name} needs {template.salary} gold")

        state.resources.gold -= template.salary
        state.specialists.append(Specialist(id=state.allocate_id("specialist"),
                                            template_id=template_id, hired_at=state.day))
        add_log(state, f"{template.name} joined the court", capacity=self.config.event_log_capacity)
        return Result.ok(f"Hired {template.name}")

    def dismiss_specialist(self, state: GameState, specialist_id: str) -> Result:
        for specialist in state.specialists:
            if specialist.id == specialist_id:
                state.specialists.remove(specialist)
                add_log(state, f"{specialist.template.name} left the court",
                        capacity=self.config.event_log_capacity)
                return Result.ok(f"Dismissed {specialist.template.name}")
        return Result.fail(f"No specialist {specialist_id}")

    def hire_hero(self, state: GameState, template_id: str) -> Result:
        template = get_hero(template_id)
        if template is None:
            return Result.fail(f"Unknown hero: {template_id}")
        if any(h.template_id == template_id for h in state.heroes):
            return Result.fail(f"{template.name} already serves the realm")
        if state.resources.gold < template.salary:
            return Result.fail(f"Hiring {template.name} needs {template.salary} gold")

        state.resources.gold -= template.salary
        state.heroes.append(Hero(id=state.allocate_id("hero"), template_id=template_id,
                                 hired_at=state.day))
        add_log(state, f"The hero {template.name} pledged their sword", "military",
                capacity=self.config.event_log_capacity)
        logger.info("Hero hired: %s", template.name)
        return Result.ok(f"Hired {template.name}")

    def dismiss_hero(self, state: GameState, hero_id: str) -> Result:
        for hero in state.heroes:
            if hero.id == hero_id:
                if hero.is_deployed:
                    return Result.fail(f"{hero.template.name} is on the battlefield")
                state.heroes.remove(hero)
                add_log(state, f"{hero.template.name} left the realm's service", "military",
                        capacity=self.config.event_log_capacity)
                return Result.ok(f"Dismissed {hero.template.name}")
        return Result.fail(f"No hero {hero_id}")
