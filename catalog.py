"""
Static catalogs: buildings, technologies, spells, specialists, heroes and
espionage missions. Entries never change at runtime; the game state only
records which of them have been built, researched or hired.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional


@dataclass(frozen=True)
class Effect:
    type: str
    value: float


@dataclass(frozen=True)
class BuildingDefinition:
    id: str
    name: str
    description: str
    tier: int
    cost: Dict[str, int]
    build_time: float  # simulated seconds
    effect: Effect
    prerequisite: List[str] = field(default_factory=list)
    max_count: Optional[int] = None


@dataclass(frozen=True)
class TechnologyDefinition:
    id: str
    name: str
    description: str
    tier: int
    category: str
    cost: Dict[str, int]
    research_time: float  # simulated seconds
    effect: Effect
    prerequisite: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class SpellDefinition:
    id: str
    name: str
    mana_cost: int
    effect: Effect
    duration_days: int = 0  # 0 = instant
    requires_target: bool = False
    prerequisite: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class SpecialistTemplate:
    id: str
    name: str
    type: str
    bonus: Effect
    salary: int


@dataclass(frozen=True)
class HeroTemplate:
    id: str
    name: str
    combat_power: int
    ability: Effect
    salary: int
    mana_cost: int = 0


@dataclass(frozen=True)
class MissionDefinition:
    id: str
    name: str
    gold_cost: int
    base_success: float
    detection_chance: float


BUILDINGS: List[BuildingDefinition] = [
    # Tier 1
    BuildingDefinition("farm_lv1", "Farm Lv1", "Basic farmland that raises food output",
                       1, {"gold": 100}, 30, Effect("foodProduction", 50)),
    BuildingDefinition("mine_lv1", "Mine Lv1", "Shafts for extracting ore",
                       1, {"gold": 150}, 45, Effect("oreProduction", 100)),
    BuildingDefinition("workshop_lv1", "Workshop Lv1", "Forges weapons and tools",
                       1, {"gold": 200}, 60, Effect("weaponProduction", 50)),
    # Tier 2
    BuildingDefinition("farm_lv2", "Farm Lv2", "Large-scale farmland",
                       2, {"gold": 500, "ore": 20}, 90, Effect("foodProduction", 100),
                       prerequisite=["farm_lv1"]),
    BuildingDefinition("mine_lv2", "Mine Lv2", "Deep mining works",
                       2, {"gold": 600, "ore": 30}, 100, Effect("oreProduction", 200),
                       prerequisite=["mine_lv1"]),
    BuildingDefinition("workshop_lv2", "Workshop Lv2", "Large manufacturing hall",
                       2, {"gold": 700, "ore": 25}, 110, Effect("weaponProduction", 100),
                       prerequisite=["workshop_lv1"]),
    BuildingDefinition("armory", "Armory", "Hammers out plate and mail",
                       2, {"gold": 600, "ore": 40}, 100, Effect("armorProduction", 100),
                       prerequisite=["workshop_lv1"], max_count=1),
    BuildingDefinition("market", "Market", "Trade square that boosts tax revenue",
                       2, {"gold": 800}, 120, Effect("taxBonus", 20), max_count=1),
    BuildingDefinition("barracks", "Barracks", "Drill halls that raise soldier morale",
                       2, {"gold": 1000}, 150, Effect("moraleBonus", 10), max_count=1),
    BuildingDefinition("training_ground", "Training Ground", "Sharpens battle readiness",
                       2, {"gold": 600}, 90, Effect("combatPower", 10), max_count=1),
    # Tier 3
    BuildingDefinition("farm_lv3", "Farm Lv3", "Peak-efficiency farmland",
                       3, {"gold": 1500, "ore": 50}, 150, Effect("foodProduction", 150),
                       prerequisite=["farm_lv2"]),
    BuildingDefinition("magic_tower_lv1", "Magic Tower Lv1", "Draws mana from the ley lines",
                       3, {"gold": 3000, "ore": 100}, 180, Effect("manaGeneration", 10),
                       prerequisite=["magic_theory"], max_count=1),
    BuildingDefinition("magic_tower_lv2", "Magic Tower Lv2", "A stronger mana conduit",
                       3, {"gold": 6000, "ore": 200, "mana": 100}, 240, Effect("manaGeneration", 30),
                       prerequisite=["magic_tower_lv1"], max_count=1),
    BuildingDefinition("magic_tower_lv3", "Magic Tower Lv3", "The pinnacle of mana generation",
                       3, {"gold": 12000, "ore": 400, "mana": 300}, 300, Effect("manaGeneration", 70),
                       prerequisite=["magic_tower_lv2"], max_count=1),
    BuildingDefinition("magic_academy", "Magic Academy", "Trains mages and channels mana",
                       3, {"gold": 5000, "ore": 150, "mana": 50}, 200, Effect("manaGeneration", 20),
                       prerequisite=["magic_tower_lv1"], max_count=1),
    BuildingDefinition("research_lab", "Research Lab", "Speeds up every research project",
                       3, {"gold": 5000}, 180, Effect("researchSpeed", 30), max_count=1),
    BuildingDefinition("walls_lv1", "City Walls", "Fortifications that strengthen defense",
                       3, {"gold": 4000, "ore": 200}, 180, Effect("defenseBonus", 50), max_count=1),
]

TECHNOLOGIES: List[TechnologyDefinition] = [
    # Tier 1
    TechnologyDefinition("crop_rotation", "Crop Rotation", "Farmers yield more food",
                         1, "agriculture", {"gold": 150}, 40, Effect("foodProduction", 20)),
    TechnologyDefinition("bronze_working", "Bronze Working", "Better weapon smithing",
                         1, "industry", {"gold": 200}, 50, Effect("weaponProduction", 20)),
    TechnologyDefinition("masonry", "Masonry", "Builders work faster",
                         1, "industry", {"gold": 200}, 50, Effect("constructionSpeed", 25)),
    TechnologyDefinition("taxation", "Taxation", "Organised tax collection",
                         1, "economy", {"gold": 250}, 60, Effect("taxBonus", 15)),
    TechnologyDefinition("archery", "Archery", "Allows training archers",
                         1, "military", {"gold": 250}, 60, Effect("unlockUnit", 1)),
    # Tier 2
    TechnologyDefinition("iron_smelting", "Iron Smelting", "Raises all material output",
                         2, "industry", {"gold": 600}, 90, Effect("productionBonus", 10),
                         prerequisite=["bronze_working"]),
    TechnologyDefinition("armor_smithing", "Armor Smithing", "Craftsmen make better armor",
                         2, "industry", {"gold": 500}, 80, Effect("armorProduction", 25),
                         prerequisite=["bronze_working"]),
    TechnologyDefinition("engineering", "Engineering", "Two construction projects at once",
                         2, "industry", {"gold": 800}, 100, Effect("constructionSlots", 1),
                         prerequisite=["masonry"]),
    TechnologyDefinition("scholarship", "Scholarship", "Two research projects at once",
                         2, "economy", {"gold": 800}, 100, Effect("researchSlots", 1),
                         prerequisite=["taxation"]),
    TechnologyDefinition("horsemanship", "Horsemanship", "Allows training cavalry",
                         2, "military", {"gold": 600}, 90, Effect("unlockUnit", 1),
                         prerequisite=["archery"]),
    TechnologyDefinition("military_tactics", "Military Tactics", "Troops fight more effectively",
                         2, "military", {"gold": 700}, 90, Effect("combatPower", 15),
                         prerequisite=["archery"]),
    TechnologyDefinition("espionage", "Espionage", "Trained agents for covert work",
                         2, "military", {"gold": 600}, 80, Effect("espionageBonus", 20),
                         prerequisite=["taxation"]),
    # Tier 3
    TechnologyDefinition("magic_theory", "Magic Theory", "Unlocks magic towers",
                         3, "magic", {"gold": 1500}, 150, Effect("unlockBuilding", 1),
                         prerequisite=["scholarship"]),
    TechnologyDefinition("fortification", "Fortification", "Stronger defensive positions",
                         3, "military", {"gold": 1500}, 140, Effect("defenseBonus", 25),
                         prerequisite=["engineering"]),
    TechnologyDefinition("banking", "Banking", "Treasury management",
                         3, "economy", {"gold": 2000}, 160, Effect("taxBonus", 25),
                         prerequisite=["taxation", "scholarship"]),
    TechnologyDefinition("mana_channeling", "Mana Channeling", "Raises mana output",
                         3, "magic", {"gold": 2000, "mana": 50}, 160, Effect("manaBonus", 50),
                         prerequisite=["magic_theory"]),
    TechnologyDefinition("battle_magic", "Battle Magic", "Offensive spells",
                         3, "magic", {"gold": 2500, "mana": 100}, 180, Effect("unlockSpell", 1),
                         prerequisite=["magic_theory"]),
    # Tier 4
    TechnologyDefinition("ascension", "Ascension", "The crowning achievement of the realm",
                         4, "fantasy", {"gold": 20000, "mana": 500}, 600, Effect("ascension", 1),
                         prerequisite=["battle_magic", "banking"]),
]

SPELLS: List[SpellDefinition] = [
    SpellDefinition("bountiful_harvest", "Bountiful Harvest", 20,
                    Effect("foodProduction", 30), duration_days=7,
                    prerequisite=["magic_theory"]),
    SpellDefinition("inspire", "Inspire", 30, Effect("inspire", 10),
                    prerequisite=["magic_theory"]),
    SpellDefinition("arcane_barrier", "Arcane Barrier", 40,
                    Effect("defenseBonus", 30), duration_days=10,
                    prerequisite=["magic_theory"]),
    SpellDefinition("haste", "Haste", 30, Effect("constructionSpeed", 50),
                    duration_days=5, prerequisite=["magic_theory"]),
    SpellDefinition("fireball", "Fireball", 50, Effect("fireball", 10),
                    requires_target=True, prerequisite=["battle_magic"]),
]

SPECIALISTS: List[SpecialistTemplate] = [
    SpecialistTemplate("smith_goron", "Goron the Smith", "blacksmith",
                       Effect("weaponProduction", 10), 50),
    SpecialistTemplate("merchant_mireille", "Mireille the Merchant", "merchant",
                       Effect("taxBonus", 5), 30),
    SpecialistTemplate("steward_olga", "Olga the Steward", "farmer",
                       Effect("foodProduction", 15), 40),
    SpecialistTemplate("scholar_albert", "Albert the Scholar", "scholar",
                       Effect("researchSpeed", 10), 45),
    SpecialistTemplate("general_marcus", "General Marcus", "general",
                       Effect("moraleBonus", 10), 60),
    SpecialistTemplate("smith_volgan", "Volgan the Smith", "blacksmith",
                       Effect("weaponProduction", 15), 70),
    SpecialistTemplate("trader_hasan", "Hasan the Trader", "merchant",
                       Effect("taxBonus", 8), 45),
    SpecialistTemplate("agronomist_emilia", "Emilia the Agronomist", "farmer",
                       Effect("foodProduction", 20), 55),
]

HEROES: List[HeroTemplate] = [
    HeroTemplate("swordmaster_aries", "Aries the Swordmaster", 100,
                 Effect("instantKill", 50), 500),
    HeroTemplate("archmage_zeno", "Zeno the Archmage", 30,
                 Effect("defenseBonus", 50), 300, mana_cost=10),
    HeroTemplate("ironwall_gald", "Gald the Ironwall", 60,
                 Effect("moraleLock", 1), 400),
    HeroTemplate("gale_rin", "Rin of the Gale", 80,
                 Effect("firstStrike", 30), 450),
    HeroTemplate("sage_merlin", "Merlin the Sage", 20,
                 Effect("researchSpeed", 30), 350, mana_cost=5),
]

MISSIONS: List[MissionDefinition] = [
    MissionDefinition("scout", "Scout", 50, 0.9, 0.1),
    MissionDefinition("sabotage", "Sabotage", 200, 0.5, 0.4),
    MissionDefinition("steal_technology", "Steal Technology", 300, 0.4, 0.5),
    MissionDefinition("incite_unrest", "Incite Unrest", 250, 0.45, 0.45),
]

_BUILDINGS_BY_ID = {b.id: b for b in BUILDINGS}
_TECHNOLOGIES_BY_ID = {t.id: t for t in TECHNOLOGIES}
_SPELLS_BY_ID = {s.id: s for s in SPELLS}
_SPECIALISTS_BY_ID = {s.id: s for s in SPECIALISTS}
_HEROES_BY_ID = {h.id: h for h in HEROES}
_MISSIONS_BY_ID = {m.id: m for m in MISSIONS}


def get_building(building_id: str) -> Optional[BuildingDefinition]:
    return _BUILDINGS_BY_ID.get(building_id)


def get_technology(tech_id: str) -> Optional[TechnologyDefinition]:
    return _TECHNOLOGIES_BY_ID.get(tech_id)


def get_spell(spell_id: str) -> Optional[SpellDefinition]:
    return _SPELLS_BY_ID.get(spell_id)


def get_specialist(template_id: str) -> Optional[SpecialistTemplate]:
    return _SPECIALISTS_BY_ID.get(template_id)


def get_hero(template_id: str) -> Optional[HeroTemplate]:
    return _HEROES_BY_ID.get(template_id)


def get_mission(mission_id: str) -> Optional[MissionDefinition]:
    return _MISSIONS_BY_ID.get(mission_id)
