from .mapper import (
    combatants_from_entry,
    create_combat_from_encounter,
    create_combat_state,
    lair_combatant,
    monster_combatants,
)
from .templates import AbilityScores, Defense, Encounter, EncounterEntry, Monster, Trait

__all__ = [
    "AbilityScores",
    "Defense",
    "Encounter",
    "EncounterEntry",
    "Monster",
    "Trait",
    "combatants_from_entry",
    "create_combat_from_encounter",
    "create_combat_state",
    "lair_combatant",
    "monster_combatants",
]
