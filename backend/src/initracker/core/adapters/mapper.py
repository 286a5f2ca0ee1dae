from __future__ import annotations

from typing import Dict, Iterable, List, Optional

from initracker.core.adapters.templates import Encounter, EncounterEntry, Monster
from initracker.core.engine.state import (
    LAIR_INITIATIVE,
    Combatant,
    CombatState,
    HitPoints,
    new_id,
    now_ms,
)
from initracker.core.engine.turn import initiative_order

DEFAULT_HP = 10
DEFAULT_INITIATIVE = 10


def create_combat_state(name: str) -> CombatState:
    return CombatState(name=name)


def _numbered(name: str, index: int, quantity: int) -> str:
    return f"{name} {index + 1}" if quantity > 1 else name


def combatants_from_entry(
    entry: EncounterEntry, monster: Optional[Monster] = None
) -> List[Combatant]:
    """One combatant per quantity unit of an encounter entry."""
    quantity = max(1, entry.quantity)
    hp_max = entry.hp_max
    if hp_max is None:
        hp_max = monster.defense.hp if monster is not None else DEFAULT_HP

    out: List[Combatant] = []
    for i in range(quantity):
        out.append(
            Combatant(
                name=_numbered(entry.name, i, quantity),
                kind=entry.kind,
                monster_id=entry.monster_id,
                initiative=(
                    entry.initiative
                    if entry.initiative is not None
                    else DEFAULT_INITIATIVE
                ),
                dex=monster.abilities.dex if monster is not None else None,
                hp=HitPoints(current=hp_max, max=hp_max, temp=0),
                notes=entry.notes,
            )
        )
    return out


def monster_combatants(monster: Monster, count: int = 1) -> List[Combatant]:
    """Quick-add copies of a monster template."""
    count = max(1, count)
    return [
        Combatant(
            name=_numbered(monster.name, i, count),
            kind="monster",
            monster_id=monster.id,
            initiative=DEFAULT_INITIATIVE,
            dex=monster.abilities.dex,
            hp=HitPoints(current=monster.defense.hp, max=monster.defense.hp, temp=0),
            notes="",
        )
        for i in range(count)
    ]


def lair_combatant(monster: Monster) -> Combatant:
    name = (monster.lair_name or "").strip() or f"{monster.name} Lair"
    return Combatant(
        id=new_id(),
        name=name,
        kind="lair",
        monster_id=monster.id,
        initiative=LAIR_INITIATIVE,
        hp=HitPoints(current=0, max=0, temp=0),
        notes="",
    )


def create_combat_from_encounter(
    encounter: Encounter, monsters: Iterable[Monster]
) -> CombatState:
    """Expand an encounter template into a fresh combat.

    Every quantity unit becomes its own combatant. Each distinct monster
    template that has lair actions contributes one shared lair slot at
    initiative 20. The starting order is a stable sort by initiative.
    """
    by_id: Dict[str, Monster] = {m.id: m for m in monsters}
    lair_monsters: Dict[str, Monster] = {}

    combatants: List[Combatant] = []
    for entry in encounter.combatants:
        monster = by_id.get(entry.monster_id) if entry.monster_id else None
        if monster is not None and monster.lair_actions:
            lair_monsters.setdefault(monster.id, monster)
        combatants.extend(combatants_from_entry(entry, monster))

    for monster in lair_monsters.values():
        combatants.append(lair_combatant(monster))

    return CombatState(
        name=encounter.name,
        encounter_id=encounter.id,
        combatants=combatants,
        order=initiative_order(combatants),
        current_index=0,
        round=1,
        updated_at=now_ms(),
    )
