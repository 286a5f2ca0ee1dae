"""Turn engine - keeps order, turn pointer and round counter consistent."""

from __future__ import annotations

import logging
from random import Random
from typing import Iterable, List, Optional, Sequence, Tuple

from initracker.core.engine.conditions import (
    expire_boundary,
    expire_round_conditions,
    remove_conditions_by_source,
)
from initracker.core.engine.state import (
    LAIR_INITIATIVE,
    Combatant,
    CombatState,
    ability_mod,
    now_ms,
)

logger = logging.getLogger(__name__)


def advance_turn(state: CombatState) -> Tuple[CombatState, List[str]]:
    """Move the turn pointer to the next combatant.

    Boundaries run in a fixed order: end of the departing actor's turn, then
    the round countdown if the pointer wraps, then start of the incoming
    actor's turn. Returns the new state and the expired condition ids in
    that order. An empty order is a no-op.
    """
    if not state.order:
        return state, []

    index = min(state.current_index, len(state.order) - 1)
    current_id = state.order[index]

    combatants, expired = expire_boundary(state.combatants, "end", current_id)

    next_index = index + 1
    next_round = state.round
    if next_index >= len(state.order):
        next_index = 0
        next_round += 1
        combatants, round_expired = expire_round_conditions(combatants)
        expired.extend(round_expired)

    next_id = state.order[next_index]
    combatants, start_expired = expire_boundary(combatants, "start", next_id)
    expired.extend(start_expired)

    logger.debug(
        "combat %s: %s -> %s (round %d)", state.id, current_id, next_id, next_round
    )

    new_state = state.model_copy(
        update={
            "combatants": combatants,
            "current_index": next_index,
            "round": next_round,
            "updated_at": now_ms(),
        }
    )
    return new_state, expired


def normalize_order(combatants: Sequence[Combatant], order: Iterable[str]) -> List[str]:
    """Drop ids that left the roster and append roster ids missing from ``order``."""
    ids = {c.id for c in combatants}
    pruned: List[str] = []
    for cid in order:
        if cid in ids and cid not in pruned:
            pruned.append(cid)
    seen = set(pruned)
    return pruned + [c.id for c in combatants if c.id not in seen]


def roll_initiative(
    combatants: Sequence[Combatant], rng: Optional[Random] = None
) -> List[Combatant]:
    """Re-roll initiative as d20 + Dex modifier; lair slots stay pinned at 20.

    The order is left alone; call ``sort_by_initiative`` to apply it.
    """
    rng = rng or Random()
    out: List[Combatant] = []
    for c in combatants:
        if c.kind == "lair":
            out.append(c.model_copy(update={"initiative": LAIR_INITIATIVE}))
            continue
        mod = ability_mod(c.dex) if c.dex is not None else 0
        out.append(
            c.model_copy(
                update={"initiative": rng.randint(1, 20) + mod, "updated_at": now_ms()}
            )
        )
    return out


def initiative_order(combatants: Sequence[Combatant]) -> List[str]:
    # sorted() is stable, so ties keep roster order
    return [c.id for c in sorted(combatants, key=lambda c: -c.initiative)]


def sort_by_initiative(state: CombatState) -> CombatState:
    return state.model_copy(
        update={
            "order": initiative_order(state.combatants),
            "current_index": 0,
            "updated_at": now_ms(),
        }
    )


def _repoint(order: List[str], previous_id: Optional[str]) -> int:
    if previous_id is None or previous_id not in order:
        return 0
    return order.index(previous_id)


def add_combatants(state: CombatState, additions: Sequence[Combatant]) -> CombatState:
    combatants = [*state.combatants, *additions]
    order = normalize_order(combatants, [*state.order, *(c.id for c in additions)])
    return state.model_copy(
        update={
            "combatants": combatants,
            "order": order,
            "current_index": _repoint(order, state.current_id()),
            "updated_at": now_ms(),
        }
    )


def _paired_lair_id(combatants: Sequence[Combatant], removed: Combatant) -> Optional[str]:
    """Lair slot to drop along with ``removed``, if it was the last monster of its template."""
    if removed.kind != "monster" or not removed.monster_id:
        return None
    for c in combatants:
        if c.kind == "monster" and c.monster_id == removed.monster_id:
            return None
    for c in combatants:
        if c.kind == "lair" and c.monster_id == removed.monster_id:
            return c.id
    return None


def remove_combatant(state: CombatState, combatant_id: str) -> Tuple[CombatState, List[str]]:
    """Remove a combatant and keep the pointer on whoever was current.

    Concentration conditions sustained by the removed combatant go with it.
    Removing the last monster of a template also removes that template's
    lair slot. Returns the new state and the removed combatant ids.
    """
    target = state.get(combatant_id)
    if target is None:
        return state, []

    removed_ids = [combatant_id]
    combatants = [c for c in state.combatants if c.id != combatant_id]
    combatants = remove_conditions_by_source(combatants, combatant_id)

    lair_id = _paired_lair_id(combatants, target)
    if lair_id is not None:
        removed_ids.append(lair_id)
        combatants = [c for c in combatants if c.id != lair_id]
        combatants = remove_conditions_by_source(combatants, lair_id)
        logger.debug("combat %s: lair %s removed with last %s", state.id, lair_id, target.monster_id)

    order = normalize_order(combatants, state.order)
    new_state = state.model_copy(
        update={
            "combatants": combatants,
            "order": order,
            "current_index": _repoint(order, state.current_id()),
            "updated_at": now_ms(),
        }
    )
    return new_state, removed_ids


def move_combatant(state: CombatState, combatant_id: str, to_index: int) -> CombatState:
    """Move one id to a new slot in the order; the current combatant keeps the turn."""
    if combatant_id not in state.order:
        return state
    order = [cid for cid in state.order if cid != combatant_id]
    to_index = max(0, min(to_index, len(order)))
    order.insert(to_index, combatant_id)
    return state.model_copy(
        update={
            "order": order,
            "current_index": _repoint(order, state.current_id()),
            "updated_at": now_ms(),
        }
    )


def current_combatant(state: CombatState) -> Optional[Combatant]:
    cid = state.current_id()
    return state.get(cid) if cid is not None else None


def on_deck(state: CombatState) -> Optional[Combatant]:
    if len(state.order) < 2:
        return None
    index = min(state.current_index, len(state.order) - 1)
    return state.get(state.order[(index + 1) % len(state.order)])
