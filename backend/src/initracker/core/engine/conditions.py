"""Condition engine - decrements and expires timed conditions at turn boundaries.

Every function here takes a combatant list and returns a new one; the input
list and its combatants are never mutated.
"""

from __future__ import annotations

import logging
from typing import List, Literal, Optional, Tuple

from initracker.core.engine.state import (
    Combatant,
    Concentration,
    Condition,
    EndOfNextTurn,
    Rounds,
    StartOfNextTurn,
    now_ms,
)

logger = logging.getLogger(__name__)

Boundary = Literal["start", "end"]

ExpiryResult = Tuple[List[Combatant], List[str]]


def _tick_turn_condition(
    condition: Condition, boundary: Boundary, anchor_id: str
) -> Optional[Condition]:
    """Return the condition after one boundary, or None if it expired."""
    d = condition.duration
    match d:
        case StartOfNextTurn() if boundary == "start" and d.anchor_id == anchor_id:
            remaining = d.remaining_turns - 1
        case EndOfNextTurn() if boundary == "end" and d.anchor_id == anchor_id:
            remaining = d.remaining_turns - 1
        case StartOfNextTurn() | EndOfNextTurn() | Rounds() | Concentration():
            return condition
    if remaining <= 0:
        return None
    return condition.model_copy(
        update={"duration": d.model_copy(update={"remaining_turns": remaining})}
    )


def _tick_round_condition(condition: Condition) -> Optional[Condition]:
    d = condition.duration
    match d:
        case Rounds():
            remaining = d.remaining_rounds - 1
        case StartOfNextTurn() | EndOfNextTurn() | Concentration():
            return condition
    if remaining <= 0:
        return None
    return condition.model_copy(
        update={"duration": d.model_copy(update={"remaining_rounds": remaining})}
    )


def expire_boundary(
    combatants: List[Combatant], boundary: Boundary, anchor_id: str
) -> ExpiryResult:
    """Run a start- or end-of-turn boundary for ``anchor_id`` over every combatant.

    ``startOfNextTurn`` conditions match the ``start`` boundary and
    ``endOfNextTurn`` conditions match ``end``; a match also needs the same
    anchor. Matching conditions lose one remaining turn and are dropped when
    nothing is left. Returns the new combatants and the expired condition ids
    in the order they were removed.
    """
    expired: List[str] = []
    updated: List[Combatant] = []
    for c in combatants:
        kept: List[Condition] = []
        for cond in c.conditions:
            nxt = _tick_turn_condition(cond, boundary, anchor_id)
            if nxt is None:
                expired.append(cond.id)
                logger.debug(
                    "condition %s (%s) on %s expired at %s of %s",
                    cond.id,
                    cond.name,
                    c.id,
                    boundary,
                    anchor_id,
                )
                continue
            kept.append(nxt)
        updated.append(c.model_copy(update={"conditions": kept}))
    return updated, expired


def expire_round_conditions(combatants: List[Combatant]) -> ExpiryResult:
    """Count down every ``rounds`` condition by one round."""
    expired: List[str] = []
    updated: List[Combatant] = []
    for c in combatants:
        kept: List[Condition] = []
        for cond in c.conditions:
            nxt = _tick_round_condition(cond)
            if nxt is None:
                expired.append(cond.id)
                logger.debug("condition %s (%s) on %s ran out", cond.id, cond.name, c.id)
                continue
            kept.append(nxt)
        updated.append(c.model_copy(update={"conditions": kept}))
    return updated, expired


def remove_conditions_by_source(
    combatants: List[Combatant], source_id: str
) -> List[Combatant]:
    """Drop concentration conditions held by ``source_id``.

    Only the concentration duration's own source counts; other durations are
    never removed by source.
    """
    out: List[Combatant] = []
    for c in combatants:
        kept = [
            cond
            for cond in c.conditions
            if not (
                isinstance(cond.duration, Concentration)
                and cond.duration.source_id == source_id
            )
        ]
        out.append(c.model_copy(update={"conditions": kept}))
    return out


def add_condition(
    combatants: List[Combatant], target_id: str, condition: Condition
) -> List[Combatant]:
    """Attach ``condition`` to ``target_id``.

    A concentration condition marks its source combatant as concentrating.
    """
    source_id = (
        condition.duration.source_id
        if isinstance(condition.duration, Concentration)
        else None
    )
    out: List[Combatant] = []
    for c in combatants:
        if c.id == target_id:
            c = c.model_copy(
                update={"conditions": [*c.conditions, condition], "updated_at": now_ms()}
            )
        if source_id is not None and c.id == source_id and not c.is_concentrating:
            c = c.model_copy(update={"is_concentrating": True})
        out.append(c)
    return out


def remove_condition(
    combatants: List[Combatant], target_id: str, condition_id: str
) -> List[Combatant]:
    out: List[Combatant] = []
    for c in combatants:
        if c.id == target_id:
            c = c.model_copy(
                update={
                    "conditions": [x for x in c.conditions if x.id != condition_id],
                    "updated_at": now_ms(),
                }
            )
        out.append(c)
    return out


def set_concentration(
    combatants: List[Combatant], combatant_id: str, concentrating: bool
) -> List[Combatant]:
    """Set the concentrating flag; turning it off ends everything it sustained."""
    out = [
        c.model_copy(update={"is_concentrating": concentrating, "updated_at": now_ms()})
        if c.id == combatant_id
        else c
        for c in combatants
    ]
    if not concentrating:
        out = remove_conditions_by_source(out, combatant_id)
    return out


def toggle_concentration(combatants: List[Combatant], combatant_id: str) -> List[Combatant]:
    for c in combatants:
        if c.id == combatant_id:
            return set_concentration(combatants, combatant_id, not c.is_concentrating)
    return list(combatants)
