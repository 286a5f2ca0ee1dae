from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List

from initracker.core.engine.commands import (
    AddCombatant,
    AddCondition,
    ApplyHp,
    Command,
    MoveCombatant,
    RemoveCombatant,
    RemoveCondition,
    SetInitiative,
    SetTempHp,
    ToggleConcentration,
    UpdateCombatant,
)
from initracker.core.engine.state import CombatState


@dataclass
class ValidationError:
    code: str
    message: str
    meta: Dict[str, Any] = field(default_factory=dict)


@dataclass
class ValidationResult:
    ok: bool
    errors: List[ValidationError] = field(default_factory=list)


def _err(code: str, message: str, **meta: Any) -> ValidationResult:
    return ValidationResult(
        ok=False, errors=[ValidationError(code=code, message=message, meta=meta)]
    )


def _unknown(combatant_id: str) -> ValidationResult:
    return _err("UNKNOWN_COMBATANT", "Unknown combatant_id", combatant_id=combatant_id)


def validate_command(state: CombatState, cmd: Command) -> ValidationResult:
    # commands that only name a combatant
    if isinstance(
        cmd,
        (
            RemoveCombatant,
            UpdateCombatant,
            ApplyHp,
            SetTempHp,
            SetInitiative,
            ToggleConcentration,
        ),
    ):
        if state.get(cmd.combatant_id) is None:
            return _unknown(cmd.combatant_id)
        return ValidationResult(ok=True)

    if isinstance(cmd, AddCombatant):
        if cmd.combatant_id is not None and state.get(cmd.combatant_id) is not None:
            return _err(
                "DUPLICATE_COMBATANT",
                "combatant_id already exists in combat",
                combatant_id=cmd.combatant_id,
            )
        return ValidationResult(ok=True)

    if isinstance(cmd, MoveCombatant):
        if cmd.combatant_id not in state.order:
            return _unknown(cmd.combatant_id)
        if cmd.to_index >= len(state.order):
            return _err(
                "INDEX_OUT_OF_RANGE",
                "to_index must point inside the order",
                to_index=cmd.to_index,
                size=len(state.order),
            )
        return ValidationResult(ok=True)

    if isinstance(cmd, AddCondition):
        target = state.get(cmd.target_id)
        if target is None:
            return _unknown(cmd.target_id)
        if any(
            c.id == cmd.condition.id for x in state.combatants for c in x.conditions
        ):
            return _err(
                "DUPLICATE_CONDITION",
                "condition id already in use",
                condition_id=cmd.condition.id,
            )
        return ValidationResult(ok=True)

    if isinstance(cmd, RemoveCondition):
        target = state.get(cmd.target_id)
        if target is None:
            return _unknown(cmd.target_id)
        if not any(c.id == cmd.condition_id for c in target.conditions):
            return _err(
                "UNKNOWN_CONDITION",
                "Target has no such condition",
                target_id=cmd.target_id,
                condition_id=cmd.condition_id,
            )
        return ValidationResult(ok=True)

    # AdvanceTurn, AddMonster, RollInitiative, SortByInitiative, RenameCombat:
    # always valid on a well-formed state
    return ValidationResult(ok=True)

