from __future__ import annotations

import json
from typing import Any, List, Literal, Optional

from pydantic import Field, ValidationError

from initracker.core.adapters.templates import Encounter, Monster
from initracker.core.engine.state import (
    CamelModel,
    CombatState,
    StateInvariantError,
    check_invariants,
)


class AppSettings(CamelModel):
    id: Literal["app"] = "app"
    last_encounter_id: Optional[str] = None


class ExportData(CamelModel):
    """The flat JSON backup: every table of the tracker in one document."""

    monsters: List[Monster] = Field(default_factory=list)
    encounters: List[Encounter] = Field(default_factory=list)
    combat_states: List[CombatState] = Field(default_factory=list)
    settings: List[AppSettings] = Field(default_factory=list)


class BundleError(ValueError):
    """An import file that is not valid JSON or does not match the export shape."""


# ---------- CombatState codec ----------


def combat_state_to_dict(state: CombatState) -> dict[str, Any]:
    """Serialize with the camelCase keys used by saves and exports."""
    return state.model_dump(mode="json", by_alias=True)


def combat_state_from_dict(d: dict[str, Any]) -> CombatState:
    """
    Rebuild a CombatState from a snapshot dict.

    Keys the model does not know (UI display flags from older exports) are
    ignored.
    """
    return CombatState.model_validate(d)


# ---------- export bundle ----------


def bundle_to_json(data: ExportData, *, indent: int = 2) -> str:
    return json.dumps(data.model_dump(mode="json", by_alias=True), indent=indent)


def bundle_from_json(text: str) -> ExportData:
    try:
        raw = json.loads(text)
    except json.JSONDecodeError as e:
        raise BundleError(f"invalid JSON: {e.msg}") from e
    return bundle_from_dict(raw)


def bundle_from_dict(raw: Any) -> ExportData:
    if not isinstance(raw, dict):
        raise BundleError("invalid data: expected an object")
    try:
        data = ExportData.model_validate(raw)
    except ValidationError as e:
        raise BundleError(f"invalid data: {e.error_count()} validation error(s)") from e

    for state in data.combat_states:
        try:
            check_invariants(state)
        except StateInvariantError as e:
            raise BundleError(f"invalid data: combat {state.id}: {e}") from e
    return data
