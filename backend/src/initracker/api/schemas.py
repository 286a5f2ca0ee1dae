from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class CreateCombatRequest(BaseModel):
    name: str = Field(default="New Combat", min_length=1)


class CombatFromEncounterRequest(BaseModel):
    encounter_id: str


class ApplyCommandRequest(BaseModel):
    # parsed against the Command union in the router so a bad shape is a 422
    command: Dict[str, Any]


class AddMonsterRequest(BaseModel):
    monster_id: str
    count: int = Field(default=1, ge=1, le=50)


class CombatRuntimeResponse(BaseModel):
    combat_id: str
    state: Dict[str, Any]
    events: List[Dict[str, Any]] = Field(default_factory=list)
    undo_depth: int = 0
    current_id: Optional[str] = None
    on_deck_id: Optional[str] = None


class CombatSummary(BaseModel):
    id: str
    name: str
    encounter_id: Optional[str] = None
    round: int
    combatant_count: int
    updated_at: int


class DiceRollRequest(BaseModel):
    expression: str
    label: str = "Roll"


class DiceRollResponse(BaseModel):
    total: int
    detail: str
    rolls: List[int]
    summary: str


class ImportResult(BaseModel):
    monsters: int
    encounters: int
    combat_states: int
