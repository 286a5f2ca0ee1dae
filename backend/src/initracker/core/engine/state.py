from __future__ import annotations

import time
from typing import Annotated, List, Literal, Optional, Union
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

CombatantKind = Literal["pc", "npc", "monster", "lair"]

LAIR_INITIATIVE = 20


def now_ms() -> int:
    return int(time.time() * 1000)


def new_id() -> str:
    return str(uuid4())


class CamelModel(BaseModel):
    # snapshots are stored/exported with the camelCase keys of the tracker JSON format
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class HitPoints(CamelModel):
    current: int = 10
    max: int = 10
    temp: int = 0


# ---------- durations ----------


class StartOfNextTurn(CamelModel):
    type: Literal["startOfNextTurn"] = "startOfNextTurn"
    anchor_id: str
    remaining_turns: int = Field(default=1, ge=1)


class EndOfNextTurn(CamelModel):
    type: Literal["endOfNextTurn"] = "endOfNextTurn"
    anchor_id: str
    remaining_turns: int = Field(default=1, ge=1)


class Rounds(CamelModel):
    type: Literal["rounds"] = "rounds"
    remaining_rounds: int = Field(default=1, ge=1)


class Concentration(CamelModel):
    type: Literal["concentration"] = "concentration"
    source_id: str


Duration = Annotated[
    Union[StartOfNextTurn, EndOfNextTurn, Rounds, Concentration],
    Field(discriminator="type"),
]


class Condition(CamelModel):
    id: str = Field(default_factory=new_id)
    name: str
    source_id: Optional[str] = None  # who applied it; informational only
    duration: Duration
    applied_round: int = Field(default=1, ge=1)
    notes: Optional[str] = None


class Combatant(CamelModel):
    id: str = Field(default_factory=new_id)
    name: str
    kind: CombatantKind = "npc"
    monster_id: Optional[str] = None
    initiative: int = 10
    dex: Optional[int] = None
    hp: HitPoints = Field(default_factory=HitPoints)
    conditions: List[Condition] = Field(default_factory=list)
    notes: Optional[str] = None
    is_concentrating: bool = False
    updated_at: int = Field(default_factory=now_ms)


class CombatState(CamelModel):
    id: str = Field(default_factory=new_id)
    name: str
    encounter_id: Optional[str] = None
    combatants: List[Combatant] = Field(default_factory=list)
    order: List[str] = Field(default_factory=list)
    current_index: int = Field(default=0, ge=0)
    round: int = Field(default=1, ge=1)
    updated_at: int = Field(default_factory=now_ms)

    def get(self, combatant_id: str) -> Optional[Combatant]:
        for c in self.combatants:
            if c.id == combatant_id:
                return c
        return None

    def current_id(self) -> Optional[str]:
        if not self.order:
            return None
        return self.order[min(self.current_index, len(self.order) - 1)]


class StateInvariantError(Exception):
    """A CombatState broke its structural invariants (a bug, not bad input)."""


def check_invariants(state: CombatState) -> None:
    ids = [c.id for c in state.combatants]
    if len(set(ids)) != len(ids):
        raise StateInvariantError(f"duplicate combatant ids in {state.id}")
    if len(set(state.order)) != len(state.order) or set(state.order) != set(ids):
        raise StateInvariantError(
            f"order {state.order!r} is not a permutation of combatant ids {ids!r}"
        )
    if state.order and state.current_index >= len(state.order):
        raise StateInvariantError(
            f"current_index {state.current_index} out of range for {len(state.order)}"
        )
    if state.round < 1:
        raise StateInvariantError(f"round must be >= 1, got {state.round}")
    for c in state.combatants:
        if not 0 <= c.hp.current <= c.hp.max:
            raise StateInvariantError(
                f"hp {c.hp.current}/{c.hp.max} of {c.id} outside [0, max]"
            )


def ability_mod(score: int) -> int:
    return (score - 10) // 2


def proficiency_bonus_from_cr(cr: float) -> int:
    if cr >= 29:
        return 9
    if cr >= 25:
        return 8
    if cr >= 21:
        return 7
    if cr >= 17:
        return 6
    if cr >= 13:
        return 5
    if cr >= 9:
        return 4
    if cr >= 5:
        return 3
    return 2


def format_signed(value: int) -> str:
    return f"+{value}" if value >= 0 else f"{value}"
