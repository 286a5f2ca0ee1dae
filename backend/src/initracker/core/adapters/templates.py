from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import Field, computed_field

from initracker.core.engine.state import (
    CamelModel,
    new_id,
    now_ms,
    proficiency_bonus_from_cr,
)


class Trait(CamelModel):
    id: str = Field(default_factory=new_id)
    name: str
    description: str = ""


class AbilityScores(CamelModel):
    str: int = Field(default=10, ge=1, le=30)
    dex: int = Field(default=10, ge=1, le=30)
    con: int = Field(default=10, ge=1, le=30)
    # JSON key is "int"; the attribute is int_ so the builtin stays usable here
    int_: int = Field(default=10, ge=1, le=30, alias="int")
    wis: int = Field(default=10, ge=1, le=30)
    cha: int = Field(default=10, ge=1, le=30)


class Speeds(CamelModel):
    walk: int = 30
    fly: Optional[int] = None
    swim: Optional[int] = None
    climb: Optional[int] = None
    burrow: Optional[int] = None


class Defense(CamelModel):
    ac: int = 12
    hp: int = Field(default=10, ge=0)
    speeds: Speeds = Field(default_factory=Speeds)
    resistances: str = ""
    vulnerabilities: str = ""
    immunities: str = ""


class Monster(CamelModel):
    id: str = Field(default_factory=new_id)
    name: str
    size: str = "Medium"
    type: str = "Humanoid"
    alignment: str = "Unaligned"
    tags: List[str] = Field(default_factory=list)
    cr: float = 1
    abilities: AbilityScores = Field(default_factory=AbilityScores)
    defense: Defense = Field(default_factory=Defense)
    traits: List[Trait] = Field(default_factory=list)
    actions: List[Trait] = Field(default_factory=list)
    reactions: List[Trait] = Field(default_factory=list)
    legendary: List[Trait] = Field(default_factory=list)
    lair_actions: List[Trait] = Field(default_factory=list)
    lair_name: Optional[str] = None
    notes: str = ""
    updated_at: int = Field(default_factory=now_ms)

    @computed_field(alias="proficiencyBonus")
    @property
    def proficiency_bonus(self) -> int:
        return proficiency_bonus_from_cr(self.cr)


class EncounterEntry(CamelModel):
    id: str = Field(default_factory=new_id)
    name: str
    kind: Literal["pc", "npc", "monster"] = "monster"
    monster_id: Optional[str] = None
    quantity: int = Field(default=1, ge=1)
    hp_max: Optional[int] = Field(default=None, ge=0)
    initiative: Optional[int] = None
    notes: Optional[str] = None


class Encounter(CamelModel):
    id: str = Field(default_factory=new_id)
    name: str
    notes: str = ""
    combatants: List[EncounterEntry] = Field(default_factory=list)
    updated_at: int = Field(default_factory=now_ms)
