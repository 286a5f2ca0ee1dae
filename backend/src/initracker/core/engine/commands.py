# backend/src/initracker/core/engine/commands.py

from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from initracker.core.adapters.templates import Monster
from initracker.core.engine.state import Condition


class CommandBase(BaseModel):
    # camelCase keys like the state and events; snake_case still accepted
    model_config = ConfigDict(
        extra="forbid", alias_generator=to_camel, populate_by_name=True
    )
    type: str


class AdvanceTurn(CommandBase):
    type: Literal["AdvanceTurn"] = "AdvanceTurn"


class AddCombatant(CommandBase):
    type: Literal["AddCombatant"] = "AddCombatant"
    combatant_id: Optional[str] = None  # generated when omitted
    name: str = "New Combatant"
    kind: Literal["pc", "npc", "monster"] = "npc"
    initiative: int = 10
    hp_max: int = Field(default=10, ge=0)
    dex: Optional[int] = None
    notes: str = ""


class AddMonster(CommandBase):
    type: Literal["AddMonster"] = "AddMonster"
    monster: Monster
    count: int = Field(default=1, ge=1, le=50)


class RemoveCombatant(CommandBase):
    type: Literal["RemoveCombatant"] = "RemoveCombatant"
    combatant_id: str


class UpdateCombatant(CommandBase):
    type: Literal["UpdateCombatant"] = "UpdateCombatant"
    combatant_id: str
    name: Optional[str] = None
    notes: Optional[str] = None
    hp_max: Optional[int] = Field(default=None, ge=0)
    dex: Optional[int] = None


class ApplyHp(CommandBase):
    type: Literal["ApplyHp"] = "ApplyHp"
    combatant_id: str
    value: str  # "-7", "+3", "=12"


class SetTempHp(CommandBase):
    type: Literal["SetTempHp"] = "SetTempHp"
    combatant_id: str
    temp: int


class SetInitiative(CommandBase):
    type: Literal["SetInitiative"] = "SetInitiative"
    combatant_id: str
    initiative: int


class RollInitiative(CommandBase):
    type: Literal["RollInitiative"] = "RollInitiative"
    sort: bool = True  # re-sort the order right after rolling


class SortByInitiative(CommandBase):
    type: Literal["SortByInitiative"] = "SortByInitiative"


class MoveCombatant(CommandBase):
    type: Literal["MoveCombatant"] = "MoveCombatant"
    combatant_id: str
    to_index: int = Field(ge=0)


class AddCondition(CommandBase):
    type: Literal["AddCondition"] = "AddCondition"
    target_id: str
    condition: Condition


class RemoveCondition(CommandBase):
    type: Literal["RemoveCondition"] = "RemoveCondition"
    target_id: str
    condition_id: str


class ToggleConcentration(CommandBase):
    type: Literal["ToggleConcentration"] = "ToggleConcentration"
    combatant_id: str


class RenameCombat(CommandBase):
    type: Literal["RenameCombat"] = "RenameCombat"
    name: str = Field(min_length=1)


Command = Annotated[
    Union[
        AdvanceTurn,
        AddCombatant,
        AddMonster,
        RemoveCombatant,
        UpdateCombatant,
        ApplyHp,
        SetTempHp,
        SetInitiative,
        RollInitiative,
        SortByInitiative,
        MoveCombatant,
        AddCondition,
        RemoveCondition,
        ToggleConcentration,
        RenameCombat,
    ],
    Field(discriminator="type"),
]
