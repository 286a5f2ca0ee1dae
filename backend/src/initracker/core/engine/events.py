from __future__ import annotations

from typing import Any, List, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field


class EventEnvelope(BaseModel):
    model_config = ConfigDict(extra="forbid")

    event_id: UUID = Field(default_factory=uuid4)
    seq: int
    type: str

    round: int
    current_id: Optional[str] = None
    actor_id: Optional[str] = None

    payload: dict[str, Any] = Field(default_factory=dict)


def ev_command_rejected(
    *,
    seq: int,
    round_: int,
    current_id: Optional[str],
    actor_id: Optional[str],
    command: dict,
    code: str,
    message: str,
    meta: dict,
) -> EventEnvelope:
    return EventEnvelope(
        seq=seq,
        type="CommandRejected",
        round=round_,
        current_id=current_id,
        actor_id=actor_id,
        payload={
            "command": command,
            "code": code,
            "message": message,
            "meta": meta,
        },
    )


def ev_turn_advanced(
    *,
    seq: int,
    round_: int,
    previous_id: str,
    current_id: str,
    current_index: int,
    expired_condition_ids: List[str],
) -> EventEnvelope:
    return EventEnvelope(
        seq=seq,
        type="TurnAdvanced",
        round=round_,
        current_id=current_id,
        actor_id=previous_id,
        payload={
            "previous_id": previous_id,
            "current_id": current_id,
            "current_index": current_index,
            "expired_condition_ids": expired_condition_ids,
        },
    )


def ev_round_started(
    *, seq: int, round_: int, current_id: Optional[str]
) -> EventEnvelope:
    return EventEnvelope(
        seq=seq,
        type="RoundStarted",
        round=round_,
        current_id=current_id,
        payload={},
    )


def ev_condition_expired(
    *,
    seq: int,
    round_: int,
    current_id: Optional[str],
    condition_id: str,
) -> EventEnvelope:
    return EventEnvelope(
        seq=seq,
        type="ConditionExpired",
        round=round_,
        current_id=current_id,
        payload={"condition_id": condition_id},
    )


def ev_condition_applied(
    *,
    seq: int,
    round_: int,
    current_id: Optional[str],
    target_id: str,
    condition: dict,
) -> EventEnvelope:
    return EventEnvelope(
        seq=seq,
        type="ConditionApplied",
        round=round_,
        current_id=current_id,
        actor_id=condition.get("sourceId"),
        payload={"target_id": target_id, "condition": condition},
    )


def ev_condition_removed(
    *,
    seq: int,
    round_: int,
    current_id: Optional[str],
    target_id: str,
    condition_id: str,
    reason: str,
) -> EventEnvelope:
    return EventEnvelope(
        seq=seq,
        type="ConditionRemoved",
        round=round_,
        current_id=current_id,
        payload={
            "target_id": target_id,
            "condition_id": condition_id,
            "reason": reason,
        },
    )


def ev_concentration_started(
    *, seq: int, round_: int, current_id: Optional[str], combatant_id: str
) -> EventEnvelope:
    return EventEnvelope(
        seq=seq,
        type="ConcentrationStarted",
        round=round_,
        current_id=current_id,
        actor_id=combatant_id,
        payload={"combatant_id": combatant_id},
    )


def ev_concentration_ended(
    *,
    seq: int,
    round_: int,
    current_id: Optional[str],
    combatant_id: str,
    removed_condition_ids: List[str],
) -> EventEnvelope:
    return EventEnvelope(
        seq=seq,
        type="ConcentrationEnded",
        round=round_,
        current_id=current_id,
        actor_id=combatant_id,
        payload={
            "combatant_id": combatant_id,
            "removed_condition_ids": removed_condition_ids,
        },
    )


def ev_combatant_added(
    *,
    seq: int,
    round_: int,
    current_id: Optional[str],
    combatant_id: str,
    name: str,
    kind: str,
) -> EventEnvelope:
    return EventEnvelope(
        seq=seq,
        type="CombatantAdded",
        round=round_,
        current_id=current_id,
        actor_id=combatant_id,
        payload={"combatant_id": combatant_id, "name": name, "kind": kind},
    )


def ev_combatant_removed(
    *,
    seq: int,
    round_: int,
    current_id: Optional[str],
    combatant_id: str,
    reason: str,
) -> EventEnvelope:
    return EventEnvelope(
        seq=seq,
        type="CombatantRemoved",
        round=round_,
        current_id=current_id,
        actor_id=combatant_id,
        payload={"combatant_id": combatant_id, "reason": reason},
    )


def ev_combatant_updated(
    *,
    seq: int,
    round_: int,
    current_id: Optional[str],
    combatant_id: str,
    changes: dict,
) -> EventEnvelope:
    return EventEnvelope(
        seq=seq,
        type="CombatantUpdated",
        round=round_,
        current_id=current_id,
        actor_id=combatant_id,
        payload={"combatant_id": combatant_id, "changes": changes},
    )


def ev_hp_changed(
    *,
    seq: int,
    round_: int,
    current_id: Optional[str],
    combatant_id: str,
    hp_before: int,
    hp_after: int,
    temp_before: int,
    temp_after: int,
    input_: Optional[str] = None,
) -> EventEnvelope:
    return EventEnvelope(
        seq=seq,
        type="HpChanged",
        round=round_,
        current_id=current_id,
        actor_id=combatant_id,
        payload={
            "combatant_id": combatant_id,
            "hp_before": hp_before,
            "hp_after": hp_after,
            "temp_before": temp_before,
            "temp_after": temp_after,
            "input": input_,
        },
    )


def ev_initiative_set(
    *, seq: int, round_: int, current_id: Optional[str], combatant_id: str, initiative: int
) -> EventEnvelope:
    return EventEnvelope(
        seq=seq,
        type="InitiativeSet",
        round=round_,
        current_id=current_id,
        actor_id=combatant_id,
        payload={"combatant_id": combatant_id, "initiative": initiative},
    )


def ev_initiative_rolled(
    *, seq: int, round_: int, current_id: Optional[str], initiatives: dict[str, int]
) -> EventEnvelope:
    return EventEnvelope(
        seq=seq,
        type="InitiativeRolled",
        round=round_,
        current_id=current_id,
        payload={"initiatives": initiatives},
    )


def ev_order_changed(
    *,
    seq: int,
    round_: int,
    current_id: Optional[str],
    order: List[str],
    current_index: int,
    reason: str,
) -> EventEnvelope:
    return EventEnvelope(
        seq=seq,
        type="OrderChanged",
        round=round_,
        current_id=current_id,
        payload={"order": order, "current_index": current_index, "reason": reason},
    )


def ev_combat_renamed(
    *, seq: int, round_: int, current_id: Optional[str], name: str
) -> EventEnvelope:
    return EventEnvelope(
        seq=seq,
        type="CombatRenamed",
        round=round_,
        current_id=current_id,
        payload={"name": name},
    )
