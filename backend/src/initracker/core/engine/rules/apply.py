from __future__ import annotations

import logging
from random import Random
from typing import Any, List, Optional, Set, Tuple

from initracker.core.adapters.mapper import monster_combatants
from initracker.core.engine.commands import (
    AddCombatant,
    AddCondition,
    AddMonster,
    AdvanceTurn,
    ApplyHp,
    Command,
    MoveCombatant,
    RemoveCombatant,
    RemoveCondition,
    RenameCombat,
    RollInitiative,
    SetInitiative,
    SetTempHp,
    SortByInitiative,
    ToggleConcentration,
    UpdateCombatant,
)
from initracker.core.engine.conditions import (
    add_condition,
    remove_condition,
    toggle_concentration,
)
from initracker.core.engine.events import (
    ev_combat_renamed,
    ev_combatant_added,
    ev_combatant_removed,
    ev_combatant_updated,
    ev_command_rejected,
    ev_concentration_ended,
    ev_concentration_started,
    ev_condition_applied,
    ev_condition_expired,
    ev_condition_removed,
    ev_hp_changed,
    ev_initiative_rolled,
    ev_initiative_set,
    ev_order_changed,
    ev_round_started,
    ev_turn_advanced,
)
from initracker.core.engine.hp import apply_hp_input
from initracker.core.engine.rules.validator import validate_command
from initracker.core.engine.state import (
    Combatant,
    CombatState,
    Concentration,
    HitPoints,
    new_id,
    now_ms,
)
from initracker.core.engine.turn import (
    add_combatants,
    advance_turn,
    move_combatant,
    remove_combatant,
    roll_initiative,
    sort_by_initiative,
)

logger = logging.getLogger(__name__)


def _seq(events: List[dict]) -> int:
    return len(events) + 1


def _actor_of(cmd: Command) -> Optional[str]:
    return getattr(cmd, "combatant_id", None) or getattr(cmd, "target_id", None)


def _condition_ids(combatants: List[Combatant]) -> Set[str]:
    return {cond.id for c in combatants for cond in c.conditions}


def _with_combatant(state: CombatState, combatant_id: str, **updates: Any) -> CombatState:
    updates.setdefault("updated_at", now_ms())
    combatants = [
        c.model_copy(update=updates) if c.id == combatant_id else c
        for c in state.combatants
    ]
    return state.model_copy(update={"combatants": combatants})


def _touch(state: CombatState) -> CombatState:
    return state.model_copy(update={"updated_at": now_ms()})


def apply_command(
    state: CombatState, cmd: Command, rng: Optional[Random] = None
) -> Tuple[CombatState, List[dict]]:
    """
    Returns (state, events_as_dicts).

    The input state is never modified. A command that fails validation yields
    a single CommandRejected event and the unchanged state.
    """
    vr = validate_command(state, cmd)
    if not vr.ok:
        e = vr.errors[0]
        logger.info("combat %s: %s rejected (%s)", state.id, cmd.type, e.code)
        rej = ev_command_rejected(
            seq=1,
            round_=state.round,
            current_id=state.current_id(),
            actor_id=_actor_of(cmd),
            command=cmd.model_dump(mode="json"),
            code=e.code,
            message=e.message,
            meta=e.meta,
        ).model_dump(mode="json")
        return state, [rej]

    events: List[dict] = []

    if isinstance(cmd, AdvanceTurn):
        if not state.order:
            return state, events
        previous_id = state.current_id()
        new_state, expired = advance_turn(state)
        current_id = new_state.current_id()

        events.append(
            ev_turn_advanced(
                seq=_seq(events),
                round_=new_state.round,
                previous_id=previous_id,
                current_id=current_id,
                current_index=new_state.current_index,
                expired_condition_ids=expired,
            ).model_dump(mode="json")
        )
        if new_state.round != state.round:
            events.append(
                ev_round_started(
                    seq=_seq(events), round_=new_state.round, current_id=current_id
                ).model_dump(mode="json")
            )
        for condition_id in expired:
            events.append(
                ev_condition_expired(
                    seq=_seq(events),
                    round_=new_state.round,
                    current_id=current_id,
                    condition_id=condition_id,
                ).model_dump(mode="json")
            )
        return new_state, events

    if isinstance(cmd, (AddCombatant, AddMonster)):
        if isinstance(cmd, AddCombatant):
            additions = [
                Combatant(
                    id=cmd.combatant_id or new_id(),
                    name=cmd.name,
                    kind=cmd.kind,
                    initiative=cmd.initiative,
                    dex=cmd.dex,
                    hp=HitPoints(current=cmd.hp_max, max=cmd.hp_max, temp=0),
                    notes=cmd.notes,
                )
            ]
        else:
            additions = monster_combatants(cmd.monster, cmd.count)

        new_state = add_combatants(state, additions)
        for c in additions:
            events.append(
                ev_combatant_added(
                    seq=_seq(events),
                    round_=new_state.round,
                    current_id=new_state.current_id(),
                    combatant_id=c.id,
                    name=c.name,
                    kind=c.kind,
                ).model_dump(mode="json")
            )
        return new_state, events

    if isinstance(cmd, RemoveCombatant):
        before = _condition_ids(state.combatants)
        new_state, removed_ids = remove_combatant(state, cmd.combatant_id)
        current_id = new_state.current_id()

        for i, cid in enumerate(removed_ids):
            events.append(
                ev_combatant_removed(
                    seq=_seq(events),
                    round_=new_state.round,
                    current_id=current_id,
                    combatant_id=cid,
                    reason="removed" if i == 0 else "lair_of_last_monster",
                ).model_dump(mode="json")
            )

        # concentration conditions that lived on surviving combatants
        gone_with_removed = {
            cond.id
            for c in state.combatants
            if c.id in removed_ids
            for cond in c.conditions
        }
        dropped = before - _condition_ids(new_state.combatants) - gone_with_removed
        for c in state.combatants:
            for cond in c.conditions:
                if cond.id in dropped:
                    events.append(
                        ev_condition_removed(
                            seq=_seq(events),
                            round_=new_state.round,
                            current_id=current_id,
                            target_id=c.id,
                            condition_id=cond.id,
                            reason="concentration_source_removed",
                        ).model_dump(mode="json")
                    )
        return new_state, events

    if isinstance(cmd, UpdateCombatant):
        target = state.get(cmd.combatant_id)
        changes: dict = {}
        if cmd.name is not None:
            changes["name"] = cmd.name
        if cmd.notes is not None:
            changes["notes"] = cmd.notes
        if cmd.dex is not None:
            changes["dex"] = cmd.dex
        if cmd.hp_max is not None:
            changes["hp"] = HitPoints(
                current=min(target.hp.current, cmd.hp_max),
                max=cmd.hp_max,
                temp=target.hp.temp,
            )
        if not changes:
            return state, events

        new_state = _touch(_with_combatant(state, cmd.combatant_id, **changes))
        events.append(
            ev_combatant_updated(
                seq=_seq(events),
                round_=new_state.round,
                current_id=new_state.current_id(),
                combatant_id=cmd.combatant_id,
                changes={
                    k: (v.model_dump(by_alias=True) if isinstance(v, HitPoints) else v)
                    for k, v in changes.items()
                },
            ).model_dump(mode="json")
        )
        return new_state, events

    if isinstance(cmd, (ApplyHp, SetTempHp)):
        target = state.get(cmd.combatant_id)
        if isinstance(cmd, ApplyHp):
            hp = apply_hp_input(target.hp, cmd.value)
        else:
            hp = target.hp.model_copy(update={"temp": cmd.temp})
        if hp == target.hp:
            return state, events

        new_state = _touch(_with_combatant(state, cmd.combatant_id, hp=hp))
        events.append(
            ev_hp_changed(
                seq=_seq(events),
                round_=new_state.round,
                current_id=new_state.current_id(),
                combatant_id=cmd.combatant_id,
                hp_before=target.hp.current,
                hp_after=hp.current,
                temp_before=target.hp.temp,
                temp_after=hp.temp,
                input_=cmd.value if isinstance(cmd, ApplyHp) else None,
            ).model_dump(mode="json")
        )
        return new_state, events

    if isinstance(cmd, SetInitiative):
        new_state = _touch(
            _with_combatant(state, cmd.combatant_id, initiative=int(cmd.initiative))
        )
        events.append(
            ev_initiative_set(
                seq=_seq(events),
                round_=new_state.round,
                current_id=new_state.current_id(),
                combatant_id=cmd.combatant_id,
                initiative=int(cmd.initiative),
            ).model_dump(mode="json")
        )
        return new_state, events

    if isinstance(cmd, RollInitiative):
        new_state = _touch(
            state.model_copy(
                update={"combatants": roll_initiative(state.combatants, rng)}
            )
        )
        events.append(
            ev_initiative_rolled(
                seq=_seq(events),
                round_=new_state.round,
                current_id=new_state.current_id(),
                initiatives={c.id: c.initiative for c in new_state.combatants},
            ).model_dump(mode="json")
        )
        if cmd.sort:
            new_state = sort_by_initiative(new_state)
            events.append(
                ev_order_changed(
                    seq=_seq(events),
                    round_=new_state.round,
                    current_id=new_state.current_id(),
                    order=list(new_state.order),
                    current_index=new_state.current_index,
                    reason="initiative_rolled",
                ).model_dump(mode="json")
            )
        return new_state, events

    if isinstance(cmd, (SortByInitiative, MoveCombatant)):
        if isinstance(cmd, SortByInitiative):
            new_state = sort_by_initiative(state)
            reason = "sorted"
        else:
            new_state = move_combatant(state, cmd.combatant_id, cmd.to_index)
            reason = "moved"
        events.append(
            ev_order_changed(
                seq=_seq(events),
                round_=new_state.round,
                current_id=new_state.current_id(),
                order=list(new_state.order),
                current_index=new_state.current_index,
                reason=reason,
            ).model_dump(mode="json")
        )
        return new_state, events

    if isinstance(cmd, AddCondition):
        condition = cmd.condition
        if "applied_round" not in condition.model_fields_set:
            condition = condition.model_copy(update={"applied_round": state.round})

        source_id = (
            condition.duration.source_id
            if isinstance(condition.duration, Concentration)
            else None
        )
        source = state.get(source_id) if source_id is not None else None

        new_state = _touch(
            state.model_copy(
                update={
                    "combatants": add_condition(state.combatants, cmd.target_id, condition)
                }
            )
        )
        events.append(
            ev_condition_applied(
                seq=_seq(events),
                round_=new_state.round,
                current_id=new_state.current_id(),
                target_id=cmd.target_id,
                condition=condition.model_dump(mode="json", by_alias=True),
            ).model_dump(mode="json")
        )
        if source is not None and not source.is_concentrating:
            events.append(
                ev_concentration_started(
                    seq=_seq(events),
                    round_=new_state.round,
                    current_id=new_state.current_id(),
                    combatant_id=source.id,
                ).model_dump(mode="json")
            )
        return new_state, events

    if isinstance(cmd, RemoveCondition):
        new_state = _touch(
            state.model_copy(
                update={
                    "combatants": remove_condition(
                        state.combatants, cmd.target_id, cmd.condition_id
                    )
                }
            )
        )
        events.append(
            ev_condition_removed(
                seq=_seq(events),
                round_=new_state.round,
                current_id=new_state.current_id(),
                target_id=cmd.target_id,
                condition_id=cmd.condition_id,
                reason="removed",
            ).model_dump(mode="json")
        )
        return new_state, events

    if isinstance(cmd, ToggleConcentration):
        before = _condition_ids(state.combatants)
        new_state = _touch(
            state.model_copy(
                update={
                    "combatants": toggle_concentration(state.combatants, cmd.combatant_id)
                }
            )
        )
        if new_state.get(cmd.combatant_id).is_concentrating:
            events.append(
                ev_concentration_started(
                    seq=_seq(events),
                    round_=new_state.round,
                    current_id=new_state.current_id(),
                    combatant_id=cmd.combatant_id,
                ).model_dump(mode="json")
            )
        else:
            removed = sorted(before - _condition_ids(new_state.combatants))
            events.append(
                ev_concentration_ended(
                    seq=_seq(events),
                    round_=new_state.round,
                    current_id=new_state.current_id(),
                    combatant_id=cmd.combatant_id,
                    removed_condition_ids=removed,
                ).model_dump(mode="json")
            )
        return new_state, events

    if isinstance(cmd, RenameCombat):
        new_state = _touch(state.model_copy(update={"name": cmd.name}))
        events.append(
            ev_combat_renamed(
                seq=_seq(events),
                round_=new_state.round,
                current_id=new_state.current_id(),
                name=cmd.name,
            ).model_dump(mode="json")
        )
        return new_state, events

    raise TypeError(f"Unsupported command: {type(cmd).__name__}")
