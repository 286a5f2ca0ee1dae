from __future__ import annotations

import logging
from random import Random
from typing import Any, Dict, List

from fastapi import APIRouter, Depends, HTTPException
from pydantic import TypeAdapter, ValidationError
from sqlalchemy.orm import Session

from initracker.api.deps import get_rng
from initracker.api.schemas import (
    AddMonsterRequest,
    ApplyCommandRequest,
    CombatFromEncounterRequest,
    CombatRuntimeResponse,
    CombatSummary,
    CreateCombatRequest,
)
from initracker.config import get_settings
from initracker.core.adapters import create_combat_from_encounter, create_combat_state
from initracker.core.engine.commands import AddMonster, Command
from initracker.core.engine.rules.apply import apply_command as engine_apply
from initracker.core.engine.state import CombatState, StateInvariantError, check_invariants
from initracker.core.engine.turn import on_deck
from initracker.core.persistence import library_store, runtime_store
from initracker.core.persistence.state_codec import combat_state_to_dict
from initracker.db.deps import get_db

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/combats", tags=["combats"])

_command_adapter: TypeAdapter[Command] = TypeAdapter(Command)


def _response(
    db: Session, state: CombatState, events: List[Dict[str, Any]] | None = None
) -> CombatRuntimeResponse:
    deck = on_deck(state)
    return CombatRuntimeResponse(
        combat_id=state.id,
        state=combat_state_to_dict(state),
        events=events or [],
        undo_depth=runtime_store.count_snapshots(db, state.id),
        current_id=state.current_id(),
        on_deck_id=deck.id if deck is not None else None,
    )


def _load_or_404(db: Session, combat_id: str) -> CombatState:
    state = runtime_store.load_combat_state(db, combat_id)
    if state is None:
        raise HTTPException(status_code=404, detail="Combat not found")
    return state


def _run(db: Session, state: CombatState, cmd: Command, rng: Random) -> CombatRuntimeResponse:
    new_state, events = engine_apply(state, cmd, rng)
    if new_state is state:
        # rejected or no-op: nothing to persist, nothing to undo
        return _response(db, state, events)

    try:
        check_invariants(new_state)
    except StateInvariantError as e:
        logger.error("combat %s: %s broke state invariants: %s", state.id, cmd.type, e)
        raise HTTPException(status_code=500, detail="Command produced an invalid state")

    runtime_store.push_snapshot(
        db, state.id, state, limit=get_settings().undo_limit, label=cmd.type
    )
    runtime_store.save_combat_state(db, new_state)
    db.commit()
    return _response(db, new_state, events)


@router.get("", response_model=list[CombatSummary])
def list_combats(db: Session = Depends(get_db)):
    return [
        CombatSummary(
            id=s.id,
            name=s.name,
            encounter_id=s.encounter_id,
            round=s.round,
            combatant_count=len(s.combatants),
            updated_at=s.updated_at,
        )
        for s in runtime_store.list_combat_states(db)
    ]


@router.post("", response_model=CombatRuntimeResponse)
def create_combat(req: CreateCombatRequest, db: Session = Depends(get_db)):
    state = create_combat_state(req.name)
    runtime_store.save_combat_state(db, state)
    db.commit()
    return _response(db, state)


@router.post("/from-encounter", response_model=CombatRuntimeResponse)
def create_combat_from_template(
    req: CombatFromEncounterRequest, db: Session = Depends(get_db)
):
    encounter = library_store.load_encounter(db, req.encounter_id)
    if encounter is None:
        raise HTTPException(status_code=404, detail="Encounter not found")

    monsters = library_store.monsters_for_encounter(db, encounter)
    state = create_combat_from_encounter(encounter, monsters)
    runtime_store.save_combat_state(db, state)

    settings = library_store.load_app_settings(db)
    library_store.save_app_settings(
        db, settings.model_copy(update={"last_encounter_id": encounter.id})
    )
    db.commit()
    logger.info(
        "combat %s started from encounter %s (%d combatants)",
        state.id,
        encounter.id,
        len(state.combatants),
    )
    return _response(db, state)


@router.get("/{combat_id}", response_model=CombatRuntimeResponse)
def get_combat(combat_id: str, db: Session = Depends(get_db)):
    return _response(db, _load_or_404(db, combat_id))


@router.post("/{combat_id}/commands:apply", response_model=CombatRuntimeResponse)
def apply_command(
    combat_id: str,
    req: ApplyCommandRequest,
    db: Session = Depends(get_db),
    rng: Random = Depends(get_rng),
):
    state = _load_or_404(db, combat_id)
    try:
        cmd = _command_adapter.validate_python(req.command)
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=f"Invalid command: {e.error_count()} error(s)")
    return _run(db, state, cmd, rng)


@router.post("/{combat_id}/monsters", response_model=CombatRuntimeResponse)
def add_monster(
    combat_id: str,
    req: AddMonsterRequest,
    db: Session = Depends(get_db),
    rng: Random = Depends(get_rng),
):
    state = _load_or_404(db, combat_id)
    monster = library_store.load_monster(db, req.monster_id)
    if monster is None:
        raise HTTPException(status_code=404, detail="Monster not found")
    return _run(db, state, AddMonster(monster=monster, count=req.count), rng)


@router.post("/{combat_id}/undo", response_model=CombatRuntimeResponse)
def undo(combat_id: str, db: Session = Depends(get_db)):
    _load_or_404(db, combat_id)
    previous = runtime_store.pop_snapshot(db, combat_id)
    if previous is None:
        raise HTTPException(status_code=409, detail="Nothing to undo")

    runtime_store.save_combat_state(db, previous)
    db.commit()
    return _response(db, previous)


@router.delete("/{combat_id}", status_code=204)
def delete_combat(combat_id: str, db: Session = Depends(get_db)):
    if not runtime_store.delete_combat_state(db, combat_id):
        raise HTTPException(status_code=404, detail="Combat not found")
    db.commit()
