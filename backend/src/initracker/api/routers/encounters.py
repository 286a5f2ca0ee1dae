from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from initracker.core.adapters.templates import Encounter
from initracker.core.engine.state import now_ms
from initracker.core.persistence import library_store
from initracker.db.deps import get_db

router = APIRouter(prefix="/encounters", tags=["encounters"])


@router.get("", response_model=list[Encounter])
def list_encounters(db: Session = Depends(get_db)):
    return library_store.list_encounters(db)


@router.post("", response_model=Encounter)
def create_encounter(payload: Encounter, db: Session = Depends(get_db)):
    if library_store.load_encounter(db, payload.id) is not None:
        raise HTTPException(status_code=409, detail="Encounter already exists")
    encounter = library_store.save_encounter(db, payload)
    db.commit()
    return encounter


@router.get("/{encounter_id}", response_model=Encounter)
def get_encounter(encounter_id: str, db: Session = Depends(get_db)):
    encounter = library_store.load_encounter(db, encounter_id)
    if encounter is None:
        raise HTTPException(status_code=404, detail="Encounter not found")
    return encounter


@router.put("/{encounter_id}", response_model=Encounter)
def update_encounter(
    encounter_id: str, payload: Encounter, db: Session = Depends(get_db)
):
    if library_store.load_encounter(db, encounter_id) is None:
        raise HTTPException(status_code=404, detail="Encounter not found")

    encounter = payload.model_copy(
        update={"id": encounter_id, "updated_at": now_ms()}
    )
    library_store.save_encounter(db, encounter)
    db.commit()
    return encounter


@router.delete("/{encounter_id}", status_code=204)
def delete_encounter(encounter_id: str, db: Session = Depends(get_db)):
    if not library_store.delete_encounter(db, encounter_id):
        raise HTTPException(status_code=404, detail="Encounter not found")
    db.commit()
