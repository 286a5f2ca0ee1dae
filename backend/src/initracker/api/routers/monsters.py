from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from initracker.core.adapters.templates import Monster
from initracker.core.engine.state import now_ms
from initracker.core.persistence import library_store
from initracker.db.deps import get_db

router = APIRouter(prefix="/monsters", tags=["monsters"])


@router.get("", response_model=list[Monster])
def list_monsters(db: Session = Depends(get_db)):
    return library_store.list_monsters(db)


@router.post("", response_model=Monster)
def create_monster(payload: Monster, db: Session = Depends(get_db)):
    if library_store.load_monster(db, payload.id) is not None:
        raise HTTPException(status_code=409, detail="Monster already exists")
    monster = library_store.save_monster(db, payload)
    db.commit()
    return monster


@router.get("/{monster_id}", response_model=Monster)
def get_monster(monster_id: str, db: Session = Depends(get_db)):
    monster = library_store.load_monster(db, monster_id)
    if monster is None:
        raise HTTPException(status_code=404, detail="Monster not found")
    return monster


@router.put("/{monster_id}", response_model=Monster)
def update_monster(monster_id: str, payload: Monster, db: Session = Depends(get_db)):
    if library_store.load_monster(db, monster_id) is None:
        raise HTTPException(status_code=404, detail="Monster not found")

    monster = payload.model_copy(update={"id": monster_id, "updated_at": now_ms()})
    library_store.save_monster(db, monster)
    db.commit()
    return monster


@router.delete("/{monster_id}", status_code=204)
def delete_monster(monster_id: str, db: Session = Depends(get_db)):
    if not library_store.delete_monster(db, monster_id):
        raise HTTPException(status_code=404, detail="Monster not found")
    db.commit()
