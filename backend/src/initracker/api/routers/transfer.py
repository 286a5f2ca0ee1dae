from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Body, Depends, HTTPException
from sqlalchemy.orm import Session

from initracker.api.schemas import ImportResult
from initracker.core.persistence import library_store
from initracker.core.persistence.state_codec import BundleError, bundle_from_dict
from initracker.db.deps import get_db

router = APIRouter(tags=["data"])


@router.get("/data:export")
def export_data(db: Session = Depends(get_db)) -> Dict[str, Any]:
    return library_store.export_bundle(db).model_dump(mode="json", by_alias=True)


@router.post("/data:import", response_model=ImportResult)
def import_data(raw: Any = Body(...), db: Session = Depends(get_db)):
    """Replace all stored data with an export document; on error nothing changes."""
    try:
        data = bundle_from_dict(raw)
    except BundleError as e:
        raise HTTPException(status_code=422, detail=str(e))

    try:
        library_store.import_bundle(db, data)
        db.commit()
    except Exception:
        db.rollback()
        raise

    return ImportResult(
        monsters=len(data.monsters),
        encounters=len(data.encounters),
        combat_states=len(data.combat_states),
    )
