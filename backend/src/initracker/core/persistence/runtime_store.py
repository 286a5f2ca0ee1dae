"""Combat states and their undo snapshots in SQL.

Functions here stage changes on the session; callers own the commit so a
command's snapshot and its new state land together.
"""

from __future__ import annotations

import logging
from typing import List, Optional

from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session

from initracker.core.engine.state import CombatState
from initracker.core.persistence.state_codec import (
    combat_state_from_dict,
    combat_state_to_dict,
)
from initracker.db.models import CombatRecord, CombatSnapshotRecord

logger = logging.getLogger(__name__)


def save_combat_state(db: Session, state: CombatState) -> CombatRecord:
    """Insert or overwrite the stored snapshot for ``state.id`` (last write wins)."""
    row = db.get(CombatRecord, state.id)
    if row is None:
        row = CombatRecord(id=state.id)
        db.add(row)
    row.name = state.name
    row.encounter_id = state.encounter_id
    row.state_json = combat_state_to_dict(state)
    row.state_updated_at = state.updated_at
    db.flush()
    return row


def load_combat_state(db: Session, combat_id: str) -> Optional[CombatState]:
    row = db.get(CombatRecord, combat_id)
    if row is None:
        return None
    return combat_state_from_dict(row.state_json)


def list_combat_states(db: Session) -> List[CombatState]:
    rows = db.scalars(
        select(CombatRecord).order_by(CombatRecord.state_updated_at.desc())
    ).all()
    return [combat_state_from_dict(r.state_json) for r in rows]


def delete_combat_state(db: Session, combat_id: str) -> bool:
    row = db.get(CombatRecord, combat_id)
    if row is None:
        return False
    clear_snapshots(db, combat_id)
    db.delete(row)
    db.flush()
    return True


def delete_all_combat_states(db: Session) -> None:
    db.execute(delete(CombatSnapshotRecord))
    db.execute(delete(CombatRecord))


# ---------- undo snapshots ----------


def push_snapshot(
    db: Session,
    combat_id: str,
    state: CombatState,
    *,
    limit: int,
    label: Optional[str] = None,
) -> None:
    """Store ``state`` as the newest undo step and drop steps beyond ``limit``."""
    db.add(
        CombatSnapshotRecord(
            combat_id=combat_id, label=label, state_json=combat_state_to_dict(state)
        )
    )
    db.flush()

    keep = select(CombatSnapshotRecord.id).where(
        CombatSnapshotRecord.combat_id == combat_id
    ).order_by(CombatSnapshotRecord.id.desc()).limit(limit)
    keep_ids = list(db.scalars(keep).all())
    db.execute(
        delete(CombatSnapshotRecord)
        .where(CombatSnapshotRecord.combat_id == combat_id)
        .where(CombatSnapshotRecord.id.not_in(keep_ids))
    )


def pop_snapshot(db: Session, combat_id: str) -> Optional[CombatState]:
    row = db.scalars(
        select(CombatSnapshotRecord)
        .where(CombatSnapshotRecord.combat_id == combat_id)
        .order_by(CombatSnapshotRecord.id.desc())
        .limit(1)
    ).first()
    if row is None:
        return None
    state = combat_state_from_dict(row.state_json)
    db.delete(row)
    db.flush()
    logger.debug("combat %s: popped undo snapshot %s (%s)", combat_id, row.id, row.label)
    return state


def count_snapshots(db: Session, combat_id: str) -> int:
    return int(
        db.scalar(
            select(func.count())
            .select_from(CombatSnapshotRecord)
            .where(CombatSnapshotRecord.combat_id == combat_id)
        )
        or 0
    )


def clear_snapshots(db: Session, combat_id: str) -> None:
    db.execute(
        delete(CombatSnapshotRecord).where(CombatSnapshotRecord.combat_id == combat_id)
    )
