"""Monsters, encounters, app settings, and the whole-database export/import."""

from __future__ import annotations

import logging
from typing import List, Optional

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from initracker.core.adapters.templates import Encounter, Monster
from initracker.core.persistence.runtime_store import (
    delete_all_combat_states,
    list_combat_states,
    save_combat_state,
)
from initracker.core.persistence.state_codec import AppSettings, ExportData
from initracker.db.models import EncounterRecord, MonsterRecord, SettingsRecord

logger = logging.getLogger(__name__)


# ---------- monsters ----------


def save_monster(db: Session, monster: Monster) -> Monster:
    row = db.get(MonsterRecord, monster.id)
    if row is None:
        row = MonsterRecord(id=monster.id)
        db.add(row)
    row.name = monster.name
    row.data_json = monster.model_dump(mode="json", by_alias=True)
    db.flush()
    return monster


def load_monster(db: Session, monster_id: str) -> Optional[Monster]:
    row = db.get(MonsterRecord, monster_id)
    return Monster.model_validate(row.data_json) if row is not None else None


def list_monsters(db: Session) -> List[Monster]:
    rows = db.scalars(select(MonsterRecord).order_by(MonsterRecord.name)).all()
    return [Monster.model_validate(r.data_json) for r in rows]


def delete_monster(db: Session, monster_id: str) -> bool:
    row = db.get(MonsterRecord, monster_id)
    if row is None:
        return False
    db.delete(row)
    db.flush()
    return True


# ---------- encounters ----------


def save_encounter(db: Session, encounter: Encounter) -> Encounter:
    row = db.get(EncounterRecord, encounter.id)
    if row is None:
        row = EncounterRecord(id=encounter.id)
        db.add(row)
    row.name = encounter.name
    row.data_json = encounter.model_dump(mode="json", by_alias=True)
    db.flush()
    return encounter


def load_encounter(db: Session, encounter_id: str) -> Optional[Encounter]:
    row = db.get(EncounterRecord, encounter_id)
    return Encounter.model_validate(row.data_json) if row is not None else None


def list_encounters(db: Session) -> List[Encounter]:
    rows = db.scalars(select(EncounterRecord).order_by(EncounterRecord.name)).all()
    return [Encounter.model_validate(r.data_json) for r in rows]


def delete_encounter(db: Session, encounter_id: str) -> bool:
    row = db.get(EncounterRecord, encounter_id)
    if row is None:
        return False
    db.delete(row)
    db.flush()
    return True


def monsters_for_encounter(db: Session, encounter: Encounter) -> List[Monster]:
    ids = {e.monster_id for e in encounter.combatants if e.monster_id}
    out: List[Monster] = []
    for monster_id in sorted(ids):
        monster = load_monster(db, monster_id)
        if monster is not None:
            out.append(monster)
    return out


# ---------- settings ----------


def load_app_settings(db: Session) -> AppSettings:
    row = db.get(SettingsRecord, "app")
    return AppSettings.model_validate(row.data_json) if row is not None else AppSettings()


def save_app_settings(db: Session, settings: AppSettings) -> AppSettings:
    row = db.get(SettingsRecord, settings.id)
    if row is None:
        row = SettingsRecord(id=settings.id)
        db.add(row)
    row.data_json = settings.model_dump(mode="json", by_alias=True)
    db.flush()
    return settings


# ---------- export / import ----------


def export_bundle(db: Session) -> ExportData:
    settings_row = db.get(SettingsRecord, "app")
    return ExportData(
        monsters=list_monsters(db),
        encounters=list_encounters(db),
        combat_states=list_combat_states(db),
        settings=[load_app_settings(db)] if settings_row is not None else [],
    )


def import_bundle(db: Session, data: ExportData) -> None:
    """Replace every table with the contents of ``data``.

    Nothing is committed here; a failure before the caller's commit leaves
    the previous data in place.
    """
    db.execute(delete(MonsterRecord))
    db.execute(delete(EncounterRecord))
    db.execute(delete(SettingsRecord))
    delete_all_combat_states(db)
    db.flush()

    for monster in data.monsters:
        save_monster(db, monster)
    for encounter in data.encounters:
        save_encounter(db, encounter)
    for state in data.combat_states:
        save_combat_state(db, state)
    for settings in data.settings:
        save_app_settings(db, settings)

    logger.info(
        "imported %d monsters, %d encounters, %d combats",
        len(data.monsters),
        len(data.encounters),
        len(data.combat_states),
    )
