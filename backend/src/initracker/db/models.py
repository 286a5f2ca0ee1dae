from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import BigInteger, DateTime, ForeignKey, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.types import JSON

from .base import Base


def _uuid() -> str:
    return str(uuid.uuid4())


class MonsterRecord(Base):
    __tablename__ = "monsters"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    name: Mapped[str] = mapped_column(String(200), nullable=False, index=True)

    # whole Monster model (camelCase JSON)
    data_json: Mapped[dict] = mapped_column(JSON, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )


class EncounterRecord(Base):
    __tablename__ = "encounters"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    name: Mapped[str] = mapped_column(String(200), nullable=False, index=True)
    data_json: Mapped[dict] = mapped_column(JSON, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )


class CombatRecord(Base):
    __tablename__ = "combat_states"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    name: Mapped[str] = mapped_column(String(200), nullable=False, index=True)
    encounter_id: Mapped[Optional[str]] = mapped_column(
        String(36), nullable=True, index=True
    )

    # whole CombatState snapshot; last write wins
    state_json: Mapped[dict] = mapped_column(JSON, nullable=False)
    # CombatState.updated_at (epoch ms), kept as a column for ordering
    state_updated_at: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )


class CombatSnapshotRecord(Base):
    """Undo history: the state of a combat before one command ran."""

    __tablename__ = "combat_snapshots"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    combat_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("combat_states.id", ondelete="CASCADE"), index=True
    )
    label: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    state_json: Mapped[dict] = mapped_column(JSON, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )


class SettingsRecord(Base):
    __tablename__ = "app_settings"

    id: Mapped[str] = mapped_column(String(20), primary_key=True, default="app")
    data_json: Mapped[dict] = mapped_column(JSON, nullable=False)
