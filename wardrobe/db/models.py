"""ORM models for the loaded snapshot and the authored distribution rules.

The snapshot tables (source files, NPCs, keywords, outfits) are filled by the
plugin data-access layer; this package only reads them.
"""

from datetime import datetime

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    func,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import JSON


class Base(DeclarativeBase):
    """Base class for all database models."""


# ── Snapshot ──────────────────────────────────────────────


class SourceFileModel(Base):
    """A plugin or distribution file and its load order position."""

    __tablename__ = "source_files"

    file_name: Mapped[str] = mapped_column(String, primary_key=True)
    position: Mapped[int] = mapped_column(Integer, nullable=False, unique=True)


class NpcRecordModel(Base):
    """Flattened NPC snapshot row."""

    __tablename__ = "npc_records"

    record_id: Mapped[str] = mapped_column(String, primary_key=True)
    source_file: Mapped[str] = mapped_column(String, nullable=False)
    name: Mapped[str] = mapped_column(String, nullable=False, default="")
    editor_id: Mapped[str | None] = mapped_column(String, nullable=True)

    is_female: Mapped[bool] = mapped_column(Boolean, default=False)
    is_unique: Mapped[bool] = mapped_column(Boolean, default=False)
    template_id: Mapped[str | None] = mapped_column(String, nullable=True)
    is_child: Mapped[bool] = mapped_column(Boolean, default=False)
    is_summonable: Mapped[bool] = mapped_column(Boolean, default=False)
    is_leveled: Mapped[bool] = mapped_column(Boolean, default=False)

    level: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    factions: Mapped[list] = mapped_column(JSON, default=list)
    keywords: Mapped[list] = mapped_column(JSON, default=list)  # editor ids
    race_id: Mapped[str | None] = mapped_column(String, nullable=True)

    __table_args__ = (Index("idx_npc_race", "race_id"),)


class KeywordRecordModel(Base):
    """Keyword record id -> editor id."""

    __tablename__ = "keyword_records"

    record_id: Mapped[str] = mapped_column(String, primary_key=True)
    editor_id: Mapped[str] = mapped_column(String, nullable=False)


class OutfitRecordModel(Base):
    __tablename__ = "outfit_records"

    record_id: Mapped[str] = mapped_column(String, primary_key=True)
    editor_id: Mapped[str | None] = mapped_column(String, nullable=True)


# ── Authored rules ────────────────────────────────────────


class DistributionEntryModel(Base):
    """One authored distribution rule."""

    __tablename__ = "distribution_entries"

    entry_id: Mapped[str] = mapped_column(String, primary_key=True)
    source_file: Mapped[str] = mapped_column(
        String, ForeignKey("source_files.file_name"), nullable=False
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    outfit_id: Mapped[str | None] = mapped_column(String, nullable=True)
    chance: Mapped[int] = mapped_column(Integer, nullable=False, default=100)

    criteria: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    npc_ids: Mapped[list] = mapped_column(JSON, default=list)

    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, server_default=func.now()
    )

    __table_args__ = (Index("idx_entry_file", "source_file", "position"),)
