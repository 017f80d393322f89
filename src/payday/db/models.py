"""SQLAlchemy ORM models for the Payday database.

Tables: owners, teams, games, awards. Weekly awards are replaced per
(season, week); playoff and end-of-year awards are append-only.
"""

from __future__ import annotations

import uuid
from datetime import UTC, datetime

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


def _uuid() -> str:
    return str(uuid.uuid4())


class Base(DeclarativeBase):
    """Base class for all ORM models."""


class OwnerRow(Base):
    __tablename__ = "owners"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    name: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    goose_count: Mapped[int] = mapped_column(Integer, default=0)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=lambda: datetime.now(UTC))

    teams: Mapped[list[TeamRow]] = relationship(back_populates="owner")


class TeamRow(Base):
    """Ownership record. An abbreviation may have inactive historical rows."""

    __tablename__ = "teams"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    abbr: Mapped[str] = mapped_column(String(4), nullable=False)
    name: Mapped[str] = mapped_column(String(100), default="")
    owner_id: Mapped[str] = mapped_column(ForeignKey("owners.id"), nullable=False)
    active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=lambda: datetime.now(UTC))

    owner: Mapped[OwnerRow] = relationship(back_populates="teams")

    __table_args__ = (
        Index("ix_teams_abbr_active", "abbr", "active"),
        Index("ix_teams_owner_id", "owner_id"),
    )


class GameRow(Base):
    __tablename__ = "games"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    season: Mapped[int] = mapped_column(Integer, nullable=False)
    week: Mapped[int] = mapped_column(Integer, nullable=False)
    home: Mapped[str] = mapped_column(String(4), nullable=False)
    away: Mapped[str] = mapped_column(String(4), nullable=False)
    home_pts: Mapped[int] = mapped_column(Integer, default=0)
    away_pts: Mapped[int] = mapped_column(Integer, default=0)
    status: Mapped[str] = mapped_column(String(20), default="SCHEDULED")
    final: Mapped[bool] = mapped_column(Boolean, default=False)
    kickoff: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
    )

    __table_args__ = (
        Index("ix_games_season_week", "season", "week"),
        Index("ix_games_season_week_final", "season", "week", "final"),
    )


class AwardRow(Base):
    __tablename__ = "awards"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    season: Mapped[int] = mapped_column(Integer, nullable=False)
    week: Mapped[int] = mapped_column(Integer, nullable=False)
    type: Mapped[str] = mapped_column(String(30), nullable=False)
    team_abbr: Mapped[str] = mapped_column(String(4), nullable=False)
    owner_id: Mapped[str] = mapped_column(ForeignKey("owners.id"), nullable=False)
    points: Mapped[int] = mapped_column(Integer, nullable=False)
    notes: Mapped[str] = mapped_column(Text, default="")
    created_at: Mapped[datetime] = mapped_column(DateTime, default=lambda: datetime.now(UTC))

    owner: Mapped[OwnerRow] = relationship()

    __table_args__ = (
        Index("ix_awards_season_week", "season", "week"),
        Index("ix_awards_season_type_team", "season", "type", "team_abbr"),
        Index("ix_awards_owner_id", "owner_id"),
    )
