"""Repository pattern for database access.

Wraps SQLAlchemy async sessions. Two write strategies coexist for awards:
weekly awards are replaced wholesale per (season, week), while playoff and
end-of-year awards are appended once and never rewritten.
"""

from __future__ import annotations

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from payday.db.models import AwardRow, GameRow, OwnerRow, TeamRow
from payday.models.award import Award
from payday.models.constants import WEEKLY_AWARD_TYPES, WIN_AWARD_TYPES
from payday.models.game import Game


class Repository:
    """Async repository for all database operations."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    # --- Owners / Teams ---

    async def create_owner(self, name: str, goose_count: int = 0) -> OwnerRow:
        row = OwnerRow(name=name, goose_count=goose_count)
        self.session.add(row)
        await self.session.flush()
        return row

    async def get_owner(self, owner_id: str) -> OwnerRow | None:
        return await self.session.get(OwnerRow, owner_id)

    async def get_owner_with_teams(self, owner_id: str) -> OwnerRow | None:
        stmt = (
            select(OwnerRow)
            .where(OwnerRow.id == owner_id)
            .options(selectinload(OwnerRow.teams))
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_owner_by_name(self, name: str) -> OwnerRow | None:
        stmt = select(OwnerRow).where(OwnerRow.name == name)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_all_owners(self) -> list[OwnerRow]:
        """Return every owner with their team rows loaded."""
        stmt = (
            select(OwnerRow)
            .options(selectinload(OwnerRow.teams))
            .order_by(OwnerRow.name)
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def create_team(
        self,
        abbr: str,
        owner_id: str,
        name: str = "",
        active: bool = True,
    ) -> TeamRow:
        row = TeamRow(abbr=abbr, owner_id=owner_id, name=name, active=active)
        self.session.add(row)
        await self.session.flush()
        return row

    async def get_active_team(self, abbr: str) -> TeamRow | None:
        """The current (active) ownership record for an abbreviation."""
        stmt = select(TeamRow).where(TeamRow.abbr == abbr, TeamRow.active.is_(True)).limit(1)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_active_teams(self) -> list[TeamRow]:
        stmt = select(TeamRow).where(TeamRow.active.is_(True)).order_by(TeamRow.abbr)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_active_teams_for_owner(self, owner_id: str) -> list[TeamRow]:
        stmt = (
            select(TeamRow)
            .where(TeamRow.owner_id == owner_id, TeamRow.active.is_(True))
            .order_by(TeamRow.abbr)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_owner_map(self) -> dict[str, str]:
        """Map every active team abbreviation to its owner ID in one query."""
        return {t.abbr: t.owner_id for t in await self.get_active_teams()}

    async def deactivate_team(self, abbr: str) -> None:
        """Retire the active ownership record without deleting its history."""
        row = await self.get_active_team(abbr)
        if row is not None:
            row.active = False
            await self.session.flush()

    # --- Games ---

    async def upsert_game(self, game: Game) -> GameRow:
        """Insert a game or refresh its score and status."""
        row = await self.session.get(GameRow, game.id)
        if row is None:
            row = GameRow(id=game.id)
            self.session.add(row)
        row.season = game.season
        row.week = game.week
        row.home = game.home
        row.away = game.away
        row.home_pts = game.home_pts
        row.away_pts = game.away_pts
        row.status = game.status
        row.final = game.final
        row.kickoff = game.kickoff
        await self.session.flush()
        return row

    async def get_games_for_week(
        self,
        season: int,
        week: int,
        final_only: bool = False,
    ) -> list[Game]:
        stmt = select(GameRow).where(GameRow.season == season, GameRow.week == week)
        if final_only:
            stmt = stmt.where(GameRow.final.is_(True))
        stmt = stmt.order_by(GameRow.kickoff, GameRow.id)
        result = await self.session.execute(stmt)
        return [_game_from_row(r) for r in result.scalars().all()]

    async def get_team_game(self, season: int, week: int, abbr: str) -> Game | None:
        stmt = select(GameRow).where(
            GameRow.season == season,
            GameRow.week == week,
            (GameRow.home == abbr) | (GameRow.away == abbr),
        )
        result = await self.session.execute(stmt)
        row = result.scalars().first()
        return _game_from_row(row) if row else None

    # --- Weekly awards (replace semantics) ---

    async def replace_weekly_awards(
        self,
        season: int,
        week: int,
        awards: list[Award],
    ) -> list[AwardRow]:
        """Delete the (season, week) weekly award set and insert *awards*.

        Both steps run on this repository's session, so they commit or roll
        back together.
        """
        await self.session.execute(
            delete(AwardRow).where(
                AwardRow.season == season,
                AwardRow.week == week,
                AwardRow.type.in_(WEEKLY_AWARD_TYPES),
            )
        )
        rows = [
            AwardRow(
                season=season,
                week=week,
                type=a.type,
                team_abbr=a.team_abbr,
                owner_id=a.owner_id,
                points=a.points,
                notes=a.notes,
            )
            for a in awards
        ]
        self.session.add_all(rows)
        await self.session.flush()
        return rows

    async def get_awards_for_week(self, season: int, week: int) -> list[AwardRow]:
        stmt = (
            select(AwardRow)
            .where(AwardRow.season == season, AwardRow.week == week)
            .order_by(AwardRow.type, AwardRow.team_abbr)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def owner_has_win(self, owner_id: str, season: int, week: int) -> bool:
        """Whether the owner already holds a WIN or TIE_AWAY for this week."""
        stmt = (
            select(AwardRow.id)
            .where(
                AwardRow.season == season,
                AwardRow.week == week,
                AwardRow.owner_id == owner_id,
                AwardRow.type.in_(WIN_AWARD_TYPES),
            )
            .limit(1)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none() is not None

    async def get_owners_with_wins(self, season: int, week: int) -> set[str]:
        stmt = select(AwardRow.owner_id).where(
            AwardRow.season == season,
            AwardRow.week == week,
            AwardRow.type.in_(WIN_AWARD_TYPES),
        )
        result = await self.session.execute(stmt)
        return set(result.scalars().all())

    # --- Append-only awards (playoffs, end of year) ---

    async def award_exists(self, season: int, award_type: str, team_abbr: str) -> bool:
        stmt = (
            select(AwardRow.id)
            .where(
                AwardRow.season == season,
                AwardRow.type == award_type,
                AwardRow.team_abbr == team_abbr,
            )
            .limit(1)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none() is not None

    async def append_award(self, award: Award) -> AwardRow:
        if award.owner_id is None:
            raise ValueError(f"award {award.type} for {award.team_abbr} has no owner")
        row = AwardRow(
            season=award.season,
            week=award.week,
            type=award.type,
            team_abbr=award.team_abbr,
            owner_id=award.owner_id,
            points=award.points,
            notes=award.notes,
        )
        self.session.add(row)
        await self.session.flush()
        return row

    # --- Leaderboard ---

    async def get_awards_for_season(self, season: int) -> list[AwardRow]:
        """All award rows for a season with their owners loaded."""
        stmt = (
            select(AwardRow)
            .where(AwardRow.season == season)
            .options(selectinload(AwardRow.owner))
            .order_by(AwardRow.week, AwardRow.type)
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())


def _game_from_row(row: GameRow) -> Game:
    return Game(
        id=row.id,
        season=row.season,
        week=row.week,
        home=row.home,
        away=row.away,
        home_pts=row.home_pts,
        away_pts=row.away_pts,
        status=row.status,  # type: ignore[arg-type]
        kickoff=row.kickoff,
    )


def award_from_row(row: AwardRow) -> Award:
    return Award(
        season=row.season,
        week=row.week,
        type=row.type,
        team_abbr=row.team_abbr,
        owner_id=row.owner_id,
        points=row.points,
        notes=row.notes,
    )
