"""Tests for the weekly award rules and their transactional replacement."""

import asyncio
from unittest.mock import AsyncMock, patch

import pytest
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncEngine

from payday.core.awards import (
    calculate_weekly_awards,
    compute_weekly_awards,
    resolve_owners,
)
from payday.core.errors import AwardComputationError
from payday.db.engine import get_session
from payday.db.repository import Repository
from payday.models.constants import DBO, OBO, TIE_AWAY, WIN, WIN_AWARD_TYPES
from payday.models.game import Game

SEASON = 2025
WEEK = 3


def _game(gid: str, home: str, away: str, home_pts: int, away_pts: int, **kw) -> Game:
    return Game(
        id=gid,
        season=kw.pop("season", SEASON),
        week=kw.pop("week", WEEK),
        home=home,
        away=away,
        home_pts=home_pts,
        away_pts=away_pts,
        status=kw.pop("status", "FINAL"),
    )


def _by_type(awards, award_type):
    return [a for a in awards if a.type == award_type]


class TestWinAwards:
    def test_home_win(self):
        awards = compute_weekly_awards(SEASON, WEEK, [_game("g1", "KC", "BUF", 24, 17)])
        wins = _by_type(awards, WIN)
        assert len(wins) == 1
        assert wins[0].team_abbr == "KC"
        assert wins[0].points == 1
        assert wins[0].notes == "Beat BUF 24-17"

    def test_away_win(self):
        awards = compute_weekly_awards(SEASON, WEEK, [_game("g1", "KC", "BUF", 10, 13)])
        wins = _by_type(awards, WIN)
        assert [w.team_abbr for w in wins] == ["BUF"]
        assert wins[0].notes == "Beat KC 13-10"

    def test_tie_goes_to_away_team(self):
        awards = compute_weekly_awards(SEASON, WEEK, [_game("g1", "KC", "BUF", 20, 20)])
        assert _by_type(awards, WIN) == []
        ties = _by_type(awards, TIE_AWAY)
        assert len(ties) == 1
        assert ties[0].team_abbr == "BUF"
        assert ties[0].notes == "Tied with KC 20-20"

    def test_one_win_type_award_per_final_game(self):
        games = [
            _game("g1", "KC", "BUF", 24, 17),
            _game("g2", "PHI", "DAL", 20, 20),
            _game("g3", "SF", "SEA", 3, 31),
            _game("g4", "NE", "NYJ", 0, 0),
        ]
        awards = compute_weekly_awards(SEASON, WEEK, games)
        win_types = [a for a in awards if a.type in WIN_AWARD_TYPES]
        assert len(win_types) == len(games)

    def test_non_final_games_ignored(self):
        games = [
            _game("g1", "KC", "BUF", 24, 17),
            _game("g2", "PHI", "DAL", 35, 0, status="IN_PROGRESS"),
            _game("g3", "SF", "SEA", 0, 0, status="SCHEDULED"),
        ]
        awards = compute_weekly_awards(SEASON, WEEK, games)
        assert {a.team_abbr for a in awards} == {"KC"}

    def test_other_weeks_ignored(self):
        games = [_game("g1", "KC", "BUF", 24, 17, week=WEEK + 1)]
        assert compute_weekly_awards(SEASON, WEEK, games) == []

    def test_no_final_games_gives_no_awards(self):
        games = [_game("g1", "KC", "BUF", 7, 0, status="IN_PROGRESS")]
        assert compute_weekly_awards(SEASON, WEEK, games) == []


class TestBonusAwards:
    def test_obo_margin_tiebreak(self):
        """A and D both score 30; A's margin (16) beats D's (7)."""
        games = [
            _game("g1", "KC", "BUF", 30, 14),
            _game("g2", "PHI", "DAL", 23, 30),
            _game("g3", "SF", "SEA", 10, 6),
        ]
        awards = compute_weekly_awards(SEASON, WEEK, games)
        obo = _by_type(awards, OBO)
        assert len(obo) == 1
        assert obo[0].team_abbr == "KC"
        assert obo[0].notes == "Highest score: 30 points (tiebreaker: +16 margin)"

    def test_obo_single_leader_has_plain_note(self):
        games = [_game("g1", "KC", "BUF", 41, 14), _game("g2", "PHI", "DAL", 20, 17)]
        obo = _by_type(compute_weekly_awards(SEASON, WEEK, games), OBO)
        assert obo[0].team_abbr == "KC"
        assert obo[0].notes == "Highest score: 41 points"

    def test_obo_full_tie_goes_to_first_abbreviation(self):
        games = [_game("g1", "SF", "SEA", 28, 21), _game("g2", "BAL", "PIT", 28, 21)]
        obo = _by_type(compute_weekly_awards(SEASON, WEEK, games), OBO)
        assert [a.team_abbr for a in obo] == ["BAL"]

    def test_dbo_goes_to_team_holding_opponent_lowest(self):
        games = [
            _game("g1", "KC", "BUF", 30, 14),
            _game("g2", "PHI", "DAL", 23, 30),
            _game("g3", "SF", "SEA", 10, 6),
        ]
        dbo = _by_type(compute_weekly_awards(SEASON, WEEK, games), DBO)
        assert len(dbo) == 1
        assert dbo[0].team_abbr == "SF"
        assert dbo[0].notes == "Held SEA to 6 points"

    def test_dbo_tie_uses_margin(self):
        games = [_game("g1", "KC", "BUF", 27, 3), _game("g2", "PHI", "DAL", 10, 3)]
        dbo = _by_type(compute_weekly_awards(SEASON, WEEK, games), DBO)
        assert dbo[0].team_abbr == "KC"
        assert dbo[0].notes == "Held BUF to 3 points (tiebreaker: +24 margin)"

    def test_dbo_in_scoreless_tie(self):
        """0-0: both teams held the opponent to 0; margins tie, abbreviation decides."""
        dbo = _by_type(compute_weekly_awards(SEASON, WEEK, [_game("g1", "NYJ", "NE", 0, 0)]), DBO)
        assert [a.team_abbr for a in dbo] == ["NE"]

    def test_exactly_one_obo_and_dbo(self):
        games = [_game("g1", "KC", "BUF", 17, 17), _game("g2", "SF", "SEA", 17, 17)]
        awards = compute_weekly_awards(SEASON, WEEK, games)
        assert len(_by_type(awards, OBO)) == 1
        assert len(_by_type(awards, DBO)) == 1


class TestResolveOwners:
    def test_missing_owner_dropped_and_reported(self):
        # KC: WIN. DAL: WIN, OBO (31) and DBO (held PHI to 10).
        games = [_game("g1", "KC", "BUF", 24, 17), _game("g2", "PHI", "DAL", 10, 31)]
        awards = compute_weekly_awards(SEASON, WEEK, games)
        resolved, missing = resolve_owners(awards, {"KC": "owner-1"})
        assert [(a.type, a.team_abbr, a.owner_id) for a in resolved] == [(WIN, "KC", "owner-1")]
        assert missing == ["DAL", "DAL", "DAL"]


async def _seed_owners(engine: AsyncEngine) -> dict[str, str]:
    async with get_session(engine) as session:
        repo = Repository(session)
        alice = await repo.create_owner("Alice")
        bob = await repo.create_owner("Bob")
        for abbr in ("KC", "PHI", "SF"):
            await repo.create_team(abbr, alice.id)
        for abbr in ("BUF", "DAL", "SEA"):
            await repo.create_team(abbr, bob.id)
        return {"alice": alice.id, "bob": bob.id}


async def _store_games(engine: AsyncEngine, games: list[Game]) -> None:
    async with get_session(engine) as session:
        repo = Repository(session)
        for g in games:
            await repo.upsert_game(g)


async def _award_set(engine: AsyncEngine) -> list[tuple[str, str, str]]:
    async with get_session(engine) as session:
        rows = await Repository(session).get_awards_for_week(SEASON, WEEK)
        return sorted((r.type, r.team_abbr, r.notes) for r in rows)


class TestCalculateWeeklyAwards:
    async def test_persists_awards(self, engine: AsyncEngine):
        await _seed_owners(engine)
        await _store_games(engine, [_game("g1", "KC", "BUF", 24, 17)])

        summary = await calculate_weekly_awards(engine, SEASON, WEEK)

        assert summary.games == 1
        assert summary.message == "Processed 1 games and awarded 3 awards"
        assert [t for t, _, _ in await _award_set(engine)] == [DBO, OBO, WIN]

    async def test_recompute_is_idempotent(self, engine: AsyncEngine):
        await _seed_owners(engine)
        await _store_games(
            engine,
            [_game("g1", "KC", "BUF", 24, 17), _game("g2", "DAL", "PHI", 20, 20)],
        )
        await calculate_weekly_awards(engine, SEASON, WEEK)
        first = await _award_set(engine)
        await calculate_weekly_awards(engine, SEASON, WEEK)
        assert await _award_set(engine) == first

    async def test_score_correction_replaces_award_set(self, engine: AsyncEngine):
        await _seed_owners(engine)
        await _store_games(engine, [_game("g1", "KC", "BUF", 24, 17)])
        await calculate_weekly_awards(engine, SEASON, WEEK)

        await _store_games(engine, [_game("g1", "KC", "BUF", 17, 24)])
        await calculate_weekly_awards(engine, SEASON, WEEK)

        awards = await _award_set(engine)
        assert (WIN, "BUF", "Beat KC 24-17") in awards
        assert all(team == "BUF" for _, team, _ in awards)

    async def test_no_completed_games(self, engine: AsyncEngine):
        await _store_games(engine, [_game("g1", "KC", "BUF", 0, 0, status="SCHEDULED")])
        summary = await calculate_weekly_awards(engine, SEASON, WEEK)
        assert summary.message == "No completed games found"
        assert summary.awards == []

    async def test_playoff_week_skipped(self, engine: AsyncEngine):
        summary = await calculate_weekly_awards(engine, SEASON, 19)
        assert summary.skipped is True
        assert "Playoff week" in summary.message

    async def test_team_without_owner_reported(self, engine: AsyncEngine):
        await _seed_owners(engine)
        await _store_games(engine, [_game("g1", "KC", "MIA", 24, 31)])
        summary = await calculate_weekly_awards(engine, SEASON, WEEK)
        assert "MIA" in summary.missing_owners
        assert all(a.team_abbr != "MIA" for a in summary.awards)

    async def test_store_failure_raises_with_context(self, engine: AsyncEngine):
        await _seed_owners(engine)
        await _store_games(engine, [_game("g1", "KC", "BUF", 24, 17)])
        await calculate_weekly_awards(engine, SEASON, WEEK)
        before = await _award_set(engine)

        with patch.object(
            Repository,
            "replace_weekly_awards",
            new_callable=AsyncMock,
            side_effect=OperationalError("DELETE", {}, Exception("disk I/O error")),
        ):
            with pytest.raises(AwardComputationError) as excinfo:
                await calculate_weekly_awards(engine, SEASON, WEEK)

        assert excinfo.value.season == SEASON
        assert excinfo.value.week == WEEK
        assert await _award_set(engine) == before

    async def test_concurrent_recomputes_leave_one_award_set(self, engine: AsyncEngine):
        await _seed_owners(engine)
        await _store_games(
            engine,
            [
                _game("g1", "KC", "BUF", 24, 17),
                _game("g2", "PHI", "DAL", 20, 27),
                _game("g3", "SF", "SEA", 13, 13),
            ],
        )

        summaries = await asyncio.gather(
            *(calculate_weekly_awards(engine, SEASON, WEEK) for _ in range(4))
        )

        assert all(len(s.awards) == 5 for s in summaries)
        types = [t for t, _, _ in await _award_set(engine)]
        assert len([t for t in types if t in WIN_AWARD_TYPES]) == 3
        assert types.count(OBO) == 1
        assert types.count(DBO) == 1
