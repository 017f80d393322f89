"""Scheduled and on-demand update runs: fetch scores, store games, award.

``run_*`` functions return a summary and raise on caller errors (bad round
names). The ``tick_*`` wrappers are what APScheduler invokes: they catch and
log everything so the scheduler is never interrupted.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime

from pydantic import BaseModel, Field
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine

from payday.clients.espn import ESPNClient
from payday.core.awards import calculate_weekly_awards
from payday.core.errors import AwardComputationError, ProviderError
from payday.core.playoffs import (
    award_playoff_berths,
    award_playoff_round_wins,
    update_all_playoffs,
)
from payday.core.schedule_times import is_game_time
from payday.db.engine import get_session
from payday.db.repository import Repository
from payday.models.award import DEFAULT_PAYOUTS, AwardResults, PayoutSchedule
from payday.models.game import Game, find_schedule_conflicts

logger = logging.getLogger(__name__)

BERTHS = "BERTHS"


class WeeklyUpdateSummary(BaseModel):
    season: int
    week: int
    games_processed: int = 0
    games_updated: int = 0
    completed_games: int = 0
    pending_games: int = 0
    awards_given: int = 0
    awards_message: str = ""
    game_results: list[dict] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)
    skipped: bool = False
    reason: str = ""


class PlayoffUpdateSummary(BaseModel):
    season: int
    round: str
    awarded: int = 0
    skipped: int = 0
    errors: int = 0
    results: AwardResults = Field(default_factory=AwardResults)


async def _stored_conflict(repo: Repository, game: Game) -> str | None:
    """ID of a different stored game that already has one of these teams this week."""
    for abbr in (game.home, game.away):
        existing = await repo.get_team_game(game.season, game.week, abbr)
        if existing is not None and existing.id != game.id:
            return existing.id
    return None


async def run_weekly_update(
    engine: AsyncEngine,
    espn: ESPNClient,
    season: int | None = None,
    week: int | None = None,
    payouts: PayoutSchedule = DEFAULT_PAYOUTS,
) -> WeeklyUpdateSummary:
    """Refresh one week's games from ESPN and recompute its awards.

    Defaults to the current week. Provider and award failures are recorded
    in the summary rather than raised.
    """
    if season is None or week is None:
        current = await espn.get_current_week()
        season = current.season if season is None else season
        week = current.week if week is None else week

    summary = WeeklyUpdateSummary(season=season, week=week)
    try:
        games = await espn.fetch_week_games(season, week)
    except ProviderError as exc:
        logger.exception("weekly_update_fetch_failed season=%d week=%d", season, week)
        summary.errors.append(str(exc))
        return summary

    conflicts = set(find_schedule_conflicts(games))
    for game in games:
        if game.id in conflicts:
            logger.error("game_schedule_conflict id=%s matchup=%s", game.id, game.matchup)
            summary.game_results.append(
                {"game": game.id, "success": False, "error": "team already has a game this week"}
            )
            continue
        try:
            async with get_session(engine) as session:
                repo = Repository(session)
                clash = await _stored_conflict(repo, game)
                if clash is None:
                    await repo.upsert_game(game)
        except SQLAlchemyError as exc:
            logger.exception("game_upsert_failed id=%s", game.id)
            summary.game_results.append({"game": game.id, "success": False, "error": str(exc)})
            continue
        if clash is not None:
            logger.error("game_schedule_conflict id=%s existing=%s", game.id, clash)
            summary.game_results.append(
                {"game": game.id, "success": False, "error": f"conflicts with stored game {clash}"}
            )
            continue
        summary.game_results.append({"game": game.id, "success": True})

    summary.games_processed = len(games)
    summary.games_updated = sum(1 for r in summary.game_results if r["success"])
    summary.completed_games = sum(1 for g in games if g.final)
    summary.pending_games = summary.games_processed - summary.completed_games

    try:
        awards = await calculate_weekly_awards(engine, season, week, payouts)
    except AwardComputationError as exc:
        summary.errors.append(str(exc))
    else:
        summary.awards_given = len(awards.awards)
        summary.awards_message = awards.message

    logger.info(
        "weekly_update_done season=%d week=%d games=%d updated=%d awards=%d",
        season,
        week,
        summary.games_processed,
        summary.games_updated,
        summary.awards_given,
    )
    return summary


async def run_live_update(
    engine: AsyncEngine,
    espn: ESPNClient,
    now: datetime | None = None,
    payouts: PayoutSchedule = DEFAULT_PAYOUTS,
) -> WeeklyUpdateSummary:
    """Like ``run_weekly_update`` for the current week, but only inside the game window."""
    moment = now or datetime.now(UTC)
    if not is_game_time(moment):
        current = await espn.get_current_week(moment)
        logger.info("live_update_skip: outside game window")
        return WeeklyUpdateSummary(
            season=current.season,
            week=current.week,
            skipped=True,
            reason="Not game time",
        )
    return await run_weekly_update(engine, espn, payouts=payouts)


async def run_playoff_update(
    engine: AsyncEngine,
    espn: ESPNClient,
    season: int | None = None,
    round: str | None = None,
    payouts: PayoutSchedule = DEFAULT_PAYOUTS,
) -> PlayoffUpdateSummary:
    """Award berths (``round="BERTHS"``), one round, or everything (``round=None``).

    Raises:
        InvalidRoundError: *round* is neither ``BERTHS`` nor a round name.
        SQLAlchemyError: the store failed; nothing from this run is committed.
    """
    if season is None:
        season = (await espn.get_current_week()).season

    async with get_session(engine) as session:
        repo = Repository(session)
        if round is None:
            results = await update_all_playoffs(repo, espn, season, payouts)
        elif round == BERTHS:
            results = await award_playoff_berths(repo, espn, season, payouts)
        else:
            results = await award_playoff_round_wins(repo, espn, season, round, payouts)

    summary = PlayoffUpdateSummary(
        season=season,
        round=round or "ALL",
        awarded=len(results.awarded),
        skipped=len(results.skipped),
        errors=len(results.errors),
        results=results,
    )
    logger.info(
        "playoff_update_done season=%d round=%s awarded=%d skipped=%d errors=%d",
        season,
        summary.round,
        summary.awarded,
        summary.skipped,
        summary.errors,
    )
    return summary


async def tick_weekly_update(
    engine: AsyncEngine, espn: ESPNClient, payouts: PayoutSchedule = DEFAULT_PAYOUTS
) -> None:
    """Scheduler entry point for the weekly settle run."""
    try:
        await run_weekly_update(engine, espn, payouts=payouts)
    except Exception:  # Last-resort handler for scheduler jobs
        logger.exception("tick_weekly_update_error")


async def tick_live_update(
    engine: AsyncEngine, espn: ESPNClient, payouts: PayoutSchedule = DEFAULT_PAYOUTS
) -> None:
    """Scheduler entry point for in-window score refreshes."""
    try:
        await run_live_update(engine, espn, payouts=payouts)
    except Exception:  # Last-resort handler for scheduler jobs
        logger.exception("tick_live_update_error")


async def tick_playoff_update(
    engine: AsyncEngine, espn: ESPNClient, payouts: PayoutSchedule = DEFAULT_PAYOUTS
) -> None:
    """Scheduler entry point for the playoff ledger."""
    try:
        await run_playoff_update(engine, espn, payouts=payouts)
    except Exception:  # Last-resort handler for scheduler jobs
        logger.exception("tick_playoff_update_error")
