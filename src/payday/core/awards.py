"""Weekly award rules: WIN, TIE_AWAY, OBO and DBO.

Given the final games of one (season, week), produce the canonical award set:

- every final game yields exactly one win-type award (WIN to the higher
  score; on a tie, TIE_AWAY to the away team and nothing to the home team);
- exactly one OBO, to the team with the week's highest score;
- exactly one DBO, to the team whose opponent posted the week's lowest score.

OBO and DBO ties go to the largest scoring margin, then to the
alphabetically first team abbreviation.

Persisting a week replaces its previous award set in a single transaction,
so recomputation after a score correction leaves nothing from the old set.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine

from payday.core.errors import AwardComputationError
from payday.db.engine import get_session
from payday.db.repository import Repository
from payday.models.award import DEFAULT_PAYOUTS, Award, PayoutSchedule, WeeklyAwardSummary
from payday.models.constants import DBO, OBO, TIE_AWAY, WIN
from payday.models.game import FIRST_PLAYOFF_WEEK, Game

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TeamScore:
    """One side of a final game."""

    team: str
    opponent: str
    score: int
    opponent_score: int

    @property
    def margin(self) -> int:
        return self.score - self.opponent_score


def team_scores(games: list[Game]) -> list[TeamScore]:
    """Flatten games into one entry per participating team."""
    scores: list[TeamScore] = []
    for g in games:
        scores.append(TeamScore(g.home, g.away, g.home_pts, g.away_pts))
        scores.append(TeamScore(g.away, g.home, g.away_pts, g.home_pts))
    return scores


def pick_bonus_winner(candidates: list[TeamScore]) -> TeamScore:
    """Largest margin wins; identical margins fall back to abbreviation order."""
    if not candidates:
        raise ValueError("no candidates for bonus award")
    return min(candidates, key=lambda s: (-s.margin, s.team))


def _win_award(season: int, week: int, game: Game, points: int) -> Award:
    if game.home_pts > game.away_pts:
        return Award(
            season=season,
            week=week,
            type=WIN,
            team_abbr=game.home,
            points=points,
            notes=f"Beat {game.away} {game.home_pts}-{game.away_pts}",
        )
    if game.away_pts > game.home_pts:
        return Award(
            season=season,
            week=week,
            type=WIN,
            team_abbr=game.away,
            points=points,
            notes=f"Beat {game.home} {game.away_pts}-{game.home_pts}",
        )
    return Award(
        season=season,
        week=week,
        type=TIE_AWAY,
        team_abbr=game.away,
        points=points,
        notes=f"Tied with {game.home} {game.away_pts}-{game.home_pts}",
    )


def compute_weekly_awards(
    season: int,
    week: int,
    games: list[Game],
    payouts: PayoutSchedule = DEFAULT_PAYOUTS,
) -> list[Award]:
    """Compute the award set for one week. Pure; owners are not resolved.

    Games that are not final, or belong to another (season, week), are
    ignored. Returns an empty list when no final games remain.
    """
    final_games = [g for g in games if g.final and g.season == season and g.week == week]
    if not final_games:
        return []

    points = payouts.weekly_points
    awards = [_win_award(season, week, g, points) for g in final_games]

    scores = team_scores(final_games)

    highest = max(s.score for s in scores)
    obo_candidates = [s for s in scores if s.score == highest]
    obo = pick_bonus_winner(obo_candidates)
    obo_notes = f"Highest score: {highest} points"
    if len(obo_candidates) > 1:
        obo_notes += f" (tiebreaker: {obo.margin:+d} margin)"
    awards.append(
        Award(
            season=season,
            week=week,
            type=OBO,
            team_abbr=obo.team,
            points=points,
            notes=obo_notes,
        )
    )

    lowest = min(s.score for s in scores)
    dbo_candidates = [s for s in scores if s.opponent_score == lowest]
    dbo = pick_bonus_winner(dbo_candidates)
    dbo_notes = f"Held {dbo.opponent} to {lowest} points"
    if len(dbo_candidates) > 1:
        dbo_notes += f" (tiebreaker: {dbo.margin:+d} margin)"
    awards.append(
        Award(
            season=season,
            week=week,
            type=DBO,
            team_abbr=dbo.team,
            points=points,
            notes=dbo_notes,
        )
    )

    return awards


def resolve_owners(
    awards: list[Award],
    owner_map: dict[str, str],
) -> tuple[list[Award], list[str]]:
    """Attach owner IDs. Awards for teams without an active owner are dropped.

    Returns (resolved awards, abbreviations that had no owner).
    """
    resolved: list[Award] = []
    missing: list[str] = []
    for award in awards:
        owner_id = owner_map.get(award.team_abbr)
        if owner_id is None:
            logger.error(
                "award_owner_missing season=%d week=%d type=%s team=%s",
                award.season,
                award.week,
                award.type,
                award.team_abbr,
            )
            missing.append(award.team_abbr)
            continue
        resolved.append(award.model_copy(update={"owner_id": owner_id}))
    return resolved, missing


async def recompute_weekly_awards(
    repo: Repository,
    season: int,
    week: int,
    payouts: PayoutSchedule = DEFAULT_PAYOUTS,
) -> WeeklyAwardSummary:
    """Recompute and replace one week's awards on the repository's session.

    The caller owns the transaction. Playoff weeks are skipped: their awards
    come from the playoff engine.
    """
    if week >= FIRST_PLAYOFF_WEEK:
        logger.info("weekly_awards_skipped season=%d week=%d reason=playoff_week", season, week)
        return WeeklyAwardSummary(
            season=season,
            week=week,
            message="Playoff week - weekly awards are not computed",
            skipped=True,
        )

    games = await repo.get_games_for_week(season, week, final_only=True)
    if not games:
        return WeeklyAwardSummary(season=season, week=week, message="No completed games found")

    drafts = compute_weekly_awards(season, week, games, payouts)
    owner_map = await repo.get_owner_map()
    awards, missing = resolve_owners(drafts, owner_map)
    await repo.replace_weekly_awards(season, week, awards)

    logger.info(
        "weekly_awards_replaced season=%d week=%d games=%d awards=%d missing=%d",
        season,
        week,
        len(games),
        len(awards),
        len(missing),
    )
    return WeeklyAwardSummary(
        season=season,
        week=week,
        message=f"Processed {len(games)} games and awarded {len(awards)} awards",
        games=len(games),
        awards=awards,
        missing_owners=missing,
    )


# Recomputation of one (season, week) must not interleave with itself.
_week_locks: dict[tuple[int, int], asyncio.Lock] = {}


def _week_lock(season: int, week: int) -> asyncio.Lock:
    key = (season, week)
    if key not in _week_locks:
        _week_locks[key] = asyncio.Lock()
    return _week_locks[key]


async def calculate_weekly_awards(
    engine: AsyncEngine,
    season: int,
    week: int,
    payouts: PayoutSchedule = DEFAULT_PAYOUTS,
) -> WeeklyAwardSummary:
    """Serialized, transactional weekly award recomputation.

    Raises:
        AwardComputationError: the store failed; no award changes were committed.
    """
    async with _week_lock(season, week):
        try:
            async with get_session(engine) as session:
                return await recompute_weekly_awards(Repository(session), season, week, payouts)
        except SQLAlchemyError as exc:
            logger.exception("weekly_awards_failed season=%d week=%d", season, week)
            raise AwardComputationError(season, week, exc) from exc
