"""Goose probability: the chance an owner's every team fails to win this week.

Each team's chance of not winning is ``1 - win_probability``; teams are
treated as independent events, so the goose probability is the product of
those factors. Teams on bye contribute a factor of 1 (they cannot win).

Short-circuits to 0:
- the owner has no active teams;
- the owner already holds a WIN or TIE_AWAY award this week;
- two of the owner's teams play each other (one of them must be credited);
- one of the owner's teams has already won a final game.

Store failures never raise out of here: the result degrades to 0 with a
reason, since goose risk is a best-effort display figure.
"""

from __future__ import annotations

import logging

from sqlalchemy.exc import SQLAlchemyError

from payday.core.probability import WinProbabilityService, fallback_probability
from payday.db.repository import Repository
from payday.models.game import Game, find_team_game
from payday.models.probability import (
    DEFAULT_STRENGTHS,
    GooseResult,
    StrengthTable,
    TeamGooseDetail,
    WinProbability,
    format_percentage,
)

logger = logging.getLogger(__name__)

# owner_id of the single result returned when the owners cannot be loaded
ALL_OWNERS = "*"


def find_internal_game(teams: list[str], games: list[Game]) -> Game | None:
    """A game in which both sides belong to the same owner."""
    owned = set(teams)
    for game in games:
        if game.home in owned and game.away in owned:
            return game
    return None


def _trace(details: list[TeamGooseDetail], probability: float) -> str:
    factors = " × ".join(f"{d.lose_probability * 100:.0f}%" for d in details)
    return f"{factors} = {format_percentage(probability)}"


def compute_goose_probability(
    owner_id: str,
    season: int,
    week: int,
    teams: list[str],
    games: list[Game],
    probabilities: dict[str, WinProbability] | None = None,
    has_win: bool = False,
    strengths: StrengthTable = DEFAULT_STRENGTHS,
) -> GooseResult:
    """Goose probability for one owner. Pure.

    Args:
        owner_id: Owner being evaluated.
        season: Season year.
        week: Internal week number.
        teams: The owner's active team abbreviations.
        games: Games of the week, any status.
        probabilities: Precomputed win probabilities keyed by team. Teams
            missing from the map are estimated from ``strengths``.
        has_win: Whether the owner already holds a win-type award this week.
        strengths: Ratings used for teams without a supplied probability.
    """
    base = {"owner_id": owner_id, "season": season, "week": week, "team_count": len(teams)}
    probabilities = probabilities or {}

    if not teams:
        return GooseResult(
            **base,
            goose_probability=0.0,
            reason="No active teams found for this owner",
        )

    if has_win:
        return GooseResult(**base, goose_probability=0.0, reason="Already has a win this week")

    week_games = [g for g in games if g.season == season and g.week == week]

    internal = find_internal_game(teams, week_games)
    if internal is not None:
        return GooseResult(
            **base,
            goose_probability=0.0,
            reason="Has teams playing each other (guaranteed win)",
            internal_game=internal.matchup,
        )

    playing = [(t, g) for t in teams if (g := find_team_game(week_games, t)) is not None]
    on_bye = [t for t in teams if find_team_game(week_games, t) is None]
    counts = {"teams_playing": len(playing), "teams_on_bye": len(on_bye)}

    details = [
        TeamGooseDetail(
            team=t,
            win_probability=0.0,
            lose_probability=1.0,
            source="bye_week",
            on_bye=True,
        )
        for t in on_bye
    ]

    if not playing:
        return GooseResult(
            **base,
            **counts,
            goose_probability=1.0,
            reason="No games for this owner's teams this week (all teams on bye)",
            team_details=details,
            calculation="All teams on bye = 100.0%",
        )

    goose = 1.0
    undecided = 0
    for team, game in playing:
        opponent = game.opponent_of(team)
        supplied = probabilities.get(team)

        if game.final or (supplied is not None and supplied.confidence == "final"):
            won = game.is_win_for(team) if game.final else supplied.win_probability >= 1.0
            details.append(
                TeamGooseDetail(
                    team=team,
                    win_probability=1.0 if won else 0.0,
                    lose_probability=0.0 if won else 1.0,
                    opponent=opponent,
                    game=game.matchup,
                    source="game_finished",
                    actual_result="WIN" if won else "LOSS",
                )
            )
            if won:
                return GooseResult(
                    **base,
                    **counts,
                    goose_probability=0.0,
                    reason=f"{team} already won this week",
                    team_details=details,
                    calculation=_trace(details, 0.0),
                )
            continue

        if supplied is not None:
            win_prob = supplied.win_probability
            source = supplied.confidence
        else:
            win_prob = fallback_probability(game, team, strengths)
            source = "calculated"
        lose_prob = 1.0 - win_prob
        goose *= lose_prob
        undecided += 1
        details.append(
            TeamGooseDetail(
                team=team,
                win_probability=win_prob,
                lose_probability=lose_prob,
                opponent=opponent,
                game=game.matchup,
                source=source,
            )
        )

    goose = max(0.0, min(1.0, goose))
    if undecided:
        reason = f"{undecided} more team{'s' if undecided != 1 else ''} must lose"
    else:
        reason = "Every team has lost or is on bye"
    return GooseResult(
        **base,
        **counts,
        goose_probability=goose,
        reason=reason,
        team_details=details,
        calculation=_trace(details, goose),
    )


def _unavailable(owner_id: str, season: int, week: int, exc: Exception) -> GooseResult:
    return GooseResult(
        owner_id=owner_id,
        season=season,
        week=week,
        goose_probability=0.0,
        reason=f"Goose probability unavailable: {type(exc).__name__}",
        data_source="unavailable",
    )


async def goose_probability_for_owner(
    repo: Repository,
    owner_id: str,
    season: int,
    week: int,
    probabilities: dict[str, WinProbability] | None = None,
    service: WinProbabilityService | None = None,
    strengths: StrengthTable = DEFAULT_STRENGTHS,
) -> GooseResult:
    """Load an owner's week from the store and compute their goose probability.

    Supplied ``probabilities`` are used as-is. Otherwise, when a ``service`` is
    given, the owner's teams are priced once through it.
    """
    try:
        team_rows = await repo.get_active_teams_for_owner(owner_id)
        has_win = await repo.owner_has_win(owner_id, season, week)
        games = await repo.get_games_for_week(season, week)
    except SQLAlchemyError as exc:
        logger.exception("goose_lookup_failed owner=%s season=%d week=%d", owner_id, season, week)
        return _unavailable(owner_id, season, week, exc)

    teams = [t.abbr for t in team_rows]
    data_source = "provided_probabilities"
    if not probabilities:
        data_source = "estimated"
        needs_prices = teams and not has_win and find_internal_game(teams, games) is None
        if service is not None and needs_prices:
            probabilities = await service.week_probabilities(season, week, teams, games)
            data_source = "fetched_fresh"

    result = compute_goose_probability(
        owner_id,
        season,
        week,
        teams,
        games,
        probabilities=probabilities,
        has_win=has_win,
        strengths=strengths,
    )
    result.data_source = data_source
    logger.info(
        "goose_computed owner=%s season=%d week=%d probability=%.4f source=%s",
        owner_id,
        season,
        week,
        result.goose_probability,
        data_source,
    )
    return result


async def goose_probabilities_for_all_owners(
    repo: Repository,
    season: int,
    week: int,
    service: WinProbabilityService | None = None,
    strengths: StrengthTable = DEFAULT_STRENGTHS,
) -> list[GooseResult]:
    """Goose probability for every owner, pricing each team only once.

    Store failures degrade to zero-probability results: one per owner, or a
    single entry for ``ALL_OWNERS`` when the owners themselves cannot be read.
    """
    try:
        owners = await repo.get_all_owners()
    except SQLAlchemyError as exc:
        logger.exception("goose_batch_lookup_failed season=%d week=%d", season, week)
        return [_unavailable(ALL_OWNERS, season, week, exc)]
    try:
        games = await repo.get_games_for_week(season, week)
        winners = await repo.get_owners_with_wins(season, week)
    except SQLAlchemyError as exc:
        logger.exception("goose_batch_lookup_failed season=%d week=%d", season, week)
        return [_unavailable(owner.id, season, week, exc) for owner in owners]

    all_teams = sorted({t.abbr for o in owners for t in o.teams if t.active})
    probabilities: dict[str, WinProbability] = {}
    if service is not None and all_teams:
        probabilities = await service.week_probabilities(season, week, all_teams, games)

    results: list[GooseResult] = []
    for owner in owners:
        result = compute_goose_probability(
            owner.id,
            season,
            week,
            sorted(t.abbr for t in owner.teams if t.active),
            games,
            probabilities=probabilities,
            has_win=owner.id in winners,
            strengths=strengths,
        )
        result.data_source = "provided_probabilities" if probabilities else "estimated"
        results.append(result)
    return results
