"""Playoff and end-of-year awards: the append-only part of the ledger.

Unlike weekly awards, these are one-time historical facts: each
``(season, type, team_abbr)`` is written at most once and never replaced.
Every pass is safe to repeat; already-recorded awards are reported as
skipped. A team without an owner is recorded as an error and the pass
continues. Store errors propagate.
"""

from __future__ import annotations

import logging
from typing import Protocol

from payday.core.errors import InvalidRoundError
from payday.db.repository import Repository
from payday.models.award import DEFAULT_PAYOUTS, Award, AwardResults, PayoutSchedule
from payday.models.constants import (
    BERTH_WEEK,
    EOY_AWARD_TYPES,
    PLAYOFF_BERTH,
    PLAYOFF_BYE,
    PLAYOFF_ROUNDS,
    PLAYOFF_SEED_CUTOFF,
    ROUND_AWARD_TYPE,
    ROUND_WEEK,
    PlayoffRound,
)
from payday.models.playoff import PlayoffGame, PlayoffSeed

logger = logging.getLogger(__name__)


class PlayoffDataSource(Protocol):
    """Where seeds and bracket results come from (ESPN in production)."""

    async def fetch_playoff_seeds(self, season: int) -> list[PlayoffSeed]: ...

    async def fetch_playoff_games(
        self, season: int, round: PlayoffRound | None = None
    ) -> list[PlayoffGame]: ...


async def _append_once(
    repo: Repository,
    award: Award,
    owner_map: dict[str, str],
    results: AwardResults,
) -> None:
    entry = {"type": award.type, "team": award.team_abbr, "week": award.week}
    if await repo.award_exists(award.season, award.type, award.team_abbr):
        results.skipped.append({**entry, "reason": "already awarded"})
        return
    owner_id = owner_map.get(award.team_abbr)
    if owner_id is None:
        logger.error(
            "award_owner_missing season=%d type=%s team=%s",
            award.season,
            award.type,
            award.team_abbr,
        )
        results.errors.append({**entry, "error": f"No owner found for team {award.team_abbr}"})
        return
    await repo.append_award(award.model_copy(update={"owner_id": owner_id}))
    results.awarded.append({**entry, "owner_id": owner_id, "amount": award.points})


async def award_playoff_berths(
    repo: Repository,
    source: PlayoffDataSource,
    season: int,
    payouts: PayoutSchedule = DEFAULT_PAYOUTS,
) -> AwardResults:
    """PLAYOFF_BERTH for seeds 1-7 of each conference; PLAYOFF_BYE for each #1 seed."""
    seeds = await source.fetch_playoff_seeds(season)
    owner_map = await repo.get_owner_map()
    results = AwardResults()

    for seed in sorted(seeds, key=lambda s: (s.conference, s.seed)):
        if seed.seed > PLAYOFF_SEED_CUTOFF:
            continue
        berth = Award(
            season=season,
            week=BERTH_WEEK,
            type=PLAYOFF_BERTH,
            team_abbr=seed.abbr,
            points=payouts.direct_amount(PLAYOFF_BERTH),
            notes=f"{seed.conference} #{seed.seed} seed",
        )
        await _append_once(repo, berth, owner_map, results)
        if seed.seed == 1:
            bye = Award(
                season=season,
                week=BERTH_WEEK,
                type=PLAYOFF_BYE,
                team_abbr=seed.abbr,
                points=payouts.direct_amount(PLAYOFF_BYE),
                notes=f"{seed.conference} #1 seed - first round bye",
            )
            await _append_once(repo, bye, owner_map, results)

    logger.info(
        "playoff_berths_processed season=%d awarded=%d skipped=%d errors=%d",
        season,
        len(results.awarded),
        len(results.skipped),
        len(results.errors),
    )
    return results


async def award_playoff_round_wins(
    repo: Repository,
    source: PlayoffDataSource,
    season: int,
    round: str,
    payouts: PayoutSchedule = DEFAULT_PAYOUTS,
) -> AwardResults:
    """Award the round's win type to every winner of a completed game in *round*.

    Raises:
        InvalidRoundError: *round* is not a playoff round name.
    """
    if round not in ROUND_AWARD_TYPE:
        raise InvalidRoundError(f"Invalid round: {round}")

    award_type = ROUND_AWARD_TYPE[round]
    games = await source.fetch_playoff_games(season, round)  # type: ignore[arg-type]
    completed = [g for g in games if g.completed and g.round == round]
    owner_map = await repo.get_owner_map() if completed else {}
    results = AwardResults()

    label = round.replace("_", " ")
    for game in completed:
        winner, loser = game.winner, game.loser
        if winner is None or loser is None:
            results.errors.append({"type": award_type, "game": game.id, "error": "No winner"})
            continue
        score = f"{game.home_score}-{game.away_score}"
        award = Award(
            season=season,
            week=ROUND_WEEK[round],
            type=award_type,
            team_abbr=winner,
            points=payouts.direct_amount(award_type),
            notes=f"{label} win vs {loser} ({score})",
        )
        await _append_once(repo, award, owner_map, results)

    logger.info(
        "playoff_round_processed season=%d round=%s games=%d awarded=%d",
        season,
        round,
        len(completed),
        len(results.awarded),
    )
    return results


async def update_all_playoffs(
    repo: Repository,
    source: PlayoffDataSource,
    season: int,
    payouts: PayoutSchedule = DEFAULT_PAYOUTS,
) -> AwardResults:
    """Berths first, then every round in bracket order."""
    results = await award_playoff_berths(repo, source, season, payouts)
    for round in PLAYOFF_ROUNDS:
        results.merge(await award_playoff_round_wins(repo, source, season, round, payouts))
    return results


async def record_manual_award(
    repo: Repository,
    season: int,
    award_type: str,
    team_abbr: str,
    notes: str = "",
    payouts: PayoutSchedule = DEFAULT_PAYOUTS,
) -> AwardResults:
    """Record an end-of-year award (MVP, first coach fired, ...) at its fixed amount.

    Raises:
        ValueError: *award_type* is not an end-of-year award.
    """
    if award_type not in EOY_AWARD_TYPES:
        raise ValueError(f"{award_type} is not an end-of-year award type")
    award = Award(
        season=season,
        week=BERTH_WEEK,
        type=award_type,
        team_abbr=team_abbr,
        points=payouts.direct_amount(award_type),
        notes=notes,
    )
    results = AwardResults()
    await _append_once(repo, award, await repo.get_owner_map(), results)
    return results
