"""Season leaderboard: award ledger rolled up into dollars per owner."""

from __future__ import annotations

from pydantic import BaseModel, Field

from payday.db.models import AwardRow, OwnerRow
from payday.db.repository import Repository
from payday.models.award import DEFAULT_PAYOUTS, PayoutSchedule
from payday.models.constants import (
    DBO,
    EOY_AWARD_TYPES,
    OBO,
    PLAYOFF_AWARD_TYPES,
    WIN_AWARD_TYPES,
)


class LeaderboardEntry(BaseModel):
    owner_id: str
    owner: str
    earnings: int = 0
    wins: int = 0
    obo: int = 0
    dbo: int = 0
    eoy: int = 0
    playoff: int = 0
    teams: list[str] = Field(default_factory=list)
    goose_count: int = 0


def build_leaderboard(
    rows: list[AwardRow],
    payouts: PayoutSchedule = DEFAULT_PAYOUTS,
    owners: list[OwnerRow] | None = None,
) -> list[LeaderboardEntry]:
    """Aggregate award rows by owner, richest first, then by name.

    Owners passed in ``owners`` appear even without any award.
    """
    entries: dict[str, LeaderboardEntry] = {}
    for owner in owners or []:
        entries[owner.id] = LeaderboardEntry(
            owner_id=owner.id, owner=owner.name, goose_count=owner.goose_count
        )

    for row in rows:
        entry = entries.get(row.owner_id)
        if entry is None:
            entry = LeaderboardEntry(
                owner_id=row.owner_id,
                owner=row.owner.name if row.owner else "Unknown",
                goose_count=row.owner.goose_count if row.owner else 0,
            )
            entries[row.owner_id] = entry

        entry.earnings += payouts.dollars(row.type, row.points)
        if row.type in WIN_AWARD_TYPES:
            entry.wins += 1
        elif row.type == OBO:
            entry.obo += 1
        elif row.type == DBO:
            entry.dbo += 1
        elif row.type in EOY_AWARD_TYPES:
            entry.eoy += 1
        elif row.type in PLAYOFF_AWARD_TYPES:
            entry.playoff += 1
        if row.team_abbr not in entry.teams:
            entry.teams.append(row.team_abbr)

    for entry in entries.values():
        entry.teams.sort()
    return sorted(entries.values(), key=lambda e: (-e.earnings, e.owner))


async def get_leaderboard(
    repo: Repository, season: int, payouts: PayoutSchedule = DEFAULT_PAYOUTS
) -> list[LeaderboardEntry]:
    rows = await repo.get_awards_for_season(season)
    owners = await repo.get_all_owners()
    return build_leaderboard(rows, payouts, owners=owners)
