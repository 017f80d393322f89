"""Award models: the ledger entries that drive owner earnings.

WIN and TIE_AWAY credit the winning or tied away team, OBO the week's top
score, DBO the lowest score allowed. A berth is a playoff seed.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from payday.models.constants import EOY_AWARD_TYPES, PLAYOFF_AWARD_TYPES


class Award(BaseModel):
    """A single award record.

    ``owner_id`` is None until the team has been resolved against the
    active registry. ``points`` is a weight for weekly types and a dollar
    amount for direct-amount types (see ``PayoutSchedule``).
    """

    season: int
    week: int
    type: str
    team_abbr: str
    owner_id: str | None = None
    points: int
    notes: str = ""


class PayoutSchedule(BaseModel):
    """Versioned conversion from award points to dollars.

    Weekly awards are worth ``points * dollars_per_point``. Playoff and
    end-of-year awards carry their dollar amount directly in ``points``.
    """

    version: str = "2025.1"
    dollars_per_point: int = 5
    weekly_points: int = 1
    playoff_amounts: dict[str, int] = Field(
        default_factory=lambda: {
            "PLAYOFF_BERTH": 10,
            "PLAYOFF_BYE": 10,
            "PLAYOFF_WC_WIN": 10,
            "PLAYOFF_DIV_WIN": 15,
            "PLAYOFF_CONF_WIN": 30,
            "PLAYOFF_SB_WIN": 90,
        }
    )
    eoy_amounts: dict[str, int] = Field(
        default_factory=lambda: {
            "COACH_FIRED": 5,
            "DRAFT_PICK_1": 35,
            "MVP": 20,
            "DPOY": 15,
            "COTY": 5,
            "MOST_SACKS": 15,
            "MOST_INTS": 10,
            "MOST_RET_TDS": 15,
        }
    )

    def is_direct_amount(self, award_type: str) -> bool:
        return award_type in PLAYOFF_AWARD_TYPES or award_type in EOY_AWARD_TYPES

    def direct_amount(self, award_type: str) -> int:
        if award_type in self.playoff_amounts:
            return self.playoff_amounts[award_type]
        if award_type in self.eoy_amounts:
            return self.eoy_amounts[award_type]
        raise KeyError(f"no direct amount configured for {award_type}")

    def dollars(self, award_type: str, points: int) -> int:
        """Dollar value of an award record."""
        if self.is_direct_amount(award_type):
            return points
        return points * self.dollars_per_point


DEFAULT_PAYOUTS = PayoutSchedule()


class WeeklyAwardSummary(BaseModel):
    """Outcome of one weekly award recomputation."""

    season: int
    week: int
    message: str
    games: int = 0
    awards: list[Award] = Field(default_factory=list)
    missing_owners: list[str] = Field(default_factory=list)
    skipped: bool = False


class AwardResults(BaseModel):
    """Per-item outcome of an append-only award pass (playoffs, manual EOY)."""

    awarded: list[dict] = Field(default_factory=list)
    skipped: list[dict] = Field(default_factory=list)
    errors: list[dict] = Field(default_factory=list)

    def merge(self, other: AwardResults) -> None:
        self.awarded.extend(other.awarded)
        self.skipped.extend(other.skipped)
        self.errors.extend(other.errors)
