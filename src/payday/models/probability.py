"""Win probability and goose models.

A goose is a week in which none of an owner's teams wins; confidence labels
where a team's win probability came from.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

Confidence = Literal["final", "high", "calculated", "fallback", "no-api", "bye_week"]

# Confidence labels that mark a probability as an estimate rather than a price
ESTIMATED_CONFIDENCE: frozenset[str] = frozenset({"calculated", "fallback", "no-api"})


class WinProbability(BaseModel):
    """Probability that a team wins its game in one (season, week)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    team: str
    season: int
    week: int
    win_probability: float = Field(ge=0.0, le=1.0)
    confidence: Confidence
    opponent: str | None = None
    market: str = ""
    ticker: str | None = None
    last_price: str | None = None

    @property
    def is_estimate(self) -> bool:
        return self.confidence in ESTIMATED_CONFIDENCE


class StrengthTable(BaseModel):
    """Static team-strength ratings for the logistic fallback.

    ``P(home) = 1 / (1 + exp(-(home + home_advantage - away) / scale))``
    """

    ratings: dict[str, float] = Field(
        default_factory=lambda: {
            "KC": 95, "BUF": 92, "SF": 90, "PHI": 88, "BAL": 87,
            "DAL": 85, "MIA": 82, "CIN": 80, "GB": 79, "LAC": 78,
            "MIN": 77, "DET": 76, "NYJ": 75, "SEA": 74, "JAC": 73,
            "LAR": 72, "PIT": 71, "LV": 70, "IND": 69, "TEN": 68,
            "ATL": 67, "TB": 66, "NO": 65, "WAS": 64, "DEN": 63,
            "CHI": 62, "HOU": 61, "NYG": 60, "ARI": 59, "NE": 58,
            "CLE": 56, "CAR": 55,
        }
    )
    default_rating: float = 65.0
    home_advantage: float = 6.0  # roughly three points on the spread
    scale: float = Field(default=15.0, gt=0)

    def rating(self, abbr: str) -> float:
        return self.ratings.get(abbr, self.default_rating)


DEFAULT_STRENGTHS = StrengthTable()


class TeamGooseDetail(BaseModel):
    """One factor of a goose calculation."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    team: str
    win_probability: float
    lose_probability: float
    opponent: str | None = None
    game: str | None = None
    source: str
    on_bye: bool = False
    actual_result: Literal["WIN", "LOSS"] | None = None


class GooseResult(BaseModel):
    """Probability that every one of an owner's teams fails to win this week."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    owner_id: str
    season: int
    week: int
    goose_probability: float = Field(ge=0.0, le=1.0)
    reason: str
    team_details: list[TeamGooseDetail] = Field(default_factory=list)
    calculation: str = ""
    team_count: int = 0
    teams_playing: int = 0
    teams_on_bye: int = 0
    internal_game: str | None = None
    data_source: str = "provided_probabilities"

    @property
    def goose_percentage(self) -> str:
        return format_percentage(self.goose_probability)

    def to_payload(self) -> dict:
        """Camel-cased response body, including the formatted percentage."""
        data = self.model_dump(by_alias=True)
        data["goosePercentage"] = self.goose_percentage
        return data


def format_percentage(probability: float, digits: int = 1) -> str:
    return f"{probability * 100:.{digits}f}%"
