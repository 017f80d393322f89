"""Game models: canonical shape of a scheduled or played NFL game.

Every provider-specific response is normalized into ``Game`` before the
award and goose engines see it.
"""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field, model_validator

GameStatus = Literal["SCHEDULED", "IN_PROGRESS", "FINAL"]

# Internal week numbering: 1-18 regular season, 19-22 playoff slots.
REGULAR_SEASON_WEEKS = 18
FIRST_PLAYOFF_WEEK = 19
LAST_PLAYOFF_WEEK = 22


class Game(BaseModel):
    """A single NFL matchup for one (season, week)."""

    id: str
    season: int
    week: int = Field(ge=1, le=LAST_PLAYOFF_WEEK)
    home: str
    away: str
    home_pts: int = 0
    away_pts: int = 0
    status: GameStatus = "SCHEDULED"
    kickoff: datetime | None = None

    @model_validator(mode="after")
    def _distinct_teams(self) -> Game:
        if self.home == self.away:
            raise ValueError(f"game {self.id} lists {self.home} as both home and away")
        return self

    @property
    def final(self) -> bool:
        return self.status == "FINAL"

    @property
    def matchup(self) -> str:
        return f"{self.away} @ {self.home}"

    def involves(self, abbr: str) -> bool:
        return abbr in (self.home, self.away)

    def opponent_of(self, abbr: str) -> str:
        if abbr == self.home:
            return self.away
        if abbr == self.away:
            return self.home
        raise ValueError(f"{abbr} does not play in game {self.id}")

    def points_for(self, abbr: str) -> int:
        return self.home_pts if abbr == self.home else self.away_pts

    def points_against(self, abbr: str) -> int:
        return self.away_pts if abbr == self.home else self.home_pts

    def winner(self) -> str | None:
        """Team credited with the win, or None while the game is not final.

        A tie credits the away team (TIE_AWAY rule).
        """
        if not self.final:
            return None
        if self.home_pts > self.away_pts:
            return self.home
        return self.away

    def is_win_for(self, abbr: str) -> bool:
        return self.winner() == abbr


def find_team_game(games: list[Game], abbr: str) -> Game | None:
    """Return the game *abbr* plays in, or None on a bye."""
    for game in games:
        if game.involves(abbr):
            return game
    return None


def find_schedule_conflicts(games: list[Game]) -> list[str]:
    """Return game IDs that would give a team a second game in the same week."""
    seen: dict[tuple[int, int, str], str] = {}
    conflicts: list[str] = []
    for game in games:
        keys = [(game.season, game.week, game.home), (game.season, game.week, game.away)]
        if any(k in seen and seen[k] != game.id for k in keys):
            conflicts.append(game.id)
            continue
        for k in keys:
            seen[k] = game.id
    return conflicts
