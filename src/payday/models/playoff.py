"""Playoff bracket models: seeds and round results as reported by the provider."""

from __future__ import annotations

from pydantic import BaseModel

from payday.models.constants import PlayoffRound


class PlayoffSeed(BaseModel):
    """A team's conference seed after the regular season."""

    abbr: str
    conference: str
    seed: int
    name: str = ""
    wins: int = 0
    losses: int = 0
    clinched: str | None = None


class PlayoffGame(BaseModel):
    """A single playoff game with its detected round."""

    id: str
    round: PlayoffRound
    home: str
    away: str
    home_score: int = 0
    away_score: int = 0
    completed: bool = False
    event_name: str = ""

    @property
    def winner(self) -> str | None:
        """Playoff games cannot end tied; None until completed."""
        if not self.completed or self.home_score == self.away_score:
            return None
        return self.home if self.home_score > self.away_score else self.away

    @property
    def loser(self) -> str | None:
        winner = self.winner
        if winner is None:
            return None
        return self.away if winner == self.home else self.home
