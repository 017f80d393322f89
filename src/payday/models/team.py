"""Owner and Team registry models.

The registry is provisioned out-of-band (YAML seed or admin tooling); the
award and goose engines only read it.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class Team(BaseModel):
    """An NFL franchise as held by one owner."""

    model_config = ConfigDict(from_attributes=True)

    abbr: str = Field(min_length=2, max_length=3)
    name: str = ""
    owner_id: str
    active: bool = True


class Owner(BaseModel):
    """A league participant. ``goose_count`` is maintained outside the core."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    goose_count: int = Field(default=0, ge=0)
    teams: list[Team] = Field(default_factory=list)

    @property
    def active_team_abbrs(self) -> list[str]:
        return [t.abbr for t in self.teams if t.active]
