"""Owner/team registry. Load from YAML and upsert into the database.

Registry file shape::

    owners:
      - name: Alice
        goose_count: 1
        teams:
          - abbr: KC
            name: Kansas City Chiefs
    strengths:          # optional, overrides the built-in ratings
      home_advantage: 6
      ratings: {KC: 95, CAR: 55}
"""

from __future__ import annotations

import logging
from pathlib import Path

import yaml
from pydantic import BaseModel, Field

from payday.db.repository import Repository
from payday.models.probability import StrengthTable

logger = logging.getLogger(__name__)


class TeamEntry(BaseModel):
    abbr: str = Field(min_length=2, max_length=3)
    name: str = ""


class OwnerEntry(BaseModel):
    name: str
    goose_count: int = Field(default=0, ge=0)
    teams: list[TeamEntry] = Field(default_factory=list)


class RegistryConfig(BaseModel):
    owners: list[OwnerEntry] = Field(default_factory=list)
    strengths: StrengthTable | None = None


class SeedReport(BaseModel):
    owners_created: int = 0
    owners_updated: int = 0
    teams_created: int = 0
    teams_reassigned: int = 0


def load_registry_yaml(path: Path) -> RegistryConfig:
    """Load the registry from YAML."""
    with open(path) as f:
        data = yaml.safe_load(f)
    return RegistryConfig.model_validate(data or {})


def save_registry_yaml(config: RegistryConfig, path: Path) -> None:
    """Save the registry to YAML."""
    data = config.model_dump(exclude_none=True)
    with open(path, "w") as f:
        yaml.dump(data, f, default_flow_style=False, sort_keys=False)


async def seed_registry(repo: Repository, config: RegistryConfig) -> SeedReport:
    """Upsert owners and their active teams. Safe to run repeatedly.

    A team listed under a different owner than its current active record is
    transferred: the old record is deactivated, keeping award history intact.
    """
    report = SeedReport()
    for entry in config.owners:
        owner = await repo.get_owner_by_name(entry.name)
        if owner is None:
            owner = await repo.create_owner(entry.name, goose_count=entry.goose_count)
            report.owners_created += 1
        elif owner.goose_count != entry.goose_count:
            owner.goose_count = entry.goose_count
            report.owners_updated += 1

        for team in entry.teams:
            abbr = team.abbr.upper()
            current = await repo.get_active_team(abbr)
            if current is not None and current.owner_id == owner.id:
                if team.name and current.name != team.name:
                    current.name = team.name
                continue
            if current is not None:
                logger.info(
                    "team_reassigned abbr=%s from=%s to=%s", abbr, current.owner_id, owner.id
                )
                await repo.deactivate_team(abbr)
                report.teams_reassigned += 1
            else:
                report.teams_created += 1
            await repo.create_team(abbr, owner.id, name=team.name)

    await repo.session.flush()
    logger.info(
        "registry_seeded owners_created=%d teams_created=%d teams_reassigned=%d",
        report.owners_created,
        report.teams_created,
        report.teams_reassigned,
    )
    return report
