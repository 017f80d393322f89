"""Tests for the owner/team registry loader and seeder."""

from pathlib import Path

import pytest
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncEngine

from payday.core.seeding import (
    OwnerEntry,
    RegistryConfig,
    TeamEntry,
    load_registry_yaml,
    save_registry_yaml,
    seed_registry,
)
from payday.db.engine import get_session
from payday.db.repository import Repository

REGISTRY_YAML = """\
owners:
  - name: Alice
    teams:
      - abbr: KC
        name: Kansas City Chiefs
      - abbr: car
  - name: Bob
    goose_count: 2
    teams:
      - abbr: BUF
strengths:
  home_advantage: 4
  ratings:
    KC: 95
"""


def _registry(**owners: list[str]) -> RegistryConfig:
    return RegistryConfig(
        owners=[
            OwnerEntry(name=name, teams=[TeamEntry(abbr=a) for a in abbrs])
            for name, abbrs in owners.items()
        ]
    )


class TestLoadRegistry:
    def test_load(self, tmp_path: Path):
        path = tmp_path / "registry.yaml"
        path.write_text(REGISTRY_YAML)
        config = load_registry_yaml(path)
        assert [o.name for o in config.owners] == ["Alice", "Bob"]
        assert config.owners[1].goose_count == 2
        assert config.strengths is not None
        assert config.strengths.home_advantage == 4
        assert config.strengths.ratings["KC"] == 95

    def test_empty_file(self, tmp_path: Path):
        path = tmp_path / "registry.yaml"
        path.write_text("")
        config = load_registry_yaml(path)
        assert config.owners == []
        assert config.strengths is None

    def test_save_and_reload(self, tmp_path: Path):
        path = tmp_path / "registry.yaml"
        save_registry_yaml(_registry(Alice=["KC"], Bob=["BUF"]), path)
        reloaded = load_registry_yaml(path)
        assert [t.abbr for o in reloaded.owners for t in o.teams] == ["KC", "BUF"]

    def test_rejects_negative_goose_count(self):
        with pytest.raises(ValidationError):
            OwnerEntry(name="Alice", goose_count=-1)


class TestSeedRegistry:
    async def test_creates_owners_and_teams(self, engine: AsyncEngine, tmp_path: Path):
        path = tmp_path / "registry.yaml"
        path.write_text(REGISTRY_YAML)
        async with get_session(engine) as session:
            report = await seed_registry(Repository(session), load_registry_yaml(path))
        assert (report.owners_created, report.teams_created) == (2, 3)

        async with get_session(engine) as session:
            repo = Repository(session)
            owner_map = await repo.get_owner_map()
            alice = await repo.get_owner_by_name("Alice")
        assert set(owner_map) == {"KC", "CAR", "BUF"}
        assert owner_map["CAR"] == alice.id

    async def test_idempotent(self, engine: AsyncEngine):
        config = _registry(Alice=["KC", "CAR"], Bob=["BUF"])
        async with get_session(engine) as session:
            await seed_registry(Repository(session), config)
        async with get_session(engine) as session:
            report = await seed_registry(Repository(session), config)
        assert report.owners_created == report.teams_created == report.teams_reassigned == 0

        async with get_session(engine) as session:
            assert len(await Repository(session).get_active_teams()) == 3

    async def test_reassignment_keeps_history(self, engine: AsyncEngine):
        async with get_session(engine) as session:
            await seed_registry(Repository(session), _registry(Alice=["KC"], Bob=["BUF"]))
        async with get_session(engine) as session:
            report = await seed_registry(Repository(session), _registry(Bob=["KC"]))
        assert report.teams_reassigned == 1

        async with get_session(engine) as session:
            repo = Repository(session)
            bob = await repo.get_owner_by_name("Bob")
            assert (await repo.get_owner_map())["KC"] == bob.id
            owners = await repo.get_all_owners()
        alice = next(o for o in owners if o.name == "Alice")
        assert [(t.abbr, t.active) for t in alice.teams] == [("KC", False)]

    async def test_goose_count_updated(self, engine: AsyncEngine):
        async with get_session(engine) as session:
            await seed_registry(Repository(session), _registry(Alice=["KC"]))
        bumped = RegistryConfig(owners=[OwnerEntry(name="Alice", goose_count=4)])
        async with get_session(engine) as session:
            report = await seed_registry(Repository(session), bumped)
        assert report.owners_updated == 1
        async with get_session(engine) as session:
            assert (await Repository(session).get_owner_by_name("Alice")).goose_count == 4
