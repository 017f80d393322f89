"""Load the owner/team registry YAML into the database.

Usage:
    python scripts/seed_registry.py registry.yaml
    python scripts/seed_registry.py               # uses PAYDAY_REGISTRY_FILE

Safe to re-run: owners are matched by name, and a team listed under a new
owner is transferred (the old ownership record is deactivated).
"""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path

from payday.config import Settings
from payday.core.seeding import load_registry_yaml, seed_registry
from payday.db.engine import create_engine, create_tables, get_session
from payday.db.repository import Repository


async def seed(path: Path, database_url: str) -> None:
    registry = load_registry_yaml(path)
    engine = create_engine(database_url)
    await create_tables(engine)

    async with get_session(engine) as session:
        report = await seed_registry(Repository(session), registry)

    print(
        f"Registry seeded from {path}: "
        f"{report.owners_created} owners created, {report.owners_updated} updated, "
        f"{report.teams_created} teams created, {report.teams_reassigned} reassigned"
    )
    await engine.dispose()


def main() -> None:
    settings = Settings()
    if len(sys.argv) > 1:
        path = Path(sys.argv[1])
    elif settings.registry_path is not None:
        path = settings.registry_path
    else:
        print("Usage: python scripts/seed_registry.py REGISTRY_YAML")
        sys.exit(1)
    asyncio.run(seed(path, settings.database_url))


if __name__ == "__main__":
    main()
