"""Owner/team registry API endpoints (read-only)."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException

from payday.api.deps import RepoDep
from payday.models.team import Owner

router = APIRouter(prefix="/api", tags=["owners"])


def _owner_payload(owner: Owner) -> dict:
    return owner.model_dump() | {"active_teams": owner.active_team_abbrs}


@router.get("/owners")
async def list_owners(repo: RepoDep) -> dict:
    owners = [Owner.model_validate(row) for row in await repo.get_all_owners()]
    return {"data": [_owner_payload(o) for o in owners]}


@router.get("/owners/{owner_id}")
async def get_owner(owner_id: str, repo: RepoDep) -> dict:
    row = await repo.get_owner_with_teams(owner_id)
    if row is None:
        raise HTTPException(status_code=404, detail="Owner not found")
    return {"data": _owner_payload(Owner.model_validate(row))}
