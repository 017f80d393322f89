"""Award ledger API endpoints."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from payday.api.deps import EngineDep, PayoutsDep, RepoDep
from payday.core.awards import calculate_weekly_awards
from payday.core.errors import AwardComputationError
from payday.core.leaderboard import get_leaderboard
from payday.core.playoffs import record_manual_award
from payday.db.repository import award_from_row

router = APIRouter(prefix="/api", tags=["awards"])


class ManualAwardRequest(BaseModel):
    season: int
    type: str
    team_abbr: str
    notes: str = ""


@router.get("/awards")
async def list_awards(season: int, week: int, repo: RepoDep) -> dict:
    rows = await repo.get_awards_for_week(season, week)
    return {"data": [award_from_row(r).model_dump() for r in rows]}


@router.post("/awards/calculate")
async def calculate_awards(season: int, week: int, engine: EngineDep, payouts: PayoutsDep) -> dict:
    """Recompute and replace a week's WIN/TIE_AWAY/OBO/DBO awards."""
    try:
        summary = await calculate_weekly_awards(engine, season, week, payouts)
    except AwardComputationError as exc:
        raise HTTPException(status_code=500, detail=str(exc)) from exc
    return {"data": summary.model_dump()}


@router.post("/awards/manual")
async def add_manual_award(body: ManualAwardRequest, repo: RepoDep, payouts: PayoutsDep) -> dict:
    """Record an end-of-year award. Re-posting the same award is a no-op."""
    try:
        results = await record_manual_award(
            repo, body.season, body.type, body.team_abbr.upper(), body.notes, payouts
        )
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    if results.errors:
        raise HTTPException(status_code=404, detail=results.errors[0]["error"])
    return {"data": results.model_dump()}


@router.get("/leaderboard")
async def leaderboard(season: int, repo: RepoDep, payouts: PayoutsDep) -> dict:
    entries = await get_leaderboard(repo, season, payouts)
    return {
        "season": season,
        "payout_version": payouts.version,
        "data": [e.model_dump() for e in entries],
    }
