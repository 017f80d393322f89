"""Game and calendar API endpoints."""

from __future__ import annotations

from fastapi import APIRouter

from payday.api.deps import ESPNDep, RepoDep, resolve_week

router = APIRouter(prefix="/api", tags=["games"])


@router.get("/games")
async def list_games(
    repo: RepoDep,
    espn: ESPNDep,
    season: int | None = None,
    week: int | None = None,
    final_only: bool = False,
) -> dict:
    """Stored games for a week (defaults to the current week)."""
    season, week = await resolve_week(espn, season, week)
    games = await repo.get_games_for_week(season, week, final_only=final_only)
    return {
        "season": season,
        "week": week,
        "data": [g.model_dump(mode="json") | {"final": g.final} for g in games],
    }


@router.get("/current-week")
async def current_week(espn: ESPNDep) -> dict:
    current = await espn.get_current_week()
    return {"data": current.model_dump()}
