"""Cron trigger endpoints for external schedulers.

Same runs as the in-process APScheduler jobs, exposed over HTTP and
guarded by ``CRON_SECRET``.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from payday.api.deps import EngineDep, ESPNDep, PayoutsDep, require_cron_auth
from payday.core.errors import InvalidRoundError, ProviderError
from payday.core.updates import run_live_update, run_playoff_update, run_weekly_update

router = APIRouter(
    prefix="/api/cron",
    tags=["cron"],
    dependencies=[Depends(require_cron_auth)],
)


@router.post("/weekly-update")
async def weekly_update(
    engine: EngineDep,
    espn: ESPNDep,
    payouts: PayoutsDep,
    season: int | None = None,
    week: int | None = None,
) -> dict:
    summary = await run_weekly_update(engine, espn, season, week, payouts)
    return {"success": not summary.errors, "data": summary.model_dump()}


@router.post("/live-update")
async def live_update(engine: EngineDep, espn: ESPNDep, payouts: PayoutsDep) -> dict:
    summary = await run_live_update(engine, espn, payouts=payouts)
    return {"success": not summary.errors, "data": summary.model_dump()}


@router.post("/playoff-update")
async def playoff_update(
    engine: EngineDep,
    espn: ESPNDep,
    payouts: PayoutsDep,
    season: int | None = None,
    round: str | None = None,
) -> dict:
    """Award berths (``round=BERTHS``), a single round, or everything."""
    try:
        summary = await run_playoff_update(engine, espn, season, round, payouts)
    except InvalidRoundError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except ProviderError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc
    return {"success": True, "data": summary.model_dump()}
