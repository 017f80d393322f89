"""Win probability and goose risk API endpoints."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from payday.api.deps import ESPNDep, ProbabilityServiceDep, RepoDep, resolve_week
from payday.core.goose import goose_probabilities_for_all_owners, goose_probability_for_owner
from payday.models.probability import Confidence, WinProbability

router = APIRouter(prefix="/api", tags=["goose"])


class ProbabilityInput(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    win_probability: float = Field(ge=0.0, le=1.0)
    confidence: Confidence = "calculated"


class GooseRequest(BaseModel):
    """Goose request with optional precomputed probabilities keyed by team."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    owner_id: str
    season: int
    week: int
    probabilities: dict[str, ProbabilityInput] | None = None


@router.get("/probabilities")
async def week_probabilities(
    repo: RepoDep,
    espn: ESPNDep,
    service: ProbabilityServiceDep,
    season: int | None = None,
    week: int | None = None,
) -> dict:
    """Win probability for every active team this week."""
    season, week = await resolve_week(espn, season, week)
    teams = [t.abbr for t in await repo.get_active_teams()]
    games = await repo.get_games_for_week(season, week)
    probabilities = await service.week_probabilities(season, week, teams, games)
    return {
        "season": season,
        "week": week,
        "data": {team: p.model_dump(by_alias=True) for team, p in probabilities.items()},
    }


@router.get("/goose")
async def goose_all(
    repo: RepoDep,
    espn: ESPNDep,
    service: ProbabilityServiceDep,
    season: int | None = None,
    week: int | None = None,
) -> dict:
    """Goose probability for every owner; each team is priced once."""
    season, week = await resolve_week(espn, season, week)
    results = await goose_probabilities_for_all_owners(
        repo, season, week, service=service, strengths=service.strengths
    )
    return {"season": season, "week": week, "data": [r.to_payload() for r in results]}


@router.get("/goose/{owner_id}")
async def goose_for_owner(
    owner_id: str,
    repo: RepoDep,
    espn: ESPNDep,
    service: ProbabilityServiceDep,
    season: int | None = None,
    week: int | None = None,
) -> dict:
    if await repo.get_owner(owner_id) is None:
        raise HTTPException(status_code=404, detail="Owner not found")
    season, week = await resolve_week(espn, season, week)
    result = await goose_probability_for_owner(
        repo, owner_id, season, week, service=service, strengths=service.strengths
    )
    return {"data": result.to_payload()}


@router.post("/goose")
async def goose_with_probabilities(
    body: GooseRequest,
    repo: RepoDep,
    service: ProbabilityServiceDep,
) -> dict:
    """Goose probability using caller-supplied probabilities where given."""
    if await repo.get_owner(body.owner_id) is None:
        raise HTTPException(status_code=404, detail="Owner not found")
    supplied = None
    if body.probabilities:
        supplied = {
            team: WinProbability(
                team=team,
                season=body.season,
                week=body.week,
                win_probability=p.win_probability,
                confidence=p.confidence,
            )
            for team, p in body.probabilities.items()
        }
    result = await goose_probability_for_owner(
        repo,
        body.owner_id,
        body.season,
        body.week,
        probabilities=supplied,
        service=None if supplied else service,
        strengths=service.strengths,
    )
    return {"data": result.to_payload()}
