"""FastAPI dependency injection for database sessions, repository and providers."""

from __future__ import annotations

from collections.abc import AsyncGenerator
from typing import Annotated

from fastapi import Depends, Header, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession

from payday.clients.espn import ESPNClient
from payday.config import Settings
from payday.core.probability import WinProbabilityService
from payday.db.engine import create_session_factory
from payday.db.repository import Repository
from payday.models.award import PayoutSchedule


async def get_engine(request: Request) -> AsyncEngine:
    """Get the database engine from app state."""
    return request.app.state.engine


async def get_session(
    engine: Annotated[AsyncEngine, Depends(get_engine)],
) -> AsyncGenerator[AsyncSession, None]:
    """Yield an async session."""
    factory = create_session_factory(engine)
    async with factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:  # Roll back, then re-raise
            await session.rollback()
            raise


async def get_repo(session: Annotated[AsyncSession, Depends(get_session)]) -> Repository:
    """Get a repository instance bound to the current session."""
    return Repository(session)


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_espn(request: Request) -> ESPNClient:
    return request.app.state.espn


def get_probability_service(request: Request) -> WinProbabilityService:
    return request.app.state.probability_service


def get_payouts(request: Request) -> PayoutSchedule:
    return request.app.state.payouts


async def require_cron_auth(
    settings: Annotated[Settings, Depends(get_settings)],
    authorization: Annotated[str | None, Header()] = None,
) -> None:
    """Reject cron triggers without ``Authorization: Bearer <CRON_SECRET>`` when a secret is set."""
    if settings.cron_secret and authorization != f"Bearer {settings.cron_secret}":
        raise HTTPException(status_code=401, detail="Unauthorized")


RepoDep = Annotated[Repository, Depends(get_repo)]
EngineDep = Annotated[AsyncEngine, Depends(get_engine)]
ESPNDep = Annotated[ESPNClient, Depends(get_espn)]
ProbabilityServiceDep = Annotated[WinProbabilityService, Depends(get_probability_service)]
PayoutsDep = Annotated[PayoutSchedule, Depends(get_payouts)]


async def resolve_week(espn: ESPNClient, season: int | None, week: int | None) -> tuple[int, int]:
    """Fill a missing season or week from the current NFL week."""
    if season is not None and week is not None:
        return season, week
    current = await espn.get_current_week()
    return (
        current.season if season is None else season,
        current.week if week is None else week,
    )
