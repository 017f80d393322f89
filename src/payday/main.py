"""FastAPI application factory."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI

from payday.api.awards import router as awards_router
from payday.api.cron import router as cron_router
from payday.api.games import router as games_router
from payday.api.goose import router as goose_router
from payday.api.owners import router as owners_router
from payday.clients.espn import ESPNClient
from payday.clients.kalshi import KalshiClient
from payday.config import Settings
from payday.core.probability import WinProbabilityService
from payday.db.engine import create_engine, create_tables, get_session
from payday.db.repository import Repository
from payday.models.award import DEFAULT_PAYOUTS
from payday.models.probability import DEFAULT_STRENGTHS, StrengthTable

logger = logging.getLogger(__name__)


def build_services(
    settings: Settings,
    http: httpx.AsyncClient,
    strengths: StrengthTable = DEFAULT_STRENGTHS,
) -> tuple[ESPNClient, WinProbabilityService]:
    """Provider clients and the probability service, sharing one HTTP pool."""
    espn = ESPNClient(
        http,
        base_url=settings.espn_base_url,
        standings_url=settings.espn_standings_url,
        timeout=settings.payday_http_timeout,
    )
    odds = None
    if settings.kalshi_api_key:
        odds = KalshiClient(
            http,
            settings.kalshi_api_key,
            base_url=settings.kalshi_base_url,
            timeout=settings.payday_http_timeout,
        )
    service = WinProbabilityService(
        odds=odds,
        strengths=strengths,
        max_attempts=settings.payday_odds_max_attempts,
        retry_delay=settings.payday_odds_retry_delay,
    )
    return espn, service


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup: create engine/tables, seed the registry, build clients, start scheduler."""
    settings: Settings = app.state.settings
    engine = create_engine(settings.database_url)
    await create_tables(engine)
    app.state.engine = engine

    strengths = DEFAULT_STRENGTHS
    registry_path = settings.registry_path
    if registry_path is not None:
        from payday.core.seeding import load_registry_yaml, seed_registry

        registry = load_registry_yaml(registry_path)
        async with get_session(engine) as session:
            await seed_registry(Repository(session), registry)
        if registry.strengths is not None:
            strengths = registry.strengths
        logger.info("registry_loaded path=%s owners=%d", registry_path, len(registry.owners))

    http = httpx.AsyncClient()
    espn, service = build_services(settings, http, strengths)
    app.state.espn = espn
    app.state.probability_service = service
    app.state.payouts = DEFAULT_PAYOUTS
    if service.odds is None:
        logger.info("odds_provider_disabled: no KALSHI_API_KEY")

    scheduler = None
    if settings.payday_auto_update:
        from apscheduler.schedulers.asyncio import AsyncIOScheduler
        from apscheduler.triggers.cron import CronTrigger

        from payday.core.updates import tick_live_update, tick_playoff_update, tick_weekly_update

        scheduler = AsyncIOScheduler()
        jobs = [
            (tick_weekly_update, settings.payday_weekly_cron, "weekly_update", "Settle week"),
            (tick_live_update, settings.payday_live_cron, "live_update", "Refresh live scores"),
            (tick_playoff_update, settings.payday_playoff_cron, "playoff_update", "Playoffs"),
        ]
        for func, cron, job_id, name in jobs:
            scheduler.add_job(
                func,
                trigger=CronTrigger.from_crontab(cron),
                kwargs={"engine": engine, "espn": espn, "payouts": app.state.payouts},
                id=job_id,
                name=name,
                replace_existing=True,
            )
        scheduler.start()
        app.state.scheduler = scheduler
        logger.info(
            "scheduler_started weekly=%s live=%s playoff=%s",
            settings.payday_weekly_cron,
            settings.payday_live_cron,
            settings.payday_playoff_cron,
        )
    else:
        app.state.scheduler = None
        logger.info("scheduler_disabled")

    yield

    if scheduler is not None:
        scheduler.shutdown(wait=False)
        logger.info("scheduler_stopped")

    await http.aclose()
    await engine.dispose()


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure the Payday FastAPI application."""
    settings = settings or Settings()

    logging.basicConfig(
        level=getattr(logging, settings.payday_log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = FastAPI(
        title="Payday Football League",
        version="0.1.0",
        description="NFL fantasy payouts: weekly awards, goose risk and playoff bonuses",
        docs_url="/docs" if settings.payday_env != "production" else None,
        lifespan=lifespan,
    )
    app.state.settings = settings

    app.include_router(games_router)
    app.include_router(awards_router)
    app.include_router(goose_router)
    app.include_router(owners_router)
    app.include_router(cron_router)

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok", "env": settings.payday_env}

    return app


app = create_app()
