"""Win probabilities per team and week.

Resolution order for a team's game:
1. No game this week: 0.0, confidence ``bye_week`` (a bye cannot produce a win).
2. Final: 1.0 for the credited winner (TIE_AWAY counts), else 0.0, ``final``.
3. Live odds from the market, ``high``. Transport failures are retried with
   linear backoff (delay × attempt) up to ``max_attempts``.
4. Logistic fallback on static strength ratings, labelled ``no-api`` when no
   odds client is configured, ``fallback`` when no market exists for the
   game, and ``calculated`` when every attempt failed.
"""

from __future__ import annotations

import asyncio
import logging
import math
from collections.abc import Awaitable, Callable

import httpx

from payday.clients.kalshi import KalshiClient, normalize_market_price
from payday.core.errors import ProviderError
from payday.models.game import Game, find_team_game
from payday.models.probability import DEFAULT_STRENGTHS, StrengthTable, WinProbability

logger = logging.getLogger(__name__)


def logistic_home_probability(home: str, away: str, strengths: StrengthTable) -> float:
    """P(home wins) from strength ratings plus home-field advantage."""
    diff = strengths.rating(home) + strengths.home_advantage - strengths.rating(away)
    return 1.0 / (1.0 + math.exp(-diff / strengths.scale))


def fallback_probability(game: Game, team: str, strengths: StrengthTable) -> float:
    """Logistic estimate for *team*; the away side gets the complement."""
    p_home = logistic_home_probability(game.home, game.away, strengths)
    return p_home if team == game.home else 1.0 - p_home


def final_probability(game: Game, team: str) -> float:
    return 1.0 if game.is_win_for(team) else 0.0


class WinProbabilityService:
    """Normalizes live odds and fallbacks into ``WinProbability`` records."""

    def __init__(
        self,
        odds: KalshiClient | None = None,
        strengths: StrengthTable = DEFAULT_STRENGTHS,
        max_attempts: int = 3,
        retry_delay: float = 1.0,
        sleep: Callable[[float], Awaitable[object]] = asyncio.sleep,
    ) -> None:
        self.odds = odds
        self.strengths = strengths
        self.max_attempts = max(1, max_attempts)
        self.retry_delay = retry_delay
        self._sleep = sleep

    def _estimate(self, game: Game, team: str, confidence: str, market: str) -> WinProbability:
        return WinProbability(
            team=team,
            season=game.season,
            week=game.week,
            win_probability=fallback_probability(game, team, self.strengths),
            confidence=confidence,  # type: ignore[arg-type]
            opponent=game.opponent_of(team),
            market=market,
        )

    async def probability_for(
        self,
        team: str,
        season: int,
        week: int,
        game: Game | None,
    ) -> WinProbability:
        if game is None:
            return WinProbability(
                team=team,
                season=season,
                week=week,
                win_probability=0.0,
                confidence="bye_week",
                market="No game this week",
            )

        if game.final:
            return WinProbability(
                team=team,
                season=season,
                week=week,
                win_probability=final_probability(game, team),
                confidence="final",
                opponent=game.opponent_of(team),
                market=f"Final: {game.away} {game.away_pts} - {game.home_pts} {game.home}",
            )

        if self.odds is None:
            return self._estimate(game, team, "no-api", "No odds API key")

        ticker = self.odds.build_ticker(game, team)
        if ticker is None:
            return self._estimate(game, team, "fallback", "No market for this game")

        for attempt in range(1, self.max_attempts + 1):
            try:
                market = await self.odds.get_market(ticker)
            except (httpx.HTTPError, ProviderError, ValueError) as exc:
                logger.warning(
                    "odds_attempt_failed team=%s ticker=%s attempt=%d/%d error=%s",
                    team,
                    ticker,
                    attempt,
                    self.max_attempts,
                    exc,
                )
                if attempt < self.max_attempts:
                    await self._sleep(self.retry_delay * attempt)
                continue

            price = normalize_market_price(market)
            if price is None:
                logger.info("odds_no_price team=%s ticker=%s", team, ticker)
                return self._estimate(game, team, "fallback", "Market has no price")
            return WinProbability(
                team=team,
                season=season,
                week=week,
                win_probability=price,
                confidence="high",
                opponent=game.opponent_of(team),
                market=str(market.get("title", ticker)),
                ticker=ticker,
                last_price=f"{round(price * 100)}¢",
            )

        estimate = self._estimate(game, team, "calculated", f"Calculated: {team} vs opponent")
        logger.info(
            "odds_fallback team=%s probability=%.3f",
            team,
            estimate.win_probability,
        )
        return estimate

    async def week_probabilities(
        self,
        season: int,
        week: int,
        teams: list[str],
        games: list[Game],
    ) -> dict[str, WinProbability]:
        """Probabilities for every listed team, fetched concurrently.

        This map is what batch goose callers should inject so each team is
        priced once per request.
        """
        results = await asyncio.gather(
            *(self.probability_for(t, season, week, find_team_game(games, t)) for t in teams)
        )
        return {p.team: p for p in results}
