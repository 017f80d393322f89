"""Kalshi market client: live win prices for individual NFL games.

Game markets are addressed by ticker:
``KXNFLGAME-{YY}{MON}{DD}{AWAY}{HOME}-{TEAM}``, e.g.
``KXNFLGAME-25SEP14SFNO-SF`` for San Francisco winning at New Orleans on
September 14th, 2025. The price of a YES contract in cents is the
market-implied win probability.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from payday.core.errors import ProviderError
from payday.core.schedule_times import kalshi_date_code
from payday.models.constants import KALSHI_TEAM_ALIASES, NFL_TEAMS
from payday.models.game import Game

logger = logging.getLogger(__name__)

TICKER_PREFIX = "KXNFLGAME"


def normalize_market_price(market: dict[str, Any]) -> float | None:
    """Convert a market's YES price in cents to a probability in [0, 1].

    Uses ``last_price``; without a trade, the midpoint of the YES bid/ask.
    Returns None when the market carries no usable price.
    """
    cents: float | None = None
    last = market.get("last_price")
    if isinstance(last, (int, float)) and last > 0:
        cents = float(last)
    else:
        bid, ask = market.get("yes_bid"), market.get("yes_ask")
        if isinstance(bid, (int, float)) and isinstance(ask, (int, float)) and ask > 0:
            cents = (bid + ask) / 2
    if cents is None:
        return None
    return max(0.0, min(1.0, cents / 100.0))


class KalshiClient:
    """Thin async client for the Kalshi trade API.

    The ``httpx.AsyncClient`` is owned by the caller so one connection pool
    can be shared across providers and replaced in tests.
    """

    def __init__(
        self,
        http: httpx.AsyncClient,
        api_key: str,
        base_url: str = "https://api.elections.kalshi.com/trade-api/v2",
        timeout: float = 8.0,
        aliases: dict[str, str] | None = None,
    ) -> None:
        self.http = http
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = httpx.Timeout(timeout, connect=min(timeout, 5.0))
        self.aliases = KALSHI_TEAM_ALIASES if aliases is None else aliases

    def team_code(self, abbr: str) -> str | None:
        if abbr in self.aliases:
            return self.aliases[abbr]
        if abbr in NFL_TEAMS:
            return abbr
        return None

    def build_ticker(self, game: Game, team: str) -> str | None:
        """Ticker for *team* winning *game*, or None if it cannot be formed."""
        home = self.team_code(game.home)
        away = self.team_code(game.away)
        target = self.team_code(team)
        if not (home and away and target) or game.kickoff is None:
            logger.warning(
                "kalshi_ticker_unavailable game=%s team=%s kickoff=%s",
                game.id,
                team,
                game.kickoff,
            )
            return None
        return f"{TICKER_PREFIX}-{kalshi_date_code(game.kickoff)}{away}{home}-{target}"

    async def get_market(self, ticker: str) -> dict[str, Any]:
        """Fetch one market. Raises ``httpx.HTTPError`` on transport/status failure."""
        resp = await self.http.get(
            f"{self.base_url}/markets/{ticker}",
            headers={
                "Authorization": f"Bearer {self.api_key}",
                "Content-Type": "application/json",
            },
            timeout=self.timeout,
        )
        resp.raise_for_status()
        data = resp.json()
        market = data.get("market") if isinstance(data, dict) else None
        if not isinstance(market, dict):
            raise ProviderError(f"kalshi response for {ticker} has no market")
        return market
