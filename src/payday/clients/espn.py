"""ESPN client: schedules, scores, standings and the playoff bracket.

ESPN addresses the postseason as ``seasontype=3`` with its own week numbers
(week 4 is the Pro Bowl). Internally, playoff rounds occupy weeks 19-22, so
every response is translated at this boundary before anything downstream
sees it.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import Any

import httpx
from pydantic import BaseModel

from payday.core.errors import ProviderError
from payday.core.schedule_times import nfl_week_for_date
from payday.models.constants import (
    ESPN_TEAM_ALIASES,
    PLAYOFF_SEED_CUTOFF,
    PlayoffRound,
)
from payday.models.game import FIRST_PLAYOFF_WEEK, Game, GameStatus
from payday.models.playoff import PlayoffGame, PlayoffSeed

logger = logging.getLogger(__name__)

REGULAR_SEASON_TYPE = 2
POSTSEASON_TYPE = 3
PRO_BOWL_WEEK = 4

# Internal playoff week -> ESPN postseason week
PLAYOFF_WEEK_TO_ESPN: dict[int, int] = {19: 1, 20: 2, 21: 3, 22: 5}


class CurrentWeek(BaseModel):
    """The league's current (season, internal week)."""

    season: int
    week: int
    season_type: int
    source: str = "espn"


def internal_week(espn_week: int, season_type: int) -> int:
    """ESPN week number to internal week (playoffs become 19-22)."""
    if season_type != POSTSEASON_TYPE:
        return espn_week
    if espn_week <= 3:
        return FIRST_PLAYOFF_WEEK + max(espn_week, 1) - 1
    return 22


def _as_int(value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


def _parse_kickoff(raw: Any) -> datetime | None:
    if not isinstance(raw, str) or not raw:
        return None
    try:
        # ESPN dates look like "2025-09-14T17:00Z"
        parsed = datetime.fromisoformat(raw.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def normalize_status(status_type: dict[str, Any]) -> GameStatus:
    if status_type.get("completed"):
        return "FINAL"
    if status_type.get("state") == "in":
        return "IN_PROGRESS"
    return "SCHEDULED"


class ESPNClient:
    """Async client for ESPN's public scoreboard and standings feeds."""

    def __init__(
        self,
        http: httpx.AsyncClient,
        base_url: str = "https://site.api.espn.com/apis/site/v2/sports/football/nfl",
        standings_url: str = "https://site.api.espn.com/apis/v2/sports/football/nfl/standings",
        timeout: float = 8.0,
        aliases: dict[str, str] | None = None,
    ) -> None:
        self.http = http
        self.base_url = base_url.rstrip("/")
        self.standings_url = standings_url
        self.timeout = httpx.Timeout(timeout, connect=min(timeout, 5.0))
        self.aliases = ESPN_TEAM_ALIASES if aliases is None else aliases

    def team_abbr(self, espn_abbr: str) -> str:
        return self.aliases.get(espn_abbr, espn_abbr)

    async def _get_json(self, url: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
        try:
            resp = await self.http.get(url, params=params, timeout=self.timeout)
            resp.raise_for_status()
            data = resp.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise ProviderError(f"espn request to {url} failed: {exc}") from exc
        if not isinstance(data, dict):
            raise ProviderError(f"espn response from {url} is not an object")
        return data

    def _competitors(self, event: dict[str, Any]) -> tuple[dict, dict, dict] | None:
        competitions = event.get("competitions") or []
        if not competitions:
            return None
        competition = competitions[0]
        sides = {c.get("homeAway"): c for c in competition.get("competitors", [])}
        if "home" not in sides or "away" not in sides:
            return None
        return competition, sides["home"], sides["away"]

    def parse_event(self, event: dict[str, Any], season: int, week: int) -> Game | None:
        """Normalize one scoreboard event, or None if it is malformed."""
        parts = self._competitors(event)
        if parts is None:
            logger.warning("espn_event_malformed id=%s", event.get("id"))
            return None
        competition, home, away = parts
        status_type = (competition.get("status") or {}).get("type") or {}
        try:
            return Game(
                id=str(event["id"]),
                season=season,
                week=week,
                home=self.team_abbr(home["team"]["abbreviation"]),
                away=self.team_abbr(away["team"]["abbreviation"]),
                home_pts=_as_int(home.get("score")),
                away_pts=_as_int(away.get("score")),
                status=normalize_status(status_type),
                kickoff=_parse_kickoff(event.get("date")),
            )
        except (KeyError, ValueError) as exc:
            logger.warning("espn_event_malformed id=%s error=%s", event.get("id"), exc)
            return None

    async def fetch_week_games(self, season: int, week: int) -> list[Game]:
        """All games for an internal (season, week).

        Raises:
            ProviderError: the request failed or the week has no ESPN mapping.
        """
        if week >= FIRST_PLAYOFF_WEEK:
            espn_week = PLAYOFF_WEEK_TO_ESPN.get(week)
            if espn_week is None:
                raise ProviderError(f"week {week} has no ESPN postseason mapping")
            params = {"seasontype": POSTSEASON_TYPE, "week": espn_week, "year": season}
        else:
            params = {"seasontype": REGULAR_SEASON_TYPE, "week": week, "year": season}

        data = await self._get_json(f"{self.base_url}/scoreboard", params=params)
        games = [
            game
            for event in data.get("events") or []
            if (game := self.parse_event(event, season, week)) is not None
        ]
        logger.info("espn_games_fetched season=%d week=%d count=%d", season, week, len(games))
        return games

    async def get_current_week(self, now: datetime | None = None) -> CurrentWeek:
        """Current week from the scoreboard, or from the calendar if ESPN is down."""
        try:
            data = await self._get_json(f"{self.base_url}/scoreboard")
            season_type = int(data["season"]["type"])
            return CurrentWeek(
                season=int(data["season"]["year"]),
                week=internal_week(int(data["week"]["number"]), season_type),
                season_type=season_type,
            )
        except (ProviderError, KeyError, TypeError, ValueError) as exc:
            moment = now or datetime.now(UTC)
            season, week, season_type = nfl_week_for_date(moment)
            logger.info(
                "current_week_fallback season=%d week=%d error=%s",
                season,
                week,
                exc,
            )
            return CurrentWeek(season=season, week=week, season_type=season_type, source="calendar")

    async def fetch_playoff_seeds(self, season: int) -> list[PlayoffSeed]:
        """Seeds 1-7 of each conference from the final standings."""
        data = await self._get_json(self.standings_url, params={"season": season})
        seeds: list[PlayoffSeed] = []
        for conference in data.get("children") or []:
            conf_name = conference.get("abbreviation", "")
            for entry in (conference.get("standings") or {}).get("entries") or []:
                team = entry.get("team") or {}
                stats = {s.get("name"): s.get("value") for s in entry.get("stats") or []}
                seed = _as_int(stats.get("playoffSeed")) or 99
                if seed > PLAYOFF_SEED_CUTOFF or "abbreviation" not in team:
                    continue
                seeds.append(
                    PlayoffSeed(
                        abbr=self.team_abbr(team["abbreviation"]),
                        conference=conf_name,
                        seed=seed,
                        name=team.get("displayName", ""),
                        wins=_as_int(stats.get("wins")),
                        losses=_as_int(stats.get("losses")),
                        clinched=stats.get("clincher") or None,
                    )
                )
        seeds.sort(key=lambda s: (s.conference, s.seed))
        return seeds

    async def fetch_playoff_games(
        self, season: int, round: PlayoffRound | None = None
    ) -> list[PlayoffGame]:
        """Postseason games with detected rounds, optionally filtered to one round."""
        data = await self._get_json(
            f"{self.base_url}/scoreboard",
            params={"seasontype": POSTSEASON_TYPE, "year": season},
        )
        games: list[PlayoffGame] = []
        for event in data.get("events") or []:
            parts = self._competitors(event)
            if parts is None:
                continue
            competition, home, away = parts
            status_type = (competition.get("status") or {}).get("type") or {}
            event_name = event.get("name") or event.get("shortName") or ""
            event_week = (event.get("week") or {}).get("number")
            detected = detect_round(event_name, event_week)
            if detected is None:
                continue
            try:
                game = PlayoffGame(
                    id=str(event["id"]),
                    round=detected,
                    home=self.team_abbr(home["team"]["abbreviation"]),
                    away=self.team_abbr(away["team"]["abbreviation"]),
                    home_score=_as_int(home.get("score")),
                    away_score=_as_int(away.get("score")),
                    completed=bool(status_type.get("completed")),
                    event_name=event_name,
                )
            except (KeyError, ValueError) as exc:
                logger.warning("espn_playoff_event_malformed id=%s error=%s", event.get("id"), exc)
                continue
            if round is None or game.round == round:
                games.append(game)
        return games


def detect_round(event_name: str, event_week: Any = None) -> PlayoffRound | None:
    """Playoff round from the event name, else from ESPN's postseason week.

    Returns None for the Pro Bowl, which is not a playoff game.
    """
    name = event_name.lower()
    week = _as_int(event_week)
    if "pro bowl" in name or week == PRO_BOWL_WEEK:
        return None
    if "super bowl" in name:
        return "SUPER_BOWL"
    if "championship" in name or "conference" in name:
        return "CONFERENCE"
    if "divisional" in name:
        return "DIVISIONAL"
    if "wild card" in name or "wild-card" in name:
        return "WILD_CARD"
    if week == 2:
        return "DIVISIONAL"
    if week == 3:
        return "CONFERENCE"
    if week >= 4:
        return "SUPER_BOWL"
    return "WILD_CARD"
