"""Tests for the ESPN client: event normalization, week mapping, standings, bracket."""

from datetime import UTC, datetime

import httpx
import pytest

from payday.clients.espn import ESPNClient, detect_round, internal_week
from payday.core.errors import ProviderError


def _competitor(side: str, abbr: str, score: str | None) -> dict:
    entry = {"homeAway": side, "team": {"abbreviation": abbr}}
    if score is not None:
        entry["score"] = score
    return entry


def _event(
    eid: str,
    home: str,
    away: str,
    home_score: str | None = "0",
    away_score: str | None = "0",
    state: str = "post",
    completed: bool = True,
    name: str = "",
    week: int | None = None,
) -> dict:
    event = {
        "id": eid,
        "name": name,
        "date": "2025-09-14T17:00Z",
        "competitions": [
            {
                "competitors": [
                    _competitor("home", home, home_score),
                    _competitor("away", away, away_score),
                ],
                "status": {"type": {"state": state, "completed": completed}},
            }
        ],
    }
    if week is not None:
        event["week"] = {"number": week}
    return event


def _client(handler) -> ESPNClient:
    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return ESPNClient(
        http,
        base_url="https://espn.test/nfl",
        standings_url="https://espn.test/standings",
    )


class TestWeekMapping:
    def test_regular_season_unchanged(self):
        assert internal_week(7, 2) == 7

    def test_postseason_weeks(self):
        assert [internal_week(w, 3) for w in (1, 2, 3, 4, 5)] == [19, 20, 21, 22, 22]


class TestFetchWeekGames:
    async def test_normalizes_events(self):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(
                200,
                json={
                    "events": [
                        _event("401", "JAX", "WSH", "24", "17"),
                        _event("402", "KC", "BUF", "7", "3", state="in", completed=False),
                        _event("403", "SF", "SEA", None, None, state="pre", completed=False),
                    ]
                },
            )

        games = await _client(handler).fetch_week_games(2025, 2)

        params = seen[0].url.params
        assert (params["seasontype"], params["week"], params["year"]) == ("2", "2", "2025")
        assert [g.id for g in games] == ["401", "402", "403"]
        first = games[0]
        assert (first.home, first.away) == ("JAC", "WAS")
        assert (first.home_pts, first.away_pts) == (24, 17)
        assert first.status == "FINAL"
        assert first.final
        assert first.kickoff == datetime(2025, 9, 14, 17, 0, tzinfo=UTC)
        assert games[1].status == "IN_PROGRESS"
        assert games[2].status == "SCHEDULED"
        assert games[2].home_pts == 0

    @pytest.mark.parametrize(("week", "espn_week"), [(19, "1"), (20, "2"), (21, "3"), (22, "5")])
    async def test_playoff_week_params(self, week: int, espn_week: str):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"events": [_event("501", "KC", "HOU", "30", "14")]})

        games = await _client(handler).fetch_week_games(2025, week)
        assert seen[0].url.params["seasontype"] == "3"
        assert seen[0].url.params["week"] == espn_week
        assert games[0].week == week

    async def test_malformed_event_skipped(self):
        bad = {"id": "999", "competitions": [{"competitors": []}]}

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"events": [bad, _event("401", "KC", "BUF")]})

        games = await _client(handler).fetch_week_games(2025, 1)
        assert [g.id for g in games] == ["401"]

    async def test_http_failure_raises_provider_error(self):
        with pytest.raises(ProviderError):
            await _client(lambda request: httpx.Response(500)).fetch_week_games(2025, 1)


class TestCurrentWeek:
    async def test_from_scoreboard(self):
        payload = {"season": {"year": 2025, "type": 2}, "week": {"number": 6}}
        current = await _client(lambda r: httpx.Response(200, json=payload)).get_current_week()
        assert (current.season, current.week, current.season_type) == (2025, 6, 2)
        assert current.source == "espn"

    async def test_playoff_week_converted(self):
        payload = {"season": {"year": 2025, "type": 3}, "week": {"number": 2}}
        current = await _client(lambda r: httpx.Response(200, json=payload)).get_current_week()
        assert current.week == 20

    async def test_calendar_fallback(self):
        now = datetime(2025, 10, 1, 16, 0, tzinfo=UTC)
        current = await _client(lambda r: httpx.Response(503)).get_current_week(now)
        assert current.source == "calendar"
        assert (current.season, current.week) == (2025, 4)

    @pytest.mark.parametrize(
        ("now", "expected"),
        [
            (datetime(2027, 10, 1, 16, 0, tzinfo=UTC), (2027, 4)),
            (datetime(2024, 1, 10, 16, 0, tzinfo=UTC), (2023, 18)),
        ],
    )
    async def test_calendar_fallback_outside_known_seasons(self, now, expected):
        current = await _client(lambda r: httpx.Response(503)).get_current_week(now)
        assert (current.season, current.week) == expected


def _standing(abbr: str, seed: int, wins: int = 10) -> dict:
    return {
        "team": {"abbreviation": abbr, "displayName": abbr.title()},
        "stats": [
            {"name": "playoffSeed", "value": seed},
            {"name": "wins", "value": wins},
            {"name": "losses", "value": 17 - wins},
        ],
    }


class TestPlayoffSeeds:
    async def test_top_seven_per_conference(self):
        afc_order = ["KC", "BUF", "BAL", "HOU", "LAC", "PIT", "DEN", "MIA"]
        afc = [_standing(abbr, seed) for seed, abbr in enumerate(afc_order, 1)]
        nfc = [_standing("DET", 1), _standing("WSH", 6), _standing("NYG", 15)]
        payload = {
            "children": [
                {"abbreviation": "AFC", "standings": {"entries": afc}},
                {"abbreviation": "NFC", "standings": {"entries": nfc}},
            ]
        }
        seeds = await _client(lambda r: httpx.Response(200, json=payload)).fetch_playoff_seeds(2025)
        afc_seeds = [s.abbr for s in seeds if s.conference == "AFC"]
        assert afc_seeds == ["KC", "BUF", "BAL", "HOU", "LAC", "PIT", "DEN"]
        assert [s.abbr for s in seeds if s.conference == "NFC"] == ["DET", "WAS"]


class TestPlayoffGames:
    def test_detect_round_from_name(self):
        assert detect_round("Super Bowl LX") == "SUPER_BOWL"
        assert detect_round("AFC Championship Game") == "CONFERENCE"
        assert detect_round("NFC Divisional Playoffs") == "DIVISIONAL"
        assert detect_round("AFC Wild Card Playoffs") == "WILD_CARD"

    def test_detect_round_from_week(self):
        assert detect_round("Texans at Chiefs", 2) == "DIVISIONAL"
        assert detect_round("", 5) == "SUPER_BOWL"
        assert detect_round("", None) == "WILD_CARD"

    def test_pro_bowl_is_not_a_round(self):
        assert detect_round("AFC vs NFC Pro Bowl Games", 4) is None
        assert detect_round("", 4) is None

    async def test_pro_bowl_dropped(self):
        events = [
            _event("701", "AFC", "NFC", "24", "21", name="AFC vs NFC Pro Bowl Games", week=4),
            _event("702", "KC", "PHI", "38", "35", name="Super Bowl LX", week=5),
        ]
        client = _client(lambda r: httpx.Response(200, json={"events": events}))
        games = await client.fetch_playoff_games(2025)
        assert [(g.id, g.round) for g in games] == [("702", "SUPER_BOWL")]

    async def test_filter_by_round(self):
        events = [
            _event("601", "KC", "HOU", "30", "14", name="AFC Wild Card Playoffs"),
            _event("602", "DET", "WSH", "20", "31", name="NFC Divisional Playoffs"),
            _event("603", "BUF", "DEN", "0", "0", "pre", False, name="AFC Divisional Playoffs"),
        ]
        client = _client(lambda r: httpx.Response(200, json={"events": events}))
        games = await client.fetch_playoff_games(2025, "DIVISIONAL")
        assert [g.id for g in games] == ["602", "603"]
        assert games[0].winner == "WAS"
        assert games[0].loser == "DET"
        assert games[1].winner is None
