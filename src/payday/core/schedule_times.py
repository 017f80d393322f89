"""NFL calendar helpers: current week by date and the live game window.

All calendar reasoning happens in Eastern Time, the league's canonical
time zone.
"""

from __future__ import annotations

from datetime import UTC, date, datetime, timedelta
from zoneinfo import ZoneInfo

from payday.models.game import REGULAR_SEASON_WEEKS

_ET = ZoneInfo("America/New_York")

# Thursday kickoff of week 1 for each season we know about.
SEASON_START_DATES: dict[int, date] = {
    2024: date(2024, 9, 5),
    2025: date(2025, 9, 4),
    2026: date(2026, 9, 10),
}


def season_start_date(season: int) -> date:
    """Week 1 Thursday: the table value, else the Thursday after Labor Day."""
    if season in SEASON_START_DATES:
        return SEASON_START_DATES[season]
    labor_day = date(season, 9, 1)
    labor_day += timedelta(days=-labor_day.weekday() % 7)
    return labor_day + timedelta(days=3)


def to_eastern(moment: datetime) -> datetime:
    """Convert to Eastern Time. Naive datetimes are treated as UTC."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=UTC)
    return moment.astimezone(_ET)


def nfl_week_for_date(moment: datetime) -> tuple[int, int, int]:
    """Estimate (season, week, season_type) from the calendar alone.

    Season type follows ESPN: 1 preseason, 2 regular season. Weeks are
    capped at the last regular-season week. January and February belong to
    the previous calendar year's season.
    """
    local = to_eastern(moment).date()
    season = local.year if local.month >= 3 else local.year - 1
    start = season_start_date(season)
    days = (local - start).days
    if days < 0:
        return season, 1, 1
    week = days // 7 + 1
    return season, min(week, REGULAR_SEASON_WEEKS), 2


def is_game_time(moment: datetime) -> bool:
    """Whether games may be in progress: Thursday 8pm through Monday 11pm ET."""
    local = to_eastern(moment)
    weekday = local.weekday()  # Monday == 0
    if weekday == 3:
        return local.hour >= 20
    if weekday in (4, 5, 6):
        return True
    if weekday == 0:
        return local.hour < 23
    return False


def kalshi_date_code(kickoff: datetime) -> str:
    """Ticker date segment, e.g. ``25SEP14`` for September 14th, 2025 (ET)."""
    local = to_eastern(kickoff)
    return local.strftime("%y%b%d").upper()
