"""Tests for schedule_times: calendar week estimation and the live game window."""

from datetime import UTC, date, datetime, timedelta

import pytest

from payday.core.schedule_times import (
    SEASON_START_DATES,
    is_game_time,
    kalshi_date_code,
    nfl_week_for_date,
    season_start_date,
    to_eastern,
)


class TestNflWeekForDate:
    def test_opening_thursday_is_week_one(self):
        # 20:20 ET on Sep 4th, 2025
        assert nfl_week_for_date(datetime(2025, 9, 5, 0, 20, tzinfo=UTC)) == (2025, 1, 2)

    def test_mid_season(self):
        assert nfl_week_for_date(datetime(2025, 10, 1, 16, 0, tzinfo=UTC)) == (2025, 4, 2)

    def test_before_kickoff_is_preseason(self):
        assert nfl_week_for_date(datetime(2025, 8, 20, 16, 0, tzinfo=UTC)) == (2025, 1, 1)

    def test_january_belongs_to_previous_season(self):
        season, week, season_type = nfl_week_for_date(datetime(2026, 1, 20, 16, 0, tzinfo=UTC))
        assert season == 2025
        assert week == 18
        assert season_type == 2

    def test_season_outside_table_uses_labor_day(self):
        assert season_start_date(2027) == date(2027, 9, 9)
        assert season_start_date(2023) == date(2023, 9, 7)
        assert nfl_week_for_date(datetime(2031, 10, 1, 16, 0, tzinfo=UTC)) == (2031, 4, 2)

    def test_known_seasons_match_labor_day_rule(self):
        for start in SEASON_START_DATES.values():
            labor_day = start - timedelta(days=3)
            assert (labor_day.weekday(), labor_day.day <= 7) == (0, True)


class TestIsGameTime:
    """Window is Thursday 8pm through Monday 11pm Eastern."""

    @pytest.mark.parametrize(
        ("moment", "expected"),
        [
            (datetime(2025, 9, 11, 23, 0, tzinfo=UTC), False),  # Thu 19:00 ET
            (datetime(2025, 9, 12, 0, 30, tzinfo=UTC), True),  # Thu 20:30 ET
            (datetime(2025, 9, 13, 12, 0, tzinfo=UTC), True),  # Sat
            (datetime(2025, 9, 14, 17, 0, tzinfo=UTC), True),  # Sun
            (datetime(2025, 9, 16, 2, 0, tzinfo=UTC), True),  # Mon 22:00 ET
            (datetime(2025, 9, 16, 3, 30, tzinfo=UTC), False),  # Mon 23:30 ET
            (datetime(2025, 9, 17, 16, 0, tzinfo=UTC), False),  # Wed
        ],
    )
    def test_window(self, moment: datetime, expected: bool):
        assert is_game_time(moment) is expected

    def test_naive_treated_as_utc(self):
        assert to_eastern(datetime(2025, 9, 14, 17, 0)).hour == 13


class TestKalshiDateCode:
    def test_format(self):
        assert kalshi_date_code(datetime(2025, 9, 14, 17, 0, tzinfo=UTC)) == "25SEP14"

    def test_late_kickoff_uses_eastern_date(self):
        assert kalshi_date_code(datetime(2025, 12, 2, 1, 15, tzinfo=UTC)) == "25DEC01"
