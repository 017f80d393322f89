"""Shared constants for Payday models.

Award type names, playoff round slots and provider abbreviation aliases.
Placed here so the core engines, the provider clients and the database layer
can import them without creating a layer violation.
"""

from __future__ import annotations

from typing import Literal

# Regular-season weekly award types (replaced on every recomputation)
WIN = "WIN"
TIE_AWAY = "TIE_AWAY"
OBO = "OBO"
DBO = "DBO"

WEEKLY_AWARD_TYPES: tuple[str, ...] = (WIN, TIE_AWAY, OBO, DBO)
WIN_AWARD_TYPES: tuple[str, ...] = (WIN, TIE_AWAY)

# Playoff award types (append-only ledger)
PLAYOFF_BERTH = "PLAYOFF_BERTH"
PLAYOFF_BYE = "PLAYOFF_BYE"
PLAYOFF_WC_WIN = "PLAYOFF_WC_WIN"
PLAYOFF_DIV_WIN = "PLAYOFF_DIV_WIN"
PLAYOFF_CONF_WIN = "PLAYOFF_CONF_WIN"
PLAYOFF_SB_WIN = "PLAYOFF_SB_WIN"

PLAYOFF_AWARD_TYPES: tuple[str, ...] = (
    PLAYOFF_BERTH,
    PLAYOFF_BYE,
    PLAYOFF_WC_WIN,
    PLAYOFF_DIV_WIN,
    PLAYOFF_CONF_WIN,
    PLAYOFF_SB_WIN,
)

# End-of-year awards, entered manually
EOY_AWARD_TYPES: tuple[str, ...] = (
    "COACH_FIRED",
    "DRAFT_PICK_1",
    "MVP",
    "DPOY",
    "COTY",
    "MOST_SACKS",
    "MOST_INTS",
    "MOST_RET_TDS",
)

PlayoffRound = Literal["WILD_CARD", "DIVISIONAL", "CONFERENCE", "SUPER_BOWL"]

PLAYOFF_ROUNDS: tuple[PlayoffRound, ...] = (
    "WILD_CARD",
    "DIVISIONAL",
    "CONFERENCE",
    "SUPER_BOWL",
)

ROUND_AWARD_TYPE: dict[str, str] = {
    "WILD_CARD": PLAYOFF_WC_WIN,
    "DIVISIONAL": PLAYOFF_DIV_WIN,
    "CONFERENCE": PLAYOFF_CONF_WIN,
    "SUPER_BOWL": PLAYOFF_SB_WIN,
}

# Week slot each round's results post under, regardless of calendar week.
ROUND_WEEK: dict[str, int] = {
    "WILD_CARD": 19,
    "DIVISIONAL": 20,
    "CONFERENCE": 21,
    "SUPER_BOWL": 22,
}

# Berths, byes and manual EOY awards post after the regular season closes.
BERTH_WEEK = 18

PLAYOFF_SEED_CUTOFF = 7
CONFERENCES: tuple[str, ...] = ("AFC", "NFC")

# Provider abbreviation -> internal abbreviation
ESPN_TEAM_ALIASES: dict[str, str] = {
    "JAX": "JAC",
    "WSH": "WAS",
}

# Internal abbreviation -> Kalshi ticker code
KALSHI_TEAM_ALIASES: dict[str, str] = {
    "JAX": "JAC",
    "LAR": "LA",
    "WSH": "WAS",
}

# Canonical internal abbreviations for the 32 franchises
NFL_TEAMS: frozenset[str] = frozenset(
    {
        "ARI", "ATL", "BAL", "BUF", "CAR", "CHI", "CIN", "CLE",
        "DAL", "DEN", "DET", "GB", "HOU", "IND", "JAC", "KC",
        "LV", "LAC", "LAR", "MIA", "MIN", "NE", "NO", "NYG",
        "NYJ", "PHI", "PIT", "SF", "SEA", "TB", "TEN", "WAS",
    }
)
