"""Exception types raised by the Payday core."""

from __future__ import annotations


class PaydayError(Exception):
    """Base class for Payday errors."""


class AwardComputationError(PaydayError):
    """The store failed while recomputing a week's awards. Nothing was persisted."""

    def __init__(self, season: int, week: int, cause: Exception) -> None:
        self.season = season
        self.week = week
        self.cause = cause
        super().__init__(f"award computation failed for season {season} week {week}: {cause}")


class ProviderError(PaydayError):
    """An external odds or schedule provider returned nothing usable."""


class InvalidRoundError(PaydayError, ValueError):
    """Unknown playoff round name."""
