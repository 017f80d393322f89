"""Application settings via pydantic-settings. Loads from environment and .env file."""

from __future__ import annotations

import pathlib

from pydantic import model_validator
from pydantic_settings import BaseSettings

PROJECT_ROOT = pathlib.Path(__file__).resolve().parent.parent.parent

# Tuesday morning: Monday night games are final, scores are settled.
_DEFAULT_WEEKLY_CRON = "0 10 * * 2"
_DEFAULT_LIVE_CRON = "*/10 * * * *"
_DEFAULT_PLAYOFF_CRON = "0 11 * * 1,2"


class Settings(BaseSettings):
    """Payday Football League configuration.

    All values can be overridden via environment variables or .env file.
    """

    # Database
    database_url: str = "sqlite+aiosqlite:///payday.db"

    # Environment
    payday_env: str = "development"

    # Logging
    payday_log_level: str = "INFO"

    # Odds provider (Kalshi). Empty key means no live odds.
    kalshi_api_key: str = ""
    kalshi_base_url: str = "https://api.elections.kalshi.com/trade-api/v2"

    # Schedule / score provider (ESPN)
    espn_base_url: str = "https://site.api.espn.com/apis/site/v2/sports/football/nfl"
    espn_standings_url: str = "https://site.api.espn.com/apis/v2/sports/football/nfl/standings"

    # Outbound HTTP
    payday_http_timeout: float = 8.0
    payday_odds_max_attempts: int = 3
    payday_odds_retry_delay: float = 1.0  # backoff is delay * attempt

    # Owner/team registry and strength ratings (YAML), loaded once at startup
    payday_registry_file: str = ""

    # Scheduling
    payday_auto_update: bool = False
    payday_weekly_cron: str = _DEFAULT_WEEKLY_CRON
    payday_live_cron: str = _DEFAULT_LIVE_CRON
    payday_playoff_cron: str = _DEFAULT_PLAYOFF_CRON

    # Shared secret for the cron HTTP triggers
    cron_secret: str = ""

    model_config = {"env_prefix": "", "env_file": ".env", "extra": "ignore"}

    @model_validator(mode="after")
    def _require_cron_secret_in_production(self) -> Settings:
        """Cron endpoints mutate the award ledger; production must protect them."""
        if self.payday_env == "production" and not self.cron_secret:
            msg = "CRON_SECRET must be set in production."
            raise ValueError(msg)
        return self

    @model_validator(mode="after")
    def _check_retry_policy(self) -> Settings:
        if self.payday_odds_max_attempts < 1:
            raise ValueError("PAYDAY_ODDS_MAX_ATTEMPTS must be at least 1")
        if self.payday_odds_retry_delay < 0:
            raise ValueError("PAYDAY_ODDS_RETRY_DELAY cannot be negative")
        if self.payday_http_timeout <= 0:
            raise ValueError("PAYDAY_HTTP_TIMEOUT must be positive")
        return self

    @property
    def registry_path(self) -> pathlib.Path | None:
        """Resolved registry file path, or None when not configured."""
        if not self.payday_registry_file:
            return None
        path = pathlib.Path(self.payday_registry_file)
        if not path.is_absolute():
            path = PROJECT_ROOT / path
        return path
