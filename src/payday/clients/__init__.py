"""HTTP clients for the schedule/score (ESPN) and odds (Kalshi) providers."""
