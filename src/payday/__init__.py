"""Payday Football League: NFL fantasy payouts, goose risk and playoff bonuses."""
