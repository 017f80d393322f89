"""Async SQLAlchemy persistence: engine, ORM rows and the repository."""
