"""Pydantic domain models shared by the engines, the database layer and the API."""
