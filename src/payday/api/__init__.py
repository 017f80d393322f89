"""FastAPI routers and dependencies."""
