"""FastAPI routers for the contribution service."""

from .calculate import router as calculate_router

__all__ = ["calculate_router"]
