"""API route modules."""

from recentview.api.routes.health import router as health_router
from recentview.api.routes.recently_viewed import router as recently_viewed_router
from recentview.api.routes.resolve import router as resolve_router

__all__ = [
    "health_router",
    "recently_viewed_router",
    "resolve_router",
]
