"""API routes package."""

from kvnode.routes.peer_routes import router as peer_router
from kvnode.routes.store_routes import router as store_router

__all__ = ["peer_router", "store_router"]
