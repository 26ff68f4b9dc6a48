"""API module for the asset service.

Contains versioned API routers.
"""

from fsassets.api.v1 import router as v1_router

__all__ = ["v1_router"]
