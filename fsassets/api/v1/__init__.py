"""API v1 module.

Contains all v1 API routes.
"""

from fastapi import APIRouter

from fsassets.api.v1.assets import router as assets_router

router = APIRouter(prefix="/api/v1")
router.include_router(assets_router)

__all__ = ["router"]
