from fastapi import APIRouter

from estimate_export.api.endpoints import estimate

# Create API router
api_router = APIRouter()

# Include routers
api_router.include_router(estimate.router, prefix="/estimate", tags=["Estimate"])

__all__ = ["api_router"]
