"""
Admin / observability endpoints
===============================

GET /api/v1/admin/health      -- simple health check
GET /api/v1/admin/open-rides  -- rides currently eligible for matching
"""

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.dependencies import get_db
from src.api.middleware import limiter
from src.api.schemas import HealthResponse, RideSchema
from src.config import settings
from src.infrastructure.repositories import RideRepository

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get(
    "/open-rides",
    response_model=list[RideSchema],
    summary="List rides that are open with free seats",
)
@limiter.limit(settings.rate_limit)
async def get_open_rides(
    request: Request,
    db: AsyncSession = Depends(get_db),
):
    rides = await RideRepository(db).list_open_rides(
        limit=settings.match_candidate_limit
    )
    return [RideSchema.model_validate(r) for r in rides]


@router.get("/health", response_model=HealthResponse, summary="Health check")
async def health():
    return HealthResponse()
