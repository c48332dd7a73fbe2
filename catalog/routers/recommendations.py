"""
Recommendations Router

Endpoints:
- GET /recommendations - Personalized recommendations (auth required)

Recommendations come from an external service; upstream failures are
answered with 502 by the handler in catalog.main.
"""

from typing import Any

from fastapi import APIRouter, Request

from catalog.config import get_settings
from catalog.dependencies import ActiveUser
from catalog.services.rate_limiter import limiter
from catalog.services.recommendations import fetch_recommendations

settings = get_settings()

router = APIRouter(
    prefix="/recommendations",
    tags=["Recommendations"],
    responses={
        401: {"description": "Not authenticated"},
        502: {"description": "Recommendation service unavailable"},
    },
)


@router.get(
    "",
    summary="Get personalized recommendations",
    description="Proxy to the recommendation service for the current user.",
)
@limiter.limit(settings.rate_limit_default)
async def get_recommendations(
    request: Request,
    current_user: ActiveUser,
) -> Any:
    return await fetch_recommendations(current_user.id)
