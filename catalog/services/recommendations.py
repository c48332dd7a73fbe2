"""
Recommendations Service

Client for the external recommendation service. The catalog does not
compute recommendations itself; it forwards the user id and passes the
upstream JSON through unchanged.

    GET {recommendation_service_url}/recommendations?user_id=<id>
"""

import logging
from typing import Any

import httpx

from catalog.config import get_settings
from catalog.services.exceptions import RecommendationServiceError

logger = logging.getLogger(__name__)
settings = get_settings()


async def fetch_recommendations(user_id: int) -> Any:
    """
    Fetch recommendations for a user from the external service.

    Args:
        user_id: The authenticated user's id

    Returns:
        The upstream JSON payload

    Raises:
        RecommendationServiceError: Upstream error, bad JSON or timeout
    """
    url = f"{settings.recommendation_service_url.rstrip('/')}/recommendations"

    try:
        async with httpx.AsyncClient(timeout=settings.recommendation_timeout) as client:
            response = await client.get(url, params={"user_id": user_id})
    except httpx.HTTPError as e:
        logger.error(f"Recommendation service request failed: {e}")
        raise RecommendationServiceError("Error fetching recommendations") from e

    if response.status_code != 200:
        logger.error(
            f"Recommendation service returned {response.status_code}: {response.text}"
        )
        raise RecommendationServiceError("Error fetching recommendations")

    try:
        return response.json()
    except ValueError as e:
        logger.error(f"Recommendation service returned invalid JSON: {e}")
        raise RecommendationServiceError("Error fetching recommendations") from e
