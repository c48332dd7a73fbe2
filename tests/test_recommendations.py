"""
Tests for Recommendations Router

The external recommendation service is mocked at the httpx client.
"""

from unittest.mock import patch

import httpx
from fastapi import status
from fastapi.testclient import TestClient

from catalog.config import get_settings
from catalog.models import User
from tests.conftest import create_mock_async_client, create_mock_response

settings = get_settings()


class TestGetRecommendations:
    """Tests for GET /api/v1/recommendations"""

    def test_recommendations_passed_through(
        self, client: TestClient, sample_user: User, user_headers: dict
    ):
        payload = {"recommendations": [{"title": "Dune", "score": 0.93}]}
        mock_client = create_mock_async_client(get_response=create_mock_response(200, payload))

        with patch("catalog.services.recommendations.httpx.AsyncClient", return_value=mock_client):
            response = client.get("/api/v1/recommendations", headers=user_headers)

        assert response.status_code == status.HTTP_200_OK
        assert response.json() == payload

        args, kwargs = mock_client.get.call_args
        assert args[0] == f"{settings.recommendation_service_url.rstrip('/')}/recommendations"
        assert kwargs["params"] == {"user_id": sample_user.id}

    def test_upstream_error_status(self, client: TestClient, user_headers: dict):
        mock_client = create_mock_async_client(
            get_response=create_mock_response(500, text="boom")
        )

        with patch("catalog.services.recommendations.httpx.AsyncClient", return_value=mock_client):
            response = client.get("/api/v1/recommendations", headers=user_headers)

        assert response.status_code == status.HTTP_502_BAD_GATEWAY
        assert response.json() == {"error": "Error fetching recommendations"}

    def test_upstream_unreachable(self, client: TestClient, user_headers: dict):
        mock_client = create_mock_async_client(error=httpx.ConnectError("connection refused"))

        with patch("catalog.services.recommendations.httpx.AsyncClient", return_value=mock_client):
            response = client.get("/api/v1/recommendations", headers=user_headers)

        assert response.status_code == status.HTTP_502_BAD_GATEWAY

    def test_upstream_invalid_json(self, client: TestClient, user_headers: dict):
        bad_response = create_mock_response(200)
        bad_response.json.side_effect = ValueError("not json")
        mock_client = create_mock_async_client(get_response=bad_response)

        with patch("catalog.services.recommendations.httpx.AsyncClient", return_value=mock_client):
            response = client.get("/api/v1/recommendations", headers=user_headers)

        assert response.status_code == status.HTTP_502_BAD_GATEWAY

    def test_requires_auth(self, client: TestClient):
        response = client.get("/api/v1/recommendations")

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
