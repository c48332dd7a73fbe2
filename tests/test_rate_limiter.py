"""
Tests for rate limit keys.
"""

from starlette.requests import Request

from catalog.services.rate_limiter import get_client_ip, rate_limit_key
from catalog.services.security import create_refresh_token
from tests.conftest import auth_headers


def make_request(headers: dict[str, str] | None = None, client_ip: str = "10.0.0.7") -> Request:
    scope = {
        "type": "http",
        "method": "POST",
        "path": "/api/v1/books/1/like",
        "headers": [
            (name.lower().encode(), value.encode()) for name, value in (headers or {}).items()
        ],
        "client": (client_ip, 50000),
    }
    return Request(scope)


class TestClientIp:
    def test_direct_connection(self):
        assert get_client_ip(make_request()) == "10.0.0.7"

    def test_forwarded_for_first_hop(self):
        request = make_request({"X-Forwarded-For": "203.0.113.5, 10.0.0.1"})

        assert get_client_ip(request) == "203.0.113.5"

    def test_real_ip(self):
        assert get_client_ip(make_request({"X-Real-IP": "198.51.100.2"})) == "198.51.100.2"


class TestRateLimitKey:
    def test_anonymous_keyed_by_ip(self):
        assert rate_limit_key(make_request()) == "ip:10.0.0.7"

    def test_authenticated_keyed_by_user(self, sample_user):
        request = make_request(auth_headers(sample_user))

        assert rate_limit_key(request) == f"user:{sample_user.id}"

    def test_refresh_token_not_accepted(self):
        refresh = create_refresh_token({"sub": "5"})
        request = make_request({"Authorization": f"Bearer {refresh}"})

        assert rate_limit_key(request) == "ip:10.0.0.7"

    def test_garbage_token_falls_back_to_ip(self):
        request = make_request({"Authorization": "Bearer not-a-jwt"})

        assert rate_limit_key(request) == "ip:10.0.0.7"
