"""
Tests for JWT Authentication

- Registration, login (username or email), refresh, logout, /auth/me
- Token type checking
"""

from datetime import timedelta

from fastapi import status
from fastapi.testclient import TestClient

from catalog.models import User
from catalog.services.security import (
    create_access_token,
    create_refresh_token,
    decode_token,
    hash_password,
    verify_password,
    verify_token_type,
)
from tests.conftest import auth_headers


class TestSecurityHelpers:
    def test_password_hash_roundtrip(self):
        hashed = hash_password("SecurePass123")

        assert hashed != "SecurePass123"
        assert verify_password("SecurePass123", hashed)
        assert not verify_password("WrongPass123", hashed)

    def test_token_type_checked(self):
        refresh = create_refresh_token({"sub": "1"})

        assert verify_token_type(refresh, "refresh")["sub"] == "1"
        assert verify_token_type(refresh, "access") is None

    def test_expired_token_rejected(self):
        token = create_access_token({"sub": "1"}, expires_delta=timedelta(seconds=-1))

        assert decode_token(token) is None


class TestRegister:
    """Tests for POST /api/v1/auth/register"""

    def test_register_success(self, client: TestClient):
        response = client.post(
            "/api/v1/auth/register",
            json={"username": "NewReader", "password": "SecurePass123", "email": "New@Example.com"},
        )

        assert response.status_code == status.HTTP_201_CREATED
        data = response.json()
        assert data["username"] == "newreader"
        assert data["email"] == "new@example.com"
        assert data["is_admin"] is False
        assert "hashed_password" not in data

    def test_register_without_email(self, client: TestClient):
        response = client.post(
            "/api/v1/auth/register",
            json={"username": "noemail", "password": "SecurePass123"},
        )

        assert response.status_code == status.HTTP_201_CREATED
        assert response.json()["email"] is None

    def test_register_duplicate_username(self, client: TestClient, sample_user: User):
        response = client.post(
            "/api/v1/auth/register",
            json={"username": sample_user.username, "password": "SecurePass123"},
        )

        assert response.status_code == status.HTTP_409_CONFLICT

    def test_register_duplicate_email(self, client: TestClient, sample_user: User):
        response = client.post(
            "/api/v1/auth/register",
            json={"username": "other", "password": "SecurePass123", "email": sample_user.email},
        )

        assert response.status_code == status.HTTP_409_CONFLICT

    def test_register_weak_password(self, client: TestClient):
        response = client.post(
            "/api/v1/auth/register",
            json={"username": "weakling", "password": "alllowercase"},
        )

        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


class TestLogin:
    """Tests for POST /api/v1/auth/login"""

    def test_login_with_username(self, client: TestClient, sample_user: User):
        response = client.post(
            "/api/v1/auth/login",
            data={"username": "reader", "password": "ReaderPass1"},
        )

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["token_type"] == "bearer"
        assert verify_token_type(data["access_token"], "access")["sub"] == str(sample_user.id)
        assert "refresh_token" in response.cookies

    def test_login_with_email(self, client: TestClient, sample_user: User):
        response = client.post(
            "/api/v1/auth/login",
            data={"username": "Reader@Example.com", "password": "ReaderPass1"},
        )

        assert response.status_code == status.HTTP_200_OK

    def test_login_wrong_password(self, client: TestClient, sample_user: User):
        response = client.post(
            "/api/v1/auth/login",
            data={"username": "reader", "password": "WrongPass1"},
        )

        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_login_unknown_user(self, client: TestClient):
        response = client.post(
            "/api/v1/auth/login",
            data={"username": "ghost", "password": "WhateverPass1"},
        )

        assert response.status_code == status.HTTP_401_UNAUTHORIZED


class TestRefreshAndMe:
    def test_refresh_with_body(self, client: TestClient, sample_user: User):
        refresh = create_refresh_token({"sub": str(sample_user.id)})

        response = client.post("/api/v1/auth/refresh", json={"refresh_token": refresh})

        assert response.status_code == status.HTTP_200_OK
        assert verify_token_type(response.json()["access_token"], "access") is not None

    def test_refresh_rejects_access_token(self, client: TestClient, sample_user: User):
        access = create_access_token({"sub": str(sample_user.id)})

        response = client.post("/api/v1/auth/refresh", json={"refresh_token": access})

        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_refresh_without_token(self, client: TestClient):
        response = client.post("/api/v1/auth/refresh")

        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_me(self, client: TestClient, sample_user: User):
        response = client.get("/api/v1/auth/me", headers=auth_headers(sample_user))

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["username"] == "reader"

    def test_me_with_refresh_token_rejected(self, client: TestClient, sample_user: User):
        refresh = create_refresh_token({"sub": str(sample_user.id)})

        response = client.get(
            "/api/v1/auth/me", headers={"Authorization": f"Bearer {refresh}"}
        )

        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_logout(self, client: TestClient, sample_user: User):
        response = client.post("/api/v1/auth/logout", headers=auth_headers(sample_user))

        assert response.status_code == status.HTTP_204_NO_CONTENT
