"""
Authentication Router

Handles user authentication endpoints:
- Registration (username/password, optional email)
- Login (username or email + password -> JWT tokens)
- Token refresh (refresh token -> new access token)
- Logout (clear the refresh token cookie)
- Get current user (from JWT token)

Security:
=========
- Passwords are hashed with bcrypt before storage
- Plain text passwords are never logged or stored
- Access tokens are short-lived (15 min default)
- Refresh tokens are longer-lived (7 days default) and also set as an
  HttpOnly cookie
"""

import logging
from datetime import UTC, datetime

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from fastapi.security import OAuth2PasswordRequestForm

from catalog.config import get_settings
from catalog.dependencies import ActiveUser, DbSession, Storage
from catalog.models import User
from catalog.schemas.user import RefreshRequest, Token, UserCreate, UserResponse
from catalog.services.rate_limiter import limiter
from catalog.services.security import (
    create_token_pair,
    hash_password,
    token_subject,
    verify_password,
)
from catalog.services.users import find_user_by_login, register_user

logger = logging.getLogger(__name__)
settings = get_settings()

router = APIRouter(
    prefix="/auth",
    tags=["Authentication"],
    responses={
        400: {"description": "Bad request"},
        401: {"description": "Unauthorized"},
        409: {"description": "Conflict (email/username already exists)"},
    },
)


def _set_refresh_cookie(response: Response, refresh_token: str) -> None:
    response.set_cookie(
        key="refresh_token",
        value=refresh_token,
        httponly=True,
        secure=settings.is_production,
        samesite="lax",
        max_age=settings.refresh_token_expire_days * 24 * 60 * 60,
    )


# -------------------------------------------------------------------------
# Registration Endpoint
# -------------------------------------------------------------------------
@router.post(
    "/register",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a new user",
    description="""
    Create a new user account.

    **Password Requirements:**
    - Minimum 8 characters
    - At least 1 uppercase letter
    - At least 1 lowercase letter
    - At least 1 number

    **Username Requirements:**
    - 3-50 characters
    - Must start with a letter
    - Only letters, numbers, and underscores
    """,
)
@limiter.limit("5/minute")
def register(
    request: Request,
    user_data: UserCreate,
    storage: Storage,
) -> UserResponse:
    """
    Register a new user.

    1. Validates username, password and email (handled by Pydantic)
    2. Hashes password with bcrypt
    3. Creates the account, rejecting a taken username or email (409)
    """
    hashed = hash_password(user_data.password)

    # A concurrent registration of the same name fails the unique index;
    # the retry then reports it as taken.
    user = storage.run(
        lambda session: register_user(
            session, user_data.username, hashed, user_data.email
        ),
        retries=1,
    )

    logger.info(f"New user registered: {user.username}")

    return UserResponse.model_validate(user)


# -------------------------------------------------------------------------
# Login Endpoint
# -------------------------------------------------------------------------
@router.post(
    "/login",
    response_model=Token,
    summary="Login with username or email",
    description="""
    Authenticate to receive JWT tokens.

    The OAuth2 `username` field accepts either the username or the email.
    The refresh token is returned in the body and set as an httpOnly cookie.

    **Usage:**
    ```
    Authorization: Bearer <access_token>
    ```
    """,
)
@limiter.limit("10/minute")
def login(
    request: Request,
    response: Response,
    db: DbSession,
    form_data: OAuth2PasswordRequestForm = Depends(),
) -> Token:
    """Authenticate user and return JWT tokens."""
    login_name = form_data.username
    user = find_user_by_login(db, login_name)

    if not user or not verify_password(form_data.password, user.hashed_password):
        logger.warning(f"Login failed for {login_name}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid username or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if not user.is_active:
        logger.warning(f"Login failed: inactive account {login_name}")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account is inactive",
        )

    access_token, refresh_token = create_token_pair(user.id)

    user.last_login_at = datetime.now(UTC)
    db.commit()

    _set_refresh_cookie(response, refresh_token)

    logger.info(f"User logged in: {user.username}")

    return Token(access_token=access_token, refresh_token=refresh_token)


# -------------------------------------------------------------------------
# Token Refresh Endpoint
# -------------------------------------------------------------------------
@router.post(
    "/refresh",
    response_model=Token,
    summary="Refresh access token",
    description="""
    Get a new access token using a refresh token.

    The refresh token is read from the request body, or from the
    `refresh_token` cookie when the body has none.
    """,
)
def refresh_token(
    request: Request,
    response: Response,
    db: DbSession,
    body: RefreshRequest | None = None,
) -> Token:
    """Exchange a refresh token for a new token pair."""
    token = body.refresh_token if body and body.refresh_token else None
    if token is None:
        token = request.cookies.get("refresh_token")

    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Refresh token required",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user_id = token_subject(token, "refresh")
    if user_id is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired refresh token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user = db.get(User, user_id)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account is inactive",
        )

    access_token, new_refresh = create_token_pair(user.id)
    _set_refresh_cookie(response, new_refresh)

    logger.info(f"Token refreshed for user: {user.username}")

    return Token(access_token=access_token, refresh_token=new_refresh)


# -------------------------------------------------------------------------
# Logout Endpoint
# -------------------------------------------------------------------------
@router.post(
    "/logout",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Logout user",
    description="""
    Clear the refresh token cookie.

    The access token stays valid until it expires (15 min default).
    """,
)
def logout(
    response: Response,
    current_user: ActiveUser,
) -> None:
    response.delete_cookie(
        key="refresh_token",
        httponly=True,
        secure=settings.is_production,
        samesite="lax",
    )

    logger.info(f"User logged out: {current_user.username}")

    return None


# -------------------------------------------------------------------------
# Get Current User Endpoint
# -------------------------------------------------------------------------
@router.get(
    "/me",
    response_model=UserResponse,
    summary="Get current user",
)
def get_me(
    current_user: ActiveUser,
) -> UserResponse:
    """Return the current authenticated user's profile."""
    return UserResponse.model_validate(current_user)
