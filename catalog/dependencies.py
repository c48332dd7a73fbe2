"""
FastAPI Dependencies Module

Dependencies are reusable components injected into route handlers.

Provided here:
- Storage: the application's StorageContext (from app.state)
- DbSession: a per-request session created from that storage
- Pagination / BookFilters: common query parameters
- CurrentUser / ActiveUser / AdminUser / SeedAdminUser / OptionalUser:
  JWT authentication and role checks
- get_book_or_404 / get_user_or_404: shared lookups
"""

from collections.abc import Generator
from typing import Annotated

from fastapi import Depends, HTTPException, Query, Request, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy import select
from sqlalchemy.orm import Session

from catalog.config import get_settings
from catalog.database import StorageContext
from catalog.models import Book, User
from catalog.services.security import token_subject

settings = get_settings()


# =============================================================================
# Storage and Sessions
# =============================================================================
def get_storage(request: Request) -> StorageContext:
    """
    Return the StorageContext built by create_app().

    Tests override this dependency to point the app at a throwaway database.
    """
    return request.app.state.storage


Storage = Annotated[StorageContext, Depends(get_storage)]


def get_db(storage: Storage) -> Generator[Session, None, None]:
    """
    Database session dependency ("session per request").

    Code before yield creates the session, the finally block closes it even
    if the route raised.
    """
    db = storage.session()
    try:
        yield db
    finally:
        db.close()


DbSession = Annotated[Session, Depends(get_db)]


# =============================================================================
# Pagination Parameters
# =============================================================================
class PaginationParams:
    """
    Common pagination parameters for list endpoints.

    - page: Which page to return (1-indexed)
    - per_page: How many items per page
    - skip: Calculated offset for the database query
    """

    def __init__(
        self,
        page: int = Query(
            default=1,
            ge=1,
            description="Page number (1-indexed)",
            examples=[1, 2, 3],
        ),
        per_page: int = Query(
            default=10,
            ge=1,
            le=100,
            description="Number of items per page (max 100)",
            examples=[10, 25, 50],
        ),
    ) -> None:
        self.page = page
        self.per_page = per_page

    @property
    def skip(self) -> int:
        """Number of records to skip (page 1 -> 0, page 2 -> per_page, ...)."""
        return (self.page - 1) * self.per_page


Pagination = Annotated[PaginationParams, Depends()]


# =============================================================================
# Book Filters
# =============================================================================
class BookFilterParams:
    """
    Filter parameters for the book listing.

    Every filter is a case-insensitive substring match and they combine with
    AND:
        GET /api/v1/books/?title=ring&author=tolkien&genre=fantasy
    """

    def __init__(
        self,
        title: str | None = Query(
            default=None,
            max_length=100,
            description="Filter by title (partial match, case-insensitive)",
            examples=["1984", "pride"],
        ),
        author: str | None = Query(
            default=None,
            max_length=100,
            description="Filter by author (partial match, case-insensitive)",
            examples=["orwell", "austen"],
        ),
        genre: str | None = Query(
            default=None,
            max_length=100,
            description="Filter by genre (partial match, case-insensitive)",
            examples=["fantasy"],
        ),
    ) -> None:
        self.title = title or None
        self.author = author or None
        self.genre = genre or None

    @property
    def has_filters(self) -> bool:
        """Check if any filters are applied."""
        return any([self.title, self.author, self.genre])


BookFilters = Annotated[BookFilterParams, Depends()]


# =============================================================================
# JWT Authentication
# =============================================================================
# OAuth2PasswordBearer extracts "Authorization: Bearer <token>" and answers
# 401 on its own when the header is missing.

oauth2_scheme = OAuth2PasswordBearer(
    tokenUrl=f"/api/{settings.api_version}/auth/login",
    auto_error=True,
)

oauth2_scheme_optional = OAuth2PasswordBearer(
    tokenUrl=f"/api/{settings.api_version}/auth/login",
    auto_error=False,
)


def _user_from_token(db: Session, token: str) -> User | None:
    user_id = token_subject(token, "access")
    if user_id is None:
        return None
    return db.execute(select(User).where(User.id == user_id)).scalar_one_or_none()


def get_current_user(
    db: DbSession,
    token: str = Depends(oauth2_scheme),
) -> User:
    """
    Extract and validate the current user from the JWT access token.

    Raises:
        HTTPException: 401 if token is invalid or user not found
    """
    user = _user_from_token(db, token)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


def get_current_active_user(
    current_user: User = Depends(get_current_user),
) -> User:
    """
    Verify the current user is active.

    Raises:
        HTTPException: 403 if user is inactive
    """
    if not current_user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account is inactive",
        )
    return current_user


def get_current_admin(
    current_user: User = Depends(get_current_active_user),
) -> User:
    """
    Verify the current user has admin privileges.

    Raises:
        HTTPException: 403 if user is not an admin
    """
    if not current_user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only admin can perform this action.",
        )
    return current_user


def get_seed_admin(
    current_user: User = Depends(get_current_active_user),
) -> User:
    """
    Verify the current user is the seeded admin account.

    Only the seeded admin may grant or revoke admin rights.
    """
    if not current_user.is_admin or current_user.username != settings.admin_username.lower():
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only the seeded admin can perform this action.",
        )
    return current_user


def get_optional_current_user(
    db: DbSession,
    token: str | None = Depends(oauth2_scheme_optional),
) -> User | None:
    """
    Get current user if authenticated, None otherwise.

    Used by endpoints that work anonymously but add per-user data (the
    caller's own vote, the is_admin flag) for logged-in users.
    """
    if not token:
        return None
    return _user_from_token(db, token)


CurrentUser = Annotated[User, Depends(get_current_user)]
ActiveUser = Annotated[User, Depends(get_current_active_user)]
AdminUser = Annotated[User, Depends(get_current_admin)]
SeedAdminUser = Annotated[User, Depends(get_seed_admin)]
OptionalUser = Annotated[User | None, Depends(get_optional_current_user)]


# =============================================================================
# Shared Lookups
# =============================================================================
def get_book_or_404(db: Session, book_id: int) -> Book:
    """
    Get a book by ID or raise 404.

    Raises:
        HTTPException: 404 if book not found
    """
    book = db.get(Book, book_id)
    if book is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Book with id {book_id} not found",
        )
    return book


def get_user_or_404(db: Session, user_id: int) -> User:
    """
    Get a user by ID or raise 404.

    Raises:
        HTTPException: 404 if user not found
    """
    user = db.get(User, user_id)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"User with id {user_id} not found",
        )
    return user
