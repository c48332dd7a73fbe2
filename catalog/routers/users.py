"""
Users Router

Profile management and admin user management.

Endpoints:
- GET /users/me - Current user's profile (same as /auth/me)
- PUT /users/me - Update email, password or favorites
- POST /users/me/profile-picture - Upload a profile picture
- GET /users - List users (admin)
- DELETE /users/{user_id} - Delete a user (admin)
- POST /users/{user_id}/grant-admin - Grant admin rights (seeded admin)
- POST /users/{user_id}/revoke-admin - Revoke admin rights (seeded admin)

Business Rules:
- Users can only update their own profile
- Admin accounts cannot be deleted
- Deleting a user removes their votes and rebalances book counters
- Only the seeded admin can grant or revoke admin rights
"""

import logging
import math

from fastapi import APIRouter, File, HTTPException, Request, UploadFile, status
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from catalog.config import get_settings
from catalog.dependencies import (
    ActiveUser,
    AdminUser,
    DbSession,
    Pagination,
    SeedAdminUser,
    Storage,
    get_user_or_404,
)
from catalog.models import User
from catalog.schemas.user import (
    UserListResponse,
    UserPublicResponse,
    UserResponse,
    UserUpdate,
)
from catalog.services.exceptions import AccountConflictError
from catalog.services.rate_limiter import limiter
from catalog.services.security import hash_password
from catalog.services.uploads import delete_upload, save_image
from catalog.services.users import delete_user, email_taken, set_admin

logger = logging.getLogger(__name__)
settings = get_settings()

# =============================================================================
# Router Configuration
# =============================================================================

router = APIRouter(
    prefix="/users",
    tags=["Users"],
    responses={
        401: {"description": "Not authenticated"},
        404: {"description": "User not found"},
    },
)


# =============================================================================
# Current User Endpoints (/users/me/...)
# =============================================================================


@router.get(
    "/me",
    response_model=UserResponse,
    summary="Get current user profile",
)
@limiter.limit(settings.rate_limit_default)
def get_current_user_profile(
    request: Request,
    current_user: ActiveUser,
) -> UserResponse:
    """This is equivalent to /auth/me but placed here for REST consistency."""
    return UserResponse.model_validate(current_user)


@router.put(
    "/me",
    response_model=UserResponse,
    summary="Update current user profile",
    description="Update email, password and favorite genres/authors/books.",
)
@limiter.limit(settings.rate_limit_write)
def update_current_user_profile(
    request: Request,
    user_data: UserUpdate,
    db: DbSession,
    current_user: ActiveUser,
) -> UserResponse:
    """
    Update the current user's profile.

    Only fields present in the request are changed. A new password is
    hashed before storage.
    """
    update_data = user_data.model_dump(exclude_unset=True)

    new_email = update_data.get("email")
    if new_email and new_email != current_user.email:
        if email_taken(db, new_email, exclude_user_id=current_user.id):
            raise AccountConflictError("Email already registered")

    password = update_data.pop("password", None)
    if password:
        current_user.hashed_password = hash_password(password)

    for field, value in update_data.items():
        setattr(current_user, field, value)

    try:
        db.commit()
    except IntegrityError:
        # Another account took the email after the check above
        db.rollback()
        raise AccountConflictError("Email already registered")
    db.refresh(current_user)

    logger.info(f"Profile updated: {current_user.username}")

    return UserResponse.model_validate(current_user)


@router.post(
    "/me/profile-picture",
    response_model=UserResponse,
    summary="Upload profile picture",
    description="Upload an image (multipart field `profile_picture`).",
)
@limiter.limit(settings.rate_limit_write)
def upload_profile_picture(
    request: Request,
    db: DbSession,
    current_user: ActiveUser,
    profile_picture: UploadFile = File(..., description="Profile image"),
) -> UserResponse:
    stored = save_image(profile_picture, prefix=f"profile_{current_user.id}_")

    old_picture = current_user.profile_picture
    current_user.profile_picture = f"/uploads/{stored}"
    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        delete_upload(stored)
        raise
    db.refresh(current_user)

    if old_picture and old_picture.startswith("/uploads/"):
        delete_upload(old_picture.removeprefix("/uploads/"))

    return UserResponse.model_validate(current_user)


# =============================================================================
# Admin User Management
# =============================================================================


@router.get(
    "",
    response_model=UserListResponse,
    summary="List users",
    description="Paginated list of all users. Admin only.",
)
@limiter.limit(settings.rate_limit_default)
def list_users(
    request: Request,
    db: DbSession,
    pagination: Pagination,
    admin: AdminUser,
) -> UserListResponse:
    total = db.execute(select(func.count(User.id))).scalar() or 0
    pages = math.ceil(total / pagination.per_page) if total > 0 else 0

    users = db.execute(
        select(User)
        .order_by(User.id)
        .offset(pagination.skip)
        .limit(pagination.per_page)
    ).scalars().all()

    return UserListResponse(
        items=[UserPublicResponse.model_validate(u) for u in users],
        total=total,
        page=pagination.page,
        per_page=pagination.per_page,
        pages=pages,
    )


@router.delete(
    "/{user_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a user",
    description="""
    Delete a regular user account. Admin only.

    The user's votes are removed and the affected books' like/dislike
    counters are reduced in the same transaction.
    """,
)
@limiter.limit(settings.rate_limit_write)
def remove_user(
    request: Request,
    user_id: int,
    db: DbSession,
    storage: Storage,
    admin: AdminUser,
) -> None:
    user = get_user_or_404(db, user_id)

    if user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin accounts cannot be deleted",
        )

    picture = user.profile_picture
    # Release the request session before the delete takes the write lock
    db.close()

    if not delete_user(storage, user_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"User with id {user_id} not found",
        )

    if picture and picture.startswith("/uploads/"):
        delete_upload(picture.removeprefix("/uploads/"))

    logger.info(f"User {user_id} deleted by admin {admin.username}")


@router.post(
    "/{user_id}/grant-admin",
    response_model=UserPublicResponse,
    summary="Grant admin rights",
    description="Only the seeded admin can grant admin rights.",
)
@limiter.limit(settings.rate_limit_write)
def grant_admin(
    request: Request,
    user_id: int,
    db: DbSession,
    storage: Storage,
    seed_admin: SeedAdminUser,
) -> UserPublicResponse:
    get_user_or_404(db, user_id)
    db.close()

    user = set_admin(storage, user_id, True)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"User with id {user_id} not found",
        )
    return UserPublicResponse.model_validate(user)


@router.post(
    "/{user_id}/revoke-admin",
    response_model=UserPublicResponse,
    summary="Revoke admin rights",
    description="Only the seeded admin can revoke admin rights. The seeded admin keeps theirs.",
)
@limiter.limit(settings.rate_limit_write)
def revoke_admin(
    request: Request,
    user_id: int,
    db: DbSession,
    storage: Storage,
    seed_admin: SeedAdminUser,
) -> UserPublicResponse:
    if user_id == seed_admin.id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="The seeded admin cannot revoke their own admin rights",
        )

    get_user_or_404(db, user_id)
    db.close()

    user = set_admin(storage, user_id, False)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"User with id {user_id} not found",
        )
    return UserPublicResponse.model_validate(user)
