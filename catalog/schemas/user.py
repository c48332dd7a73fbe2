"""
User Pydantic Schemas

These schemas define the shape of data for User-related API operations.

Schemas:
- UserCreate: Registration data (username, password, optional email)
- UserResponse: Own account data (never exposes password)
- UserPublicResponse: Account data shown in admin listings
- UserUpdate: Profile update fields
- UserListResponse: Paginated user list
- Token / RefreshRequest: Authentication payloads
"""

import re
from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator


def _check_password_strength(v: str) -> str:
    if not re.search(r"[A-Z]", v):
        raise ValueError("Password must contain at least one uppercase letter")
    if not re.search(r"[a-z]", v):
        raise ValueError("Password must contain at least one lowercase letter")
    if not re.search(r"\d", v):
        raise ValueError("Password must contain at least one number")
    return v


class UserCreate(BaseModel):
    """
    Schema for user registration.

    Email is optional; the account can log in with either username or email.
    """

    username: str = Field(
        ...,
        min_length=3,
        max_length=50,
        description="Unique username (3-50 characters, alphanumeric and underscores)",
        examples=["johndoe", "jane_doe123"],
    )

    password: str = Field(
        ...,
        min_length=8,
        max_length=128,
        description="Password (min 8 chars, must include uppercase and number)",
        examples=["SecurePass123"],
    )

    email: EmailStr | None = Field(
        default=None,
        description="Optional email address",
        examples=["john@example.com"],
    )

    @field_validator("username")
    @classmethod
    def username_must_be_valid(cls, v: str) -> str:
        """
        Validate username format.

        Rules:
        - 3-50 characters
        - Only alphanumeric and underscores
        - Must start with a letter
        """
        if not re.match(r"^[a-zA-Z][a-zA-Z0-9_]*$", v):
            raise ValueError(
                "Username must start with a letter and contain only "
                "letters, numbers, and underscores"
            )
        return v.lower()

    @field_validator("password")
    @classmethod
    def password_must_be_strong(cls, v: str) -> str:
        """Require an uppercase letter, a lowercase letter and a digit."""
        return _check_password_strength(v)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str | None) -> str | None:
        return v.lower() if v else v


class UserUpdate(BaseModel):
    """
    Schema for updating the caller's own profile.

    All fields are optional for partial updates.
    """

    email: EmailStr | None = Field(
        default=None,
        description="New email address",
    )

    password: str | None = Field(
        default=None,
        min_length=8,
        max_length=128,
        description="New password",
    )

    favorite_genres: str | None = Field(
        default=None,
        max_length=1000,
        description="Favorite genres (free text)",
        examples=["Fantasy, Mystery"],
    )

    favorite_authors: str | None = Field(
        default=None,
        max_length=1000,
        description="Favorite authors (free text)",
    )

    favorite_books: str | None = Field(
        default=None,
        max_length=1000,
        description="Favorite books (free text)",
    )

    @field_validator("password")
    @classmethod
    def password_must_be_strong(cls, v: str | None) -> str | None:
        if v is None:
            return v
        return _check_password_strength(v)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str | None) -> str | None:
        return v.lower() if v else v


class UserResponse(BaseModel):
    """
    Schema for the caller's own account.

    SECURITY: Never includes password or sensitive internal fields.
    """

    id: int = Field(..., description="Unique user identifier", examples=[1, 42])
    username: str = Field(..., description="Unique username")
    email: str | None = Field(default=None, description="User's email address")
    profile_picture: str | None = Field(
        default=None,
        description="URL path of the profile picture",
    )
    favorite_genres: str | None = Field(default=None, description="Favorite genres")
    favorite_authors: str | None = Field(default=None, description="Favorite authors")
    favorite_books: str | None = Field(default=None, description="Favorite books")
    is_active: bool = Field(..., description="Whether the account is active")
    is_admin: bool = Field(..., description="Whether the user has admin privileges")
    created_at: datetime = Field(..., description="When the user registered")

    model_config = ConfigDict(
        from_attributes=True,
        json_schema_extra={
            "example": {
                "id": 1,
                "username": "johndoe",
                "email": "john@example.com",
                "profile_picture": "/uploads/profile_1.png",
                "favorite_genres": "Fantasy, Mystery",
                "favorite_authors": "Ursula K. Le Guin",
                "favorite_books": "A Wizard of Earthsea",
                "is_active": True,
                "is_admin": False,
                "created_at": "2024-01-15T10:30:00Z",
            }
        },
    )


class UserPublicResponse(BaseModel):
    """User entry in the admin user listing."""

    id: int = Field(..., description="Unique user identifier")
    username: str = Field(..., description="Unique username")
    email: str | None = Field(default=None, description="User's email address")
    is_admin: bool = Field(..., description="Whether the user has admin privileges")
    created_at: datetime = Field(..., description="When the user joined")

    model_config = ConfigDict(from_attributes=True)


class UserListResponse(BaseModel):
    """Paginated list of users."""

    items: list[UserPublicResponse]
    total: int = Field(..., ge=0)
    page: int = Field(..., ge=1)
    per_page: int = Field(..., ge=1, le=100)
    pages: int = Field(..., ge=0)


class Token(BaseModel):
    """
    Login / refresh response.

    The refresh token is also set as an HttpOnly cookie.
    """

    access_token: str = Field(..., description="JWT access token")
    refresh_token: str = Field(..., description="JWT refresh token")
    token_type: str = Field(default="bearer", description="Token type")


class RefreshRequest(BaseModel):
    """Refresh token sent in the body when the cookie is not available."""

    refresh_token: str | None = Field(default=None, description="JWT refresh token")


class MessageResponse(BaseModel):
    """Simple acknowledgement."""

    message: str
