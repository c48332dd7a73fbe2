"""
Book Pydantic Schemas

Handles:
- Genres given either as a list or as a comma-separated string
- Vote counters in responses (read-only: no input schema accepts them)
- Pagination for list responses
"""

import json
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator


def parse_genres(value: str | list[str] | None) -> list[str]:
    """
    Normalize genres input.

    Accepts a list, a JSON-encoded list ('["Fantasy", "Drama"]') or a
    comma-separated string ("Fantasy, Drama"). Blank entries are dropped.
    """
    if value is None:
        return []
    if isinstance(value, str):
        text = value.strip()
        if text.startswith("["):
            try:
                loaded = json.loads(text)
            except json.JSONDecodeError:
                loaded = None
            if isinstance(loaded, list):
                value = [str(item) for item in loaded]
            else:
                value = text.split(",")
        else:
            value = text.split(",")
    return [g.strip() for g in value if g and g.strip()]


class BookBase(BaseModel):
    """Base schema with shared book fields."""

    title: str = Field(
        ...,
        min_length=1,
        max_length=500,
        description="Book title",
        examples=["1984", "Pride and Prejudice"],
    )

    author: str = Field(
        ...,
        min_length=1,
        max_length=255,
        description="Author name(s)",
        examples=["George Orwell"],
    )

    description: str | None = Field(
        default=None,
        max_length=5000,
        description="Book description",
        examples=["A dystopian novel set in a totalitarian society..."],
    )

    summary: str | None = Field(
        default=None,
        max_length=5000,
        description="Short summary",
    )

    @field_validator("title", "author")
    @classmethod
    def must_not_be_blank(cls, v: str) -> str:
        """Validate and normalize title and author."""
        if not v.strip():
            raise ValueError("Value cannot be empty or whitespace")
        return v.strip()


class BookUpdate(BaseModel):
    """
    Schema for updating an existing book.

    All fields are optional. There are no vote counter fields; only
    voting changes those.
    """

    title: str | None = Field(default=None, min_length=1, max_length=500)
    author: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = Field(default=None, max_length=5000)
    summary: str | None = Field(default=None, max_length=5000)
    genres: list[str] | None = Field(
        default=None,
        description="Genres (replaces existing)",
        examples=[["Fiction", "Dystopian"]],
    )

    @field_validator("title", "author")
    @classmethod
    def must_not_be_blank(cls, v: str | None) -> str | None:
        if v is not None and not v.strip():
            raise ValueError("Value cannot be empty or whitespace")
        return v.strip() if v else v

    @field_validator("genres", mode="before")
    @classmethod
    def normalize_genres(cls, v):
        if v is None:
            return v
        return parse_genres(v)


class BookResponse(BookBase):
    """
    Schema for book responses.

    Includes the stored file names and the vote counters.
    """

    id: int = Field(..., description="Unique identifier")
    genres: list[str] = Field(
        default=[],
        validation_alias="genre_list",
        description="List of genres",
    )
    cover: str | None = Field(default=None, description="Stored cover file name")
    file: str | None = Field(default=None, description="Stored book file name")
    likes: int = Field(default=0, ge=0, description="Number of likes")
    dislikes: int = Field(default=0, ge=0, description="Number of dislikes")
    created_at: datetime = Field(..., description="When the book was created")
    updated_at: datetime = Field(..., description="When the book was last updated")

    model_config = ConfigDict(
        from_attributes=True,
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "id": 1,
                "title": "1984",
                "author": "George Orwell",
                "description": "A dystopian novel about totalitarianism",
                "summary": "Winston Smith rebels against the Party.",
                "genres": ["Fiction", "Dystopian"],
                "cover": "1984_cover.jpg",
                "file": "1984.pdf",
                "likes": 12,
                "dislikes": 1,
                "created_at": "2024-01-15T10:30:00Z",
                "updated_at": "2024-01-15T10:30:00Z",
            }
        },
    )


class BookListResponse(BaseModel):
    """
    Schema for paginated book list responses.

    `is_admin` tells the client whether to render management controls.
    """

    items: list[BookResponse] = Field(..., description="List of books for this page")
    total: int = Field(..., ge=0, description="Total number of books")
    page: int = Field(..., ge=1, description="Current page number")
    per_page: int = Field(..., ge=1, le=100, description="Number of items per page")
    pages: int = Field(..., ge=0, description="Total number of pages")
    is_admin: bool = Field(default=False, description="Whether the caller is an admin")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "items": [],
                "total": 100,
                "page": 1,
                "per_page": 10,
                "pages": 10,
                "is_admin": False,
            }
        },
    )
