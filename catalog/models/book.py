"""
Book Model

The central model of the catalog.

Denormalized vote counters
==========================
`likes` and `dislikes` are aggregate copies of the vote ledger (see
models/vote.py). They are stored on the book row so listings never need a
COUNT over votes, and they are only ever changed by the vote service with
SQL-side arithmetic (`likes = likes + 1`). No other write path touches them.

Genres are stored as a comma-separated string, exposed as a list through
the `genre_list` property.
"""

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import CheckConstraint, DateTime, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from catalog.database import Base

if TYPE_CHECKING:
    from catalog.models.vote import Vote


class Book(Base):
    """
    Book model representing books in the library.

    Table: books

    Fields:
    - title / author: Required, indexed for searching
    - description / summary: Free text
    - genres: Comma-separated genre names
    - cover / file: Stored file names under the upload directory
    - likes / dislikes: Vote aggregates (non-negative)

    Example:
        book = Book(
            title="1984",
            author="George Orwell",
            description="A dystopian novel...",
            genres="Fiction,Dystopian",
        )
    """

    __tablename__ = "books"

    id: Mapped[int] = mapped_column(primary_key=True)

    # -------------------------------------------------------------------------
    # Catalog Fields
    # -------------------------------------------------------------------------
    title: Mapped[str] = mapped_column(
        String(500),
        index=True,
        nullable=False,
        comment="Book title"
    )

    author: Mapped[str] = mapped_column(
        String(255),
        index=True,
        nullable=False,
        comment="Author name(s) as displayed"
    )

    description: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
        comment="Book description"
    )

    summary: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
        comment="Short summary shown on the details page"
    )

    genres: Mapped[str] = mapped_column(
        Text,
        default="",
        nullable=False,
        comment="Comma-separated genre names"
    )

    # -------------------------------------------------------------------------
    # Files
    # -------------------------------------------------------------------------
    cover: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
        comment="Stored file name of the cover image"
    )

    file: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
        comment="Stored file name of the downloadable book"
    )

    # -------------------------------------------------------------------------
    # Vote Aggregates
    # -------------------------------------------------------------------------
    likes: Mapped[int] = mapped_column(
        Integer,
        default=0,
        server_default="0",
        nullable=False,
        comment="Number of like votes in the ledger"
    )

    dislikes: Mapped[int] = mapped_column(
        Integer,
        default=0,
        server_default="0",
        nullable=False,
        comment="Number of dislike votes in the ledger"
    )

    # -------------------------------------------------------------------------
    # Timestamps
    # -------------------------------------------------------------------------
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    # -------------------------------------------------------------------------
    # Relationships
    # -------------------------------------------------------------------------
    votes: Mapped[list["Vote"]] = relationship(
        "Vote",
        back_populates="book",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (
        CheckConstraint("likes >= 0", name="ck_book_likes_non_negative"),
        CheckConstraint("dislikes >= 0", name="ck_book_dislikes_non_negative"),
    )

    @property
    def genre_list(self) -> list[str]:
        """Genres as a list, empty entries dropped."""
        return [g.strip() for g in (self.genres or "").split(",") if g.strip()]

    @genre_list.setter
    def genre_list(self, value: list[str]) -> None:
        self.genres = ",".join(g.strip() for g in value if g.strip())

    def __repr__(self) -> str:
        return f"Book(id={self.id}, title='{self.title}', likes={self.likes}, dislikes={self.dislikes})"
