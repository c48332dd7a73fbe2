"""
Vote Model

The vote ledger: one row per (user, book) holding the user's current vote.

Business Rules:
- At most one vote per user per book (unique constraint, the only guard
  against duplicate votes under concurrency)
- action is either "like" or "dislike"; no row means "no vote"
- A row is created on the first vote and updated in place on a switch.
  Votes are never retracted.
"""

from datetime import UTC, datetime
from enum import Enum

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from catalog.database import Base


class VoteAction(str, Enum):
    """The two votes a user can hold on a book."""
    LIKE = "like"
    DISLIKE = "dislike"


class Vote(Base):
    """
    Ledger entry for a user's vote on a book.

    Attributes:
        id: Primary key
        user_id: Foreign key to users table
        book_id: Foreign key to books table
        action: "like" or "dislike"
        created_at: When the first vote was cast
        updated_at: When the vote was last switched
    """

    __tablename__ = "votes"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)

    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    book_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("books.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    action: Mapped[str] = mapped_column(
        String(10),
        nullable=False,
        comment="like or dislike",
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
        nullable=False,
    )

    user = relationship("User", back_populates="votes")
    book = relationship("Book", back_populates="votes")

    __table_args__ = (
        UniqueConstraint("user_id", "book_id", name="uq_vote_user_book"),
        CheckConstraint("action IN ('like', 'dislike')", name="ck_vote_action"),
    )

    def __repr__(self) -> str:
        return f"<Vote(user_id={self.user_id}, book_id={self.book_id}, action={self.action})>"
