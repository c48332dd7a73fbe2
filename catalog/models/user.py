"""
User Model

Represents a registered reader or administrator.

SQLAlchemy 2.0 Features Used:
- mapped_column(): New way to define columns with full type support
- Mapped[]: Type hint wrapper for SQLAlchemy columns
- relationship(): Define relationships between models
"""

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, DateTime, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from catalog.database import Base

if TYPE_CHECKING:
    from catalog.models.vote import Vote


class User(Base):
    """
    User model representing registered users in the system.

    Table: users

    Roles:
    - Regular users browse, vote, download and edit their own profile
    - Admins (is_admin) manage books and users
    - The seeded admin (settings.admin_username) is the only account allowed
      to grant or revoke admin rights

    Relationships:
    - votes: One-to-Many relationship with Vote (the user's ledger entries)

    Example:
        user = User(
            username="reader",
            email="reader@example.com",
            hashed_password=hash_password("secret123"),
        )
    """

    __tablename__ = "users"

    # -------------------------------------------------------------------------
    # Primary Key
    # -------------------------------------------------------------------------
    id: Mapped[int] = mapped_column(primary_key=True)

    # -------------------------------------------------------------------------
    # Authentication Fields
    # -------------------------------------------------------------------------
    username: Mapped[str] = mapped_column(
        String(50),
        unique=True,
        index=True,
        nullable=False,
        comment="Unique login name"
    )

    # Optional: the original sign-up form only asks for username/password
    email: Mapped[str | None] = mapped_column(
        String(255),
        unique=True,
        index=True,
        nullable=True,
        comment="User's email address (can also be used to log in)"
    )

    hashed_password: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Bcrypt hashed password"
    )

    # -------------------------------------------------------------------------
    # Profile Fields
    # -------------------------------------------------------------------------
    profile_picture: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
        comment="URL path of the uploaded profile picture"
    )

    favorite_genres: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
        comment="Free-text list of favorite genres"
    )

    favorite_authors: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
        comment="Free-text list of favorite authors"
    )

    favorite_books: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
        comment="Free-text list of favorite books"
    )

    # -------------------------------------------------------------------------
    # Account Status
    # -------------------------------------------------------------------------
    is_active: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        nullable=False,
        comment="Whether the account is active"
    )

    is_admin: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
        comment="Whether user has admin privileges"
    )

    # -------------------------------------------------------------------------
    # Timestamps
    # -------------------------------------------------------------------------
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
        comment="When the user registered"
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
        comment="When the user profile was last updated"
    )

    last_login_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        comment="When the user last logged in"
    )

    # -------------------------------------------------------------------------
    # Relationships
    # -------------------------------------------------------------------------
    # passive_deletes: the database cascade removes ledger rows; counters are
    # rebalanced by services.users.delete_user before the row goes away
    votes: Mapped[list["Vote"]] = relationship(
        "Vote",
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        return f"User(id={self.id}, username='{self.username}', is_admin={self.is_admin})"
