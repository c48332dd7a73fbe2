"""
Newsletter Subscriber Model

Email addresses captured by the newsletter form. Delivery is handled
outside this service.
"""

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column

from catalog.database import Base


class NewsletterSubscriber(Base):
    """One subscribed address. Table: newsletter_subscribers"""

    __tablename__ = "newsletter_subscribers"

    id: Mapped[int] = mapped_column(primary_key=True)

    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        nullable=False,
        comment="Subscribed email address (lowercased)"
    )

    # The account that submitted the address; kept if the account is deleted
    user_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"NewsletterSubscriber(id={self.id}, email='{self.email}')"
