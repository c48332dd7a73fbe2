"""
SQLAlchemy Models Package

Model Relationships:
- User -> Vote: One-to-Many (a user holds at most one vote per book)
- Book -> Vote: One-to-Many (the ledger behind likes/dislikes)

Import all models here to:
1. Make them available as: from catalog.models import Book, User, Vote
2. Ensure Alembic discovers them for migrations
"""

from catalog.models.user import User
from catalog.models.book import Book
from catalog.models.vote import Vote, VoteAction
from catalog.models.subscriber import NewsletterSubscriber

__all__ = [
    "User",
    "Book",
    "Vote",
    "VoteAction",
    "NewsletterSubscriber",
]
