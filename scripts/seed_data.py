#!/usr/bin/env python3
"""
Database Seed Script

Populates the database with sample books and the seeded admin account.

USAGE:
    # From the project root with the virtualenv active
    python scripts/seed_data.py

This script:
1. Connects to the database using catalog settings
2. Creates tables if they don't exist
3. Clears existing books (and with them their votes)
4. Creates sample books and the admin account
"""

import sys
from pathlib import Path

# Add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from sqlalchemy import delete
from sqlalchemy.orm import Session

from catalog.config import get_settings
from catalog.database import StorageContext, create_storage
from catalog.models import Book, Vote
from catalog.services.users import seed_admin

BOOKS_DATA = [
    {
        "title": "1984",
        "author": "George Orwell",
        "description": "A dystopian novel set in a totalitarian society under constant surveillance.",
        "summary": "Winston Smith quietly rebels against the Party.",
        "genres": ["Fiction", "Dystopian", "Classic"],
    },
    {
        "title": "Animal Farm",
        "author": "George Orwell",
        "description": "An allegorical novella reflecting events leading up to the Russian Revolution.",
        "genres": ["Classic", "Satire"],
    },
    {
        "title": "Pride and Prejudice",
        "author": "Jane Austen",
        "description": "A romantic novel following the emotional development of Elizabeth Bennet.",
        "genres": ["Romance", "Classic"],
    },
    {
        "title": "Murder on the Orient Express",
        "author": "Agatha Christie",
        "description": "Hercule Poirot investigates a murder on a train stuck in a snowdrift.",
        "genres": ["Mystery", "Classic"],
    },
    {
        "title": "Foundation",
        "author": "Isaac Asimov",
        "description": "The first novel in the Foundation series about the fall of the Galactic Empire.",
        "genres": ["Science Fiction"],
    },
    {
        "title": "The Hobbit",
        "author": "J.R.R. Tolkien",
        "description": "Bilbo Baggins embarks on a quest to reclaim the Lonely Mountain.",
        "genres": ["Fantasy", "Classic"],
    },
]


def clear_books(session: Session) -> None:
    """Delete all votes and books (counters go with the books)."""
    session.execute(delete(Vote))
    session.execute(delete(Book))


def create_books(session: Session) -> int:
    """Create the sample books. Counters start at zero."""
    for data in BOOKS_DATA:
        data = dict(data)
        genres = data.pop("genres")
        book = Book(**data)
        book.genre_list = genres
        session.add(book)
    return len(BOOKS_DATA)


def seed_database(storage: StorageContext, clear_existing: bool = True) -> int:
    """
    Seed books and the admin account.

    Args:
        storage: Target storage
        clear_existing: If True, removes existing books and votes first

    Returns:
        Number of books created
    """
    storage.create_all()

    def _seed(session: Session) -> int:
        if clear_existing:
            clear_books(session)
        return create_books(session)

    count = storage.run(_seed)
    seed_admin(storage, get_settings())
    return count


if __name__ == "__main__":
    settings = get_settings()
    storage = create_storage(settings)

    print("=" * 60)
    print("Starting database seed...")
    print("=" * 60)

    try:
        created = seed_database(storage)
    finally:
        storage.dispose()

    print(f"Created {created} books.")
    print(f"Admin account: {settings.admin_username}")
    print(f"API documentation at http://localhost:{settings.port}/docs")
