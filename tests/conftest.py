"""
pytest Fixtures for Library Catalog Tests

Shared fixtures used across all test files.

DATABASE:
=========
Every test gets its own SQLite database file under tmp_path, built through
the same create_storage() the application uses. A file (not :memory:) is
used so several threads can hold their own connections at once, which the
concurrent voting tests rely on.

The app's get_storage dependency is overridden to point at that storage.

AUTH:
=====
Tokens are minted directly with create_access_token() so tests do not go
through /auth/login unless they are testing it.
"""

# =============================================================================
# TEST ENVIRONMENT SETUP
# =============================================================================
# IMPORTANT: Set environment variables BEFORE importing the app
import os

os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["SECRET_KEY"] = "test-secret-key-for-unit-tests-at-least-32-characters-long"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SEED_ADMIN_ON_STARTUP"] = "false"
os.environ["CREATE_TABLES_ON_STARTUP"] = "false"
os.environ.pop("HUGGINGFACE_API_KEY", None)

from collections.abc import Generator
from pathlib import Path
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from catalog.config import get_settings
from catalog.database import StorageContext, create_storage
from catalog.dependencies import get_storage
from catalog.main import app
from catalog.models import Book, User
from catalog.services.security import create_access_token, hash_password
from catalog.services.votes import VoteTotals, get_vote_totals

settings = get_settings()


# =============================================================================
# DATABASE FIXTURES
# =============================================================================


@pytest.fixture
def storage(tmp_path: Path) -> Generator[StorageContext, None, None]:
    """
    A StorageContext over a fresh SQLite file.

    Scope: function, so every test starts from empty tables.
    """
    test_settings = settings.model_copy(
        update={
            "database_url": f"sqlite:///{tmp_path / 'catalog-test.db'}",
            "debug": False,
        }
    )
    test_storage = create_storage(test_settings)
    test_storage.create_all()

    yield test_storage

    test_storage.dispose()


@pytest.fixture
def db_session(storage: StorageContext) -> Generator[Session, None, None]:
    """Session used by fixtures and assertions to read and write test data."""
    session = storage.session()
    yield session
    session.close()


@pytest.fixture(autouse=True)
def upload_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point uploads at a per-test directory."""
    directory = tmp_path / "uploads"
    monkeypatch.setattr(settings, "upload_dir", str(directory))
    return directory


@pytest.fixture
def client(storage: StorageContext) -> Generator[TestClient, None, None]:
    """
    Test client whose requests use the per-test storage.

    We override the get_storage dependency, so every session and unit of
    work created during a request goes to the test database.
    """
    app.dependency_overrides[get_storage] = lambda: storage

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


def read_totals(storage: StorageContext, book_id: int) -> VoteTotals:
    """Read a book's committed counters in a fresh transaction."""
    return storage.run(lambda s: get_vote_totals(s, book_id), readonly=True)


def auth_headers(user: User) -> dict[str, str]:
    """Bearer header for a user."""
    token = create_access_token({"sub": str(user.id)})
    return {"Authorization": f"Bearer {token}"}


# =============================================================================
# USER FIXTURES
# =============================================================================


def _make_user(db: Session, username: str, password: str, **fields) -> User:
    user = User(
        username=username,
        hashed_password=hash_password(password),
        is_active=True,
        **fields,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def sample_user(db_session: Session) -> User:
    """A regular reader."""
    return _make_user(db_session, "reader", "ReaderPass1", email="reader@example.com")


@pytest.fixture
def second_user(db_session: Session) -> User:
    """A second regular reader."""
    return _make_user(db_session, "second", "SecondPass1", email="second@example.com")


@pytest.fixture
def admin_user(db_session: Session) -> User:
    """An admin who is not the seeded admin."""
    return _make_user(
        db_session, "librarian", "LibrarianPass1",
        email="librarian@example.com", is_admin=True,
    )


@pytest.fixture
def seed_admin_user(db_session: Session) -> User:
    """The seeded admin (username from settings)."""
    return _make_user(
        db_session, settings.admin_username, "AdminPassword1",
        email=settings.admin_email, is_admin=True,
    )


@pytest.fixture
def user_headers(sample_user: User) -> dict[str, str]:
    return auth_headers(sample_user)


@pytest.fixture
def admin_headers(admin_user: User) -> dict[str, str]:
    return auth_headers(admin_user)


# =============================================================================
# BOOK FIXTURES
# =============================================================================


@pytest.fixture
def sample_book(db_session: Session) -> Book:
    """A book with zero votes."""
    book = Book(
        title="1984",
        author="George Orwell",
        description="A dystopian novel set in a totalitarian society.",
        summary="Winston Smith rebels against the Party.",
    )
    book.genre_list = ["Fiction", "Dystopian"]
    db_session.add(book)
    db_session.commit()
    db_session.refresh(book)
    return book


@pytest.fixture
def multiple_books(db_session: Session) -> list[Book]:
    """Fifteen books (more than the default page size)."""
    books = []
    for i in range(15):
        book = Book(
            title=f"Test Book {i + 1}",
            author="Jane Austen" if i % 2 == 0 else "Isaac Asimov",
            description=f"Description for book {i + 1}",
        )
        book.genre_list = ["Romance"] if i % 3 == 0 else ["Science Fiction"]
        books.append(book)
        db_session.add(book)

    db_session.commit()
    for book in books:
        db_session.refresh(book)

    return books


@pytest.fixture
def many_users(db_session: Session) -> list[User]:
    """Eight voters. Hashing is skipped; these accounts never log in."""
    users = [
        User(username=f"voter{i}", hashed_password="x", is_active=True)
        for i in range(8)
    ]
    db_session.add_all(users)
    db_session.commit()
    for user in users:
        db_session.refresh(user)
    return users


# =============================================================================
# HTTP CLIENT MOCKS
# =============================================================================


def create_mock_response(status_code: int, json_data=None, text: str = ""):
    """Create a mock httpx response."""
    response = MagicMock()
    response.status_code = status_code
    response.json.return_value = json_data
    response.text = text
    return response


def create_mock_async_client(post_response=None, get_response=None, error: Exception | None = None):
    """
    Create a mocked httpx.AsyncClient for async context manager usage.

    Args:
        post_response: Response returned by client.post()
        get_response: Response returned by client.get()
        error: Raised by post() and get() instead of returning a response
    """
    mock_client = MagicMock()

    async def async_enter():
        return mock_client

    async def async_exit(*args):
        pass

    mock_client.__aenter__ = MagicMock(side_effect=async_enter)
    mock_client.__aexit__ = MagicMock(side_effect=async_exit)

    async def mock_post(*args, **kwargs):
        if error is not None:
            raise error
        return post_response

    async def mock_get(*args, **kwargs):
        if error is not None:
            raise error
        return get_response

    mock_client.post = MagicMock(side_effect=mock_post)
    mock_client.get = MagicMock(side_effect=mock_get)

    return mock_client
