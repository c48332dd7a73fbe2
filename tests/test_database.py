"""
Tests for the StorageContext unit of work.
"""

import pytest
from sqlalchemy import func, select, text
from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError
from sqlalchemy.orm import Session

from catalog.database import StorageContext, is_conflict_error
from catalog.models import Book, User, Vote, VoteAction
from catalog.services.exceptions import (
    BookNotFoundError,
    StorageUnavailableError,
    TransactionConflictError,
)


def count_books(storage: StorageContext) -> int:
    return storage.run(lambda s: s.execute(select(func.count(Book.id))).scalar(), readonly=True)


class TestRun:
    """Tests for StorageContext.run()"""

    def test_commits_on_success(self, storage: StorageContext):
        storage.run(lambda s: s.add(Book(title="Dune", author="Frank Herbert")))

        assert count_books(storage) == 1

    def test_returns_function_result(self, storage: StorageContext):
        assert storage.run(lambda s: 42) == 42

    def test_rolls_back_on_service_error(self, storage: StorageContext):
        def work(session: Session):
            session.add(Book(title="Dune", author="Frank Herbert"))
            session.flush()
            raise BookNotFoundError(1)

        with pytest.raises(BookNotFoundError):
            storage.run(work)

        assert count_books(storage) == 0

    def test_integrity_error_becomes_conflict(self, storage: StorageContext, sample_user: User):
        def duplicate_username(session: Session):
            session.add(User(username=sample_user.username, hashed_password="x"))
            session.flush()

        with pytest.raises(TransactionConflictError):
            storage.run(duplicate_username)

    def test_conflict_retried_then_succeeds(self, storage: StorageContext):
        attempts = []

        def work(session: Session):
            attempts.append(1)
            if len(attempts) == 1:
                raise IntegrityError("INSERT", {}, Exception("UNIQUE constraint failed"))
            session.add(Book(title="Dune", author="Frank Herbert"))

        storage.run(work, retries=1)

        assert len(attempts) == 2
        assert count_books(storage) == 1

    def test_conflict_retries_exhausted(self, storage: StorageContext):
        attempts = []

        def work(session: Session):
            attempts.append(1)
            raise OperationalError("UPDATE", {}, Exception("deadlock detected"))

        with pytest.raises(TransactionConflictError):
            storage.run(work, retries=2)

        assert len(attempts) == 3

    def test_other_database_errors_are_unavailable(self, storage: StorageContext):
        attempts = []

        def work(session: Session):
            attempts.append(1)
            session.execute(text("SELECT * FROM no_such_table"))

        with pytest.raises(StorageUnavailableError) as exc_info:
            storage.run(work, retries=3)

        assert len(attempts) == 1
        assert isinstance(exc_info.value.__cause__, SQLAlchemyError)

    def test_readonly_run(self, storage: StorageContext, sample_book: Book):
        title = storage.run(lambda s: s.get(Book, sample_book.id).title, readonly=True)

        assert title == "1984"


class TestStorageHelpers:
    def test_ping(self, storage: StorageContext):
        assert storage.ping() is True

    def test_is_sqlite(self, storage: StorageContext):
        assert storage.is_sqlite is True

    @pytest.mark.parametrize(
        "message,expected",
        [
            ("database is locked", True),
            ("ERROR: deadlock detected", True),
            ("could not serialize access due to concurrent update", True),
            ("disk I/O error", False),
            ("no such table: books", False),
        ],
    )
    def test_is_conflict_error(self, message, expected):
        exc = OperationalError("stmt", {}, Exception(message))
        assert is_conflict_error(exc) is expected

    def test_foreign_keys_cascade_votes(
        self, storage: StorageContext, db_session: Session, sample_book: Book, sample_user: User
    ):
        """Deleting a book removes its ledger rows (SQLite FK enforcement is on)."""
        db_session.add(Vote(user_id=sample_user.id, book_id=sample_book.id, action=VoteAction.LIKE.value))
        db_session.commit()

        db_session.delete(db_session.get(Book, sample_book.id))
        db_session.commit()

        assert db_session.execute(select(func.count(Vote.id))).scalar() == 0

