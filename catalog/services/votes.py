"""
Votes Service

Like/dislike reconciliation between the vote ledger and the book counters.

Components:
- Vote ledger: one `votes` row per (user, book) with the current action
- Counter store: denormalized `books.likes` / `books.dislikes`
- Reconciliation: `cast_vote()` updates both in one unit of work

Invariant: for every book, `likes` equals the number of ledger rows with
action "like" for that book, and the same for `dislikes`.

Counters are only ever changed with SQL arithmetic
(`UPDATE books SET likes = likes + :delta`), never read-modify-write in
Python, so concurrent voters on the same book cannot lose an update.

Vote state machine per (user, book):

    NoVote   --like-->    Liked
    NoVote   --dislike--> Disliked
    Liked    --dislike--> Disliked
    Disliked --like-->    Liked
    Liked    --like-->    DuplicateVoteError
    Disliked --dislike--> DuplicateVoteError
"""

import logging
from dataclasses import dataclass

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from catalog.config import get_settings
from catalog.database import StorageContext
from catalog.models import Book, Vote, VoteAction
from catalog.services.exceptions import BookNotFoundError, DuplicateVoteError

logger = logging.getLogger(__name__)
settings = get_settings()


@dataclass(frozen=True)
class VoteTotals:
    """Aggregate counters of one book."""

    likes: int
    dislikes: int


# (existing vote, intent) -> (likes delta, dislikes delta)
VOTE_DELTAS: dict[tuple[VoteAction | None, VoteAction], tuple[int, int]] = {
    (None, VoteAction.LIKE): (1, 0),
    (None, VoteAction.DISLIKE): (0, 1),
    (VoteAction.LIKE, VoteAction.DISLIKE): (-1, 1),
    (VoteAction.DISLIKE, VoteAction.LIKE): (1, -1),
}


# =============================================================================
# Vote Ledger
# =============================================================================


def _get_vote_row(
    session: Session,
    user_id: int,
    book_id: int,
    for_update: bool = False,
) -> Vote | None:
    stmt = select(Vote).where(Vote.user_id == user_id, Vote.book_id == book_id)
    if for_update:
        # Row lock on PostgreSQL; SQLite already holds the database write lock
        stmt = stmt.with_for_update()
    return session.execute(stmt).scalar_one_or_none()


def get_vote(
    session: Session,
    user_id: int,
    book_id: int,
    for_update: bool = False,
) -> VoteAction | None:
    """
    Read a user's current vote on a book.

    Args:
        session: Database session
        user_id: Voting user
        book_id: Target book
        for_update: Lock the ledger row until the transaction ends

    Returns:
        The current VoteAction, or None if the user has not voted
    """
    vote = _get_vote_row(session, user_id, book_id, for_update=for_update)
    return VoteAction(vote.action) if vote else None


def upsert_vote(
    session: Session,
    user_id: int,
    book_id: int,
    action: VoteAction,
) -> Vote:
    """
    Write the user's vote, replacing any previous action.

    The first vote is a plain INSERT: if a concurrent transaction inserted
    the same (user, book) pair first, the unique constraint raises an
    IntegrityError at flush and the whole transaction is rolled back.

    Args:
        session: Database session (inside a transaction)
        user_id: Voting user
        book_id: Target book
        action: New vote

    Returns:
        The ledger row
    """
    vote = _get_vote_row(session, user_id, book_id, for_update=True)
    if vote is None:
        vote = Vote(user_id=user_id, book_id=book_id, action=action.value)
        session.add(vote)
    else:
        vote.action = action.value
    session.flush()
    return vote


# =============================================================================
# Counter Store
# =============================================================================


def _increment(session: Session, book_id: int, column, delta: int) -> None:
    if delta == 0:
        return
    stmt = (
        update(Book)
        .where(Book.id == book_id)
        .values({column: column + delta})
        .execution_options(synchronize_session=False)
    )
    result = session.execute(stmt)
    if result.rowcount == 0:
        raise BookNotFoundError(book_id)


def increment_likes(session: Session, book_id: int, delta: int) -> None:
    """Atomically add delta (may be negative) to a book's like counter."""
    _increment(session, book_id, Book.likes, delta)


def increment_dislikes(session: Session, book_id: int, delta: int) -> None:
    """Atomically add delta (may be negative) to a book's dislike counter."""
    _increment(session, book_id, Book.dislikes, delta)


def get_vote_totals(session: Session, book_id: int) -> VoteTotals:
    """
    Read a book's stored counters.

    Raises:
        BookNotFoundError: If the book does not exist
    """
    row = session.execute(
        select(Book.likes, Book.dislikes).where(Book.id == book_id)
    ).one_or_none()
    if row is None:
        raise BookNotFoundError(book_id)
    return VoteTotals(likes=row.likes, dislikes=row.dislikes)


def count_ledger_votes(session: Session, book_id: int) -> VoteTotals:
    """Count a book's votes straight from the ledger (ignores the counters)."""
    rows = session.execute(
        select(Vote.action, func.count(Vote.id))
        .where(Vote.book_id == book_id)
        .group_by(Vote.action)
    ).all()
    counts = {action: count for action, count in rows}
    return VoteTotals(
        likes=counts.get(VoteAction.LIKE.value, 0),
        dislikes=counts.get(VoteAction.DISLIKE.value, 0),
    )


# =============================================================================
# Reconciliation
# =============================================================================


def vote_deltas(
    existing: VoteAction | None,
    intent: VoteAction,
) -> tuple[int, int]:
    """
    Counter changes for moving from `existing` to `intent`.

    Raises:
        DuplicateVoteError: If the user already holds the intended vote
    """
    if existing == intent:
        raise DuplicateVoteError(intent.value)
    return VOTE_DELTAS[(existing, intent)]


def reconcile_vote(
    session: Session,
    user_id: int,
    book_id: int,
    intent: VoteAction,
) -> None:
    """
    Apply one vote inside an open transaction.

    Reads the current ledger entry (locked), computes the counter deltas and
    writes the ledger row and both counters. Must run inside
    StorageContext.run() so all statements commit or roll back together.
    """
    book_exists = session.execute(
        select(Book.id).where(Book.id == book_id)
    ).scalar_one_or_none()
    if book_exists is None:
        raise BookNotFoundError(book_id)

    existing = get_vote(session, user_id, book_id, for_update=True)
    likes_delta, dislikes_delta = vote_deltas(existing, intent)

    upsert_vote(session, user_id, book_id, intent)
    increment_likes(session, book_id, likes_delta)
    increment_dislikes(session, book_id, dislikes_delta)


def cast_vote(
    storage: StorageContext,
    user_id: int,
    book_id: int,
    intent: VoteAction,
    retries: int | None = None,
) -> VoteTotals:
    """
    Cast or switch a user's vote on a book and return the new totals.

    Algorithm:
    1. Read the user's existing vote for the book
    2. Reject a repeat of the same vote (DuplicateVoteError)
    3. Compute counter deltas from the (existing, intent) pair
    4. Write the ledger row and both counters in one transaction
    5. After commit, re-read the book's counters

    A uniqueness or lock conflict (two requests for the same user and book
    in flight at once) rolls the transaction back and re-runs it up to
    `retries` times; the re-run sees the winner's ledger row.

    Args:
        storage: Storage context providing the unit of work
        user_id: Authenticated user casting the vote
        book_id: Target book
        intent: VoteAction.LIKE or VoteAction.DISLIKE
        retries: Conflict retries (defaults to settings.vote_conflict_retries)

    Returns:
        The book's counters after the vote

    Raises:
        BookNotFoundError: Unknown book
        DuplicateVoteError: The user already holds this vote
        TransactionConflictError: Conflict persisted after retrying
        StorageUnavailableError: Database failure
    """
    if retries is None:
        retries = settings.vote_conflict_retries

    try:
        storage.run(
            lambda session: reconcile_vote(session, user_id, book_id, intent),
            retries=retries,
        )
    except DuplicateVoteError:
        logger.info(f"Duplicate {intent.value} rejected: user={user_id} book={book_id}")
        raise

    totals = storage.run(
        lambda session: get_vote_totals(session, book_id),
        readonly=True,
    )
    logger.info(
        f"Vote committed: user={user_id} book={book_id} action={intent.value} "
        f"likes={totals.likes} dislikes={totals.dislikes}"
    )
    return totals


# =============================================================================
# Ledger Maintenance
# =============================================================================


def remove_user_votes(session: Session, user_id: int) -> int:
    """
    Delete all of a user's votes and take them back out of the counters.

    Used when an account is deleted so the ledger cascade does not leave the
    counters too high. Must run inside StorageContext.run().

    Returns:
        Number of votes removed
    """
    votes = session.execute(
        select(Vote).where(Vote.user_id == user_id).with_for_update()
    ).scalars().all()

    for vote in votes:
        if vote.action == VoteAction.LIKE.value:
            increment_likes(session, vote.book_id, -1)
        else:
            increment_dislikes(session, vote.book_id, -1)
        session.delete(vote)

    session.flush()
    return len(votes)


def recount_votes(session: Session) -> int:
    """
    Recompute every book's counters from the ledger.

    Repair tool for data imported outside the vote service. Must run inside
    StorageContext.run().

    Returns:
        Number of books updated
    """
    likes_count = (
        select(func.count(Vote.id))
        .where(Vote.book_id == Book.id, Vote.action == VoteAction.LIKE.value)
        .scalar_subquery()
    )
    dislikes_count = (
        select(func.count(Vote.id))
        .where(Vote.book_id == Book.id, Vote.action == VoteAction.DISLIKE.value)
        .scalar_subquery()
    )
    result = session.execute(
        update(Book)
        .values(likes=likes_count, dislikes=dislikes_count)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount
