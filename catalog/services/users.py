"""
Users Service

Account operations that span more than one table and so run as a single
unit of work:
- register_user: creates a regular account, rejecting taken names
- delete_user: removes the user's votes (rebalancing book counters) and
  the account itself
- seed_admin: creates or repairs the seeded admin account
- set_admin: grants or revokes admin rights
"""

import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from catalog.config import Settings
from catalog.database import StorageContext
from catalog.models import User
from catalog.services.exceptions import AccountConflictError
from catalog.services.security import hash_password
from catalog.services.votes import remove_user_votes

logger = logging.getLogger(__name__)


def find_user_by_login(session: Session, login: str) -> User | None:
    """Look up a user by username or email (case-insensitive)."""
    login = login.strip().lower()
    stmt = select(User).where((User.username == login) | (User.email == login))
    return session.execute(stmt).scalars().first()


def email_taken(session: Session, email: str, exclude_user_id: int | None = None) -> bool:
    """Whether another account already uses this email."""
    stmt = select(User.id).where(User.email == email)
    if exclude_user_id is not None:
        stmt = stmt.where(User.id != exclude_user_id)
    return session.execute(stmt).first() is not None


def register_user(
    session: Session,
    username: str,
    hashed_password: str,
    email: str | None = None,
) -> User:
    """
    Create a regular account.

    Raises:
        AccountConflictError: Username or email already taken
    """
    taken = session.execute(
        select(User.id).where(User.username == username)
    ).scalar_one_or_none()
    if taken is not None:
        raise AccountConflictError("Username already taken")

    if email and email_taken(session, email):
        raise AccountConflictError("Email already registered")

    user = User(
        username=username,
        email=email,
        hashed_password=hashed_password,
        is_active=True,
        is_admin=False,
    )
    session.add(user)
    session.flush()
    # Load server-side defaults before the session closes
    session.refresh(user)
    return user


def delete_user(storage: StorageContext, user_id: int) -> bool:
    """
    Delete a user and take their votes back out of the book counters.

    Votes and the account go in one transaction, so a concurrent reader
    never sees counters that disagree with the ledger.

    Returns:
        True if the user existed and was deleted
    """

    def _delete(session: Session) -> bool:
        user = session.get(User, user_id)
        if user is None:
            return False
        removed = remove_user_votes(session, user_id)
        session.delete(user)
        logger.info(f"Deleted user {user_id} and {removed} vote(s)")
        return True

    return storage.run(_delete)


def seed_admin(storage: StorageContext, settings: Settings) -> User:
    """
    Ensure the seeded admin account exists and has admin rights.

    An existing account keeps its password; only the admin flag is restored.
    """

    def _seed(session: Session) -> User:
        username = settings.admin_username.lower()
        user = session.execute(
            select(User).where(User.username == username)
        ).scalar_one_or_none()

        if user is None:
            user = User(
                username=username,
                email=settings.admin_email.lower(),
                hashed_password=hash_password(settings.admin_password),
                is_active=True,
                is_admin=True,
            )
            session.add(user)
            session.flush()
            session.refresh(user)
            logger.info(f"Seeded admin account created: {username}")
        elif not user.is_admin:
            user.is_admin = True
            logger.info(f"Seeded admin rights restored: {username}")

        return user

    return storage.run(_seed)


def set_admin(storage: StorageContext, user_id: int, is_admin: bool) -> User | None:
    """
    Grant or revoke admin rights.

    Returns:
        The updated user, or None if the user does not exist
    """

    def _set(session: Session) -> User | None:
        user = session.get(User, user_id)
        if user is None:
            return None
        user.is_admin = is_admin
        return user

    user = storage.run(_set)
    if user is not None:
        action = "granted" if is_admin else "revoked"
        logger.info(f"Admin rights {action} for user {user_id}")
    return user
