"""
Votes Router

Like/dislike endpoints for books.

Endpoints:
- POST /books/{book_id}/like - Like a book (auth required)
- POST /books/{book_id}/dislike - Dislike a book (auth required)
- GET /books/{book_id}/votes - Counters plus the caller's own vote

Error responses of the vote endpoints are plain text (see the handlers in
catalog.main):
- 400 already voted the same way
- 404 unknown book
- 500 conflict after retry (with Retry-After) or storage failure
"""

import logging

from fastapi import APIRouter, Request, status

from catalog.config import get_settings
from catalog.dependencies import ActiveUser, OptionalUser, Storage
from catalog.models import VoteAction
from catalog.schemas.vote import BookVoteSummary, VoteTotalsResponse
from catalog.services.rate_limiter import limiter
from catalog.services.votes import cast_vote, get_vote, get_vote_totals

logger = logging.getLogger(__name__)
settings = get_settings()

router = APIRouter(
    prefix="/books",
    tags=["Votes"],
    responses={
        400: {"description": "Vote already cast", "content": {"text/plain": {}}},
        401: {"description": "Not authenticated"},
        404: {"description": "Book not found"},
        500: {"description": "Conflict or storage failure", "content": {"text/plain": {}}},
    },
)


@router.post(
    "/{book_id}/like",
    response_model=VoteTotalsResponse,
    status_code=status.HTTP_200_OK,
    summary="Like a book",
    description="""
    Record a like from the authenticated user.

    - First vote: likes +1
    - Switching from dislike: likes +1, dislikes -1
    - Liking again: 400, counters unchanged
    """,
)
@limiter.limit(settings.rate_limit_write)
def like_book(
    request: Request,
    book_id: int,
    storage: Storage,
    current_user: ActiveUser,
) -> VoteTotalsResponse:
    totals = cast_vote(storage, current_user.id, book_id, VoteAction.LIKE)
    return VoteTotalsResponse.model_validate(totals)


@router.post(
    "/{book_id}/dislike",
    response_model=VoteTotalsResponse,
    status_code=status.HTTP_200_OK,
    summary="Dislike a book",
    description="""
    Record a dislike from the authenticated user.

    - First vote: dislikes +1
    - Switching from like: likes -1, dislikes +1
    - Disliking again: 400, counters unchanged
    """,
)
@limiter.limit(settings.rate_limit_write)
def dislike_book(
    request: Request,
    book_id: int,
    storage: Storage,
    current_user: ActiveUser,
) -> VoteTotalsResponse:
    totals = cast_vote(storage, current_user.id, book_id, VoteAction.DISLIKE)
    return VoteTotalsResponse.model_validate(totals)


@router.get(
    "/{book_id}/votes",
    response_model=BookVoteSummary,
    summary="Get a book's votes",
    description="Counters of a book, plus `my_vote` when a valid token is sent.",
)
def get_book_votes(
    book_id: int,
    storage: Storage,
    current_user: OptionalUser,
) -> BookVoteSummary:
    def _read(session):
        totals = get_vote_totals(session, book_id)
        my_vote = get_vote(session, current_user.id, book_id) if current_user else None
        return totals, my_vote

    totals, my_vote = storage.run(_read, readonly=True)
    return BookVoteSummary(
        book_id=book_id,
        likes=totals.likes,
        dislikes=totals.dislikes,
        my_vote=my_vote,
    )
