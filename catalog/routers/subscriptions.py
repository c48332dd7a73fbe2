"""
Newsletter Router

Endpoints:
- POST /subscribe - Subscribe an email address (auth required)
"""

import logging

from fastapi import APIRouter, HTTPException, Request, status
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from catalog.config import get_settings
from catalog.dependencies import ActiveUser, DbSession
from catalog.models import NewsletterSubscriber
from catalog.schemas.subscription import SubscriptionCreate, SubscriptionResponse
from catalog.services.rate_limiter import limiter

logger = logging.getLogger(__name__)
settings = get_settings()

router = APIRouter(prefix="/subscribe", tags=["Newsletter"])

ALREADY_SUBSCRIBED = "Email is already subscribed"


@router.post(
    "",
    response_model=SubscriptionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Subscribe to the newsletter",
    responses={400: {"description": "Email is already subscribed"}},
)
@limiter.limit(settings.rate_limit_write)
def subscribe(
    request: Request,
    data: SubscriptionCreate,
    db: DbSession,
    current_user: ActiveUser,
) -> SubscriptionResponse:
    existing = db.execute(
        select(NewsletterSubscriber.id).where(NewsletterSubscriber.email == data.email)
    ).scalar_one_or_none()
    if existing is not None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=ALREADY_SUBSCRIBED)

    db.add(NewsletterSubscriber(email=data.email, user_id=current_user.id))
    try:
        db.commit()
    except IntegrityError:
        # Lost a race with an identical request
        db.rollback()
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=ALREADY_SUBSCRIBED)

    logger.info(f"Newsletter subscription: {data.email}")

    return SubscriptionResponse(email=data.email)
