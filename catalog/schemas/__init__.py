"""
Pydantic Schemas Package

Request/response validation models, kept separate from the SQLAlchemy
models so the API controls exactly what is exposed.

Schema Naming Convention:
- XxxBase: Shared fields between create/update
- XxxCreate: Fields required when creating a new record
- XxxUpdate: Fields allowed when updating (all optional)
- XxxResponse: Fields returned in API responses
"""

from catalog.schemas.book import (
    BookBase,
    BookListResponse,
    BookResponse,
    BookUpdate,
    parse_genres,
)
from catalog.schemas.chat import ChatHealth, ChatReply, ChatRequest
from catalog.schemas.subscription import SubscriptionCreate, SubscriptionResponse
from catalog.schemas.user import (
    MessageResponse,
    RefreshRequest,
    Token,
    UserCreate,
    UserListResponse,
    UserPublicResponse,
    UserResponse,
    UserUpdate,
)
from catalog.schemas.vote import BookVoteSummary, VoteTotalsResponse

__all__ = [
    # Book schemas
    "BookBase",
    "BookUpdate",
    "BookResponse",
    "BookListResponse",
    "parse_genres",
    # Vote schemas
    "VoteTotalsResponse",
    "BookVoteSummary",
    # User schemas
    "UserCreate",
    "UserUpdate",
    "UserResponse",
    "UserPublicResponse",
    "UserListResponse",
    "MessageResponse",
    # Auth schemas
    "Token",
    "RefreshRequest",
    # Chat schemas
    "ChatRequest",
    "ChatReply",
    "ChatHealth",
    # Newsletter schemas
    "SubscriptionCreate",
    "SubscriptionResponse",
]
