"""
API Routers Package

Router Structure:
- books.py: /api/v1/books/* catalog endpoints, plus /download and /uploads
- votes.py: /api/v1/books/{id}/like, /dislike and /votes
- auth.py: /api/v1/auth/* (registration, login, tokens)
- users.py: /api/v1/users/* (profile and admin user management)
- recommendations.py: /api/v1/recommendations
- chatbot.py: /api/v1/chat
- subscriptions.py: /api/v1/subscribe

Each router is imported and registered in main.py.
"""

from catalog.routers.auth import router as auth_router
from catalog.routers.books import files_router
from catalog.routers.books import router as books_router
from catalog.routers.chatbot import router as chatbot_router
from catalog.routers.recommendations import router as recommendations_router
from catalog.routers.subscriptions import router as subscriptions_router
from catalog.routers.users import router as users_router
from catalog.routers.votes import router as votes_router

__all__ = [
    "auth_router",
    "books_router",
    "files_router",
    "votes_router",
    "users_router",
    "recommendations_router",
    "chatbot_router",
    "subscriptions_router",
]
