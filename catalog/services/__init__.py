"""
Services Package

Business logic kept separate from HTTP handling (routers), so it can be
reused by scripts and tested without a client.

Current services:
- votes.py: like/dislike reconciliation between the vote ledger and counters
- users.py: account deletion, admin seeding and admin role changes
- uploads.py: validated file storage under the upload directory
- recommendations.py: client for the external recommendation service
- chatbot.py: intent matching with an optional Hugging Face fallback
- security.py: password hashing and JWT utilities
- rate_limiter.py: rate limiting with slowapi
- exceptions.py: service error hierarchy
"""
