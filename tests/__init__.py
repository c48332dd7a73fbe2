"""
Test Suite for the Library Catalog API

Test Organization:
- conftest.py: Shared fixtures (per-test SQLite storage, client, users, books)
- test_votes.py: Vote reconciliation, concurrency and the like/dislike endpoints
- test_database.py: StorageContext unit of work and error mapping
- test_auth.py / test_users.py: Authentication, profiles, admin management
- test_books.py / test_uploads.py: Catalog endpoints and stored files
- test_chatbot.py / test_recommendations.py: Assistant and external services
- test_subscriptions.py / test_main.py: Newsletter, health, startup helpers
- test_rate_limiter.py: Rate limit keys

Running Tests:
    # Run all tests
    pytest

    # Run specific file
    pytest tests/test_votes.py

    # Run with verbose output
    pytest -v
"""
