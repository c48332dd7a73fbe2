"""
Library Catalog Application Package

Main application package for the Library Catalog API.

Package Structure:
- config.py: Application configuration using Pydantic Settings
- database.py: Storage context (engine, sessions, unit of work)
- main.py: FastAPI application factory and configuration
- dependencies.py: Dependency injection functions
- models/: SQLAlchemy ORM models
- schemas/: Pydantic request/response schemas
- routers/: API route handlers
- services/: Business logic (votes, uploads, chatbot, recommendations)
"""

__version__ = "0.1.0"
