"""
Witter API — Application Package Initializer
=============================================

What: Marks the `witter` directory as a Python package.
Why:  Enables module imports like `from witter.config import settings`.
Who:  Used implicitly by Python's import system and explicitly by Alembic, pytest, and uvicorn.

Architecture Note:
    The backend follows the same layered structure throughout:

    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns, auth dependencies
    ├─────────────────────────────────────┤
    │    Services (Users, Weets, Checks)  │  ← Business rules, validation
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │        Database (Persistence)       │  ← Async SQLAlchemy sessions
    └─────────────────────────────────────┘
"""

__version__ = "1.0.0"
