"""
Registrar Backend — Application Package Initializer
===================================================

What: Marks the `registrar` directory as a Python package.
Who:  Used by uvicorn (`registrar.main:app`), Alembic and pytest.

Architecture Note:
    The backend is split into thin layers:

    ┌─────────────────────────────────────┐
    │     Routes (request handlers)       │  ← parse, validate, map status codes
    ├─────────────────────────────────────┤
    │   Services (persistence gateway)    │  ← five student operations
    ├─────────────────────────────────────┤
    │    Models, Schemas & Validation     │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │        Database (engine/session)    │  ← Async SQLAlchemy
    └─────────────────────────────────────┘

    Each layer receives its collaborators explicitly; the only module-level
    singleton is the immutable `settings` object.
"""

__version__ = "1.0.0"
