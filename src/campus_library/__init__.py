"""
Campus Library API package.

A REST service where librarians manage the catalog and lending desk and
students reserve books.

Key Components:
- models: Pydantic models and the reservation lifecycle table
- database: SQLAlchemy schema, session management and repositories
- api: FastAPI application, dependencies and routers
- config: Configuration management with Pydantic v2
"""

__version__ = "0.1.0"

__all__ = [
    "__version__",
]
