"""
Repository pattern implementation for the Campus Library API.

Repositories are the only code that touches SQLAlchemy. They take a
session, run queries, enforce business rules and return Pydantic models,
so route handlers stay thin and can be tested against an in-memory
database.
"""

import uuid
from abc import ABC, abstractmethod
from typing import Generic, TypeVar

from pydantic import BaseModel
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from ..database.schema import Base
from ..database.session import safe_query
from ..errors import NotFoundError

ModelType = TypeVar("ModelType", bound=Base)
ResponseSchemaType = TypeVar("ResponseSchemaType", bound=BaseModel)


def new_id(prefix: str) -> str:
    """Generate a prefixed random identifier, e.g. ``book_3f9a1c2b7d4e``."""
    return f"{prefix}_{uuid.uuid4().hex[:12]}"


class BaseRepository(ABC, Generic[ModelType, ResponseSchemaType]):
    """
    Abstract base repository providing common lookups.

    Subclasses name their table and response model; the base class turns
    rows into Pydantic models and reports missing rows as NotFoundError.
    """

    def __init__(self, session: Session):
        """Initialize repository with database session."""
        self.session = session

    @property
    @abstractmethod
    def model_class(self) -> type[ModelType]:
        """Return the SQLAlchemy model class."""

    @property
    @abstractmethod
    def response_schema(self) -> type[ResponseSchemaType]:
        """Return the Pydantic response schema."""

    @property
    def entity_name(self) -> str:
        return self.model_class.__name__

    def _to_response_model(self, db_obj: ModelType) -> ResponseSchemaType:
        """Convert database model to Pydantic response model."""
        return self.response_schema.model_validate(db_obj, from_attributes=True)

    def _get_row(self, id: str, for_update: bool = False) -> ModelType:
        """
        Load a row by primary key.

        Raises:
            NotFoundError: If no row has this ID
        """
        query = select(self.model_class).where(self.model_class.id == str(id))
        if for_update:
            query = query.with_for_update()
        db_obj = safe_query(
            self.session,
            lambda s: s.execute(query).scalar_one_or_none(),
            f"Failed to get {self.entity_name} by ID",
        )
        if db_obj is None:
            raise NotFoundError(f"{self.entity_name} not found")
        return db_obj

    def get_by_id(self, id: str) -> ResponseSchemaType:
        """
        Get entity by ID.

        Raises:
            NotFoundError: If the entity does not exist
        """
        return self._to_response_model(self._get_row(id))

    def exists(self, id: str) -> bool:
        """Check if entity exists by ID."""
        query = (
            select(func.count()).select_from(self.model_class).where(self.model_class.id == str(id))
        )
        count = safe_query(
            self.session, lambda s: s.execute(query).scalar(), "Failed to check existence"
        )
        return count > 0

    def count(self) -> int:
        """Count all rows of this entity."""
        query = select(func.count()).select_from(self.model_class)
        return (
            safe_query(self.session, lambda s: s.execute(query).scalar(), "Failed to count rows")
            or 0
        )
