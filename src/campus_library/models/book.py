"""
Book model for the Campus Library API.

A book is a catalog entry with a number of physical copies. Its
``status`` is never stored: it is projected from the copy counts every
time the model is built, so it cannot drift from ``copies_available``.
"""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, computed_field, model_validator
from pydantic.alias_generators import to_camel


class BookStatus(str, Enum):
    """Availability of a title, derived from its copy counts."""

    AVAILABLE = "Available"
    RESERVED = "Reserved"
    ISSUED = "Issued"


def derive_book_status(copies_available: int, copies_total: int) -> BookStatus:
    """Project the display status of a book from its copy counts."""
    if copies_available == 0:
        return BookStatus.ISSUED
    if copies_available < copies_total:
        return BookStatus.RESERVED
    return BookStatus.AVAILABLE


class Book(BaseModel):
    """
    Represents a book in the library catalog.

    Serialized with camelCase keys (``copiesTotal``, ``copiesAvailable``)
    so the JSON matches what the dashboard client expects.
    """

    id: str = Field(
        ...,
        description="Unique identifier for the book",
        pattern=r"^book_[a-f0-9]{6,}$",
        examples=["book_3f9a1c2b7d4e"],
    )

    title: str = Field(
        ...,
        description="The title of the book",
        min_length=1,
        max_length=500,
        examples=["The Hobbit", "Clean Code"],
    )

    author: str = Field(
        ...,
        description="Author name as printed on the cover",
        min_length=1,
        max_length=200,
        examples=["J.R.R. Tolkien", "Robert C. Martin"],
    )

    category: str = Field(
        ...,
        description="Subject or shelf category",
        min_length=1,
        max_length=100,
        examples=["Fantasy", "Software Engineering"],
    )

    description: str | None = Field(
        None,
        description="Brief description or summary of the book",
        max_length=2000,
    )

    copies_total: int = Field(
        ...,
        description="Total number of copies owned by the library",
        ge=1,
    )

    copies_available: int = Field(
        ...,
        description="Number of copies currently available for lending",
        ge=0,
    )

    created_at: datetime = Field(
        default_factory=datetime.now,
        description="Timestamp when the book was added to the catalog",
    )

    updated_at: datetime = Field(
        default_factory=datetime.now,
        description="Timestamp when the book record was last updated",
    )

    @model_validator(mode="after")
    def validate_copies(self) -> "Book":
        """Ensure available copies doesn't exceed total copies."""
        if self.copies_available > self.copies_total:
            raise ValueError("Available copies cannot exceed total copies")
        return self

    @computed_field  # type: ignore[prop-decorator]
    @property
    def status(self) -> BookStatus:
        return derive_book_status(self.copies_available, self.copies_total)

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "id": "book_3f9a1c2b7d4e",
                "title": "The Hobbit",
                "author": "J.R.R. Tolkien",
                "category": "Fantasy",
                "copiesTotal": 3,
                "copiesAvailable": 2,
                "status": "Reserved",
            }
        },
    )


class BookCreate(BaseModel):
    """Request body for adding a book to the catalog."""

    title: str = Field(..., min_length=1, max_length=500)
    author: str = Field(..., min_length=1, max_length=200)
    category: str = Field(..., min_length=1, max_length=100)
    copies_total: int = Field(..., ge=1, description="Total copies must be at least 1")
    description: str | None = Field(None, max_length=2000)

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )


class BookUpdate(BaseModel):
    """Request body for a partial book update - all fields optional."""

    title: str | None = Field(None, max_length=500)
    author: str | None = Field(None, max_length=200)
    category: str | None = Field(None, max_length=100)
    copies_total: int | None = Field(None, ge=1)
    description: str | None = Field(None, max_length=2000)

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )
