"""
Tests for the Book model.

These tests verify that the Book model correctly:
1. Validates copy counts
2. Derives its status from the copy counts
3. Serializes with camelCase keys
"""

import pytest
from pydantic import ValidationError

from campus_library.models.book import (
    Book,
    BookCreate,
    BookStatus,
    BookUpdate,
    derive_book_status,
)


def _book(**overrides) -> Book:
    data = {
        "id": "book_3f9a1c2b7d4e",
        "title": "The Hobbit",
        "author": "J.R.R. Tolkien",
        "category": "Fantasy",
        "copies_total": 3,
        "copies_available": 3,
    }
    data.update(overrides)
    return Book(**data)


class TestBookStatus:
    """Status is a projection of the copy counts."""

    @pytest.mark.parametrize(
        ("available", "total", "expected"),
        [
            (3, 3, BookStatus.AVAILABLE),
            (2, 3, BookStatus.RESERVED),
            (1, 3, BookStatus.RESERVED),
            (0, 3, BookStatus.ISSUED),
            (1, 1, BookStatus.AVAILABLE),
            (0, 1, BookStatus.ISSUED),
        ],
    )
    def test_derive_book_status(self, available, total, expected):
        assert derive_book_status(available, total) == expected

    def test_status_follows_copy_counts(self):
        assert _book(copies_available=3).status == BookStatus.AVAILABLE
        assert _book(copies_available=1).status == BookStatus.RESERVED
        assert _book(copies_available=0).status == BookStatus.ISSUED

    def test_status_cannot_be_set_directly(self):
        """A status passed in is ignored; the counts decide."""
        book = Book(
            id="book_3f9a1c2b7d4e",
            title="The Hobbit",
            author="J.R.R. Tolkien",
            category="Fantasy",
            copies_total=1,
            copies_available=1,
            status="Issued",
        )
        assert book.status == BookStatus.AVAILABLE


class TestBookModel:
    """Test suite for the Book model."""

    def test_create_valid_book(self):
        book = _book(copies_available=2, description="There and back again")

        assert book.title == "The Hobbit"
        assert book.copies_total == 3
        assert book.copies_available == 2

    def test_available_cannot_exceed_total(self):
        with pytest.raises(ValidationError, match="cannot exceed total"):
            _book(copies_total=1, copies_available=2)

    def test_negative_available_rejected(self):
        with pytest.raises(ValidationError):
            _book(copies_available=-1)

    def test_total_must_be_positive(self):
        with pytest.raises(ValidationError):
            _book(copies_total=0, copies_available=0)

    def test_id_prefix_required(self):
        with pytest.raises(ValidationError):
            _book(id="3f9a1c2b7d4e")

    def test_json_uses_camel_case(self):
        data = _book(copies_available=2).model_dump(by_alias=True, mode="json")

        assert data["copiesTotal"] == 3
        assert data["copiesAvailable"] == 2
        assert data["status"] == "Reserved"
        assert "createdAt" in data
        assert "copies_total" not in data


class TestBookRequests:
    def test_create_trims_whitespace(self):
        data = BookCreate(title="  Dune ", author=" Frank Herbert", category="SciFi ", copies_total=2)
        assert data.title == "Dune"
        assert data.author == "Frank Herbert"
        assert data.category == "SciFi"

    def test_create_requires_fields(self):
        with pytest.raises(ValidationError):
            BookCreate(title="   ", author="Frank Herbert", category="SciFi", copies_total=1)
        with pytest.raises(ValidationError):
            BookCreate(title="Dune", author="Frank Herbert", category="SciFi", copies_total=0)

    def test_create_accepts_camel_case(self):
        data = BookCreate.model_validate(
            {"title": "Dune", "author": "Frank Herbert", "category": "SciFi", "copiesTotal": 4}
        )
        assert data.copies_total == 4

    def test_update_tracks_supplied_fields(self):
        update = BookUpdate.model_validate({"description": None})
        assert update.model_fields_set == {"description"}
        assert BookUpdate().model_fields_set == set()
