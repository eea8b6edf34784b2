"""
Book repository implementation for the Campus Library API.

Catalog reads (search, lookup) are public; writes are reserved for
librarians at the HTTP layer. Copy counts are only ever changed here
and in the reservation repository, always keeping
``0 <= copies_available <= copies_total``.
"""

import logging
from datetime import datetime

from pydantic import BaseModel
from sqlalchemy import and_, case, func, or_, select, update

from ..database.schema import Book as BookDB
from ..database.schema import Reservation as ReservationDB
from ..database.schema import Transaction as TransactionDB
from ..database.session import safe_commit, safe_query
from ..errors import ConflictError
from ..models.book import Book as BookModel
from ..models.book import BookCreate, BookUpdate
from .repository import BaseRepository, new_id

logger = logging.getLogger(__name__)


class BookSearchParams(BaseModel):
    """
    Catalog search criteria.

    ``search`` matches title, author or category; ``category`` and
    ``author`` narrow the result further. All matching is
    case-insensitive substring matching.
    """

    search: str | None = None
    category: str | None = None
    author: str | None = None


class BookRepository(BaseRepository[BookDB, BookModel]):
    """Repository for the book catalog."""

    @property
    def model_class(self):
        return BookDB

    @property
    def response_schema(self):
        return BookModel

    @property
    def entity_name(self) -> str:
        return "Book"

    def search(self, params: BookSearchParams | None = None) -> list[BookModel]:
        """
        Search the catalog, newest books first.

        Args:
            params: Search and filter criteria; None lists every book

        Returns:
            Matching books
        """
        params = params or BookSearchParams()
        query = select(BookDB)
        filters = []

        if params.search:
            filters.append(
                or_(
                    BookDB.title.icontains(params.search, autoescape=True),
                    BookDB.author.icontains(params.search, autoescape=True),
                    BookDB.category.icontains(params.search, autoescape=True),
                )
            )

        if params.category:
            filters.append(BookDB.category.icontains(params.category, autoescape=True))

        if params.author:
            filters.append(BookDB.author.icontains(params.author, autoescape=True))

        if filters:
            query = query.where(and_(*filters))

        query = query.order_by(BookDB.created_at.desc())

        results = safe_query(
            self.session,
            lambda s: s.execute(query).scalars().all(),
            "Failed to search books",
        )
        return [self._to_response_model(book) for book in results]

    def create(self, data: BookCreate) -> BookModel:
        """
        Add a book to the catalog with every copy available.

        Args:
            data: Validated book fields

        Returns:
            The created book
        """
        now = datetime.now()
        book = BookDB(
            id=new_id("book"),
            title=data.title,
            author=data.author,
            category=data.category,
            description=data.description,
            copies_total=data.copies_total,
            copies_available=data.copies_total,
            created_at=now,
            updated_at=now,
        )
        self.session.add(book)
        safe_commit(self.session, "create book")
        self.session.refresh(book)

        logger.info("Book created: %s (%s)", book.id, book.title)
        return self._to_response_model(book)

    def update(self, book_id: str, data: BookUpdate) -> BookModel:
        """
        Apply a partial update.

        Changing ``copies_total`` moves ``copies_available`` by the same
        delta, floored at zero. Blank title, author or category values are
        ignored; ``description`` may be cleared by sending null.

        Raises:
            NotFoundError: If the book does not exist
        """
        book = self._get_row(book_id)

        values = {"updated_at": datetime.now()}
        if data.copies_total is not None:
            # Computed in SQL from the stored counts, not from the row read above
            shifted = BookDB.copies_available + (data.copies_total - BookDB.copies_total)
            values["copies_available"] = case((shifted < 0, 0), else_=shifted)
            values["copies_total"] = data.copies_total
        if data.title:
            values["title"] = data.title
        if data.author:
            values["author"] = data.author
        if data.category:
            values["category"] = data.category
        if "description" in data.model_fields_set:
            values["description"] = data.description

        self.session.execute(
            update(BookDB)
            .where(BookDB.id == book_id)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        safe_commit(self.session, "update book")
        self.session.refresh(book)

        logger.info("Book updated: %s", book.id)
        return self._to_response_model(book)

    def delete(self, book_id: str) -> None:
        """
        Remove a book from the catalog.

        Raises:
            NotFoundError: If the book does not exist
            ConflictError: If reservations or loans still reference it
        """
        book = self._get_row(book_id)

        references = safe_query(
            self.session,
            lambda s: s.execute(
                select(func.count())
                .select_from(ReservationDB)
                .where(ReservationDB.book_id == book_id)
            ).scalar()
            + s.execute(
                select(func.count())
                .select_from(TransactionDB)
                .where(TransactionDB.book_id == book_id)
            ).scalar(),
            "Failed to check book references",
        )
        if references:
            raise ConflictError("Book has reservation history and cannot be deleted")

        self.session.delete(book)
        safe_commit(self.session, "delete book")

        logger.info("Book deleted: %s", book_id)

    def count_available(self) -> int:
        """Count titles with at least one copy on the shelf."""
        return (
            safe_query(
                self.session,
                lambda s: s.execute(
                    select(func.count()).select_from(BookDB).where(BookDB.copies_available > 0)
                ).scalar(),
                "Failed to count available books",
            )
            or 0
        )
