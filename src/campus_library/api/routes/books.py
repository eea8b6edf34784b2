"""
Book catalog routes.

Reading the catalog needs no account; adding, editing and removing
books is for librarians.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ...database.book_repository import BookRepository, BookSearchParams
from ...models.book import BookCreate, BookUpdate
from ..dependencies import get_db, require_librarian
from ..envelope import success

router = APIRouter(prefix="/api/books", tags=["books"])


@router.get("")
def list_books(
    search: str | None = None,
    category: str | None = None,
    author: str | None = None,
    session: Session = Depends(get_db),
):
    params = BookSearchParams(search=search, category=category, author=author)
    return success(BookRepository(session).search(params))


@router.get("/{book_id}")
def get_book(book_id: str, session: Session = Depends(get_db)):
    return success(BookRepository(session).get_by_id(book_id))


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_librarian)],
)
def create_book(payload: BookCreate, session: Session = Depends(get_db)):
    book = BookRepository(session).create(payload)
    return success(book, message="Book created successfully")


@router.put("/{book_id}", dependencies=[Depends(require_librarian)])
def update_book(book_id: str, payload: BookUpdate, session: Session = Depends(get_db)):
    book = BookRepository(session).update(book_id, payload)
    return success(book, message="Book updated successfully")


@router.delete("/{book_id}", dependencies=[Depends(require_librarian)])
def delete_book(book_id: str, session: Session = Depends(get_db)):
    BookRepository(session).delete(book_id)
    return success(message="Book deleted successfully")
