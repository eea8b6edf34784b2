"""
Campus Library models.

Pydantic models for the entities the API works with:
- Book: catalog entries with copy counts and a derived status
- Reservation: a student's request for a book and its lifecycle table
- Transaction: the loan opened at issue and closed at return, plus fines
- User: student and librarian accounts
"""

from .book import Book, BookCreate, BookStatus, BookUpdate, derive_book_status
from .reservation import (
    OPEN_STATUSES,
    TERMINAL_STATUSES,
    TRANSITIONS,
    BookSummary,
    Reservation,
    ReservationCreate,
    ReservationStatus,
    StatusUpdate,
    TransitionEffect,
    UserSummary,
    plan_transition,
)
from .transaction import OverdueTransaction, Transaction, compute_fine, late_days
from .user import AuthSession, Role, User, UserLogin, UserRegister

__all__ = [
    "OPEN_STATUSES",
    "TERMINAL_STATUSES",
    "TRANSITIONS",
    "AuthSession",
    "Book",
    "BookCreate",
    "BookStatus",
    "BookSummary",
    "BookUpdate",
    "OverdueTransaction",
    "Reservation",
    "ReservationCreate",
    "ReservationStatus",
    "Role",
    "StatusUpdate",
    "Transaction",
    "TransitionEffect",
    "User",
    "UserLogin",
    "UserRegister",
    "UserSummary",
    "compute_fine",
    "derive_book_status",
    "late_days",
    "plan_transition",
]
