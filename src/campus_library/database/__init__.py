"""
Database package for the Campus Library API.

This package provides:
- SQLAlchemy schema definitions (schema.py)
- Session management and connection handling (session.py)
- One repository per aggregate: books, users, reservations, loans,
  plus the read-only librarian reports
"""

from .book_repository import BookRepository, BookSearchParams
from .report_repository import DashboardStats, ReportRepository
from .repository import BaseRepository, new_id
from .reservation_repository import ReservationRepository
from .schema import (
    AuthToken,
    Base,
    Book,
    Reservation,
    ReservationStatusEnum,
    RoleEnum,
    Transaction,
    User,
)
from .session import (
    SQLITE_BUSY_TIMEOUT,
    DatabaseManager,
    build_engine,
    get_db_manager,
    reset_db_manager,
    safe_commit,
    safe_query,
)
from .transaction_repository import TransactionRepository
from .user_repository import UserRepository, hash_password, verify_password

__all__ = [
    "SQLITE_BUSY_TIMEOUT",
    "AuthToken",
    "Base",
    "BaseRepository",
    "Book",
    "BookRepository",
    "BookSearchParams",
    "DashboardStats",
    "DatabaseManager",
    "ReportRepository",
    "Reservation",
    "ReservationRepository",
    "ReservationStatusEnum",
    "RoleEnum",
    "Transaction",
    "TransactionRepository",
    "User",
    "UserRepository",
    "build_engine",
    "get_db_manager",
    "hash_password",
    "new_id",
    "reset_db_manager",
    "safe_commit",
    "safe_query",
    "verify_password",
]
