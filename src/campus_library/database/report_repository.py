"""
Librarian reports for the Campus Library API.

Reports are read-only projections over books, reservations and loans.
"Today" and "overdue" are evaluated against the server's local clock,
or against the ``now`` passed in by tests.
"""

import logging
from datetime import datetime, timedelta

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from sqlalchemy.orm import Session

from ..models.reservation import Reservation, ReservationStatus
from ..models.transaction import OverdueTransaction, Transaction
from .book_repository import BookRepository
from .reservation_repository import ReservationRepository
from .transaction_repository import TransactionRepository

logger = logging.getLogger(__name__)


class DashboardStats(BaseModel):
    """Headline counts for the librarian dashboard."""

    reserved_today: int = Field(
        ..., ge=0, description="Pending or approved reservations made since local midnight"
    )
    total_books: int = Field(..., ge=0)
    available_books: int = Field(..., ge=0, description="Titles with at least one copy on the shelf")
    active_issues: int = Field(..., ge=0, description="Loans not yet returned")
    overdue_returns: int = Field(..., ge=0)
    pending_reservations: int = Field(..., ge=0)
    total_transactions: int = Field(..., ge=0)

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )


class ReportRepository:
    """Builds the librarian reports from the other repositories."""

    def __init__(self, session: Session, transactions: TransactionRepository | None = None):
        self.session = session
        self.books = BookRepository(session)
        self.transactions = transactions or TransactionRepository(session)
        self.reservations = ReservationRepository(session, self.transactions)

    def dashboard(self, now: datetime | None = None) -> DashboardStats:
        now = now or datetime.now()
        stats = DashboardStats(
            reserved_today=self.reservations.count_reserved_on(now),
            total_books=self.books.count(),
            available_books=self.books.count_available(),
            active_issues=self.transactions.count_unreturned(),
            overdue_returns=self.transactions.count_overdue(now),
            pending_reservations=self.reservations.count_by_status(ReservationStatus.PENDING),
            total_transactions=self.transactions.count(),
        )
        logger.debug("Dashboard stats: %s", stats)
        return stats

    def reserved_today(self, now: datetime | None = None) -> list[Reservation]:
        """Pending or approved reservations made since local midnight, newest first."""
        now = now or datetime.now()
        start = now.replace(hour=0, minute=0, second=0, microsecond=0)
        return self.reservations.list_reserved_between(start, start + timedelta(days=1))

    def issued(self) -> list[Transaction]:
        """Loans still out, most recently issued first."""
        return self.transactions.list_unreturned()

    def active(self) -> list[Transaction]:
        """Same rows as ``issued``; kept as its own report for the dashboard."""
        return self.transactions.list_unreturned()

    def overdue(self, now: datetime | None = None) -> list[OverdueTransaction]:
        """Loans past due, most overdue first, with their projected fine."""
        return self.transactions.list_overdue(now)
