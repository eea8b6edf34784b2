"""
Transaction (loan ledger) repository for the Campus Library API.

A transaction is opened when a reservation is issued and settled when
the book comes back. This repository never commits on its own: it is
called by the reservation repository inside the same unit of work as
the status change, so a loan and its reservation are always written
together.
"""

import logging
from datetime import datetime, timedelta

from sqlalchemy import and_, func, select
from sqlalchemy.orm import joinedload

from ..config import get_config
from ..database.schema import Reservation as ReservationDB
from ..database.schema import Transaction as TransactionDB
from ..database.session import safe_query
from ..errors import ConflictError
from ..models.reservation import BookSummary, UserSummary
from ..models.transaction import OverdueTransaction, compute_fine, late_days
from ..models.transaction import Transaction as TransactionModel
from .repository import BaseRepository, new_id

logger = logging.getLogger(__name__)


class TransactionRepository(BaseRepository[TransactionDB, TransactionModel]):
    """
    Repository for loan transactions and fines.

    Loan period and fine rate default to the application configuration.
    """

    def __init__(
        self,
        session,
        loan_period_days: int | None = None,
        fine_per_day: int | None = None,
    ):
        super().__init__(session)
        config = get_config() if loan_period_days is None or fine_per_day is None else None
        self.loan_period_days = (
            loan_period_days if loan_period_days is not None else config.loan_period_days
        )
        self.fine_per_day = fine_per_day if fine_per_day is not None else config.fine_per_day

    @property
    def model_class(self):
        return TransactionDB

    @property
    def response_schema(self):
        return TransactionModel

    @property
    def entity_name(self) -> str:
        return "Transaction"

    # === Ledger writes (no commit) ===

    def open_loan(self, reservation: ReservationDB, now: datetime) -> TransactionDB:
        """
        Record a loan for an issued reservation.

        The due date is ``loan_period_days`` after the issue moment.
        """
        transaction = TransactionDB(
            id=new_id("transaction"),
            reservation_id=reservation.id,
            user_id=reservation.user_id,
            book_id=reservation.book_id,
            issue_date=now,
            due_date=now + timedelta(days=self.loan_period_days),
            fine_amount=0,
            is_returned=False,
            created_at=now,
            updated_at=now,
        )
        self.session.add(transaction)
        self.session.flush()
        logger.info(
            "Loan %s opened for reservation %s, due %s",
            transaction.id,
            reservation.id,
            transaction.due_date.isoformat(),
        )
        return transaction

    def close_loan(self, reservation_id: str, now: datetime) -> TransactionDB:
        """
        Settle the loan of a returned reservation and charge any fine.

        Raises:
            ConflictError: If the reservation has no open loan
        """
        transaction = safe_query(
            self.session,
            lambda s: s.execute(
                select(TransactionDB).where(
                    and_(
                        TransactionDB.reservation_id == reservation_id,
                        TransactionDB.is_returned.is_(False),
                    )
                )
            ).scalar_one_or_none(),
            "Failed to get loan for return",
        )
        if transaction is None:
            raise ConflictError("No open loan found for this reservation")

        transaction.return_date = now
        transaction.is_returned = True
        transaction.fine_amount = compute_fine(transaction.due_date, now, self.fine_per_day)
        transaction.updated_at = now
        self.session.flush()

        if transaction.fine_amount:
            logger.info("Loan %s returned late, fine %d", transaction.id, transaction.fine_amount)
        return transaction

    # === Queries ===

    def get_by_reservation(self, reservation_id: str) -> TransactionModel | None:
        """Get the loan issued for a reservation, if any."""
        row = safe_query(
            self.session,
            lambda s: s.execute(
                select(TransactionDB).where(TransactionDB.reservation_id == reservation_id)
            ).scalar_one_or_none(),
            "Failed to get loan by reservation",
        )
        return self._transaction_to_model(row) if row else None

    def list_unreturned(self) -> list[TransactionModel]:
        """Books currently out on loan, most recently issued first."""
        query = (
            select(TransactionDB)
            .where(TransactionDB.is_returned.is_(False))
            .order_by(TransactionDB.issue_date.desc())
            .options(joinedload(TransactionDB.user), joinedload(TransactionDB.book))
        )
        results = safe_query(
            self.session,
            lambda s: s.execute(query).unique().scalars().all(),
            "Failed to list issued books",
        )
        return [self._transaction_to_model(row) for row in results]

    def list_overdue(self, now: datetime | None = None) -> list[OverdueTransaction]:
        """
        Loans still out past their due date, most overdue first.

        Each entry carries the fine it would cost if returned at ``now``;
        the projection is not stored.
        """
        now = now or datetime.now()
        query = (
            select(TransactionDB)
            .where(
                and_(
                    TransactionDB.is_returned.is_(False),
                    TransactionDB.due_date < now,
                )
            )
            .order_by(TransactionDB.due_date.asc())
            .options(joinedload(TransactionDB.user), joinedload(TransactionDB.book))
        )
        results = safe_query(
            self.session,
            lambda s: s.execute(query).unique().scalars().all(),
            "Failed to list overdue loans",
        )

        overdue = []
        for row in results:
            base = self._transaction_to_model(row)
            overdue.append(
                OverdueTransaction(
                    **base.model_dump(),
                    late_days=late_days(row.due_date, now),
                    calculated_fine=compute_fine(row.due_date, now, self.fine_per_day),
                )
            )
        return overdue

    def count_unreturned(self) -> int:
        return (
            safe_query(
                self.session,
                lambda s: s.execute(
                    select(func.count())
                    .select_from(TransactionDB)
                    .where(TransactionDB.is_returned.is_(False))
                ).scalar(),
                "Failed to count active issues",
            )
            or 0
        )

    def count_overdue(self, now: datetime | None = None) -> int:
        now = now or datetime.now()
        return (
            safe_query(
                self.session,
                lambda s: s.execute(
                    select(func.count())
                    .select_from(TransactionDB)
                    .where(
                        and_(
                            TransactionDB.is_returned.is_(False),
                            TransactionDB.due_date < now,
                        )
                    )
                ).scalar(),
                "Failed to count overdue returns",
            )
            or 0
        )

    def _transaction_to_model(self, row: TransactionDB) -> TransactionModel:
        """Convert transaction DB object to Pydantic model with its user and book."""
        return TransactionModel(
            id=row.id,
            reservation_id=row.reservation_id,
            user_id=row.user_id,
            book_id=row.book_id,
            issue_date=row.issue_date,
            due_date=row.due_date,
            return_date=row.return_date,
            fine_amount=row.fine_amount,
            is_returned=row.is_returned,
            created_at=row.created_at,
            updated_at=row.updated_at,
            user=UserSummary(id=row.user.id, name=row.user.name, email=row.user.email)
            if row.user
            else None,
            book=BookSummary(
                id=row.book.id,
                title=row.book.title,
                author=row.book.author,
                category=row.book.category,
            )
            if row.book
            else None,
        )
