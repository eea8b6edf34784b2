"""
Reservation repository: the reservation lifecycle manager.

Every status change goes through ``transition``. It asks
``plan_transition`` whether the move is legal, then writes the new
status and its side effect (book copy count, loan ledger) in one
database transaction:

- the status is written with a compare-and-swap UPDATE that only
  matches while the row is still in the status we read, so two
  librarians acting on the same reservation cannot both win;
- taking a copy is an UPDATE guarded by ``copies_available > 0``, so two
  approvals racing for the last copy cannot both succeed;
- releasing a copy never raises ``copies_available`` above
  ``copies_total``.

If any guarded UPDATE matches no row, the whole unit of work is rolled
back and a ConflictError is raised.
"""

import logging
from datetime import datetime, timedelta

import logfire
from sqlalchemy import and_, case, func, select, update
from sqlalchemy.orm import joinedload

from ..database.schema import Book as BookDB
from ..database.schema import Reservation as ReservationDB
from ..database.schema import ReservationStatusEnum
from ..database.session import safe_commit, safe_query
from ..errors import (
    ConflictError,
    LibraryError,
    NotFoundError,
    PermissionDeniedError,
    ValidationFailed,
)
from ..models.reservation import (
    OPEN_STATUSES,
    BookSummary,
    ReservationStatus,
    TransitionEffect,
    UserSummary,
    plan_transition,
)
from ..models.reservation import Reservation as ReservationModel
from ..models.user import User as UserModel
from ..observability.metrics import record_fine, record_transition
from .repository import BaseRepository, new_id
from .transaction_repository import TransactionRepository

logger = logging.getLogger(__name__)


def _parse_status(value: ReservationStatus | str) -> ReservationStatus:
    try:
        return ReservationStatus(value)
    except ValueError as e:
        allowed = ", ".join(status.value for status in ReservationStatus)
        raise ValidationFailed(f"Invalid status '{value}'. Must be one of: {allowed}") from e


class ReservationRepository(BaseRepository[ReservationDB, ReservationModel]):
    """
    Repository for reservations and their lifecycle.

    Args:
        session: Database session
        transactions: Loan ledger used when issuing and returning; built
            from the same session with configured lending policy if omitted
    """

    def __init__(self, session, transactions: TransactionRepository | None = None):
        super().__init__(session)
        self.transactions = transactions or TransactionRepository(session)

    @property
    def model_class(self):
        return ReservationDB

    @property
    def response_schema(self):
        return ReservationModel

    @property
    def entity_name(self) -> str:
        return "Reservation"

    # === Creation ===

    def create(self, user_id: str, book_id: str, now: datetime | None = None) -> ReservationModel:
        """
        Create a pending reservation for a student.

        No copy is taken yet; that happens on approval.

        Raises:
            NotFoundError: If the book does not exist
            ConflictError: If no copy is available or the student already
                holds a pending or approved reservation for the book
        """
        now = now or datetime.now()

        book = safe_query(
            self.session,
            lambda s: s.get(BookDB, book_id),
            "Failed to get book for reservation",
        )
        if book is None:
            raise NotFoundError("Book not found")

        if book.copies_available <= 0:
            raise ConflictError("Book is not available")

        existing = safe_query(
            self.session,
            lambda s: s.execute(
                select(func.count())
                .select_from(ReservationDB)
                .where(
                    and_(
                        ReservationDB.user_id == user_id,
                        ReservationDB.book_id == book_id,
                        ReservationDB.status.in_(
                            [ReservationStatusEnum(status.value) for status in OPEN_STATUSES]
                        ),
                    )
                )
            ).scalar(),
            "Failed to check existing reservations",
        )
        if existing:
            raise ConflictError("You already have a pending or approved reservation for this book")

        reservation = ReservationDB(
            id=new_id("reservation"),
            user_id=user_id,
            book_id=book_id,
            status=ReservationStatusEnum.PENDING,
            reservation_date=now,
            created_at=now,
            updated_at=now,
        )
        self.session.add(reservation)
        safe_commit(self.session, "create reservation")

        logger.info("Reservation %s created by %s for %s", reservation.id, user_id, book_id)
        return self.get(reservation.id)

    # === Lifecycle ===

    def transition(
        self,
        reservation_id: str,
        requested: ReservationStatus | str,
        rejection_reason: str | None = None,
        now: datetime | None = None,
    ) -> ReservationModel:
        """
        Move a reservation to a new status and apply its side effect.

        Args:
            reservation_id: Reservation to change
            requested: Target status
            rejection_reason: Stored when rejecting, ignored otherwise
            now: Moment of the change (defaults to the current time)

        Returns:
            The updated reservation with its user and book

        Raises:
            NotFoundError: If the reservation does not exist
            ValidationFailed: If the target is not a known status
            InvalidTransitionError: If the move is not allowed from the
                current status
            ConflictError: If the book has no copy left to approve, or the
                reservation changed concurrently
        """
        now = now or datetime.now()
        requested = _parse_status(requested)

        reservation = self._get_row(reservation_id, for_update=True)
        current = ReservationStatus(reservation.status.value)
        effect = plan_transition(current, requested)

        with logfire.span(
            "reservation.transition",
            reservation_id=reservation_id,
            from_status=current.value,
            to_status=requested.value,
        ):
            try:
                self._claim_status(reservation, current, requested, effect, rejection_reason, now)
                fine = self._apply_effect(reservation, effect, now)
                safe_commit(self.session, f"{current.value} -> {requested.value}")
            except LibraryError:
                self.session.rollback()
                raise

        record_transition(current.value, requested.value)
        record_fine(fine)
        self.session.expire_all()
        logger.info(
            "Reservation %s: %s -> %s", reservation_id, current.value, requested.value
        )
        return self.get(reservation_id)

    def cancel(
        self, reservation_id: str, caller_id: str, now: datetime | None = None
    ) -> ReservationModel:
        """
        Cancel a reservation on behalf of its owner.

        Raises:
            NotFoundError: If the reservation does not exist
            PermissionDeniedError: If the caller does not own it
            InvalidTransitionError: If it is issued or already finished
        """
        reservation = self._get_row(reservation_id)
        if reservation.user_id != caller_id:
            raise PermissionDeniedError("Not authorized to cancel this reservation")

        return self.transition(reservation_id, ReservationStatus.CANCELLED, now=now)

    def _claim_status(
        self,
        reservation: ReservationDB,
        current: ReservationStatus,
        requested: ReservationStatus,
        effect: TransitionEffect,
        rejection_reason: str | None,
        now: datetime,
    ) -> None:
        values = {"status": ReservationStatusEnum(requested.value), "updated_at": now}
        if effect == TransitionEffect.TAKE_COPY:
            values["approval_date"] = now
        elif effect == TransitionEffect.RECORD_REJECTION:
            values["rejection_reason"] = rejection_reason or None

        result = self.session.execute(
            update(ReservationDB)
            .where(
                and_(
                    ReservationDB.id == reservation.id,
                    ReservationDB.status == ReservationStatusEnum(current.value),
                )
            )
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            raise ConflictError("Reservation was changed by another request, please retry")

    def _apply_effect(
        self, reservation: ReservationDB, effect: TransitionEffect, now: datetime
    ) -> int:
        """Apply the side effect of a transition and return the fine it charged."""
        fine = 0
        if effect == TransitionEffect.TAKE_COPY:
            self._take_copy(reservation.book_id, now)
        elif effect == TransitionEffect.OPEN_LOAN:
            self.transactions.open_loan(reservation, now)
        elif effect == TransitionEffect.CLOSE_LOAN:
            fine = self.transactions.close_loan(reservation.id, now).fine_amount
            self._release_copy(reservation.book_id, now)
        elif effect == TransitionEffect.RELEASE_COPY:
            self._release_copy(reservation.book_id, now)
        return fine

    def _take_copy(self, book_id: str, now: datetime) -> None:
        result = self.session.execute(
            update(BookDB)
            .where(and_(BookDB.id == book_id, BookDB.copies_available > 0))
            .values(copies_available=BookDB.copies_available - 1, updated_at=now)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            raise ConflictError("Book is not available")

    def _release_copy(self, book_id: str, now: datetime) -> None:
        self.session.execute(
            update(BookDB)
            .where(BookDB.id == book_id)
            .values(
                copies_available=case(
                    (
                        BookDB.copies_available < BookDB.copies_total,
                        BookDB.copies_available + 1,
                    ),
                    else_=BookDB.copies_total,
                ),
                updated_at=now,
            )
            .execution_options(synchronize_session=False)
        )

    # === Queries ===

    def get(self, reservation_id: str) -> ReservationModel:
        """
        Get a reservation with its user and book.

        Raises:
            NotFoundError: If the reservation does not exist
        """
        row = safe_query(
            self.session,
            lambda s: s.execute(
                self._joined_query().where(ReservationDB.id == reservation_id)
            ).scalar_one_or_none(),
            "Failed to get reservation",
        )
        if row is None:
            raise NotFoundError("Reservation not found")
        return self._reservation_to_model(row)

    def get_for_caller(self, reservation_id: str, caller: UserModel) -> ReservationModel:
        """
        Get a reservation visible to the caller.

        Librarians see every reservation, students only their own.

        Raises:
            NotFoundError: If the reservation does not exist
            PermissionDeniedError: If a student asks for someone else's
        """
        reservation = self.get(reservation_id)
        if not caller.is_librarian and reservation.user_id != caller.id:
            raise PermissionDeniedError("Not authorized to view this reservation")
        return reservation

    def list_for_user(
        self, user_id: str, status: ReservationStatus | str | None = None
    ) -> list[ReservationModel]:
        """A student's reservations, newest first."""
        query = self._joined_query().where(ReservationDB.user_id == user_id)
        return self._list(query, status)

    def list_all(self, status: ReservationStatus | str | None = None) -> list[ReservationModel]:
        """Every reservation, newest first."""
        return self._list(self._joined_query(), status)

    def list_reserved_between(
        self, start: datetime, end: datetime, statuses=OPEN_STATUSES
    ) -> list[ReservationModel]:
        """Reservations made in ``[start, end)`` still in one of ``statuses``, newest first."""
        query = self._joined_query().where(self._reserved_between(start, end, statuses))
        return self._list(query, None)

    def count_by_status(self, status: ReservationStatus | str) -> int:
        status = ReservationStatusEnum(_parse_status(status).value)
        return (
            safe_query(
                self.session,
                lambda s: s.execute(
                    select(func.count())
                    .select_from(ReservationDB)
                    .where(ReservationDB.status == status)
                ).scalar(),
                "Failed to count reservations",
            )
            or 0
        )

    def count_reserved_on(self, day: datetime, statuses=OPEN_STATUSES) -> int:
        """Count reservations made on the calendar day of ``day`` still in one of ``statuses``."""
        start = day.replace(hour=0, minute=0, second=0, microsecond=0)
        end = start + timedelta(days=1)
        return (
            safe_query(
                self.session,
                lambda s: s.execute(
                    select(func.count())
                    .select_from(ReservationDB)
                    .where(self._reserved_between(start, end, statuses))
                ).scalar(),
                "Failed to count today's reservations",
            )
            or 0
        )

    def _reserved_between(self, start: datetime, end: datetime, statuses):
        return and_(
            ReservationDB.reservation_date >= start,
            ReservationDB.reservation_date < end,
            ReservationDB.status.in_([ReservationStatusEnum(s.value) for s in statuses]),
        )

    def _joined_query(self):
        return select(ReservationDB).options(
            joinedload(ReservationDB.user), joinedload(ReservationDB.book)
        )

    def _list(self, query, status: ReservationStatus | str | None) -> list[ReservationModel]:
        if status:
            query = query.where(
                ReservationDB.status == ReservationStatusEnum(_parse_status(status).value)
            )
        query = query.order_by(ReservationDB.created_at.desc())
        results = safe_query(
            self.session,
            lambda s: s.execute(query).unique().scalars().all(),
            "Failed to list reservations",
        )
        return [self._reservation_to_model(row) for row in results]

    def _reservation_to_model(self, row: ReservationDB) -> ReservationModel:
        """Convert reservation DB object to Pydantic model with its user and book."""
        return ReservationModel(
            id=row.id,
            user_id=row.user_id,
            book_id=row.book_id,
            status=row.status.value,
            reservation_date=row.reservation_date,
            approval_date=row.approval_date,
            rejection_reason=row.rejection_reason,
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
                copies_available=row.book.copies_available,
            )
            if row.book
            else None,
        )
