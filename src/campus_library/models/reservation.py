"""
Reservation models and the reservation lifecycle table.

A reservation is a student's request for a copy of a book. It moves
through a fixed set of statuses:

    Pending -> Approved -> Issued -> Returned
    Pending -> Rejected
    Pending -> Cancelled
    Approved -> Cancelled

Each legal move carries exactly one side effect on the book or the loan
ledger. ``plan_transition`` is the single place that decides whether a
move is legal; repositories apply the effect it returns.
"""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from ..errors import InvalidTransitionError


class ReservationStatus(str, Enum):
    """Status of a reservation."""

    PENDING = "Pending"
    APPROVED = "Approved"
    REJECTED = "Rejected"
    ISSUED = "Issued"
    RETURNED = "Returned"
    CANCELLED = "Cancelled"


TERMINAL_STATUSES = frozenset(
    {ReservationStatus.REJECTED, ReservationStatus.RETURNED, ReservationStatus.CANCELLED}
)

# A student may hold at most one reservation per book in these statuses
OPEN_STATUSES = frozenset({ReservationStatus.PENDING, ReservationStatus.APPROVED})


class TransitionEffect(str, Enum):
    """Side effect attached to a legal status change."""

    TAKE_COPY = "take_copy"  # copies_available -= 1
    RECORD_REJECTION = "record_rejection"
    OPEN_LOAN = "open_loan"  # create the transaction
    CLOSE_LOAN = "close_loan"  # settle the transaction, copies_available += 1
    RELEASE_COPY = "release_copy"  # copies_available += 1
    WITHDRAW = "withdraw"  # nothing held yet


TRANSITIONS: dict[tuple[ReservationStatus, ReservationStatus], TransitionEffect] = {
    (ReservationStatus.PENDING, ReservationStatus.APPROVED): TransitionEffect.TAKE_COPY,
    (ReservationStatus.PENDING, ReservationStatus.REJECTED): TransitionEffect.RECORD_REJECTION,
    (ReservationStatus.APPROVED, ReservationStatus.ISSUED): TransitionEffect.OPEN_LOAN,
    (ReservationStatus.ISSUED, ReservationStatus.RETURNED): TransitionEffect.CLOSE_LOAN,
    (ReservationStatus.APPROVED, ReservationStatus.CANCELLED): TransitionEffect.RELEASE_COPY,
    (ReservationStatus.PENDING, ReservationStatus.CANCELLED): TransitionEffect.WITHDRAW,
}


def _rejection_message(current: ReservationStatus, requested: ReservationStatus) -> str:
    if current in TERMINAL_STATUSES:
        return f"Reservation is already {current.value.lower()}"
    if requested == ReservationStatus.CANCELLED and current == ReservationStatus.ISSUED:
        return "Cannot cancel an issued book. Please return it first."
    if requested == ReservationStatus.ISSUED:
        return "Reservation must be approved before issuing"
    if requested == ReservationStatus.RETURNED:
        return "Only issued books can be returned"
    return f"Cannot change reservation status from {current.value} to {requested.value}"


def plan_transition(
    current: ReservationStatus, requested: ReservationStatus
) -> TransitionEffect:
    """
    Decide the side effect of moving a reservation between two statuses.

    Args:
        current: Status the reservation is in now
        requested: Status the caller asks for

    Returns:
        The effect the caller must apply together with the status change

    Raises:
        InvalidTransitionError: If the pair is not a legal transition
    """
    current = ReservationStatus(current)
    requested = ReservationStatus(requested)
    effect = TRANSITIONS.get((current, requested))
    if effect is None:
        raise InvalidTransitionError(
            current.value, requested.value, _rejection_message(current, requested)
        )
    return effect


class _CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        use_enum_values=True,
    )


class UserSummary(_CamelModel):
    """User fields embedded in joined reservation and loan records."""

    id: str
    name: str
    email: str


class BookSummary(_CamelModel):
    """Book fields embedded in joined reservation and loan records."""

    id: str
    title: str
    author: str
    category: str
    copies_available: int | None = None


class Reservation(_CamelModel):
    """
    Represents a student's reservation of a book.

    ``user`` and ``book`` are filled in when the record is read together
    with its owner and book, and left empty otherwise.
    """

    id: str = Field(
        ...,
        description="Unique identifier for the reservation",
        pattern=r"^reservation_[a-f0-9]{6,}$",
    )

    user_id: str = Field(..., description="ID of the student who made the reservation")

    book_id: str = Field(..., description="ID of the reserved book")

    status: ReservationStatus = Field(
        default=ReservationStatus.PENDING,
        description="Current status of the reservation",
    )

    reservation_date: datetime = Field(
        default_factory=datetime.now,
        description="Date and time when the reservation was made",
    )

    approval_date: datetime | None = Field(
        None,
        description="Date and time when a librarian approved the reservation",
    )

    rejection_reason: str | None = Field(
        None,
        description="Reason given by the librarian when rejecting",
        max_length=500,
    )

    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)

    user: UserSummary | None = None
    book: BookSummary | None = None

    @property
    def is_terminal(self) -> bool:
        return ReservationStatus(self.status) in TERMINAL_STATUSES


class ReservationCreate(_CamelModel):
    """Request body for creating a reservation."""

    book_id: str = Field(..., min_length=1, description="Book ID is required")


class StatusUpdate(_CamelModel):
    """Request body for a librarian status change."""

    status: ReservationStatus
    rejection_reason: str | None = Field(None, max_length=500)
