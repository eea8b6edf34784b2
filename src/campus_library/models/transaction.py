"""
Loan transaction models and fine arithmetic.

A transaction is opened when a reservation is issued and closed when the
book comes back. Fines are whole currency units per started day late:
returning a book 2.5 days after the due date costs three days.
"""

import math
from datetime import datetime, timedelta

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from .reservation import BookSummary, UserSummary

DEFAULT_FINE_PER_DAY = 10

_ONE_DAY = timedelta(days=1)


def late_days(due_date: datetime, at: datetime) -> int:
    """Number of started days between ``due_date`` and ``at`` (0 if not late)."""
    if at <= due_date:
        return 0
    return math.ceil((at - due_date) / _ONE_DAY)


def compute_fine(
    due_date: datetime, return_date: datetime, fine_per_day: int = DEFAULT_FINE_PER_DAY
) -> int:
    """
    Calculate the fine for a loan returned (or still out) at ``return_date``.

    Args:
        due_date: When the book was due
        return_date: When it came back, or "now" for a projection
        fine_per_day: Fine per started day late

    Returns:
        Fine amount in whole currency units
    """
    return late_days(due_date, return_date) * fine_per_day


class Transaction(BaseModel):
    """
    Represents a physical loan created when a reservation is issued.
    """

    id: str = Field(
        ...,
        description="Unique identifier for the transaction",
        pattern=r"^transaction_[a-f0-9]{6,}$",
    )

    reservation_id: str = Field(..., description="Reservation this loan was issued for")
    user_id: str = Field(..., description="Borrowing student")
    book_id: str = Field(..., description="Borrowed book")

    issue_date: datetime = Field(
        default_factory=datetime.now,
        description="Date and time the book was handed out",
    )

    due_date: datetime = Field(..., description="Date and time the book is due back")

    return_date: datetime | None = Field(
        None,
        description="Date and time the book was returned",
    )

    fine_amount: int = Field(
        default=0,
        description="Fine charged on return",
        ge=0,
    )

    is_returned: bool = Field(default=False)

    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)

    user: UserSummary | None = None
    book: BookSummary | None = None

    @model_validator(mode="after")
    def validate_dates(self) -> "Transaction":
        """Validate date relationships."""
        if self.due_date <= self.issue_date:
            raise ValueError("Due date must be after issue date")
        if self.return_date and self.return_date < self.issue_date:
            raise ValueError("Return date cannot be before issue date")
        return self

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )


class OverdueTransaction(Transaction):
    """An unreturned loan past its due date, with the fine it would carry today."""

    late_days: int = Field(..., ge=0)
    calculated_fine: int = Field(..., ge=0)
