"""
SQLAlchemy database schema for the Campus Library API.

These tables mirror the Pydantic models in ``campus_library.models``.
A book's display status is not a column: it is derived from the copy
counts by the Pydantic model, and the check constraints below keep those
counts within ``0 <= copies_available <= copies_total``.
"""

import enum
from datetime import datetime

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import declarative_base, relationship

# Base class for all SQLAlchemy models
Base = declarative_base()


class RoleEnum(str, enum.Enum):
    """Database enum for account roles."""

    STUDENT = "Student"
    LIBRARIAN = "Librarian"


class ReservationStatusEnum(str, enum.Enum):
    """Database enum for reservation status."""

    PENDING = "Pending"
    APPROVED = "Approved"
    REJECTED = "Rejected"
    ISSUED = "Issued"
    RETURNED = "Returned"
    CANCELLED = "Cancelled"


class User(Base):
    """
    Users table - student and librarian accounts.
    """

    __tablename__ = "users"

    id = Column(String(50), primary_key=True)
    name = Column(String(200), nullable=False)
    email = Column(String(255), nullable=False, unique=True)
    password_hash = Column(String(255), nullable=False)
    role = Column(
        Enum(RoleEnum, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=RoleEnum.STUDENT,
    )

    created_at = Column(DateTime, nullable=False, default=datetime.now)
    updated_at = Column(DateTime, nullable=False, default=datetime.now, onupdate=datetime.now)

    tokens = relationship("AuthToken", back_populates="user", cascade="all, delete-orphan")
    reservations = relationship("Reservation", back_populates="user")
    transactions = relationship("Transaction", back_populates="user")

    __table_args__ = (
        Index("idx_user_email", "email"),
        CheckConstraint("id LIKE 'user_%'", name="check_user_id_format"),
    )


class AuthToken(Base):
    """
    Auth tokens table - opaque bearer tokens issued at login.
    """

    __tablename__ = "auth_tokens"

    token = Column(String(64), primary_key=True)
    user_id = Column(String(50), ForeignKey("users.id"), nullable=False)
    created_at = Column(DateTime, nullable=False, default=datetime.now)

    user = relationship("User", back_populates="tokens")


class Book(Base):
    """
    Books table - the library catalog.

    ``copies_available`` is the only availability signal; reservation
    approval, cancellation and return move it with conditional UPDATEs.
    """

    __tablename__ = "books"

    id = Column(String(50), primary_key=True)
    title = Column(String(500), nullable=False, index=True)
    author = Column(String(200), nullable=False, index=True)
    category = Column(String(100), nullable=False, index=True)
    description = Column(Text, nullable=True)
    copies_total = Column(Integer, nullable=False)
    copies_available = Column(Integer, nullable=False)

    created_at = Column(DateTime, nullable=False, default=datetime.now)
    updated_at = Column(DateTime, nullable=False, default=datetime.now, onupdate=datetime.now)

    reservations = relationship("Reservation", back_populates="book")
    transactions = relationship("Transaction", back_populates="book")

    __table_args__ = (
        Index("idx_book_created", "created_at"),
        Index("idx_book_availability", "copies_available"),
        CheckConstraint("id LIKE 'book_%'", name="check_book_id_format"),
        CheckConstraint("copies_available >= 0", name="check_available_copies_non_negative"),
        CheckConstraint(
            "copies_available <= copies_total", name="check_available_not_exceed_total"
        ),
        CheckConstraint("copies_total > 0", name="check_total_copies_positive"),
    )


class Reservation(Base):
    """
    Reservations table - students' requests for books.
    """

    __tablename__ = "reservations"

    id = Column(String(50), primary_key=True)
    user_id = Column(String(50), ForeignKey("users.id"), nullable=False)
    book_id = Column(String(50), ForeignKey("books.id"), nullable=False)
    status = Column(
        Enum(ReservationStatusEnum, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=ReservationStatusEnum.PENDING,
    )
    reservation_date = Column(DateTime, nullable=False, default=datetime.now)
    approval_date = Column(DateTime, nullable=True)
    rejection_reason = Column(String(500), nullable=True)

    created_at = Column(DateTime, nullable=False, default=datetime.now)
    updated_at = Column(DateTime, nullable=False, default=datetime.now, onupdate=datetime.now)

    user = relationship("User", back_populates="reservations")
    book = relationship("Book", back_populates="reservations")
    transaction = relationship("Transaction", back_populates="reservation", uselist=False)

    __table_args__ = (
        Index("idx_reservation_user", "user_id"),
        Index("idx_reservation_book", "book_id"),
        Index("idx_reservation_status", "status"),
        Index("idx_reservation_date", "reservation_date"),
        CheckConstraint("id LIKE 'reservation_%'", name="check_reservation_id_format"),
    )


class Transaction(Base):
    """
    Transactions table - one loan per issued reservation.
    """

    __tablename__ = "transactions"

    id = Column(String(50), primary_key=True)
    reservation_id = Column(
        String(50), ForeignKey("reservations.id"), nullable=False, unique=True
    )
    user_id = Column(String(50), ForeignKey("users.id"), nullable=False)
    book_id = Column(String(50), ForeignKey("books.id"), nullable=False)
    issue_date = Column(DateTime, nullable=False, default=datetime.now)
    due_date = Column(DateTime, nullable=False)
    return_date = Column(DateTime, nullable=True)
    fine_amount = Column(Integer, nullable=False, default=0)
    is_returned = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime, nullable=False, default=datetime.now)
    updated_at = Column(DateTime, nullable=False, default=datetime.now, onupdate=datetime.now)

    reservation = relationship("Reservation", back_populates="transaction")
    user = relationship("User", back_populates="transactions")
    book = relationship("Book", back_populates="transactions")

    __table_args__ = (
        Index("idx_transaction_user", "user_id"),
        Index("idx_transaction_returned", "is_returned"),
        Index("idx_transaction_due_date", "due_date"),
        CheckConstraint("id LIKE 'transaction_%'", name="check_transaction_id_format"),
        CheckConstraint("fine_amount >= 0", name="check_fine_non_negative"),
    )
