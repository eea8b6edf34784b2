#!/usr/bin/env python3
"""
Initialize the Campus Library database.

This script:
1. Creates all database tables
2. Optionally loads sample accounts, books and a few reservations
3. Verifies the expected tables exist

Usage:
    python scripts/init_database.py [--drop-existing] [--sample-data] [--database-url URL]
"""

import argparse
import logging
import sys
from datetime import datetime, timedelta

from sqlalchemy import inspect

from campus_library.database import (
    Book,
    DatabaseManager,
    Reservation,
    ReservationStatusEnum,
    RoleEnum,
    Transaction,
    User,
    get_db_manager,
    hash_password,
)

logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

EXPECTED_TABLES = {"users", "auth_tokens", "books", "reservations", "transactions"}

SAMPLE_PASSWORD = "password123"


def main():
    """Main entry point for database initialization."""
    parser = argparse.ArgumentParser(description="Initialize the Campus Library database")
    parser.add_argument(
        "--drop-existing",
        action="store_true",
        help="Drop existing tables before creating new ones",
    )
    parser.add_argument(
        "--sample-data",
        action="store_true",
        help="Load sample data after creating tables",
    )
    parser.add_argument(
        "--database-url",
        help="Override default database URL",
    )

    args = parser.parse_args()

    logger.info("Initializing database manager...")
    db_manager = get_db_manager(args.database_url)

    if not db_manager.verify_connection():
        logger.error("Failed to connect to database")
        sys.exit(1)

    try:
        db_manager.init_database(drop_existing=args.drop_existing)

        if args.sample_data:
            logger.info("Loading sample data...")
            load_sample_data(db_manager)

        tables = set(inspect(db_manager.engine).get_table_names())
        logger.info("Tables: %s", ", ".join(sorted(tables)))

        missing_tables = EXPECTED_TABLES - tables
        if missing_tables:
            logger.error("Missing expected tables: %s", missing_tables)
            sys.exit(1)

        logger.info("Database initialization complete")
    except Exception:
        logger.exception("Database initialization failed")
        sys.exit(1)
    finally:
        db_manager.close()


def load_sample_data(db_manager: DatabaseManager) -> None:
    """
    Load sample data for trying out the API.

    This creates a librarian, two students (all with password
    ``password123``), a small catalog, one pending reservation and one
    overdue loan.
    """
    now = datetime.now()

    with db_manager.session_scope() as session:
        users = [
            User(
                id="user_000000000001",
                name="Libby Librarian",
                email="librarian@campus.edu",
                password_hash=hash_password(SAMPLE_PASSWORD),
                role=RoleEnum.LIBRARIAN,
            ),
            User(
                id="user_000000000002",
                name="Sam Student",
                email="sam@campus.edu",
                password_hash=hash_password(SAMPLE_PASSWORD),
                role=RoleEnum.STUDENT,
            ),
            User(
                id="user_000000000003",
                name="Alex Student",
                email="alex@campus.edu",
                password_hash=hash_password(SAMPLE_PASSWORD),
                role=RoleEnum.STUDENT,
            ),
        ]
        session.add_all(users)
        session.flush()

        books = [
            Book(
                id="book_000000000001",
                title="The Hobbit",
                author="J.R.R. Tolkien",
                category="Fantasy",
                description="Bilbo Baggins is swept into a quest for a dragon's treasure.",
                copies_total=3,
                copies_available=3,
            ),
            Book(
                id="book_000000000002",
                title="Clean Code",
                author="Robert C. Martin",
                category="Software Engineering",
                description="A handbook of agile software craftsmanship.",
                copies_total=2,
                copies_available=1,
            ),
            Book(
                id="book_000000000003",
                title="Introduction to Algorithms",
                author="Thomas H. Cormen",
                category="Computer Science",
                copies_total=1,
                copies_available=1,
            ),
        ]
        session.add_all(books)
        session.flush()

        # One reservation waiting for a librarian
        session.add(
            Reservation(
                id="reservation_000000000001",
                user_id="user_000000000002",
                book_id="book_000000000001",
                status=ReservationStatusEnum.PENDING,
                reservation_date=now,
            )
        )

        # One loan issued ten days ago, now three days overdue
        issued_at = now - timedelta(days=10)
        session.add(
            Reservation(
                id="reservation_000000000002",
                user_id="user_000000000003",
                book_id="book_000000000002",
                status=ReservationStatusEnum.ISSUED,
                reservation_date=issued_at - timedelta(days=1),
                approval_date=issued_at - timedelta(hours=2),
            )
        )
        session.flush()
        session.add(
            Transaction(
                id="transaction_000000000001",
                reservation_id="reservation_000000000002",
                user_id="user_000000000003",
                book_id="book_000000000002",
                issue_date=issued_at,
                due_date=issued_at + timedelta(days=7),
            )
        )

        logger.info("Created %d users (password: %s)", len(users), SAMPLE_PASSWORD)
        logger.info("Created %d books", len(books))
        logger.info("Created 1 pending reservation and 1 overdue loan")


if __name__ == "__main__":
    main()
