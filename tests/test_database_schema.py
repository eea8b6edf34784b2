"""
Tests for database schema and session management.

These tests verify:
1. Database tables are created correctly
2. Check constraints guard the copy counts
3. Session scopes commit or roll back as a unit
4. Sessions on a file database do not share a transaction
"""

import pytest
from sqlalchemy import inspect, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.pool import StaticPool

from campus_library.database import (
    Book,
    DatabaseManager,
    Reservation,
    ReservationStatusEnum,
    RoleEnum,
    User,
    safe_commit,
)
from campus_library.errors import LibraryError


def _book(**overrides) -> Book:
    data = {
        "id": "book_0a1b2c3d4e5f",
        "title": "The Hobbit",
        "author": "J.R.R. Tolkien",
        "category": "Fantasy",
        "copies_total": 1,
        "copies_available": 1,
    }
    data.update(overrides)
    return Book(**data)


class TestDatabaseSchema:
    def test_tables_created(self, db_session):
        tables = set(inspect(db_session.bind).get_table_names())
        assert tables == {"users", "auth_tokens", "books", "reservations", "transactions"}

    def test_password_hash_is_a_column_not_a_model_field(self, db_session):
        columns = {c["name"] for c in inspect(db_session.bind).get_columns("users")}
        assert "password_hash" in columns

    def test_book_has_no_status_column(self, db_session):
        columns = {c["name"] for c in inspect(db_session.bind).get_columns("books")}
        assert "status" not in columns

    @pytest.mark.parametrize(
        "overrides",
        [
            {"copies_available": -1},
            {"copies_available": 2},
            {"copies_total": 0, "copies_available": 0},
            {"id": "0a1b2c3d4e5f"},
        ],
    )
    def test_book_constraints(self, db_session, overrides):
        db_session.add(_book(**overrides))
        with pytest.raises(IntegrityError):
            db_session.commit()
        db_session.rollback()

    def test_enum_values_stored_as_display_names(self, db_session):
        db_session.add(
            User(
                id="user_0a1b2c3d4e5f",
                name="Sam",
                email="sam@campus.edu",
                password_hash="x",
                role=RoleEnum.STUDENT,
            )
        )
        db_session.add(_book())
        db_session.add(
            Reservation(
                id="reservation_0a1b2c3d4e5f",
                user_id="user_0a1b2c3d4e5f",
                book_id="book_0a1b2c3d4e5f",
            )
        )
        db_session.commit()

        raw = db_session.execute(
            select(Reservation.__table__.c.status).select_from(Reservation.__table__)
        ).scalar_one()
        assert raw == ReservationStatusEnum.PENDING
        row = db_session.connection().exec_driver_sql("SELECT status FROM reservations").scalar()
        assert row == "Pending"

    def test_foreign_keys_enforced(self, db_session):
        db_session.add(
            Reservation(
                id="reservation_0a1b2c3d4e5f",
                user_id="user_missing00000",
                book_id="book_missing00000",
            )
        )
        with pytest.raises(IntegrityError):
            db_session.commit()
        db_session.rollback()


class TestSessionManagement:
    def test_session_scope_commits(self, db_manager: DatabaseManager):
        with db_manager.session_scope() as session:
            session.add(_book())

        with db_manager.session_scope() as session:
            assert session.get(Book, "book_0a1b2c3d4e5f") is not None

    def test_session_scope_rolls_back_on_error(self, db_manager: DatabaseManager):
        with pytest.raises(RuntimeError), db_manager.session_scope() as session:
            session.add(_book())
            session.flush()
            raise RuntimeError("boom")

        with db_manager.session_scope() as session:
            assert session.get(Book, "book_0a1b2c3d4e5f") is None

    def test_safe_commit_wraps_database_errors(self, db_session):
        db_session.add(_book(copies_available=5))
        with pytest.raises(LibraryError, match="Database operation 'add book' failed"):
            safe_commit(db_session, "add book")

    def test_verify_connection(self, db_manager: DatabaseManager):
        assert db_manager.verify_connection() is True


class TestConnectionPooling:
    def test_memory_database_shares_one_connection(self, db_manager: DatabaseManager):
        assert isinstance(db_manager.engine.pool, StaticPool)

    def test_file_database_pools_connections(self, file_db_manager: DatabaseManager):
        assert not isinstance(file_db_manager.engine.pool, StaticPool)

    def test_file_database_url_comes_from_config(self, test_config, monkeypatch):
        monkeypatch.setattr("campus_library.database.session.get_config", lambda: test_config)
        manager = DatabaseManager()
        assert manager.database_url == f"sqlite:///{test_config.database_path}"

    def test_rollback_does_not_leak_into_another_session(self, file_db_manager: DatabaseManager):
        """Each session on a file database runs in its own SQLite transaction."""
        with file_db_manager.session_scope() as session:
            session.add(_book(copies_total=3, copies_available=3))

        writer = file_db_manager.create_session()
        reader = file_db_manager.create_session()
        try:
            writer.execute(
                update(Book).where(Book.id == "book_0a1b2c3d4e5f").values(copies_available=0)
            )

            # Committing the reader must not commit the writer's pending update
            reader.execute(select(Book)).all()
            reader.commit()

            writer.rollback()
        finally:
            writer.close()
            reader.close()

        with file_db_manager.session_scope() as session:
            assert session.get(Book, "book_0a1b2c3d4e5f").copies_available == 3
