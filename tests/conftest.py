"""Test configuration and fixtures for the Campus Library API.

Every test gets:
1. An isolated in-memory SQLite database with the full schema
2. A configuration pointing at a temporary directory
3. Repositories and an HTTP client bound to that database
"""

from collections.abc import Callable, Generator
from pathlib import Path

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from campus_library.api import create_app
from campus_library.api.dependencies import get_app_config, get_database_manager
from campus_library.config import AppConfig, reset_config
from campus_library.database.book_repository import BookRepository
from campus_library.database.report_repository import ReportRepository
from campus_library.database.reservation_repository import ReservationRepository
from campus_library.database.session import DatabaseManager
from campus_library.database.transaction_repository import TransactionRepository
from campus_library.database.user_repository import UserRepository
from campus_library.models.book import Book, BookCreate
from campus_library.models.user import AuthSession, Role, UserRegister
from campus_library.observability import ObservabilityConfig, initialize_observability

# === Session-wide setup ===


@pytest.fixture(scope="session", autouse=True)
def _local_observability():
    """Keep Logfire local so spans and metrics created by repositories go nowhere."""
    initialize_observability(ObservabilityConfig(enabled=False))


# === Configuration Fixtures ===


@pytest.fixture
def test_config(tmp_path: Path) -> Generator[AppConfig, None, None]:
    """Provide a test configuration with the default lending policy."""
    reset_config()
    config = AppConfig(
        database_path=tmp_path / "test_library.db",
        loan_period_days=7,
        fine_per_day=10,
    )
    yield config
    reset_config()


# === Test Database Fixtures ===


@pytest.fixture
def db_manager(test_config: AppConfig) -> Generator[DatabaseManager, None, None]:
    """An in-memory database with all tables created."""
    manager = DatabaseManager("sqlite://")
    manager.init_database()
    yield manager
    manager.close()


@pytest.fixture
def file_db_manager(tmp_path: Path) -> Generator[DatabaseManager, None, None]:
    """A database file on disk, where every session gets its own connection."""
    manager = DatabaseManager(f"sqlite:///{tmp_path / 'library.db'}")
    manager.init_database()
    yield manager
    manager.close()


@pytest.fixture
def db_session(db_manager: DatabaseManager) -> Generator[Session, None, None]:
    session = db_manager.create_session()
    try:
        yield session
    finally:
        session.close()


# === Repository Fixtures ===


@pytest.fixture
def book_repo(db_session: Session) -> BookRepository:
    return BookRepository(db_session)


@pytest.fixture
def user_repo(db_session: Session) -> UserRepository:
    return UserRepository(db_session)


@pytest.fixture
def transaction_repo(db_session: Session, test_config: AppConfig) -> TransactionRepository:
    return TransactionRepository(
        db_session,
        loan_period_days=test_config.loan_period_days,
        fine_per_day=test_config.fine_per_day,
    )


@pytest.fixture
def reservation_repo(
    db_session: Session, transaction_repo: TransactionRepository
) -> ReservationRepository:
    return ReservationRepository(db_session, transaction_repo)


@pytest.fixture
def report_repo(db_session: Session, transaction_repo: TransactionRepository) -> ReportRepository:
    return ReportRepository(db_session, transaction_repo)


# === Sample Data Factories ===


@pytest.fixture
def make_book(book_repo: BookRepository) -> Callable[..., Book]:
    """Factory for catalog entries; defaults to a single copy of The Hobbit."""

    def _make_book(
        title: str = "The Hobbit",
        author: str = "J.R.R. Tolkien",
        category: str = "Fantasy",
        copies_total: int = 1,
        description: str | None = None,
    ) -> Book:
        return book_repo.create(
            BookCreate(
                title=title,
                author=author,
                category=category,
                copies_total=copies_total,
                description=description,
            )
        )

    return _make_book


@pytest.fixture
def make_user(user_repo: UserRepository) -> Callable[..., AuthSession]:
    """Factory for registered accounts; returns the user and a bearer token."""
    counter = {"n": 0}

    def _make_user(role: Role = Role.STUDENT, name: str | None = None) -> AuthSession:
        counter["n"] += 1
        n = counter["n"]
        return user_repo.register(
            UserRegister(
                name=name or f"{role.value} {n}",
                email=f"{role.value.lower()}{n}@campus.edu",
                password="secret123",
                role=role,
            )
        )

    return _make_user


@pytest.fixture
def student(make_user) -> AuthSession:
    return make_user(Role.STUDENT, name="Sam Student")


@pytest.fixture
def librarian(make_user) -> AuthSession:
    return make_user(Role.LIBRARIAN, name="Libby Librarian")


# === HTTP Fixtures ===


@pytest.fixture
def app(db_manager: DatabaseManager, test_config: AppConfig) -> FastAPI:
    """The API wired to the in-memory test database."""
    app = create_app(test_config)
    app.dependency_overrides[get_database_manager] = lambda: db_manager
    app.dependency_overrides[get_app_config] = lambda: test_config
    return app


@pytest.fixture
def client(app: FastAPI) -> TestClient:
    return TestClient(app)


@pytest.fixture
def headers_for() -> Callable[[AuthSession], dict[str, str]]:
    """Build the Authorization header for an account."""

    def _headers_for(auth: AuthSession) -> dict[str, str]:
        return {"Authorization": f"Bearer {auth.token}"}

    return _headers_for


@pytest.fixture
def student_headers(student: AuthSession, headers_for) -> dict[str, str]:
    return headers_for(student)


@pytest.fixture
def librarian_headers(librarian: AuthSession, headers_for) -> dict[str, str]:
    return headers_for(librarian)
