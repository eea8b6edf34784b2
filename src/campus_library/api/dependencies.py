"""
FastAPI dependencies: database session, configuration and caller identity.

Tests replace ``get_database_manager`` and ``get_app_config`` through
``app.dependency_overrides`` to run against an in-memory database.
"""

import logging
from collections.abc import Generator

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from ..config import AppConfig, get_config
from ..database.reservation_repository import ReservationRepository
from ..database.session import DatabaseManager, get_db_manager
from ..database.transaction_repository import TransactionRepository
from ..database.user_repository import UserRepository
from ..errors import AuthenticationError, PermissionDeniedError
from ..models.user import Role, User

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


def get_database_manager() -> DatabaseManager:
    return get_db_manager()


def get_db(
    manager: DatabaseManager = Depends(get_database_manager),
) -> Generator[Session, None, None]:
    """One session per request, closed when the response is done."""
    yield from manager.request_session()


def get_app_config() -> AppConfig:
    return get_config()


def get_transactions(
    session: Session = Depends(get_db), config: AppConfig = Depends(get_app_config)
) -> TransactionRepository:
    """Loan ledger with the configured loan period and fine rate."""
    return TransactionRepository(
        session,
        loan_period_days=config.loan_period_days,
        fine_per_day=config.fine_per_day,
    )


def get_reservations(
    session: Session = Depends(get_db),
    transactions: TransactionRepository = Depends(get_transactions),
) -> ReservationRepository:
    return ReservationRepository(session, transactions)


def current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    session: Session = Depends(get_db),
) -> User:
    """
    Resolve the bearer token to a user.

    Raises:
        AuthenticationError: If no token is sent or it is unknown
    """
    if credentials is None or not credentials.credentials:
        raise AuthenticationError("Not authorized, no token")
    return UserRepository(session).get_by_token(credentials.credentials)


def _require_role(role: Role):
    def dependency(user: User = Depends(current_user)) -> User:
        if user.role != role:
            logger.info("User %s (%s) denied %s-only route", user.id, user.role, role.value)
            raise PermissionDeniedError(
                f"User role {user.role} is not authorized to access this route"
            )
        return user

    return dependency


require_librarian = _require_role(Role.LIBRARIAN)
require_student = _require_role(Role.STUDENT)
